"""
Contract Transaction Lifecycle

Builds, signs, submits and tracks Soroban contract invocations:
- TransactionBuilder: Assembles unsigned envelopes with cost estimates
- SigningClient: Normalizes signing-agent outcomes
- SubmissionClient: Broadcasts signed envelopes
- StatusTracker: Polls the history API for terminal status
- ContractTransactionOrchestrator: build -> sign -> submit with history

Usage:
    from payeasy.core.contracts import (
        InvocationRequest,
        get_contract_orchestrator,
    )

    orchestrator = get_contract_orchestrator()
    result = await orchestrator.execute(InvocationRequest(
        source_account="G...",
        contract_id="C...",
        method="deposit",
        args=(1000,),
        network="testnet",
    ))
    status = await orchestrator.wait_for_terminal(result.history_id)
"""

from .models import (
    LifecycleStatus,
    OnchainStatus,
    EstimateProvenance,
    InvocationRequest,
    CostEstimate,
    BuiltEnvelope,
    SignedEnvelope,
    SubmissionReceipt,
    TrackedStatus,
    NetworkStatus,
    NetworkConfig,
    FeeQuote,
    ExecutionResult,
)

from .errors import (
    ContractTransactionError,
    BuildError,
    AccountNotFoundError,
    SimulationError,
    AssemblyUnavailableError,
    SigningCancelled,
    SigningFailed,
    SubmissionError,
    PersistenceError,
    InvalidTransitionError,
)

from .network import resolve_network_config

from .estimator import CostEstimator

from .tx_builder import TransactionBuilder

from .signing import (
    SigningAgent,
    SigningClient,
    HttpSigningAgent,
    classify_signing_error,
    normalize_signing_response,
)

from .submission import SubmissionClient

from .tracker import StatusTracker, NetworkStatusResolver

from .history import HistoryRecord, HistoryRecorder

from .fees import compute_fee_quote, fee_buffer

from .orchestrator import (
    ContractTransactionOrchestrator,
    get_contract_orchestrator,
)

__all__ = [
    # Models
    "LifecycleStatus",
    "OnchainStatus",
    "EstimateProvenance",
    "InvocationRequest",
    "CostEstimate",
    "BuiltEnvelope",
    "SignedEnvelope",
    "SubmissionReceipt",
    "TrackedStatus",
    "NetworkStatus",
    "NetworkConfig",
    "FeeQuote",
    "ExecutionResult",
    # Errors
    "ContractTransactionError",
    "BuildError",
    "AccountNotFoundError",
    "SimulationError",
    "AssemblyUnavailableError",
    "SigningCancelled",
    "SigningFailed",
    "SubmissionError",
    "PersistenceError",
    "InvalidTransitionError",
    # Building
    "resolve_network_config",
    "CostEstimator",
    "TransactionBuilder",
    "compute_fee_quote",
    "fee_buffer",
    # Signing
    "SigningAgent",
    "SigningClient",
    "HttpSigningAgent",
    "classify_signing_error",
    "normalize_signing_response",
    # Submission & tracking
    "SubmissionClient",
    "StatusTracker",
    "NetworkStatusResolver",
    # History
    "HistoryRecord",
    "HistoryRecorder",
    # Orchestrator
    "ContractTransactionOrchestrator",
    "get_contract_orchestrator",
]
