"""
Contract transaction lifecycle models and types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class LifecycleStatus(str, Enum):
    """Client-side pipeline status of a history record."""
    PENDING_SIGNATURE = "pending_signature"  # Built, waiting for the wallet
    SIGNED = "signed"                        # Wallet returned a signature
    SUBMITTED = "submitted"                  # Broadcast accepted by RPC
    PENDING = "pending"                      # Awaiting ledger inclusion
    SUCCESS = "success"                      # Confirmed on-chain
    FAILED = "failed"                        # Pipeline or on-chain failure
    CANCELLED = "cancelled"                  # User declined to sign

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_LIFECYCLE


_TERMINAL_LIFECYCLE = frozenset({
    LifecycleStatus.SUCCESS,
    LifecycleStatus.FAILED,
    LifecycleStatus.CANCELLED,
})


class OnchainStatus(str, Enum):
    """Ledger-confirmed outcome reported by the status endpoint."""
    PENDING = "pending"
    NOT_SUBMITTED = "not_submitted"
    SUCCESS = "success"
    FAILED = "failed"


class EstimateProvenance(str, Enum):
    """Which estimation strategy produced a CostEstimate."""
    DEDICATED = "dedicated-estimation"
    SIMULATION = "simulation"


@dataclass(frozen=True)
class InvocationRequest:
    """A single contract invocation attempt."""
    source_account: str
    contract_id: str
    method: str
    args: Tuple[Any, ...] = ()
    network: Optional[str] = None
    rpc_endpoint: Optional[str] = None
    network_passphrase: Optional[str] = None
    timeout_seconds: Optional[int] = None

    # Caller context carried into the history record
    listing_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class CostEstimate:
    """Minimum resource fee for an invocation, in stroops."""
    fee_units: int
    provenance: EstimateProvenance
    cpu_instructions: Optional[int] = None
    read_bytes: Optional[int] = None
    write_bytes: Optional[int] = None

    def __post_init__(self):
        if self.fee_units <= 0:
            raise ValueError("fee_units must be positive")


@dataclass(frozen=True)
class BuiltEnvelope:
    """An assembled, unsigned envelope ready for the signing agent."""
    unsigned_envelope: str
    fee_units: int
    cost_estimate: Optional[CostEstimate]
    network: str
    network_passphrase: str
    rpc_endpoint: str


@dataclass(frozen=True)
class SignedEnvelope:
    signed_bytes: str


@dataclass(frozen=True)
class SubmissionReceipt:
    """What the ingestion endpoint said about a broadcast."""
    transaction_id: str
    submission_status: str
    rejection_envelope: Optional[str] = None


@dataclass(frozen=True)
class TrackedStatus:
    """Snapshot from the status endpoint. Re-derived on every poll."""
    lifecycle_status: LifecycleStatus
    onchain_status: OnchainStatus
    transaction_id: Optional[str] = None
    ledger_sequence: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.onchain_status not in (OnchainStatus.PENDING, OnchainStatus.NOT_SUBMITTED)


@dataclass(frozen=True)
class NetworkStatus:
    """Outcome of a historical-ledger lookup by transaction hash."""
    status: LifecycleStatus
    ledger_sequence: Optional[int] = None


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    network_passphrase: str
    horizon_url: str
    soroban_rpc_url: str
    wallet_network: str


@dataclass(frozen=True)
class FeeQuote:
    """Fee breakdown shown before the user is asked to sign."""
    base_fee: int
    resource_fee: int
    buffer: int
    total_fee: int
    network: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseFee": self.base_fee,
            "resourceFee": self.resource_fee,
            "buffer": self.buffer,
            "totalFee": self.total_fee,
            "network": self.network,
        }


@dataclass
class ExecutionResult:
    """Result of Orchestrator.execute."""
    transaction_id: str
    build: BuiltEnvelope
    receipt: SubmissionReceipt
    history_id: Optional[str] = None
