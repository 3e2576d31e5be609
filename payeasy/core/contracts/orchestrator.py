"""
Contract transaction lifecycle orchestrator.

The single entry point used by the payment flow:
- Build the envelope
- Create the history record (pending_signature)
- Sign through the signing agent (signed)
- Broadcast (submitted)
- On signing/submission failure, annotate history (cancelled/failed) and re-raise

History writes are best-effort: any failed write is logged and never masks
the outcome of the primary flow. On-chain resolution (success/failed) is a
separate, caller-driven step through track()/wait_for_terminal().
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from payeasy.config import Settings, settings as default_settings
from payeasy.db.history_client import get_history_client
from payeasy.logging_config import bind_transaction_context, clear_transaction_context
from payeasy.providers.soroban import SorobanRpcError, get_soroban_client

from .errors import ContractTransactionError, SigningCancelled, describe_contract_error
from .fees import compute_fee_quote, inclusion_fee_from_stats
from .history import HistoryRecord, HistoryRecorder
from .models import (
    ExecutionResult,
    FeeQuote,
    InvocationRequest,
    LifecycleStatus,
    NetworkStatus,
    TrackedStatus,
)
from .signing import HttpSigningAgent, SigningClient
from .submission import SubmissionClient
from .tracker import NetworkStatusResolver, StatusTracker
from .tx_builder import TransactionBuilder


logger = logging.getLogger(__name__)

CREATED_BY = "execute_contract_transaction"


def failure_message(error: Exception) -> str:
    """Message recorded on a failed or cancelled history record."""
    message = str(error)
    return describe_contract_error(message) or message or "Transaction failed."


class ContractTransactionOrchestrator:
    """
    Runs build -> sign -> submit for one invocation and records every step.

    Each execute() call is independent and produces its own history record;
    retries are new calls and therefore new records.
    """

    def __init__(
        self,
        builder: Optional[TransactionBuilder] = None,
        signer: Optional[SigningClient] = None,
        submitter: Optional[SubmissionClient] = None,
        recorder: Optional[HistoryRecorder] = None,
        tracker: Optional[StatusTracker] = None,
        resolver: Optional[NetworkStatusResolver] = None,
        settings: Optional[Settings] = None,
        rpc_factory: Optional[Callable[[str], Any]] = None,
    ):
        self.settings = settings or default_settings
        self.builder = builder or TransactionBuilder(settings=self.settings)
        self.submitter = submitter or SubmissionClient()
        self.resolver = resolver or NetworkStatusResolver(settings=self.settings)
        self._signer = signer
        self._signing_agent: Optional[HttpSigningAgent] = None
        self._recorder = recorder
        self._tracker = tracker
        self._rpc_factory = rpc_factory or get_soroban_client

    @property
    def fee_buffer_multiplier(self) -> float:
        return self.settings.fee_buffer_multiplier

    @property
    def signer(self) -> SigningClient:
        if self._signer is None:
            if not self.settings.has_signing_agent:
                raise ContractTransactionError("No signing agent configured (set SIGNING_AGENT_URL)")
            self._signing_agent = HttpSigningAgent(self.settings.signing_agent_url)
            self._signer = SigningClient(self._signing_agent)
        return self._signer

    @property
    def recorder(self) -> HistoryRecorder:
        if self._recorder is None:
            self._recorder = HistoryRecorder(get_history_client())
        return self._recorder

    @property
    def tracker(self) -> StatusTracker:
        if self._tracker is None:
            self._tracker = StatusTracker(get_history_client(), settings=self.settings)
        return self._tracker

    # =========================================================================
    # History (best-effort)
    # =========================================================================

    async def _create_history(self, record: HistoryRecord) -> Optional[str]:
        """Create the history record. Returns None if the store is unavailable."""
        try:
            return await self.recorder.create(record.to_create_payload())
        except Exception as e:
            logger.warning(f"History record not created: {e}")
        return None

    async def _advance(self, record: HistoryRecord, status: LifecycleStatus, **fields: Any) -> None:
        """Move the record forward and mirror the change into the store."""
        updates = record.transition(status, **fields)
        if not record.id:
            return

        try:
            await self.recorder.update(record.id, updates)
        except Exception as e:
            logger.warning(f"History record {record.id} not updated to {status.value}: {e}")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _history_metadata(self, request: InvocationRequest, gas_source: Optional[str]) -> Dict[str, Any]:
        return {
            "gas_source": gas_source,
            "created_by": CREATED_BY,
            **request.metadata,
        }

    async def execute(self, request: InvocationRequest) -> ExecutionResult:
        """
        Build, sign and submit a contract invocation.

        Returns:
            ExecutionResult with the transaction id and history record id

        Raises:
            BuildError: Nothing was recorded; the envelope could not be built
            SigningCancelled: The user declined; history is marked cancelled
            SigningFailed: Agent fault; history is marked failed
            SubmissionError: Broadcast failed; history is marked failed
        """
        signer = self.signer
        built = await self.builder.build(request, fee_buffer_multiplier=self.fee_buffer_multiplier)

        gas_source = built.cost_estimate.provenance.value if built.cost_estimate else None
        record = HistoryRecord.from_build(request, built, self._history_metadata(request, gas_source))
        record.id = await self._create_history(record)

        bind_transaction_context(
            history_id=record.id,
            contract_id=request.contract_id,
            method=request.method,
        )
        try:
            signed = await signer.sign(built.unsigned_envelope, built.network_passphrase)
            await self._advance(record, LifecycleStatus.SIGNED, signed_envelope=signed.signed_bytes)

            receipt = await self.submitter.submit(signed, built.network_passphrase, built.rpc_endpoint)
            await self._advance(
                record,
                LifecycleStatus.SUBMITTED,
                transaction_id=receipt.transaction_id,
                error_message=receipt.rejection_envelope,
            )
        except Exception as e:
            status = LifecycleStatus.CANCELLED if isinstance(e, SigningCancelled) else LifecycleStatus.FAILED
            await self._advance(record, status, error_message=failure_message(e))
            raise
        finally:
            clear_transaction_context()

        return ExecutionResult(
            transaction_id=receipt.transaction_id,
            build=built,
            receipt=receipt,
            history_id=record.id,
        )

    async def quote(self, request: InvocationRequest) -> FeeQuote:
        """Build (without signing) and break down the fee the user would pay."""
        built = await self.builder.build(request, fee_buffer_multiplier=self.fee_buffer_multiplier)

        try:
            stats = await self._rpc_factory(built.rpc_endpoint).get_fee_stats()
        except SorobanRpcError as e:
            logger.warning(f"Fee stats unavailable, using base fee: {e}")
            stats = None

        inclusion_fee = inclusion_fee_from_stats(stats, default=self.settings.base_fee)
        return compute_fee_quote(built, inclusion_fee, self.fee_buffer_multiplier)

    async def track(self, history_id: str) -> TrackedStatus:
        return await self.tracker.check(history_id)

    async def wait_for_terminal(
        self,
        history_id: str,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TrackedStatus:
        return await self.tracker.poll_until_terminal(
            history_id,
            interval_seconds=interval_seconds,
            timeout_seconds=timeout_seconds,
            cancel_event=cancel_event,
        )

    async def network_status(self, transaction_hash: str, network: Optional[str] = None) -> NetworkStatus:
        return await self.resolver.resolve(transaction_hash, network)

    async def close(self) -> None:
        """Close the signing bridge client this orchestrator created."""
        if self._signing_agent is not None:
            await self._signing_agent.close()
            self._signing_agent = None
            self._signer = None


# Singleton instance
_orchestrator: Optional[ContractTransactionOrchestrator] = None


def get_contract_orchestrator() -> ContractTransactionOrchestrator:
    """Get the singleton orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ContractTransactionOrchestrator()
    return _orchestrator
