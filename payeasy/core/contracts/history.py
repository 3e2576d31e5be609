"""
Transaction history record and recorder.

A HistoryRecord is created once per attempt, right after a successful build,
and only ever moves forward:

    pending_signature -> signed -> submitted -> {success | failed | cancelled}

Fields recorded earlier are never cleared by a later transition.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from payeasy.db.history_client import HistoryStoreError

from .errors import InvalidTransitionError, PersistenceError
from .models import BuiltEnvelope, CostEstimate, InvocationRequest, LifecycleStatus


logger = logging.getLogger(__name__)


_RANK: Dict[LifecycleStatus, int] = {
    LifecycleStatus.PENDING_SIGNATURE: 0,
    LifecycleStatus.SIGNED: 1,
    LifecycleStatus.SUBMITTED: 2,
    LifecycleStatus.PENDING: 3,
    LifecycleStatus.SUCCESS: 4,
    LifecycleStatus.FAILED: 4,
    LifecycleStatus.CANCELLED: 4,
}


@dataclass
class HistoryRecord:
    """Lifecycle aggregate mirrored into the history store."""
    contract_id: str
    method: str
    wallet_address: str
    network: str
    lifecycle_status: LifecycleStatus = LifecycleStatus.PENDING_SIGNATURE
    id: Optional[str] = None
    listing_id: Optional[str] = None
    fee_units: Optional[int] = None
    cost_estimate: Optional[CostEstimate] = None
    unsigned_envelope: Optional[str] = None
    signed_envelope: Optional[str] = None
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_build(
        cls,
        request: InvocationRequest,
        built: BuiltEnvelope,
        metadata: Dict[str, Any],
    ) -> "HistoryRecord":
        return cls(
            contract_id=request.contract_id,
            method=request.method,
            wallet_address=request.source_account,
            network=built.network,
            listing_id=request.listing_id,
            fee_units=built.fee_units,
            cost_estimate=built.cost_estimate,
            unsigned_envelope=built.unsigned_envelope,
            metadata=metadata,
        )

    @property
    def is_terminal(self) -> bool:
        return self.lifecycle_status.is_terminal

    def can_transition(self, status: LifecycleStatus) -> bool:
        if self.is_terminal:
            return False
        return _RANK[status] > _RANK[self.lifecycle_status]

    def transition(
        self,
        status: LifecycleStatus,
        signed_envelope: Optional[str] = None,
        transaction_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Advance the record and return the partial update for the store.

        Raises:
            InvalidTransitionError: status does not move the record forward
        """
        if not self.can_transition(status):
            raise InvalidTransitionError(self.lifecycle_status.value, status.value)

        self.lifecycle_status = status
        updates: Dict[str, Any] = {"status": status.value}

        if signed_envelope is not None:
            self.signed_envelope = signed_envelope
            updates["signed_xdr"] = signed_envelope
        if transaction_id is not None:
            self.transaction_id = transaction_id
            updates["tx_hash"] = transaction_id
        if error_message is not None:
            self.error_message = error_message
            updates["error_message"] = error_message

        return updates

    def to_create_payload(self) -> Dict[str, Any]:
        """Wire payload for POST /transactions."""
        payload: Dict[str, Any] = {
            "contract_id": self.contract_id,
            "method": self.method,
            "wallet_address": self.wallet_address,
            "network": self.network,
            "status": self.lifecycle_status.value,
            "metadata": self.metadata,
        }
        optional = {
            "listing_id": self.listing_id,
            "fee_stroops": self.fee_units,
            "gas_estimate": self.cost_estimate.fee_units if self.cost_estimate else None,
            "request_xdr": self.unsigned_envelope,
            "signed_xdr": self.signed_envelope,
            "tx_hash": self.transaction_id,
            "error_message": self.error_message,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


class HistoryStore(Protocol):
    async def create_transaction(self, payload: Dict[str, Any]) -> str:
        ...

    async def update_transaction(self, record_id: str, updates: Dict[str, Any]) -> None:
        ...


class HistoryRecorder:
    """Thin pass-through to the history store that raises PersistenceError."""

    def __init__(self, store: HistoryStore):
        self.store = store

    async def create(self, fields: Dict[str, Any]) -> str:
        try:
            return await self.store.create_transaction(fields)
        except HistoryStoreError as e:
            raise PersistenceError(f"Failed to create history record: {e}") from e

    async def update(self, record_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self.store.update_transaction(record_id, fields)
        except HistoryStoreError as e:
            raise PersistenceError(f"Failed to update history record {record_id}: {e}") from e
