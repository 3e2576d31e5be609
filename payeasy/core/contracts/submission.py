"""
Submission client.

Broadcasts a signed envelope once and reports what the ingestion endpoint
said. Broadcast acceptance is not ledger confirmation; confirmation is the
status tracker's business.
"""

import logging
from typing import Any, Callable, Dict, Optional, Protocol

from payeasy.providers.soroban import SorobanRpcError, get_soroban_client

from .envelope import transaction_hash
from .errors import SubmissionError
from .models import SignedEnvelope, SubmissionReceipt


logger = logging.getLogger(__name__)


class BroadcastBackend(Protocol):
    async def send_transaction(self, signed_xdr: str) -> Dict[str, Any]:
        ...


class SubmissionClient:
    """Sends signed envelopes to a Soroban RPC endpoint."""

    def __init__(self, rpc_factory: Optional[Callable[[str], BroadcastBackend]] = None):
        self._rpc_factory = rpc_factory or get_soroban_client

    async def submit(
        self,
        signed: SignedEnvelope,
        network_passphrase: str,
        rpc_endpoint: str,
    ) -> SubmissionReceipt:
        """
        Broadcast a signed envelope.

        The returned transaction id is the endpoint's hash when it supplies
        one, otherwise the hash of the envelope itself.

        Raises:
            SubmissionError: The envelope is malformed or the endpoint rejected the call
        """
        try:
            derived_id = transaction_hash(signed.signed_bytes, network_passphrase)
        except Exception as e:
            raise SubmissionError(f"Signed envelope could not be parsed: {e}") from e

        rpc = self._rpc_factory(rpc_endpoint)
        try:
            response = await rpc.send_transaction(signed.signed_bytes)
        except SorobanRpcError as e:
            raise SubmissionError(f"Broadcast failed: {e}") from e

        transaction_id = response.get("hash") or derived_id
        receipt = SubmissionReceipt(
            transaction_id=transaction_id,
            submission_status=response.get("status") or "UNKNOWN",
            rejection_envelope=response.get("errorResultXdr"),
        )

        if receipt.rejection_envelope:
            logger.warning(
                f"Transaction {transaction_id} returned {receipt.submission_status} "
                f"with error result"
            )
        else:
            logger.info(f"Transaction submitted: {transaction_id} ({receipt.submission_status})")
        return receipt
