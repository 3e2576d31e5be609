"""
Envelope helpers built on stellar-sdk.

Everything that touches XDR lives here: argument conversion, provisional
envelope composition, fee rewriting, hashing, resource-usage decoding and
the assembly strategies that turn a simulated envelope into a submittable
one.
"""

import logging
from typing import Any, Dict, Optional, Protocol, Sequence

import stellar_sdk
import stellar_sdk.soroban_server as soroban_server_module
from stellar_sdk import (
    Account,
    Address,
    FeeBumpTransactionEnvelope,
    InvokeHostFunction,
    TransactionBuilder as EnvelopeBuilder,
    TransactionEnvelope,
    scval,
)
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.soroban_rpc import SimulateTransactionResponse

from .errors import AssemblyUnavailableError


logger = logging.getLogger(__name__)


# =============================================================================
# Arguments
# =============================================================================

def _is_address(value: str) -> bool:
    try:
        Address(value)
    except ValueError:
        return False
    return True


def to_scval(value: Any) -> stellar_xdr.SCVal:
    """
    Convert a native Python value into a contract argument.

    Integers become i128 (the rent escrow's amount type), account and
    contract strkeys become addresses, other strings become strings, and
    dict keys become symbols. SCVal instances pass through untouched.
    """
    if isinstance(value, stellar_xdr.SCVal):
        return value
    if value is None:
        return scval.to_void()
    if isinstance(value, bool):
        return scval.to_bool(value)
    if isinstance(value, int):
        return scval.to_int128(value)
    if isinstance(value, (bytes, bytearray)):
        return scval.to_bytes(bytes(value))
    if isinstance(value, Address):
        return scval.to_address(value)
    if isinstance(value, str):
        if _is_address(value):
            return scval.to_address(value)
        return scval.to_string(value)
    if isinstance(value, (list, tuple)):
        return scval.to_vec([to_scval(item) for item in value])
    if isinstance(value, dict):
        return scval.to_map({
            (scval.to_symbol(key) if isinstance(key, str) else to_scval(key)): to_scval(item)
            for key, item in value.items()
        })
    raise TypeError(f"Unsupported contract argument type: {type(value).__name__}")


# =============================================================================
# Envelopes
# =============================================================================

def compose_invocation(
    source_account: str,
    sequence: int,
    contract_id: str,
    method: str,
    args: Sequence[Any],
    network_passphrase: str,
    base_fee: int,
    timeout_seconds: int,
) -> TransactionEnvelope:
    """Build the provisional single-operation invocation envelope."""
    builder = EnvelopeBuilder(
        source_account=Account(source_account, sequence),
        network_passphrase=network_passphrase,
        base_fee=base_fee,
    )
    builder.append_invoke_contract_function_op(
        contract_id=contract_id,
        function_name=method,
        parameters=[to_scval(arg) for arg in args],
    )
    builder.set_timeout(timeout_seconds)
    return builder.build()


def add_fee(envelope: TransactionEnvelope, extra: int) -> TransactionEnvelope:
    """Return a copy of the envelope with its fee raised by ``extra`` stroops."""
    updated = TransactionEnvelope.from_xdr(envelope.to_xdr(), envelope.network_passphrase)
    updated.transaction.fee += extra
    return updated


def envelope_fee(envelope: TransactionEnvelope) -> int:
    return int(envelope.transaction.fee)


def transaction_hash(envelope_xdr: str, network_passphrase: str) -> str:
    """
    Hex transaction hash of a (possibly fee-bumped) envelope.

    Deterministic for a given envelope and passphrase.

    Raises:
        ValueError: envelope_xdr is not a transaction envelope
    """
    if FeeBumpTransactionEnvelope.is_fee_bump_transaction_envelope(envelope_xdr):
        envelope = FeeBumpTransactionEnvelope.from_xdr(envelope_xdr, network_passphrase)
    else:
        envelope = TransactionEnvelope.from_xdr(envelope_xdr, network_passphrase)
    return envelope.hash_hex()


def decode_resource_usage(transaction_data: Optional[str]) -> Dict[str, Optional[int]]:
    """Pull CPU instructions and read/write bytes out of simulated SorobanTransactionData."""
    if not transaction_data:
        return {}

    try:
        data = stellar_xdr.SorobanTransactionData.from_xdr(transaction_data)
    except Exception as e:
        logger.debug(f"Could not decode simulated transaction data: {e}")
        return {}

    resources = data.resources
    # read_bytes was renamed disk_read_bytes in protocol 23 builds of the SDK
    read_bytes = getattr(resources, "read_bytes", None) or getattr(resources, "disk_read_bytes", None)
    return {
        "cpu_instructions": resources.instructions.uint32,
        "read_bytes": read_bytes.uint32 if read_bytes is not None else None,
        "write_bytes": resources.write_bytes.uint32,
    }


# =============================================================================
# Assembly strategies
# =============================================================================

class AssemblyStrategy(Protocol):
    """Turns a simulated provisional envelope into a submittable one."""

    name: str

    def available(self) -> bool:
        ...

    def supports(self, simulation: Dict[str, Any]) -> bool:
        ...

    def assemble(
        self,
        envelope: TransactionEnvelope,
        simulation: Dict[str, Any],
    ) -> TransactionEnvelope:
        ...


class LibraryAssembler:
    """
    Delegates to the SDK's own assembly helper when the installed version ships one.

    The helper only handles complete simulations (transaction data, a resource
    fee and one host function result); anything sparser is left to the next
    strategy.
    """

    name = "library"

    def _helper(self):
        return getattr(soroban_server_module, "_assemble_transaction", None)

    def available(self) -> bool:
        return callable(self._helper())

    def supports(self, simulation: Dict[str, Any]) -> bool:
        return bool(
            simulation.get("transactionData")
            and positive_int(simulation.get("minResourceFee"))
            and len(simulation.get("results") or []) == 1
        )

    def assemble(
        self,
        envelope: TransactionEnvelope,
        simulation: Dict[str, Any],
    ) -> TransactionEnvelope:
        response = SimulateTransactionResponse.model_validate(simulation)
        copy = TransactionEnvelope.from_xdr(envelope.to_xdr(), envelope.network_passphrase)
        try:
            return self._helper()(copy, response)
        except AssertionError as e:
            raise ValueError(f"SDK assembly rejected the simulation: {str(e) or 'incomplete result'}") from e


class ResourceAssembler:
    """Attaches simulated soroban data, resource fee and auth entries directly."""

    name = "resources"

    def available(self) -> bool:
        return hasattr(stellar_sdk, "SorobanDataBuilder")

    def supports(self, simulation: Dict[str, Any]) -> bool:
        return True

    def assemble(
        self,
        envelope: TransactionEnvelope,
        simulation: Dict[str, Any],
    ) -> TransactionEnvelope:
        assembled = TransactionEnvelope.from_xdr(envelope.to_xdr(), envelope.network_passphrase)
        tx = assembled.transaction

        transaction_data = simulation.get("transactionData")
        if transaction_data:
            tx.soroban_data = stellar_sdk.SorobanDataBuilder.from_xdr(transaction_data).build()

        tx.fee += positive_int(simulation.get("minResourceFee")) or 0

        results = simulation.get("results") or []
        auth = (results[0].get("auth") if results else None) or []
        if auth:
            for op in tx.operations:
                if isinstance(op, InvokeHostFunction) and not op.auth:
                    op.auth = [stellar_xdr.SorobanAuthorizationEntry.from_xdr(entry) for entry in auth]

        return assembled


DEFAULT_ASSEMBLERS: Sequence[AssemblyStrategy] = (LibraryAssembler(), ResourceAssembler())


def assemble(
    envelope: TransactionEnvelope,
    simulation: Dict[str, Any],
    strategies: Sequence[AssemblyStrategy] = DEFAULT_ASSEMBLERS,
) -> TransactionEnvelope:
    """
    Assemble with the first available strategy that accepts the simulation.

    Raises:
        AssemblyUnavailableError: no strategy is available
        ValueError: the chosen strategy could not use the simulation
    """
    for strategy in strategies:
        if strategy.available() and strategy.supports(simulation):
            logger.debug(f"Assembling envelope with {strategy.name} strategy")
            return strategy.assemble(envelope, simulation)

    raise AssemblyUnavailableError(
        "Soroban transaction assembly is unavailable for the installed stellar-sdk version."
    )


def positive_int(value: Any) -> Optional[int]:
    """Parse a numeric RPC field, returning None unless it is a positive integer."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None
