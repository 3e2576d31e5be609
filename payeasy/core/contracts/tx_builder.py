"""
Transaction builder for contract invocations.

Builds an unsigned, assembled envelope: account sequence lookup, provisional
envelope, simulation, cost estimate, assembly, optional fee buffer. Either a
complete BuiltEnvelope comes back or an error is raised.
"""

import logging
from typing import Any, Callable, Dict, Optional, Protocol, Sequence

from payeasy.config import Settings, settings as default_settings
from payeasy.providers.soroban import SorobanRpcError, get_soroban_client

from .envelope import (
    DEFAULT_ASSEMBLERS,
    AssemblyStrategy,
    add_fee,
    assemble,
    compose_invocation,
    envelope_fee,
)
from .errors import AccountNotFoundError, BuildError, SimulationError, describe_contract_error
from .estimator import CostEstimator
from .fees import DEFAULT_FEE_BUFFER_MULTIPLIER, fee_buffer, validate_multiplier
from .models import BuiltEnvelope, InvocationRequest
from .network import resolve_network_config


logger = logging.getLogger(__name__)


class LedgerBackend(Protocol):
    """The subset of the Soroban RPC client the builder needs."""

    async def get_account(self, public_key: str) -> Optional[int]:
        ...

    async def simulate_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        ...

    async def estimate_resource_fee(self, envelope_xdr: str) -> Optional[int]:
        ...


class TransactionBuilder:
    """
    Builds ready-to-sign contract invocation envelopes.

    Usage:
        builder = TransactionBuilder()
        built = await builder.build(InvocationRequest(
            source_account="G...",
            contract_id="C...",
            method="deposit",
            args=(1000,),
            network="testnet",
        ))
    """

    def __init__(
        self,
        rpc_factory: Optional[Callable[[str], LedgerBackend]] = None,
        settings: Optional[Settings] = None,
        assemblers: Sequence[AssemblyStrategy] = DEFAULT_ASSEMBLERS,
    ):
        self.settings = settings or default_settings
        self._rpc_factory = rpc_factory or get_soroban_client
        self.assemblers = assemblers

    async def _fetch_sequence(self, rpc: LedgerBackend, account_id: str) -> int:
        try:
            sequence = await rpc.get_account(account_id)
        except ValueError as e:
            raise AccountNotFoundError(account_id) from e
        except SorobanRpcError as e:
            raise BuildError(f"Account lookup failed: {e}") from e

        if sequence is None:
            raise AccountNotFoundError(account_id)
        return sequence

    async def _simulate(self, rpc: LedgerBackend, envelope_xdr: str) -> Dict[str, Any]:
        try:
            simulation = await rpc.simulate_transaction(envelope_xdr)
        except SorobanRpcError as e:
            raise SimulationError(f"Simulation failed: {e}") from e

        error = simulation.get("error")
        if error:
            described = describe_contract_error(str(error))
            if described:
                raise SimulationError(f"Simulation failed: {described} ({error})")
            raise SimulationError(f"Simulation failed: {error}")
        return simulation

    async def build(
        self,
        request: InvocationRequest,
        fee_buffer_multiplier: float = DEFAULT_FEE_BUFFER_MULTIPLIER,
    ) -> BuiltEnvelope:
        """
        Build an assembled, unsigned envelope for a contract invocation.

        Args:
            request: The invocation to build
            fee_buffer_multiplier: Multiplier on the estimated resource fee (>= 1.0)

        Returns:
            BuiltEnvelope with fee_units > 0

        Raises:
            AccountNotFoundError: The source account is unknown
            SimulationError: The network rejected the simulation
            AssemblyUnavailableError: No assembly strategy is usable
            BuildError: Any other build failure
        """
        validate_multiplier(fee_buffer_multiplier)

        network = resolve_network_config(request.network, self.settings)
        rpc_url = request.rpc_endpoint or network.soroban_rpc_url
        passphrase = request.network_passphrase or network.network_passphrase
        rpc = self._rpc_factory(rpc_url)

        sequence = await self._fetch_sequence(rpc, request.source_account)

        try:
            provisional = compose_invocation(
                source_account=request.source_account,
                sequence=sequence,
                contract_id=request.contract_id,
                method=request.method,
                args=request.args,
                network_passphrase=passphrase,
                base_fee=self.settings.base_fee,
                timeout_seconds=request.timeout_seconds or self.settings.transaction_timeout_seconds,
            )
        except (TypeError, ValueError) as e:
            raise BuildError(f"Invalid invocation: {e}") from e

        provisional_xdr = provisional.to_xdr()
        simulation = await self._simulate(rpc, provisional_xdr)
        cost_estimate = await CostEstimator(rpc).estimate(provisional_xdr, simulation)

        try:
            prepared = assemble(provisional, simulation, self.assemblers)
        except ValueError as e:
            raise BuildError(f"Assembly failed: {e}") from e

        if cost_estimate is not None:
            buffer = fee_buffer(cost_estimate.fee_units, fee_buffer_multiplier)
            if buffer:
                prepared = add_fee(prepared, buffer)

        built = BuiltEnvelope(
            unsigned_envelope=prepared.to_xdr(),
            fee_units=envelope_fee(prepared),
            cost_estimate=cost_estimate,
            network=network.name,
            network_passphrase=passphrase,
            rpc_endpoint=rpc_url,
        )

        logger.info(
            f"Built {request.method} on {request.contract_id}: "
            f"fee={built.fee_units}, "
            f"estimate={cost_estimate.provenance.value if cost_estimate else 'none'}"
        )
        return built
