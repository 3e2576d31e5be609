"""
Resource cost estimation for contract invocations.

Two strategies run independently: the RPC node's dedicated estimation
method and the simulation result. A positive dedicated estimate wins.
Neither producing a positive fee is not an error; the envelope then carries
only the baseline fee.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from .envelope import decode_resource_usage, positive_int
from .models import CostEstimate, EstimateProvenance


logger = logging.getLogger(__name__)


class EstimationBackend(Protocol):
    async def estimate_resource_fee(self, envelope_xdr: str) -> Optional[int]:
        ...


def estimate_from_simulation(simulation: Dict[str, Any]) -> Optional[CostEstimate]:
    """Derive an estimate from a simulateTransaction result."""
    fee = positive_int(simulation.get("minResourceFee"))
    if fee is None:
        return None

    usage = decode_resource_usage(simulation.get("transactionData"))
    return CostEstimate(
        fee_units=fee,
        provenance=EstimateProvenance.SIMULATION,
        cpu_instructions=usage.get("cpu_instructions"),
        read_bytes=usage.get("read_bytes"),
        write_bytes=usage.get("write_bytes"),
    )


class CostEstimator:
    """Reconciles dedicated and simulation-based resource fee estimates."""

    def __init__(self, backend: EstimationBackend):
        self.backend = backend

    async def estimate_dedicated(self, envelope_xdr: str) -> Optional[CostEstimate]:
        fee = await self.backend.estimate_resource_fee(envelope_xdr)
        if not fee or fee <= 0:
            return None
        return CostEstimate(fee_units=fee, provenance=EstimateProvenance.DEDICATED)

    async def estimate(
        self,
        envelope_xdr: str,
        simulation: Dict[str, Any],
    ) -> Optional[CostEstimate]:
        """
        Estimate the minimum resource fee of a provisional envelope.

        Args:
            envelope_xdr: Unsigned provisional envelope (base64 XDR)
            simulation: simulateTransaction result for that envelope

        Returns:
            The preferred CostEstimate, or None when neither strategy yields a positive fee
        """
        from_simulation = estimate_from_simulation(simulation)
        dedicated = await self.estimate_dedicated(envelope_xdr)

        estimate = dedicated or from_simulation
        if estimate is None:
            logger.info("No resource fee estimate available, using baseline fee")
        return estimate
