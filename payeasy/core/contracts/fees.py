"""
Fee buffer and fee quote calculation.

The resource fee buffer is a configurable multiplier (settings
``fee_buffer_multiplier``, default 1.0 = no buffer). A multiplier of 1.2 adds
20% of the estimated resource fee on top of the assembled envelope fee.
"""

import math
from decimal import Decimal
from typing import Any, Dict, Optional

from .models import BuiltEnvelope, FeeQuote


DEFAULT_FEE_BUFFER_MULTIPLIER = 1.0


def validate_multiplier(multiplier: float) -> Decimal:
    value = Decimal(str(multiplier))
    if value < 1:
        raise ValueError(f"fee buffer multiplier must be >= 1.0, got {multiplier}")
    return value


def fee_buffer(resource_fee: int, multiplier: float = DEFAULT_FEE_BUFFER_MULTIPLIER) -> int:
    """Extra stroops to add for a resource fee under the given multiplier (rounded up)."""
    value = validate_multiplier(multiplier)
    if resource_fee <= 0:
        return 0
    return math.ceil(Decimal(resource_fee) * (value - 1))


def inclusion_fee_from_stats(stats: Optional[Dict[str, Any]], default: int) -> int:
    """Read the modal inclusion fee out of a getFeeStats result."""
    for bucket in ("sorobanInclusionFee", "inclusionFee"):
        mode = ((stats or {}).get(bucket) or {}).get("mode")
        try:
            parsed = int(mode)
        except (TypeError, ValueError):
            continue
        if parsed > 0:
            return parsed
    return default


def compute_fee_quote(
    built: BuiltEnvelope,
    inclusion_fee: int,
    multiplier: float = DEFAULT_FEE_BUFFER_MULTIPLIER,
) -> FeeQuote:
    """
    Break a built envelope's fee down for display.

    total_fee is the fee actually carried by the envelope; the buffer is
    already included in it when the envelope was built with the same
    multiplier.
    """
    resource_fee = built.cost_estimate.fee_units if built.cost_estimate else 0
    return FeeQuote(
        base_fee=inclusion_fee,
        resource_fee=resource_fee,
        buffer=fee_buffer(resource_fee, multiplier),
        total_fee=built.fee_units,
        network=built.network,
    )
