"""
Tests for fee buffers, cost estimation and network resolution.
"""

import pytest
from stellar_sdk import Network
from unittest.mock import AsyncMock

from payeasy.core.contracts.estimator import CostEstimator, estimate_from_simulation
from payeasy.core.contracts.fees import compute_fee_quote, fee_buffer, inclusion_fee_from_stats
from payeasy.core.contracts.models import CostEstimate, EstimateProvenance
from payeasy.core.contracts.network import normalize_network_name, resolve_network_config


# =============================================================================
# Fee buffer
# =============================================================================

@pytest.mark.parametrize(
    "resource_fee, multiplier, expected",
    [
        (1000, 1.2, 200),
        (5000, 1.1, 500),
        (1000, 1.0, 0),
        (1001, 1.2, 201),  # rounded up
        (0, 1.5, 0),
    ],
)
def test_fee_buffer(resource_fee, multiplier, expected):
    assert fee_buffer(resource_fee, multiplier) == expected


def test_fee_buffer_rejects_multiplier_below_one():
    with pytest.raises(ValueError):
        fee_buffer(1000, 0.8)


def test_inclusion_fee_prefers_soroban_mode():
    stats = {"sorobanInclusionFee": {"mode": "150"}, "inclusionFee": {"mode": "120"}}
    assert inclusion_fee_from_stats(stats, default=100) == 150


def test_inclusion_fee_falls_back():
    assert inclusion_fee_from_stats({"inclusionFee": {"mode": "120"}}, default=100) == 120
    assert inclusion_fee_from_stats({"sorobanInclusionFee": {"mode": "n/a"}}, default=100) == 100
    assert inclusion_fee_from_stats(None, default=100) == 100


def test_fee_quote_breakdown(built_envelope):
    quote = compute_fee_quote(built_envelope, inclusion_fee=150, multiplier=1.2)

    assert quote.to_dict() == {
        "baseFee": 150,
        "resourceFee": 1000,
        "buffer": 200,
        "totalFee": 1100,
        "network": "testnet",
    }


# =============================================================================
# Cost estimation
# =============================================================================

class TestCostEstimator:
    @pytest.mark.asyncio
    async def test_dedicated_estimate_wins(self):
        backend = AsyncMock()
        backend.estimate_resource_fee.return_value = 1500

        estimate = await CostEstimator(backend).estimate("AAAA", {"minResourceFee": "1000"})

        assert estimate == CostEstimate(fee_units=1500, provenance=EstimateProvenance.DEDICATED)

    @pytest.mark.asyncio
    async def test_simulation_fallback(self):
        backend = AsyncMock()
        backend.estimate_resource_fee.return_value = None

        estimate = await CostEstimator(backend).estimate("AAAA", {"minResourceFee": "1000"})

        assert estimate.fee_units == 1000
        assert estimate.provenance == EstimateProvenance.SIMULATION

    @pytest.mark.asyncio
    @pytest.mark.parametrize("simulation", [{}, {"minResourceFee": "0"}, {"minResourceFee": "lots"}])
    async def test_no_positive_estimate_is_none(self, simulation):
        backend = AsyncMock()
        backend.estimate_resource_fee.return_value = 0

        assert await CostEstimator(backend).estimate("AAAA", simulation) is None

    def test_undecodable_transaction_data_is_ignored(self):
        estimate = estimate_from_simulation({"minResourceFee": 42, "transactionData": "garbage"})

        assert estimate.fee_units == 42
        assert estimate.cpu_instructions is None

    def test_estimate_must_be_positive(self):
        with pytest.raises(ValueError):
            CostEstimate(fee_units=0, provenance=EstimateProvenance.SIMULATION)


# =============================================================================
# Network resolution
# =============================================================================

@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "testnet"),
        ("", "testnet"),
        ("TESTNET", "testnet"),
        ("futurenet", "futurenet"),
        ("public", "mainnet"),
        ("pubnet", "mainnet"),
        (" Mainnet ", "mainnet"),
        ("somewhere-else", "testnet"),
    ],
)
def test_normalize_network_name(value, expected):
    assert normalize_network_name(value) == expected


def test_network_defaults(make_settings):
    config = resolve_network_config("mainnet", make_settings())

    assert config.network_passphrase == Network.PUBLIC_NETWORK_PASSPHRASE
    assert config.horizon_url == "https://horizon.stellar.org"
    assert config.wallet_network == "PUBLIC"


def test_settings_network_is_used_when_not_requested(make_settings):
    config = resolve_network_config(None, make_settings(stellar_network="futurenet"))

    assert config.name == "futurenet"
    assert config.wallet_network == "FUTURENET"


def test_settings_overrides_win(make_settings):
    settings = make_settings(
        soroban_rpc_url="http://localhost:8000/soroban/rpc",
        horizon_url="http://localhost:8000",
        network_passphrase="Standalone Network ; February 2017",
    )

    config = resolve_network_config("testnet", settings)

    assert config.soroban_rpc_url == "http://localhost:8000/soroban/rpc"
    assert config.horizon_url == "http://localhost:8000"
    assert config.network_passphrase == "Standalone Network ; February 2017"
