"""
Stellar network resolution.

Maps a loose network name to passphrase, Horizon and Soroban RPC endpoints.
Explicit settings overrides win over the per-network defaults.
"""

from typing import Dict, Optional

from stellar_sdk import Network

from payeasy.config import Settings, settings as default_settings

from .models import NetworkConfig


TESTNET = "testnet"
FUTURENET = "futurenet"
MAINNET = "mainnet"

_DEFAULTS: Dict[str, Dict[str, str]] = {
    TESTNET: {
        "network_passphrase": Network.TESTNET_NETWORK_PASSPHRASE,
        "horizon_url": "https://horizon-testnet.stellar.org",
        "soroban_rpc_url": "https://soroban-testnet.stellar.org",
        "wallet_network": "TESTNET",
    },
    FUTURENET: {
        "network_passphrase": "Test SDF Future Network ; October 2022",
        "horizon_url": "https://horizon-futurenet.stellar.org",
        "soroban_rpc_url": "https://rpc-futurenet.stellar.org",
        "wallet_network": "FUTURENET",
    },
    MAINNET: {
        "network_passphrase": Network.PUBLIC_NETWORK_PASSPHRASE,
        "horizon_url": "https://horizon.stellar.org",
        "soroban_rpc_url": "https://mainnet.sorobanrpc.com",
        "wallet_network": "PUBLIC",
    },
}


def normalize_network_name(value: Optional[str]) -> str:
    normalized = (value or "").strip().lower()
    if normalized in ("mainnet", "public", "pubnet"):
        return MAINNET
    if normalized == FUTURENET:
        return FUTURENET
    return TESTNET


def resolve_network_config(
    requested: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> NetworkConfig:
    """
    Resolve endpoints for a network.

    Resolution order for the name: explicit argument, then
    settings.stellar_network, then testnet.
    """
    cfg = settings or default_settings
    name = normalize_network_name(requested or cfg.stellar_network)
    defaults = _DEFAULTS[name]

    return NetworkConfig(
        name=name,
        network_passphrase=cfg.network_passphrase or defaults["network_passphrase"],
        horizon_url=cfg.horizon_url or defaults["horizon_url"],
        soroban_rpc_url=cfg.soroban_rpc_url or defaults["soroban_rpc_url"],
        wallet_network=defaults["wallet_network"],
    )
