"""
Soroban RPC client.

JSON-RPC access to a Soroban RPC node: account sequence lookup,
transaction simulation, resource estimation and broadcast.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from stellar_sdk import Keypair
from stellar_sdk import xdr as stellar_xdr


logger = logging.getLogger(__name__)


@dataclass
class SorobanRpcConfig:
    """Configuration for a Soroban RPC connection."""
    rpc_url: str
    timeout_s: float = 30.0
    max_retries: int = 3


class SorobanRpcError(Exception):
    """Error returned by (or while reaching) the Soroban RPC node."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class SorobanRpcClient:
    """
    Async client for a Soroban RPC node.

    Read calls are retried on transport errors. sendTransaction is never
    retried: a blind re-broadcast risks double submission.

    Usage:
        rpc = SorobanRpcClient(SorobanRpcConfig(rpc_url="https://soroban-testnet.stellar.org"))
        sequence = await rpc.get_account("G...")
        simulation = await rpc.simulate_transaction(envelope_xdr)
    """

    def __init__(
        self,
        config: SorobanRpcConfig,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = config
        self._client = client

    @property
    def rpc_url(self) -> str:
        return self._config.rpc_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_s)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _rpc_call(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> Any:
        """Make a JSON-RPC call and return its ``result`` member."""
        client = await self._get_client()
        attempts = retries or self._config.max_retries

        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": f"payeasy-{method}",
            "method": method,
        }
        if params is not None:
            payload["params"] = params

        for attempt in range(attempts):
            try:
                response = await client.post(
                    self._config.rpc_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                data = response.json()

                if data.get("error"):
                    error = data["error"]
                    if isinstance(error, dict):
                        raise SorobanRpcError(
                            f"RPC error: {error.get('message', error)}",
                            code=error.get("code"),
                        )
                    raise SorobanRpcError(f"RPC error: {error}")

                return data.get("result")

            except httpx.HTTPStatusError as e:
                if attempt == attempts - 1:
                    raise SorobanRpcError(f"HTTP error: {e.response.status_code}") from e
                await asyncio.sleep(0.5 * (attempt + 1))
            except httpx.RequestError as e:
                if attempt == attempts - 1:
                    raise SorobanRpcError(f"Request failed: {e}") from e
                await asyncio.sleep(0.5 * (attempt + 1))

        raise SorobanRpcError("Max retries exceeded")

    async def get_account(self, public_key: str) -> Optional[int]:
        """
        Get the current sequence number of an account.

        Args:
            public_key: Account strkey (G...)

        Returns:
            Sequence number, or None when the ledger has no such account

        Raises:
            ValueError: public_key is not a valid account strkey
        """
        account_id = Keypair.from_public_key(public_key).xdr_account_id()
        key = stellar_xdr.LedgerKey(
            stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(account_id=account_id),
        )

        result = await self._rpc_call("getLedgerEntries", {"keys": [key.to_xdr()]})
        entries = (result or {}).get("entries") or []
        if not entries:
            return None

        data = stellar_xdr.LedgerEntryData.from_xdr(entries[0]["xdr"])
        return data.account.seq_num.sequence_number.int64

    async def simulate_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        """Simulate an unsigned envelope. Returns the raw simulation result."""
        result = await self._rpc_call("simulateTransaction", {"transaction": envelope_xdr})
        return result or {}

    async def estimate_resource_fee(self, envelope_xdr: str) -> Optional[int]:
        """
        Ask the node's dedicated estimation method for a resource fee.

        Not every node implements it. Any failure yields None.
        """
        try:
            result = await self._rpc_call(
                "soroban_estimateGas",
                {"transaction": envelope_xdr},
                retries=1,
            )
        except (SorobanRpcError, ValueError) as e:
            logger.debug(f"Dedicated fee estimation unavailable: {e}")
            return None

        try:
            estimate = int((result or {}).get("minResourceFee") or 0)
        except (TypeError, ValueError):
            return None
        return estimate if estimate > 0 else None

    async def send_transaction(self, signed_xdr: str) -> Dict[str, Any]:
        """Broadcast a signed envelope exactly once."""
        result = await self._rpc_call("sendTransaction", {"transaction": signed_xdr}, retries=1)
        return result or {}

    async def get_fee_stats(self) -> Dict[str, Any]:
        result = await self._rpc_call("getFeeStats")
        return result or {}


_clients: Dict[str, SorobanRpcClient] = {}


def get_soroban_client(rpc_url: str) -> SorobanRpcClient:
    """Get a shared client per RPC endpoint."""
    client = _clients.get(rpc_url)
    if client is None:
        from ..config import settings

        client = SorobanRpcClient(
            SorobanRpcConfig(rpc_url=rpc_url, timeout_s=float(settings.request_timeout_seconds))
        )
        _clients[rpc_url] = client
    return client


__all__ = [
    "SorobanRpcClient",
    "SorobanRpcConfig",
    "SorobanRpcError",
    "get_soroban_client",
]
