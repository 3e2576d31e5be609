"""
Horizon client for historical ledger lookups.

Horizon is the source of truth for whether a submitted transaction made it
into a ledger, independently of what sendTransaction said at broadcast time.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx


logger = logging.getLogger(__name__)


class HorizonError(Exception):
    """Error reaching Horizon."""
    pass


class HorizonClient:
    """Minimal async Horizon REST client."""

    def __init__(
        self,
        horizon_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.horizon_url = horizon_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_transaction(self, transaction_hash: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a transaction by hash.

        Returns:
            The Horizon transaction record, or None if Horizon has not seen it

        Raises:
            HorizonError: Horizon returned an error other than 404
        """
        client = await self._get_client()

        try:
            response = await client.get(f"{self.horizon_url}/transactions/{transaction_hash}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise HorizonError(f"Horizon lookup failed: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise HorizonError(f"Request failed: {str(e)}") from e


__all__ = ["HorizonClient", "HorizonError"]
