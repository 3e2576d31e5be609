"""
Client for the contract transaction history API.

The history API owns the persisted record of every lifecycle transition:
    POST  /transactions              -> {"id": ...}
    PATCH /transactions              {"id": ..., <partial fields>}
    GET   /transactions/{id}/status  -> {"status", "tx_hash", "onchain_status", "ledger"?}
"""

from typing import Any, Dict, Optional

import httpx

from payeasy.config import settings


class HistoryStoreError(Exception):
    """Base exception for history API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class HistoryStoreAuthError(HistoryStoreError):
    """Authentication error when calling the history API."""
    pass


class HistoryStoreClient:
    """
    Async client for the transaction history API.

    Example usage:
        client = HistoryStoreClient(base_url="https://app.example.com/api")

        record_id = await client.create_transaction({
            "contract_id": "C...",
            "method": "deposit",
            "wallet_address": "G...",
            "network": "testnet",
            "status": "pending_signature",
        })
        await client.update_transaction(record_id, {"status": "signed"})
        status = await client.get_transaction_status(record_id)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.history_api_url
        self.token = token if token is not None else settings.history_api_token
        self.timeout = timeout
        self._transport = transport

        if not self.base_url:
            raise HistoryStoreError("HISTORY_API_URL is required")

        # Remove trailing slash if present
        self.base_url = self.base_url.rstrip("/")

        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> Dict[str, str]:
        """Get headers for history API requests."""
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        fallback_error: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        client = await self._get_client()

        try:
            response = await client.request(method, f"{self.base_url}{path}", json=json)
        except httpx.RequestError as e:
            raise HistoryStoreError(f"Request failed: {str(e)}") from e

        if response.status_code == 401:
            raise HistoryStoreAuthError("Unauthorized", status_code=401)

        if response.is_error:
            raise HistoryStoreError(
                _error_message(response) or fallback_error,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise HistoryStoreError(f"Invalid JSON from history API: {e}") from e

    # =========================================================================
    # Transaction history
    # =========================================================================

    async def create_transaction(self, payload: Dict[str, Any]) -> str:
        """
        Create a history record.

        Args:
            payload: Wire fields (contract_id, method, wallet_address, network, status, ...)

        Returns:
            The new record id
        """
        data = await self._request(
            "POST",
            "/transactions",
            "Failed to create transaction history entry.",
            json=payload,
        )
        if not isinstance(data, dict):
            raise HistoryStoreError("History API returned an unexpected create response")
        record_id = data.get("id")
        if not record_id:
            raise HistoryStoreError("History API did not return a record id")
        return str(record_id)

    async def update_transaction(self, record_id: str, updates: Dict[str, Any]) -> None:
        """Patch a history record in place."""
        await self._request(
            "PATCH",
            "/transactions",
            "Failed to update transaction history entry.",
            json={"id": record_id, **updates},
        )

    async def get_transaction_status(self, record_id: str) -> Dict[str, Any]:
        """Fetch the resolved status of a history record."""
        data = await self._request(
            "GET",
            f"/transactions/{record_id}/status",
            "Failed to fetch transaction status.",
        )
        if data is not None and not isinstance(data, dict):
            raise HistoryStoreError("History API returned an unexpected status response")
        return data or {}


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return None


# Singleton instance
_history_client: Optional[HistoryStoreClient] = None


def get_history_client() -> HistoryStoreClient:
    """Get the singleton history API client instance."""
    global _history_client
    if _history_client is None:
        _history_client = HistoryStoreClient(timeout=float(settings.request_timeout_seconds))
    return _history_client
