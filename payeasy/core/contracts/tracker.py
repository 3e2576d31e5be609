"""
Status tracking for submitted contract transactions.

Single checks query the history API's status endpoint; polling repeats the
check on a fixed interval until the on-chain status is terminal or the
deadline passes. A timed-out poll is not an error: the last observed status
is returned and the caller decides.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from payeasy.config import Settings, settings as default_settings
from payeasy.providers.horizon import HorizonClient, HorizonError

from .models import (
    LifecycleStatus,
    NetworkStatus,
    OnchainStatus,
    TrackedStatus,
)
from .network import resolve_network_config


logger = logging.getLogger(__name__)


class StatusBackend(Protocol):
    async def get_transaction_status(self, record_id: str) -> Dict[str, Any]:
        ...


def parse_lifecycle_status(value: Any) -> LifecycleStatus:
    """Unrecognized values fold back to pending_signature."""
    try:
        return LifecycleStatus(value)
    except ValueError:
        return LifecycleStatus.PENDING_SIGNATURE


def parse_onchain_status(value: Any) -> OnchainStatus:
    try:
        return OnchainStatus(value)
    except ValueError:
        return OnchainStatus.PENDING


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class StatusTracker:
    """
    Tracks a history record until its transaction reaches a terminal state.

    Usage:
        tracker = StatusTracker(get_history_client())
        status = await tracker.poll_until_terminal(history_id)
        if not status.is_terminal:
            ...  # timed out
    """

    def __init__(
        self,
        backend: StatusBackend,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backend = backend
        self.settings = settings or default_settings
        self._sleep = sleep
        self._clock = clock

    async def check(self, record_id: str) -> TrackedStatus:
        """Query the status endpoint once."""
        payload = await self.backend.get_transaction_status(record_id)
        return TrackedStatus(
            lifecycle_status=parse_lifecycle_status(payload.get("status")),
            onchain_status=parse_onchain_status(payload.get("onchain_status")),
            transaction_id=payload.get("tx_hash") or None,
            ledger_sequence=_optional_int(payload.get("ledger")),
        )

    async def _wait(self, interval: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleep for one interval. Returns True if cancel_event was set before or during it."""
        if cancel_event is None:
            await self._sleep(interval)
            return False
        if cancel_event.is_set():
            return True

        sleeper = asyncio.ensure_future(self._sleep(interval))
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, cancelled):
                if not task.done():
                    task.cancel()
        if sleeper.done() and not sleeper.cancelled():
            sleeper.result()
        return cancel_event.is_set()

    async def poll_until_terminal(
        self,
        record_id: str,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TrackedStatus:
        """
        Poll until the on-chain status leaves pending/not_submitted.

        Args:
            record_id: History record id
            interval_seconds: Delay between checks (default from settings, 4s)
            timeout_seconds: Deadline (default from settings, 120s)
            cancel_event: Optional event; once set, polling stops without
                waiting out the current interval

        Returns:
            The terminal status, or the last observed status on timeout/cancel
        """
        interval = interval_seconds if interval_seconds is not None else self.settings.status_poll_interval_seconds
        timeout = timeout_seconds if timeout_seconds is not None else self.settings.status_poll_timeout_seconds
        deadline = self._clock() + timeout

        status = await self.check(record_id)

        while not status.is_terminal and self._clock() < deadline:
            if await self._wait(interval, cancel_event):
                logger.info(f"Polling for {record_id} cancelled by caller")
                return status
            status = await self.check(record_id)

        if not status.is_terminal:
            logger.info(
                f"Polling for {record_id} timed out after {timeout}s "
                f"(onchain_status={status.onchain_status.value})"
            )
        return status


class NetworkStatusResolver:
    """Resolves on-chain truth for a transaction hash through Horizon."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_factory: Callable[[str], HorizonClient] = HorizonClient,
    ):
        self.settings = settings or default_settings
        self._client_factory = client_factory

    async def resolve(self, transaction_hash: str, network: Optional[str] = None) -> NetworkStatus:
        """
        Look a transaction up on the historical ledger.

        Not found or unreachable resolves to pending.
        """
        config = resolve_network_config(network, self.settings)
        client = self._client_factory(config.horizon_url)

        try:
            record = await client.get_transaction(transaction_hash)
        except HorizonError as e:
            logger.warning(f"Horizon lookup for {transaction_hash} failed: {e}")
            return NetworkStatus(status=LifecycleStatus.PENDING)
        finally:
            await client.close()

        if record is None:
            return NetworkStatus(status=LifecycleStatus.PENDING)

        return NetworkStatus(
            status=LifecycleStatus.SUCCESS if record.get("successful") else LifecycleStatus.FAILED,
            ledger_sequence=_optional_int(record.get("ledger")),
        )
