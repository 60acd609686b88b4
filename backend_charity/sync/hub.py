"""
Sync hub: one shared poller per resource, reference-counted subscribers.

Several consumers (API routes, the watch CLI, the submitter) asking for the
same resource share a single SyncScheduler instead of fetching the same data
in parallel. The first subscription starts the poller, the last cancel()
stops it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable

from backend_charity.logging import get_logger
from backend_charity.sync.scheduler import (
    Callback,
    Snapshot,
    SyncScheduler,
    confirm_digest,
    invoke_callback,
)

logger = get_logger(__name__)


class Subscription:
    """Handle returned by SyncHub.subscribe(); cancel() releases it."""

    def __init__(
        self,
        hub: "SyncHub",
        key: str,
        on_update: Callback | None,
        on_error: Callback | None,
    ) -> None:
        self.key = key
        self._hub = hub
        self._on_update = on_update
        self._on_error = on_error
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def snapshot(self) -> Snapshot | None:
        if not self._active:
            return None
        return self._hub.snapshot(self.key)

    async def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        await self._hub._release(self)


@dataclass
class _Entry:
    scheduler: SyncScheduler
    subscriptions: list[Subscription] = field(default_factory=list)
    requested_intervals: list[float | None] = field(default_factory=list)


def _min_interval(intervals: Iterable[float | None]) -> float | None:
    values = [i for i in intervals if i is not None]
    return min(values) if values else None


class SyncHub:
    """
    Registry of running pollers keyed by resource key ("auctions:live",
    "auction:0x...", "profile:0x...").
    """

    def __init__(self, *, confirm: Callable[[str], Awaitable[Any]] | None = None) -> None:
        """
        Args:
            confirm: Waits for a transaction digest before post-transaction
                refreshes (SuiLedgerReader.wait_for_transaction).
        """
        self._confirm = confirm
        self._entries: dict[str, _Entry] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def keys(self) -> list[str]:
        return list(self._entries)

    def subscriber_count(self, key: str) -> int:
        entry = self._entries.get(key)
        return len(entry.subscriptions) if entry else 0

    def scheduler(self, key: str) -> SyncScheduler | None:
        entry = self._entries.get(key)
        return entry.scheduler if entry else None

    def snapshot(self, key: str) -> Snapshot | None:
        entry = self._entries.get(key)
        return entry.scheduler.snapshot if entry else None

    async def subscribe(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        *,
        interval_sec: float | None = None,
        on_update: Callback | None = None,
        on_error: Callback | None = None,
    ) -> Subscription:
        """
        Subscribe to a resource, starting its poller if this is the first
        subscriber. A later subscriber's fetch is ignored (the running
        poller already owns one); it receives the current snapshot, if any,
        right away.
        """
        sub = Subscription(self, key, on_update, on_error)
        entry = self._entries.get(key)
        if entry is None:
            scheduler = SyncScheduler(
                key,
                fetch,
                interval_sec=interval_sec,
                confirm=self._confirm,
                on_update=lambda snap: self._fan_out(key, snap),
                on_error=lambda err: self._fan_out_error(key, err),
            )
            entry = _Entry(scheduler=scheduler)
            self._entries[key] = entry
            entry.subscriptions.append(sub)
            entry.requested_intervals.append(interval_sec)
            scheduler.start()
        else:
            entry.subscriptions.append(sub)
            entry.requested_intervals.append(interval_sec)
            wanted = _min_interval(entry.requested_intervals)
            if wanted != entry.scheduler.interval_sec:
                entry.scheduler.set_interval(wanted)
            current = entry.scheduler.snapshot
            if current is not None:
                await invoke_callback(on_update, current, resource=key)

        logger.debug(
            "sync_hub_subscribed",
            resource=key,
            subscribers=len(entry.subscriptions),
            interval_sec=entry.scheduler.interval_sec,
        )
        return sub

    async def _release(self, sub: Subscription) -> None:
        entry = self._entries.get(sub.key)
        if entry is None or sub not in entry.subscriptions:
            return
        idx = entry.subscriptions.index(sub)
        entry.subscriptions.pop(idx)
        entry.requested_intervals.pop(idx)
        if entry.subscriptions:
            wanted = _min_interval(entry.requested_intervals)
            if wanted != entry.scheduler.interval_sec:
                entry.scheduler.set_interval(wanted)
            logger.debug("sync_hub_unsubscribed", resource=sub.key, subscribers=len(entry.subscriptions))
            return
        del self._entries[sub.key]
        logger.debug("sync_hub_released", resource=sub.key)
        await entry.scheduler.stop()

    async def _fan_out(self, key: str, snap: Snapshot) -> None:
        entry = self._entries.get(key)
        if entry is None:
            return
        for sub in list(entry.subscriptions):
            if sub.active:
                await invoke_callback(sub._on_update, snap, resource=key)

    async def _fan_out_error(self, key: str, err: Exception) -> None:
        entry = self._entries.get(key)
        if entry is None:
            return
        for sub in list(entry.subscriptions):
            if sub.active:
                await invoke_callback(sub._on_error, err, resource=key)

    async def refresh(self, key: str) -> Snapshot | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return await entry.scheduler.refresh()

    async def refresh_after_transaction(self, keys: Iterable[str], digest: str) -> dict[str, Snapshot | None]:
        """
        Wait once for digest, then re-read every affected resource that has a
        running poller. Keys nobody subscribes to are skipped.
        """
        running = [k for k in dict.fromkeys(keys) if k in self._entries]
        if not running:
            return {}
        await confirm_digest(self._confirm, digest, resource=",".join(running))
        # a subscriber may have cancelled while we waited for confirmation
        targets = [(k, self._entries[k].scheduler) for k in running if k in self._entries]
        results = await asyncio.gather(*(s.refresh() for _, s in targets))
        logger.info("sync_hub_refreshed_after_tx", digest=digest, resources=[k for k, _ in targets])
        return {k: snap for (k, _), snap in zip(targets, results)}

    async def aclose(self) -> None:
        """Stop every poller; outstanding subscriptions become inactive."""
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            for sub in entry.subscriptions:
                sub._active = False
            await entry.scheduler.stop()
