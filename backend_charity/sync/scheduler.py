"""
Sync scheduler: keeps one view model in step with the ledger.

Responsibilities:
- Re-run a fetch coroutine on a fixed interval (or only on start and on
  explicit request when no interval is set).
- Skip-if-busy: a tick that fires while a fetch is in flight joins that
  fetch instead of starting a second one.
- After a local transaction, wait for the ledger to confirm the digest and
  then issue exactly one authoritative re-read.
- Keep the last good snapshot on failure, notify, and keep ticking.
- Tag each fetch with a monotonic sequence number; results older than the
  applied snapshot, or arriving after stop(), are discarded.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from backend_charity.core.exceptions import LedgerError
from backend_charity.logging import bind_resource, get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Callback = Callable[[Any], Awaitable[None]] | Callable[[Any], None]


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """One applied fetch result."""

    value: T
    sequence: int
    """Monotonic per scheduler; higher is newer."""
    fetched_at: float
    """Unix timestamp (seconds) when the fetch completed."""


async def invoke_callback(cb: Callback | None, arg: Any, *, resource: str) -> None:
    """Call a sync or async callback; log and contain its exceptions."""
    if cb is None:
        return
    try:
        result = cb(arg)
        if asyncio.iscoroutine(result):
            await result
    except Exception as e:
        logger.exception("sync_callback_failed", resource=resource, error=str(e))


class SyncScheduler(Generic[T]):
    """
    Polling loop for one resource.

    Owns its snapshot exclusively and replaces it wholesale, so readers never
    see a partially updated view and no locking is needed.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        interval_sec: float | None = None,
        confirm: Callable[[str], Awaitable[Any]] | None = None,
        on_update: Callback | None = None,
        on_error: Callback | None = None,
    ) -> None:
        """
        Args:
            name: Resource name used in logs (e.g. "auction:0xabc").
            fetch: Coroutine function producing a fresh view model.
            interval_sec: Seconds between ticks; None fetches on start and on
                explicit refresh only.
            confirm: Coroutine function waiting for a transaction digest
                (SuiLedgerReader.wait_for_transaction).
            on_update: Called with each applied Snapshot.
            on_error: Called with the exception of each failed fetch.
        """
        if interval_sec is not None and interval_sec <= 0:
            raise ValueError("interval_sec must be positive or None")
        self.name = name
        self.interval_sec = interval_sec
        self._log = bind_resource(name, __name__)
        self._fetch = fetch
        self._confirm = confirm
        self._on_update = on_update
        self._on_error = on_error

        self._seq = 0
        self._applied_seq = 0
        self._snapshot: Snapshot[T] | None = None
        self._last_error: Exception | None = None
        self._inflight: asyncio.Task | None = None
        self._loop_task: asyncio.Task | None = None
        self._wake = asyncio.Event()
        self._stopping = False
        self._closed = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        if self._inflight is not None and not self._inflight.done():
            return SyncState.FETCHING
        return SyncState.IDLE

    @property
    def snapshot(self) -> Snapshot[T] | None:
        """Last good snapshot; survives failed fetches."""
        return self._snapshot

    @property
    def last_error(self) -> Exception | None:
        """Error of the most recent fetch, cleared by the next success."""
        return self._last_error

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def tick(self) -> Snapshot[T] | None:
        """Scheduled fetch; joins the in-flight fetch when busy."""
        if self._closed:
            return None
        if self._inflight is not None and not self._inflight.done():
            self._log.debug("sync_tick_skipped_busy")
            return await self._join(self._inflight)
        return await self._start_fetch()

    async def refresh(self) -> Snapshot[T] | None:
        """
        Explicit refresh: wait out any in-flight fetch (it may predate the
        caller's write), then run a new one.
        """
        while self._inflight is not None and not self._inflight.done():
            await asyncio.wait([self._inflight])
        if self._closed:
            return None
        return await self._start_fetch()

    async def refresh_after_transaction(self, digest: str) -> Snapshot[T] | None:
        """Wait for digest to be confirmed, then issue one authoritative re-read."""
        await confirm_digest(self._confirm, digest, resource=self.name)
        return await self.refresh()

    async def _start_fetch(self) -> Snapshot[T] | None:
        self._seq += 1
        task = asyncio.ensure_future(self._fetch_once(self._seq))
        self._inflight = task
        return await self._join(task)

    async def _join(self, task: asyncio.Task) -> Snapshot[T] | None:
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._closed and task.cancelled():
                return None
            raise

    async def _fetch_once(self, seq: int) -> Snapshot[T] | None:
        started = time.monotonic()
        try:
            value = await self._fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._last_error = e
            self._log.warning(
                "sync_fetch_failed",
                sequence=seq,
                error=str(e),
                error_type=type(e).__name__,
            )
            await invoke_callback(self._on_error, e, resource=self.name)
            return self._snapshot

        if self._closed or seq <= self._applied_seq:
            self._log.debug(
                "sync_result_discarded",
                sequence=seq,
                applied_sequence=self._applied_seq,
                closed=self._closed,
            )
            return self._snapshot

        snap = Snapshot(value=value, sequence=seq, fetched_at=time.time())
        self._snapshot = snap
        self._applied_seq = seq
        self._last_error = None
        self._log.debug(
            "sync_snapshot_applied",
            sequence=seq,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        await invoke_callback(self._on_update, snap, resource=self.name)
        return snap

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the polling task on the running event loop. Idempotent."""
        if self._closed:
            raise RuntimeError(f"Scheduler {self.name} is stopped")
        if self._loop_task is not None:
            return
        self._loop_task = asyncio.get_running_loop().create_task(
            self._run_forever(), name=f"sync:{self.name}"
        )

    def set_interval(self, interval_sec: float | None) -> None:
        """Change the tick interval; the loop picks it up immediately."""
        if interval_sec is not None and interval_sec <= 0:
            raise ValueError("interval_sec must be positive or None")
        self.interval_sec = interval_sec
        self._wake.set()

    async def stop(self) -> None:
        """
        Stop polling. The in-flight fetch is abandoned and any result it
        still produces is discarded.

        Safe to call from an on_update/on_error callback: the calling task
        (the in-flight fetch) is neither cancelled nor awaited and finishes
        on its own once the callback returns.
        """
        if self._closed:
            return
        self._closed = True
        self._stopping = True
        self._wake.set()
        current = asyncio.current_task()
        tasks = [
            t
            for t in (self._loop_task, self._inflight)
            if t is not None and t is not current and not t.done()
        ]
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._log.info("sync_stopped", last_sequence=self._applied_seq)

    async def __aenter__(self) -> "SyncScheduler[T]":
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def _run_forever(self) -> None:
        self._log.info("sync_started", interval_sec=self.interval_sec)
        while not self._stopping:
            try:
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self._log.exception("sync_tick_error", error=str(e))
            if self._stopping:
                break
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.interval_sec)
            except asyncio.TimeoutError:
                pass
            except asyncio.CancelledError:
                break
            self._wake.clear()
        self._log.debug("sync_loop_exited")


async def confirm_digest(
    confirm: Callable[[str], Awaitable[Any]] | None,
    digest: str,
    *,
    resource: str,
) -> None:
    """
    Wait for a digest via confirm. A confirmation failure is logged and the
    caller re-reads anyway.
    """
    if confirm is None or not digest:
        return
    try:
        await confirm(digest)
    except LedgerError as e:
        logger.warning("sync_confirm_failed", resource=resource, digest=digest, error=str(e))
