"""Sequential replay of the request queue."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from offline_sync.events import Broadcaster
from offline_sync.logging import (
    log_state_change,
    log_sync_failed,
    log_sync_success,
    sync_logger,
)
from offline_sync.network.monitor import NetworkMonitor
from offline_sync.queue.manager import QueueManager
from offline_sync.queue.models import PendingRequest
from offline_sync.sync.transport import Transport

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """State of the sync engine."""

    IDLE = "idle"
    SYNCING = "syncing"


@dataclass
class SyncFailure:
    """A queued request that could not be delivered."""

    request: PendingRequest
    error: str


@dataclass
class DrainResult:
    """Summary of one drain pass."""

    attempted: int = 0
    synced: int = 0
    failure: SyncFailure | None = None
    skipped: bool = False  # drain was a no-op (busy or empty queue)

    @property
    def completed(self) -> bool:
        """True if every entry taken at drain start was delivered."""
        return not self.skipped and self.failure is None


class SyncEngine:
    """Drains the queue against the transport, one request at a time.

    A drain takes a snapshot of the queue and sends the entries strictly in
    order; the next request starts only after the previous one finished.
    A delivered entry is removed from the queue (which persists) and its
    payload is emitted to on_synced subscribers. The first failure stops the
    drain: that entry and everything after it stay queued until the next
    reconnect or enqueue triggers another drain. There is no retry or
    backoff here.

    Only one drain runs at a time; drain() while syncing does nothing.

    Example:
        engine = SyncEngine(queue, HttpxTransport(base_url), monitor)
        engine.on_synced(lambda payload: print("synced", payload))
        engine.attach()
    """

    def __init__(
        self,
        queue: QueueManager,
        transport: Transport,
        network: NetworkMonitor,
        request_timeout: float | None = 30.0,
    ) -> None:
        """Initialize the sync engine.

        Args:
            queue: Queue to drain
            transport: Transport delivering each request
            network: Monitor whose ONLINE transitions trigger drains
            request_timeout: Seconds before a single send counts as failed,
                or None to wait indefinitely
        """
        self.queue = queue
        self.transport = transport
        self.network = network
        self.request_timeout = request_timeout

        self._state = SyncState.IDLE
        self._task: asyncio.Task | None = None
        self._subscriptions: list[Callable[[], None]] = []
        self._log = sync_logger()

        self._synced: Broadcaster[Any] = Broadcaster("synced")
        self._failures: Broadcaster[SyncFailure] = Broadcaster("failures")
        self._completed: Broadcaster[DrainResult] = Broadcaster("completed")
        self._state_changes: Broadcaster[SyncState] = Broadcaster("sync_state")

    @property
    def state(self) -> SyncState:
        """Get current engine state."""
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state is SyncState.SYNCING

    def on_synced(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register for payloads of successfully synced requests.

        Args:
            callback: Function called with the payload of each synced request
        """
        return self._synced.subscribe(callback)

    def on_failure(self, callback: Callable[[SyncFailure], None]) -> Callable[[], None]:
        """Register for the failure that aborted a drain."""
        return self._failures.subscribe(callback)

    def on_complete(self, callback: Callable[[DrainResult], None]) -> Callable[[], None]:
        """Register for drains that delivered every entry."""
        return self._completed.subscribe(callback)

    def on_state_change(self, callback: Callable[[SyncState], None]) -> Callable[[], None]:
        """Register for IDLE/SYNCING transitions."""
        return self._state_changes.subscribe(callback)

    def _set_state(self, new_state: SyncState, trigger: str | None = None) -> None:
        """Set state and notify callbacks."""
        if self._state != new_state:
            old_state = self._state
            self._state = new_state
            log_state_change(self._log, old_state.value, new_state.value, trigger)
            self._state_changes.emit(new_state)

    def attach(self) -> None:
        """Drain on every ONLINE value and on enqueues while online.

        The network monitor delivers its current value on subscription, so
        attaching while already online schedules a drain right away.
        """
        if self._subscriptions:
            return
        self._subscriptions = [
            self.queue.on_enqueued(self._handle_enqueued),
            self.network.subscribe(self._handle_network),
        ]

    def detach(self) -> None:
        """Stop reacting to network and queue events."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = []

    def _handle_network(self, online: bool) -> None:
        if online:
            self._log.info("Back online, syncing...")
            self.schedule_drain(trigger="reconnect")

    def _handle_enqueued(self, request: PendingRequest) -> None:
        if self.network.is_online:
            self.schedule_drain(trigger="enqueue")

    def schedule_drain(self, trigger: str = "manual") -> asyncio.Task | None:
        """Start drain() as a task on the running event loop.

        Returns:
            The drain task, the already running one, or None if no event
            loop is running in this thread
        """
        if self._task is not None and not self._task.done():
            self._log.debug("Drain already scheduled: trigger=%s", trigger)
            return self._task

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._log.debug("No running event loop, drain deferred: trigger=%s", trigger)
            return None

        self._task = loop.create_task(self.drain(trigger=trigger))
        return self._task

    async def join(self) -> DrainResult | None:
        """Wait for the scheduled drain, if any, and return its result."""
        task = self._task
        if task is None:
            return None
        return await task

    async def cancel(self) -> None:
        """Cancel the scheduled drain.

        The request in flight stays queued; requests already delivered stay
        removed. The engine returns to IDLE.
        """
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._log.info("Drain cancelled: remaining=%d", len(self.queue))

    async def drain(self, trigger: str = "manual") -> DrainResult:
        """Send every queued request in order until one fails.

        Args:
            trigger: What started the drain (for logging)

        Returns:
            DrainResult summarizing the pass
        """
        if self._state is SyncState.SYNCING:
            self._log.debug("Drain ignored, already syncing: trigger=%s", trigger)
            return DrainResult(skipped=True)

        pending = self.queue.snapshot()
        if not pending:
            return DrainResult(skipped=True)

        self._set_state(SyncState.SYNCING, trigger)
        result = DrainResult()
        try:
            for request in pending:
                result.attempted += 1
                failure = await self._send(request)
                if failure is not None:
                    result.failure = failure
                    break

                self.queue.remove(request.fingerprint)
                result.synced += 1
                self._synced.emit(request.payload)
        finally:
            self._set_state(SyncState.IDLE)

        if result.failure is not None:
            log_sync_failed(
                self._log,
                result.failure.request.url,
                result.failure.request.method.value,
                result.failure.request.fingerprint,
                result.failure.error,
                len(self.queue),
            )
            self._failures.emit(result.failure)
        else:
            self._log.info("All requests synced: synced=%d", result.synced)
            self._completed.emit(result)
        return result

    async def _send(self, request: PendingRequest) -> SyncFailure | None:
        """Deliver one request; return a SyncFailure instead of raising."""
        try:
            result = await asyncio.wait_for(
                self.transport.send(request.method.value, request.url, request.payload),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError:
            return SyncFailure(request, f"Timeout after {self.request_timeout}s")
        except Exception as e:
            logger.debug("Transport raised", exc_info=True)
            return SyncFailure(request, str(e) or type(e).__name__)

        if not result.success:
            return SyncFailure(request, result.error or "Unknown error")

        log_sync_success(
            self._log,
            request.url,
            request.method.value,
            request.fingerprint,
            result.status_code,
        )
        return None
