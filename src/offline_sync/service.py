"""Service facade wiring queue, network monitor and sync engine together."""

import logging
from typing import Any, Callable

from offline_sync.config import Settings
from offline_sync.network import ConnectivityProbe, NetworkMonitor
from offline_sync.queue import DEFAULT_STORAGE_KEY, HttpMethod, QueueManager, QueueSnapshot
from offline_sync.storage import DurableStore, create_store
from offline_sync.sync import DrainResult, HttpxTransport, SyncEngine, SyncFailure, SyncState
from offline_sync.sync.transport import Transport

logger = logging.getLogger(__name__)


class OfflineSyncService:
    """High-level entry point for queueing and replaying write requests.

    Owns a QueueManager and a SyncEngine built around injected
    collaborators. queue_request() is the only way for callers to add work;
    everything else is observed through the subscribe_* methods, which all
    deliver synchronously and without replay of past events (the state
    streams deliver their current value on subscription).

    Example:
        service = OfflineSyncService(store, transport, NetworkMonitor())
        await service.start()
        service.queue_request("/posts", "POST", {"title": "x", "body": "x", "userId": 1})
        ...
        await service.stop()
    """

    def __init__(
        self,
        store: DurableStore,
        transport: Transport,
        network: NetworkMonitor,
        probe: ConnectivityProbe | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        request_timeout: float | None = 30.0,
    ) -> None:
        """Initialize the service.

        Args:
            store: Durable slot for the queue
            transport: Transport used to replay requests
            network: Connectivity state shared with the probe
            probe: Optional probe started/stopped with the service
            storage_key: Key of the durable slot
            request_timeout: Per-request timeout applied by the engine
        """
        self.store = store
        self.transport = transport
        self.network = network
        self.probe = probe

        self.queue = QueueManager(store, network, storage_key=storage_key)
        self.engine = SyncEngine(
            self.queue,
            transport,
            network,
            request_timeout=request_timeout,
        )
        self._started = False
        self._stopped = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        initial_online: bool = False,
        with_probe: bool = True,
    ) -> "OfflineSyncService":
        """Build the default stack from configuration.

        Args:
            settings: Settings instance
            initial_online: Connectivity assumed until the first probe
            with_probe: Whether start() launches the periodic probe
        """
        network = NetworkMonitor(initial=initial_online)
        probe = None
        if with_probe:
            probe = ConnectivityProbe(
                network,
                settings.probe_url,
                interval=settings.probe_interval,
            )
        return cls(
            store=create_store(settings),
            transport=HttpxTransport(
                base_url=settings.base_url,
                timeout=settings.request_timeout,
            ),
            network=network,
            probe=probe,
            storage_key=settings.storage_key,
            request_timeout=settings.request_timeout,
        )

    # --- Lifecycle ---

    async def start(self) -> None:
        """Restore the queue and start reacting to connectivity.

        If the network is already online a drain is scheduled right away.

        Raises:
            RuntimeError: If the service was already stopped
        """
        if self._stopped:
            raise RuntimeError("OfflineSyncService cannot be restarted after stop()")
        if self._started:
            return
        self._started = True

        self.queue.restore()
        self.engine.attach()
        if self.probe is not None:
            self.probe.start()

        logger.info(
            "Offline sync started: queued=%d, online=%s",
            len(self.queue),
            self.network.is_online,
        )

    async def stop(self) -> None:
        """Stop syncing, write out the queue and release resources.

        A drain in flight is cancelled; the queue stays consistent. A write
        left outstanding by an earlier store failure is retried before the
        store is closed.
        """
        if not self._started:
            return
        self._started = False
        self._stopped = True

        self.engine.detach()
        await self.engine.cancel()
        if self.probe is not None:
            await self.probe.stop()

        if not self.queue.flush():
            logger.error(
                "Queue not persisted on stop: queued=%d",
                len(self.queue),
                extra={"event": "flush_failed"},
            )

        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()
        store_close = getattr(self.store, "close", None)
        if store_close is not None:
            store_close()

        logger.info("Offline sync stopped: queued=%d", len(self.queue))

    async def __aenter__(self) -> "OfflineSyncService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # --- Commands ---

    def queue_request(self, url: str, method: "str | HttpMethod", payload: Any) -> bool:
        """Queue a write request for delivery.

        Args:
            url: Target endpoint
            method: POST or PUT
            payload: JSON-serializable request body

        Returns:
            True if accepted, False if rejected as a duplicate while offline
        """
        return self.queue.enqueue(url, method, payload)

    async def sync(self) -> DrainResult:
        """Drain the queue now, regardless of the connectivity flag."""
        return await self.engine.drain(trigger="manual")

    # --- Observables ---

    @property
    def is_online(self) -> bool:
        return self.network.is_online

    @property
    def is_syncing(self) -> bool:
        return self.engine.is_syncing

    def snapshot(self) -> QueueSnapshot:
        """Current queue in replay order."""
        return self.queue.snapshot()

    def subscribe_online(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """Current connectivity, then every transition."""
        return self.network.subscribe(callback)

    def subscribe_queue(self, callback: Callable[[QueueSnapshot], None]) -> Callable[[], None]:
        """Current queue snapshot, then one per mutation."""
        return self.queue.subscribe(callback)

    def subscribe_syncing(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """Current syncing flag, then every IDLE/SYNCING transition."""

        def forward(state: SyncState) -> None:
            callback(state is SyncState.SYNCING)

        unsubscribe = self.engine.on_state_change(forward)
        try:
            callback(self.engine.is_syncing)
        except Exception:
            logger.exception("Syncing subscriber failed on initial value")
        return unsubscribe

    def subscribe_synced(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Payloads of requests delivered from now on."""
        return self.engine.on_synced(callback)

    def subscribe_failures(self, callback: Callable[[SyncFailure], None]) -> Callable[[], None]:
        """Failures that aborted a drain."""
        return self.engine.on_failure(callback)
