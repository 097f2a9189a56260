"""Owner of the pending-request queue."""

import json
import threading
from typing import Any, Callable

from offline_sync.events import Broadcaster
from offline_sync.exceptions import PersistenceError, RestoreError
from offline_sync.logging import (
    log_duplicate_rejected,
    log_request_queued,
    log_restore_failed,
    queue_logger,
    short_fingerprint,
)
from offline_sync.network.monitor import NetworkMonitor
from offline_sync.queue.models import HttpMethod, PendingRequest
from offline_sync.storage.base import DurableStore

DEFAULT_STORAGE_KEY = "offline_request_queue"

QueueSnapshot = tuple[PendingRequest, ...]


class QueueManager:
    """Ordered, durable queue of write requests.

    The manager is the only owner of the queue. Enqueue appends, remove drops
    an entry by fingerprint, and every mutation rewrites the whole queue to
    the durable store before observers are notified. Mutations are serialized
    on a single lock.

    Duplicates are only rejected while offline: with the network up, an
    identical request is appended again and will be sent twice.

    If the store fails to write, the mutation is kept in memory and the
    write is retried on the next mutation or on flush().

    Example:
        queue = QueueManager(FileStore(data_dir), monitor)
        queue.restore()
        queue.enqueue("/posts", "POST", {"title": "x", "body": "x", "userId": 1})
    """

    def __init__(
        self,
        store: DurableStore,
        network: NetworkMonitor,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        """Initialize the queue manager.

        Args:
            store: Durable slot the queue is persisted to
            network: Monitor consulted for the offline dedup policy
            storage_key: Key of the slot holding the queue
        """
        self.store = store
        self.network = network
        self.storage_key = storage_key

        self._items: list[PendingRequest] = []
        self._lock = threading.RLock()
        self._dirty = False
        self._log = queue_logger()

        self._changes: Broadcaster[QueueSnapshot] = Broadcaster("queue")
        self._enqueued: Broadcaster[PendingRequest] = Broadcaster("enqueued")

    def __len__(self) -> int:
        return len(self._items)

    @property
    def dirty(self) -> bool:
        """True while a persistence write is outstanding."""
        return self._dirty

    def snapshot(self) -> QueueSnapshot:
        """Return the current queue in replay order."""
        with self._lock:
            return tuple(self._items)

    def subscribe(self, callback: Callable[[QueueSnapshot], None]) -> Callable[[], None]:
        """Register for queue snapshots.

        The callback receives the current snapshot immediately, then one
        snapshot after every mutation.

        Returns:
            Function that removes the subscription
        """
        unsubscribe = self._changes.subscribe(callback)
        try:
            callback(self.snapshot())
        except Exception:
            self._log.exception("Queue subscriber failed on initial snapshot")
        return unsubscribe

    def on_enqueued(self, callback: Callable[[PendingRequest], None]) -> Callable[[], None]:
        """Register a callback fired after every accepted enqueue."""
        return self._enqueued.subscribe(callback)

    def restore(self) -> int:
        """Load the queue from the durable store.

        Missing data yields an empty queue. Malformed data is logged and also
        yields an empty queue; it never raises.

        Returns:
            Number of restored entries
        """
        try:
            blob = self.store.load(self.storage_key)
            items = self._decode(blob) if blob else []
        except (RestoreError, PersistenceError, OSError) as e:
            log_restore_failed(self._log, self.storage_key, str(e))
            items = []

        with self._lock:
            self._items = items
            self._dirty = False
            snapshot = tuple(self._items)

        if items:
            self._log.info("Queue restored from storage: entries=%d", len(items))
        self._changes.emit(snapshot)
        return len(items)

    def enqueue(self, url: str, method: "str | HttpMethod", payload: Any) -> bool:
        """Append a request to the queue.

        Args:
            url: Target endpoint
            method: POST or PUT
            payload: JSON-serializable request body

        Returns:
            True if accepted, False if rejected as an offline duplicate

        Raises:
            ValueError: If the method is unsupported
            TypeError: If the payload is not JSON-serializable
        """
        request = PendingRequest.create(url, method, payload)

        with self._lock:
            if not self.network.is_online and any(
                item.fingerprint == request.fingerprint for item in self._items
            ):
                log_duplicate_rejected(
                    self._log, request.url, request.method.value, request.fingerprint
                )
                return False

            self._items.append(request)
            self._persist()
            snapshot = tuple(self._items)

        log_request_queued(
            self._log,
            request.url,
            request.method.value,
            request.fingerprint,
            len(snapshot),
        )
        self._changes.emit(snapshot)
        self._enqueued.emit(request)
        return True

    def remove(self, fingerprint: str) -> PendingRequest | None:
        """Drop the first entry with the given fingerprint.

        Returns:
            The removed entry, or None if no entry matched
        """
        with self._lock:
            for index, item in enumerate(self._items):
                if item.fingerprint == fingerprint:
                    removed = self._items.pop(index)
                    break
            else:
                return None

            self._persist()
            snapshot = tuple(self._items)

        self._log.debug(
            "Request removed: fingerprint=%s, remaining=%d",
            short_fingerprint(fingerprint),
            len(snapshot),
        )
        self._changes.emit(snapshot)
        return removed

    def flush(self) -> bool:
        """Write the queue to the store if a previous write failed.

        Returns:
            True if the store holds the current queue afterwards
        """
        with self._lock:
            if self._dirty:
                self._persist()
            return not self._dirty

    def _persist(self) -> None:
        """Write the full queue; caller must hold the lock."""
        blob = json.dumps([item.to_dict() for item in self._items], ensure_ascii=False)
        try:
            self.store.save(self.storage_key, blob)
        except (PersistenceError, OSError) as e:
            self._dirty = True
            self._log.error(
                "Failed to persist queue",
                extra={
                    "event": "persist_failed",
                    "key": self.storage_key,
                    "error": str(e),
                    "queue_size": len(self._items),
                },
            )
        else:
            self._dirty = False

    @staticmethod
    def _decode(blob: str) -> list[PendingRequest]:
        """Parse a persisted queue.

        Raises:
            RestoreError: If the blob is not a list of valid entries
        """
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            raise RestoreError(f"Invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise RestoreError(f"Queue must be a list, got {type(data).__name__}")

        return [PendingRequest.from_dict(entry) for entry in data]
