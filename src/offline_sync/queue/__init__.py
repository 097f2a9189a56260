"""Queue module for pending write requests."""

from offline_sync.queue.fingerprint import decode_fingerprint, fingerprint
from offline_sync.queue.manager import DEFAULT_STORAGE_KEY, QueueManager, QueueSnapshot
from offline_sync.queue.models import HttpMethod, PendingRequest

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "HttpMethod",
    "PendingRequest",
    "QueueManager",
    "QueueSnapshot",
    "decode_fingerprint",
    "fingerprint",
]
