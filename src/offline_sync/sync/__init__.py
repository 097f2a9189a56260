"""Sync module for replaying queued requests."""

from offline_sync.sync.engine import DrainResult, SyncEngine, SyncFailure, SyncState
from offline_sync.sync.transport import HttpxTransport, SendResult, Transport

__all__ = [
    "DrainResult",
    "HttpxTransport",
    "SendResult",
    "SyncEngine",
    "SyncFailure",
    "SyncState",
    "Transport",
]
