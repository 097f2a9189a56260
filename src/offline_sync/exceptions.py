"""Exceptions raised inside the offline sync engine.

None of these cross the QueueManager or SyncEngine public boundary; they are
caught there and turned into log events, boolean results or retained queue
entries.
"""


class OfflineSyncError(Exception):
    """Base class for offline sync errors."""


class RestoreError(OfflineSyncError):
    """Persisted queue data could not be parsed."""


class PersistenceError(OfflineSyncError):
    """The durable store failed to read or write the queue."""


class TransportError(OfflineSyncError):
    """A queued request could not be delivered."""
