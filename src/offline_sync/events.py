"""Synchronous multicast channel for engine events."""

import logging
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Broadcaster(Generic[T]):
    """Fan-out of values to registered callbacks.

    Callbacks run synchronously, in the order they subscribed. There is no
    replay buffer: a value emitted before a callback subscribes is never
    delivered to it. A failing callback is logged and does not prevent
    delivery to the others.

    Example:
        synced = Broadcaster[dict]("synced")
        unsubscribe = synced.subscribe(lambda payload: print(payload))
        synced.emit({"title": "x"})
        unsubscribe()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: list[Callable[[T], None]] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback.

        Returns:
            Function that removes the callback again
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass  # already removed

        return unsubscribe

    def emit(self, value: T) -> None:
        """Deliver a value to every current subscriber."""
        # Copy so callbacks may unsubscribe while being notified
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception:
                logger.exception("Subscriber failed: channel=%s", self.name)

    def clear(self) -> None:
        """Remove all subscribers."""
        self._callbacks.clear()
