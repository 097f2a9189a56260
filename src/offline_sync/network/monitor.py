"""Online/offline state tracking."""

import threading
from typing import Callable

from offline_sync.events import Broadcaster
from offline_sync.logging import log_network_change, network_logger


class NetworkMonitor:
    """Tracks whether the network is reachable and announces transitions.

    Any connectivity source (the HTTP probe, an OS hook, a test) reports
    state through set_online(). Subscribers get the current value as soon as
    they subscribe and then one call per transition, synchronously, in
    subscription order. Reporting the current value again is not a
    transition.

    Example:
        monitor = NetworkMonitor(initial=False)
        monitor.subscribe(lambda online: print("online" if online else "offline"))
        monitor.set_online(True)
    """

    def __init__(self, initial: bool = True) -> None:
        """Initialize the monitor.

        Args:
            initial: Connectivity reported by the platform at construction
        """
        self._online = initial
        self._lock = threading.Lock()
        self._changes: Broadcaster[bool] = Broadcaster("network")
        self._log = network_logger()

    @property
    def is_online(self) -> bool:
        """Current connectivity."""
        return self._online

    def subscribe(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """Register for connectivity values.

        The callback is invoked immediately with the current value.

        Returns:
            Function that removes the subscription
        """
        unsubscribe = self._changes.subscribe(callback)
        try:
            callback(self._online)
        except Exception:
            self._log.exception("Network subscriber failed on initial value")
        return unsubscribe

    def set_online(self, online: bool) -> bool:
        """Report connectivity.

        Returns:
            True if this was a transition, False if the state was unchanged
        """
        with self._lock:
            if online == self._online:
                return False
            self._online = online

        log_network_change(self._log, online)
        self._changes.emit(online)
        return True
