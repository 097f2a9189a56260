"""Network module for connectivity tracking."""

from offline_sync.network.monitor import NetworkMonitor
from offline_sync.network.probe import ConnectivityProbe

__all__ = ["ConnectivityProbe", "NetworkMonitor"]
