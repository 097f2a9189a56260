"""HTTP connectivity probe feeding the network monitor."""

import asyncio
import logging
from typing import Any

import httpx

from offline_sync import __version__
from offline_sync.network.monitor import NetworkMonitor

logger = logging.getLogger(__name__)


class ConnectivityProbe:
    """Periodically checks whether a server answers and reports it.

    Any HTTP response below 500 counts as online: the server is reachable
    even if it rejects a bare GET. Connection errors, timeouts and 5xx count
    as offline.

    Example:
        probe = ConnectivityProbe(monitor, "https://api.example.com/health")
        probe.start()
        ...
        await probe.stop()
    """

    def __init__(
        self,
        monitor: NetworkMonitor,
        url: str,
        interval: float = 5.0,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            monitor: Monitor receiving the connectivity results
            url: URL to GET on every check
            interval: Seconds between checks
            timeout: Timeout for a single check
            client: Optional preconfigured client (owned by the caller)
        """
        self.monitor = monitor
        self.url = url
        self.interval = interval
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": f"offline-sync/{__version__}"},
        )
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check(self) -> bool:
        """Probe once and report the result to the monitor.

        Returns:
            True if the server was reachable
        """
        try:
            response = await self._client.get(self.url)
            online = response.status_code < 500
        except httpx.HTTPError as e:
            logger.debug("Connectivity check failed: url=%s, error=%s", self.url, e)
            online = False

        self.monitor.set_online(online)
        return online

    async def _run(self) -> None:
        """Check on a fixed interval until cancelled."""
        while True:
            try:
                await self.check()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Connectivity probe error: %s", e)

            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start probing in the background on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Stop probing and release the HTTP client."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ConnectivityProbe":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()
