"""Shared fixtures for offline-sync tests."""

import asyncio
from typing import Any

import pytest

from offline_sync.exceptions import PersistenceError, TransportError
from offline_sync.network import NetworkMonitor
from offline_sync.queue import QueueManager
from offline_sync.storage import MemoryStore
from offline_sync.sync import SendResult


class RecordingTransport:
    """Transport double that records calls and fails on chosen urls.

    Args:
        fail_urls: Urls answered with a failed SendResult
        raise_urls: Urls whose send raises TransportError
        hang_urls: Urls whose send never completes
    """

    def __init__(
        self,
        fail_urls: set[str] | None = None,
        raise_urls: set[str] | None = None,
        hang_urls: set[str] | None = None,
    ) -> None:
        self.fail_urls = fail_urls or set()
        self.raise_urls = raise_urls or set()
        self.hang_urls = hang_urls or set()
        self.calls: list[tuple[str, str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def send(self, method: str, url: str, payload: Any) -> SendResult:
        self.calls.append((method, url, payload))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so overlapping sends would be observable
            await asyncio.sleep(0)
            if url in self.hang_urls:
                await asyncio.Event().wait()
            if url in self.raise_urls:
                raise TransportError(f"connection reset for {url}")
            if url in self.fail_urls:
                return SendResult(success=False, status_code=500, error="Server error: 500")
            return SendResult(success=True, status_code=201)
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True

    @property
    def urls(self) -> list[str]:
        return [url for _, url, _ in self.calls]


class FailingStore(MemoryStore):
    """MemoryStore whose writes fail while ``failing`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = True
        self.save_attempts = 0

    def save(self, key: str, blob: str) -> None:
        self.save_attempts += 1
        if self.failing:
            raise PersistenceError("disk full")
        super().save(key, blob)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def offline_monitor() -> NetworkMonitor:
    return NetworkMonitor(initial=False)


@pytest.fixture
def online_monitor() -> NetworkMonitor:
    return NetworkMonitor(initial=True)


@pytest.fixture
def offline_queue(store: MemoryStore, offline_monitor: NetworkMonitor) -> QueueManager:
    queue = QueueManager(store, offline_monitor)
    queue.restore()
    return queue


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


def post(title: str) -> dict[str, Any]:
    """Payload in the shape the reference client sends."""
    return {"title": title, "body": title, "userId": 1}
