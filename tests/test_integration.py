"""Integration tests verifying the service end to end.

Tests that the components work together correctly:
- Requests queued offline are replayed in order on reconnect
- A failed replay keeps the remaining requests for the next reconnect
- The queue survives a restart of the service
- The default stack built from settings replays over HTTP
"""

import json

import httpx
import pytest
from conftest import RecordingTransport, post

from offline_sync.config import Settings
from offline_sync.exceptions import PersistenceError
from offline_sync.network import NetworkMonitor
from offline_sync.queue import DEFAULT_STORAGE_KEY
from offline_sync.service import OfflineSyncService
from offline_sync.storage import FileStore, MemoryStore, SQLiteStore
from offline_sync.sync import HttpxTransport


class FlakySQLiteStore(SQLiteStore):
    """SQLiteStore whose writes fail while ``failing`` is set."""

    def __init__(self, db_path) -> None:
        super().__init__(db_path)
        self.failing = True

    def save(self, key: str, blob: str) -> None:
        if self.failing:
            raise PersistenceError("database is locked")
        super().save(key, blob)


class TestOfflineScenario:
    """The reference client flow: queue offline, reconnect, sync."""

    @pytest.mark.asyncio
    async def test_queue_offline_then_reconnect(self):
        """Enqueue while offline, then reconnect and replay."""
        store = MemoryStore()
        transport = RecordingTransport()
        network = NetworkMonitor(initial=False)
        service = OfflineSyncService(store, transport, network)
        synced = []
        service.subscribe_synced(synced.append)

        async with service:
            accepted = service.queue_request(
                "/posts", "POST", {"title": "x", "body": "x", "userId": 1}
            )

            assert accepted is True
            assert len(service.snapshot()) == 1
            assert len(json.loads(store.load(DEFAULT_STORAGE_KEY))) == 1

            network.set_online(True)
            await service.engine.join()

            assert transport.calls == [
                ("POST", "/posts", {"title": "x", "body": "x", "userId": 1})
            ]
            assert service.snapshot() == ()
            assert synced == [{"title": "x", "body": "x", "userId": 1}]

    @pytest.mark.asyncio
    async def test_offline_duplicate_reported_to_caller(self):
        service = OfflineSyncService(MemoryStore(), RecordingTransport(), NetworkMonitor(False))

        async with service:
            assert service.queue_request("/posts", "POST", post("x")) is True
            assert service.queue_request("/posts", "POST", post("x")) is False
            assert len(service.snapshot()) == 1

    @pytest.mark.asyncio
    async def test_online_enqueue_syncs_immediately(self):
        transport = RecordingTransport()
        service = OfflineSyncService(MemoryStore(), transport, NetworkMonitor(True))

        async with service:
            await service.engine.join()
            service.queue_request("/posts", "POST", post("x"))
            await service.engine.join()

            assert transport.urls == ["/posts"]
            assert service.snapshot() == ()

    @pytest.mark.asyncio
    async def test_failure_retried_on_next_reconnect(self):
        """B fails on the first reconnect and goes through on the second."""
        transport = RecordingTransport(fail_urls={"/b"})
        network = NetworkMonitor(initial=False)
        service = OfflineSyncService(MemoryStore(), transport, network)
        synced = []
        failures = []
        service.subscribe_synced(lambda payload: synced.append(payload["title"]))
        service.subscribe_failures(failures.append)

        async with service:
            for name in ("a", "b", "c"):
                service.queue_request(f"/{name}", "POST", post(name))

            network.set_online(True)
            await service.engine.join()

            assert synced == ["a"]
            assert [r.url for r in service.snapshot()] == ["/b", "/c"]
            assert [f.request.url for f in failures] == ["/b"]
            assert service.is_syncing is False

            transport.fail_urls.clear()
            network.set_online(False)
            network.set_online(True)
            await service.engine.join()

            assert synced == ["a", "b", "c"]
            assert transport.urls == ["/a", "/b", "/b", "/c"]
            assert service.snapshot() == ()

    @pytest.mark.asyncio
    async def test_queue_survives_restart(self, tmp_path):
        """Requests queued by one service are replayed by the next."""
        first = OfflineSyncService(FileStore(tmp_path), RecordingTransport(), NetworkMonitor(False))
        async with first:
            first.queue_request("/posts", "POST", post("a"))
            first.queue_request("/posts/1", "PUT", post("b"))

        transport = RecordingTransport()
        second = OfflineSyncService(FileStore(tmp_path), transport, NetworkMonitor(True))
        async with second:
            await second.engine.join()

        assert transport.calls == [
            ("POST", "/posts", post("a")),
            ("PUT", "/posts/1", post("b")),
        ]
        assert json.loads((tmp_path / f"{DEFAULT_STORAGE_KEY}.json").read_text()) == []

    @pytest.mark.asyncio
    async def test_corrupt_storage_starts_empty(self, tmp_path):
        (tmp_path / f"{DEFAULT_STORAGE_KEY}.json").write_text("{broken")
        service = OfflineSyncService(FileStore(tmp_path), RecordingTransport(), NetworkMonitor(False))

        async with service:
            assert service.snapshot() == ()
            assert service.queue_request("/posts", "POST", post("a")) is True

    @pytest.mark.asyncio
    async def test_stop_closes_transport(self):
        transport = RecordingTransport()
        service = OfflineSyncService(MemoryStore(), transport, NetworkMonitor(False))

        await service.start()
        await service.stop()

        assert transport.closed is True

    @pytest.mark.asyncio
    async def test_stop_writes_queue_left_unsaved(self, tmp_path):
        """A write that failed earlier reaches the database before it closes."""
        db_path = tmp_path / "queue.db"
        store = FlakySQLiteStore(db_path)
        service = OfflineSyncService(store, RecordingTransport(), NetworkMonitor(False))

        await service.start()
        assert service.queue_request("/posts", "POST", post("a")) is True
        assert service.queue.dirty is True

        store.failing = False
        await service.stop()

        reopened = SQLiteStore(db_path)
        try:
            blob = reopened.load(DEFAULT_STORAGE_KEY)
        finally:
            reopened.close()
        assert [entry["url"] for entry in json.loads(blob)] == ["/posts"]

    @pytest.mark.asyncio
    async def test_restart_after_stop_rejected(self):
        service = OfflineSyncService(MemoryStore(), RecordingTransport(), NetworkMonitor(False))

        await service.start()
        await service.stop()

        with pytest.raises(RuntimeError, match="cannot be restarted"):
            await service.start()


class TestObservables:
    """State streams deliver the current value, then every change."""

    @pytest.mark.asyncio
    async def test_streams(self):
        network = NetworkMonitor(initial=False)
        service = OfflineSyncService(MemoryStore(), RecordingTransport(), network)
        online = []
        syncing = []
        sizes = []

        async with service:
            service.subscribe_online(online.append)
            service.subscribe_syncing(syncing.append)
            service.subscribe_queue(lambda snapshot: sizes.append(len(snapshot)))

            service.queue_request("/posts", "POST", post("a"))
            network.set_online(True)
            await service.engine.join()

        assert online == [False, True]
        assert syncing == [False, True, False]
        assert sizes == [0, 1, 0]
        assert service.is_online is True


class TestDefaultStack:
    """The stack assembled from settings replays over HTTP."""

    @pytest.mark.asyncio
    async def test_from_settings_uses_http_transport(self, tmp_path):
        settings = Settings(data_dir=tmp_path, base_url="http://api.test")
        service = OfflineSyncService.from_settings(settings, with_probe=False)

        assert isinstance(service.transport, HttpxTransport)
        assert isinstance(service.store, FileStore)
        assert service.probe is None
        assert service.is_online is False
        await service.transport.close()

    @pytest.mark.asyncio
    async def test_replay_over_mock_http(self, tmp_path):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(201, json={"id": 101})

        client = httpx.AsyncClient(
            base_url="http://api.test",
            transport=httpx.MockTransport(handler),
        )
        network = NetworkMonitor(initial=False)
        service = OfflineSyncService(
            FileStore(tmp_path),
            HttpxTransport(base_url="http://api.test", client=client),
            network,
        )

        async with service:
            service.queue_request("/posts", "POST", post("x"))
            network.set_online(True)
            await service.engine.join()

        assert received == [("POST", "/posts", post("x"))]
        assert service.snapshot() == ()
