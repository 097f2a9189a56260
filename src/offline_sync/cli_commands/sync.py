"""Replay CLI commands: one-shot sync and the long-running agent."""

import asyncio
import json
from typing import Any

import typer

from offline_sync.config import Settings, get_settings
from offline_sync.network import ConnectivityProbe
from offline_sync.service import OfflineSyncService
from offline_sync.sync import SyncFailure


def _build_service(settings: Settings, with_probe: bool) -> OfflineSyncService:
    """Create the service for a CLI run."""
    return OfflineSyncService.from_settings(settings, with_probe=with_probe)


def _build_probe(service: OfflineSyncService, settings: Settings) -> ConnectivityProbe:
    """Create a probe reporting into the service's network monitor."""
    return ConnectivityProbe(
        service.network,
        settings.probe_url,
        interval=settings.probe_interval,
    )


async def _sync_once(settings: Settings) -> dict[str, Any]:
    """Probe connectivity once and, if online, drain the queue."""
    service = _build_service(settings, with_probe=False)
    async with service:
        pending = len(service.queue)
        async with _build_probe(service, settings) as probe:
            online = await probe.check()

        if not online:
            return {"status": "offline", "pending": pending}

        # The ONLINE transition scheduled a drain; wait for it
        result = await service.engine.join()

    data: dict[str, Any] = {
        "status": "synced",
        "synced": result.synced if result else 0,
        "pending": len(service.queue),
    }
    if result is not None and result.failure is not None:
        data["status"] = "failed"
        data["error"] = result.failure.error
        data["failed_url"] = result.failure.request.url
    return data


def sync_command(
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Replay pending requests now.

    Checks that the server is reachable, then sends queued requests in
    order, stopping at the first failure.
    """
    settings = get_settings()
    data = asyncio.run(_sync_once(settings))

    if output_json:
        typer.echo(json.dumps(data))
    elif data["status"] == "offline":
        typer.echo(
            f"Offline: {settings.probe_url} is unreachable, "
            f"{data['pending']} request(s) kept."
        )
    elif data["status"] == "failed":
        typer.echo(
            f"Synced {data['synced']} request(s), then failed on "
            f"{data['failed_url']}: {data['error']}"
        )
        typer.echo(f"{data['pending']} request(s) still pending.")
    else:
        typer.echo(f"Synced {data['synced']} request(s), {data['pending']} pending.")

    if data["status"] != "synced":
        raise typer.Exit(1)


async def _run_forever(settings: Settings) -> None:
    """Keep probing and replaying until cancelled."""
    service = _build_service(settings, with_probe=True)

    def report_synced(payload: Any) -> None:
        typer.echo(f"Synced: {json.dumps(payload)}")

    def report_failure(failure: SyncFailure) -> None:
        typer.echo(f"Sync failed for {failure.request.url}: {failure.error}", err=True)

    def report_network(online: bool) -> None:
        typer.echo("Network: ONLINE" if online else "Network: OFFLINE")

    service.subscribe_synced(report_synced)
    service.subscribe_failures(report_failure)

    async with service:
        service.subscribe_online(report_network)
        await asyncio.Event().wait()


def run_command() -> None:
    """Run the sync agent.

    Probes the server periodically and replays the queue every time it
    comes back online. Press Ctrl+C to stop.
    """
    settings = get_settings()
    typer.echo(f"Starting offline sync agent (server: {settings.base_url})...")
    try:
        asyncio.run(_run_forever(settings))
    except KeyboardInterrupt:
        pass
    typer.echo("Offline sync agent stopped.")
