"""Status command for offline-sync CLI."""

import json
from collections import Counter

import typer

from offline_sync.cli_commands.queue import close_queue, open_queue
from offline_sync.config import get_settings


def status_command(
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Show queue status.

    Displays how many requests are waiting and where they will be sent.
    """
    settings = get_settings()
    queue = open_queue(settings)
    entries = queue.snapshot()
    close_queue(queue)

    methods = Counter(entry.method.value for entry in entries)
    status_data = {
        "queue_pending": len(entries),
        "by_method": dict(methods),
        "base_url": settings.base_url,
        "storage_backend": settings.storage_backend,
        "data_dir": str(settings.data_path),
    }

    if output_json:
        typer.echo(json.dumps(status_data))
        return

    typer.echo("")
    typer.echo("Offline Sync Status")
    typer.echo("-------------------")
    typer.echo(f"Queue: {len(entries)} pending request(s)")
    for method, count in sorted(methods.items()):
        typer.echo(f"  {method}: {count}")
    typer.echo(f"Server: {settings.base_url}")
    typer.echo(f"Storage: {settings.storage_backend} ({settings.data_path})")
    typer.echo("")

    if entries:
        typer.echo("Replay them with: offline-sync sync")
