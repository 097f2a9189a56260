"""Queue management CLI commands."""

import json
from pathlib import Path
from typing import Any

import typer
import yaml

from offline_sync.config import Settings, get_settings
from offline_sync.logging import short_fingerprint
from offline_sync.network import NetworkMonitor
from offline_sync.queue import QueueManager
from offline_sync.storage import create_store

queue_app = typer.Typer(
    name="queue",
    help="Queue management - add, import and list pending requests.",
    no_args_is_help=True,
)


def open_queue(settings: Settings) -> QueueManager:
    """Restore the durable queue for offline inspection or editing.

    The CLI never assumes connectivity, so the offline dedup policy applies.
    """
    queue = QueueManager(
        create_store(settings),
        NetworkMonitor(initial=False),
        storage_key=settings.storage_key,
    )
    queue.restore()
    return queue


def close_queue(queue: QueueManager) -> None:
    """Release the queue's store, if it holds a connection."""
    close = getattr(queue.store, "close", None)
    if close is not None:
        close()


def _output(data: dict, as_json: bool, human_message: str) -> None:
    """Output data as JSON or human-readable format."""
    if as_json:
        typer.echo(json.dumps(data))
    else:
        typer.echo(human_message)


def _report_unsaved(as_json: bool) -> None:
    """Report a queue change that never reached the durable store."""
    _output(
        {"status": "error", "message": "Failed to save queue"},
        as_json,
        "Failed to save queue: nothing was queued.",
    )


@queue_app.command()
def add(
    url: str = typer.Argument(..., help="Target URL or path relative to the base URL"),
    method: str = typer.Option("POST", "--method", "-X", help="POST or PUT"),
    data: str = typer.Option("{}", "--data", "-d", help="JSON request body"),
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Queue a request for later delivery."""
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        _output(
            {"status": "error", "message": f"Invalid JSON body: {e}"},
            output_json,
            f"Invalid JSON body: {e}",
        )
        raise typer.Exit(1)

    queue = open_queue(get_settings())
    try:
        accepted = queue.enqueue(url, method, payload)
        persisted = queue.flush()
    except ValueError as e:
        _output({"status": "error", "message": str(e)}, output_json, str(e))
        raise typer.Exit(1)
    finally:
        close_queue(queue)

    if not persisted:
        _report_unsaved(output_json)
        raise typer.Exit(1)

    if accepted:
        _output(
            {"status": "queued", "queue_size": len(queue)},
            output_json,
            f"Queued {method.upper()} {url} ({len(queue)} pending)",
        )
    else:
        _output(
            {"status": "duplicate", "queue_size": len(queue)},
            output_json,
            "Duplicate request ignored: an identical request is already queued.",
        )


def _load_requests(path: Path) -> list[dict[str, Any]]:
    """Read a YAML list of ``{url, method, payload}`` mappings."""
    with open(path) as f:
        document = yaml.safe_load(f) or []

    if isinstance(document, dict):
        document = document.get("requests", [])
    if not isinstance(document, list):
        raise ValueError("expected a list of requests")

    for index, entry in enumerate(document):
        if not isinstance(entry, dict) or "url" not in entry:
            raise ValueError(f"entry {index} must be a mapping with a 'url'")
    return document


@queue_app.command(name="import")
def import_requests(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML file of requests"),
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Queue every request listed in a YAML file.

    The file holds a list (or a ``requests:`` key with a list) of mappings
    with ``url``, optional ``method`` (default POST) and ``payload``.
    """
    try:
        entries = _load_requests(path)
    except (yaml.YAMLError, OSError, ValueError) as e:
        _output(
            {"status": "error", "message": str(e)},
            output_json,
            f"Failed to read {path}: {e}",
        )
        raise typer.Exit(1)

    queue = open_queue(get_settings())
    accepted = 0
    duplicates = 0
    try:
        for entry in entries:
            if queue.enqueue(entry["url"], entry.get("method", "POST"), entry.get("payload", {})):
                accepted += 1
            else:
                duplicates += 1
        persisted = queue.flush()
    except (ValueError, TypeError) as e:
        _output({"status": "error", "message": str(e)}, output_json, f"Invalid request: {e}")
        raise typer.Exit(1)
    finally:
        close_queue(queue)

    if not persisted:
        _report_unsaved(output_json)
        raise typer.Exit(1)

    _output(
        {
            "status": "imported",
            "accepted": accepted,
            "duplicates": duplicates,
            "queue_size": len(queue),
        },
        output_json,
        f"Imported {accepted} request(s), skipped {duplicates} duplicate(s), "
        f"{len(queue)} pending",
    )


@queue_app.command(name="list")
def list_requests(
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """List pending requests in replay order."""
    queue = open_queue(get_settings())
    entries = queue.snapshot()
    close_queue(queue)

    if output_json:
        typer.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    typer.echo("")
    typer.echo("Pending Requests")
    typer.echo("----------------")
    if not entries:
        typer.echo("Queue is empty.")
    for index, entry in enumerate(entries, start=1):
        typer.echo(
            f"{index}. {entry.method.value} {entry.url} "
            f"[{short_fingerprint(entry.fingerprint)}] {json.dumps(entry.payload)}"
        )
    typer.echo("")
