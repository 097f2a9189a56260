"""offline-sync CLI - Command-line interface for the request queue."""

import typer

from offline_sync import __version__
from offline_sync.cli_commands.config import config_app
from offline_sync.cli_commands.queue import queue_app
from offline_sync.cli_commands.status import status_command
from offline_sync.cli_commands.sync import run_command, sync_command
from offline_sync.config import get_settings
from offline_sync.logging import setup_logging

app = typer.Typer(
    name="offline-sync",
    help="Offline request queue - hold POST/PUT requests while offline and replay them in order.",
    no_args_is_help=True,
)

# Register subcommands
app.add_typer(queue_app, name="queue")
app.add_typer(config_app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"offline-sync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Offline request queue with ordered replay."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)


app.command(name="status")(status_command)
app.command(name="sync")(sync_command)
app.command(name="run")(run_command)


if __name__ == "__main__":
    app()
