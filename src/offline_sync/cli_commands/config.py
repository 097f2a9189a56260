"""Configuration CLI commands."""

import json

import typer

from offline_sync.config import get_settings

config_app = typer.Typer(
    name="config",
    help="Configuration - view effective settings.",
    no_args_is_help=True,
)


@config_app.command()
def show(
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Show current configuration."""
    settings = get_settings()

    config_data = {
        "base_url": settings.base_url,
        "request_timeout": settings.request_timeout,
        "health_url": settings.probe_url,
        "probe_interval": settings.probe_interval,
        "data_dir": str(settings.data_path),
        "storage_backend": settings.storage_backend,
        "storage_key": settings.storage_key,
        "log_level": settings.log_level,
        "log_file": str(settings.log_file) if settings.log_file else None,
    }

    if output_json:
        typer.echo(json.dumps(config_data, indent=2))
    else:
        typer.echo("")
        typer.echo("Offline Sync Configuration")
        typer.echo("--------------------------")
        typer.echo(f"Server URL: {settings.base_url}")
        typer.echo(f"Request timeout: {settings.request_timeout}s")
        typer.echo(f"Health URL: {settings.probe_url}")
        typer.echo(f"Probe interval: {settings.probe_interval}s")
        typer.echo(f"Data directory: {settings.data_path}")
        typer.echo(f"Storage: {settings.storage_backend} (key: {settings.storage_key})")
        typer.echo(f"Log level: {settings.log_level}")
        typer.echo("")
        typer.echo("Set values using environment variables with OFFLINE_SYNC_ prefix")
        typer.echo("Example: OFFLINE_SYNC_BASE_URL=http://localhost:8000")
