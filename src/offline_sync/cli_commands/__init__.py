"""CLI command modules for offline-sync."""

from offline_sync.cli_commands.config import config_app
from offline_sync.cli_commands.queue import queue_app
from offline_sync.cli_commands.status import status_command
from offline_sync.cli_commands.sync import run_command, sync_command

__all__ = ["config_app", "queue_app", "run_command", "status_command", "sync_command"]
