"""CLI command handlers, one module per command group."""

from examtrack.cli.commands.import_cmd import cmd_export, cmd_import
from examtrack.cli.commands.plan import cmd_plan
from examtrack.cli.commands.record import cmd_record, cmd_status
from examtrack.cli.commands.settings import cmd_settings
from examtrack.cli.commands.sync import cmd_sync

__all__ = [
    "cmd_export",
    "cmd_import",
    "cmd_plan",
    "cmd_record",
    "cmd_settings",
    "cmd_status",
    "cmd_sync",
]
