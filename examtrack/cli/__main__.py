"""
examtrack CLI - practice records, study plans and data import/export.

Usage:
    examtrack import FILE [--yes] [--dry-run] [--json]
    examtrack export [--output DIR]
    examtrack record add --date D --module M --total N --correct N --duration HH:MM
    examtrack record list [--module M] [--limit N] [--json]
    examtrack plan add --name N --module M --type T --start D --end D --target N
    examtrack plan list [--json]
    examtrack plan delete ID
    examtrack settings show [--json]
    examtrack settings set KEY VALUE
    examtrack sync status|push|pull [--yes]
    examtrack status [--module M] [--json]
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from examtrack import Tracker
from examtrack.cli.commands import (
    cmd_export,
    cmd_import,
    cmd_plan,
    cmd_record,
    cmd_settings,
    cmd_status,
    cmd_sync,
)
from examtrack.cli.commands.helpers import PrintNotifier
from examtrack.logging_config import setup_examtrack_logging
from examtrack.types import PlanType, ValidationError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="examtrack",
        description="Exam practice tracker: records, knowledge and study plans",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for the file log (default: $EXAMTRACK_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # import
    p_import = subparsers.add_parser("import", help="Import a JSON export file")
    p_import.add_argument("file", help="Path to the JSON file")
    p_import.add_argument("--yes", "-y", action="store_true", help="Commit without asking")
    p_import.add_argument("--dry-run", action="store_true", help="Show what would change")
    p_import.add_argument("--json", "-j", action="store_true")

    # export
    p_export = subparsers.add_parser("export", help="Write a JSON export file")
    p_export.add_argument("--output", "-o", help="Output directory (default: cwd)")

    # record
    p_record = subparsers.add_parser("record", help="Practice records")
    record_sub = p_record.add_subparsers(dest="record_action", required=True)

    record_add = record_sub.add_parser("add", help="Log a practice session")
    record_add.add_argument("--date", "-d", required=True, help="YYYY-MM-DD")
    record_add.add_argument("--module", "-m", required=True, help="Module key or label")
    record_add.add_argument("--total", type=int, required=True)
    record_add.add_argument("--correct", type=int, required=True)
    record_add.add_argument("--duration", required=True, help="HH:MM")

    record_list = record_sub.add_parser("list", help="List records")
    record_list.add_argument("--module", "-m")
    record_list.add_argument("--limit", "-l", type=int, default=20)
    record_list.add_argument("--json", "-j", action="store_true")

    # plan
    p_plan = subparsers.add_parser("plan", help="Study plans")
    plan_sub = p_plan.add_subparsers(dest="plan_action", required=True)

    plan_add = plan_sub.add_parser("add", help="Create a study plan")
    plan_add.add_argument("--name", "-n", required=True)
    plan_add.add_argument("--module", "-m", required=True)
    plan_add.add_argument("--type", "-t", required=True, choices=[t.value for t in PlanType])
    plan_add.add_argument("--start", required=True, help="Start date YYYY-MM-DD")
    plan_add.add_argument("--end", required=True, help="End date YYYY-MM-DD")
    plan_add.add_argument("--target", type=float, required=True)
    plan_add.add_argument("--description")

    plan_list = plan_sub.add_parser("list", help="List plans with current progress")
    plan_list.add_argument("--json", "-j", action="store_true")

    plan_delete = plan_sub.add_parser("delete", help="Delete a plan")
    plan_delete.add_argument("id", help="Plan id")

    # settings
    p_settings = subparsers.add_parser("settings", help="User settings")
    settings_sub = p_settings.add_subparsers(dest="settings_action", required=True)
    settings_show = settings_sub.add_parser("show", help="Show settings")
    settings_show.add_argument("--json", "-j", action="store_true")
    settings_set = settings_sub.add_parser("set", help="Change a setting")
    settings_set.add_argument("key", help="Setting name or storage key")
    settings_set.add_argument("value")

    # sync
    p_sync = subparsers.add_parser("sync", help="Cloud backup")
    sync_sub = p_sync.add_subparsers(dest="sync_action", required=True)
    sync_sub.add_parser("status", help="Check backend connectivity")
    sync_sub.add_parser("push", help="Upload current data")
    sync_pull = sync_sub.add_parser("pull", help="Download and import backed-up data")
    sync_pull.add_argument("--yes", "-y", action="store_true", help="Commit without asking")

    # status
    p_status = subparsers.add_parser("status", help="Show practice summary")
    p_status.add_argument("--module", "-m")
    p_status.add_argument("--json", "-j", action="store_true")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_examtrack_logging(args.log_level or os.environ.get("EXAMTRACK_LOG_LEVEL", "INFO"))

    try:
        t = Tracker(notifier=PrintNotifier())
    except OSError as e:
        logger.error(f"Failed to initialize examtrack: {e}")
        print(f"✗ Failed to open data store: {e}")
        sys.exit(1)

    try:
        if args.command == "import":
            cmd_import(args, t)
        elif args.command == "export":
            cmd_export(args, t)
        elif args.command == "record":
            cmd_record(args, t)
        elif args.command == "plan":
            cmd_plan(args, t)
        elif args.command == "settings":
            cmd_settings(args, t)
        elif args.command == "sync":
            cmd_sync(args, t)
        elif args.command == "status":
            cmd_status(args, t)
    except ValidationError as e:
        print(f"✗ {e}")
        sys.exit(1)
    except (ValueError, TypeError) as e:
        logger.error(f"Input validation error: {e}")
        print(f"✗ {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Command failed: {e}")
        print(f"✗ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
