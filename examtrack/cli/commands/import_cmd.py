"""Import and export commands.

``examtrack import FILE`` stages the file, shows what would change and
commits only after confirmation (or ``--yes``). ``--dry-run`` stops after
staging.
"""

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from examtrack.cli.commands.helpers import confirm, describe_bundle, print_json
from examtrack.types import ParseError, SchemaError

if TYPE_CHECKING:
    import argparse

    from examtrack import Tracker

logger = logging.getLogger(__name__)


def cmd_import(args: "argparse.Namespace", t: "Tracker") -> None:
    """Stage an import file and commit it after confirmation."""
    try:
        bundle = t.stage_import_file(args.file)
    except FileNotFoundError as e:
        print(f"✗ {e}")
        sys.exit(1)
    except (ParseError, SchemaError) as e:
        logger.warning("Import of %s rejected: %s", args.file, e)
        print(f"✗ 导入失败: {e}")
        sys.exit(1)

    if getattr(args, "json", False):
        print_json(
            {
                "import_stats": bundle.import_stats.to_dict(),
                "knowledge_replaced": bundle.knowledge_replaced,
                "plans_replaced": bundle.plans_replaced,
                "settings": sorted(bundle.settings),
            }
        )
    else:
        describe_bundle(bundle)

    if getattr(args, "dry_run", False):
        t.cancel_import()
        print("Dry run: nothing imported.")
        return

    if not confirm("确认导入?", assume_yes=getattr(args, "yes", False)):
        t.cancel_import()
        print("Import cancelled.")
        return

    t.commit_import()


def cmd_export(args: "argparse.Namespace", t: "Tracker") -> None:
    """Write a version 3 export file."""
    output_dir = Path(args.output) if getattr(args, "output", None) else Path.cwd()
    path = t.export(output_dir)
    print(f"  {path}")
