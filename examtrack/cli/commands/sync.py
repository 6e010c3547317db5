"""Sync commands for examtrack CLI: cloud backup push and pull."""

import logging
import sys
from typing import TYPE_CHECKING

from examtrack.cli.commands.helpers import confirm, describe_bundle
from examtrack.cloud import CloudClient
from examtrack.logging_config import log_sync
from examtrack.types import CloudSyncError, ParseError, SchemaError

if TYPE_CHECKING:
    import argparse

    from examtrack import Tracker

logger = logging.getLogger(__name__)


def cmd_sync(args: "argparse.Namespace", t: "Tracker", client: "CloudClient | None" = None) -> None:
    """Handle sync subcommands.

    ``client`` is injectable for tests; by default credentials come from the
    environment or ``credentials.json``.
    """
    if client is None:
        client = CloudClient.from_environment()
    if client is None:
        print("✗ Cloud sync not configured (set EXAMTRACK_BACKEND_URL and EXAMTRACK_AUTH_TOKEN)")
        sys.exit(1)

    with client:
        if args.sync_action == "status":
            health = client.health_check()
            if health["healthy"]:
                print(f"✓ Connected to {client.backend_url}")
            else:
                print(f"✗ {health['error']}")
            return

        if args.sync_action == "push":
            document = t.export_document()
            try:
                client.push(document)
            except CloudSyncError as e:
                log_sync("push", 0, errors=1)
                print(f"✗ Push failed: {e}")
                sys.exit(1)
            log_sync("push", len(document["records"]))
            print(f"↑ Pushed {len(document['records'])} records, {len(document['plans'])} plans")
            return

        if args.sync_action == "pull":
            try:
                contents = client.pull()
                bundle = t.stage_import(contents)
            except CloudSyncError as e:
                log_sync("pull", 0, errors=1)
                print(f"✗ Pull failed: {e}")
                sys.exit(1)
            except (ParseError, SchemaError) as e:
                log_sync("pull", 0, errors=1)
                print(f"✗ Pulled data is not a valid export: {e}")
                sys.exit(1)

            describe_bundle(bundle)
            if not confirm("确认导入云端数据?", assume_yes=getattr(args, "yes", False)):
                t.cancel_import()
                print("Pull cancelled.")
                return
            stats = t.commit_import()
            log_sync("pull", stats.added)
