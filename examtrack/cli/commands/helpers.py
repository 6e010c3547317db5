"""Shared helper functions for CLI commands."""

import json
import re
from typing import Any

from examtrack.protocols import Notification
from examtrack.types import ImportBundle

_ICONS = {"success": "✓", "error": "✗", "warning": "⚠", "info": "ℹ"}


def validate_input(value: str, field_name: str, max_length: int = 1000) -> str:
    """Validate and sanitize CLI inputs."""
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")

    if len(value) > max_length:
        raise ValueError(f"{field_name} too long (max {max_length} characters)")

    # Remove null bytes and control characters except newlines
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


class PrintNotifier:
    """Notifier that writes notifications to stdout."""

    def notify(self, notification: Notification) -> None:
        icon = _ICONS.get(notification.type, "•")
        line = f"{icon} {notification.message}"
        if notification.description:
            line += f": {notification.description}"
        print(line)


def confirm(prompt: str, assume_yes: bool = False) -> bool:
    """Ask a yes/no question on stdin. EOF counts as no."""
    if assume_yes:
        return True
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def describe_bundle(bundle: ImportBundle) -> None:
    """Print a staged import summary."""
    stats = bundle.import_stats
    print("## Pending import")
    print(f"  Records: {stats.total} in file, {stats.added} new, {stats.repeated} repeated")
    if stats.repeated_in_batch:
        print(f"    ({stats.repeated_in_batch} repeated inside the file itself)")
    if bundle.knowledge_replaced:
        print(f"  Knowledge: replaced with {len(bundle.knowledge)} items")
    else:
        print("  Knowledge: unchanged")
    if bundle.plans_replaced:
        print(f"  Plans: replaced with {len(bundle.plans)} plans")
    else:
        print("  Plans: unchanged")
    if bundle.settings:
        print(f"  Settings: {len(bundle.settings)} keys")
