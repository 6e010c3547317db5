"""Settings commands."""

from dataclasses import asdict
from typing import TYPE_CHECKING

from examtrack.cli.commands.helpers import print_json, validate_input
from examtrack.settings import SETTINGS_KEYS, parse_setting, settings_key_for

if TYPE_CHECKING:
    import argparse

    from examtrack import Tracker


def cmd_settings(args: "argparse.Namespace", t: "Tracker") -> None:
    """Show or change allow-listed settings."""
    if args.settings_action == "show":
        values = asdict(t.settings)
        if args.json:
            print_json(values)
            return
        for name, value in values.items():
            print(f"  {SETTINGS_KEYS[name]:<24} {value}")

    elif args.settings_action == "set":
        try:
            key = settings_key_for(args.key)
        except KeyError:
            allowed = ", ".join(sorted(SETTINGS_KEYS.values()))
            raise ValueError(f"Unknown setting {args.key!r} (allowed: {allowed})")
        value = validate_input(args.value, "value", max_length=200)
        try:
            parse_setting(key, value)
        except ValueError as e:
            print(f"⚠ Invalid value {value!r} for {key} ({e}), setting unchanged")
            return
        updated = t.update_settings({key: value})
        print(f"✓ {key} = {updated.to_storage_map()[key]}")
