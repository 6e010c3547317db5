"""Practice record commands."""

from typing import TYPE_CHECKING

from examtrack.cli.commands.helpers import print_json
from examtrack.normalize import normalize_module
from examtrack.validation import validate_record_fields

if TYPE_CHECKING:
    import argparse

    from examtrack import Tracker


def cmd_record(args: "argparse.Namespace", t: "Tracker") -> None:
    """Handle record subcommands."""
    if args.record_action == "add":
        record = validate_record_fields(
            date=args.date,
            module=args.module,
            total=args.total,
            correct=args.correct,
            duration=args.duration,
        )
        t.add_record(record)
        print(f"✓ Record added: {record.date} {record.module} {record.correct}/{record.total}")

    elif args.record_action == "list":
        records = t.records
        if args.module:
            label = normalize_module(args.module)
            records = [r for r in records if normalize_module(r.module) == label]
        records = sorted(records, key=lambda r: r.date, reverse=True)[: args.limit]

        if args.json:
            print_json([r.to_dict() for r in records])
            return
        if not records:
            print("No records yet.")
            return
        for r in records:
            rate = f"{r.correct / r.total * 100:.0f}%" if r.total else "-"
            date = r.date or "????-??-??"
            print(f"  {date}  {r.module:<6} {r.correct:>4}/{r.total:<4} {rate:>5}  {r.duration}")


def cmd_status(args: "argparse.Namespace", t: "Tracker") -> None:
    """Show record and plan totals."""
    summary = t.summary(module=getattr(args, "module", None))
    if getattr(args, "json", False):
        print_json(summary)
        return
    print("## Practice summary")
    print(f"  Records: {summary['total_records']}")
    print(f"  Questions: {summary['total_questions']} ({summary['total_correct']} correct)")
    print(f"  Accuracy: {summary['average_accuracy']}%")
    print(f"  Knowledge items: {summary['total_knowledge']}")
    print(f"  Active plans: {summary['active_plans']}")
