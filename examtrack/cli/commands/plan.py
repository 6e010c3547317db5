"""Study plan commands."""

from typing import TYPE_CHECKING

from examtrack.cli.commands.helpers import print_json
from examtrack.types import PlanStatus, PlanType
from examtrack.validation import validate_plan_fields

if TYPE_CHECKING:
    import argparse

    from examtrack import Tracker

_STATUS_ICONS = {
    PlanStatus.NOT_STARTED.value: "○",
    PlanStatus.IN_PROGRESS.value: "◐",
    PlanStatus.COMPLETED.value: "✓",
    PlanStatus.FAILED.value: "✗",
}


def _format_progress(plan) -> str:
    unit = "%" if plan.type == PlanType.ACCURACY.value else ""
    return f"{plan.progress}{unit}/{plan.target}{unit}"


def cmd_plan(args: "argparse.Namespace", t: "Tracker") -> None:
    """Handle plan subcommands."""
    if args.plan_action == "add":
        plan = validate_plan_fields(
            name=args.name,
            module=args.module,
            plan_type=args.type,
            start_date=args.start,
            end_date=args.end,
            target=args.target,
            description=args.description,
        )
        plan = t.add_plan(plan)
        print(f"✓ Plan added: {plan.name} ({plan.id[:8]}) - {plan.status} {_format_progress(plan)}")

    elif args.plan_action == "list":
        t.refresh_plans()
        plans = t.plans
        if args.json:
            print_json([p.to_dict() for p in plans])
            return
        if not plans:
            print("No plans yet.")
            return
        for p in plans:
            icon = _STATUS_ICONS.get(p.status, "?")
            print(f"  {icon} {p.name} [{p.module} {p.type}] {p.start_date} → {p.end_date}")
            print(f"      {p.status} {_format_progress(p)}  ({p.id[:8]})")

    elif args.plan_action == "delete":
        if t.delete_plan(args.id):
            print(f"✓ Plan deleted: {args.id}")
        else:
            print(f"Plan not found: {args.id}")
