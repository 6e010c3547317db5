"""Study plan progress.

``calc_progress`` derives a plan's progress and status from practice
records. It is pure and remembers nothing, so a plan can move from 已完成
back to 未达成 if records are edited after the fact.

``ProgressSynchronizer`` recomputes every plan when records or plans change,
reports whether anything actually changed and announces plans that have
just been completed.
"""

import hashlib
import json
import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Set

from examtrack.normalize import modules_match, parse_iso_date
from examtrack.types import PlanStatus, PlanType, RecordItem, StudyPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanProgress:
    progress: float
    status: PlanStatus


NOT_STARTED = PlanProgress(progress=0, status=PlanStatus.NOT_STARTED)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def _coerce_target(target) -> float:
    if isinstance(target, bool):
        raise ValueError(f"Plan target must be numeric, got {target!r}")
    return float(target)


def matching_records(
    plan: StudyPlan, records: Iterable[RecordItem], start: date, end: date
) -> List[RecordItem]:
    """Records inside [start, end] (whole days) for the plan's module."""
    matched = []
    for record in records:
        record_date = parse_iso_date(record.date)
        if record_date is None:
            continue
        if start <= record_date <= end and modules_match(record.module, plan.module):
            matched.append(record)
    return matched


def calc_progress(
    plan: StudyPlan, records: Iterable[RecordItem], now: Optional[datetime] = None
) -> PlanProgress:
    """Compute progress and status for one plan.

    Args:
        plan: The plan to evaluate
        records: All practice records
        now: Current time for the deadline check (default: local now)

    Returns:
        PlanProgress. Plans with an unknown type, no module or unparseable
        dates are reported as 0 / 未开始.

    Raises:
        ValueError: If the plan target is not numeric
    """
    try:
        plan_type = PlanType(plan.type)
    except ValueError:
        return NOT_STARTED

    start = parse_iso_date(plan.start_date)
    end = parse_iso_date(plan.end_date)
    if not plan.module or start is None or end is None:
        return NOT_STARTED

    target = _coerce_target(plan.target)
    matched = matching_records(plan, records, start, end)
    if not matched:
        return NOT_STARTED

    total = sum(r.total for r in matched)
    correct = sum(r.correct for r in matched)

    if plan_type is PlanType.QUESTION_COUNT:
        progress = total
        done = progress >= target
    elif plan_type is PlanType.ACCURACY:
        progress = round_half_up(100 * correct / total) if total > 0 else 0
        done = progress >= target
    else:
        # Fewer wrong answers is success
        progress = total - correct
        done = progress <= target

    if done:
        status = PlanStatus.COMPLETED
    else:
        today = (now or datetime.now()).date()
        status = PlanStatus.FAILED if today > end else PlanStatus.IN_PROGRESS

    return PlanProgress(progress=progress, status=status)


def progress_fingerprint(plans: Iterable[StudyPlan]) -> str:
    """Content hash over (id, progress, status) triples."""
    triples = [[p.id, p.progress, p.status] for p in plans]
    payload = json.dumps(triples, ensure_ascii=False, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class SyncOutcome:
    """Result of one synchronization pass."""

    plans: List[StudyPlan]
    changed: bool
    completed: List[StudyPlan] = field(default_factory=list)


class ProgressSynchronizer:
    """Recompute plan progress and announce completions.

    The synchronizer never raises. A plan whose computation fails is
    logged and reported as 0 / 未开始 without affecting other plans.

    Args:
        on_completed: Called once with each plan that transitions to 已完成
        clock: Returns the current time (default: ``datetime.now``)
    """

    def __init__(
        self,
        on_completed: Optional[Callable[[StudyPlan], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.on_completed = on_completed
        self.clock = clock or datetime.now
        self._announced: Set[str] = set()

    def _compute(self, plan: StudyPlan, records: List[RecordItem], now: datetime) -> PlanProgress:
        try:
            return calc_progress(plan, records, now=now)
        except Exception as e:
            logger.warning(
                "Progress computation failed for plan %r: %s: %s", plan.id, type(e).__name__, e
            )
            return NOT_STARTED

    def _announce(self, plan: StudyPlan) -> None:
        if self.on_completed is None:
            return
        try:
            self.on_completed(plan)
        except Exception as e:
            logger.warning("Plan completion callback failed for %r: %s", plan.id, e)

    def synchronize(self, plans: List[StudyPlan], records: Iterable[RecordItem]) -> SyncOutcome:
        """Recompute all plans against ``records``.

        Returns the same ``plans`` list object with ``changed=False`` when no
        (id, progress, status) triple differs.
        """
        records = list(records)
        now = self.clock()
        updated: List[StudyPlan] = []
        completed: List[StudyPlan] = []

        for plan in plans:
            result = self._compute(plan, records, now)
            new_plan = replace(plan, progress=result.progress, status=result.status.value)
            updated.append(new_plan)

            if result.status is PlanStatus.COMPLETED:
                if plan.status != PlanStatus.COMPLETED.value and plan.id not in self._announced:
                    completed.append(new_plan)
                self._announced.add(plan.id)
            else:
                self._announced.discard(plan.id)

        for plan in completed:
            logger.info("Plan completed: %s (%s)", plan.name, plan.id)
            self._announce(plan)

        if progress_fingerprint(updated) == progress_fingerprint(plans):
            return SyncOutcome(plans=plans, changed=False, completed=completed)
        return SyncOutcome(plans=updated, changed=True, completed=completed)
