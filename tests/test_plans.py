"""Tests for examtrack.plans (progress computation and synchronization)."""

from dataclasses import replace
from datetime import datetime

import pytest
from conftest import FIXED_NOW, make_plan, make_record

from examtrack.plans import (
    NOT_STARTED,
    ProgressSynchronizer,
    calc_progress,
    progress_fingerprint,
    round_half_up,
)
from examtrack.types import PlanStatus


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [(12.5, 13), (0.5, 1), (2.5, 3), (2.49, 2), (85.0, 85)])
    def test_half_rounds_up(self, value, expected):
        assert round_half_up(value) == expected


class TestCalcProgressQuestionCount:
    def test_sums_totals_in_range(self):
        plan = make_plan(type="题量", target=100)
        records = [
            make_record(date="2024-01-02", total=40, correct=30),
            make_record(date="2024-01-05", total=30, correct=20),
            make_record(date="2024-01-09", total=20, correct=10),
        ]
        result = calc_progress(plan, records, now=FIXED_NOW)
        assert result.progress == 90
        assert result.status is PlanStatus.IN_PROGRESS

    def test_target_reached(self):
        plan = make_plan(type="题量", target=50)
        result = calc_progress(plan, [make_record(total=50, correct=10)], now=FIXED_NOW)
        assert result.progress == 50
        assert result.status is PlanStatus.COMPLETED

    def test_records_outside_range_excluded(self):
        plan = make_plan(type="题量", target=100)
        records = [
            make_record(date="2024-01-31", total=10),
            make_record(date="2024-02-01", total=500),
            make_record(date="2023-12-31", total=500),
        ]
        result = calc_progress(plan, records, now=FIXED_NOW)
        assert result.progress == 10

    def test_start_and_end_days_inclusive(self):
        plan = make_plan(type="题量", target=100)
        records = [make_record(date="2024-01-01", total=3), make_record(date="2024-01-31", total=4)]
        assert calc_progress(plan, records, now=FIXED_NOW).progress == 7

    def test_other_modules_excluded(self):
        plan = make_plan(type="题量", target=100, module="资料分析")
        records = [make_record(module="数量关系", total=40), make_record(total=5)]
        assert calc_progress(plan, records, now=FIXED_NOW).progress == 5

    def test_module_key_and_label_match_both_ways(self):
        key_plan = make_plan(type="题量", module="data-analysis")
        label_plan = make_plan(type="题量", module="资料分析")
        assert calc_progress(key_plan, [make_record(module="资料分析", total=7)], FIXED_NOW).progress == 7
        assert calc_progress(label_plan, [make_record(module="data-analysis", total=7)], FIXED_NOW).progress == 7

    def test_records_without_date_ignored(self):
        plan = make_plan(type="题量")
        result = calc_progress(plan, [make_record(date="", total=40)], now=FIXED_NOW)
        assert result == NOT_STARTED


class TestCalcProgressAccuracy:
    def test_accuracy_completed(self):
        plan = make_plan(type="正确率", target=80)
        records = [
            make_record(date="2024-01-02", total=50, correct=40),
            make_record(date="2024-01-03", total=50, correct=45),
        ]
        result = calc_progress(plan, records, now=FIXED_NOW)
        assert result.progress == 85
        assert result.status is PlanStatus.COMPLETED

    def test_accuracy_rounds_half_up(self):
        plan = make_plan(type="正确率", target=90)
        result = calc_progress(plan, [make_record(total=8, correct=1)], now=FIXED_NOW)
        assert result.progress == 13

    def test_zero_total_is_zero_accuracy(self):
        plan = make_plan(type="正确率", target=80)
        result = calc_progress(plan, [make_record(total=0, correct=0)], now=FIXED_NOW)
        assert result.progress == 0
        assert result.status is PlanStatus.IN_PROGRESS


class TestCalcProgressWrongCount:
    def test_fewer_wrong_is_completed(self):
        plan = make_plan(type="错题数", target=5)
        records = [
            make_record(date="2024-01-02", total=10, correct=8),
            make_record(date="2024-01-03", total=10, correct=9),
        ]
        result = calc_progress(plan, records, now=FIXED_NOW)
        assert result.progress == 3
        assert result.status is PlanStatus.COMPLETED

    def test_too_many_wrong_in_progress(self):
        plan = make_plan(type="错题数", target=2)
        result = calc_progress(plan, [make_record(total=10, correct=5)], now=FIXED_NOW)
        assert result.progress == 5
        assert result.status is PlanStatus.IN_PROGRESS


class TestCalcProgressStatus:
    def test_no_matching_records_not_started(self):
        assert calc_progress(make_plan(), [], now=FIXED_NOW) == NOT_STARTED

    def test_past_deadline_failed(self):
        plan = make_plan(type="题量", target=100)
        later = datetime(2024, 2, 1, 0, 0, 1)
        result = calc_progress(plan, [make_record(total=10)], now=later)
        assert result.status is PlanStatus.FAILED

    def test_deadline_day_itself_still_in_progress(self):
        plan = make_plan(type="题量", target=100)
        last_evening = datetime(2024, 1, 31, 23, 59)
        result = calc_progress(plan, [make_record(total=10)], now=last_evening)
        assert result.status is PlanStatus.IN_PROGRESS

    def test_completed_even_after_deadline(self):
        plan = make_plan(type="题量", target=10)
        result = calc_progress(plan, [make_record(total=10)], now=datetime(2025, 1, 1))
        assert result.status is PlanStatus.COMPLETED

    @pytest.mark.parametrize(
        "overrides",
        [
            {"type": "unknown"},
            {"module": ""},
            {"start_date": "not-a-date"},
            {"end_date": ""},
        ],
    )
    def test_malformed_plan_not_started(self, overrides):
        plan = replace(make_plan(), **overrides)
        assert calc_progress(plan, [make_record(total=50)], now=FIXED_NOW) == NOT_STARTED

    def test_non_numeric_target_raises(self):
        plan = make_plan(target="lots")
        with pytest.raises(ValueError):
            calc_progress(plan, [make_record()], now=FIXED_NOW)

    def test_numeric_string_target_accepted(self):
        plan = make_plan(type="题量", target="10")
        assert calc_progress(plan, [make_record(total=10)], now=FIXED_NOW).status is PlanStatus.COMPLETED


class TestProgressFingerprint:
    def test_same_triples_same_fingerprint(self):
        a = [make_plan(progress=5, status="进行中")]
        b = [replace(a[0], name="renamed")]
        assert progress_fingerprint(a) == progress_fingerprint(b)

    def test_progress_change_changes_fingerprint(self):
        a = [make_plan(progress=5)]
        b = [make_plan(progress=6)]
        assert progress_fingerprint(a) != progress_fingerprint(b)


class TestProgressSynchronizer:
    def _synchronizer(self, completed=None):
        sink = completed if completed is not None else []
        return ProgressSynchronizer(on_completed=sink.append, clock=lambda: FIXED_NOW)

    def test_updates_plans(self):
        sync = self._synchronizer()
        outcome = sync.synchronize([make_plan(target=100)], [make_record(total=40)])
        assert outcome.changed is True
        assert outcome.plans[0].progress == 40
        assert outcome.plans[0].status == "进行中"

    def test_no_change_returns_same_list(self):
        sync = self._synchronizer()
        plans = [make_plan(target=100, progress=40, status="进行中")]
        outcome = sync.synchronize(plans, [make_record(total=40)])
        assert outcome.changed is False
        assert outcome.plans is plans

    def test_completion_announced_once(self):
        announced = []
        sync = self._synchronizer(announced)
        records = [make_record(total=100)]

        first = sync.synchronize([make_plan(target=100)], records)
        assert [p.id for p in announced] == ["plan-1"]
        assert first.plans[0].status == "已完成"

        second = sync.synchronize(first.plans, records)
        assert second.changed is False
        assert len(announced) == 1

    def test_stale_input_does_not_reannounce(self):
        announced = []
        sync = self._synchronizer(announced)
        plans = [make_plan(target=100)]
        records = [make_record(total=100)]
        sync.synchronize(plans, records)
        # Caller kept the pre-sync list
        sync.synchronize(plans, records)
        assert len(announced) == 1

    def test_reannounces_after_leaving_completed(self):
        announced = []
        sync = self._synchronizer(announced)
        plans = [make_plan(target=100)]

        done = sync.synchronize(plans, [make_record(total=100)]).plans
        undone = sync.synchronize(done, [make_record(total=10)]).plans
        assert undone[0].status == "进行中"
        sync.synchronize(undone, [make_record(total=100)])
        assert len(announced) == 2

    def test_already_completed_plan_not_announced(self):
        announced = []
        sync = self._synchronizer(announced)
        plans = [make_plan(target=100, progress=100, status="已完成")]
        sync.synchronize(plans, [make_record(total=100)])
        assert announced == []

    def test_bad_plan_isolated(self):
        sync = self._synchronizer()
        plans = [make_plan(id="bad", target="x", progress=7, status="进行中"), make_plan(id="good")]
        outcome = sync.synchronize(plans, [make_record(total=40)])
        bad, good = outcome.plans
        assert bad.progress == 0
        assert bad.status == "未开始"
        assert good.progress == 40

    def test_callback_errors_swallowed(self):
        def boom(plan):
            raise RuntimeError("notifier down")

        sync = ProgressSynchronizer(on_completed=boom, clock=lambda: FIXED_NOW)
        outcome = sync.synchronize([make_plan(target=10)], [make_record(total=10)])
        assert outcome.plans[0].status == "已完成"
        assert [p.id for p in outcome.completed] == ["plan-1"]
