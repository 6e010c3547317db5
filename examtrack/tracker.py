"""Tracker: the main interface to examtrack state.

The tracker loads records, knowledge, plans and settings from a storage
backend, stages imports for confirmation, commits them, and keeps plan
progress current by running the progress synchronizer after every change
to records or plans.

Examples:
    t = Tracker()
    bundle = t.stage_import_file("行测记录_2024-05-01.json")
    print(bundle.import_stats.to_dict())
    t.commit_import()
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from examtrack.dedup import dedupe_records
from examtrack.exporter import build_export, write_export
from examtrack.importers.json_importer import (
    JsonImporter,
    merge_import,
    normalize_knowledge,
    normalize_plans,
    normalize_records,
)
from examtrack.logging_config import log_export, log_import, log_plan_completed
from examtrack.normalize import normalize_module
from examtrack.plans import ProgressSynchronizer, SyncOutcome
from examtrack.protocols import Notification, Notifier, NullNotifier
from examtrack.settings import ALLOWED_SETTINGS_KEYS, Settings, parse_setting
from examtrack.storage import KNOWLEDGE_KEY, PLANS_KEY, RECORDS_KEY, LocalStorage, Storage
from examtrack.types import (
    ImportBundle,
    ImportStats,
    KnowledgeItem,
    PlanStatus,
    RecordItem,
    StudyPlan,
    TrackerState,
)

logger = logging.getLogger(__name__)


class Tracker:
    """Owns tracker state and the single write path into storage.

    Args:
        storage: Storage backend (default: LocalStorage in the examtrack home)
        notifier: Notification sink for user-facing messages
        clock: Current-time source for plan deadlines (default: datetime.now)
    """

    def __init__(
        self,
        storage: Optional[Storage] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._storage = storage if storage is not None else LocalStorage()
        self._notifier = notifier or NullNotifier()
        self._synchronizer = ProgressSynchronizer(
            on_completed=self._on_plan_completed, clock=clock
        )
        self._pending: Optional[ImportBundle] = None
        self._state = self._load_state()

        logger.debug(
            "Tracker initialized with storage: %s, records: %d, plans: %d",
            type(self._storage).__name__,
            len(self._state.records),
            len(self._state.plans),
        )
        self.refresh_plans()

    # === State ===

    def _load_state(self) -> TrackerState:
        raw_records = self._storage.get(RECORDS_KEY, [])
        raw_knowledge = self._storage.get(KNOWLEDGE_KEY, [])
        raw_plans = self._storage.get(PLANS_KEY, [])

        settings: Dict[str, str] = {}
        for key in sorted(ALLOWED_SETTINGS_KEYS):
            value = self._storage.get(key)
            if value is not None:
                settings[key] = str(value)

        return TrackerState(
            records=normalize_records(raw_records if isinstance(raw_records, list) else []),
            knowledge=normalize_knowledge(raw_knowledge if isinstance(raw_knowledge, list) else []),
            plans=normalize_plans(raw_plans if isinstance(raw_plans, list) else []),
            settings=settings,
        )

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def records(self) -> List[RecordItem]:
        return self._state.records

    @property
    def knowledge(self) -> List[KnowledgeItem]:
        return self._state.knowledge

    @property
    def plans(self) -> List[StudyPlan]:
        return self._state.plans

    @property
    def settings(self) -> Settings:
        return Settings.from_storage_map(self._state.settings)

    @property
    def pending_import(self) -> Optional[ImportBundle]:
        return self._pending

    def _set_records(self, records: List[RecordItem]) -> None:
        self._storage.set(RECORDS_KEY, [r.to_dict() for r in records])
        self._state.records = records

    def _set_knowledge(self, knowledge: List[KnowledgeItem]) -> None:
        self._storage.set(KNOWLEDGE_KEY, [k.to_dict() for k in knowledge])
        self._state.knowledge = knowledge

    def _set_plans(self, plans: List[StudyPlan]) -> None:
        self._storage.set(PLANS_KEY, [p.to_dict() for p in plans])
        self._state.plans = plans

    def _apply_settings(self, values: Mapping[str, str]) -> List[str]:
        applied = []
        merged = dict(self._state.settings)
        for key, value in values.items():
            self._storage.set(key, value)
            merged[key] = value
            applied.append(key)
        self._state.settings = merged
        return applied

    def _store_settings(self, values: Mapping[str, Any]) -> List[str]:
        """Store allow-listed values that parse, in canonical string form.

        Invalid values are skipped so the previous setting stays in place.
        """
        valid: Dict[str, Any] = {}
        for key, value in values.items():
            if key not in ALLOWED_SETTINGS_KEYS:
                logger.debug("Ignoring setting outside allow-list: %s", key)
                continue
            try:
                parse_setting(key, value)
            except ValueError as e:
                logger.warning("Ignoring invalid value %r for setting %s: %s", value, key, e)
                continue
            valid[key] = value
        storage_map = self.settings.with_updates(valid).to_storage_map()
        return self._apply_settings({k: storage_map[k] for k in valid})

    # === Plan progress ===

    def _on_plan_completed(self, plan: StudyPlan) -> None:
        log_plan_completed(plan.id, plan.name, plan.progress)
        self._notifier.notify(
            Notification(
                type="success",
                message="计划完成",
                description=f"恭喜完成学习计划「{plan.name}」",
            )
        )

    def refresh_plans(self) -> SyncOutcome:
        """Recompute plan progress; persist only when something changed."""
        outcome = self._synchronizer.synchronize(self._state.plans, self._state.records)
        if outcome.changed:
            self._set_plans(outcome.plans)
        return outcome

    # === Import ===

    def stage_import(self, file_contents: str) -> ImportBundle:
        """Merge import contents against current state and hold the result.

        Raises:
            ParseError: If the content is not valid JSON
            SchemaError: If the container shape is not recognized
        """
        bundle = merge_import(file_contents, self._state)
        self._pending = bundle
        return bundle

    def stage_import_file(self, file_path: str) -> ImportBundle:
        """Like :meth:`stage_import`, reading from a file."""
        bundle = JsonImporter(file_path).stage(self._state)
        self._pending = bundle
        return bundle

    def cancel_import(self) -> None:
        """Drop the pending import without touching state."""
        if self._pending is not None:
            logger.info("Pending import cancelled")
        self._pending = None

    def commit_import(self, bundle: Optional[ImportBundle] = None) -> ImportStats:
        """Commit a staged bundle into storage.

        One state replacement per data kind. The staged new records are
        deduplicated again against the current records, so records added
        after staging are kept. Knowledge and plans are replaced only when
        the import carried them. Settings are written only for allow-listed
        keys whose values parse. Plan progress is recomputed afterwards.

        Raises:
            ValueError: If there is nothing to commit
        """
        bundle = bundle or self._pending
        if bundle is None:
            raise ValueError("No pending import to commit")

        added = dedupe_records(bundle.added_records, self._state.records).added
        if len(added) != len(bundle.added_records):
            logger.info(
                "%d staged records already present at commit",
                len(bundle.added_records) - len(added),
            )
        self._set_records(self._state.records + added)
        if bundle.knowledge_replaced:
            self._set_knowledge(list(bundle.knowledge))
        if bundle.plans_replaced:
            self._set_plans(list(bundle.plans))
        applied = self._store_settings(bundle.settings)
        self._pending = None

        self.refresh_plans()

        stats = bundle.import_stats
        log_import(stats.total, stats.added, stats.repeated)
        logger.info(
            "Import committed: %d added, %d repeated, %d settings applied",
            stats.added,
            stats.repeated,
            len(applied),
        )
        self._notifier.notify(
            Notification(
                type="success",
                message="导入成功",
                description=f"成功导入 {stats.added} 条记录，跳过 {stats.repeated} 条重复记录。",
            )
        )
        return stats

    # === Writers ===

    def add_record(self, record: RecordItem) -> RecordItem:
        """Append a record and recompute plans."""
        self._set_records(self._state.records + [record])
        self.refresh_plans()
        return record

    def add_plan(self, plan: StudyPlan) -> StudyPlan:
        """Add a plan and compute its progress right away."""
        self._set_plans(self._state.plans + [plan])
        self.refresh_plans()
        return next(p for p in self._state.plans if p.id == plan.id)

    def delete_plan(self, plan_id: str) -> bool:
        remaining = [p for p in self._state.plans if p.id != plan_id]
        if len(remaining) == len(self._state.plans):
            return False
        self._set_plans(remaining)
        return True

    def update_settings(self, values: Mapping[str, str]) -> Settings:
        """Validate and store allow-listed settings.

        Invalid values keep their previous setting.
        """
        self._store_settings(values)
        return self.settings

    # === Export / summary ===

    def export_document(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return build_export(self._state, now)

    def export(self, output_dir: Path, now: Optional[datetime] = None) -> Path:
        """Write a version 3 export file into ``output_dir``."""
        path = write_export(self._state, output_dir, now)
        log_export(
            str(path), len(self._state.records), len(self._state.knowledge), len(self._state.plans)
        )
        self._notifier.notify(
            Notification(
                type="success",
                message="导出成功",
                description=(
                    f"已导出 {len(self._state.records)} 条记录、"
                    f"{len(self._state.knowledge)} 条知识点、{len(self._state.plans)} 个计划。"
                ),
            )
        )
        return path

    def summary(self, module: Optional[str] = None) -> Dict[str, Any]:
        """Totals over all records, optionally for one module."""
        records = self._state.records
        if module:
            label = normalize_module(module)
            records = [r for r in records if normalize_module(r.module) == label]
        total_questions = sum(r.total for r in records)
        total_correct = sum(r.correct for r in records)
        accuracy = round(total_correct / total_questions * 100, 1) if total_questions else 0.0
        active = sum(1 for p in self._state.plans if p.status == PlanStatus.IN_PROGRESS.value)
        return {
            "total_records": len(records),
            "total_questions": total_questions,
            "total_correct": total_correct,
            "average_accuracy": accuracy,
            "total_knowledge": len(self._state.knowledge),
            "active_plans": active,
        }
