"""
Shared data types for examtrack.

Records, knowledge items, study plans and the transient import bundle all
live here. These are the vocabulary shared by the normalizer, the importer,
the plan engine and storage.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utc_now() -> str:
    """Get current timestamp as ISO string in UTC."""
    return datetime.now(timezone.utc).isoformat()


# === Enums ===


class Module(str, Enum):
    """Exam modules.

    The enum value is the machine key used in legacy exports; ``label`` is
    the canonical display label used for matching and storage.
    """

    DATA_ANALYSIS = "data-analysis"
    POLITICS = "politics"
    MATH = "math"
    COMMON = "common"
    VERBAL = "verbal"
    LOGIC = "logic"

    @property
    def label(self) -> str:
        return MODULE_LABELS[self]


MODULE_LABELS: Dict[Module, str] = {
    Module.DATA_ANALYSIS: "资料分析",
    Module.POLITICS: "政治理论",
    Module.MATH: "数量关系",
    Module.COMMON: "常识判断",
    Module.VERBAL: "言语理解",
    Module.LOGIC: "判断推理",
}


class PlanType(str, Enum):
    """What a study plan measures."""

    QUESTION_COUNT = "题量"
    ACCURACY = "正确率"
    WRONG_COUNT = "错题数"


class PlanStatus(str, Enum):
    """Derived plan status. Recomputed from records, never authored."""

    NOT_STARTED = "未开始"
    IN_PROGRESS = "进行中"
    COMPLETED = "已完成"
    FAILED = "未达成"



# === Errors ===


class ExamtrackError(Exception):
    """Base class for examtrack errors."""


class ParseError(ExamtrackError):
    """Import file content is not valid JSON."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class SchemaError(ExamtrackError):
    """Valid JSON, but none of the accepted container shapes."""


class ValidationError(ExamtrackError, ValueError):
    """Raised by entry forms (plan/record add) for invalid field values."""

    def __init__(self, field_name: str, message: str):
        super().__init__(f"{field_name}: {message}")
        self.field_name = field_name


class CloudSyncError(ExamtrackError):
    """Cloud backup request failed (transport or HTTP status)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# === Data types ===


@dataclass
class RecordItem:
    """A logged practice session.

    Identity for dedup is (date, module, total, correct, duration), not id.
    """

    id: int
    date: str  # YYYY-MM-DD, or "" when the source date was unparseable
    module: str  # canonical label
    total: int = 0
    correct: int = 0
    duration: str = ""  # HH:MM

    @property
    def wrong(self) -> int:
        return self.total - self.correct

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "module": self.module,
            "total": self.total,
            "correct": self.correct,
            "duration": self.duration,
        }


@dataclass
class KnowledgeItem:
    """A knowledge note. Only ``id`` and ``module`` are structured."""

    id: str
    module: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.fields)
        data["id"] = self.id
        data["module"] = self.module
        return data


@dataclass
class StudyPlan:
    """A study plan.

    ``progress`` and ``status`` are derived from records and overwritten on
    every recomputation. ``extra`` carries fields this version does not know
    about so they survive a load/export round.
    """

    id: str
    name: str = ""
    module: str = ""
    type: str = ""
    start_date: str = ""
    end_date: str = ""
    target: Any = 0
    progress: float = 0
    status: str = PlanStatus.NOT_STARTED.value
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = (
        "id",
        "name",
        "module",
        "type",
        "startDate",
        "endDate",
        "target",
        "progress",
        "status",
        "description",
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudyPlan":
        """Build a plan without validating it. Plans are trusted verbatim."""
        extra = {k: v for k, v in data.items() if k not in cls._KNOWN_KEYS}
        plan_id = data.get("id")
        return cls(
            id="" if plan_id is None else str(plan_id),
            name=data.get("name") or "",
            module=data.get("module") or "",
            type=data.get("type") or "",
            start_date=data.get("startDate") or "",
            end_date=data.get("endDate") or "",
            target=data.get("target", 0),
            progress=data.get("progress", 0) or 0,
            status=data.get("status") or PlanStatus.NOT_STARTED.value,
            description=data.get("description"),
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "module": self.module,
                "type": self.type,
                "startDate": self.start_date,
                "endDate": self.end_date,
                "target": self.target,
                "progress": self.progress,
                "status": self.status,
            }
        )
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass
class ImportStats:
    """Counts for a staged import.

    ``repeated`` is the sum of records already present in local state and
    records repeated inside the imported batch itself.
    """

    total: int = 0
    added: int = 0
    repeated_existing: int = 0
    repeated_in_batch: int = 0

    @property
    def repeated(self) -> int:
        return self.repeated_existing + self.repeated_in_batch

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "added": self.added, "repeated": self.repeated}


@dataclass
class TrackerState:
    """In-memory state. Lists are replaced wholesale, never mutated."""

    records: List[RecordItem] = field(default_factory=list)
    knowledge: List[KnowledgeItem] = field(default_factory=list)
    plans: List[StudyPlan] = field(default_factory=list)
    settings: Dict[str, str] = field(default_factory=dict)


@dataclass
class ImportBundle:
    """A staged, unconfirmed import.

    Held until the caller commits or cancels it; never partially applied.
    ``records`` already contains the existing records followed by the newly
    added ones.
    """

    records: List[RecordItem]
    knowledge: List[KnowledgeItem]
    plans: List[StudyPlan]
    settings: Dict[str, str]
    import_stats: ImportStats
    added_records: List[RecordItem] = field(default_factory=list)
    knowledge_replaced: bool = False
    plans_replaced: bool = False
    source_version: Optional[int] = None
    exported_at: Optional[str] = None
