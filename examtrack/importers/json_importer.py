"""JSON importer for examtrack.

Imports the JSON format written by ``examtrack export`` (version 3) and the
older container shapes still found in the wild:

- a bare array of records
- ``{"records": [...], "knowledge": [...], "plans": [...], "settings": {...}}``
- ``{"data": {"records": [...]}}``
- ``{"data": [...]}``

Nothing here mutates state. ``merge_import`` returns a staged
:class:`~examtrack.types.ImportBundle` that the caller commits or drops.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator

from examtrack.dedup import dedupe_records
from examtrack.normalize import normalize_record_shape
from examtrack.types import (
    ImportBundle,
    ImportStats,
    KnowledgeItem,
    ParseError,
    RecordItem,
    SchemaError,
    StudyPlan,
    TrackerState,
)

logger = logging.getLogger(__name__)

_ARRAY = {"type": "array"}
# Optional sections may be present as an explicit null
_OPTIONAL_ARRAY = {"type": ["array", "null"]}
_OPTIONAL_OBJECT = {"type": ["object", "null"]}

# Checked in order; the first matching shape wins.
CONTAINER_SHAPES: List[Tuple[str, Dict[str, Any]]] = [
    ("records_array", _ARRAY),
    (
        "bundle",
        {
            "type": "object",
            "required": ["records"],
            "properties": {
                "records": _ARRAY,
                "knowledge": _OPTIONAL_ARRAY,
                "knowledgeItems": _OPTIONAL_ARRAY,
                "plans": _OPTIONAL_ARRAY,
                "studyPlans": _OPTIONAL_ARRAY,
                "settings": _OPTIONAL_OBJECT,
            },
        },
    ),
    (
        "nested_data",
        {
            "type": "object",
            "required": ["data"],
            "properties": {
                "data": {
                    "type": "object",
                    "required": ["records"],
                    "properties": {"records": _ARRAY},
                }
            },
        },
    ),
    (
        "data_array",
        {"type": "object", "required": ["data"], "properties": {"data": _ARRAY}},
    ),
]

_VALIDATORS = [(name, Draft7Validator(schema)) for name, schema in CONTAINER_SHAPES]


def detect_shape(data: Any) -> str:
    """Return the name of the container shape ``data`` matches.

    Raises:
        SchemaError: If no accepted shape matches.
    """
    for name, validator in _VALIDATORS:
        if validator.is_valid(data):
            return name
    raise SchemaError(
        "Unrecognized import format: expected a record array, "
        "an object with 'records', or an object with 'data.records'"
    )


def _extract_sections(data: Any, shape: str) -> Dict[str, Any]:
    """Pull the raw sections out of a detected container."""
    if shape == "records_array":
        return {"records": data}
    if shape == "nested_data":
        return {"records": data["data"]["records"]}
    if shape == "data_array":
        return {"records": data["data"]}
    knowledge = data.get("knowledge")
    plans = data.get("plans")
    return {
        "records": data["records"],
        "knowledge": knowledge if knowledge is not None else data.get("knowledgeItems"),
        "plans": plans if plans is not None else data.get("studyPlans"),
        "settings": data.get("settings"),
        "version": data.get("version"),
        "exported_at": data.get("exportedAt"),
    }


def normalize_records(raw_records: List[Any]) -> List[RecordItem]:
    """Normalize each record entry. Non-object entries are skipped."""
    records: List[RecordItem] = []
    skipped = 0
    for raw in raw_records:
        if not isinstance(raw, dict):
            skipped += 1
            continue
        records.append(normalize_record_shape(raw))
    if skipped:
        logger.warning("Skipped %d non-object record entries", skipped)
    return records


def normalize_knowledge(raw_items: Optional[List[Any]]) -> List[KnowledgeItem]:
    """Keep knowledge items that have a non-empty module.

    A missing or non-string id is replaced with a fresh uuid.
    """
    items: List[KnowledgeItem] = []
    dropped = 0
    for raw in raw_items or []:
        if not isinstance(raw, dict):
            dropped += 1
            continue
        module = raw.get("module")
        if not isinstance(module, str) or not module.strip():
            dropped += 1
            continue
        item_id = raw.get("id")
        if not isinstance(item_id, str) or not item_id:
            item_id = str(uuid.uuid4())
        fields = {k: v for k, v in raw.items() if k not in ("id", "module")}
        items.append(KnowledgeItem(id=item_id, module=module, fields=fields))
    if dropped:
        logger.warning("Dropped %d knowledge items without a module", dropped)
    return items


def normalize_plans(raw_plans: Optional[List[Any]]) -> List[StudyPlan]:
    """Plans are trusted verbatim; only non-objects are dropped."""
    return [StudyPlan.from_dict(p) for p in raw_plans or [] if isinstance(p, dict)]


def stage_settings(raw_settings: Any) -> Dict[str, str]:
    """Copy settings into a string map. Allow-listing happens on commit."""
    if not isinstance(raw_settings, dict):
        return {}
    staged: Dict[str, str] = {}
    for key, value in raw_settings.items():
        if value is None:
            continue
        if isinstance(value, str):
            staged[str(key)] = value
        else:
            staged[str(key)] = json.dumps(value, ensure_ascii=False)
    return staged


def merge_import(file_contents: str, current_state: TrackerState) -> ImportBundle:
    """Merge import file contents into a staged bundle.

    Records are additive: the bundle holds the existing records followed by
    the incoming records that survive dedup. Knowledge and plans replace the
    current lists only when the import carries a non-empty array; an empty
    or missing array keeps what is there.

    Args:
        file_contents: Raw JSON text of the import file
        current_state: State to merge into (not modified)

    Returns:
        ImportBundle ready for confirmation

    Raises:
        ParseError: If the content is not valid JSON
        SchemaError: If the JSON matches no accepted container shape
    """
    try:
        data = json.loads(file_contents)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Import file is not valid JSON: {e}", cause=e) from e

    shape = detect_shape(data)
    sections = _extract_sections(data, shape)
    logger.debug("Import container shape: %s", shape)

    incoming = normalize_records(sections["records"])
    dedup = dedupe_records(incoming, current_state.records)

    stats = ImportStats(
        total=len(incoming),
        added=len(dedup.added),
        repeated_existing=dedup.repeated_existing,
        repeated_in_batch=dedup.repeated_in_batch,
    )

    imported_knowledge = normalize_knowledge(sections.get("knowledge"))
    imported_plans = normalize_plans(sections.get("plans"))

    version = sections.get("version")
    return ImportBundle(
        records=list(current_state.records) + dedup.added,
        knowledge=imported_knowledge if imported_knowledge else list(current_state.knowledge),
        plans=imported_plans if imported_plans else list(current_state.plans),
        settings=stage_settings(sections.get("settings")),
        import_stats=stats,
        added_records=dedup.added,
        knowledge_replaced=bool(imported_knowledge),
        plans_replaced=bool(imported_plans),
        source_version=version if isinstance(version, int) else None,
        exported_at=sections.get("exported_at"),
    )


class JsonImporter:
    """Stage imports from examtrack JSON export files on disk."""

    def __init__(self, file_path: str):
        self.file_path = Path(file_path).expanduser()

    def read(self) -> str:
        """Read the file contents.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"File not found: {self.file_path}")
        return self.file_path.read_text(encoding="utf-8")

    def stage(self, current_state: TrackerState) -> ImportBundle:
        """Read and merge the file against ``current_state``."""
        return merge_import(self.read(), current_state)
