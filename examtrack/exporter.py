"""Export tracker state as a version 3 JSON file.

The export is the same document the importer reads back. Records, knowledge
and plans are written in their canonical shapes together with the
allow-listed settings.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from examtrack import __version__
from examtrack.types import TrackerState, utc_now

logger = logging.getLogger(__name__)

EXPORT_VERSION = 3


def export_filename(now: Optional[datetime] = None) -> str:
    """File name for an export made at ``now``: ``行测记录_<yyyy-MM-dd>.json``."""
    now = now or datetime.now()
    return f"行测记录_{now.strftime('%Y-%m-%d')}.json"


def build_export(state: TrackerState, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Build the export document for ``state``."""
    return {
        "version": EXPORT_VERSION,
        "exportedAt": now.isoformat() if now else utc_now(),
        "records": [r.to_dict() for r in state.records],
        "knowledge": [k.to_dict() for k in state.knowledge],
        "plans": [p.to_dict() for p in state.plans],
        "settings": dict(state.settings),
        "metadata": {
            "totalRecords": len(state.records),
            "totalKnowledge": len(state.knowledge),
            "totalPlans": len(state.plans),
            "appVersion": __version__,
        },
    }


def write_export(state: TrackerState, output_dir: Path, now: Optional[datetime] = None) -> Path:
    """Write an export file into ``output_dir`` and return its path."""
    output_dir = Path(output_dir).expanduser()
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / export_filename(now)
    document = build_export(state, now)
    path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Exported %d records to %s", len(state.records), path)
    return path
