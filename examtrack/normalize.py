"""Normalization of heterogeneous record and module representations.

This module is the only place that translates between module machine keys
(``data-analysis``) and display labels (``资料分析``). Everything else
compares normalized values.

Policy is permissive: unknown modules pass through, malformed dates become
an empty string and bad numbers become zero. Nothing here raises on bad
input data.
"""

import logging
import math
import random
import re
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional

from examtrack.types import MODULE_LABELS, Module, RecordItem

logger = logging.getLogger(__name__)

# Both forms map to the enum member
_MODULE_LOOKUP: Dict[str, Module] = {}
for _module, _label in MODULE_LABELS.items():
    _MODULE_LOOKUP[_module.value] = _module
    _MODULE_LOOKUP[_label] = _module

# Numeric timestamps at or above this are epoch milliseconds
_MILLIS_THRESHOLD = 1e11

_LOOSE_DATE_RE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")
_DURATION_RE = re.compile(r"^(\d{1,3}):(\d{1,2})$")


def parse_module(raw: Any) -> Optional[Module]:
    """Look up a module by machine key or label. Returns None if unknown."""
    if isinstance(raw, Module):
        return raw
    if raw is None:
        return None
    return _MODULE_LOOKUP.get(str(raw).strip())


def normalize_module(raw: Any) -> str:
    """Map a machine key or label to the canonical label.

    Unknown strings are returned unchanged (stripped).
    """
    module = parse_module(raw)
    if module is not None:
        return module.label
    if raw is None:
        return ""
    return str(raw).strip()


def modules_match(a: Any, b: Any) -> bool:
    """True if two module values name the same module in either form."""
    left = normalize_module(a)
    return bool(left) and left == normalize_module(b)


def normalize_date(raw: Any) -> str:
    """Normalize a date-ish value to ``YYYY-MM-DD``.

    Accepts ISO date/datetime strings, ``YYYY/M/D``, ``date``/``datetime``
    objects and numeric epoch timestamps (seconds or milliseconds, UTC).
    Returns ``""`` when the value cannot be parsed.
    """
    if raw is None or isinstance(raw, bool):
        return ""

    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()

    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and (math.isnan(raw) or math.isinf(raw)):
            return ""
        seconds = raw / 1000 if abs(raw) >= _MILLIS_THRESHOLD else raw
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            logger.debug("Timestamp %r out of range", raw)
            return ""

    if not isinstance(raw, str):
        return ""

    text = raw.strip()
    if not text:
        return ""

    match = _LOOSE_DATE_RE.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return ""

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        logger.debug("Unparseable date %r", raw)
        return ""


def parse_iso_date(raw: Any) -> Optional[date]:
    """Normalize and convert to a ``date``, or None if unparseable."""
    text = normalize_date(raw)
    if not text:
        return None
    return date.fromisoformat(text)


def normalize_duration(raw: Any) -> str:
    """Normalize a duration to ``HH:MM``.

    Integers are taken as minutes. Strings that are not ``H:MM`` pass
    through stripped.
    """
    if raw is None or isinstance(raw, bool):
        return ""
    if isinstance(raw, int):
        minutes = max(raw, 0)
        return f"{minutes // 60:02d}:{minutes % 60:02d}"
    text = str(raw).strip()
    match = _DURATION_RE.match(text)
    if match:
        return f"{int(match.group(1)):02d}:{int(match.group(2)):02d}"
    return text


def coerce_count(raw: Any) -> int:
    """Coerce a count to a non-negative int. Bad values become 0."""
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return max(raw, 0)
    try:
        value = float(str(raw).strip())
    except ValueError:
        logger.debug("Non-numeric count %r coerced to 0", raw)
        return 0
    if math.isnan(value) or math.isinf(value):
        return 0
    return max(int(value), 0)


def generate_record_id() -> int:
    """Synthetic record id: millisecond timestamp plus a random suffix."""
    return int(time.time() * 1000) * 1000 + random.randint(0, 999)


def normalize_record_shape(raw: Mapping[str, Any]) -> RecordItem:
    """Canonicalize a raw record mapping into a RecordItem.

    Legacy ``totalCount``/``correctCount`` are accepted as aliases. An id
    that is not already an int is replaced with a fresh synthetic id.
    """
    total_raw = raw.get("total")
    if total_raw is None:
        total_raw = raw.get("totalCount")
    correct_raw = raw.get("correct")
    if correct_raw is None:
        correct_raw = raw.get("correctCount")

    total = coerce_count(total_raw)
    correct = coerce_count(correct_raw)
    if correct > total:
        logger.debug("correct=%d exceeds total=%d, clamped", correct, total)
        correct = total

    record_id = raw.get("id")
    if not isinstance(record_id, int) or isinstance(record_id, bool):
        record_id = generate_record_id()

    return RecordItem(
        id=record_id,
        date=normalize_date(raw.get("date")),
        module=normalize_module(raw.get("module")),
        total=total,
        correct=correct,
        duration=normalize_duration(raw.get("duration")),
    )
