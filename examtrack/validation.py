"""Input validation for entry forms and configuration.

The import path never uses these: imported records are coerced, not
rejected. These helpers back the CLI ``record add`` and ``plan add``
commands and cloud URL configuration.

Canonical helpers:
- ``sanitize_string``: string validation + control-char stripping
- ``sanitize_number``: numeric validation + NaN/Infinity rejection
- ``validate_record_fields`` / ``validate_plan_fields``: form validation
"""

import logging
import math
import re
import uuid
from typing import Any, Optional

from examtrack.normalize import (
    generate_record_id,
    normalize_date,
    normalize_duration,
    normalize_module,
    parse_module,
)
from examtrack.types import (
    PlanStatus,
    PlanType,
    RecordItem,
    StudyPlan,
    ValidationError,
)

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\d{2}:[0-5]\d$")


def sanitize_string(
    value: Any, field_name: str, max_length: int = 1000, required: bool = True
) -> str:
    """Sanitize and validate string inputs.

    Raises:
        ValidationError: If validation fails.
    """
    if value is None and not required:
        return ""

    if not isinstance(value, str):
        raise ValidationError(field_name, f"must be a string, got {type(value).__name__}")

    if required and not value.strip():
        raise ValidationError(field_name, "cannot be empty")

    if len(value) > max_length:
        raise ValidationError(field_name, f"too long (max {max_length} characters)")

    # Remove null bytes and control characters except newlines and tabs
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value).strip()


def sanitize_number(
    value: Any,
    field_name: str,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
) -> float:
    """Validate numeric inputs, rejecting NaN and Infinity.

    Numeric strings are accepted.

    Raises:
        ValidationError: If the value is not a finite number in range.
    """
    if isinstance(value, bool):
        raise ValidationError(field_name, "must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field_name, f"must be a number, got {value!r}")

    if math.isnan(number) or math.isinf(number):
        raise ValidationError(field_name, "must be a finite number")
    if min_val is not None and number < min_val:
        raise ValidationError(field_name, f"must be >= {min_val}")
    if max_val is not None and number > max_val:
        raise ValidationError(field_name, f"must be <= {max_val}")
    return number


def _require_date(value: Any, field_name: str) -> str:
    normalized = normalize_date(value)
    if not normalized:
        raise ValidationError(field_name, f"invalid date {value!r} (expected YYYY-MM-DD)")
    return normalized


def _require_module(value: Any) -> str:
    module = sanitize_string(value, "module", max_length=50)
    if parse_module(module) is None:
        raise ValidationError("module", f"unknown module {module!r}")
    return normalize_module(module)


def validate_record_fields(
    date: Any, module: Any, total: Any, correct: Any, duration: Any
) -> RecordItem:
    """Validate a manually entered practice record.

    Returns:
        A new RecordItem with a fresh id and canonical module label
    """
    total_n = sanitize_number(total, "total", min_val=0)
    correct_n = sanitize_number(correct, "correct", min_val=0)
    if total_n != int(total_n) or correct_n != int(correct_n):
        raise ValidationError("total", "counts must be whole numbers")
    if correct_n > total_n:
        raise ValidationError("correct", "cannot exceed total")

    duration_s = normalize_duration(sanitize_string(str(duration), "duration", max_length=10))
    if not _DURATION_RE.match(duration_s):
        raise ValidationError("duration", f"invalid duration {duration!r} (expected HH:MM)")

    return RecordItem(
        id=generate_record_id(),
        date=_require_date(date, "date"),
        module=_require_module(module),
        total=int(total_n),
        correct=int(correct_n),
        duration=duration_s,
    )


def validate_plan_fields(
    name: Any,
    module: Any,
    plan_type: Any,
    start_date: Any,
    end_date: Any,
    target: Any,
    description: Optional[str] = None,
) -> StudyPlan:
    """Validate a new study plan from the plan form.

    Returns:
        A new StudyPlan with a uuid id, progress 0 and status 未开始
    """
    name_s = sanitize_string(name, "name", max_length=100)

    try:
        type_value = PlanType(plan_type).value
    except ValueError:
        allowed = ", ".join(t.value for t in PlanType)
        raise ValidationError("type", f"must be one of {allowed}")

    start = _require_date(start_date, "startDate")
    end = _require_date(end_date, "endDate")
    if end < start:
        raise ValidationError("endDate", "must not be before startDate")

    max_target = 100 if type_value == PlanType.ACCURACY.value else None
    target_n = sanitize_number(target, "target", min_val=0, max_val=max_target)
    if target_n == int(target_n):
        target_n = int(target_n)

    return StudyPlan(
        id=str(uuid.uuid4()),
        name=name_s,
        module=_require_module(module),
        type=type_value,
        start_date=start,
        end_date=end,
        target=target_n,
        progress=0,
        status=PlanStatus.NOT_STARTED.value,
        description=sanitize_string(description, "description", required=False) or None,
    )


def validate_backend_url(url: str, *, allow_localhost_http: bool = True) -> "str | None":
    """Validate a backend URL for safe credential transmission.

    Rejects non-http/https schemes, URLs with no host, and remote HTTP
    endpoints (only localhost/127.0.0.1 are allowed over plaintext HTTP).

    Returns:
        The URL unchanged if valid, or ``None`` if rejected (with a
        warning logged for each rejection reason).
    """
    if not url:
        return None
    from urllib.parse import urlparse

    parsed = urlparse(url)
    if parsed.scheme not in {"https", "http"}:
        logger.warning("Invalid backend_url scheme; only http/https allowed.")
        return None
    if not parsed.netloc:
        logger.warning("Invalid backend_url; missing host.")
        return None
    if parsed.scheme == "http":
        if not allow_localhost_http:
            logger.warning("HTTP not allowed in this context.")
            return None
        host = parsed.hostname or ""
        if host not in {"localhost", "127.0.0.1"}:
            logger.warning("Refusing non-local http backend_url for security.")
            return None
    return url
