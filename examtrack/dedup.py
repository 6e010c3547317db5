"""Record dedup by identity key.

Two records are the same practice session when date, canonical module,
total, correct and duration all match. Ids never take part: they are
generator-assigned and do not survive export/import.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Set

from examtrack.normalize import normalize_module
from examtrack.types import RecordItem

logger = logging.getLogger(__name__)

# ASCII unit separator; does not occur in dates, labels or HH:MM durations
KEY_DELIMITER = "\x1f"


def record_identity_key(record: RecordItem) -> str:
    """Build the dedup identity key for a record."""
    return KEY_DELIMITER.join(
        [
            record.date,
            normalize_module(record.module),
            str(record.total),
            str(record.correct),
            record.duration,
        ]
    )


def existing_keys(records: Iterable[RecordItem]) -> Set[str]:
    return {record_identity_key(r) for r in records}


@dataclass
class DedupResult:
    """Outcome of filtering an incoming batch."""

    added: List[RecordItem] = field(default_factory=list)
    repeated_existing: int = 0  # already present in persisted state
    repeated_in_batch: int = 0  # later copies inside the batch itself

    @property
    def repeated(self) -> int:
        return self.repeated_existing + self.repeated_in_batch


def dedupe_records(incoming: Iterable[RecordItem], existing: Iterable[RecordItem]) -> DedupResult:
    """Filter ``incoming`` against ``existing`` and against itself.

    A record whose key is already in ``existing`` is rejected. Within the
    batch only the first occurrence of a key is kept. Accepted records keep
    their ids; no id collision check is performed.
    """
    known = existing_keys(existing)
    seen: Set[str] = set()
    result = DedupResult()

    for record in incoming:
        key = record_identity_key(record)
        if key in known:
            result.repeated_existing += 1
            continue
        if key in seen:
            result.repeated_in_batch += 1
            continue
        seen.add(key)
        result.added.append(record)

    if result.repeated:
        logger.debug(
            "Dedup skipped %d records (%d existing, %d in batch)",
            result.repeated,
            result.repeated_existing,
            result.repeated_in_batch,
        )
    return result
