"""Storage protocol and well-known keys.

Storage is a flat key/value store of JSON values, the same contract the
browser client had with localStorage.
"""

from typing import Any, Iterator, Protocol, runtime_checkable

RECORDS_KEY = "exam-tracker-records-v2"
KNOWLEDGE_KEY = "exam-tracker-knowledge-v2"
PLANS_KEY = "exam-tracker-plans-v2"


@runtime_checkable
class Storage(Protocol):
    """Key/value persistence primitive."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored JSON value for ``key`` or ``default``."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under ``key``."""
        ...

    def remove(self, key: str) -> None:
        """Delete ``key`` if present."""
        ...

    def keys(self) -> Iterator[str]:
        ...
