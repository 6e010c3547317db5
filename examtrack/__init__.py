"""examtrack - exam practice tracker with record reconciliation and plan progress."""

__version__ = "0.3.0"

from examtrack.tracker import Tracker  # noqa: E402
from examtrack.types import (  # noqa: E402
    ImportBundle,
    ImportStats,
    ParseError,
    SchemaError,
    ValidationError,
)

__all__ = [
    "Tracker",
    "ImportBundle",
    "ImportStats",
    "ParseError",
    "SchemaError",
    "ValidationError",
    "__version__",
]
