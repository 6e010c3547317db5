"""examtrack storage backends.

Local-first key/value storage: a JSON file on disk, or memory for tests.
"""

from .base import KNOWLEDGE_KEY, PLANS_KEY, RECORDS_KEY, Storage
from .local import LocalStorage
from .memory import InMemoryStorage

__all__ = [
    "Storage",
    "LocalStorage",
    "InMemoryStorage",
    "RECORDS_KEY",
    "KNOWLEDGE_KEY",
    "PLANS_KEY",
]
