"""JSON file storage backend.

All keys live in a single ``store.json`` under the examtrack home. Every
``set`` rewrites the file through a temp file and ``os.replace`` so readers
never observe a half-written store.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from examtrack.utils import get_examtrack_home

logger = logging.getLogger(__name__)

STORE_FILENAME = "store.json"


class LocalStorage:
    """Key/value storage persisted to a JSON file.

    Args:
        path: Store file path (default: ``<home>/store.json``)
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else get_examtrack_home() / STORE_FILENAME
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read store %s, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store %s is not a JSON object, starting empty", self.path)
            return {}
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        # Round-trip so callers cannot mutate cached state
        return json.loads(json.dumps(self._data[key]))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.loads(json.dumps(value, ensure_ascii=False))
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))
