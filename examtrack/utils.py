"""Utility helpers shared across examtrack."""

import os
from pathlib import Path

DEFAULT_HOME_DIRNAME = ".examtrack"


def get_examtrack_home() -> Path:
    """Return the examtrack data directory, creating it if needed.

    ``EXAMTRACK_DATA_DIR`` overrides the default ``~/.examtrack``.
    """
    env_dir = os.environ.get("EXAMTRACK_DATA_DIR")
    home = Path(env_dir).expanduser() if env_dir else Path.home() / DEFAULT_HOME_DIRNAME
    home.mkdir(parents=True, exist_ok=True)
    return home
