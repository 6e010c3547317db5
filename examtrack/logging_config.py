"""Logging setup for examtrack.

Library modules log through ``logging.getLogger(__name__)`` and configure
nothing. Front ends call :func:`setup_examtrack_logging` once to route the
``examtrack`` logger to a dated file under ``<home>/logs``.

Data events (imports, exports, plan completions, sync) additionally go to a
plain append-only ``data-events-<date>.log`` for later inspection.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from examtrack.utils import get_examtrack_home

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _logs_dir() -> Path:
    logs = get_examtrack_home() / "logs"
    logs.mkdir(parents=True, exist_ok=True)
    return logs


def _today() -> str:
    return datetime.now().strftime("%Y-%m-%d")


def setup_examtrack_logging(level: Optional[str] = "INFO") -> logging.Logger:
    """Configure the ``examtrack`` logger.

    Adds a file handler at ``<home>/logs/local-<date>.log`` and, at DEBUG, a
    console handler. Calling it again does not add duplicate handlers.

    Args:
        level: Level name, case-insensitive. Unknown names fall back to INFO.

    Returns:
        The configured ``examtrack`` logger
    """
    logger = logging.getLogger("examtrack")
    resolved = getattr(logging, str(level or "INFO").upper(), None)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logger.setLevel(resolved)

    formatter = logging.Formatter(LOG_FORMAT)

    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        log_file = _logs_dir() / f"local-{_today()}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if resolved <= logging.DEBUG and not has_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger


def log_data_event(event_type: str, details: str) -> None:
    """Append one line to the data event log."""
    line = f"{datetime.now().isoformat(timespec='seconds')} | {event_type} | {details}\n"
    event_file = _logs_dir() / f"data-events-{_today()}.log"
    with open(event_file, "a", encoding="utf-8") as f:
        f.write(line)


def log_import(total: int, added: int, repeated: int, source: str = "") -> None:
    details = f"total={total}, added={added}, repeated={repeated}"
    if source:
        details += f", source={source}"
    log_data_event("import", details)


def log_export(path: str, records: int, knowledge: int, plans: int) -> None:
    log_data_event(
        "export", f"path={path}, records={records}, knowledge={knowledge}, plans={plans}"
    )


def log_plan_completed(plan_id: str, name: str, progress: float) -> None:
    log_data_event("plan_completed", f"id={plan_id}, name={name}, progress={progress}")


def log_sync(direction: str, count: int, errors: int = 0) -> None:
    log_data_event("sync", f"direction={direction}, count={count}, errors={errors}")
