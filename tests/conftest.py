"""
Pytest fixtures and test configuration for examtrack tests.
"""

import logging
from datetime import datetime

import pytest

from examtrack.protocols import CollectingNotifier
from examtrack.storage import InMemoryStorage
from examtrack.tracker import Tracker
from examtrack.types import RecordItem, StudyPlan

FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0)


@pytest.fixture(autouse=True)
def examtrack_home(tmp_path_factory, monkeypatch):
    """Point EXAMTRACK_DATA_DIR at a temp dir and clear cloud settings."""
    home = tmp_path_factory.mktemp("examtrack-home")
    monkeypatch.setenv("EXAMTRACK_DATA_DIR", str(home))
    monkeypatch.delenv("EXAMTRACK_BACKEND_URL", raising=False)
    monkeypatch.delenv("EXAMTRACK_AUTH_TOKEN", raising=False)
    monkeypatch.delenv("EXAMTRACK_LOG_LEVEL", raising=False)
    yield home
    logger = logging.getLogger("examtrack")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def make_record(
    date="2024-01-10", module="资料分析", total=10, correct=8, duration="00:20", id=1
) -> RecordItem:
    return RecordItem(
        id=id, date=date, module=module, total=total, correct=correct, duration=duration
    )


def make_plan(
    id="plan-1",
    type="题量",
    target=100,
    module="资料分析",
    start_date="2024-01-01",
    end_date="2024-01-31",
    status="未开始",
    progress=0,
    name="一月资料分析",
) -> StudyPlan:
    return StudyPlan(
        id=id,
        name=name,
        module=module,
        type=type,
        start_date=start_date,
        end_date=end_date,
        target=target,
        progress=progress,
        status=status,
    )


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def tracker(storage, notifier, fixed_clock):
    """Tracker over in-memory storage with a fixed clock."""
    return Tracker(storage=storage, notifier=notifier, clock=fixed_clock)
