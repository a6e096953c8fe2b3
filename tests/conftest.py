from __future__ import annotations

import pytest

from liftlog_engine.metrics import reset_metrics
from liftlog_engine.store import InMemoryStore


@pytest.fixture(autouse=True)
def _fresh_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
