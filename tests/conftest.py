from datetime import datetime

import pytest

from aligner.config import TIMEZONE
from aligner.workspace import WorkspaceStore

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=TIMEZONE)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store(monkeypatch):
    """Fresh workspace store shared by every module that looks one up."""
    fresh = WorkspaceStore()
    for target in (
        "aligner.api.get_store",
        "aligner.service.get_store",
        "aligner.planner.nodes.get_store",
    ):
        monkeypatch.setattr(target, lambda: fresh)
    return fresh
