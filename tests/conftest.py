# File: tests/conftest.py
from __future__ import annotations

from typing import Optional

import pytest

from goal_scout.config import CrawlConfig

from .fakes import SEED, EventLog


@pytest.fixture()
def make_config():
    """
    Factory for CrawlConfig with fast guard defaults; keyword arguments override
    top-level fields, ``guard=`` takes a dict of GuardConfig overrides.
    """

    def _make(guard: Optional[dict] = None, **overrides) -> CrawlConfig:
        guard_values = {"max_execution_time_ms": 5_000, "deadlock_detection_ms": 2_000, "deadlock_check_interval_ms": 50}
        guard_values.update(guard or {})
        data = {"base_url": SEED, "scraping_goal": "python asyncio guide", "config": guard_values}
        data.update(overrides)
        return CrawlConfig(**data)

    return _make


@pytest.fixture()
def event_log() -> EventLog:
    return EventLog()
