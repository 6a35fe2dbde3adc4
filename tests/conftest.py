"""Shared pytest fixtures for joinwindow."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from joinwindow.models import JoinWindowConfig


@pytest.fixture()
def start() -> datetime:
    """Fixed event start; every test reasons relative to it."""

    return datetime(2025, 6, 1, 19, 0, 0)


@pytest.fixture()
def make_config(start):
    """Factory for configs starting at ``start`` and lasting two hours."""

    def _make(**overrides) -> JoinWindowConfig:
        values = {"start_at": start, "end_at": start + timedelta(hours=2)}
        values.update(overrides)
        return JoinWindowConfig(**values)

    return _make
