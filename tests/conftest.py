"""Shared pytest fixtures for test modules."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.fakes.sources import FakeClock

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Remove FFTIERS__* environment variables so config tests see only their own layers."""
    import os

    for name in list(os.environ):
        if name.startswith("FFTIERS"):
            monkeypatch.delenv(name)
    yield
