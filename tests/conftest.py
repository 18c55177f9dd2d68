"""Shared fixtures: every storage backend, and a router over each."""

import itertools

import pytest

from thehub.application import RequestRouter
from thehub.infrastructure.persistence import MemoryStorage, SqliteStorage, SpreadsheetStorage


class StepClock:
    """Deterministic, strictly increasing ISO timestamps."""

    def __init__(self):
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        n = next(self._counter)
        return f"2024-06-01T10:{n // 60:02d}:{n % 60:02d}+00:00"


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture(params=["memory", "sqlite", "spreadsheet"])
def storage(request, tmp_path):
    """One initialised store per backend."""
    if request.param == "memory":
        backend = MemoryStorage()
    elif request.param == "sqlite":
        backend = SqliteStorage(str(tmp_path / "thehub.db"))
    else:
        backend = SpreadsheetStorage(str(tmp_path / "thehub.xlsx"))
    backend.init()
    return backend


@pytest.fixture
def memory_storage():
    backend = MemoryStorage()
    backend.init()
    return backend


@pytest.fixture
def router(memory_storage, clock):
    return RequestRouter(memory_storage, clock=clock)
