"""Pytest configuration and fixtures."""

import pytest
from rich.console import Console

from nbstack.pipeline.orchestrator import Orchestrator
from nbstack.pipeline.store import MemoryFileStore
from nbstack.pipeline.tasks import RecordingTaskRunner


@pytest.fixture
def quiet_console() -> Console:
    """Console that swallows output."""
    return Console(quiet=True)


@pytest.fixture
def memory_store() -> MemoryFileStore:
    """Empty in-memory project tree."""
    return MemoryFileStore()


@pytest.fixture
def task_runner() -> RecordingTaskRunner:
    return RecordingTaskRunner()


@pytest.fixture
def make_orchestrator(memory_store: MemoryFileStore, task_runner: RecordingTaskRunner, quiet_console: Console):
    """Factory for orchestrators over the shared memory store."""

    def _make(**kwargs) -> Orchestrator:
        kwargs.setdefault("task_runner", task_runner)
        kwargs.setdefault("console", quiet_console)
        store = kwargs.pop("store", memory_store)
        return Orchestrator(store, **kwargs)

    return _make
