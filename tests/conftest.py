"""Shared pytest configuration."""

import pytest

from reachable_nodes.solver import execution


@pytest.fixture(autouse=True)
def serial_executor(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run tasks in the main thread unless a test opts into a pool."""
    monkeypatch.setenv(execution.RN_EXECUTOR_ENV, "serial")
