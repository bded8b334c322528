"""Pytest fixtures for suite-fixtures tests."""

from collections.abc import Callable
from typing import Any

import pytest

from suite_fixtures import (
    AsyncFixtureLifecycleCoordinator,
    FixtureLifecycleCoordinator,
    FixtureRoutine,
)

SCOPE = "tests.suite"
DECLARING_TYPE = "tests.suite.Suite"

RoutineFactory = Callable[..., FixtureRoutine]


def make_routine(
    func: Callable[..., Any],
    name: str = "initialize",
    declaring_type: str = DECLARING_TYPE,
) -> FixtureRoutine:
    """Wrap a callable with fixed names so failure messages are predictable."""
    return FixtureRoutine.from_callable(
        func, name=name, declaring_type=declaring_type, accepts_context=True
    )


@pytest.fixture
def context() -> dict[str, str]:
    """Opaque execution context handed to setup routines."""
    return {"run_id": "run-1"}


@pytest.fixture
def routine_factory() -> RoutineFactory:
    """Factory for FixtureRoutine objects with predictable names."""
    return make_routine


@pytest.fixture
def coordinator() -> FixtureLifecycleCoordinator:
    """Fresh thread-based coordinator for a single scope."""
    return FixtureLifecycleCoordinator(SCOPE)


@pytest.fixture
def async_coordinator() -> AsyncFixtureLifecycleCoordinator:
    """Fresh asyncio-based coordinator for a single scope."""
    return AsyncFixtureLifecycleCoordinator(SCOPE)
