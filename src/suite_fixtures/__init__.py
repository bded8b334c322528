"""
suite-fixtures: Exactly-once suite setup and teardown for parallel test runs.

This library coordinates the lifecycle of suite-level (assembly-level) test
fixtures:
- Setup runs exactly once per scope, even when many workers ask at once
- Every caller observes the same outcome (success or one cached failure)
- Failures are classified as failed or inconclusive
- Teardown failures are reported as a diagnostic or raised, caller's choice

Example:
    from suite_fixtures import FixtureLifecycleCoordinator, FixtureRoutine

    coordinator = FixtureLifecycleCoordinator("tests.integration")
    coordinator.setup_routine = FixtureRoutine.from_callable(start_services)
    coordinator.teardown_routine = FixtureRoutine.from_callable(stop_services)

    # In every worker thread, before running a test of the scope
    coordinator.ensure_setup_ran(context)

    # After the last test of the scope
    warning = coordinator.run_teardown()
    if warning:
        print(warning)
"""

from .coordinator import AsyncFixtureLifecycleCoordinator, FixtureLifecycleCoordinator
from .exceptions import (
    AssertFailedError,
    AssertInconclusiveError,
    ConfigurationError,
    FixtureFailure,
    InvalidOptionError,
    MissingContextError,
    MultipleSetupError,
    MultipleTeardownError,
    RegistryClosedError,
    SuiteFixturesError,
)
from .models import FixtureOptions, Outcome, SetupState, StackTraceInfo
from .registry import ScopeRegistry
from .routine import FixtureRoutine

try:
    from ._version import __version__  # type: ignore[import-not-found]
except ImportError:
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Main classes
    "FixtureLifecycleCoordinator",
    "AsyncFixtureLifecycleCoordinator",
    "ScopeRegistry",
    "FixtureRoutine",
    # Models
    "FixtureOptions",
    "StackTraceInfo",
    # Enums
    "Outcome",
    "SetupState",
    # Exceptions - Base
    "SuiteFixturesError",
    # Exceptions - Categories
    "ConfigurationError",
    # Exceptions - Configuration
    "MultipleSetupError",
    "MultipleTeardownError",
    "MissingContextError",
    "RegistryClosedError",
    "InvalidOptionError",
    # Exceptions - Failures
    "FixtureFailure",
    # Assertion kinds
    "AssertFailedError",
    "AssertInconclusiveError",
]
