"""Per-run ownership of scope coordinators."""

import logging
import threading
from collections.abc import Callable
from typing import Any

from .coordinator import FixtureLifecycleCoordinator
from .exceptions import FixtureFailure, RegistryClosedError
from .models import FixtureOptions
from .routine import FixtureRoutine

logger = logging.getLogger(__name__)


def _as_routine(routine: FixtureRoutine | Callable[..., Any]) -> FixtureRoutine:
    if isinstance(routine, FixtureRoutine):
        return routine
    return FixtureRoutine.from_callable(routine)


class ScopeRegistry:
    """
    Owns one FixtureLifecycleCoordinator per scope for a single test run.

    A registry is created when a run starts and closed when it completes,
    so hosts that reuse a process for several runs never share setup state
    between them.

    Args:
        options: Options passed to every coordinator created by the registry

    Example:
        with ScopeRegistry() as registry:
            registry.register_setup("tests.db", start_db)
            registry.register_teardown("tests.db", stop_db)

            registry.ensure_setup_ran("tests.db", context)  # from every worker
            ...
            warnings = registry.run_teardowns()
    """

    def __init__(self, options: FixtureOptions | None = None) -> None:
        self.options = options if options is not None else FixtureOptions()
        self._coordinators: dict[str, FixtureLifecycleCoordinator] = {}
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> "ScopeRegistry":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __contains__(self, scope: object) -> bool:
        return scope in self._coordinators

    def __len__(self) -> int:
        return len(self._coordinators)

    @property
    def scopes(self) -> list[str]:
        """Scope names in creation order."""
        return list(self._coordinators)

    @property
    def closed(self) -> bool:
        """Whether the run owning this registry has completed."""
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise RegistryClosedError()

    def coordinator(self, scope: str) -> FixtureLifecycleCoordinator:
        """Get the coordinator for a scope, creating it on first use."""
        self._check_open()
        coordinator = self._coordinators.get(scope)
        if coordinator is not None:
            return coordinator
        with self._lock:
            self._check_open()
            coordinator = self._coordinators.get(scope)
            if coordinator is None:
                coordinator = FixtureLifecycleCoordinator(scope, self.options)
                self._coordinators[scope] = coordinator
                logger.debug("Created coordinator for scope %r", scope)
            return coordinator

    def register_setup(self, scope: str, routine: FixtureRoutine | Callable[..., Any]) -> None:
        """
        Register the setup routine of a scope.

        Raises:
            MultipleSetupError: If the scope already has a setup routine
        """
        self.coordinator(scope).setup_routine = _as_routine(routine)

    def register_teardown(self, scope: str, routine: FixtureRoutine | Callable[..., Any]) -> None:
        """
        Register the teardown routine of a scope.

        Raises:
            MultipleTeardownError: If the scope already has a teardown routine
        """
        self.coordinator(scope).teardown_routine = _as_routine(routine)

    def ensure_setup_ran(self, scope: str, context: Any) -> None:
        """Run the setup of a scope once. Scopes without routines are a no-op."""
        self._check_open()
        coordinator = self._coordinators.get(scope)
        if coordinator is not None:
            coordinator.ensure_setup_ran(context)

    def run_teardowns(self, *, strict: bool = False) -> dict[str, str]:
        """
        Run the teardown of every scope, newest scope first.

        Args:
            strict: Raise the first FixtureFailure once all teardowns have run,
                instead of returning diagnostics

        Returns:
            Mapping of scope name to diagnostic, for failed teardowns only

        Raises:
            FixtureFailure: In strict mode, if any teardown failed
        """
        self._check_open()
        diagnostics: dict[str, str] = {}
        first_failure: FixtureFailure | None = None

        for scope, coordinator in reversed(list(self._coordinators.items())):
            if not coordinator.has_teardown:
                continue
            if not strict:
                diagnostic = coordinator.run_teardown()
                if diagnostic is not None:
                    diagnostics[scope] = diagnostic
                continue
            try:
                coordinator.run_teardown_strict()
            except FixtureFailure as e:
                diagnostics[scope] = e.message
                if first_failure is None:
                    first_failure = e

        if first_failure is not None:
            raise first_failure
        return diagnostics

    def close(self) -> None:
        """Discard all coordinators. Teardowns are not run."""
        with self._lock:
            self._coordinators.clear()
            self._closed = True
