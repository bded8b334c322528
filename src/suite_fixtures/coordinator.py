"""Suite-level setup and teardown coordination.

One coordinator instance exists per scope (e.g., per test module or
package). Test workers call ``ensure_setup_ran()`` before running any test
in the scope; the coordinator runs the setup routine exactly once and hands
every caller the same outcome. After the last test the engine calls
``run_teardown()`` (lenient, returns a diagnostic) or
``run_teardown_strict()`` (raises).

Two flavors share the same contract:

- ``FixtureLifecycleCoordinator`` for worker threads (``threading.Lock``)
- ``AsyncFixtureLifecycleCoordinator`` for asyncio tasks (``asyncio.Lock``)

Locks are per-coordinator; there is no process-wide state.
"""

import asyncio
import logging
import threading
from typing import Any

from .exceptions import (
    FixtureFailure,
    MissingContextError,
    MultipleSetupError,
    MultipleTeardownError,
)
from .failures import build_setup_failure, build_teardown_failure, describe_teardown_failure
from .models import FixtureOptions, SetupState
from .routine import FixtureRoutine

logger = logging.getLogger(__name__)


class _CoordinatorBase:
    """Registration, state queries and failure bookkeeping shared by both flavors."""

    # Errors that propagate to the current caller instead of being reported
    _interrupts: tuple[type[BaseException], ...] = (KeyboardInterrupt,)

    def __init__(self, scope_name: str = "", options: FixtureOptions | None = None) -> None:
        self.scope_name = scope_name
        self.options = options if options is not None else FixtureOptions()
        self._setup_routine: FixtureRoutine | None = None
        self._teardown_routine: FixtureRoutine | None = None
        self._setup_failure: FixtureFailure | None = None
        self._state = SetupState.NOT_RUN
        self._registration_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(scope_name={self.scope_name!r}, state={self._state.name})"

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    @property
    def setup_routine(self) -> FixtureRoutine | None:
        """Setup routine of the scope. Can be assigned once."""
        return self._setup_routine

    @setup_routine.setter
    def setup_routine(self, routine: FixtureRoutine | None) -> None:
        with self._registration_lock:
            if self._setup_routine is not None:
                raise MultipleSetupError(self._setup_routine.declaring_type)
            self._setup_routine = routine

    @property
    def teardown_routine(self) -> FixtureRoutine | None:
        """Teardown routine of the scope. Can be assigned once."""
        return self._teardown_routine

    @teardown_routine.setter
    def teardown_routine(self, routine: FixtureRoutine | None) -> None:
        with self._registration_lock:
            if self._teardown_routine is not None:
                raise MultipleTeardownError(self._teardown_routine.declaring_type)
            self._teardown_routine = routine

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def has_teardown(self) -> bool:
        """Whether a teardown routine is configured."""
        return self._teardown_routine is not None

    @property
    def setup_failure(self) -> FixtureFailure | None:
        """Cached failure of the setup run, if it failed."""
        return self._setup_failure

    @property
    def state(self) -> SetupState:
        """Current setup lifecycle state."""
        return self._state

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_context(self, context: Any) -> None:
        if context is None:
            raise MissingContextError(self.scope_name)

    def _begin_setup(self, routine: FixtureRoutine) -> None:
        self._state = SetupState.RUNNING
        logger.debug("Running setup %s for scope %r", routine.full_name, self.scope_name)

    def _record_setup_success(self, routine: FixtureRoutine) -> None:
        self._state = SetupState.SUCCEEDED
        logger.debug("Setup %s for scope %r succeeded", routine.full_name, self.scope_name)

    def _record_setup_error(self, routine: FixtureRoutine, error: BaseException) -> bool:
        """
        Classify and cache a setup error.

        Every error is cached as a FixtureFailure, including SystemExit and
        other BaseException subclasses.

        Returns:
            True if the original error must propagate to the current caller
            (interrupts such as KeyboardInterrupt)
        """
        failure = build_setup_failure(routine, error, self.options)
        self._setup_failure = failure
        self._state = SetupState.FAILED
        logger.warning(
            "Setup %s for scope %r failed (%s): %s",
            routine.full_name,
            self.scope_name,
            failure.outcome.value,
            failure.message,
        )
        return isinstance(error, self._interrupts) and not self.options.is_inconclusive(error)

    def _raise_if_failed(self) -> None:
        failure = self._setup_failure
        if failure is None:
            return
        # The shared instance is re-raised from many callers at once, so its
        # __traceback__ is unreliable; reporters read failure.stack_trace
        raise failure.with_traceback(None)

    def _log_teardown_failure(self, routine: FixtureRoutine, message: str) -> None:
        logger.warning(
            "Teardown %s for scope %r failed: %s", routine.full_name, self.scope_name, message
        )


class FixtureLifecycleCoordinator(_CoordinatorBase):
    """
    Runs a scope's setup routine exactly once across worker threads.

    Callers that arrive while setup is in flight block on the lock until it
    completes. Once setup has finished, callers take a lock-free fast path
    and either return or re-raise the cached FixtureFailure instance.

    Args:
        scope_name: Name of the owning scope (for logs)
        options: Classification and trace-capture options

    Example:
        coordinator = FixtureLifecycleCoordinator("tests.integration")
        coordinator.setup_routine = FixtureRoutine.from_callable(start_db)
        coordinator.teardown_routine = FixtureRoutine.from_callable(stop_db)

        coordinator.ensure_setup_ran(context)  # from every worker
        ...
        warning = coordinator.run_teardown()
    """

    def __init__(self, scope_name: str = "", options: FixtureOptions | None = None) -> None:
        super().__init__(scope_name, options)
        self._lock = threading.Lock()
        # Event gives the fast-path read a visibility guarantee across threads
        self._setup_ran = threading.Event()

    @property
    def setup_has_run(self) -> bool:
        """Whether the setup routine has been executed."""
        return self._setup_ran.is_set()

    def ensure_setup_ran(self, context: Any) -> None:
        """
        Run the setup routine if no caller has run it yet.

        Args:
            context: Execution context forwarded verbatim to the routine

        Raises:
            MissingContextError: If a setup routine exists and context is None
            FixtureFailure: If the setup routine raised (same instance every call)
        """
        routine = self._setup_routine
        if routine is None:
            return
        self._check_context(context)

        if not self._setup_ran.is_set():
            with self._lock:
                # Another caller may have finished while we waited
                if not self._setup_ran.is_set():
                    self._run_setup(routine, context)

        self._raise_if_failed()

    def _run_setup(self, routine: FixtureRoutine, context: Any) -> None:
        self._begin_setup(routine)
        try:
            routine.invoke(context)
        except BaseException as e:
            if self._record_setup_error(routine, e):
                raise
        else:
            self._record_setup_success(routine)
        finally:
            self._setup_ran.set()

    def run_teardown(self) -> str | None:
        """
        Run the teardown routine, reporting failure as a diagnostic string.

        Every call invokes the routine again; there is no has-run gate.

        Returns:
            None on success or when no teardown is configured, otherwise a
            diagnostic message
        """
        routine = self._teardown_routine
        if routine is None:
            return None

        with self._lock:
            logger.debug("Running teardown %s for scope %r", routine.full_name, self.scope_name)
            try:
                routine.invoke()
            except self._interrupts:
                raise
            except BaseException as e:
                message = describe_teardown_failure(routine, e, self.options)
                self._log_teardown_failure(routine, message)
                return message
        return None

    def run_teardown_strict(self) -> None:
        """
        Run the teardown routine, raising on failure.

        Raises:
            FixtureFailure: With Outcome.FAILED if the teardown routine raised
        """
        routine = self._teardown_routine
        if routine is None:
            return

        with self._lock:
            logger.debug("Running teardown %s for scope %r", routine.full_name, self.scope_name)
            try:
                routine.invoke()
            except self._interrupts:
                raise
            except BaseException as e:
                failure = build_teardown_failure(routine, e, self.options)
                self._log_teardown_failure(routine, failure.message)
                raise failure from failure.cause


class AsyncFixtureLifecycleCoordinator(_CoordinatorBase):
    """
    Runs a scope's setup routine exactly once across asyncio tasks.

    Same contract as FixtureLifecycleCoordinator. Routines may be plain or
    async callables. An instance must only be used from one event loop.

    Args:
        scope_name: Name of the owning scope (for logs)
        options: Classification and trace-capture options
    """

    _interrupts = (KeyboardInterrupt, asyncio.CancelledError)

    def __init__(self, scope_name: str = "", options: FixtureOptions | None = None) -> None:
        super().__init__(scope_name, options)
        self._lock = asyncio.Lock()
        self._setup_ran = False

    @property
    def setup_has_run(self) -> bool:
        """Whether the setup routine has been executed."""
        return self._setup_ran

    async def ensure_setup_ran(self, context: Any) -> None:
        """
        Run the setup routine if no task has run it yet.

        Raises:
            MissingContextError: If a setup routine exists and context is None
            FixtureFailure: If the setup routine raised (same instance every call)
        """
        routine = self._setup_routine
        if routine is None:
            return
        self._check_context(context)

        if not self._setup_ran:
            async with self._lock:
                if not self._setup_ran:
                    await self._run_setup(routine, context)

        self._raise_if_failed()

    async def _run_setup(self, routine: FixtureRoutine, context: Any) -> None:
        self._begin_setup(routine)
        try:
            await routine.invoke_async(context)
        except BaseException as e:
            # Cancellation is cached like any failure but still reaches this task
            if self._record_setup_error(routine, e):
                raise
        else:
            self._record_setup_success(routine)
        finally:
            self._setup_ran = True

    async def run_teardown(self) -> str | None:
        """
        Run the teardown routine, reporting failure as a diagnostic string.

        Returns:
            None on success or when no teardown is configured, otherwise a
            diagnostic message
        """
        routine = self._teardown_routine
        if routine is None:
            return None

        async with self._lock:
            logger.debug("Running teardown %s for scope %r", routine.full_name, self.scope_name)
            try:
                await routine.invoke_async()
            except self._interrupts:
                raise
            except BaseException as e:
                message = describe_teardown_failure(routine, e, self.options)
                self._log_teardown_failure(routine, message)
                return message
        return None

    async def run_teardown_strict(self) -> None:
        """
        Run the teardown routine, raising on failure.

        Raises:
            FixtureFailure: With Outcome.FAILED if the teardown routine raised
        """
        routine = self._teardown_routine
        if routine is None:
            return

        async with self._lock:
            logger.debug("Running teardown %s for scope %r", routine.full_name, self.scope_name)
            try:
                await routine.invoke_async()
            except self._interrupts:
                raise
            except BaseException as e:
                failure = build_teardown_failure(routine, e, self.options)
                self._log_teardown_failure(routine, failure.message)
                raise failure from failure.cause
