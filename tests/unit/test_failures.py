"""Tests for failure classification helpers."""

import pytest

from suite_fixtures import (
    AssertFailedError,
    AssertInconclusiveError,
    FixtureFailure,
    FixtureOptions,
    FixtureRoutine,
    Outcome,
)
from suite_fixtures.failures import (
    build_setup_failure,
    build_teardown_failure,
    describe_teardown_failure,
)


def _raised(error: BaseException) -> BaseException:
    """Raise and catch an error so it carries a traceback."""
    try:
        raise error
    except BaseException as e:
        return e


@pytest.fixture
def setup_routine() -> FixtureRoutine:
    return FixtureRoutine(func=print, name="initialize", declaring_type="pkg.tests.Suite")


@pytest.fixture
def teardown_routine() -> FixtureRoutine:
    return FixtureRoutine(func=print, name="cleanup", declaring_type="pkg.tests.Suite")


@pytest.fixture
def options() -> FixtureOptions:
    return FixtureOptions()


class TestBuildSetupFailure:
    """Tests for build_setup_failure."""

    def test_message_format(self, setup_routine, options) -> None:
        """Message embeds type, routine, error type and raw message."""
        failure = build_setup_failure(setup_routine, _raised(ValueError("bad port")), options)

        assert failure.message == (
            "Suite setup method pkg.tests.Suite.initialize threw exception. "
            "ValueError: bad port. Aborting test execution."
        )
        assert failure.outcome == Outcome.FAILED
        assert failure.stack_trace is not None

    def test_qualified_error_type(self, setup_routine, options) -> None:
        """Non-builtin error types are fully qualified."""
        failure = build_setup_failure(
            setup_routine, _raised(AssertInconclusiveError("later")), options
        )

        assert "suite_fixtures.exceptions.AssertInconclusiveError: later." in failure.message
        assert failure.outcome == Outcome.INCONCLUSIVE

    def test_existing_failure_returned_unchanged(self, setup_routine, options) -> None:
        """An already classified failure is not wrapped again."""
        existing = FixtureFailure(Outcome.FAILED, "done before")
        assert build_setup_failure(setup_routine, existing, options) is existing

    def test_cause_unwrapped(self, setup_routine, options) -> None:
        """Only one level of cause is unwrapped."""
        deepest = ValueError("deepest")
        middle = RuntimeError("middle")
        middle.__cause__ = deepest
        outer = _raised(TypeError("outer"))
        outer.__cause__ = middle

        failure = build_setup_failure(setup_routine, outer, options)

        assert failure.cause is middle
        assert "RuntimeError: middle" in failure.message

    def test_unraised_error_has_no_trace(self, setup_routine, options) -> None:
        """Errors that were never raised carry no stack trace."""
        failure = build_setup_failure(setup_routine, ValueError("x"), options)
        assert failure.stack_trace is None


class TestTeardownHelpers:
    """Tests for teardown diagnostics and strict failures."""

    def test_describe_generic_error(self, teardown_routine, options) -> None:
        """Generic errors use the type-prefixed message chain."""
        error = _raised(RuntimeError("disk full"))

        diagnostic = describe_teardown_failure(teardown_routine, error, options)

        assert diagnostic.startswith(
            "Suite cleanup method Suite.cleanup failed. "
            "Error Message: RuntimeError: disk full. StackTrace: "
        )
        assert "_raised" in diagnostic

    def test_describe_assertion_error(self, teardown_routine, options) -> None:
        """Assertion errors use their raw message."""
        error = _raised(AssertFailedError("3 files left"))

        diagnostic = describe_teardown_failure(teardown_routine, error, options)

        assert "Error Message: 3 files left. StackTrace:" in diagnostic

    def test_describe_plain_assert(self, teardown_routine, options) -> None:
        """Builtin AssertionError counts as assertion-style."""
        error = _raised(AssertionError("x == 1"))

        diagnostic = describe_teardown_failure(teardown_routine, error, options)

        assert "Error Message: x == 1." in diagnostic

    def test_describe_unwraps_cause(self, teardown_routine, options) -> None:
        """The explicit cause is described, with its own cause chain."""
        root = OSError("no space")
        inner = RuntimeError("flush failed")
        inner.__cause__ = root
        outer = _raised(Exception("teardown wrapper"))
        outer.__cause__ = inner

        diagnostic = describe_teardown_failure(teardown_routine, outer, options)

        assert "Error Message: RuntimeError: flush failed ---> OSError: no space." in diagnostic
        assert "teardown wrapper" not in diagnostic

    def test_strict_failure(self, teardown_routine, options) -> None:
        """Strict failures are FAILED even for inconclusive errors."""
        error = _raised(AssertInconclusiveError("unsure"))

        failure = build_teardown_failure(teardown_routine, error, options)

        assert failure.outcome == Outcome.FAILED
        assert failure.cause is error
        assert failure.message == describe_teardown_failure(teardown_routine, error, options)
