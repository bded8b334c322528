"""Exceptions for suite-fixtures."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Outcome, StackTraceInfo


# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class SuiteFixturesError(Exception):
    """
    Base exception for all suite-fixtures errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause.
    """

    pass


# ---------------------------------------------------------------------------
# Category Exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(SuiteFixturesError):
    """
    Base exception for configuration errors.

    Raised when a scope is wired up incorrectly: a second setup or teardown
    routine, a missing execution context, or invalid options. These are
    fatal to the registration or call site and are never retried.
    """

    pass


# ---------------------------------------------------------------------------
# Configuration Exceptions
# ---------------------------------------------------------------------------


class MultipleSetupError(ConfigurationError):
    """Raised when a scope declares more than one setup routine."""

    def __init__(self, declaring_type: str) -> None:
        self.declaring_type = declaring_type
        super().__init__(
            f"{declaring_type}: Cannot define more than one suite setup method "
            "inside a scope."
        )


class MultipleTeardownError(ConfigurationError):
    """Raised when a scope declares more than one teardown routine."""

    def __init__(self, declaring_type: str) -> None:
        self.declaring_type = declaring_type
        super().__init__(
            f"{declaring_type}: Cannot define more than one suite cleanup method "
            "inside a scope."
        )


class MissingContextError(ConfigurationError, ValueError):
    """Raised when setup is requested without an execution context."""

    def __init__(self, scope_name: str | None = None) -> None:
        self.scope_name = scope_name
        msg = "Execution context cannot be None"
        if scope_name:
            msg += f" (scope: {scope_name})"
        super().__init__(msg)


class RegistryClosedError(ConfigurationError):
    """Raised when a closed ScopeRegistry is used."""

    def __init__(self) -> None:
        super().__init__("Scope registry is closed; its run has already completed")


class InvalidOptionError(ConfigurationError):
    """
    Raised when a configuration value cannot be parsed.

    Attributes:
        name: The option or environment variable name
        value: The rejected value
    """

    def __init__(self, name: str, value: Any, reason: str) -> None:
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {name}: {value!r}. {reason}")


# ---------------------------------------------------------------------------
# Fixture Failure
# ---------------------------------------------------------------------------


class FixtureFailure(SuiteFixturesError):  # noqa: N818
    """
    Classified failure of a setup or strict teardown routine.

    A single instance is built per failed setup run and re-raised to every
    later caller, so identity comparisons (``is``) hold across callers.

    Attributes:
        outcome: Outcome.FAILED or Outcome.INCONCLUSIVE
        message: Human-readable description of the failure
        stack_trace: Trace captured from the underlying error (if any)
        cause: The underlying error raised by the routine
    """

    def __init__(
        self,
        outcome: "Outcome",
        message: str,
        stack_trace: "StackTraceInfo | None" = None,
        cause: BaseException | None = None,
    ) -> None:
        self.outcome = outcome
        self.message = message
        self.stack_trace = stack_trace
        self.cause = cause
        super().__init__(message)
        self.__cause__ = cause

    def as_dict(self) -> dict[str, Any]:
        """
        Serialize for result reporters.

        Returns a dictionary with the outcome, message, error type and
        captured trace.
        """
        from .stack_trace import error_type_name

        return {
            "outcome": self.outcome.value,
            "message": self.message,
            "error_type": error_type_name(self.cause) if self.cause is not None else None,
            "stack_trace": self.stack_trace.as_dict() if self.stack_trace else None,
        }


# ---------------------------------------------------------------------------
# Assertion Kinds
# ---------------------------------------------------------------------------


class AssertFailedError(AssertionError):
    """Raised by user routines to report an assertion failure."""

    pass


class AssertInconclusiveError(AssertionError):
    """
    Raised by user routines when the result can be neither passed nor failed.

    Setup errors of this kind are classified as Outcome.INCONCLUSIVE.
    """

    pass
