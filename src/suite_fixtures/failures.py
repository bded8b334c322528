"""Classification of setup and teardown errors into fixture failures."""

from .exceptions import FixtureFailure
from .models import FixtureOptions, Outcome, StackTraceInfo
from .routine import FixtureRoutine
from .stack_trace import (
    error_type_name,
    get_exception_message,
    get_raw_message,
    get_stack_trace_information,
    unwrap,
)

SETUP_FAILED_TEMPLATE = (
    "Suite setup method {declaring_type}.{name} threw exception. "
    "{error_type}: {error_message}. Aborting test execution."
)

TEARDOWN_FAILED_TEMPLATE = (
    "Suite cleanup method {declaring_type}.{name} failed. "
    "Error Message: {error_message}. StackTrace: {stack_trace}"
)


def build_setup_failure(
    routine: FixtureRoutine,
    error: BaseException,
    options: FixtureOptions,
) -> FixtureFailure:
    """
    Classify an error raised by a setup routine.

    An error that already is a FixtureFailure is returned unchanged.
    Otherwise the explicit cause (one level) is treated as the real error.

    Args:
        routine: The setup routine that raised
        error: The raised error
        options: Classification options

    Returns:
        A new FixtureFailure, or ``error`` itself if already classified
    """
    if isinstance(error, FixtureFailure):
        return error

    real_error = unwrap(error)
    outcome = Outcome.INCONCLUSIVE if options.is_inconclusive(real_error) else Outcome.FAILED

    # Raw message only, the error type is already part of the template
    message = SETUP_FAILED_TEMPLATE.format(
        declaring_type=routine.declaring_type,
        name=routine.name,
        error_type=error_type_name(real_error),
        error_message=get_raw_message(real_error),
    )
    return FixtureFailure(
        outcome,
        message,
        get_stack_trace_information(real_error, options),
        real_error,
    )


def _teardown_message(
    routine: FixtureRoutine,
    real_error: BaseException,
    options: FixtureOptions,
) -> tuple[str, StackTraceInfo | None]:
    # Assertion errors carry a user-facing message, skip the type chain
    if isinstance(real_error, AssertionError) or options.is_inconclusive(real_error):
        error_message = get_raw_message(real_error)
    else:
        error_message = get_exception_message(real_error)

    stack_trace = get_stack_trace_information(real_error, options)
    message = TEARDOWN_FAILED_TEMPLATE.format(
        declaring_type=routine.declaring_type_name,
        name=routine.name,
        error_message=error_message,
        stack_trace=stack_trace.error_stack_trace if stack_trace else "",
    )
    return message, stack_trace


def describe_teardown_failure(
    routine: FixtureRoutine,
    error: BaseException,
    options: FixtureOptions,
) -> str:
    """Diagnostic text for a failed teardown routine (lenient contract)."""
    message, _ = _teardown_message(routine, unwrap(error), options)
    return message


def build_teardown_failure(
    routine: FixtureRoutine,
    error: BaseException,
    options: FixtureOptions,
) -> FixtureFailure:
    """FixtureFailure for a failed teardown routine (strict contract). Always FAILED."""
    real_error = unwrap(error)
    message, stack_trace = _teardown_message(routine, real_error, options)
    return FixtureFailure(Outcome.FAILED, message, stack_trace, real_error)
