"""Stack trace and message extraction for routine errors."""

import os
import traceback

from .models import FixtureOptions, StackTraceInfo

# Frames from files under this directory are coordinator internals
_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

_INNER_SEPARATOR = " ---> "
_INNER_TRACE_SEPARATOR = "--- End of inner exception stack trace ---"

# Guards against reference cycles in __cause__ chains
_MAX_CHAIN_DEPTH = 32


def unwrap(error: BaseException) -> BaseException:
    """Return the explicit cause of an error if it has one, else the error itself."""
    return error.__cause__ if error.__cause__ is not None else error


def error_type_name(error: BaseException) -> str:
    """
    Fully qualified type name of an error.

    Builtin exceptions are returned unqualified (``ValueError``), everything
    else as ``module.QualName``.
    """
    cls = type(error)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def get_raw_message(error: BaseException) -> str:
    """Message of an error without the type prefix."""
    try:
        return str(error)
    except Exception:
        return f"(Failed to get message for an exception of type {error_type_name(error)})"


def _cause_chain(error: BaseException) -> list[BaseException]:
    chain = [error]
    current = error.__cause__
    while current is not None and current not in chain and len(chain) < _MAX_CHAIN_DEPTH:
        chain.append(current)
        current = current.__cause__
    return chain


def get_exception_message(error: BaseException) -> str:
    """
    Type-prefixed message for an error and its explicit causes.

    Example:
        ``RuntimeError: connect failed ---> OSError: disk full``
    """
    return _INNER_SEPARATOR.join(
        f"{error_type_name(e)}: {get_raw_message(e)}" for e in _cause_chain(error)
    )


def _is_internal(frame: traceback.FrameSummary) -> bool:
    return frame.filename.startswith(_PACKAGE_DIR + os.sep)


def _extract_frames(
    error: BaseException, options: FixtureOptions
) -> list[traceback.FrameSummary]:
    frames = list(traceback.extract_tb(error.__traceback__))
    if options.hide_internal_frames:
        frames = [f for f in frames if not _is_internal(f)]
    if options.stack_trace_limit is not None:
        # Keep the innermost frames, they point at the failing code
        frames = frames[-options.stack_trace_limit :]
    return frames


def get_stack_trace_information(
    error: BaseException,
    options: FixtureOptions | None = None,
) -> StackTraceInfo | None:
    """
    Capture a structured stack trace from an error.

    Traces of explicit causes come first, deepest cause first, each closed
    by an end-of-inner-trace marker line, followed by the error's own trace.

    Args:
        error: The error to capture from
        options: Frame filtering options (defaults to FixtureOptions())

    Returns:
        StackTraceInfo, or None when the error was never raised
    """
    if options is None:
        options = FixtureOptions()

    frames = _extract_frames(error, options)
    parts: list[str] = []
    # Deepest cause first, each closed by a separator line
    for inner in reversed(_cause_chain(error)[1:]):
        inner_frames = _extract_frames(inner, options)
        if inner_frames:
            parts.append("".join(traceback.format_list(inner_frames)).rstrip("\n"))
            parts.append(_INNER_TRACE_SEPARATOR)
    if frames:
        parts.append("".join(traceback.format_list(frames)).rstrip("\n"))
    elif parts:
        parts.pop()

    if not parts:
        return None

    innermost = frames[-1] if frames else None
    return StackTraceInfo(
        error_stack_trace="\n".join(parts),
        error_file_path=innermost.filename if innermost else None,
        error_line_number=innermost.lineno if innermost else None,
    )
