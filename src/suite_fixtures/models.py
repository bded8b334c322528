"""Core models for suite-fixtures."""

import os
import unittest
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import AssertInconclusiveError, InvalidOptionError

STACK_TRACE_LIMIT_ENV_VAR = "SUITEFX_STACK_TRACE_LIMIT"
"""Environment variable for the maximum number of captured frames."""

SHOW_INTERNAL_FRAMES_ENV_VAR = "SUITEFX_SHOW_INTERNAL_FRAMES"
"""Environment variable that keeps suite-fixtures' own frames in captured traces."""

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class Outcome(Enum):
    """Outcome assigned to a classified fixture failure."""

    FAILED = "failed"
    INCONCLUSIVE = "inconclusive"


class SetupState(Enum):
    """Setup lifecycle of a single coordinator. SUCCEEDED and FAILED are terminal."""

    NOT_RUN = "not_run"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether setup has finished, successfully or not."""
        return self in (SetupState.SUCCEEDED, SetupState.FAILED)


@dataclass(frozen=True)
class StackTraceInfo:
    """
    Structured stack trace captured from a routine error.

    Attributes:
        error_stack_trace: Formatted frames, outermost first
        error_file_path: File of the innermost frame
        error_line_number: Line of the innermost frame
    """

    error_stack_trace: str
    error_file_path: str | None = None
    error_line_number: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return trace info as a dictionary."""
        return {
            "error_stack_trace": self.error_stack_trace,
            "error_file_path": self.error_file_path,
            "error_line_number": self.error_line_number,
        }


@dataclass(frozen=True)
class FixtureOptions:
    """
    Classification and trace-capture options shared by coordinators.

    Attributes:
        inconclusive_types: Error types classified as Outcome.INCONCLUSIVE
        stack_trace_limit: Maximum frames kept in captured traces (None = all)
        hide_internal_frames: Drop suite-fixtures' own frames from traces
    """

    inconclusive_types: tuple[type[BaseException], ...] = field(
        default=(AssertInconclusiveError, unittest.SkipTest)
    )
    stack_trace_limit: int | None = None
    hide_internal_frames: bool = True

    def __post_init__(self) -> None:
        if self.stack_trace_limit is not None and self.stack_trace_limit <= 0:
            raise InvalidOptionError(
                "stack_trace_limit",
                self.stack_trace_limit,
                "Must be a positive number of frames or None",
            )
        for exc_type in self.inconclusive_types:
            if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
                raise InvalidOptionError(
                    "inconclusive_types",
                    exc_type,
                    "Entries must be exception classes",
                )

    def is_inconclusive(self, error: BaseException) -> bool:
        """Whether an error classifies as Outcome.INCONCLUSIVE."""
        return isinstance(error, self.inconclusive_types)

    @classmethod
    def from_env(cls, **overrides: Any) -> "FixtureOptions":
        """
        Build options from environment variables.

        Reads ``SUITEFX_STACK_TRACE_LIMIT`` (positive integer) and
        ``SUITEFX_SHOW_INTERNAL_FRAMES`` (boolean). Keyword arguments take
        precedence over the environment.

        Raises:
            InvalidOptionError: If an environment value cannot be parsed
        """
        values: dict[str, Any] = {}

        raw_limit = os.environ.get(STACK_TRACE_LIMIT_ENV_VAR)
        if raw_limit:
            try:
                values["stack_trace_limit"] = int(raw_limit)
            except ValueError:
                raise InvalidOptionError(
                    STACK_TRACE_LIMIT_ENV_VAR, raw_limit, "Must be an integer"
                ) from None

        raw_show = os.environ.get(SHOW_INTERNAL_FRAMES_ENV_VAR)
        if raw_show is not None:
            normalized = raw_show.strip().lower()
            if normalized in _TRUE_VALUES:
                values["hide_internal_frames"] = False
            elif normalized in _FALSE_VALUES:
                values["hide_internal_frames"] = True
            else:
                raise InvalidOptionError(
                    SHOW_INTERNAL_FRAMES_ENV_VAR, raw_show, "Must be a boolean (true/false)"
                )

        values.update(overrides)
        return cls(**values)
