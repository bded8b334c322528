"""Tests for models."""

import unittest

import pytest

from suite_fixtures import (
    AssertInconclusiveError,
    FixtureOptions,
    InvalidOptionError,
    SetupState,
    StackTraceInfo,
)
from suite_fixtures.models import SHOW_INTERNAL_FRAMES_ENV_VAR, STACK_TRACE_LIMIT_ENV_VAR


class TestSetupState:
    """Tests for SetupState."""

    @pytest.mark.parametrize(
        ("state", "terminal"),
        [
            (SetupState.NOT_RUN, False),
            (SetupState.RUNNING, False),
            (SetupState.SUCCEEDED, True),
            (SetupState.FAILED, True),
        ],
    )
    def test_is_terminal(self, state, terminal) -> None:
        """Only SUCCEEDED and FAILED are terminal."""
        assert state.is_terminal is terminal


class TestFixtureOptions:
    """Tests for FixtureOptions."""

    def test_defaults(self) -> None:
        """Defaults classify the built-in inconclusive kinds."""
        options = FixtureOptions()

        assert options.inconclusive_types == (AssertInconclusiveError, unittest.SkipTest)
        assert options.stack_trace_limit is None
        assert options.hide_internal_frames is True

    def test_is_inconclusive(self) -> None:
        """Subclasses of configured types are inconclusive."""

        class Later(unittest.SkipTest):
            pass

        options = FixtureOptions()
        assert options.is_inconclusive(Later("x")) is True
        assert options.is_inconclusive(ValueError("x")) is False

    def test_invalid_limit(self) -> None:
        """Non-positive limits are rejected."""
        with pytest.raises(InvalidOptionError, match="stack_trace_limit"):
            FixtureOptions(stack_trace_limit=0)

    def test_invalid_inconclusive_type(self) -> None:
        """Entries must be exception classes."""
        with pytest.raises(InvalidOptionError, match="inconclusive_types"):
            FixtureOptions(inconclusive_types=(str,))  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        """Options are immutable."""
        options = FixtureOptions()
        with pytest.raises(AttributeError):
            options.stack_trace_limit = 3  # type: ignore[misc]


class TestFixtureOptionsFromEnv:
    """Tests for FixtureOptions.from_env."""

    def test_empty_environment(self, monkeypatch) -> None:
        """Without variables, defaults apply."""
        monkeypatch.delenv(STACK_TRACE_LIMIT_ENV_VAR, raising=False)
        monkeypatch.delenv(SHOW_INTERNAL_FRAMES_ENV_VAR, raising=False)

        assert FixtureOptions.from_env() == FixtureOptions()

    def test_reads_variables(self, monkeypatch) -> None:
        """Both variables are parsed."""
        monkeypatch.setenv(STACK_TRACE_LIMIT_ENV_VAR, "5")
        monkeypatch.setenv(SHOW_INTERNAL_FRAMES_ENV_VAR, "true")

        options = FixtureOptions.from_env()

        assert options.stack_trace_limit == 5
        assert options.hide_internal_frames is False

    def test_overrides_win(self, monkeypatch) -> None:
        """Keyword overrides take precedence over the environment."""
        monkeypatch.setenv(STACK_TRACE_LIMIT_ENV_VAR, "5")

        assert FixtureOptions.from_env(stack_trace_limit=2).stack_trace_limit == 2

    def test_invalid_limit(self, monkeypatch) -> None:
        """A non-integer limit raises InvalidOptionError."""
        monkeypatch.setenv(STACK_TRACE_LIMIT_ENV_VAR, "many")

        with pytest.raises(InvalidOptionError, match=STACK_TRACE_LIMIT_ENV_VAR):
            FixtureOptions.from_env()

    def test_invalid_boolean(self, monkeypatch) -> None:
        """An unknown boolean spelling raises InvalidOptionError."""
        monkeypatch.delenv(STACK_TRACE_LIMIT_ENV_VAR, raising=False)
        monkeypatch.setenv(SHOW_INTERNAL_FRAMES_ENV_VAR, "maybe")

        with pytest.raises(InvalidOptionError, match=SHOW_INTERNAL_FRAMES_ENV_VAR):
            FixtureOptions.from_env()


class TestStackTraceInfo:
    """Tests for StackTraceInfo."""

    def test_as_dict(self) -> None:
        """as_dict includes every field."""
        info = StackTraceInfo("trace", "/tmp/x.py", 12)
        assert info.as_dict() == {
            "error_stack_trace": "trace",
            "error_file_path": "/tmp/x.py",
            "error_line_number": 12,
        }
