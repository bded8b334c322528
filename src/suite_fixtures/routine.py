"""Setup and teardown routines supplied by a discovery step."""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _accepts_argument(func: Callable[..., Any]) -> bool:
    """Whether a callable can be called with one positional argument."""
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins and C callables without introspectable signatures
        return True
    for param in signature.parameters.values():
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.VAR_POSITIONAL,
        ):
            return True
    return False


@dataclass(frozen=True)
class FixtureRoutine:
    """
    A setup or teardown hook resolved by an external discovery step.

    The coordinator never needs to know how the callable was located; it
    only needs the callable and the names used in failure messages.
    Routines may be plain functions or coroutine functions.

    Attributes:
        func: The callable to invoke
        name: Routine name (e.g., "initialize")
        declaring_type: Dotted path of the declaring module and class
        accepts_context: Whether the callable takes the execution context
    """

    func: Callable[..., Any]
    name: str
    declaring_type: str
    accepts_context: bool = True

    @classmethod
    def from_callable(
        cls,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        declaring_type: str | None = None,
        accepts_context: bool | None = None,
    ) -> "FixtureRoutine":
        """
        Wrap a callable, deriving names from ``__module__`` and ``__qualname__``.

        Example:
            class Suite:
                @staticmethod
                def initialize(context): ...

            routine = FixtureRoutine.from_callable(Suite.initialize)
            routine.full_name  # "tests.conftest.Suite.initialize"
        """
        if not callable(func):
            raise TypeError(f"Fixture routine must be callable, got {type(func).__name__}")

        qualname = (
            getattr(func, "__qualname__", None)
            or getattr(func, "__name__", None)
            or type(func).__qualname__
        )
        module = getattr(func, "__module__", None) or ""
        owner, _, short_name = qualname.rpartition(".")

        return cls(
            func=func,
            name=name or short_name,
            declaring_type=declaring_type or ".".join(p for p in (module, owner) if p),
            accepts_context=(
                _accepts_argument(func) if accepts_context is None else accepts_context
            ),
        )

    @property
    def declaring_type_name(self) -> str:
        """Last segment of the declaring type (e.g., "Suite")."""
        return self.declaring_type.rpartition(".")[2]

    @property
    def full_name(self) -> str:
        """Declaring type and routine name joined with a dot."""
        if not self.declaring_type:
            return self.name
        return f"{self.declaring_type}.{self.name}"

    def _call(self, args: tuple[Any, ...]) -> Any:
        if not self.accepts_context:
            args = ()
        return self.func(*args[:1])

    def invoke(self, *args: Any) -> None:
        """
        Invoke the routine and block until it completes.

        An awaitable result is run to completion on a fresh event loop, so
        this must not be called from a thread with a running loop when the
        routine is async.
        """
        result = self._call(args)
        if inspect.isawaitable(result):
            asyncio.run(_await(result))

    async def invoke_async(self, *args: Any) -> None:
        """Invoke the routine, awaiting its result if it is awaitable."""
        result = self._call(args)
        if inspect.isawaitable(result):
            await result
