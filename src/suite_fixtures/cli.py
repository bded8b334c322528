"""Command-line interface for exercising suite setup and teardown routines."""

import importlib
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import click

from .coordinator import FixtureLifecycleCoordinator
from .exceptions import ConfigurationError, FixtureFailure
from .models import FixtureOptions, Outcome
from .routine import FixtureRoutine

EXIT_SETUP_FAILED = 1
EXIT_SETUP_INCONCLUSIVE = 2

WORKERS_ENV_VAR = "SUITEFX_WORKERS"
LOG_LEVEL_ENV_VAR = "SUITEFX_LOG_LEVEL"


def _resolve_routine(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> FixtureRoutine | None:
    """Resolve a MODULE:ATTR path to a FixtureRoutine."""
    if value is None:
        return None

    module_name, sep, attr_path = value.partition(":")
    if not sep or not module_name or not attr_path:
        raise click.BadParameter(f"Expected MODULE:FUNC, got {value!r}")

    # --import-path is eager, so sys.path is already extended here
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"Cannot import module {module_name!r}: {e}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError:
            raise click.BadParameter(f"{module_name!r} has no attribute {attr_path!r}") from None

    if not callable(target):
        raise click.BadParameter(f"{value!r} is not callable")
    return FixtureRoutine.from_callable(target)


def _parse_context(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    """Parse repeated KEY=VALUE options into a context dict."""
    context: dict[str, str] = {}
    for item in values:
        key, sep, val = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got {item!r}")
        context[key] = val
    return context


def _extend_import_path(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> tuple[str, ...]:
    for path in reversed(values):
        if path not in sys.path:
            sys.path.insert(0, path)
    return values


@click.group()
@click.version_option(package_name="suite-fixtures")
def cli() -> None:
    """suite-fixtures lifecycle CLI."""
    pass


@cli.command()
@click.option(
    "--import-path",
    multiple=True,
    is_eager=True,
    expose_value=False,
    callback=_extend_import_path,
    type=click.Path(exists=True, file_okay=False),
    help="Directory prepended to sys.path before resolving routines (repeatable)",
)
@click.option(
    "--setup",
    "setup",
    callback=_resolve_routine,
    metavar="MODULE:FUNC",
    help="Setup routine, called once with the context",
)
@click.option(
    "--teardown",
    "teardown",
    callback=_resolve_routine,
    metavar="MODULE:FUNC",
    help="Teardown routine, called with no arguments",
)
@click.option(
    "--scope",
    default="default",
    show_default=True,
    help="Scope name used in logs",
)
@click.option(
    "--workers",
    type=click.IntRange(1, 256),
    default=4,
    show_default=True,
    envvar=WORKERS_ENV_VAR,
    help="Number of concurrent workers requesting setup",
)
@click.option(
    "--context",
    "context",
    multiple=True,
    callback=_parse_context,
    metavar="KEY=VALUE",
    help="Entry of the execution context passed to setup (repeatable)",
)
@click.option(
    "--strict/--lenient",
    default=False,
    help="Treat a teardown failure as an error (default: report a warning)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar=LOG_LEVEL_ENV_VAR,
    help="Logging level",
)
def run(
    setup: FixtureRoutine | None,
    teardown: FixtureRoutine | None,
    scope: str,
    workers: int,
    context: dict[str, str],
    strict: bool,
    log_level: str,
) -> None:
    """Run setup from concurrent workers, then run teardown."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = FixtureOptions.from_env()
    except ConfigurationError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    coordinator = FixtureLifecycleCoordinator(scope, options)
    coordinator.setup_routine = setup
    coordinator.teardown_routine = teardown

    exit_code = _run_setup(coordinator, context, workers)
    if _run_teardown(coordinator, strict) and exit_code == 0:
        exit_code = 1

    if exit_code:
        sys.exit(exit_code)


def _run_setup(
    coordinator: FixtureLifecycleCoordinator, context: dict[str, str], workers: int
) -> int:
    routine = coordinator.setup_routine
    if routine is None:
        click.echo("Setup: none configured")
        return 0

    barrier = threading.Barrier(workers)

    def worker() -> None:
        barrier.wait()
        coordinator.ensure_setup_ran(context)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(worker) for _ in range(workers)]

    errors = [f.exception() for f in futures if f.exception() is not None]
    if not errors:
        click.echo(f"✓ Setup {routine.full_name} completed ({workers} workers)")
        return 0

    failure = coordinator.setup_failure
    if failure is None:
        # Not a routine failure (e.g., an interrupted worker)
        click.echo(f"✗ Setup {routine.full_name} did not complete: {errors[0]}", err=True)
        return EXIT_SETUP_FAILED

    click.echo(f"✗ [{failure.outcome.value}] {failure.message}", err=True)
    if failure.stack_trace:
        click.echo(failure.stack_trace.error_stack_trace, err=True)
    if failure.outcome == Outcome.INCONCLUSIVE:
        return EXIT_SETUP_INCONCLUSIVE
    return EXIT_SETUP_FAILED


def _run_teardown(coordinator: FixtureLifecycleCoordinator, strict: bool) -> bool:
    """Run teardown; returns True if it failed under the strict contract."""
    routine = coordinator.teardown_routine
    if routine is None:
        click.echo("Teardown: none configured")
        return False

    if not strict:
        diagnostic = coordinator.run_teardown()
        if diagnostic is not None:
            click.echo(f"⚠️  {diagnostic}", err=True)
        else:
            click.echo(f"✓ Teardown {routine.full_name} completed")
        return False

    try:
        coordinator.run_teardown_strict()
    except FixtureFailure as e:
        click.echo(f"✗ {e.message}", err=True)
        return True
    click.echo(f"✓ Teardown {routine.full_name} completed")
    return False


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
