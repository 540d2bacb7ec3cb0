"""testsplit CLI — top-level command group."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from testsplit import __version__
from testsplit.config import CONFIG_FILENAME, SplitConfig, load_config, validate_config
from testsplit.reporters.terminal import reporter
from testsplit.sharding.errors import NoValidGroupsError, SplitError
from testsplit.sharding.inventory import available_loaders
from testsplit.sharding.observer import LoggingObserver
from testsplit.sharding.splitter import split_into_shards
from testsplit.sharding.tasks import (
    SplitGroupsTask,
    SplitTask,
    SplitTestFilesTask,
    SplitTestsTask,
)

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)
console = Console()


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_split_config(ctx: click.Context, **overrides: Any) -> SplitConfig:
    """Load the project config with CLI overrides, aborting on invalid values."""
    try:
        config = load_config(ctx.obj["root"], **overrides)
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort
    return config


_SPLIT_OPTIONS = [
    click.option(
        "-n",
        "--num-groups",
        type=int,
        default=None,
        help="Number of groups to split into (default: split.num_groups from config).",
    ),
    click.option(
        "--tests-from",
        default=None,
        help="Directory containing the tests, relative to the project root.",
    ),
    click.option(
        "--groups-to",
        default=None,
        help="Group file prefix; the group number is appended (e.g. tests/_log/paracept_).",
    ),
    click.option(
        "--only",
        type=int,
        default=None,
        metavar="INDEX",
        help="Print the entries of one 1-based group instead of writing files.",
    ),
]


def _split_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Apply the options shared by every split command."""
    for option in reversed(_SPLIT_OPTIONS):
        func = option(func)
    return func


def _loader_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--loader",
        type=click.Choice(available_loaders()),
        default=None,
        help="Test loader used to enumerate test cases (default: unittest).",
    )(func)


def _execute(task: SplitTask, only: int | None) -> None:
    """Run *task*, or print a single group when *only* is given."""
    num_groups = task.config.num_groups
    try:
        if only is not None:
            if not 1 <= only <= num_groups:
                msg = f"--only must be between 1 and {num_groups} (got: {only})"
                raise click.BadParameter(msg, param_hint="--only")
            for entry in split_into_shards(task.inventory(), only - 1, num_groups):
                click.echo(entry)
            return

        report = task.run()
    except NoValidGroupsError as e:
        reporter.print_error(str(e))
        reporter.print_info("Run 'testsplit list-groups' to see the groups in this suite.")
        raise click.Abort from e
    except SplitError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    reporter.print_group_summary(report.groups, report.written)
    reporter.print_success(f"Wrote {len(report.written)} group files")


@click.group()
@click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory (relative paths are resolved against it).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="testsplit")
@click.pass_context
def cli(ctx: click.Context, root: str, *, verbose: bool) -> None:
    """testsplit — split a test suite into balanced groups for parallel runners."""
    ctx.ensure_object(dict)
    ctx.obj["root"] = root
    _configure_logging(verbose=verbose)


@cli.command("tests")
@_split_options
@_loader_option
@click.pass_context
def split_tests(ctx: click.Context, **kwargs: Any) -> None:
    """Split individual test cases into groups.

    Example:
      testsplit tests -n 5 --groups-to tests/_log/paratest_
    """
    only = kwargs.pop("only")
    config = _load_split_config(ctx, **kwargs)
    if only is None:
        reporter.print_header("testsplit tests")
    observer = LoggingObserver() if only is not None else reporter
    _execute(SplitTestsTask(config, observer=observer), only)


@cli.command("files")
@_split_options
@click.option(
    "--pattern",
    "file_patterns",
    multiple=True,
    help="Filename glob for test files (repeatable, default: test_*.py, *_test.py, *Test.py).",
)
@click.pass_context
def split_files(ctx: click.Context, **kwargs: Any) -> None:
    """Split test files into groups without importing them.

    Example:
      testsplit files -n 4 --tests-from tests/unit --pattern "*Test.py"
    """
    only = kwargs.pop("only")
    kwargs["file_patterns"] = kwargs["file_patterns"] or None
    config = _load_split_config(ctx, **kwargs)
    if only is None:
        reporter.print_header("testsplit files")
    observer = LoggingObserver() if only is not None else reporter
    _execute(SplitTestFilesTask(config, observer=observer), only)


@cli.command("groups")
@click.argument("groups", nargs=-1)
@_split_options
@_loader_option
@click.pass_context
def split_groups(ctx: click.Context, **kwargs: Any) -> None:
    """Split the tests of the given @group annotations into groups.

    GROUPS defaults to split.groups from the config file.  Unknown names
    are reported and skipped; if none are known nothing is written.

    Example:
      testsplit groups smoke slow -n 3
    """
    only = kwargs.pop("only")
    kwargs["groups"] = kwargs["groups"] or None
    config = _load_split_config(ctx, **kwargs)
    if only is None:
        reporter.print_header("testsplit groups")
    observer = LoggingObserver() if only is not None else reporter
    _execute(SplitGroupsTask(config, observer=observer), only)


@cli.command("list-groups")
@click.option("--tests-from", default=None, help="Directory containing the tests.")
@_loader_option
@click.pass_context
def list_groups(ctx: click.Context, tests_from: str | None, loader: str | None) -> None:
    """List the @group annotations declared in the test suite."""
    # The group count is irrelevant for listing; any valid value will do.
    config = _load_split_config(ctx, num_groups=1, tests_from=tests_from, loader=loader)
    try:
        names = SplitGroupsTask(config).group_names()
    except SplitError as e:
        reporter.print_error(str(e))
        raise click.Abort from e
    reporter.print_group_names(names)


@cli.group("config")
def config_group() -> None:
    """Inspect the .testsplit.yml configuration."""


@config_group.command("show")
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
@click.pass_context
def config_show(ctx: click.Context, *, as_json: bool) -> None:
    """Display the resolved configuration."""
    try:
        config = load_config(ctx.obj["root"])
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    config_dict = asdict(config)
    config_dict["groups"] = list(config.groups)
    config_dict["file_patterns"] = list(config.file_patterns)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate the configuration file."""
    try:
        config = load_config(ctx.obj["root"])
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    console.print(
        f"[dim]Fix these errors in {Path(ctx.obj['root']) / CONFIG_FILENAME} "
        "and run 'testsplit config validate' again.[/dim]"
    )
    raise click.Abort


def main() -> None:
    """Console-script entry point."""
    cli()
