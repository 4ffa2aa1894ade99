"""CLI entrypoint for pxargs."""

from __future__ import annotations

import logging
import sys

import rich_click as click

from pxargs import __version__
from pxargs.config import RunConfiguration, Settings
from pxargs.coordinator import RunCoordinator
from pxargs.log import init_logger
from pxargs.output import OutputMultiplexer

click.rich_click.USE_MARKDOWN = True

CONTEXT_SETTINGS = {
    # everything from the first positional argument on belongs to the command
    "allow_interspersed_args": False,
    "help_option_names": ["-h", "--help"],
}


def _validate_replace(
    _ctx: click.Context,
    _param: click.Parameter,
    value: str | None,
) -> str | None:
    if value is None:
        return None
    if not value or value.startswith("-"):
        raise click.BadParameter("token required.")
    return value


@click.command(context_settings=CONTEXT_SETTINGS, no_args_is_help=True)
@click.version_option(version=__version__, prog_name="pxargs")
@click.option(
    "-0",
    "--null",
    "null_delimited",
    is_flag=True,
    help="Input tokens are separated by NUL bytes instead of newlines.",
)
@click.option(
    "--exit-on-error",
    is_flag=True,
    help="Stop dispatching commands after the first failure and exit non-zero.",
)
@click.option(
    "-n",
    "--max-args",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Append up to this many tokens to each command.",
)
@click.option(
    "-P",
    "--max-procs",
    type=click.IntRange(min=1),
    default=None,
    help="Run up to this many commands at once. Defaults to `PXARGS_MAX_PROCS` or 1.",
)
@click.option(
    "-I",
    "-i",
    "--replace",
    "replace",
    default=None,
    metavar="TOKEN",
    callback=_validate_replace,
    help="Replace TOKEN in the command arguments with each input token. Implies `-n 1`.",
)
@click.option(
    "-t",
    "--verbose",
    is_flag=True,
    help="Log each command line to standard error before running it.",
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def pxargs(  # noqa: PLR0913
    ctx: click.Context,
    null_delimited: bool,
    exit_on_error: bool,
    max_args: int,
    max_procs: int | None,
    replace: str | None,
    verbose: bool,
    command: tuple[str, ...],
) -> None:
    """Run COMMAND once per batch of tokens read from standard input.

    Tokens are split on newlines (or NUL bytes with `-0`). Output of each
    command is written as one unit, in the order commands finish.
    """

    try:
        settings = Settings.from_env(max_procs=max_procs)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        config = RunConfiguration.build(
            command=command,
            null_delimited=null_delimited,
            max_procs=settings.default_max_procs,
            max_args=max_args,
            replace=replace,
            exit_on_error=exit_on_error,
            verbose=verbose,
        )
    except ValueError as error:
        raise click.UsageError(str(error), ctx=ctx) from error

    log_level = settings.log_level
    if config.verbose:
        log_level = min(log_level, logging.INFO)
    init_logger(log_level)

    coordinator = RunCoordinator(
        config,
        output=OutputMultiplexer(
            stdout=sys.stdout.buffer,
            stderr=sys.stderr.buffer,
        ),
    )
    summary = coordinator.run(sys.stdin.buffer)
    ctx.exit(summary.exit_code(exit_on_error=config.exit_on_error))


if __name__ == "__main__":  # pragma: no cover
    pxargs()
