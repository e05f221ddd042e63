"""Logs command group."""

from collections.abc import Callable
from typing import Any

import click

from lognova.core.context import LogNovaContext, pass_context
from lognova.core.exceptions import LogNovaError, NotFoundError
from lognova.core.logs import LogQuery, SourceType

LEVEL_CHOICES = ["ALL", "ERROR", "WARN", "INFO", "DEBUG", "UNKNOWN"]


def filter_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the shared filter options to a command."""
    options = [
        click.option("-q", "--query", default=None, help="Case-insensitive text search"),
        click.option(
            "-l",
            "--level",
            type=click.Choice(LEVEL_CHOICES, case_sensitive=False),
            default="ALL",
            help="Exact level to keep",
        ),
        click.option("--start", default=None, help="Start bound (ISO-8601, date, or -1h)"),
        click.option("--end", default=None, help="End bound (ISO-8601, date, or -30m)"),
        click.option(
            "--tail",
            type=click.IntRange(min=1),
            default=None,
            help="Lines to fetch when no time bound is given",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def run_query(
    ctx: LogNovaContext,
    source_type: SourceType | str,
    source_id: str | None,
    query: str | None,
    level: str,
    start: str | None,
    end: str | None,
    tail: int | None,
) -> None:
    """Build the request, run it and print the entries."""
    try:
        log_query = LogQuery(
            source_type=source_type,
            source_id=source_id,
            query=query,
            level=level,
            start=start,
            end=end,
            tail=tail,
        )
        for warning in log_query.warnings:
            ctx.output.print_warning(warning)

        entries = ctx.service.query(log_query)

    except NotFoundError as e:
        ctx.output.print_error(f"Not found: {e.message}")
        raise click.Abort()
    except LogNovaError as e:
        ctx.output.print_error(f"Query failed: {e}")
        raise click.Abort()

    if not entries:
        ctx.output.print_info("No logs found")
        return

    ctx.output.print_entries(entries)


@click.group()
@pass_context
def logs(ctx: LogNovaContext) -> None:
    """Query logs - containers, the systemd journal and a log file.

    \b
    Examples:
        lognova logs search container web -q error
        lognova logs docker web --start -15m
        lognova logs journal sshd.service -l WARN
        lognova logs file -q upstream
    """
    pass


@logs.command("search")
@click.argument(
    "source_type",
    type=click.Choice(["container", "journal", "file", "docker", "systemd"], case_sensitive=False),
)
@click.argument("source_id", required=False)
@filter_options
@pass_context
def search(
    ctx: LogNovaContext,
    source_type: str,
    source_id: str | None,
    query: str | None,
    level: str,
    start: str | None,
    end: str | None,
    tail: int | None,
) -> None:
    """Search logs from any source.

    \b
    Examples:
        lognova logs search container api -q timeout
        lognova logs search journal -l ERROR --start 2024-01-15T00:00:00Z
        lognova logs search file --start -1h
    """
    run_query(ctx, source_type, source_id, query, level, start, end, tail)


@logs.command("docker")
@click.argument("container")
@filter_options
@pass_context
def docker(
    ctx: LogNovaContext,
    container: str,
    query: str | None,
    level: str,
    start: str | None,
    end: str | None,
    tail: int | None,
) -> None:
    """Get container stdout/stderr.

    CONTAINER is a name substring or an ID prefix; the first match wins.

    \b
    Examples:
        lognova logs docker web
        lognova logs docker 3f2a --start -10m
    """
    run_query(ctx, SourceType.CONTAINER, container, query, level, start, end, tail)


@logs.command("journal")
@click.argument("unit", required=False)
@filter_options
@pass_context
def journal(
    ctx: LogNovaContext,
    unit: str | None,
    query: str | None,
    level: str,
    start: str | None,
    end: str | None,
    tail: int | None,
) -> None:
    """Query the systemd journal, optionally for one unit.

    \b
    Examples:
        lognova logs journal
        lognova logs journal nginx.service -l ERROR --start -24h
    """
    run_query(ctx, SourceType.JOURNAL, unit, query, level, start, end, tail)


@logs.command("file")
@filter_options
@pass_context
def file(
    ctx: LogNovaContext,
    query: str | None,
    level: str,
    start: str | None,
    end: str | None,
    tail: int | None,
) -> None:
    """Read the tail of the configured log file.

    \b
    Examples:
        lognova logs file
        lognova logs file -l ERROR -q upstream
    """
    run_query(ctx, SourceType.FILE, None, query, level, start, end, tail)
