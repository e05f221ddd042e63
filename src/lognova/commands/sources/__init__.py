"""Sources command group - list what logs can be read from."""

import click

from lognova.core.context import LogNovaContext, pass_context
from lognova.core.exceptions import LogNovaError
from lognova.core.logs import SourceType
from lognova.core.output import OutputFormat


def _print_sources(ctx: LogNovaContext, source_type: SourceType, title: str) -> None:
    try:
        descriptors = ctx.service.list_sources(source_type)
    except LogNovaError as e:
        ctx.output.print_error(f"Listing failed: {e}")
        raise click.Abort()

    if not descriptors:
        ctx.output.print_info("Nothing found")
        return

    if ctx.output_format in (OutputFormat.JSON, OutputFormat.YAML):
        ctx.output.print_data([d.to_dict() for d in descriptors])
        return

    rows = []
    for descriptor in descriptors:
        row = {"id": descriptor.id, "name": descriptor.name, "state": descriptor.state}
        row.update({k: v for k, v in descriptor.metadata.items() if k != "placeholder"})
        rows.append(row)

    if any(d.metadata.get("placeholder") for d in descriptors):
        ctx.output.print_warning("systemctl unavailable - showing placeholder services")

    ctx.output.print_data(rows, title=title)


@click.group()
@pass_context
def sources(ctx: LogNovaContext) -> None:
    """List log sources - containers and service units.

    \b
    Examples:
        lognova sources containers
        lognova -o json sources services
    """
    pass


@sources.command("containers")
@pass_context
def containers(ctx: LogNovaContext) -> None:
    """List containers, running or stopped."""
    _print_sources(ctx, SourceType.CONTAINER, "Containers")


@sources.command("services")
@pass_context
def services(ctx: LogNovaContext) -> None:
    """List systemd service units."""
    _print_sources(ctx, SourceType.JOURNAL, "Services")
