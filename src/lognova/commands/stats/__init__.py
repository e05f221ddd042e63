"""Stats command - dashboard summary across sources."""

import click

from lognova.core.context import LogNovaContext, pass_context
from lognova.core.output import OutputFormat


@click.command()
@pass_context
def stats(ctx: LogNovaContext) -> None:
    """Show a point-in-time summary of all sources.

    Collectors that fail or time out report 0 / Unknown instead of
    failing the whole summary. The volume series is simulated.

    \b
    Examples:
        lognova stats
        lognova -o json stats
    """
    snapshot = ctx.service.stats()

    for name, error in snapshot.failures.items():
        ctx.output.print_warning(f"{name} unavailable: {error}")

    if ctx.output_format in (OutputFormat.JSON, OutputFormat.YAML, OutputFormat.RAW):
        ctx.output.print_data(snapshot.to_dict())
        return

    ctx.output.print_data(
        {
            "Disk usage": snapshot.disk_usage,
            "Errors (24h)": snapshot.error_count,
            "Warnings (24h)": snapshot.warn_count,
            "Active containers": snapshot.active_containers,
            "Active services": snapshot.active_services,
        },
        title="Log Stats",
    )

    peak = max((point.count for point in snapshot.volume_series), default=0) or 1
    bars = "\n".join(
        f"{point.time} {'█' * max(1, point.count * 30 // peak)} {point.count}"
        for point in snapshot.volume_series
    )
    ctx.output.print_panel(bars, title="Volume (simulated)")
