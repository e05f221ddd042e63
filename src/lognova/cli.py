"""Main CLI entry point for lognova."""

import sys
from typing import Any

import click
from rich.console import Console

from lognova import __version__
from lognova.config import load_config
from lognova.core.context import LogNovaContext
from lognova.core.exceptions import ConfigError, LogNovaError
from lognova.core.output import OutputFormat


CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
}


class OutputFormatType(click.ParamType):
    """Custom Click parameter type for output format."""

    name = "format"

    def convert(
        self,
        value: Any,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> OutputFormat:
        if isinstance(value, OutputFormat):
            return value
        try:
            return OutputFormat(value.lower())
        except ValueError:
            self.fail(
                f"Invalid format '{value}'. Choose from: table, json, yaml, raw",
                param,
                ctx,
            )


OUTPUT_FORMAT = OutputFormatType()


def print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console = Console()
    console.print(f"lognova version {__version__}")
    ctx.exit()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "-p",
    "--profile",
    metavar="NAME",
    envvar="LOGNOVA_PROFILE",
    help="Configuration profile to use",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    type=OUTPUT_FORMAT,
    metavar="FORMAT",
    help="Output format: table, json, yaml, raw",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for info, -vv for debug)",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Suppress non-essential output",
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    metavar="FILE",
    envvar="LOGNOVA_CONFIG",
    help="Path to config file",
)
@click.option(
    "--version",
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit",
)
@click.pass_context
def cli(
    ctx: click.Context,
    profile: str | None,
    output_format: OutputFormat | None,
    verbose: int,
    quiet: bool,
    no_color: bool,
    config_file: str | None,
) -> None:
    """LogNova - one query surface for container, journal and file logs.

    Search, level and time-range filters work the same way whichever
    source the logs come from.

    \b
    Examples:
        lognova logs docker web -q timeout
        lognova logs journal nginx.service -l ERROR --start -1h
        lognova logs file -l WARN
        lognova sources containers
        lognova stats

    \b
    Configuration:
        ~/.lognova/config.yaml   User configuration
        ./lognova.yaml           Project configuration
        LOGNOVA_*                Environment variables
    """
    try:
        config = load_config(config_file)
        # Fail early on an unknown profile
        config.get_profile(profile)

        ctx.obj = LogNovaContext(
            config=config,
            profile=profile,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            color=not no_color,
        )
        ctx.call_on_close(ctx.obj.close)

    except ConfigError as e:
        console = Console(stderr=True)
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)


def register_commands() -> None:
    """Register all command groups."""
    from lognova.commands.logs import logs
    from lognova.commands.sources import sources
    from lognova.commands.stats import stats

    cli.add_command(logs)
    cli.add_command(sources)
    cli.add_command(stats)


register_commands()


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    lognova_ctx: LogNovaContext = ctx.obj
    profile = lognova_ctx.profile
    config_data = {
        "profile": lognova_ctx.profile_name,
        "output_format": lognova_ctx.output_format.value,
        "verbose": lognova_ctx.verbose,
        "docker": {
            "socket": profile.docker.get_socket_path(),
            "default_tail": profile.docker.default_tail,
            "timestamps": profile.docker.timestamps,
        },
        "journal": {
            "journalctl": profile.journal.journalctl,
            "max_lines": profile.journal.max_lines,
            "timeout": profile.journal.timeout,
        },
        "file": {
            "path": str(profile.file.get_path()),
            "source_name": profile.file.source_name,
            "max_lines": profile.file.max_lines,
        },
        "stats": {
            "timeout": profile.stats.timeout,
            "window_hours": profile.stats.window_hours,
        },
    }
    lognova_ctx.output.print_data(config_data, title="Current Configuration")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except LogNovaError as e:
        console = Console(stderr=True)
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
