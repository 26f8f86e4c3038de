"""CLI entrypoint for lg-sources."""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click
from dotenv import load_dotenv

from lg_sources.config.loader import Config, load_config
from lg_sources.errors import ConfigError, SourceError, UnknownSourceError
from lg_sources.output import OutputFormatter
from lg_sources.registry import SourceRegistry
from lg_sources.settings import OutputFormat, Settings, load_settings
from lg_sources.sources.base import Source

ROUTE_CATEGORIES = ("all", "received", "filtered", "not-exported")


class Context:
    """State shared by all commands."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.output = OutputFormatter(format=settings.output_format)
        self._config: Config | None = None

    @property
    def config(self) -> Config:
        """The configuration, loaded on first access. Exits on errors."""
        if self._config is None:
            try:
                self._config = load_config(self.settings.config_file)
            except ConfigError as e:
                self.output.display_error(f"Configuration error: {e}")
                sys.exit(1)
        return self._config


pass_context = click.make_pass_decorator(Context)


@click.group()
@click.version_option(package_name="lg-sources")
@click.option(
    "--config",
    "-c",
    "config_file",
    default=None,
    help="Path to the configuration file (default: $LG_CONFIG_FILE or /etc/lg-sources/lg.conf)",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Output format",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Deadline in seconds for source operations",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    output_format: str | None,
    log_level: str | None,
    timeout: float | None,
):
    """lg-sources - query the routing data sources of a looking glass."""
    load_dotenv()

    try:
        settings = load_settings(
            config_file=config_file,
            output_format=OutputFormat(output_format) if output_format else None,
            log_level=log_level.upper() if log_level else None,
            request_timeout=timeout,
        )
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    # Log to stderr, stdout is reserved for output
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    ctx.obj = Context(settings)


@cli.command()
@pass_context
def check(context: Context):
    """Validate the configuration and list the sources."""
    context.output.display_config(context.config)


async def run_operation(
    config: Config,
    source_id: str,
    operation: Callable[[Source], Awaitable[Any]],
    timeout: float | None = None,
) -> Any:
    """Run a source operation and disconnect afterwards.

    Args:
        config: Configuration holding the source.
        source_id: Id of the source to query.
        operation: Coroutine function called with the source.
        timeout: Deadline in seconds, None for no deadline.

    Returns:
        The result of the operation.
    """
    registry = SourceRegistry(config.sources)
    try:
        source = registry.get_instance(source_id)
        async with asyncio.timeout(timeout):
            return await operation(source)
    finally:
        await registry.close()


def _run(context: Context, source_id: str, operation: Callable[[Source], Awaitable[Any]]) -> Any:
    try:
        return asyncio.run(
            run_operation(
                context.config,
                source_id,
                operation,
                timeout=context.settings.request_timeout,
            )
        )
    except (SourceError, UnknownSourceError) as e:
        context.output.display_error(str(e))
        sys.exit(1)
    except TimeoutError:
        context.output.display_error(f"Source {source_id} did not answer in time")
        sys.exit(1)


@cli.command()
@click.argument("source_id")
@pass_context
def status(context: Context, source_id: str):
    """Show the status of a source."""
    response = _run(context, source_id, lambda source: source.status())
    context.output.display_status(response)


@cli.command()
@click.argument("source_id")
@click.option("--status-only", is_flag=True, help="Only show the session states")
@pass_context
def neighbours(context: Context, source_id: str, status_only: bool):
    """List the neighbours of a source."""
    if status_only:
        response = _run(context, source_id, lambda source: source.neighbours_status())
        context.output.display_neighbours_status(response)
    else:
        response = _run(context, source_id, lambda source: source.neighbours())
        context.output.display_neighbours(response)


@cli.command()
@click.argument("source_id")
@click.option("--neighbour", "-n", default=None, help="Neighbour id (default: all neighbours)")
@click.option(
    "--category",
    type=click.Choice(ROUTE_CATEGORIES),
    default="all",
    help="Route category",
)
@pass_context
def routes(context: Context, source_id: str, neighbour: str | None, category: str):
    """List the routes of a source."""
    if neighbour is None:
        if category != "all":
            raise click.UsageError("--category requires --neighbour")
        operation: Callable[[Source], Awaitable[Any]] = lambda source: source.all_routes()
    elif category == "received":
        operation = lambda source: source.routes_received(neighbour)
    elif category == "filtered":
        operation = lambda source: source.routes_filtered(neighbour)
    elif category == "not-exported":
        operation = lambda source: source.routes_not_exported(neighbour)
    else:
        operation = lambda source: source.routes(neighbour)

    response = _run(context, source_id, operation)
    context.output.display_routes(response, context.config.ui.bgp_communities)


def main():
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
