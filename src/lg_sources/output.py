"""Output formatting and display utilities."""

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lg_sources.communities import BgpCommunities
from lg_sources.config.loader import Config
from lg_sources.models.api import (
    NeighboursResponse,
    NeighboursStatusResponse,
    RoutesResponse,
    StatusResponse,
)
from lg_sources.models.route import Route
from lg_sources.settings import OutputFormat


def format_duration(seconds: float) -> str:
    """Format a duration like ``3d 04:05:06``."""
    seconds = int(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    clock = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{days}d {clock}" if days else clock


def community_labels(route: Route, communities: BgpCommunities) -> list[str]:
    """Get the labels of all communities of a route that have one."""
    labels = []
    for community in [*route.bgp.communities, *route.bgp.large_communities]:
        label = communities.lookup(community)
        if label is not None:
            labels.append(f"{':'.join(str(t) for t in community)} {label}")
    return labels


class OutputFormatter:
    """Handles output of configuration and source responses.

    Supports two output modes:
    - text: Rich formatted tables
    - json: Structured JSON output
    """

    def __init__(self, format: OutputFormat = OutputFormat.TEXT, console: Console | None = None):
        """Initialize the formatter.

        Args:
            format: Output format mode.
            console: Console to print to.
        """
        self.format = format
        self.console = console or Console()

    def _print_json(self, data: dict[str, Any]) -> None:
        self.console.print_json(json.dumps(data, default=str))

    def display_error(self, error: str) -> None:
        """Display an error message."""
        self.console.print(f"[bold red]Error:[/bold red] {escape(error)}")

    def display_config(self, config: Config) -> None:
        """Display the configured sources and UI settings."""
        if self.format == OutputFormat.JSON:
            self._print_json({
                "file": config.file,
                "sources": [
                    {
                        "id": s.id,
                        "order": s.order,
                        "name": s.name,
                        "group": s.group,
                        "type": s.type.value,
                        "blackholes": s.blackholes,
                    }
                    for s in config.sources
                ],
                "rpki": config.ui.rpki.model_dump(),
                "bgp_communities": config.ui.bgp_communities.to_dict(),
            })
            return

        table = Table(title=f"Sources ({config.file})")
        table.add_column("#", justify="right")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Group")
        table.add_column("Backend", style="green")
        for source in config.sources:
            table.add_row(
                str(source.order),
                source.id,
                source.name,
                source.group,
                source.type.value,
            )
        self.console.print(table)

        rpki = config.ui.rpki
        self.console.print(f"[bold]ASN:[/bold] {config.server.asn}")
        self.console.print(
            f"[bold]RPKI:[/bold] {'enabled' if rpki.enabled else 'disabled'} "
            f"(valid {':'.join(rpki.valid)}, invalid {':'.join(rpki.invalid)})"
        )
        self.console.print(
            f"[bold]Communities:[/bold] {len(config.ui.bgp_communities)} labels, "
            f"{len(config.ui.routes_rejections.reasons)} rejection reasons, "
            f"{len(config.ui.routes_noexports.reasons)} no-export reasons"
        )

    def display_status(self, response: StatusResponse) -> None:
        if self.format == OutputFormat.JSON:
            self._print_json(response.to_dict())
            return

        status = response.status
        self.console.print(f"[bold]Backend:[/bold] {status.backend} {status.version}")
        self.console.print(f"[bold]Server time:[/bold] {status.server_time.isoformat()}")
        if status.router_id:
            self.console.print(f"[bold]Router ID:[/bold] {status.router_id}")
        if status.message:
            self.console.print(f"[dim]{status.message}[/dim]")

    def display_neighbours(self, response: NeighboursResponse) -> None:
        if self.format == OutputFormat.JSON:
            self._print_json(response.to_dict())
            return

        table = Table(title=f"Neighbours ({len(response.neighbours)})")
        table.add_column("Neighbour", style="cyan")
        table.add_column("ASN", justify="right")
        table.add_column("State")
        table.add_column("Uptime", justify="right")
        table.add_column("Description")
        table.add_column("Routes Recv.", justify="right")
        table.add_column("Routes Filtered", justify="right")
        for n in response.neighbours:
            state = f"[green]{n.state}[/green]" if n.is_up else f"[red]{n.state}[/red]"
            table.add_row(
                n.address,
                str(n.asn),
                state,
                format_duration(n.uptime.total_seconds()),
                n.description,
                str(n.routes_received),
                str(n.routes_filtered),
            )
        self.console.print(table)

    def display_neighbours_status(self, response: NeighboursStatusResponse) -> None:
        if self.format == OutputFormat.JSON:
            self._print_json(response.to_dict())
            return

        table = Table(title="Neighbours status")
        table.add_column("Neighbour", style="cyan")
        table.add_column("State")
        table.add_column("Since", justify="right")
        for n in response.neighbours:
            table.add_row(n.id, n.state, format_duration(n.since.total_seconds()))
        self.console.print(table)

    def display_routes(
        self,
        response: RoutesResponse,
        communities: BgpCommunities | None = None,
    ) -> None:
        """Display all route categories present in the response.

        Args:
            response: Routes to display.
            communities: Labels for the communities column.
        """
        if self.format == OutputFormat.JSON:
            self._print_json(response.to_dict())
            return

        categories = [
            ("Received", response.imported),
            ("Filtered", response.filtered),
            ("Not exported", response.not_exported),
        ]
        for title, routes in categories:
            if routes is None:
                continue

            table = Table(title=f"{title} ({len(routes)})")
            table.add_column("Network", style="cyan")
            table.add_column("AS Path")
            table.add_column("Next Hop")
            table.add_column("Communities", style="dim")
            for route in routes:
                labels = community_labels(route, communities) if communities else []
                table.add_row(
                    route.network,
                    " ".join(str(asn) for asn in route.bgp.as_path),
                    route.bgp.next_hop,
                    "\n".join(labels),
                )
            self.console.print(table)
