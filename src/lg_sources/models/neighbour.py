"""Neighbour data models."""

from dataclasses import dataclass, field
from datetime import timedelta


@dataclass
class Neighbour:
    """A BGP session of the route server.

    Attributes:
        id: Neighbour id, unique within the source
        address: Peer IP address
        asn: Peer ASN
        state: Session state, "up" when established
        description: Peer description
        routes_received: Number of routes received
        routes_filtered: Number of routes filtered
        routes_exported: Number of routes exported
        routes_preferred: Number of routes preferred
        routes_accepted: Number of routes accepted
        uptime: Time since the last state change
        last_error: Last error reported for the session
        route_server_id: Id of the source this neighbour belongs to
    """

    id: str
    address: str
    asn: int
    state: str
    description: str = ""
    routes_received: int = 0
    routes_filtered: int = 0
    routes_exported: int = 0
    routes_preferred: int = 0
    routes_accepted: int = 0
    uptime: timedelta = field(default_factory=timedelta)
    last_error: str = ""
    route_server_id: str = ""

    @property
    def is_up(self) -> bool:
        return self.state.lower() == "up"

    def to_dict(self) -> dict:
        """Convert neighbour to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "address": self.address,
            "asn": self.asn,
            "state": self.state,
            "description": self.description,
            "routes_received": self.routes_received,
            "routes_filtered": self.routes_filtered,
            "routes_exported": self.routes_exported,
            "routes_preferred": self.routes_preferred,
            "routes_accepted": self.routes_accepted,
            "uptime": self.uptime.total_seconds(),
            "last_error": self.last_error,
            "routeserver_id": self.route_server_id,
        }


@dataclass
class NeighbourStatus:
    """Lightweight status of a neighbour."""

    id: str
    state: str
    since: timedelta = field(default_factory=timedelta)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "state": self.state,
            "since": self.since.total_seconds(),
        }
