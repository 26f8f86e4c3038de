"""Route data model shared by all routing data sources."""

from dataclasses import dataclass, field
from datetime import timedelta


@dataclass
class BgpInfo:
    """BGP attributes of a route.

    Attributes:
        as_path: AS path as list of ASNs
        next_hop: Next hop IP address
        med: Multi exit discriminator
        local_pref: Local preference
        communities: Standard communities as (asn, value) pairs
        large_communities: Large communities as (asn, function, value) triplets
    """

    as_path: list[int] = field(default_factory=list)
    next_hop: str = ""
    med: int = 0
    local_pref: int = 0
    communities: list[tuple[int, int]] = field(default_factory=list)
    large_communities: list[tuple[int, int, int]] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert BgpInfo to dictionary for JSON serialization."""
        return {
            "as_path": self.as_path,
            "next_hop": self.next_hop,
            "med": self.med,
            "local_pref": self.local_pref,
            "communities": [list(c) for c in self.communities],
            "large_communities": [list(c) for c in self.large_communities],
        }


@dataclass
class Route:
    """A route as seen by a routing data source.

    Routes are value objects: two routes with the same content are equal.

    Attributes:
        id: Route id, usually the network
        network: IP prefix in CIDR notation (e.g., "192.0.2.0/24")
        bgp: BGP attributes
        neighbour_id: Id of the neighbour the route was learned from
        gateway: Gateway address
        interface: Outgoing interface
        metric: Route metric
        age: Time since the route was installed
        primary: Whether this is the preferred route for the network
    """

    id: str
    network: str
    bgp: BgpInfo = field(default_factory=BgpInfo)
    neighbour_id: str = ""
    gateway: str = ""
    interface: str = ""
    metric: int = 0
    age: timedelta = field(default_factory=timedelta)
    primary: bool = False

    def to_dict(self) -> dict:
        """Convert route to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "neighbour_id": self.neighbour_id,
            "network": self.network,
            "gateway": self.gateway,
            "interface": self.interface,
            "metric": self.metric,
            "bgp": self.bgp.to_dict(),
            "age": self.age.total_seconds(),
            "primary": self.primary,
        }
