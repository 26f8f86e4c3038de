"""Routing data source backed by a bio-routing RIS (gRPC)."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

import grpc

from lg_sources.errors import SourceError
from lg_sources.models.api import (
    ApiStatus,
    NeighboursResponse,
    NeighboursStatusResponse,
    RoutesResponse,
    Status,
    StatusResponse,
)
from lg_sources.models.neighbour import Neighbour, NeighbourStatus
from lg_sources.models.route import BgpInfo, Route
from lg_sources.sources.base import Source
from lg_sources.sources.bioris import protocol
from lg_sources.sources.bioris.config import BioRISConfig

logger = logging.getLogger(__name__)

API_VERSION = "v0.1.0"
BACKEND_NAME = "BioRIS"
DEFAULT_TTL = timedelta(seconds=60)

# Queried in this order; routes are returned in the same order.
ADDRESS_FAMILIES = (protocol.IPV4_UNICAST, protocol.IPV6_UNICAST)


class ConnectionState(str, Enum):
    """State of the gRPC channel of a BioRISSource."""

    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    STALE = "stale"


def default_api_status() -> ApiStatus:
    return ApiStatus.make(API_VERSION, DEFAULT_TTL)


def neighbour_state(status: int) -> str:
    """Map a RIS session status to the looking glass state.

    "Established" becomes "up", every other state keeps its RIS name.
    """
    try:
        state = protocol.NEIGHBOR_STATUS.Name(status)
    except ValueError:
        return str(status)
    if state == "Established":
        return "up"
    return state


def neighbour_uptime(established_since: int, now: datetime | None = None) -> timedelta:
    """Get the session uptime from the "established since" unix timestamp."""
    if established_since <= 0:
        return timedelta(0)
    try:
        since = datetime.fromtimestamp(established_since, UTC)
    except (OverflowError, OSError, ValueError):
        return timedelta(0)
    return (now or datetime.now(UTC)) - since


def make_route(pfx: Any, bgp_path: Any, neighbour_id: str = "") -> Route:
    """Translate a RIS prefix and BGP path into a Route.

    Only the first AS path segment is used; AS sets in later segments
    are ignored.
    """
    network = protocol.prefix_to_str(pfx)

    as_path: list[int] = []
    if bgp_path.as_path:
        as_path = [int(asn) for asn in bgp_path.as_path[0].asns]

    if bgp_path.HasField("source"):
        neighbour_id = protocol.ip_to_str(bgp_path.source)

    next_hop = protocol.ip_to_str(bgp_path.next_hop)
    return Route(
        id=network,
        network=network,
        neighbour_id=neighbour_id,
        gateway=next_hop,
        bgp=BgpInfo(
            as_path=as_path,
            next_hop=next_hop,
            med=int(bgp_path.med),
            local_pref=int(bgp_path.local_pref),
            communities=[(c >> 16, c & 0xFFFF) for c in bgp_path.communities],
            large_communities=[
                (lc.global_administrator, lc.data_part1, lc.data_part2)
                for lc in bgp_path.large_communities
            ],
        ),
    )


class BioRISSource(Source):
    """Source querying a bio-routing RIS over gRPC.

    The channel is dialled on first use, not on construction. Before
    each remote call a channel that is no longer READY is closed and
    dialled again, unless another call is still using it.

    Note: the channel uses no transport security.
    """

    def __init__(
        self,
        config: BioRISConfig,
        channel_factory: Callable[[str], grpc.aio.Channel] | None = None,
        stub_factory: Callable[[grpc.aio.Channel], Any] = protocol.RoutingInformationServiceStub,
    ):
        """Initialize the source.

        Args:
            config: BioRIS configuration.
            channel_factory: Creates a channel for a target, defaults to
                ``grpc.aio.insecure_channel``.
            stub_factory: Creates the client stub for a channel.
        """
        self.config = config
        self._channel_factory = channel_factory or grpc.aio.insecure_channel
        self._stub_factory = stub_factory
        self._channel: grpc.aio.Channel | None = None
        self._stub: Any = None
        self._state = ConnectionState.UNCONNECTED
        self._lock = asyncio.Lock()
        self._active_calls = 0

        logger.info(
            "Initializing BioRIS source %s: api %s, router %s",
            config.id,
            config.api,
            config.router,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def connect(self) -> None:
        """Nothing to do, the channel is dialled on first use."""
        pass

    async def disconnect(self) -> None:
        """Close the channel."""
        async with self._lock:
            await self._close_channel()

    async def is_available(self) -> bool:
        """Check if the RIS answers a neighbours query."""
        try:
            await self._get_neighbors()
            return True
        except SourceError:
            return False

    async def _close_channel(self) -> None:
        if self._channel is not None:
            await self._channel.close()
        self._channel = None
        self._stub = None
        self._state = ConnectionState.UNCONNECTED

    async def _get_stub(self) -> Any:
        if self._channel is not None and self._active_calls == 0:
            connectivity = self._channel.get_state(try_to_connect=False)
            if connectivity != grpc.ChannelConnectivity.READY:
                logger.info(
                    "BioRIS source %s: channel is %s, reconnecting",
                    self.config.id,
                    connectivity.name,
                )
                self._state = ConnectionState.STALE
                await self._close_channel()

        if self._channel is None:
            try:
                self.config.verify()
                self._channel = self._channel_factory(self.config.api)
            except (ValueError, grpc.RpcError) as e:
                raise SourceError(f"Could not connect to api {self.config.api!r}: {e}") from e
            self._stub = self._stub_factory(self._channel)
            self._state = ConnectionState.CONNECTED

        return self._stub

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[Any]:
        async with self._lock:
            stub = await self._get_stub()
            self._active_calls += 1
        try:
            yield stub
        finally:
            self._active_calls -= 1

    async def _get_neighbors(self) -> list[Any]:
        request = protocol.GetNeighborsRequest(router=self.config.router)
        async with self._client() as client:
            try:
                response = await client.GetNeighbors(request, timeout=self.config.timeout)
            except grpc.RpcError as e:
                raise SourceError(f"Could not get neighbors: {e}") from e
        return list(response.neighbors)

    async def _get_routes(self, neighbour_id: str) -> RoutesResponse:
        routes: list[Route] = []

        async with self._client() as client:
            for afisafi in ADDRESS_FAMILIES:
                request = protocol.DumpRIBRequest(
                    router=self.config.router,
                    vrf_id=self.config.vrf_id,
                    afisafi=afisafi,
                    neighbor=neighbour_id,
                )
                try:
                    # Iteration ends cleanly at the end of the stream
                    async for reply in client.DumpRIB(request, timeout=self.config.timeout):
                        for path in reply.route.paths:
                            if path.type != protocol.PATH_BGP:
                                continue
                            routes.append(
                                make_route(reply.route.pfx, path.bgp_path, neighbour_id)
                            )
                except grpc.RpcError as e:
                    family = protocol.AFISAFI.Name(afisafi)
                    raise SourceError(f"Could not dump RIB ({family}): {e}") from e

        return RoutesResponse(api=ApiStatus.make(API_VERSION), imported=routes)

    async def expire_caches(self) -> int:
        """There are no caches to expire."""
        return 0

    async def status(self) -> StatusResponse:
        """Get the status of the source.

        The RIS has no status call: version and server time are local.
        """
        return StatusResponse(
            api=default_api_status(),
            status=Status(
                server_time=datetime.now(UTC),
                version=API_VERSION,
                backend=BACKEND_NAME,
            ),
        )

    def _make_neighbour(self, bio_neighbor: Any) -> Neighbour:
        address = protocol.ip_to_str(bio_neighbor.neighbor_address)
        return Neighbour(
            id=address,
            address=address,
            asn=int(bio_neighbor.peer_asn),
            state=neighbour_state(bio_neighbor.status),
            description=bio_neighbor.description,
            routes_received=int(bio_neighbor.stats.routes_received),
            routes_filtered=0,
            routes_exported=int(bio_neighbor.stats.routes_exported),
            routes_preferred=0,
            routes_accepted=0,
            uptime=neighbour_uptime(bio_neighbor.established_since),
            route_server_id=self.config.id,
        )

    async def neighbours(self) -> NeighboursResponse:
        """Get all neighbours of the router."""
        bio_neighbors = await self._get_neighbors()
        return NeighboursResponse(
            api=default_api_status(),
            neighbours=[self._make_neighbour(n) for n in bio_neighbors],
        )

    async def neighbours_status(self) -> NeighboursStatusResponse:
        bio_neighbors = await self._get_neighbors()
        statuses = [
            NeighbourStatus(
                id=protocol.ip_to_str(n.neighbor_address),
                state=neighbour_state(n.status),
                since=neighbour_uptime(n.established_since),
            )
            for n in bio_neighbors
        ]
        return NeighboursStatusResponse(api=default_api_status(), neighbours=statuses)

    async def routes(self, neighbour_id: str) -> RoutesResponse:
        return await self._get_routes(neighbour_id)

    async def routes_received(self, neighbour_id: str) -> RoutesResponse:
        return await self._get_routes(neighbour_id)

    async def routes_filtered(self, neighbour_id: str) -> RoutesResponse:
        """Filtered routes are not exposed by the RIS: always empty."""
        return RoutesResponse(api=default_api_status(), filtered=[])

    async def routes_not_exported(self, neighbour_id: str) -> RoutesResponse:
        """Not exported routes are not exposed by the RIS: always empty."""
        return RoutesResponse(api=default_api_status(), not_exported=[])

    async def all_routes(self) -> RoutesResponse:
        return await self._get_routes("")
