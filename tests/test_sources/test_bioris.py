"""Tests for the BioRIS source."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import grpc
import pytest

from lg_sources.errors import ConfigError, SourceError
from lg_sources.models.route import BgpInfo, Route
from lg_sources.sources.bioris import protocol
from lg_sources.sources.bioris.config import BioRISConfig
from lg_sources.sources.bioris.source import (
    API_VERSION,
    BioRISSource,
    ConnectionState,
    make_route,
    neighbour_state,
    neighbour_uptime,
)


def bgp_reply(prefix: str, next_hop: str, asns: list[int], **kwargs):
    return protocol.DumpRIBReply(
        route=protocol.Route(
            pfx=protocol.prefix_from_str(prefix),
            paths=[
                protocol.Path(
                    type=protocol.PATH_BGP,
                    bgp_path=protocol.BGPPath(
                        next_hop=protocol.ip_from_str(next_hop),
                        as_path=[protocol.ASPathSegment(as_sequence=True, asns=asns)],
                        **kwargs,
                    ),
                )
            ],
        )
    )


def static_reply(prefix: str, next_hop: str):
    return protocol.DumpRIBReply(
        route=protocol.Route(
            pfx=protocol.prefix_from_str(prefix),
            paths=[
                protocol.Path(
                    type=protocol.PATH_STATIC,
                    static_path=protocol.StaticPath(next_hop=protocol.ip_from_str(next_hop)),
                )
            ],
        )
    )


class FakeDumpRIB:
    """Stands in for the server streaming DumpRIB call."""

    def __init__(self, replies: dict[int, list], fail_on: int | None = None):
        self.replies = replies
        self.fail_on = fail_on
        self.requests = []
        self.timeouts = []

    def __call__(self, request, timeout=None):
        self.requests.append(request)
        self.timeouts.append(timeout)
        return self._stream(request.afisafi)

    async def _stream(self, afisafi):
        for reply in self.replies.get(afisafi, []):
            yield reply
        if afisafi == self.fail_on:
            raise grpc.RpcError("stream broken")


def make_channel(state=grpc.ChannelConnectivity.READY):
    channel = MagicMock()
    channel.get_state.return_value = state
    channel.close = AsyncMock()
    return channel


@pytest.fixture
def config():
    return BioRISConfig(id="rs2", name="rs2", api="ris.example.net:4321", router="192.0.2.1", vrf_id=1)


@pytest.fixture
def neighbors():
    established = datetime.now(UTC) - timedelta(hours=1)
    return [
        protocol.Neighbor(
            neighbor_address=protocol.ip_from_str("198.51.100.1"),
            peer_asn=65001,
            status=protocol.NEIGHBOR_STATUS.Value("Established"),
            description="peer one",
            stats=protocol.NeighborStats(routes_received=10, routes_exported=7),
            established_since=int(established.timestamp()),
        ),
        protocol.Neighbor(
            neighbor_address=protocol.ip_from_str("2001:db8::2"),
            peer_asn=65002,
            status=protocol.NEIGHBOR_STATUS.Value("Idle"),
            description="peer two",
        ),
    ]


@pytest.fixture
def stub(neighbors):
    stub = MagicMock()
    stub.GetNeighbors = AsyncMock(
        return_value=protocol.GetNeighborsResponse(neighbors=neighbors)
    )
    stub.DumpRIB = FakeDumpRIB(
        {
            protocol.IPV4_UNICAST: [
                bgp_reply("192.0.2.0/24", "198.51.100.1", [65001, 65010]),
                static_reply("10.0.0.0/8", "192.0.2.254"),
            ],
            protocol.IPV6_UNICAST: [
                bgp_reply("2001:db8:1::/48", "2001:db8::2", [65002]),
            ],
        }
    )
    return stub


@pytest.fixture
def channel():
    return make_channel()


@pytest.fixture
def source(config, channel, stub):
    return BioRISSource(
        config,
        channel_factory=MagicMock(return_value=channel),
        stub_factory=MagicMock(return_value=stub),
    )


class TestHelpers:
    """Tests for the translation helpers."""

    def test_neighbour_state(self):
        assert neighbour_state(protocol.NEIGHBOR_STATUS.Value("Established")) == "up"
        assert neighbour_state(protocol.NEIGHBOR_STATUS.Value("Idle")) == "Idle"
        assert neighbour_state(protocol.NEIGHBOR_STATUS.Value("OpenSent")) == "OpenSent"
        assert neighbour_state(42) == "42"

    def test_neighbour_uptime(self):
        now = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        since = int((now - timedelta(minutes=5)).timestamp())
        assert neighbour_uptime(since, now) == timedelta(minutes=5)
        assert neighbour_uptime(0, now) == timedelta(0)

    def test_neighbour_uptime_out_of_range(self):
        assert neighbour_uptime(2**63) == timedelta(0)

    def test_make_route(self):
        pfx = protocol.prefix_from_str("192.0.2.0/24")
        bgp_path = protocol.BGPPath(
            next_hop=protocol.ip_from_str("198.51.100.1"),
            local_pref=100,
            med=5,
            as_path=[
                protocol.ASPathSegment(as_sequence=True, asns=[65001, 65002]),
                protocol.ASPathSegment(as_sequence=False, asns=[65010, 65011]),
            ],
            communities=[65000 << 16 | 666],
            large_communities=[
                protocol.LargeCommunity(
                    global_administrator=65000, data_part1=1000, data_part2=1
                )
            ],
        )

        route = make_route(pfx, bgp_path, "198.51.100.1")

        assert route == Route(
            id="192.0.2.0/24",
            network="192.0.2.0/24",
            neighbour_id="198.51.100.1",
            gateway="198.51.100.1",
            bgp=BgpInfo(
                as_path=[65001, 65002],
                next_hop="198.51.100.1",
                med=5,
                local_pref=100,
                communities=[(65000, 666)],
                large_communities=[(65000, 1000, 1)],
            ),
        )

    def test_make_route_neighbour_from_source(self):
        pfx = protocol.prefix_from_str("192.0.2.0/24")
        bgp_path = protocol.BGPPath(
            next_hop=protocol.ip_from_str("198.51.100.1"),
            source=protocol.ip_from_str("198.51.100.9"),
        )
        assert make_route(pfx, bgp_path).neighbour_id == "198.51.100.9"

    def test_make_route_empty_as_path(self):
        pfx = protocol.prefix_from_str("192.0.2.0/24")
        route = make_route(pfx, protocol.BGPPath(next_hop=protocol.ip_from_str("192.0.2.1")))
        assert route.bgp.as_path == []


class TestBioRISSource:
    """Tests for BioRISSource."""

    def test_construction_does_not_dial(self, config):
        channel_factory = MagicMock()

        source = BioRISSource(config, channel_factory=channel_factory)

        channel_factory.assert_not_called()
        assert source.state is ConnectionState.UNCONNECTED

    @pytest.mark.asyncio
    async def test_neighbours(self, source, stub):
        response = await source.neighbours()

        assert response.api.version == API_VERSION
        first, second = response.neighbours
        assert first.id == "198.51.100.1"
        assert first.address == "198.51.100.1"
        assert first.asn == 65001
        assert first.state == "up"
        assert first.is_up
        assert first.description == "peer one"
        assert first.routes_received == 10
        assert first.routes_exported == 7
        assert timedelta(minutes=59) < first.uptime < timedelta(minutes=61)
        assert first.route_server_id == "rs2"
        assert second.id == "2001:db8::2"
        assert second.state == "Idle"
        assert second.uptime == timedelta(0)

        request = stub.GetNeighbors.await_args.args[0]
        assert request.router == "192.0.2.1"

    @pytest.mark.asyncio
    async def test_neighbours_status(self, source):
        response = await source.neighbours_status()

        assert [(n.id, n.state) for n in response.neighbours] == [
            ("198.51.100.1", "up"),
            ("2001:db8::2", "Idle"),
        ]

    @pytest.mark.asyncio
    async def test_routes_ipv4_before_ipv6(self, source, stub):
        response = await source.routes_received("198.51.100.1")

        assert [r.network for r in response.imported] == [
            "192.0.2.0/24",
            "2001:db8:1::/48",
        ]
        assert response.filtered is None
        assert response.not_exported is None

        families = [r.afisafi for r in stub.DumpRIB.requests]
        assert families == [protocol.IPV4_UNICAST, protocol.IPV6_UNICAST]
        for request in stub.DumpRIB.requests:
            assert request.router == "192.0.2.1"
            assert request.vrf_id == 1
            assert request.neighbor == "198.51.100.1"

    @pytest.mark.asyncio
    async def test_non_bgp_paths_are_skipped(self, source):
        response = await source.routes("198.51.100.1")
        assert "10.0.0.0/8" not in [r.network for r in response.imported]

    @pytest.mark.asyncio
    async def test_route_fields(self, source):
        response = await source.routes("198.51.100.1")

        route = response.imported[0]
        assert route.neighbour_id == "198.51.100.1"
        assert route.gateway == "198.51.100.1"
        assert route.bgp.as_path == [65001, 65010]

    @pytest.mark.asyncio
    async def test_all_routes(self, source, stub):
        response = await source.all_routes()

        assert len(response.imported) == 2
        assert [r.neighbor for r in stub.DumpRIB.requests] == ["", ""]

    @pytest.mark.asyncio
    async def test_filtered_and_not_exported_are_empty(self, source, stub):
        filtered = await source.routes_filtered("198.51.100.1")
        not_exported = await source.routes_not_exported("198.51.100.1")

        assert filtered.filtered == []
        assert not_exported.not_exported == []
        assert stub.DumpRIB.requests == []

    @pytest.mark.asyncio
    async def test_timeout_is_passed(self, config, channel, stub):
        config.timeout = 2.5
        source = BioRISSource(
            config,
            channel_factory=MagicMock(return_value=channel),
            stub_factory=MagicMock(return_value=stub),
        )

        await source.neighbours()
        await source.all_routes()

        assert stub.GetNeighbors.await_args.kwargs["timeout"] == 2.5
        assert stub.DumpRIB.timeouts == [2.5, 2.5]

    @pytest.mark.asyncio
    async def test_stream_error(self, config, channel, stub):
        stub.DumpRIB = FakeDumpRIB(
            {protocol.IPV4_UNICAST: [bgp_reply("192.0.2.0/24", "198.51.100.1", [65001])]},
            fail_on=protocol.IPV4_UNICAST,
        )
        source = BioRISSource(
            config,
            channel_factory=MagicMock(return_value=channel),
            stub_factory=MagicMock(return_value=stub),
        )

        with pytest.raises(SourceError, match="IPv4Unicast") as exc_info:
            await source.all_routes()

        assert isinstance(exc_info.value.__cause__, grpc.RpcError)
        assert len(stub.DumpRIB.requests) == 1

    @pytest.mark.asyncio
    async def test_get_neighbors_error(self, source, stub):
        stub.GetNeighbors.side_effect = grpc.RpcError("unavailable")

        with pytest.raises(SourceError, match="Could not get neighbors"):
            await source.neighbours()

        assert await source.is_available() is False

    @pytest.mark.asyncio
    async def test_is_available(self, source):
        assert await source.is_available() is True

    @pytest.mark.asyncio
    async def test_channel_dialled_once(self, config, channel, stub):
        channel_factory = MagicMock(return_value=channel)
        source = BioRISSource(
            config, channel_factory=channel_factory, stub_factory=MagicMock(return_value=stub)
        )

        await source.neighbours()
        await source.all_routes()

        channel_factory.assert_called_once_with("ris.example.net:4321")
        assert source.state is ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_reconnect_when_not_ready(self, config, stub):
        stale = make_channel(grpc.ChannelConnectivity.TRANSIENT_FAILURE)
        fresh = make_channel()
        channel_factory = MagicMock(side_effect=[stale, fresh])
        stub_factory = MagicMock(return_value=stub)
        source = BioRISSource(config, channel_factory=channel_factory, stub_factory=stub_factory)

        await source.neighbours()
        assert source.state is ConnectionState.CONNECTED

        await source.neighbours()

        stale.close.assert_awaited_once()
        assert channel_factory.call_count == 2
        stub_factory.assert_called_with(fresh)
        assert source.state is ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_no_reconnect_while_in_use(self, config, stub):
        stale = make_channel(grpc.ChannelConnectivity.IDLE)
        channel_factory = MagicMock(return_value=stale)
        source = BioRISSource(
            config, channel_factory=channel_factory, stub_factory=MagicMock(return_value=stub)
        )

        async with source._client():
            async with source._client() as client:
                assert client is stub

        stale.close.assert_not_awaited()
        channel_factory.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_router(self, channel, stub):
        config = BioRISConfig(id="rs2", api="ris.example.net:4321")
        channel_factory = MagicMock(return_value=channel)
        source = BioRISSource(
            config, channel_factory=channel_factory, stub_factory=MagicMock(return_value=stub)
        )

        with pytest.raises(SourceError, match="Could not connect") as exc_info:
            await source.neighbours()

        assert isinstance(exc_info.value.__cause__, ConfigError)
        channel_factory.assert_not_called()
        assert source.state is ConnectionState.UNCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect(self, source, channel):
        await source.neighbours()

        await source.disconnect()

        channel.close.assert_awaited_once()
        assert source.state is ConnectionState.UNCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_unconnected(self, source, channel):
        await source.disconnect()
        channel.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_is_local(self, config):
        stub_factory = MagicMock()
        source = BioRISSource(config, channel_factory=MagicMock(), stub_factory=stub_factory)

        response = await source.status()

        assert response.status.backend == "BioRIS"
        assert response.status.version == API_VERSION
        assert response.api.ttl > datetime.now(UTC)
        stub_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_expire_caches(self, source):
        assert await source.expire_caches() == 0
