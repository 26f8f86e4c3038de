"""Routing data source backed by a birdwatcher REST API."""

import logging
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import aiohttp

from lg_sources.cache.ttl_cache import TTLCache
from lg_sources.errors import SourceError
from lg_sources.models.api import (
    ApiStatus,
    CacheStatus,
    NeighboursResponse,
    NeighboursStatusResponse,
    RoutesResponse,
    Status,
    StatusResponse,
)
from lg_sources.models.neighbour import Neighbour, NeighbourStatus
from lg_sources.models.route import BgpInfo, Route
from lg_sources.sources.base import Source
from lg_sources.sources.birdwatcher.config import BirdwatcherConfig

logger = logging.getLogger(__name__)

BACKEND_NAME = "birdwatcher"


class BirdwatcherSource(Source):
    """Client for a birdwatcher API in front of a BIRD route server.

    Responses are cached for ``cache_ttl``; ``expire_caches`` drops
    expired entries. Filtered and not exported routes are read from
    the per protocol endpoints birdwatcher provides.

    See: https://github.com/alice-lg/birdwatcher
    """

    def __init__(self, config: BirdwatcherConfig, cache_ttl: timedelta = timedelta(minutes=5)):
        """Initialize the client.

        Args:
            config: Birdwatcher configuration.
            cache_ttl: TTL for cached responses.
        """
        self.config = config
        self._session: aiohttp.ClientSession | None = None
        self._cache = TTLCache(default_ttl=cache_ttl)
        try:
            self._tz: tzinfo = ZoneInfo(config.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r for source %s, using UTC", config.timezone, config.id)
            self._tz = UTC

        logger.info("Initializing birdwatcher source %s: api %s", config.id, config.api)

    async def connect(self) -> None:
        """Create HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def is_available(self) -> bool:
        """Check if the birdwatcher API answers."""
        try:
            await self.status()
            return True
        except SourceError:
            return False

    async def expire_caches(self) -> int:
        """Drop expired responses from the cache."""
        return await self._cache.cleanup()

    def parse_time(self, value: str | None) -> datetime | None:
        """Parse a timestamp reported by birdwatcher.

        Tries the configured server time formats, then ISO 8601. Naive
        timestamps are in the configured timezone.

        Returns:
            The timestamp, or None if it cannot be parsed.
        """
        if not value:
            return None

        formats = (
            self.config.server_time,
            self.config.server_time_ext,
            self.config.server_time_short,
        )
        parsed = None
        for fmt in formats:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue

        if parsed is None:
            try:
                parsed = datetime.fromisoformat(value)
            except ValueError:
                logger.debug("Could not parse birdwatcher timestamp %r", value)
                return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self._tz)
        return parsed

    async def _request(self, path: str) -> tuple[dict[str, Any], ApiStatus]:
        """Make a request to the birdwatcher API.

        Args:
            path: Endpoint path (e.g., "/protocols/bgp").

        Returns:
            Response data and the api status of the response.

        Raises:
            SourceError: On network, HTTP or decoding errors.
        """
        entry = await self._cache.get(path)
        if entry is not None:
            data = entry.value
            api = self._make_api_status(data)
            api.result_from_cache = True
            api.cache_status = CacheStatus(
                cached_at=entry.cached_at,
                orig_ttl=int(entry.ttl.total_seconds()),
            )
            return data, api

        if self._session is None:
            await self.connect()

        url = f"{self.config.api.rstrip('/')}{path}"
        try:
            async with self._session.get(url) as response:
                response.raise_for_status()
                data = await response.json()
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            raise SourceError(f"Could not fetch {url}: {e}") from e

        await self._cache.set(path, data)
        return data, self._make_api_status(data)

    def _make_api_status(self, data: dict[str, Any]) -> ApiStatus:
        api = data.get("api", {})
        ttl = self.parse_time(data.get("ttl")) or datetime.now(UTC) + self._cache.default_ttl
        return ApiStatus(
            version=str(api.get("Version", api.get("version", ""))),
            ttl=ttl,
            result_from_cache=bool(api.get("result_from_cache", False)),
        )

    def _make_route(self, data: dict[str, Any]) -> Route:
        bgp = data.get("bgp", {})
        installed = self.parse_time(data.get("age"))
        age = datetime.now(UTC) - installed if installed is not None else timedelta(0)

        return Route(
            id=data.get("network", ""),
            network=data.get("network", ""),
            neighbour_id=data.get("from_protocol", ""),
            gateway=data.get("gateway", ""),
            interface=data.get("interface", ""),
            metric=int(data.get("metric", 0)),
            age=age,
            primary=bool(data.get("primary", False)),
            bgp=BgpInfo(
                as_path=[int(asn) for asn in bgp.get("as_path", [])],
                next_hop=bgp.get("next_hop", ""),
                med=int(bgp.get("med", 0)),
                local_pref=int(bgp.get("local_pref", 0)),
                communities=[
                    (int(c[0]), int(c[1])) for c in bgp.get("communities", [])
                ],
                large_communities=[
                    (int(c[0]), int(c[1]), int(c[2]))
                    for c in bgp.get("large_communities", [])
                ],
            ),
        )

    def _make_neighbour(self, protocol_id: str, data: dict[str, Any]) -> Neighbour:
        routes = data.get("routes", {})
        changed = self.parse_time(data.get("state_changed"))
        uptime = datetime.now(UTC) - changed if changed is not None else timedelta(0)

        return Neighbour(
            id=protocol_id,
            address=data.get("neighbor_address", ""),
            asn=int(data.get("neighbor_as", 0)),
            state=str(data.get("state", "")).lower(),
            description=data.get("description", ""),
            routes_received=int(routes.get("imported", 0)),
            routes_filtered=int(routes.get("filtered", 0)),
            routes_exported=int(routes.get("exported", 0)),
            routes_preferred=int(routes.get("preferred", 0)),
            routes_accepted=int(routes.get("imported", 0)),
            uptime=uptime,
            last_error=data.get("last_error", ""),
            route_server_id=self.config.id,
        )

    async def _get_routes(self, path: str) -> tuple[list[Route], ApiStatus]:
        data, api = await self._request(path)
        return [self._make_route(r) for r in data.get("routes", [])], api

    async def status(self) -> StatusResponse:
        data, api = await self._request("/status")
        status = data.get("status", {})
        return StatusResponse(
            api=api,
            status=Status(
                server_time=self.parse_time(status.get("server_time")) or datetime.now(UTC),
                last_reboot=(
                    self.parse_time(status.get("last_reboot"))
                    if self.config.show_last_reboot
                    else None
                ),
                last_reconfig=self.parse_time(status.get("last_reconfig")),
                message=status.get("message", ""),
                router_id=status.get("router_id", ""),
                version=status.get("version", ""),
                backend=BACKEND_NAME,
            ),
        )

    async def neighbours(self) -> NeighboursResponse:
        data, api = await self._request("/protocols/bgp")
        neighbours = [
            self._make_neighbour(protocol_id, protocol)
            for protocol_id, protocol in data.get("protocols", {}).items()
        ]
        return NeighboursResponse(api=api, neighbours=neighbours)

    async def neighbours_status(self) -> NeighboursStatusResponse:
        response = await self.neighbours()
        statuses = [
            NeighbourStatus(id=n.id, state=n.state, since=n.uptime)
            for n in response.neighbours
        ]
        return NeighboursStatusResponse(api=response.api, neighbours=statuses)

    async def routes(self, neighbour_id: str) -> RoutesResponse:
        """Get received, filtered and not exported routes of a neighbour."""
        imported, api = await self._get_routes(f"/routes/protocol/{neighbour_id}")
        filtered, _ = await self._get_routes(f"/routes/filtered/{neighbour_id}")
        not_exported, _ = await self._get_routes(f"/routes/noexport/{neighbour_id}")
        return RoutesResponse(
            api=api,
            imported=imported,
            filtered=filtered,
            not_exported=not_exported,
        )

    async def routes_received(self, neighbour_id: str) -> RoutesResponse:
        routes, api = await self._get_routes(f"/routes/protocol/{neighbour_id}")
        return RoutesResponse(api=api, imported=routes)

    async def routes_filtered(self, neighbour_id: str) -> RoutesResponse:
        routes, api = await self._get_routes(f"/routes/filtered/{neighbour_id}")
        return RoutesResponse(api=api, filtered=routes)

    async def routes_not_exported(self, neighbour_id: str) -> RoutesResponse:
        routes, api = await self._get_routes(f"/routes/noexport/{neighbour_id}")
        return RoutesResponse(api=api, not_exported=routes)

    async def all_routes(self) -> RoutesResponse:
        """Get the routes of all neighbours from the RIB dump."""
        data, api = await self._request("/routes/dump")
        return RoutesResponse(
            api=api,
            imported=[self._make_route(r) for r in data.get("imported", [])],
            filtered=[self._make_route(r) for r in data.get("filtered", [])],
        )
