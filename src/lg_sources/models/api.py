"""Response envelope shared by all source operations.

Every operation of a routing data source returns its payload together
with an ApiStatus telling the caller which API version produced it,
whether it was served from a cache and until when it may be cached.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from lg_sources.models.neighbour import Neighbour, NeighbourStatus
from lg_sources.models.route import Route


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class CacheStatus:
    cached_at: datetime | None = None
    orig_ttl: int = 0

    def to_dict(self) -> dict:
        return {
            "cached_at": _isoformat(self.cached_at),
            "orig_ttl": self.orig_ttl,
        }


@dataclass
class ApiStatus:
    """Version, cache and time-to-live information of a response.

    Attributes:
        version: API version of the backend
        ttl: Time until which the response may be cached
        result_from_cache: Whether the response was served from a cache
        cache_status: Details about the cache entry
    """

    version: str
    ttl: datetime
    result_from_cache: bool = False
    cache_status: CacheStatus = field(default_factory=CacheStatus)

    @classmethod
    def make(cls, version: str, ttl: timedelta = timedelta(0)) -> "ApiStatus":
        """Create a status for an uncached response valid for ``ttl``."""
        return cls(version=version, ttl=datetime.now(UTC) + ttl)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "cache_status": self.cache_status.to_dict(),
            "result_from_cache": self.result_from_cache,
            "ttl": self.ttl.isoformat(),
        }


@dataclass
class Status:
    """Health and version information of a backend."""

    server_time: datetime
    version: str = ""
    backend: str = ""
    last_reboot: datetime | None = None
    last_reconfig: datetime | None = None
    message: str = ""
    router_id: str = ""

    def to_dict(self) -> dict:
        return {
            "server_time": self.server_time.isoformat(),
            "last_reboot": _isoformat(self.last_reboot),
            "last_reconfig": _isoformat(self.last_reconfig),
            "message": self.message,
            "router_id": self.router_id,
            "version": self.version,
            "backend": self.backend,
        }


@dataclass
class StatusResponse:
    api: ApiStatus
    status: Status

    def to_dict(self) -> dict:
        return {"api": self.api.to_dict(), "status": self.status.to_dict()}


@dataclass
class NeighboursResponse:
    api: ApiStatus
    neighbours: list[Neighbour] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "api": self.api.to_dict(),
            "neighbours": [n.to_dict() for n in self.neighbours],
        }


@dataclass
class NeighboursStatusResponse:
    api: ApiStatus
    neighbours: list[NeighbourStatus] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "api": self.api.to_dict(),
            "neighbours": [n.to_dict() for n in self.neighbours],
        }


@dataclass
class RoutesResponse:
    """Routes partitioned by acceptance category.

    A category the operation did not ask for is None; a category the
    backend cannot classify is an empty list.
    """

    api: ApiStatus
    imported: list[Route] | None = None
    filtered: list[Route] | None = None
    not_exported: list[Route] | None = None

    def to_dict(self) -> dict:
        def routes(value: list[Route] | None) -> list[dict] | None:
            return [r.to_dict() for r in value] if value is not None else None

        return {
            "api": self.api.to_dict(),
            "imported": routes(self.imported),
            "filtered": routes(self.filtered),
            "not_exported": routes(self.not_exported),
        }
