"""Data models for lg-sources."""

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

__all__ = [
    "ApiStatus",
    "BgpInfo",
    "CacheStatus",
    "Neighbour",
    "NeighbourStatus",
    "NeighboursResponse",
    "NeighboursStatusResponse",
    "Route",
    "RoutesResponse",
    "Status",
    "StatusResponse",
]
