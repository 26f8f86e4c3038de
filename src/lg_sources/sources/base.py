"""Abstract base class for routing data sources."""

from abc import ABC, abstractmethod
from typing import Any

from lg_sources.models.api import (
    NeighboursResponse,
    NeighboursStatusResponse,
    RoutesResponse,
    StatusResponse,
)


class Source(ABC):
    """Abstract base class for route server backends.

    Every backend, whatever its wire protocol, implements these
    operations. Remote failures are raised as SourceError; a route
    category the backend cannot classify is returned as an empty list.
    Backends connect lazily, so the lifecycle methods are optional for
    callers.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the backend."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the backend."""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the backend is available.

        Returns:
            True if the backend is reachable and operational.
        """
        pass

    @abstractmethod
    async def expire_caches(self) -> int:
        """Expire cached responses.

        Returns:
            Number of cache entries removed, 0 for backends without cache.
        """
        pass

    @abstractmethod
    async def status(self) -> StatusResponse:
        """Get health and version information of the backend."""
        pass

    @abstractmethod
    async def neighbours(self) -> NeighboursResponse:
        """Get all neighbours of the route server."""
        pass

    @abstractmethod
    async def neighbours_status(self) -> NeighboursStatusResponse:
        """Get the session state of all neighbours."""
        pass

    @abstractmethod
    async def routes(self, neighbour_id: str) -> RoutesResponse:
        """Get all routes of a neighbour."""
        pass

    @abstractmethod
    async def routes_received(self, neighbour_id: str) -> RoutesResponse:
        """Get the routes received from a neighbour."""
        pass

    @abstractmethod
    async def routes_filtered(self, neighbour_id: str) -> RoutesResponse:
        """Get the routes of a neighbour rejected by the import filter."""
        pass

    @abstractmethod
    async def routes_not_exported(self, neighbour_id: str) -> RoutesResponse:
        """Get the routes of a neighbour not exported to other peers."""
        pass

    @abstractmethod
    async def all_routes(self) -> RoutesResponse:
        """Get the routes of all neighbours."""
        pass

    async def __aenter__(self) -> "Source":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.disconnect()
