"""Registry of live source instances.

The configuration only describes sources; the registry owns the
backend instances. Each instance is constructed on first use and
cached for the lifetime of the registry.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from lg_sources.config.sources import BackendType, SourceConfig
from lg_sources.errors import SourceError, UnknownSourceError
from lg_sources.sources.base import Source
from lg_sources.sources.bioris.source import BioRISSource
from lg_sources.sources.birdwatcher.source import BirdwatcherSource

logger = logging.getLogger(__name__)

BackendFactory = Callable[[Any], Source]

DEFAULT_BACKENDS: dict[BackendType, BackendFactory | None] = {
    BackendType.BIRDWATCHER: BirdwatcherSource,
    BackendType.GOBGP: None,
    BackendType.BIORIS: BioRISSource,
}


class SourceRegistry:
    """Creates and caches one Source per configured source.

    ``get_instance`` is safe to call from several threads or
    coroutines at once: an instance is constructed at most once.
    Constructing an instance performs no network I/O.

    Example:
        registry = SourceRegistry(config.sources)
        source = registry.get_instance("rs1")
        response = await source.neighbours()
    """

    def __init__(
        self,
        sources: Iterable[SourceConfig],
        backends: dict[BackendType, BackendFactory | None] | None = None,
    ):
        """Initialize the registry.

        Args:
            sources: Configured sources.
            backends: Factories by backend type, replacing the defaults
                for the types given.
        """
        self._sources = {source.id: source for source in sources}
        self._backends: dict[BackendType, BackendFactory | None] = dict(DEFAULT_BACKENDS)
        if backends:
            self._backends.update(backends)
        self._instances: dict[str, Source] = {}
        self._lock = threading.Lock()

    def register_backend(self, backend_type: BackendType, factory: BackendFactory) -> None:
        """Set the factory used to construct sources of a backend type."""
        self._backends[backend_type] = factory

    def source_by_id(self, source_id: str) -> SourceConfig | None:
        return self._sources.get(source_id)

    def get_instance(self, source: SourceConfig | str) -> Source:
        """Get the live instance of a source, constructing it if needed.

        Args:
            source: Source config or source id.

        Returns:
            The cached instance; repeated calls return the same object.

        Raises:
            UnknownSourceError: If the source id is not configured.
            SourceError: If no adapter is available for the backend type.
        """
        source_id = source.id if isinstance(source, SourceConfig) else source
        source_config = self._sources.get(source_id)
        if source_config is None:
            raise UnknownSourceError(source_id)

        with self._lock:
            instance = self._instances.get(source_id)
            if instance is None:
                instance = self._make_instance(source_config)
                self._instances[source_id] = instance
            return instance

    def _make_instance(self, source: SourceConfig) -> Source:
        factory = self._backends.get(source.type)
        if factory is None:
            raise SourceError(
                f"Source {source.id}: no adapter available for backend {source.type.value}"
            )

        logger.info("Creating %s source %s (%s)", source.type.value, source.id, source.name)
        return factory(source.backend)

    def instances(self) -> dict[str, Source]:
        """Get the instances constructed so far, by source id."""
        with self._lock:
            return dict(self._instances)

    async def close(self) -> None:
        """Disconnect all constructed instances."""
        for instance in self.instances().values():
            await instance.disconnect()
