"""Discovery of the routing data sources in the config file.

A source is declared by a ``[source:<id>]`` section holding its
display settings, plus exactly one child section
``[source:<id>.<backend>]`` holding the backend configuration.
"""

import logging
from enum import Enum

from pydantic import BaseModel

from lg_sources.config.tree import ConfigTree
from lg_sources.errors import ConfigError
from lg_sources.sources.bioris.config import BioRISConfig
from lg_sources.sources.birdwatcher.config import BirdwatcherConfig
from lg_sources.sources.gobgp.config import GoBGPConfig

logger = logging.getLogger(__name__)

SOURCE_SECTION_PREFIX = "source:"

BackendConfig = BirdwatcherConfig | GoBGPConfig | BioRISConfig


class BackendType(str, Enum):
    """Supported backend types, named by their section suffix."""

    BIRDWATCHER = "birdwatcher"
    GOBGP = "gobgp"
    BIORIS = "bioris"


class SourceConfig(BaseModel):
    """Descriptor of a configured routing data source.

    Attributes:
        id: Unique source id, taken from the section name.
        order: Position among the configured sources, for stable display.
        name: Display name.
        group: Optional group label.
        blackholes: Blackhole next hop addresses.
        type: Backend type.
        backend: Backend configuration matching ``type``.
    """

    id: str
    order: int
    name: str = "Unknown Source"
    group: str = ""
    blackholes: list[str] = []
    type: BackendType
    backend: BackendConfig


def trimmed_string_list(value: str) -> list[str]:
    """Split a comma separated value, dropping empty entries."""
    return [item.strip() for item in value.split(",") if item.strip()]


def is_source_base(section_name: str) -> bool:
    """Check if a section declares a source (``source:<id>``)."""
    if not section_name.startswith(SOURCE_SECTION_PREFIX):
        return False
    source_id = section_name[len(SOURCE_SECTION_PREFIX):]
    return bool(source_id) and "." not in source_id


def get_backend_type(section_name: str) -> BackendType | None:
    """Get the backend type from the suffix of a backend section name.

    Returns:
        The backend type, or None if the suffix is not supported.
    """
    suffix = section_name.rsplit(".", 1)[-1]
    try:
        return BackendType(suffix)
    except ValueError:
        return None


def _make_backend_config(
    tree: ConfigTree,
    backend_type: BackendType,
    section_name: str,
    source_id: str,
    source_name: str,
) -> BackendConfig:
    section = tree.section(section_name)

    match backend_type:
        case BackendType.BIRDWATCHER:
            config = BirdwatcherConfig.from_section(
                section, section_name=section_name, id=source_id, name=source_name
            )
            logger.info(
                "Adding birdwatcher source %s of type %s with peer_table_prefix %s "
                "and pipe_protocol_prefix %s",
                source_id,
                config.type,
                config.peer_table_prefix,
                config.pipe_protocol_prefix,
            )
            return config
        case BackendType.GOBGP:
            return GoBGPConfig.from_section(
                section, section_name=section_name, id=source_id, name=source_name
            )
        case BackendType.BIORIS:
            return BioRISConfig.from_section(
                section, section_name=section_name, id=source_id, name=source_name
            )


def get_sources(tree: ConfigTree) -> list[SourceConfig]:
    """Get all configured sources in declaration order.

    Raises:
        ConfigError: If a source has no backend section, more than one
            backend section, or a backend of an unsupported type. Any
            of these aborts the whole load.
    """
    sources: list[SourceConfig] = []

    for section_name in tree.section_names():
        if not is_source_base(section_name):
            continue

        source_id = section_name[len(SOURCE_SECTION_PREFIX):]

        backend_sections = tree.child_sections(section_name)
        if not backend_sections:
            raise ConfigError(f"{section_name} has no backend configuration")
        if len(backend_sections) > 1:
            raise ConfigError(f"{section_name} has ambiguous backends")

        backend_section = backend_sections[0]
        backend_type = get_backend_type(backend_section)
        if backend_type is None:
            raise ConfigError(f"{section_name} has an unsupported backend")

        name = tree.get(section_name, "name") or "Unknown Source"
        backend = _make_backend_config(
            tree, backend_type, backend_section, source_id, name
        )

        sources.append(
            SourceConfig(
                id=source_id,
                order=len(sources),
                name=name,
                group=tree.get(section_name, "group") or "",
                blackholes=trimmed_string_list(tree.get(section_name, "blackholes") or ""),
                type=backend_type,
                backend=backend,
            )
        )

    return sources
