"""Loading of the looking glass configuration file."""

import configparser
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from lg_sources.config.base import SectionModel
from lg_sources.config.sources import SourceConfig, get_sources
from lg_sources.config.tree import ConfigTree
from lg_sources.config.ui import UiConfig, get_ui_config
from lg_sources.errors import ConfigError

logger = logging.getLogger(__name__)


class ServerConfig(SectionModel):
    listen: str = Field(default="", alias="listen_http")
    enable_prefix_lookup: bool = False
    neighbours_store_refresh_interval: int = 0
    routes_store_refresh_interval: int = 0
    asn: int = 0
    enable_neighbors_status_refresh: bool = False

    @field_validator("asn", mode="before")
    @classmethod
    def _parse_asn(cls, value: object) -> int:
        # An unusable ASN only degrades the RPKI defaults, see get_rpki_config
        try:
            return int(value)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid own ASN %r in [server]", value)
            return 0


class HousekeepingConfig(SectionModel):
    interval: int = 0
    force_release_memory: bool = False


class Config(BaseModel):
    """The complete, validated configuration.

    Built once by ``load_config`` and not modified afterwards.
    """

    server: ServerConfig
    housekeeping: HousekeepingConfig
    ui: UiConfig
    sources: list[SourceConfig]
    file: str = ""

    def source_by_id(self, source_id: str) -> SourceConfig | None:
        """Get a source by its id, or None if it is not configured."""
        for source in self.sources:
            if source.id == source_id:
                return source
        return None


def get_config_file(filename: str | Path) -> Path:
    """Find the configuration file, trying fallbacks.

    For ``/etc/lg-sources/lg.conf`` the candidates are, in order:

        /etc/lg-sources/lg.conf
        ../etc/lg-sources/lg.conf
        ../etc/lg-sources/lg.local.conf

    Raises:
        ConfigError: If none of the candidates exists.
    """
    path = Path(filename)
    if path.exists():
        return path

    path = Path(f"..{filename}")
    if path.exists():
        return path

    path = Path(str(path).replace(".conf", ".local.conf", 1))
    if path.exists():
        return path

    raise ConfigError(f"Could not find any configuration file for {filename}")


def parse_config(tree: ConfigTree, file: str = "") -> Config:
    """Build the Config from a parsed configuration file.

    Raises:
        ConfigError: On the first invalid section.
    """
    server = ServerConfig.from_section(tree.section("server"), section_name="server")
    housekeeping = HousekeepingConfig.from_section(
        tree.section("housekeeping"), section_name="housekeeping"
    )

    sources = get_sources(tree)
    ui = get_ui_config(tree)

    return Config(
        server=server,
        housekeeping=housekeeping,
        ui=ui,
        sources=sources,
        file=file,
    )


def load_config(filename: str | Path) -> Config:
    """Load the configuration file.

    Args:
        filename: Path of the configuration file.

    Returns:
        The configuration.

    Raises:
        ConfigError: If the file cannot be found, parsed or validated.
    """
    path = get_config_file(filename)
    logger.info("Loading configuration from %s", path)

    try:
        tree = ConfigTree.from_file(path)
    except configparser.Error as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    config = parse_config(tree, file=str(path))
    logger.info("Loaded %d sources", len(config.sources))
    return config
