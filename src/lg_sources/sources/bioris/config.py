"""Configuration of a BioRIS (bio-routing RIS) source."""

from pydantic import Field

from lg_sources.config.base import SectionModel
from lg_sources.errors import ConfigError


class BioRISConfig(SectionModel):
    """Connection settings for a BioRIS routing information service.

    Attributes:
        id: Source id.
        name: Display name of the source.
        api: gRPC endpoint of the RIS ("host:port").
        router: Router whose RIB is queried.
        vrf_id: VRF of the routing table.
        timeout: Deadline in seconds for each remote call, None for no deadline.
    """

    id: str = ""
    name: str = ""

    api: str = ""
    router: str = ""
    vrf_id: int = Field(default=0, ge=0)
    timeout: float | None = None

    def verify(self) -> None:
        """Check that the required fields are set.

        Raises:
            ConfigError: If the api or the router is missing.
        """
        if not self.api:
            raise ConfigError(f"Source {self.id}: missing api configuration")
        if not self.router:
            raise ConfigError(f"Source {self.id}: a router needs to be specified")
