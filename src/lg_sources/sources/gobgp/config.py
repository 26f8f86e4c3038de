"""Configuration of a GoBGP source."""

from lg_sources.config.base import SectionModel


class GoBGPConfig(SectionModel):
    id: str = ""
    name: str = ""

    host: str = ""
    processing_timeout: int = 300
