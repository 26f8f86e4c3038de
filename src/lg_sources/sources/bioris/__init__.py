"""bio-routing RIS backend (gRPC)."""

from lg_sources.sources.bioris.config import BioRISConfig
from lg_sources.sources.bioris.source import BioRISSource, ConnectionState

__all__ = ["BioRISConfig", "BioRISSource", "ConnectionState"]
