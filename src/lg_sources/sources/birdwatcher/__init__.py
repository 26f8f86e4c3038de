"""birdwatcher backend (HTTP)."""

from lg_sources.sources.birdwatcher.config import BirdwatcherConfig
from lg_sources.sources.birdwatcher.source import BirdwatcherSource

__all__ = ["BirdwatcherConfig", "BirdwatcherSource"]
