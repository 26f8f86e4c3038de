"""GoBGP source configuration.

No adapter for GoBGP ships with this package; one can be plugged in
with ``SourceRegistry.register_backend``.
"""

from lg_sources.sources.gobgp.config import GoBGPConfig

__all__ = ["GoBGPConfig"]
