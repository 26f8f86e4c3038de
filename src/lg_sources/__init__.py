"""lg-sources - routing data sources for BGP looking glasses."""

__version__ = "0.1.0"
