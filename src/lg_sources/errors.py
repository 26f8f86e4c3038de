"""Exceptions raised by lg-sources."""


class ConfigError(ValueError):
    """Raised when the configuration file cannot be turned into a Config.

    Configuration errors are fatal for the whole load: the message names
    the offending section.
    """


class SourceError(RuntimeError):
    """Raised when a routing data source cannot be queried.

    The underlying exception is always chained as ``__cause__``.
    """


class UnknownSourceError(KeyError):
    """Raised when a source id is not present in the configuration."""

    def __init__(self, source_id: str):
        super().__init__(source_id)
        self.source_id = source_id

    def __str__(self) -> str:
        return f"Unknown source: {self.source_id}"
