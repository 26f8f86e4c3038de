"""Process settings using Pydantic settings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_FILE = "/etc/lg-sources/lg.conf"


class OutputFormat(str, Enum):
    """Output format options."""

    TEXT = "text"
    JSON = "json"


class Settings(BaseSettings):
    """Settings loaded from environment and CLI.

    Settings are loaded in priority order:
    1. CLI arguments (highest priority)
    2. Environment variables (prefixed with ``LG_``)
    3. .env file
    4. Default values (lowest priority)

    The looking glass itself is configured by the file at ``config_file``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_file: str = Field(
        default=DEFAULT_CONFIG_FILE,
        description="Path to the looking glass configuration file",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    output_format: OutputFormat = Field(
        default=OutputFormat.TEXT,
        description="Output format (text or json)",
    )
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Deadline in seconds for a source operation",
    )


def load_settings(**overrides) -> Settings:
    """Load settings with optional overrides.

    Args:
        **overrides: Keyword arguments to override settings.

    Returns:
        Settings instance.
    """
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
