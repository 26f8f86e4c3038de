"""Configuration of a birdwatcher source."""

from typing import Literal

from pydantic import Field

from lg_sources.config.base import SectionModel

BirdwatcherType = Literal["single_table", "multi_table"]


class BirdwatcherConfig(SectionModel):
    """Settings for a birdwatcher API in front of a BIRD route server.

    The server time fields are ``strptime`` formats used to parse the
    timestamps reported by birdwatcher.
    """

    id: str = ""
    name: str = ""

    api: str = ""
    timezone: str = "UTC"
    server_time: str = Field(default="%Y-%m-%dT%H:%M:%S.%f%z", alias="servertime")
    server_time_short: str = Field(default="%Y-%m-%d", alias="servertime_short")
    server_time_ext: str = Field(default="%a, %d %b %Y %H:%M:%S %z", alias="servertime_ext")
    show_last_reboot: bool = False

    type: BirdwatcherType
    peer_table_prefix: str = "T"
    pipe_protocol_prefix: str = "M"
