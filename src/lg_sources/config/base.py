"""Base model for structs mapped from configuration sections."""

from collections.abc import Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, ValidationError

from lg_sources.errors import ConfigError


class SectionModel(BaseModel):
    """A pydantic model populated from the keys of an INI section.

    Fields are matched by their alias (the INI key) or by name. Unknown
    keys are ignored and keys with an empty value count as unset, so the
    field keeps its default.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    @classmethod
    def from_section(
        cls,
        section: Mapping[str, str],
        *,
        section_name: str = "",
        **defaults: Any,
    ) -> Self:
        """Map a section onto the model.

        Args:
            section: Key/value pairs of the section.
            section_name: Section name, used in error messages.
            **defaults: Values applied before the section, overriding
                the model defaults.

        Returns:
            Model instance.

        Raises:
            ConfigError: If a value cannot be converted.
        """
        data = dict(defaults)
        data.update({key: value for key, value in section.items() if value != ""})
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in [{section_name}]: {e}") from e
