"""Read-only view of a parsed INI configuration file."""

import configparser
from pathlib import Path


class ConfigTree:
    """Named sections with ordered keys and raw section bodies.

    Wraps a ``configparser.ConfigParser`` set up for looking glass
    configuration files: ``=`` is the only delimiter (community keys
    contain colons), key case is preserved, keys without a value are
    allowed and duplicate keys do not fail the parse.

    Example:
        tree = ConfigTree.from_file("/etc/lg-sources/lg.conf")
        tree.section("server")  # {"asn": "65000", ...}
        tree.child_sections("source:rs1")  # ["source:rs1.bioris"]
    """

    def __init__(self, parser: configparser.ConfigParser):
        self._parser = parser

    @staticmethod
    def _make_parser() -> configparser.ConfigParser:
        parser = configparser.ConfigParser(
            delimiters=("=",),
            allow_no_value=True,
            strict=False,
            interpolation=None,
            default_section="__default__",
        )
        parser.optionxform = str  # type: ignore[assignment,method-assign]
        return parser

    @classmethod
    def from_string(cls, text: str) -> "ConfigTree":
        """Parse configuration text."""
        parser = cls._make_parser()
        parser.read_string(text)
        return cls(parser)

    @classmethod
    def from_file(cls, path: str | Path) -> "ConfigTree":
        """Parse a configuration file."""
        parser = cls._make_parser()
        with open(path, encoding="utf-8") as f:
            parser.read_file(f)
        return cls(parser)

    def section_names(self) -> list[str]:
        """Get all section names in declaration order."""
        return self._parser.sections()

    def has_section(self, name: str) -> bool:
        return self._parser.has_section(name)

    def section(self, name: str) -> dict[str, str]:
        """Get the key/value pairs of a section in declaration order.

        Returns an empty dict if the section does not exist. Keys
        declared without a value map to an empty string.
        """
        if not self._parser.has_section(name):
            return {}
        return {
            key: value if value is not None else ""
            for key, value in self._parser.items(name)
        }

    def get(self, section: str, key: str, default: str | None = None) -> str | None:
        """Get a single value, or default if the section or key is missing."""
        return self._parser.get(section, key, fallback=default)

    def body(self, name: str) -> str | None:
        """Get the raw, line oriented body of a section.

        Every key is rendered as ``key = value``; keys without a
        value are rendered bare so line parsers can reject them.

        Returns:
            The body, or None if the section does not exist.
        """
        if not self._parser.has_section(name):
            return None

        lines = []
        for key, value in self._parser.items(name):
            if value is None:
                lines.append(key)
            else:
                lines.append(f"{key} = {value}")
        return "\n".join(lines)

    def child_sections(self, name: str) -> list[str]:
        """Get the names of all sections nested below ``name``.

        A section ``a.b`` is a child of ``a``.
        """
        prefix = f"{name}."
        return [s for s in self._parser.sections() if s.startswith(prefix)]
