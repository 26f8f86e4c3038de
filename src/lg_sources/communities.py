"""BGP (large) community to label mappings."""

import logging
from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)

Community = tuple[str, ...]

WILDCARD = "*"

# RFC 1997 / RFC 7999 / RFC 8326 well-known communities
WELL_KNOWN_COMMUNITIES: dict[str, str] = {
    "65535:0": "graceful shutdown",
    "65535:1": "accept own",
    "65535:666": "blackhole",
    "65535:65281": "no export",
    "65535:65282": "no advertise",
    "65535:65283": "no export subconfed",
    "65535:65284": "nopeer",
}


def parse_community(community: str | Sequence[str | int]) -> Community:
    """Turn a community into its tuple-of-tokens key.

    Args:
        community: Either a colon separated string ("65000:1000:1")
            or a sequence of tokens.

    Returns:
        Tuple of trimmed string tokens.
    """
    if isinstance(community, str):
        tokens = community.split(":")
    else:
        tokens = list(community)
    return tuple(str(token).strip() for token in tokens)


def _token_matches(pattern: str, token: str) -> bool:
    if pattern == WILDCARD or pattern == token:
        return True

    lower, sep, upper = pattern.partition("-")
    if not sep:
        return False
    try:
        return int(lower) <= int(token) <= int(upper)
    except ValueError:
        return False


class BgpCommunities:
    """Mapping from a community tuple to a human readable label.

    Keys are tuples of string tokens. Setting the same key again
    overwrites the label.

    Example:
        communities = make_well_known_communities()
        communities.set("65000:1:2", "customer route")
        communities.lookup("65535:666")  # "blackhole"
    """

    def __init__(self, communities: dict[str, str] | None = None):
        self._labels: dict[Community, str] = {}
        for community, label in (communities or {}).items():
            self.set(community, label)

    def set(self, community: str | Sequence[str | int], label: str) -> None:
        """Insert or replace the label for a community."""
        self._labels[parse_community(community)] = label

    def get(self, community: str | Sequence[str | int], default: str | None = None) -> str | None:
        """Get the label stored for exactly this community."""
        return self._labels.get(parse_community(community), default)

    def lookup(self, community: str | Sequence[str | int]) -> str | None:
        """Resolve a concrete community to a label.

        An exact key wins. Otherwise keys may contain the wildcard ``*``
        or a numeric range ``lo-hi`` in any token position.

        Returns:
            The label, or None if nothing matches.
        """
        key = parse_community(community)
        label = self._labels.get(key)
        if label is not None:
            return label

        for pattern, label in self._labels.items():
            if len(pattern) != len(key):
                continue
            if all(_token_matches(p, t) for p, t in zip(pattern, key)):
                return label
        return None

    def items(self) -> Iterator[tuple[Community, str]]:
        return iter(self._labels.items())

    def to_dict(self) -> dict[str, str]:
        """Convert to a dict keyed by the colon joined community."""
        return {":".join(key): label for key, label in self._labels.items()}

    def __contains__(self, community: object) -> bool:
        if not isinstance(community, (str, tuple, list)):
            return False
        return parse_community(community) in self._labels

    def __iter__(self) -> Iterator[Community]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BgpCommunities):
            return NotImplemented
        return self._labels == other._labels

    def __repr__(self) -> str:
        return f"BgpCommunities({self.to_dict()!r})"


def make_well_known_communities() -> BgpCommunities:
    """Create a community set pre-populated with the well-known communities."""
    return BgpCommunities(WELL_KNOWN_COMMUNITIES)


def merge_communities(communities: BgpCommunities, body: str) -> BgpCommunities:
    """Parse ``community = label`` lines and merge them into a set.

    Existing entries are only ever overwritten or extended, never removed.
    Lines without an ``=`` are skipped with a warning.

    Args:
        communities: The set to merge into.
        body: Raw, line oriented section body.

    Returns:
        The same set that was passed in.
    """
    for line in body.splitlines():
        if not line.strip():
            continue

        community, sep, label = line.partition("=")
        if not sep:
            logger.warning("Skipping malformed BGP community: %s", line)
            continue

        communities.set(community.strip(), label.strip())

    return communities
