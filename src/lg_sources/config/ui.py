"""Derivation of the UI / domain configuration from the config file.

Every ``get_*`` function takes the parsed ConfigTree and is independent
of the others. ``get_ui_config`` runs all of them and lets the first
ConfigError propagate.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field

from lg_sources.communities import (
    BgpCommunities,
    make_well_known_communities,
    merge_communities,
)
from lg_sources.config.base import SectionModel
from lg_sources.config.tree import ConfigTree
from lg_sources.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_THEME_BASE_PATH = "/theme"

# Defaults as defined by euro-ix:
#   https://www.euro-ix.net/en/forixps/large-bgp-communities/
RPKI_FUNCTION = "1000"
RPKI_VALID = "1"
RPKI_UNKNOWN = "2"
RPKI_NOT_CHECKED = "3"
RPKI_INVALID = "4"

Columns = tuple[dict[str, str], list[str]]

ROUTES_COLUMNS_DEFAULTS: dict[str, str] = {
    "network": "Network",
    "bgp.as_path": "AS Path",
    "gateway": "Gateway",
    "interface": "Interface",
}

NEIGHBOURS_COLUMNS_DEFAULTS: dict[str, str] = {
    "address": "Neighbour",
    "asn": "ASN",
    "state": "State",
    "Uptime": "Uptime",
    "Description": "Description",
    "routes_received": "Routes Recv.",
    "routes_filtered": "Routes Filtered",
}

LOOKUP_COLUMNS_DEFAULTS: dict[str, str] = {
    "network": "Network",
    "gateway": "Gateway",
    "bgp.as_path": "AS Path",
    "neighbour.asn": "ASN",
    "neighbour.description": "Neighbor",
    "routeserver.name": "RS",
}


class RejectionsConfig(BaseModel):
    """Communities tagging a route as rejected, with their reasons."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    reasons: BgpCommunities = Field(default_factory=BgpCommunities)


class NoexportsConfig(SectionModel):
    """Communities tagging a route as not exported."""

    reasons: BgpCommunities = Field(default_factory=BgpCommunities)
    load_on_demand: bool = False


class RejectCandidatesConfig(BaseModel):
    """Communities marking a route as candidate for rejection."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    communities: BgpCommunities = Field(default_factory=BgpCommunities)


class RpkiConfig(SectionModel):
    """Large communities encoding the RPKI validation state of a route.

    The ``invalid`` entry may end in a range, so it holds either
    three or four tokens.
    """

    enabled: bool = False
    valid: list[str] = Field(default_factory=list)
    unknown: list[str] = Field(default_factory=list)
    not_checked: list[str] = Field(default_factory=list)
    invalid: list[str] = Field(default_factory=list)


class ThemeConfig(SectionModel):
    path: str = ""
    base_path: str = Field(default=DEFAULT_THEME_BASE_PATH, alias="url_base")


class PaginationConfig(SectionModel):
    routes_filtered_page_size: int = 0
    routes_accepted_page_size: int = 0
    routes_not_exported_page_size: int = 0


class UiConfig(BaseModel):
    """Everything the frontend needs to know to render sources."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    routes_columns: dict[str, str]
    routes_columns_order: list[str]

    neighbours_columns: dict[str, str]
    neighbours_columns_order: list[str]

    lookup_columns: dict[str, str]
    lookup_columns_order: list[str]

    routes_rejections: RejectionsConfig
    routes_noexports: NoexportsConfig
    routes_reject_candidates: RejectCandidatesConfig

    bgp_communities: BgpCommunities
    rpki: RpkiConfig

    theme: ThemeConfig
    pagination: PaginationConfig


def _get_columns(tree: ConfigTree, name: str, defaults: dict[str, str]) -> Columns:
    section = tree.section(name)
    if not section:
        return dict(defaults), list(defaults)
    return dict(section), list(section)


def get_routes_columns(tree: ConfigTree) -> Columns:
    """Get the columns of the routes table, in configured order.

    Falls back to the defaults if ``[routes_columns]`` is empty.
    """
    return _get_columns(tree, "routes_columns", ROUTES_COLUMNS_DEFAULTS)


def get_neighbours_columns(tree: ConfigTree) -> Columns:
    """Get the columns of the neighbours table."""
    return _get_columns(tree, "neighbours_columns", NEIGHBOURS_COLUMNS_DEFAULTS)


def get_lookup_columns(tree: ConfigTree) -> Columns:
    """Get the columns of the prefix lookup table.

    Lookup results reference the neighbour and route server as
    nested objects, hence the separate set of columns.
    """
    return _get_columns(tree, "lookup_columns", LOOKUP_COLUMNS_DEFAULTS)


def get_bgp_communities(tree: ConfigTree) -> BgpCommunities:
    """Get the well-known communities merged with ``[bgp_communities]``."""
    communities = make_well_known_communities()
    body = tree.body("bgp_communities")
    if body is None:
        return communities
    return merge_communities(communities, body)


def get_routes_rejections(tree: ConfigTree) -> RejectionsConfig:
    body = tree.body("rejection_reasons")
    if body is None:
        return RejectionsConfig()
    return RejectionsConfig(reasons=merge_communities(BgpCommunities(), body))


def get_routes_noexports(tree: ConfigTree) -> NoexportsConfig:
    """Get the ``[noexport]`` settings with the ``[noexport_reasons]``."""
    noexports = NoexportsConfig.from_section(
        tree.section("noexport"), section_name="noexport"
    )
    body = tree.body("noexport_reasons") or ""
    noexports.reasons = merge_communities(BgpCommunities(), body)
    return noexports


def get_reject_candidates(tree: ConfigTree) -> RejectCandidatesConfig:
    """Get the reject candidate communities.

    Each community of the comma separated list is labeled
    ``reject-candidate-<n>``, counting from 1.
    """
    candidates = tree.get("rejection_candidates", "communities") or ""
    if not candidates:
        return RejectCandidatesConfig()

    communities = BgpCommunities()
    for i, community in enumerate(candidates.split(","), start=1):
        communities.set(community, f"reject-candidate-{i}")
    return RejectCandidatesConfig(communities=communities)


def get_own_asn(tree: ConfigTree) -> int:
    """Get the ASN of this looking glass from ``[server]``.

    Raises:
        ConfigError: If the ASN is not configured or not a number.
    """
    asn = tree.get("server", "asn")
    if not asn:
        raise ConfigError("Could not get own ASN from config: [server] asn is not set")
    try:
        return int(asn)
    except ValueError as e:
        raise ConfigError(f"Could not get own ASN from config: {asn!r} is not a number") from e


def _split_triplet(value: str) -> list[str]:
    return [token.strip() for token in value.split(":", 2)]


def get_rpki_config(tree: ConfigTree) -> RpkiConfig:
    """Get the RPKI communities.

    Unset entries default to ``<own asn>:1000:<1..4>``. The invalid
    entry may end in a range (``65000:1000:5-9``), which is expanded
    into a fourth token; the invalid default ends in a wildcard.

    Raises:
        ConfigError: If a configured invalid entry does not have
            exactly three parts.
    """
    section = tree.section("rpki")
    rpki = RpkiConfig.from_section(
        {"enabled": section.get("enabled", "")}, section_name="rpki"
    )

    try:
        own_asn = str(get_own_asn(tree))
    except ConfigError:
        logger.warning(
            "Own ASN is not configured. "
            "This might lead to unexpected behaviour with BGP large communities"
        )
        own_asn = "0"

    defaults = {
        "valid": RPKI_VALID,
        "unknown": RPKI_UNKNOWN,
        "not_checked": RPKI_NOT_CHECKED,
    }
    for key, tag in defaults.items():
        value = section.get(key, "")
        if value:
            setattr(rpki, key, _split_triplet(value))
        else:
            setattr(rpki, key, [own_asn, RPKI_FUNCTION, tag])

    invalid = section.get("invalid", "")
    if not invalid:
        rpki.invalid = [own_asn, RPKI_FUNCTION, RPKI_INVALID, "*"]
    else:
        tokens = _split_triplet(invalid)
        if len(tokens) != 3:
            # Expected are three parts: (RS):1000:[range]
            raise ConfigError(f"Unexpected [rpki] invalid configuration: {invalid!r}")
        rpki.invalid = tokens[:2] + [t.strip() for t in tokens[2].split("-")]

    return rpki


def get_theme_config(tree: ConfigTree) -> ThemeConfig:
    """Get the theme settings. Theming is optional."""
    theme = ThemeConfig.from_section(tree.section("theme"), section_name="theme")
    if not theme.base_path:
        theme.base_path = DEFAULT_THEME_BASE_PATH
    return theme


def get_pagination_config(tree: ConfigTree) -> PaginationConfig:
    return PaginationConfig.from_section(
        tree.section("pagination"), section_name="pagination"
    )


def get_ui_config(tree: ConfigTree) -> UiConfig:
    """Build the UI configuration.

    Raises:
        ConfigError: The first error raised by any of the derivations.
    """
    routes_columns, routes_columns_order = get_routes_columns(tree)
    neighbours_columns, neighbours_columns_order = get_neighbours_columns(tree)
    lookup_columns, lookup_columns_order = get_lookup_columns(tree)

    return UiConfig(
        routes_columns=routes_columns,
        routes_columns_order=routes_columns_order,
        neighbours_columns=neighbours_columns,
        neighbours_columns_order=neighbours_columns_order,
        lookup_columns=lookup_columns,
        lookup_columns_order=lookup_columns_order,
        routes_rejections=get_routes_rejections(tree),
        routes_noexports=get_routes_noexports(tree),
        routes_reject_candidates=get_reject_candidates(tree),
        bgp_communities=get_bgp_communities(tree),
        rpki=get_rpki_config(tree),
        theme=get_theme_config(tree),
        pagination=get_pagination_config(tree),
    )
