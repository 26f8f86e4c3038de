"""Tests for the UI configuration derivation."""

import logging

import pytest

from lg_sources.communities import WELL_KNOWN_COMMUNITIES
from lg_sources.config.tree import ConfigTree
from lg_sources.config.ui import (
    DEFAULT_THEME_BASE_PATH,
    LOOKUP_COLUMNS_DEFAULTS,
    NEIGHBOURS_COLUMNS_DEFAULTS,
    ROUTES_COLUMNS_DEFAULTS,
    get_bgp_communities,
    get_lookup_columns,
    get_neighbours_columns,
    get_own_asn,
    get_pagination_config,
    get_reject_candidates,
    get_routes_columns,
    get_routes_noexports,
    get_routes_rejections,
    get_rpki_config,
    get_theme_config,
    get_ui_config,
)
from lg_sources.errors import ConfigError


def tree(text: str) -> ConfigTree:
    return ConfigTree.from_string(text)


class TestColumns:
    """Tests for the table column settings."""

    def test_defaults(self):
        columns, order = get_routes_columns(tree(""))
        assert columns == ROUTES_COLUMNS_DEFAULTS
        assert order == ["network", "bgp.as_path", "gateway", "interface"]

    def test_configured_replaces_defaults(self, sample_tree):
        columns, order = get_routes_columns(sample_tree)
        assert columns == {"network": "Network", "gateway": "Gateway"}
        assert order == ["network", "gateway"]

    def test_configured_order(self):
        columns, order = get_neighbours_columns(
            tree("[neighbours_columns]\nstate = State\naddress = Neighbour\n")
        )
        assert order == ["state", "address"]
        assert columns["address"] == "Neighbour"

    def test_empty_section_uses_defaults(self):
        columns, order = get_lookup_columns(tree("[lookup_columns]\n"))
        assert columns == LOOKUP_COLUMNS_DEFAULTS
        assert order == list(LOOKUP_COLUMNS_DEFAULTS)

    def test_defaults_are_copies(self):
        columns, _ = get_neighbours_columns(tree(""))
        columns["asn"] = "changed"
        assert NEIGHBOURS_COLUMNS_DEFAULTS["asn"] == "ASN"


class TestCommunities:
    """Tests for the community label settings."""

    def test_bgp_communities_without_section(self):
        assert get_bgp_communities(tree("")).to_dict() == WELL_KNOWN_COMMUNITIES

    def test_bgp_communities_merged(self, sample_tree, caplog):
        with caplog.at_level(logging.WARNING):
            communities = get_bgp_communities(sample_tree)

        expected = dict(WELL_KNOWN_COMMUNITIES)
        expected["65535:666"] = "blackholed"
        expected["65000:1:1"] = "customer route"
        assert communities.to_dict() == expected
        assert "this line is broken" in caplog.text

    def test_rejections(self, sample_tree):
        rejections = get_routes_rejections(sample_tree)
        assert rejections.reasons.to_dict() == {
            "65000:1101:1": "Invalid AS_PATH length",
            "65000:1101:2": "Prefix is bogon",
        }

    def test_rejections_without_section(self):
        assert len(get_routes_rejections(tree("")).reasons) == 0

    def test_noexports(self, sample_tree):
        noexports = get_routes_noexports(sample_tree)
        assert noexports.load_on_demand is True
        assert noexports.reasons.to_dict() == {"65000:1102:1": "Do not export to peer"}

    def test_noexports_defaults(self):
        noexports = get_routes_noexports(tree(""))
        assert noexports.load_on_demand is False
        assert len(noexports.reasons) == 0

    def test_noexports_invalid_flag(self):
        with pytest.raises(ConfigError, match=r"\[noexport\]"):
            get_routes_noexports(tree("[noexport]\nload_on_demand = maybe\n"))

    def test_reject_candidates(self):
        candidates = get_reject_candidates(
            tree("[rejection_candidates]\ncommunities = 100,200,300\n")
        )
        assert candidates.communities.to_dict() == {
            "100": "reject-candidate-1",
            "200": "reject-candidate-2",
            "300": "reject-candidate-3",
        }

    def test_reject_candidates_large_communities(self, sample_tree):
        candidates = get_reject_candidates(sample_tree)
        assert candidates.communities.get("65000:1001:2") == "reject-candidate-2"

    def test_reject_candidates_unset(self):
        assert len(get_reject_candidates(tree("")).communities) == 0


class TestOwnAsn:
    """Tests for get_own_asn."""

    def test_configured(self, sample_tree):
        assert get_own_asn(sample_tree) == 65000

    def test_missing(self):
        with pytest.raises(ConfigError):
            get_own_asn(tree("[server]\n"))

    def test_not_a_number(self):
        with pytest.raises(ConfigError, match="not a number"):
            get_own_asn(tree("[server]\nasn = AS65000\n"))


class TestRpkiConfig:
    """Tests for get_rpki_config."""

    def test_defaults(self):
        rpki = get_rpki_config(tree("[server]\nasn = 65000\n"))
        assert rpki.enabled is False
        assert rpki.valid == ["65000", "1000", "1"]
        assert rpki.unknown == ["65000", "1000", "2"]
        assert rpki.not_checked == ["65000", "1000", "3"]
        assert rpki.invalid == ["65000", "1000", "4", "*"]

    def test_configured(self, sample_tree):
        rpki = get_rpki_config(sample_tree)
        assert rpki.enabled is True
        assert rpki.valid == ["65000", "1000", "1"]
        assert rpki.invalid == ["65000", "1000", "4", "*"]

    def test_custom_valid(self):
        rpki = get_rpki_config(tree("[server]\nasn = 65000\n[rpki]\nvalid = 64512:23:42\n"))
        assert rpki.valid == ["64512", "23", "42"]

    def test_invalid_range(self):
        rpki = get_rpki_config(
            tree("[server]\nasn = 65000\n[rpki]\ninvalid = 65000:1000:5-9\n")
        )
        assert rpki.invalid == ["65000", "1000", "5", "9"]

    def test_invalid_single_value(self):
        rpki = get_rpki_config(
            tree("[server]\nasn = 65000\n[rpki]\ninvalid = 65000:1000:5\n")
        )
        assert rpki.invalid == ["65000", "1000", "5"]

    def test_invalid_too_short(self):
        with pytest.raises(ConfigError, match="Unexpected \\[rpki\\] invalid"):
            get_rpki_config(tree("[server]\nasn = 65000\n[rpki]\ninvalid = 65000:1000\n"))

    def test_missing_asn_uses_zero(self, caplog):
        with caplog.at_level(logging.WARNING):
            rpki = get_rpki_config(tree("[rpki]\nenabled = true\n"))

        assert rpki.valid == ["0", "1000", "1"]
        assert rpki.invalid == ["0", "1000", "4", "*"]
        assert "Own ASN is not configured" in caplog.text


class TestThemeAndPagination:
    """Tests for the theme and pagination settings."""

    def test_theme(self, sample_tree):
        theme = get_theme_config(sample_tree)
        assert theme.path == "/srv/theme"
        assert theme.base_path == DEFAULT_THEME_BASE_PATH

    def test_theme_url_base(self):
        theme = get_theme_config(tree("[theme]\nurl_base = /static/theme\n"))
        assert theme.base_path == "/static/theme"

    def test_theme_unset(self):
        theme = get_theme_config(tree(""))
        assert theme.path == ""
        assert theme.base_path == "/theme"

    def test_pagination(self, sample_tree):
        pagination = get_pagination_config(sample_tree)
        assert pagination.routes_filtered_page_size == 250
        assert pagination.routes_accepted_page_size == 250
        assert pagination.routes_not_exported_page_size == 0

    def test_pagination_invalid(self):
        with pytest.raises(ConfigError, match=r"\[pagination\]"):
            get_pagination_config(tree("[pagination]\nroutes_filtered_page_size = many\n"))


class TestUiConfig:
    """Tests for get_ui_config."""

    def test_complete(self, sample_tree):
        ui = get_ui_config(sample_tree)
        assert ui.routes_columns_order == ["network", "gateway"]
        assert ui.neighbours_columns == NEIGHBOURS_COLUMNS_DEFAULTS
        assert ui.bgp_communities.get("65535:666") == "blackholed"
        assert ui.rpki.enabled is True
        assert ui.routes_noexports.load_on_demand is True
        assert ui.theme.path == "/srv/theme"

    def test_first_error_propagates(self):
        with pytest.raises(ConfigError):
            get_ui_config(tree("[rpki]\ninvalid = broken\n"))
