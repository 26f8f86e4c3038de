"""Shared fixtures."""

import pytest

from lg_sources.config.tree import ConfigTree

SAMPLE_CONFIG = """
[server]
listen_http = 127.0.0.1:7340
enable_prefix_lookup = true
neighbours_store_refresh_interval = 5
routes_store_refresh_interval = 5
asn = 65000

[housekeeping]
interval = 5
force_release_memory = true

[rejection_reasons]
65000:1101:1 = Invalid AS_PATH length
65000:1101:2 = Prefix is bogon

[noexport]
load_on_demand = true

[noexport_reasons]
65000:1102:1 = Do not export to peer

[rejection_candidates]
communities = 65000:1001:1,65000:1001:2

[bgp_communities]
65535:666 = blackholed
65000:1:1 = customer route
this line is broken

[rpki]
enabled = true
valid = 65000:1000:1

[theme]
path = /srv/theme

[pagination]
routes_filtered_page_size = 250
routes_accepted_page_size = 250

[routes_columns]
network = Network
gateway = Gateway

[source:rs1-v4]
name = rs1.example.net (IPv4)
group = FRA
blackholes = 10.23.6.666, 10.23.6.665

[source:rs1-v4.birdwatcher]
api = http://rs1.example.net:29184/
type = multi_table
peer_table_prefix = PEER

[source:rs2-ris]
name = rs2.example.net

[source:rs2-ris.bioris]
api = ris.example.net:4321
router = 192.0.2.1
vrf_id = 1
"""


@pytest.fixture
def sample_config_text() -> str:
    return SAMPLE_CONFIG


@pytest.fixture
def sample_tree() -> ConfigTree:
    return ConfigTree.from_string(SAMPLE_CONFIG)
