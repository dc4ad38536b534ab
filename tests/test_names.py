import pytest

from schema_server.names import get_name, item_object_from_name
from schema_server.sku import format_sku, parse_sku

CATALOG_SKUS = [
    "5021;6",
    "13;0",
    "200;11",
    "45;6",
    "45;6;uncraftable",
    "45;11;kt-3",
    "5021;6;uncraftable;untradable",
    "378;5;u13",
    "378;5;u13;strange",
    "378;6;festive",
    "200;15;w1;pk102",
    "264;11;australium",
    "5022;6;c1",
    "6523;6;kt-2;td-45",
    "378;3",
]


def test_example_key(snapshot):
    assert get_name(snapshot, parse_sku("5021;6")) == "Mann Co. Supply Crate Key"
    assert format_sku(item_object_from_name(snapshot, "Mann Co. Supply Crate Key")) == "5021;6"


@pytest.mark.parametrize("sku", CATALOG_SKUS)
def test_name_round_trip(snapshot, sku):
    name = get_name(snapshot, parse_sku(sku))
    assert name is not None
    assert format_sku(item_object_from_name(snapshot, name)) == sku


@pytest.mark.parametrize("sku", CATALOG_SKUS)
def test_proper_and_pipe_names_round_trip(snapshot, sku):
    name = get_name(snapshot, parse_sku(sku), proper=True, use_pipe_for_skin=True)
    assert format_sku(item_object_from_name(snapshot, name)) == sku


@pytest.mark.parametrize(
    "sku, name",
    [
        ("13;0", "Normal Scattergun"),
        ("200;11", "Strange Scattergun"),
        ("378;5;u13;strange", "Strange Burning Flames Team Captain"),
        ("200;15;w1;pk102", "Night Terror Scattergun (Factory New)"),
        ("6523;6;kt-2;td-45", "Specialized Killstreak Force-A-Nature Kit"),
        ("5022;6;c1", "Mann Co. Supply Crate Series #1"),
        ("45;6;uncraftable", "Non-Craftable Force-A-Nature"),
        ("378;3", "Vintage Team Captain"),
    ],
)
def test_names(snapshot, sku, name):
    assert get_name(snapshot, parse_sku(sku)) == name


def test_proper_name_only_without_prefixes(snapshot):
    assert get_name(snapshot, parse_sku("45;6"), proper=True) == "The Force-A-Nature"
    assert get_name(snapshot, parse_sku("45;11"), proper=True) == "Strange Force-A-Nature"
    assert get_name(snapshot, parse_sku("5021;6"), proper=True) == "Mann Co. Supply Crate Key"


def test_pipe_for_skin(snapshot):
    name = get_name(snapshot, parse_sku("200;15;w1;pk102"), use_pipe_for_skin=True)
    assert name == "Night Terror | Scattergun (Factory New)"


def test_unknown_defindex_has_no_name(snapshot):
    assert get_name(snapshot, parse_sku("99999;6")) is None


def test_unknown_name_is_unresolved(snapshot):
    item = item_object_from_name(snapshot, "Strange Definitely Not An Item")
    assert item.defindex is None
    assert item.quality == 11
    assert not item.is_resolved


def test_the_prefix_and_untradeable_spelling(snapshot):
    assert format_sku(item_object_from_name(snapshot, "The Force-A-Nature")) == "45;6"
    assert format_sku(item_object_from_name(snapshot, "Non-Tradeable Team Captain")) == "378;6;untradable"


def test_item_names_that_start_with_a_quality_stay_whole(snapshot):
    item = item_object_from_name(snapshot, "Strange Part: Scouts Killed")
    assert item.defindex == 6003
    assert item.quality == 6
