from __future__ import annotations

from covidtracker.core.locations import LOCATION_NAMES, Location


def test_every_location_has_a_display_name():
    assert set(LOCATION_NAMES) == set(Location)
    assert Location.NY.display_name == "New York"
    assert Location.US.display_name == "United States"


def test_from_code_is_case_insensitive_and_total():
    assert Location.from_code("ny") is Location.NY
    assert Location.from_code(" PR ") is Location.PR
    assert Location.from_code("ZZ") is None
    assert Location.from_code("") is None
    assert Location.from_code(None) is None


def test_from_name_matches_feed_aliases_exactly():
    assert Location.from_name("New York State") is Location.NY
    assert Location.from_name("New York") is Location.NY
    assert Location.from_name("United States") is Location.US
    assert Location.from_name("new york") is None
    assert Location.from_name("Bureau of Prisons") is None
    assert Location.from_name(None) is None


def test_code_round_trips_and_only_us_is_country():
    for location in Location:
        assert Location.from_code(location.code) is location
    assert [loc for loc in Location if loc.is_country] == [Location.US]
