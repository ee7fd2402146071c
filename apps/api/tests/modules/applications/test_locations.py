"""
Tests for the county and sub-county reference data.
"""

import pytest

from bursary.modules.applications.locations import (
    COUNTIES,
    SUB_COUNTIES,
    is_known_county,
    is_valid_sub_county,
    sub_counties_for,
)


def test_forty_seven_unique_counties():
    assert len(COUNTIES) == 47
    assert len(set(COUNTIES)) == 47
    assert COUNTIES[0] == "Nairobi"
    assert COUNTIES[-1] == "Nyamira"


def test_sub_county_lists():
    assert len(SUB_COUNTIES["Nairobi"]) == 17
    assert len(SUB_COUNTIES["Mombasa"]) == 6
    assert len(SUB_COUNTIES["Kiambu"]) == 12
    assert set(SUB_COUNTIES) <= set(COUNTIES)


@pytest.mark.parametrize("county", ["Nairobi", "Murang'a", "Homa Bay"])
def test_known_counties(county):
    assert is_known_county(county)


@pytest.mark.parametrize("county", ["nairobi", "Atlantis", ""])
def test_unknown_counties(county):
    assert not is_known_county(county)


def test_sub_counties_for_unlisted_county_is_empty():
    assert sub_counties_for("Turkana") == []
    assert sub_counties_for("Mombasa")[0] == "Changamwe"


class TestIsValidSubCounty:
    def test_listed_pair(self):
        assert is_valid_sub_county("Kiambu", "Ruiru")

    def test_sub_county_from_other_county(self):
        assert not is_valid_sub_county("Nairobi", "Nyali")

    def test_unlisted_county_accepts_anything(self):
        assert is_valid_sub_county("Kisumu", "Kisumu Central")
