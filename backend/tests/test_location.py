"""Tests for services/experts/location.py - Location parsing and matching."""
import pytest


class TestExtractCountryCode:
    """Test country resolution from free text."""

    @pytest.mark.parametrize("location,expected", [
        ("Toronto, Ontario, Canada", "CA"),
        ("Toronto, Canada", "CA"),
        ("Canada", "CA"),
        ("New Delhi, India", "IN"),
        ("Boston, USA", "US"),
        ("Seoul, South Korea", "KR"),
        ("Kyiv Ukraine", "UA"),
        ("London UK", "GB"),
    ])
    def test_known_countries(self, location, expected):
        """Country names map to ISO codes."""
        from app.services.experts import extract_country_code

        assert extract_country_code(location) == expected

    def test_unknown_location_returns_none(self):
        """Places outside the table resolve to nothing."""
        from app.services.experts import extract_country_code

        assert extract_country_code("Atlantis") is None

    def test_uk_does_not_match_inside_ukraine(self):
        """Short names only match as whole words."""
        from app.services.experts import extract_country_code

        assert extract_country_code("Ukraine") == "UA"


class TestLocationQuery:
    """Test LocationQuery parsing."""

    def test_blank_location_is_none(self):
        """A blank location means a global search."""
        from app.services.experts import LocationQuery

        assert LocationQuery.parse(None) is None
        assert LocationQuery.parse("   ") is None

    def test_three_parts(self):
        """City, state and country are all read."""
        from app.services.experts import LocationQuery

        query = LocationQuery.parse("Toronto, Ontario, Canada")

        assert query.city == "toronto"
        assert query.state == "ontario"
        assert query.country_code == "CA"

    def test_country_only_has_no_city(self):
        """A lone country name is not treated as a city."""
        from app.services.experts import LocationQuery

        query = LocationQuery.parse("Canada")

        assert query.city is None
        assert query.country_code == "CA"


class TestLocationMatching:
    """Test location tiers and bonuses."""

    def test_city_match(self):
        """Institution naming the city in the right country is a city match."""
        from app.services.experts import LocationQuery
        from app.services.experts.location import LocationTier

        query = LocationQuery.parse("Toronto, Canada")

        assert query.match_tier(["University of Toronto"], ["CA"]) is LocationTier.CITY
        assert query.bonus(["University of Toronto"], ["CA"]) == 1.0

    def test_city_in_wrong_country_does_not_match(self):
        """A city name match needs the resolved country too."""
        from app.services.experts import LocationQuery

        query = LocationQuery.parse("London, Canada")

        assert not query.matches(["King's College London"], ["GB"])

    def test_city_without_country_matches_on_name(self):
        """When no country resolves, the city name alone decides."""
        from app.services.experts import LocationQuery

        query = LocationQuery.parse("Springfield")

        assert query.matches(["Springfield Clinic"], ["US"])
        assert not query.matches(["Mayo Clinic"], ["US"])

    def test_city_prefix_is_optional(self):
        """'New Delhi' matches an institution that only says 'Delhi'."""
        from app.services.experts import LocationQuery

        query = LocationQuery.parse("New Delhi, India")

        assert query.bonus(["All India Institute of Medical Sciences, Delhi"], ["IN"]) == 1.0

    def test_state_match(self):
        """State match needs the country as well."""
        from app.services.experts import LocationQuery

        query = LocationQuery.parse("Hamilton, Ontario, Canada")

        assert query.bonus(["Ontario Institute for Cancer Research"], ["CA"]) == 0.6

    def test_country_match(self):
        """Country code alone gives the lowest tier."""
        from app.services.experts import LocationQuery

        query = LocationQuery.parse("Toronto, Canada")

        assert query.matches(["University of Ottawa"], ["CA"])
        assert query.bonus(["University of Ottawa"], ["CA"]) == 0.3

    def test_no_match(self):
        """Authors elsewhere are excluded."""
        from app.services.experts import LocationQuery

        query = LocationQuery.parse("Toronto, Canada")

        assert not query.matches(["Charite Berlin"], ["DE"])
        assert query.bonus(["Charite Berlin"], ["DE"]) == 0.0

    def test_city_match_implies_country_match(self):
        """Every author passing the city-level filter passes the country-level one."""
        from app.services.experts import LocationQuery

        city_query = LocationQuery.parse("Toronto, Canada")
        country_query = LocationQuery.parse("Canada")
        authors = [
            (["University of Toronto"], ["CA"]),
            (["Toronto Western Hospital", "Johns Hopkins"], ["CA", "US"]),
            (["University of Toronto"], ["US"]),
        ]

        for institutions, countries in authors:
            if city_query.matches(institutions, countries):
                assert country_query.matches(institutions, countries)

    def test_unresolvable_location_filters_nothing(self):
        """A location with no usable parts matches everyone."""
        from app.services.experts.location import LocationQuery

        query = LocationQuery(raw=",")

        assert query.matches([], [])
