"""
Location parsing and matching.

Locations are free text in "City, State/Province, Country" form
("Toronto, Ontario, Canada", "New Delhi, India", "Canada"). Authors are
matched by substring against their institution names and by ISO country
code against their institutions' countries. It is a heuristic: it only
knows the countries in COUNTRY_CODES.
"""
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, List, Optional

COUNTRY_CODES: Dict[str, str] = {
    "canada": "CA",
    "united states": "US",
    "usa": "US",
    "u.s.": "US",
    "america": "US",
    "united kingdom": "GB",
    "uk": "GB",
    "england": "GB",
    "scotland": "GB",
    "wales": "GB",
    "germany": "DE",
    "france": "FR",
    "china": "CN",
    "japan": "JP",
    "australia": "AU",
    "india": "IN",
    "brazil": "BR",
    "mexico": "MX",
    "italy": "IT",
    "spain": "ES",
    "south korea": "KR",
    "korea": "KR",
    "netherlands": "NL",
    "holland": "NL",
    "sweden": "SE",
    "switzerland": "CH",
    "norway": "NO",
    "denmark": "DK",
    "finland": "FI",
    "belgium": "BE",
    "austria": "AT",
    "portugal": "PT",
    "ireland": "IE",
    "poland": "PL",
    "russia": "RU",
    "turkey": "TR",
    "israel": "IL",
    "saudi arabia": "SA",
    "south africa": "ZA",
    "nigeria": "NG",
    "egypt": "EG",
    "kenya": "KE",
    "singapore": "SG",
    "malaysia": "MY",
    "thailand": "TH",
    "indonesia": "ID",
    "pakistan": "PK",
    "bangladesh": "BD",
    "vietnam": "VN",
    "philippines": "PH",
    "taiwan": "TW",
    "hong kong": "HK",
    "new zealand": "NZ",
    "argentina": "AR",
    "colombia": "CO",
    "chile": "CL",
    "peru": "PE",
    "czech republic": "CZ",
    "czechia": "CZ",
    "romania": "RO",
    "hungary": "HU",
    "greece": "GR",
    "ukraine": "UA",
    "iran": "IR",
    "iraq": "IQ",
    "uae": "AE",
    "united arab emirates": "AE",
    "qatar": "QA",
    "kuwait": "KW",
}

# Longest names first so "south korea" wins over "korea"; bounded by non-letters
# so "uk" does not match inside "ukraine".
_COUNTRY_PATTERNS = [
    (re.compile(rf"(?<![a-z]){re.escape(name)}(?![a-z])"), code)
    for name, code in sorted(COUNTRY_CODES.items(), key=lambda item: -len(item[0]))
]

_CITY_PREFIX = re.compile(r"^(new|old|north|south|east|west)\s+")


def split_location(location: str) -> List[str]:
    return [part.strip() for part in location.split(",") if part.strip()]


def extract_country_code(location: Optional[str]) -> Optional[str]:
    """Resolve a country code, preferring the last comma-separated part."""
    if not location:
        return None

    parts = split_location(location)
    if len(parts) >= 2:
        code = COUNTRY_CODES.get(parts[-1].lower())
        if code:
            return code

    lowered = location.lower()
    for pattern, code in _COUNTRY_PATTERNS:
        if pattern.search(lowered):
            return code
    return None


class LocationTier(IntEnum):
    NONE = 0
    COUNTRY = 1
    STATE = 2
    CITY = 3


LOCATION_BONUS = {
    LocationTier.CITY: 1.0,
    LocationTier.STATE: 0.6,
    LocationTier.COUNTRY: 0.3,
    LocationTier.NONE: 0.0,
}


@dataclass(frozen=True)
class LocationQuery:
    raw: str
    city: Optional[str] = None
    state: Optional[str] = None
    country_code: Optional[str] = None

    @classmethod
    def parse(cls, location: Optional[str]) -> Optional["LocationQuery"]:
        """Parse a location string; None for a missing or blank location."""
        if not location or not location.strip():
            return None

        parts = split_location(location)
        lowered = [p.lower() for p in parts]

        city = lowered[0] if lowered else None
        if len(lowered) == 1 and lowered[0] in COUNTRY_CODES:
            city = None
        state = lowered[1] if len(lowered) >= 3 else None

        return cls(
            raw=location.strip(),
            city=city,
            state=state,
            country_code=extract_country_code(location),
        )

    @property
    def resolves_to_nothing(self) -> bool:
        return not (self.city or self.state or self.country_code)

    def _city_variants(self) -> List[str]:
        variants = [self.city]
        shortened = _CITY_PREFIX.sub("", self.city).strip()
        if shortened and shortened != self.city:
            variants.append(shortened)
        return variants

    def match_tier(self, institutions: Iterable[str], country_codes: Iterable[str]) -> LocationTier:
        """Best tier an author with these institutions and countries reaches."""
        names = [name.lower() for name in institutions]
        country_match = bool(self.country_code) and self.country_code in set(country_codes)

        if self.city and (country_match or not self.country_code):
            variants = self._city_variants()
            if any(v in name for name in names for v in variants):
                return LocationTier.CITY

        if self.state and country_match and any(self.state in name for name in names):
            return LocationTier.STATE

        if country_match:
            return LocationTier.COUNTRY

        return LocationTier.NONE

    def matches(self, institutions: Iterable[str], country_codes: Iterable[str]) -> bool:
        if self.resolves_to_nothing:
            return True
        return self.match_tier(institutions, country_codes) is not LocationTier.NONE

    def bonus(self, institutions: Iterable[str], country_codes: Iterable[str]) -> float:
        """Tie-break bonus: city 1.0, state 0.6, country 0.3, none 0."""
        return LOCATION_BONUS[self.match_tier(institutions, country_codes)]
