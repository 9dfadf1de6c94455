"""
City Normalization Service

Canonicalizes free-text city names and groups them into regions.
"Boulogne-Billancourt" and "Paris" are different cities but the same region.
"""

import re
import unicodedata
from typing import Optional


# Region groups with their member cities (normalized names)
REGION_GROUPS = {
    "paris": {
        "name": "Paris",
        "cities": {"paris", "boulogne-billancourt", "montreuil", "nanterre"},
    },
    "lyon": {
        "name": "Lyon",
        "cities": {"lyon", "villeurbanne", "venissieux"},
    },
    "marseille": {
        "name": "Marseille",
        "cities": {"marseille", "aix-en-provence", "toulon"},
    },
}

_WHITESPACE = re.compile(r"\s+")
# Cedex mentions, postal codes, or a ", country" tail
_TRAILING_SUFFIX = re.compile(r"\s*(cedex|\d+|,.*)$", re.IGNORECASE)


def normalize_city(city: str) -> str:
    """Lowercase, strip accents and whitespace, drop postal/cedex suffixes."""
    value = unicodedata.normalize("NFD", city.lower())
    value = "".join(ch for ch in value if not unicodedata.combining(ch))
    value = _WHITESPACE.sub(" ", value).strip()
    # Only the last suffix goes: "Lyon Cedex 03" stays "lyon cedex"
    return _TRAILING_SUFFIX.sub("", value, count=1)


class RegionTable:
    """Static city -> region lookup.

    Kept as data so a geocoding-backed implementation can replace it
    without touching the scoring formulas.
    """

    def __init__(self, groups: dict):
        self._city_to_regions: dict[str, set[str]] = {}
        for region_id, group_data in groups.items():
            for city in group_data["cities"]:
                self._city_to_regions.setdefault(city, set()).add(region_id)

    def regions_of(self, normalized_city: str) -> set[str]:
        return set(self._city_to_regions.get(normalized_city, set()))

    def same_region(self, city_a: str, city_b: str) -> bool:
        return bool(self.regions_of(city_a) & self.regions_of(city_b))


DEFAULT_REGION_TABLE = RegionTable(REGION_GROUPS)


def is_same_city(city_a: str, city_b: str) -> bool:
    """True if both names normalize to the same city."""
    return normalize_city(city_a) == normalize_city(city_b)


def same_region(city_a: str, city_b: str, table: Optional[RegionTable] = None) -> bool:
    """True if both cities belong to one region of the table."""
    table = table or DEFAULT_REGION_TABLE
    return table.same_region(normalize_city(city_a), normalize_city(city_b))
