"""Core data models shared by the search, export and chat pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Set, Union

NO_NAME = "No Name"
NOT_AVAILABLE = "N/A"

COUNTRY_REGIONS = {
    "usa": "us",
    "uk": "gb",
    "australia": "au",
    "canada": "ca",
}

ALLOWED_ENGINES = ("google_maps", "google", "bing_maps", "apple_maps")
DEFAULT_ENGINE = "google_maps"

# engines that accept the gl/hl locale filters
LOCALIZED_ENGINES = {"google_maps", "google"}


@dataclass(slots=True)
class BusinessRecord:
    """Canonical business listing; every field carries a sentinel when missing."""

    name: str = NO_NAME
    address: str = NOT_AVAILABLE
    phone: str = NOT_AVAILABLE
    website: str = NOT_AVAILABLE
    rating: Union[str, float, int] = NOT_AVAILABLE
    reviews: Union[str, int] = NOT_AVAILABLE
    emails: Optional[Set[str]] = field(default=None, repr=False)


@dataclass(frozen=True)
class SearchRequest:
    """Validated search parameters built from an HTTP form or a chat command."""

    keyword: str
    country: str
    city: str = ""
    engine: str = DEFAULT_ENGINE

    @property
    def region(self) -> str:
        return COUNTRY_REGIONS[self.country.lower()]

    @property
    def query(self) -> str:
        if self.city:
            return f"{self.keyword} in {self.city}, {self.country}"
        return f"{self.keyword} in {self.country}"
