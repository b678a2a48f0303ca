"""Utilities for transforming raw SerpAPI listings into canonical business records."""

import logging
from collections.abc import Mapping
from dataclasses import asdict
from typing import Any, Dict, Iterable, List

from leadfinder.models import NO_NAME, NOT_AVAILABLE, BusinessRecord

logger = logging.getLogger(__name__)

# field -> source keys, in priority order
FIELD_SOURCES = {
    "name": ("title", "name"),
    "address": ("address", "street_address"),
    "phone": ("phone",),
    "website": ("website", "url"),
    "rating": ("rating",),
    "reviews": ("reviews", "review_count"),
}


def _first_present(raw: Mapping, keys: Iterable[str], default: Any) -> Any:
    # falsy values (0, "", None) count as missing
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return default


def normalize_business(raw: Mapping) -> BusinessRecord:
    return BusinessRecord(
        name=_first_present(raw, FIELD_SOURCES["name"], NO_NAME),
        address=_first_present(raw, FIELD_SOURCES["address"], NOT_AVAILABLE),
        phone=_first_present(raw, FIELD_SOURCES["phone"], NOT_AVAILABLE),
        website=_first_present(raw, FIELD_SOURCES["website"], NOT_AVAILABLE),
        rating=_first_present(raw, FIELD_SOURCES["rating"], NOT_AVAILABLE),
        reviews=_first_present(raw, FIELD_SOURCES["reviews"], NOT_AVAILABLE),
    )


def normalize_businesses(raws: Iterable[Any]) -> List[BusinessRecord]:
    records: List[BusinessRecord] = []
    for raw in raws or []:
        if not isinstance(raw, Mapping):
            logger.debug("Skipping non-mapping listing: %r", raw)
            continue
        records.append(normalize_business(raw))
    return records


def to_export_row(record: BusinessRecord) -> Dict[str, Any]:
    """Flatten a record for JSON and spreadsheet output; emails are never exported."""
    row = asdict(record)
    row.pop("emails", None)
    return row
