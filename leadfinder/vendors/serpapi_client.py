"""SerpAPI helpers that fetch local business listings for every supported engine."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from serpapi import GoogleSearch

from leadfinder.core.config import get_settings
from leadfinder.models import DEFAULT_ENGINE, LOCALIZED_ENGINES

logger = logging.getLogger(__name__)


def build_serpapi_params(
    query: str, region: str, engine: str = DEFAULT_ENGINE, api_key: Optional[str] = None
) -> Dict[str, Any]:
    """Construct SerpAPI request parameters; only Google engines get gl/hl."""
    if api_key is None:
        api_key = get_settings().serpapi_api_key

    params: Dict[str, Any] = {
        "engine": engine,
        "q": query,
        "api_key": api_key,
    }
    if engine in LOCALIZED_ENGINES:
        params["gl"] = region
        params["hl"] = "en"
    return params


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) and value else []


def _extract_google_maps(data: Dict[str, Any]) -> List[Any]:
    return _as_list(data.get("local_results"))


def _extract_google(data: Dict[str, Any]) -> List[Any]:
    return _as_list(data.get("local_results")) or _as_list(data.get("organic_results"))


def _extract_places(data: Dict[str, Any]) -> List[Any]:
    return _as_list(data.get("places"))


EXTRACTORS: Dict[str, Callable[[Dict[str, Any]], List[Any]]] = {
    "google_maps": _extract_google_maps,
    "google": _extract_google,
    "bing_maps": _extract_places,
    "apple_maps": _extract_places,
}


def extract_results(data: Optional[Dict[str, Any]], engine: str) -> List[Any]:
    """Pull the raw listing list out of an engine-specific SerpAPI payload."""
    if not data:
        return []
    extractor = EXTRACTORS.get(engine)
    if extractor is None:
        logger.warning("No result extractor for engine=%s", engine)
        return []
    return extractor(data)


def fetch_businesses(query: str, region: str, engine: str = DEFAULT_ENGINE) -> List[Dict[str, Any]]:
    """Run one SerpAPI search and return the raw listings.

    Failures of any kind are logged and reported as an empty list, so callers
    cannot tell an upstream outage from a search without results.
    """
    params = build_serpapi_params(query, region, engine)
    try:
        logger.info("Calling SerpAPI engine=%s query=%s gl=%s", engine, query, params.get("gl"))
        data = GoogleSearch(params).get_dict()
        if "error" in data:
            raise RuntimeError(f"SerpAPI returned an error response: {data.get('error')}")
        results = extract_results(data, engine)
    except Exception as exc:  # noqa: BLE001
        logger.error("SerpAPI request failed for query=%s engine=%s: %s", query, engine, exc)
        return []

    logger.info("SerpAPI returned %s raw results for query=%s", len(results), query)
    return results
