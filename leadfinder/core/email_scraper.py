"""Best-effort email scraping from business websites.

The scraper works on the raw response body, markup and scripts included, so
addresses hidden in attributes or inline JavaScript are picked up as well.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Set
from urllib.parse import urlparse, urlunparse

import requests

from leadfinder.models import NOT_AVAILABLE

logger = logging.getLogger(__name__)

USER_AGENT = "LeadFinderBot/1.0 (+https://github.com/lead-finder/lead-finder)"
REQUEST_TIMEOUT = 8

EMAIL_REGEX = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)


def sanitize_website(raw_url: Optional[str]) -> Optional[str]:
    """Return an absolute URL for a listing website, or None for placeholders."""

    if not raw_url:
        return None

    url = str(raw_url).strip()
    if not url or url == NOT_AVAILABLE:
        return None

    try:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            parsed = urlparse(f"https://{url}")
    except ValueError as exc:
        logger.debug("Ignoring malformed website %r: %s", url, exc)
        return None

    if not parsed.netloc:
        return None

    return urlunparse(parsed._replace(fragment=""))


def extract_emails(text: str) -> Set[str]:
    """Return unique emails discovered in a text blob."""

    return {match.group(0) for match in EMAIL_REGEX.finditer(text or "")}


def scrape_emails(
    url: Optional[str],
    *,
    session: Optional[requests.Session] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> Set[str]:
    """Fetch a page and return the emails found in it; any failure yields an empty set."""

    target = sanitize_website(url)
    if not target:
        return set()

    http = session or requests
    try:
        response = http.get(
            target,
            timeout=timeout,
            allow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
        response.raise_for_status()
        body = response.text
    except (requests.RequestException, ValueError) as exc:  # noqa: BLE001
        logger.warning("Failed to fetch %s for email scraping: %s", target, exc)
        return set()

    emails = extract_emails(body)
    logger.debug("Found %s emails on %s", len(emails), target)
    return emails
