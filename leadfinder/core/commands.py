"""Parsing and validation of search requests from chat commands and HTTP forms.

Chat commands are positional and comma separated after the ``/`` sigil::

    /keyword , country
    /keyword , city , country
    /keyword , city , country , engine

Commas inside a city name cannot be expressed with this grammar.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from leadfinder.models import ALLOWED_ENGINES, COUNTRY_REGIONS, DEFAULT_ENGINE, SearchRequest

logger = logging.getLogger(__name__)

COMMAND_SIGIL = "/"
START_COMMAND = "/start"

FORMAT_HELP = (
    "Format: / keyword , city , country [, engine]\n"
    "Example: / seo , new york , usa , google_maps"
)
WELCOME_TEXT = (
    "Welcome! Send:\n"
    "/ keyword , city , country [, engine]\n\n"
    "City and engine are optional.\n"
    f"Available engines: {', '.join(ALLOWED_ENGINES)}\n"
    "Example:\n"
    "/ seo , new york , usa , google"
)


class CommandError(ValueError):
    """Base class for rejected search requests."""


class CommandFormatError(CommandError):
    """Raised when a command does not have the expected shape."""


class CommandValidationError(CommandError):
    """Raised when a field is outside its allow-list."""


def allowed_countries_message() -> str:
    return f"Allowed countries: {', '.join(COUNTRY_REGIONS)}"


def allowed_engines_message() -> str:
    return f"Allowed engines: {', '.join(ALLOWED_ENGINES)}"


def is_command(text: Optional[str]) -> bool:
    return bool(text) and text.startswith(COMMAND_SIGIL)


def is_start_command(text: Optional[str]) -> bool:
    if not is_command(text):
        return False
    # Telegram appends the bot name in groups: /start@LeadFinderBot
    head = text.split(maxsplit=1)[0]
    return head.split("@", 1)[0].lower() == START_COMMAND


def _validate_country(country: str) -> str:
    normalized = country.strip().lower()
    if normalized not in COUNTRY_REGIONS:
        raise CommandValidationError(allowed_countries_message())
    return normalized


def parse_command(text: str) -> SearchRequest:
    """Turn ``/keyword, [city,] country [, engine]`` into a SearchRequest."""
    if not is_command(text):
        raise CommandFormatError(FORMAT_HELP)

    parts = [part.strip() for part in text[len(COMMAND_SIGIL):].split(",")]
    if len(parts) < 2 or not parts[0]:
        raise CommandFormatError(FORMAT_HELP)

    keyword = parts[0]
    engine = DEFAULT_ENGINE
    if len(parts) == 2:
        city, country = "", parts[1]
    else:
        city, country = parts[1], parts[2]
        if len(parts) == 4:
            engine = parts[3].lower()

    country = _validate_country(country)
    if engine not in ALLOWED_ENGINES:
        raise CommandValidationError(allowed_engines_message())

    return SearchRequest(keyword=keyword, country=country, city=city, engine=engine)


def resolve_engine(engine: Any) -> str:
    """Return the engine when allowed, otherwise the default engine."""
    if isinstance(engine, str) and engine in ALLOWED_ENGINES:
        return engine
    if engine:
        logger.debug("Ignoring unsupported engine=%r; using %s", engine, DEFAULT_ENGINE)
    return DEFAULT_ENGINE


def build_request(keyword: Any, country: Any, city: Any = None, engine: Any = None) -> SearchRequest:
    """Validate HTTP form fields; unknown engines fall back to the default."""
    keyword = str(keyword or "").strip()
    country = str(country or "").strip()
    if not keyword or not country:
        raise CommandFormatError("Keyword and country are required")
    if country.lower() not in COUNTRY_REGIONS:
        raise CommandValidationError("Invalid country selected")

    return SearchRequest(
        keyword=keyword,
        country=country,
        city=str(city or "").strip(),
        engine=resolve_engine(engine),
    )
