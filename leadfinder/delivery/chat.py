"""Telegram MarkdownV2 rendering of search progress and business records."""

import re
from typing import Any, Iterable, Optional

from leadfinder.models import NOT_AVAILABLE, BusinessRecord, SearchRequest

PARSE_MODE = "MarkdownV2"
MAX_CHAT_RESULTS = 10

NO_RESULTS_TEXT = "No businesses found."
FAILURE_TEXT = "Something went wrong. Try again later."

_RESERVED = re.compile(r"([_*\[\]()~`>#+\-=|{}.!])")


def escape_markdown(text: Any) -> str:
    """Backslash-escape every MarkdownV2 reserved character."""
    if text is None or text == "":
        return ""
    return _RESERVED.sub(r"\\\1", str(text))


def format_search_started(request: SearchRequest) -> str:
    city = request.city or NOT_AVAILABLE
    return (
        f"Searching for *{escape_markdown(request.keyword)}* in "
        f"*{escape_markdown(city)}, {escape_markdown(request.country.upper())}* "
        f"using *{escape_markdown(request.engine)}*"
    )


def _format_emails(emails: Optional[Iterable[str]]) -> str:
    if not emails:
        return "None found"
    return ", ".join(escape_markdown(email) for email in sorted(emails))


def format_business_message(record: BusinessRecord) -> str:
    lines = [
        f"*{escape_markdown(record.name)}*",
        f"Address: {escape_markdown(record.address)}",
        f"Phone: {escape_markdown(record.phone)}",
        f"Website: {escape_markdown(record.website)}",
        f"Rating: {escape_markdown(record.rating)} \\({escape_markdown(record.reviews)} reviews\\)",
        f"Emails: {_format_emails(record.emails)}",
    ]
    return "\n".join(lines) + "\n"


def format_business_plain(record: BusinessRecord) -> str:
    """Unformatted variant, used when Telegram rejects the MarkdownV2 message."""
    emails = ", ".join(sorted(record.emails)) if record.emails else "None found"
    lines = [
        str(record.name),
        f"Address: {record.address}",
        f"Phone: {record.phone}",
        f"Website: {record.website}",
        f"Rating: {record.rating} ({record.reviews} reviews)",
        f"Emails: {emails}",
    ]
    return "\n".join(lines) + "\n"
