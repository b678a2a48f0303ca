"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

TRANSPORTS = {"polling", "webhook", "off"}


@dataclass(frozen=True)
class Settings:
    serpapi_api_key: str
    telegram_token: str
    port: int = 3000
    telegram_transport: str = "polling"
    email_scrape_timeout: float = 8.0
    webhook_base_url: str = ""


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    serpapi_api_key = os.getenv("SERPAPI_API_KEY") or os.getenv("SERP_API_KEY", "")
    telegram_token = os.getenv("TELEGRAM_TOKEN", "")
    port = int(os.getenv("PORT", "3000"))
    email_scrape_timeout = float(os.getenv("EMAIL_SCRAPE_TIMEOUT", "8"))
    webhook_base_url = os.getenv("TELEGRAM_WEBHOOK_BASE_URL", "").rstrip("/")

    telegram_transport = os.getenv("TELEGRAM_TRANSPORT", "polling").strip().lower()
    if telegram_transport not in TRANSPORTS:
        logger.warning("Unknown TELEGRAM_TRANSPORT=%s; falling back to polling.", telegram_transport)
        telegram_transport = "polling"

    if not serpapi_api_key:
        logger.warning("SERPAPI_API_KEY is not configured; SerpAPI searches will return no results.")
    if not telegram_token:
        logger.warning("TELEGRAM_TOKEN is not configured; the chat bot will be disabled.")

    return Settings(
        serpapi_api_key=serpapi_api_key,
        telegram_token=telegram_token,
        port=port,
        telegram_transport=telegram_transport,
        email_scrape_timeout=email_scrape_timeout,
        webhook_base_url=webhook_base_url,
    )
