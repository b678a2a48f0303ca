"""Telegram bot: one message handler bound to either long polling or a webhook."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, Optional

from leadfinder.core.commands import (
    FORMAT_HELP,
    WELCOME_TEXT,
    CommandError,
    is_command,
    is_start_command,
    parse_command,
)
from leadfinder.core.config import get_settings
from leadfinder.core.email_scraper import scrape_emails
from leadfinder.delivery.chat import (
    FAILURE_TEXT,
    MAX_CHAT_RESULTS,
    NO_RESULTS_TEXT,
    PARSE_MODE,
    format_business_message,
    format_business_plain,
    format_search_started,
)
from leadfinder.jobs.search import run_search
from leadfinder.vendors.telegram import TelegramClient

logger = logging.getLogger(__name__)

POLL_ERROR_DELAY_SECONDS = 3.0


def handle_update(update: Dict[str, Any], client: TelegramClient) -> str:
    """Process one Telegram update and reply through ``client``.

    Returns a short status string describing what happened; every failure is
    turned into a chat reply so one bad message cannot stop the bot.
    """
    message = update.get("message")
    if not isinstance(message, dict):
        return "No message"
    text = message.get("text")
    chat = message.get("chat")
    chat_id = chat.get("id") if isinstance(chat, dict) else None
    if not isinstance(text, str) or not text or chat_id is None:
        return "No message"

    if not is_command(text):
        return "Ignored"

    if is_start_command(text):
        client.send_message(chat_id, WELCOME_TEXT)
        return "Welcome"

    try:
        request = parse_command(text)
    except CommandError as exc:
        client.send_message(chat_id, str(exc) or FORMAT_HELP)
        return "Bad command"

    client.send_message(chat_id, format_search_started(request), parse_mode=PARSE_MODE)

    try:
        records = run_search(request, limit=MAX_CHAT_RESULTS)
        if not records:
            client.send_message(chat_id, NO_RESULTS_TEXT)
            return "No businesses found"

        timeout = get_settings().email_scrape_timeout
        for record in records:
            record.emails = scrape_emails(record.website, timeout=timeout)
            if not client.send_message(chat_id, format_business_message(record), parse_mode=PARSE_MODE):
                logger.warning("Markdown message rejected for %s; resending as plain text", record.name)
                client.send_message(chat_id, format_business_plain(record))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Chat search failed for chat_id=%s: %s", chat_id, exc)
        client.send_message(chat_id, FAILURE_TEXT)
        return "Failed"

    return "OK"


def run_polling(client: TelegramClient, stop_event: Optional[threading.Event] = None) -> None:
    """Long-poll getUpdates and hand each update to ``handle_update`` in order."""
    try:
        client.delete_webhook()
        logger.info("Deleted webhook, bot now polling...")
    except Exception as exc:  # noqa: BLE001
        logger.error("Webhook delete failed: %s", exc)

    stop_event = stop_event or threading.Event()
    offset: Optional[int] = None
    while not stop_event.is_set():
        try:
            updates = client.get_updates(offset=offset)
        except Exception as exc:  # noqa: BLE001
            logger.warning("getUpdates failed: %s", exc)
            stop_event.wait(POLL_ERROR_DELAY_SECONDS)
            continue

        for update in updates:
            offset = update.get("update_id", 0) + 1
            started = time.monotonic()
            try:
                status = handle_update(update, client)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unhandled error for update %s: %s", update.get("update_id"), exc)
                continue
            logger.info("Update %s handled: %s (%.1fs)", update.get("update_id"), status, time.monotonic() - started)
