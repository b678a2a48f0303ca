"""Client utilities for the Telegram Bot API."""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)
_BASE_URL = "https://api.telegram.org"
REQUEST_TIMEOUT = 15
POLL_TIMEOUT = 30


class TelegramError(RuntimeError):
    """Raised when the Bot API returns a non-successful response."""


class TelegramClient:
    """Minimal Bot API wrapper: receive updates, send messages, manage the webhook."""

    def __init__(self, token: str, session: Optional[requests.Session] = None) -> None:
        if not token:
            raise ValueError("A Telegram bot token is required")
        self.token = token
        self.session = session or requests.Session()

    def _url(self, method: str) -> str:
        return f"{_BASE_URL}/bot{self.token}/{method}"

    def _call(self, method: str, payload: Optional[Dict[str, Any]] = None, timeout: float = REQUEST_TIMEOUT) -> Any:
        response = self.session.post(self._url(method), json=payload or {}, timeout=timeout)
        response.raise_for_status()
        body = response.json()
        if not body.get("ok"):
            logger.error("%s failed: %s", method, body.get("description"))
            raise TelegramError(body.get("description") or method)
        return body.get("result")

    def send_message(self, chat_id: Any, text: str, parse_mode: Optional[str] = None) -> bool:
        """Send one message; failures are logged and reported as False."""
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        try:
            self._call("sendMessage", payload)
        except (requests.RequestException, TelegramError, ValueError) as exc:
            logger.error("Telegram sendMessage to chat_id=%s failed: %s", chat_id, exc)
            return False
        return True

    def get_updates(self, offset: Optional[int] = None, timeout: int = POLL_TIMEOUT) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        return self._call("getUpdates", payload, timeout=timeout + REQUEST_TIMEOUT) or []

    def delete_webhook(self) -> None:
        self._call("deleteWebhook")

    def set_webhook(self, url: str) -> None:
        self._call("setWebhook", {"url": url, "allowed_updates": ["message"]})
