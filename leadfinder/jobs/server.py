"""HTTP entrypoint: JSON search API, Excel export and the Telegram webhook."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, Response, abort, jsonify, request

from leadfinder.core.commands import CommandError, build_request
from leadfinder.core.config import get_settings
from leadfinder.delivery.excel import DEFAULT_FILENAME, XLSX_MIMETYPE, EmptyExportError, build_workbook, export_filename
from leadfinder.etl.transform import to_export_row
from leadfinder.jobs.chat_bot import handle_update, run_polling
from leadfinder.jobs.search import run_search
from leadfinder.vendors.telegram import TelegramClient

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & executor ----------
app = Flask(__name__)
_executor = ThreadPoolExecutor(max_workers=1)

MAX_STORED_SEARCHES = 100


class SearchStore:
    """Recent search results keyed by search id, for follow-up downloads."""

    def __init__(self, max_entries: int = MAX_STORED_SEARCHES) -> None:
        self._entries: "OrderedDict[str, Tuple[str, List[Dict[str, Any]]]]" = OrderedDict()
        self._lock = threading.Lock()
        self.max_entries = max_entries

    def put(self, filename: str, rows: List[Dict[str, Any]]) -> str:
        search_id = uuid.uuid4().hex
        with self._lock:
            self._entries[search_id] = (filename, rows)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return search_id

    def get(self, search_id: Optional[str]) -> Optional[Tuple[str, List[Dict[str, Any]]]]:
        if not search_id:
            return None
        with self._lock:
            return self._entries.get(search_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_store = SearchStore()

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "serpapi_configured": bool(settings.serpapi_api_key),
                "telegram_transport": settings.telegram_transport if settings.telegram_token else "off",
            }
        ),
        200,
    )


def _request_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()


@app.post("/search")
def search() -> Any:
    """
    Search businesses.
    Required fields: keyword, country
    Optional: city, engine (unknown engines fall back to google_maps)
    """
    payload = _request_payload()

    try:
        search_request = build_request(
            payload.get("keyword"),
            payload.get("country"),
            payload.get("city"),
            payload.get("engine"),
        )
    except CommandError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        records = run_search(search_request)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Search failed for %s: %s", search_request.query, exc)
        return jsonify({"error": "Failed to fetch data from SerpAPI"}), 500

    businesses = [to_export_row(record) for record in records]
    filename = export_filename(search_request.keyword, search_request.city, search_request.country)
    search_id = _store.put(filename, businesses)

    return jsonify({"businesses": businesses, "search_id": search_id}), 200


@app.route("/download-excel", methods=["GET", "POST"])
def download_excel() -> Any:
    """
    Export businesses as xlsx.
    POST body: {businesses: [...], filename?}; GET query: ?search_id=<id from /search>
    """
    if request.method == "POST":
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        businesses = payload.get("businesses")
        filename = payload.get("filename") or DEFAULT_FILENAME
    else:
        stored = _store.get(request.args.get("search_id"))
        filename, businesses = stored if stored else (DEFAULT_FILENAME, None)

    if not isinstance(businesses, list) or not all(isinstance(row, dict) for row in businesses):
        return "No data to export", 400

    try:
        body = build_workbook(businesses)
    except EmptyExportError as exc:
        return str(exc), 400

    safe_name = str(filename).replace('"', "").replace("\r", "").replace("\n", "")
    return Response(
        body,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f'attachment; filename="{safe_name}"'},
    )


@app.post("/telegram-webhook/<token>")
def telegram_webhook(token: str) -> Any:
    settings = get_settings()
    if not settings.telegram_token or token != settings.telegram_token:
        abort(404)

    update = request.get_json(silent=True)
    if not isinstance(update, dict):
        update = {}
    status = handle_update(update, _telegram_client())
    return status, 200


# ---------- Internals ----------

_client: Optional[TelegramClient] = None


def _telegram_client() -> TelegramClient:
    global _client
    if _client is None:
        _client = TelegramClient(get_settings().telegram_token)
    return _client


def _run_polling_safe() -> None:
    try:
        run_polling(_telegram_client())
    except Exception as exc:  # noqa: BLE001
        logger.exception("Telegram polling stopped: %s", exc)


def start_chat_transport() -> Optional[str]:
    """Start the configured Telegram transport; returns its name or None."""
    settings = get_settings()
    if not settings.telegram_token or settings.telegram_transport == "off":
        logger.info("Telegram bot disabled")
        return None

    if settings.telegram_transport == "webhook":
        if settings.webhook_base_url:
            webhook_url = f"{settings.webhook_base_url}/telegram-webhook/{settings.telegram_token}"
            try:
                _telegram_client().set_webhook(webhook_url)
                logger.info("Registered Telegram webhook at %s/telegram-webhook/<token>", settings.webhook_base_url)
            except Exception as exc:  # noqa: BLE001
                logger.error("Webhook registration failed: %s", exc)
        else:
            logger.info("Set your Telegram webhook to: https://yourdomain.com/telegram-webhook/<token>")
        return "webhook"

    _executor.submit(_run_polling_safe)
    return "polling"


def main() -> None:
    settings = get_settings()
    logger.info("[BOOT] Binding on 0.0.0.0:%d", settings.port)
    start_chat_transport()
    app.run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
