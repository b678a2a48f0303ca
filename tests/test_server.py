import io

import pytest
from openpyxl import load_workbook

from leadfinder.jobs import server
from leadfinder.models import BusinessRecord


@pytest.fixture
def client(monkeypatch):
    server._store.clear()
    monkeypatch.setattr(server, "_client", object())
    return server.app.test_client()


@pytest.fixture
def fake_search(monkeypatch):
    calls = []

    def run(request, limit=None):
        calls.append(request)
        return [
            BusinessRecord(name="Acme", address="1 Main St", rating=4.5, reviews=10),
            BusinessRecord(name="Beta", website="https://beta.example"),
        ]

    monkeypatch.setattr(server, "run_search", run)
    return calls


def _sheet(payload):
    return [list(row) for row in load_workbook(io.BytesIO(payload)).active.iter_rows(values_only=True)]


def test_health_endpoint(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "serpapi_configured": True, "telegram_transport": "polling"}


def test_search_validates_payload(client, fake_search):
    assert client.post("/search", json={}).status_code == 400
    assert client.post("/search", json={"keyword": "seo"}).get_json() == {"error": "Keyword and country are required"}

    response = client.post("/search", json={"keyword": "seo", "country": "france"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid country selected"}
    assert fake_search == []


def test_search_returns_businesses(client, fake_search):
    response = client.post(
        "/search", json={"keyword": "seo", "country": "USA", "city": "new york", "engine": "altavista"}
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["businesses"][0] == {
        "name": "Acme",
        "address": "1 Main St",
        "phone": "N/A",
        "website": "N/A",
        "rating": 4.5,
        "reviews": 10,
    }
    assert body["search_id"]
    request = fake_search[0]
    assert request.engine == "google_maps"
    assert request.query == "seo in new york, USA"
    assert request.region == "us"


def test_search_accepts_form_body(client, fake_search):
    response = client.post("/search", data={"keyword": "seo", "country": "uk", "engine": "bing_maps"})

    assert response.status_code == 200
    assert fake_search[0].engine == "bing_maps"


def test_search_reports_pipeline_failure(client, monkeypatch):
    def broken(request, limit=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(server, "run_search", broken)

    response = client.post("/search", json={"keyword": "seo", "country": "uk"})

    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to fetch data from SerpAPI"}


def test_download_excel_from_body(client):
    response = client.post(
        "/download-excel",
        json={"businesses": [{"name": "Acme", "phone": "123"}], "filename": "leads.xlsx"},
    )

    assert response.status_code == 200
    assert response.mimetype == server.XLSX_MIMETYPE
    assert response.headers["Content-Disposition"] == 'attachment; filename="leads.xlsx"'
    assert _sheet(response.data) == [["name", "phone"], ["Acme", "123"]]


def test_download_excel_default_filename(client):
    response = client.post("/download-excel", json={"businesses": [{"name": "Acme"}]})

    assert response.headers["Content-Disposition"] == 'attachment; filename="businesses.xlsx"'


@pytest.mark.parametrize("payload", [{}, {"businesses": []}, {"businesses": "nope"}, {"businesses": ["x"]}])
def test_download_excel_rejects_missing_data(client, payload):
    response = client.post("/download-excel", json=payload)

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "No data to export"


def test_download_excel_by_search_id(client, fake_search):
    search_id = client.post(
        "/search", json={"keyword": "seo agency", "country": "usa", "city": "New York"}
    ).get_json()["search_id"]

    response = client.get(f"/download-excel?search_id={search_id}")

    assert response.status_code == 200
    assert response.headers["Content-Disposition"] == 'attachment; filename="seo_agency_New_York_usa.xlsx"'
    rows = _sheet(response.data)
    assert rows[0] == ["name", "address", "phone", "website", "rating", "reviews"]
    assert rows[2][0] == "Beta"


def test_download_excel_get_without_search(client):
    assert client.get("/download-excel").status_code == 400
    assert client.get("/download-excel?search_id=unknown").status_code == 400


def test_search_store_evicts_oldest():
    store = server.SearchStore(max_entries=2)
    first = store.put("a.xlsx", [{"name": "a"}])
    second = store.put("b.xlsx", [{"name": "b"}])
    third = store.put("c.xlsx", [{"name": "c"}])

    assert store.get(first) is None
    assert store.get(second) == ("b.xlsx", [{"name": "b"}])
    assert store.get(third)[0] == "c.xlsx"
    assert store.get(None) is None


def test_telegram_webhook_requires_matching_token(client, monkeypatch):
    monkeypatch.setattr(server, "handle_update", lambda update, bot: "OK")

    assert client.post("/telegram-webhook/wrong", json={}).status_code == 404


def test_telegram_webhook_dispatches_update(client, monkeypatch):
    received = []

    def fake_handle(update, bot):
        received.append(update)
        return "Ignored"

    monkeypatch.setattr(server, "handle_update", fake_handle)
    update = {"update_id": 1, "message": {"chat": {"id": 5}, "text": "hi"}}

    response = client.post("/telegram-webhook/bot-token", json=update)

    assert response.status_code == 200
    assert response.get_data(as_text=True) == "Ignored"
    assert received == [update]


def test_start_chat_transport_polling(monkeypatch):
    submitted = []

    class DummyExecutor:
        def submit(self, fn, *args):
            submitted.append(fn)

    monkeypatch.setattr(server, "_executor", DummyExecutor())

    assert server.start_chat_transport() == "polling"
    assert submitted == [server._run_polling_safe]


def test_start_chat_transport_webhook_registers_url(monkeypatch):
    monkeypatch.setenv("TELEGRAM_TRANSPORT", "webhook")
    monkeypatch.setenv("TELEGRAM_WEBHOOK_BASE_URL", "https://bot.example.com")
    server.get_settings.cache_clear()
    registered = []

    class DummyClient:
        def set_webhook(self, url):
            registered.append(url)

    monkeypatch.setattr(server, "_client", DummyClient())

    assert server.start_chat_transport() == "webhook"
    assert registered == ["https://bot.example.com/telegram-webhook/bot-token"]


def test_start_chat_transport_disabled_without_token(monkeypatch):
    monkeypatch.delenv("TELEGRAM_TOKEN")
    server.get_settings.cache_clear()

    assert server.start_chat_transport() is None


def test_download_excel_rejects_non_object_body(client):
    response = client.post("/download-excel", json=[{"name": "Acme"}])

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "No data to export"


def test_telegram_webhook_tolerates_non_object_body(client):
    response = client.post("/telegram-webhook/bot-token", json=[{"update_id": 1}])

    assert response.status_code == 200
    assert response.get_data(as_text=True) == "No message"
