import sys
from pathlib import Path

import pytest

# Ensure the `leadfinder` package is importable when running pytest from the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from leadfinder.core import config  # noqa: E402


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    monkeypatch.setenv("SERPAPI_API_KEY", "serp-key")
    monkeypatch.setenv("TELEGRAM_TOKEN", "bot-token")
    monkeypatch.setenv("TELEGRAM_TRANSPORT", "polling")
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()
