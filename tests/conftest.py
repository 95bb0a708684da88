import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def anyio_backend():
    """Force anyio to use asyncio backend for async tests."""

    return "asyncio"


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    for var in (
        "CACHE_MAX_AGE_SECONDS",
        "HISTORY_MAX_LENGTH",
        "BATCH_SIZE",
        "RETRY_MAX_ATTEMPTS",
        "RETRY_DELAY_SECONDS",
        "RESOURCE_LIMIT",
        "LOG_LEVEL",
        "JSON_EVENT_LOGS",
    ):
        monkeypatch.delenv(var, raising=False)


class FakeClock:
    """Manually advanced clock for TTL and throttle tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_module():
    return {
        "id": "mod-1",
        "title": "Python入門",
        "description": "Pythonの基本を学ぶ",
        "content": [{"title": "変数", "content": "..."}],
        "resources": [
            {"title": "Python Docs", "url": "https://docs.python.org", "type": "documentation"},
            {"title": "no url"},
            {"url": "https://example.com/video", "type": "Video", "relevance": 60, "tags": ["intro"]},
        ],
        "sections": [
            {
                "id": "sec-1",
                "title": "変数",
                "resources": [
                    {"url": "https://example.com/tutorial", "type": "tutorial"},
                    "not-a-resource",
                ],
            },
            {
                "id": "sec-2",
                "title": "関数",
                "resources": [
                    {"title": "関数の書籍", "url": "https://example.com/book", "type": "本", "relevance": 90},
                ],
            },
        ],
    }
