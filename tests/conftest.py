"""Shared test fixtures."""

import json
from pathlib import Path

import pytest

from pocket_bookmarks.client import PocketClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FIXED_TIME = 1700000000


@pytest.fixture
def get_response() -> dict:
    """Load the sample /v3/get response."""
    with open(FIXTURES_DIR / "get_response.json") as f:
        return json.load(f)


@pytest.fixture
def make_page():
    """Build a /v3/get body with `count` minimal items numbered from `start`."""

    def _make(start: int, count: int) -> dict:
        return {
            "status": 1,
            "complete": 1,
            "list": {
                str(n): {
                    "item_id": str(n),
                    "given_url": f"https://example.com/{n}",
                    "status": "0",
                    "sort_id": n - start,
                }
                for n in range(start, start + count)
            },
        }

    return _make


@pytest.fixture
def client() -> PocketClient:
    """An authenticated client with a fixed clock."""
    return PocketClient("consumer-key", "access-token", clock=lambda: FIXED_TIME)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep credentials from the developer's environment out of tests."""
    monkeypatch.delenv("POCKET_CONSUMER_KEY", raising=False)
    monkeypatch.delenv("POCKET_ACCESS_TOKEN", raising=False)
