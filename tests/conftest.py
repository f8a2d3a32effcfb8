"""Shared test fixtures."""

import threading
from typing import Optional

import pytest

from fragments.config import AppConfig, Secrets
from fragments.models import NewsCard, NewsPage, PageMeta, Reference
from fragments.news.base import CardNotFoundError, NewsClient
from fragments.tags.storage import TagStorage


class MemoryTagStorage(TagStorage):
    """Dict-backed storage standing in for a device's key-value store."""

    def __init__(self):
        self.slots: dict[str, str] = {}
        self.writes = 0

    def read(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def write(self, key: str, value: str) -> None:
        self.slots[key] = value
        self.writes += 1


class FakeNewsClient(NewsClient):
    """Serves canned pages keyed by (tag, offset).

    A page value may be an exception instance, which is raised instead.
    Calls registered with ``gate`` block until released.
    """

    def __init__(self, pages=None, tags=None, cards=None):
        self.pages: dict = dict(pages or {})
        self.tags = tags if tags is not None else []
        self.cards: dict[str, NewsCard] = dict(cards or {})
        self.calls: list[tuple] = []
        self.gates: dict[tuple, tuple[threading.Event, threading.Event]] = {}
        self.closed = False

    def gate(self, tag, offset) -> tuple[threading.Event, threading.Event]:
        """Block the (tag, offset) call. Returns the (entered, release) events."""
        events = (threading.Event(), threading.Event())
        self.gates[(tag, offset)] = events
        return events

    def fetch_latest(self, tag=None, limit=20, offset=0) -> NewsPage:
        self.calls.append((tag, limit, offset))
        gate = self.gates.get((tag, offset))
        if gate is not None:
            entered, release = gate
            entered.set()
            release.wait(5)
        result = self.pages.get((tag, offset))
        if result is None:
            result = NewsPage(cards=[], meta=PageMeta(total=0, limit=limit, offset=offset))
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_by_id(self, card_id: str) -> NewsCard:
        if card_id not in self.cards:
            raise CardNotFoundError(f"Card '{card_id}' not found")
        return self.cards[card_id]

    def fetch_tags(self) -> list[str]:
        if isinstance(self.tags, Exception):
            raise self.tags
        return list(self.tags)

    def close(self) -> None:
        self.closed = True


def make_card(card_id: str, topics: Optional[list[str]] = None, **overrides) -> NewsCard:
    data = {
        "id": card_id,
        "title": f"Card {card_id}",
        "summary": f"Summary of card {card_id}",
        "imageUrl": None,
        "date": "2025-06-01T08:30:00Z",
        "topics": topics if topics is not None else ["AI"],
        "sources": [],
    }
    data.update(overrides)
    return NewsCard.model_validate(data)


def make_page(
    ids: list[str], total: int, offset: int = 0, limit: int = 20, topics: Optional[list[str]] = None
) -> NewsPage:
    return NewsPage(
        cards=[make_card(i, topics) for i in ids],
        meta=PageMeta(total=total, limit=limit, offset=offset),
    )


@pytest.fixture
def test_config(tmp_path) -> AppConfig:
    """Provide a test configuration with safe defaults."""
    return AppConfig(
        api={"base_url": "http://news.test/api/"},
        feed={
            "page_size": 20,
            "filter_strategy": "first_selected",
            "client_side_narrowing": True,
        },
        tags={
            "storage_key": "user_tags",
            "file_path": str(tmp_path / "tags.json"),
            "predefined": ["Technology", "AI", "Science"],
        },
        logging={
            "level": "DEBUG",
            "app_log": str(tmp_path / "fragments.log"),
        },
    )


@pytest.fixture
def mock_secrets() -> Secrets:
    """Provide a fake API token for unit tests."""
    return Secrets(news_api_token="test-token")


@pytest.fixture
def memory_storage() -> MemoryTagStorage:
    return MemoryTagStorage()


@pytest.fixture
def fake_client() -> FakeNewsClient:
    return FakeNewsClient()


@pytest.fixture
def sample_card_payload() -> dict:
    """A card exactly as the backend serializes it."""
    return {
        "id": "card-001",
        "title": "Open model tops reasoning benchmark",
        "summary": "A new open-weights model outperformed larger rivals on math tasks.",
        "imageUrl": "https://img.example.com/card-001.jpg",
        "date": "2025-06-01T08:30:00Z",
        "topics": ["AI", "Technology"],
        "sources": [
            {
                "id": "src-1",
                "url": "https://example.com/story",
                "date": "2025-06-01T07:00:00Z",
            }
        ],
        "relatedCards": [{"id": "card-000", "title": "Earlier benchmark results"}],
        "content": "Full text of the story.",
    }


@pytest.fixture
def sample_card(sample_card_payload) -> NewsCard:
    return NewsCard.model_validate(sample_card_payload)


@pytest.fixture
def sample_reference() -> Reference:
    return Reference(
        id="src-2",
        url="https://example.com/other",
        source="Reuters",
        title="Other story",
        date="2025-06-01T06:00:00Z",
    )


@pytest.fixture
def card_factory():
    return make_card


@pytest.fixture
def page_factory():
    return make_page
