"""Domain models for the fragments news client."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


class Tag(BaseModel):
    """A named, selectable topic tag.

    Serialized with the camelCase keys of the persisted record
    (``isSelected``, ``isCustom``); either spelling is accepted on input.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    is_selected: bool = Field(False, alias="isSelected")
    is_custom: bool = Field(False, alias="isCustom")

    model_config = {"populate_by_name": True}

    @property
    def key(self) -> str:
        """Case-insensitive identity of the tag name."""
        return self.name.lower()


class Reference(BaseModel):
    """A source article a card was built from."""

    id: str
    url: str
    source: Optional[str] = None
    title: Optional[str] = None
    date: str

    model_config = ConfigDict(frozen=True)


class RelatedCard(BaseModel):
    id: str
    title: str

    model_config = ConfigDict(frozen=True)


class NewsCard(BaseModel):
    """A single news card as served by the backend."""

    id: str
    title: str
    summary: str
    image_url: Optional[str] = Field(None, alias="imageUrl")
    date: str
    topics: list[str] = Field(default_factory=list)
    sources: list[Reference] = Field(default_factory=list)
    related_cards: list[RelatedCard] = Field(default_factory=list, alias="relatedCards")
    content: Optional[str] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def published_at(self) -> Optional[datetime]:
        """Parsed ``date``; None when the backend sent something unparsable."""
        try:
            parsed = datetime.fromisoformat(self.date.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def has_topic(self, names: Iterable[str]) -> bool:
        """True if any of ``names`` matches one of the card's topics, ignoring case."""
        wanted = {n.lower() for n in names}
        return any(t.lower() in wanted for t in self.topics)


class PageMeta(BaseModel):
    total: int = Field(ge=0)
    limit: int = Field(ge=0)
    offset: int = Field(ge=0)


class NewsPage(BaseModel):
    """Response of the latest-news endpoint."""

    cards: list[NewsCard]
    meta: PageMeta

    @property
    def total(self) -> int:
        return self.meta.total


class PageCursor(BaseModel):
    """Offset/limit pair used to request the next page."""

    offset: int = Field(0, ge=0)
    limit: int = Field(20, ge=1)

    model_config = ConfigDict(frozen=True)

    def reset(self) -> "PageCursor":
        return PageCursor(offset=0, limit=self.limit)

    def advance(self, count: int) -> "PageCursor":
        return PageCursor(offset=self.offset + count, limit=self.limit)


class FeedStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class FeedState(BaseModel):
    """Immutable snapshot of a feed published to subscribers."""

    status: FeedStatus = FeedStatus.IDLE
    cards: tuple[NewsCard, ...] = ()
    visible_cards: tuple[NewsCard, ...] = ()
    cursor: PageCursor = Field(default_factory=PageCursor)
    total: Optional[int] = None
    active_filter: Optional[str] = None
    narrow_to: frozenset[str] = frozenset()
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_loading(self) -> bool:
        return self.status is FeedStatus.LOADING

    @property
    def has_more(self) -> bool:
        """Whether the backend reported more cards past the current offset."""
        if self.total is None:
            return True
        return self.cursor.offset < self.total
