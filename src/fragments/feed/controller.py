"""Paginated, tag-filtered feed state published as immutable snapshots."""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

import structlog

from fragments.feed.filters import narrow_cards
from fragments.models import FeedState, FeedStatus, NewsCard, NewsPage, PageCursor
from fragments.news.base import NewsClient

logger = structlog.get_logger(__name__)

FeedListener = Callable[[FeedState], None]

# Default for the ``tag`` arguments: use whatever filter is currently active
ACTIVE: Any = object()


@dataclass(frozen=True)
class RequestToken:
    """Identifies one fetch; only the most recently issued token is current."""

    generation: int
    tag: Optional[str]


class FeedController:
    """Owns the card list, the page cursor and the active tag filter.

    State moves through idle -> loading -> loaded | error. Every fetch is
    issued under a fresh RequestToken; a response that arrives after a newer
    request was started (for example after a filter change) is dropped.
    All mutation happens on the event loop; only the HTTP call itself runs
    in a worker thread.
    """

    def __init__(self, client: NewsClient, page_size: int = 20, narrowing: bool = True):
        self._client = client
        self._narrowing = narrowing
        self._state = FeedState(cursor=PageCursor(offset=0, limit=page_size))
        self._generation = 0
        self._listeners: list[FeedListener] = []

    @property
    def state(self) -> FeedState:
        return self._state

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh(self, tag: Optional[str] = ACTIVE) -> FeedState:
        """Fetch the first page and replace the card list with it.

        On failure the previous cards stay in place and the state carries
        the error message.
        """
        if tag is ACTIVE:
            tag = self._state.active_filter
        elif tag != self._state.active_filter:
            # cards always belong to the active filter
            return await self.change_filter(tag)

        token = self._issue(tag)
        self._publish(status=FeedStatus.LOADING, active_filter=tag, error=None)
        cursor = self._state.cursor.reset()
        logger.info("feed.refresh_started", tag=tag, generation=token.generation)

        try:
            page = await self._fetch(tag, cursor)
        except asyncio.CancelledError:
            self._cancel(token, "refresh")
            raise
        except Exception as e:
            return self._fail(token, "refresh", e)

        if not self._is_current(token):
            return self._drop(token, "refresh")

        cards = _unique(page.cards)
        self._publish(
            status=FeedStatus.LOADED,
            cards=cards,
            cursor=cursor.advance(len(page.cards)),
            total=page.total,
        )
        logger.info(
            "feed.refreshed",
            tag=tag,
            received=len(page.cards),
            total=page.total,
        )
        return self._state

    async def load_more(self, tag: Optional[str] = ACTIVE) -> FeedState:
        """Append the next page. Does nothing while another fetch is in flight."""
        if self._state.is_loading:
            logger.debug("feed.load_more_skipped", reason="already_loading")
            return self._state

        if tag is not ACTIVE and tag != self._state.active_filter:
            return await self.change_filter(tag)

        tag = self._state.active_filter
        token = self._issue(tag)
        cursor = self._state.cursor
        self._publish(status=FeedStatus.LOADING, error=None)
        logger.info(
            "feed.load_more_started",
            tag=tag,
            offset=cursor.offset,
            has_more=self._state.has_more,
            generation=token.generation,
        )

        try:
            page = await self._fetch(tag, cursor)
        except asyncio.CancelledError:
            self._cancel(token, "load_more")
            raise
        except Exception as e:
            return self._fail(token, "load_more", e)

        if not self._is_current(token):
            return self._drop(token, "load_more")

        seen = {card.id for card in self._state.cards}
        appended = _unique(page.cards, seen)
        self._publish(
            status=FeedStatus.LOADED,
            cards=self._state.cards + appended,
            cursor=cursor.advance(len(page.cards)),
            total=page.total,
        )
        logger.info(
            "feed.page_appended",
            tag=tag,
            received=len(page.cards),
            appended=len(appended),
            card_count=len(self._state.cards),
        )
        return self._state

    async def change_filter(self, tag: Optional[str]) -> FeedState:
        """Switch the server-side tag filter and reload from offset 0.

        A no-op when ``tag`` is already the active filter, unless nothing has
        been fetched yet.
        """
        if tag == self._state.active_filter and self._state.status is not FeedStatus.IDLE:
            return self._state

        logger.info("feed.filter_changed", previous=self._state.active_filter, tag=tag)
        self._publish(
            cards=(),
            cursor=self._state.cursor.reset(),
            total=None,
            active_filter=tag,
        )
        return await self.refresh(tag)

    def narrow(self, names: Iterable[str]) -> FeedState:
        """Restrict displayed cards to those sharing a topic with ``names``. Never fetches."""
        self._publish(narrow_to=frozenset(n.lower() for n in names))
        return self._state

    def clear_error(self) -> FeedState:
        if self._state.status is FeedStatus.ERROR:
            status = FeedStatus.LOADED if self._state.cards else FeedStatus.IDLE
            self._publish(status=status, error=None)
        return self._state

    async def _fetch(self, tag: Optional[str], cursor: PageCursor) -> NewsPage:
        return await asyncio.to_thread(
            self._client.fetch_latest, tag, cursor.limit, cursor.offset
        )

    def _issue(self, tag: Optional[str]) -> RequestToken:
        self._generation += 1
        return RequestToken(generation=self._generation, tag=tag)

    def _is_current(self, token: RequestToken) -> bool:
        return (
            token.generation == self._generation
            and token.tag == self._state.active_filter
        )

    def _drop(self, token: RequestToken, operation: str) -> FeedState:
        logger.info(
            "feed.stale_response_dropped",
            operation=operation,
            tag=token.tag,
            generation=token.generation,
            current_generation=self._generation,
        )
        return self._state

    def _cancel(self, token: RequestToken, operation: str) -> None:
        """Settle a cancelled fetch so the next request is not blocked."""
        if not self._is_current(token):
            return
        logger.info("feed.request_cancelled", operation=operation, tag=token.tag)
        status = FeedStatus.LOADED if self._state.cards else FeedStatus.IDLE
        self._publish(status=status)

    def _fail(self, token: RequestToken, operation: str, error: Exception) -> FeedState:
        if not self._is_current(token):
            return self._drop(token, operation)

        logger.error(
            f"feed.{operation}_failed",
            tag=token.tag,
            error=str(error),
            error_type=type(error).__name__,
        )
        self._publish(status=FeedStatus.ERROR, error=str(error) or type(error).__name__)
        return self._state

    def _publish(self, **changes) -> None:
        state = self._state.model_copy(update=changes)
        if self._narrowing:
            visible = narrow_cards(state.cards, state.narrow_to)
        else:
            visible = state.cards
        self._state = state.model_copy(update={"visible_cards": visible})

        for listener in list(self._listeners):
            listener(self._state)


def _unique(cards: Iterable[NewsCard], seen: Optional[set[str]] = None) -> tuple[NewsCard, ...]:
    """Drop cards whose id was already seen, keeping arrival order."""
    seen = set() if seen is None else set(seen)
    out: list[NewsCard] = []
    for card in cards:
        if card.id in seen:
            continue
        seen.add(card.id)
        out.append(card)
    return tuple(out)
