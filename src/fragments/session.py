"""Wires tag selection, the news backend and the feed together."""

import asyncio
from typing import Optional

import structlog

from fragments.config import AppConfig, Secrets
from fragments.feed.controller import FeedController
from fragments.feed.filters import pick_server_tag
from fragments.models import FeedState, NewsCard, Tag
from fragments.news.base import NewsClient, NewsClientError
from fragments.providers import create_news_client, create_tag_storage
from fragments.tags.storage import TagStorage
from fragments.tags.store import TagStore

logger = structlog.get_logger(__name__)


class NewsSession:
    """One reader's session: tag preferences plus the feed they drive.

    Tag mutations go through the session so the feed filter follows the
    selection: the server filter is re-derived after every change and the
    feed reloads only when that filter actually changed. The display-level
    narrowing is updated every time.
    """

    def __init__(
        self,
        config: AppConfig,
        secrets: Secrets,
        *,
        client: Optional[NewsClient] = None,
        storage: Optional[TagStorage] = None,
    ):
        self._config = config
        self._client = client or create_news_client(config, secrets)
        self._storage = storage or create_tag_storage(config)
        self.tags = TagStore(
            self._storage,
            predefined=config.tags.predefined,
            storage_key=config.tags.storage_key,
        )
        self.feed = FeedController(
            self._client,
            page_size=config.feed.page_size,
            narrowing=config.feed.client_side_narrowing,
        )

    @property
    def state(self) -> FeedState:
        return self.feed.state

    async def start(self) -> FeedState:
        """Load tags, pick up tags the backend knows about, then load the first page."""
        logger.info(
            "session.starting",
            base_url=self._config.api.base_url,
            strategy=self._config.feed.filter_strategy.value,
            page_size=self._config.feed.page_size,
        )
        self.tags.load()

        try:
            server_tags = await asyncio.to_thread(self._client.fetch_tags)
        except NewsClientError as e:
            # The feed is still usable with the locally known tags
            logger.warning("session.tags_unavailable", error=str(e))
        else:
            self.tags.merge(server_tags)

        return await self._sync_filter()

    def server_tag(self) -> Optional[str]:
        """The single tag forwarded to the backend for the current selection."""
        return pick_server_tag(self.tags.selected_tags(), self._config.feed.filter_strategy)

    async def toggle_tag(self, tag_id: str) -> Tag:
        tag = self.tags.toggle(tag_id)
        await self._sync_filter()
        return tag

    async def add_tag(self, name: str) -> Tag:
        tag = self.tags.add_custom(name)
        await self._sync_filter()
        return tag

    async def remove_tag(self, tag_id: str) -> bool:
        removed = self.tags.remove_custom(tag_id)
        if removed:
            await self._sync_filter()
        return removed

    async def refresh(self) -> FeedState:
        return await self.feed.refresh()

    async def load_more(self) -> FeedState:
        return await self.feed.load_more()

    async def open_card(self, card_id: str) -> NewsCard:
        """Fetch the full card for the detail view."""
        return await asyncio.to_thread(self._client.fetch_by_id, card_id)

    def close(self) -> None:
        for resource in (self._client, self._storage):
            close = getattr(resource, "close", None)
            if callable(close):
                close()
        logger.info("session.closed")

    async def _sync_filter(self) -> FeedState:
        self.feed.narrow(self.tags.selected_names())
        return await self.feed.change_filter(self.server_tag())
