"""Tag selection state with write-through persistence."""

import json
from typing import Callable, Iterable, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from fragments.config import PREDEFINED_TAGS
from fragments.models import Tag
from fragments.tags.storage import TagStorage

logger = structlog.get_logger(__name__)

TagListener = Callable[[list[Tag]], None]

_TAG_LIST = TypeAdapter(list[Tag])


class TagStoreError(Exception):
    """Base class for rejected tag operations."""


class TagNotFoundError(TagStoreError):
    """Raised when a tag id is not in the store."""


class EmptyTagNameError(TagStoreError):
    """Raised when a custom tag name is blank after trimming."""


class DuplicateTagError(TagStoreError):
    """Raised when a tag with the same name (ignoring case) already exists."""


class TagStore:
    """Predefined, server-discovered and user-created tags in one ordered list.

    Every mutation writes the whole list to storage before returning and then
    notifies subscribers. Rejected operations change nothing.
    """

    def __init__(
        self,
        storage: TagStorage,
        predefined: Iterable[str] = PREDEFINED_TAGS,
        storage_key: str = "user_tags",
    ):
        self._storage = storage
        self._predefined = list(predefined)
        self._storage_key = storage_key
        self._tags: list[Tag] = []
        self._listeners: list[TagListener] = []

    @property
    def tags(self) -> list[Tag]:
        return [tag.model_copy() for tag in self._tags]

    def get(self, tag_id: str) -> Optional[Tag]:
        tag = self._find(tag_id)
        return tag.model_copy() if tag else None

    def load(self) -> list[Tag]:
        """Load persisted tags, falling back to the predefined set.

        Absent or undecodable state is not an error: the defaults are used
        and written back so the next load is deterministic.
        """
        try:
            raw = self._storage.read(self._storage_key)
        except Exception as e:
            # Storage unreachable: serve defaults for this run, leave storage alone
            logger.error("tags.storage_read_failed", key=self._storage_key, error=str(e))
            self._tags = self._defaults()
            return self.tags

        if raw is None:
            logger.info("tags.initialized_defaults", count=len(self._predefined))
            return self._reset_to_defaults()

        try:
            tags = _TAG_LIST.validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "tags.decode_failed",
                key=self._storage_key,
                errors=e.error_count(),
            )
            return self._reset_to_defaults()

        self._tags = tags
        logger.info(
            "tags.loaded",
            count=len(tags),
            selected=sum(1 for t in tags if t.is_selected),
            custom=sum(1 for t in tags if t.is_custom),
        )
        return self.tags

    def merge(self, server_tags: Iterable[str]) -> list[Tag]:
        """Add server-reported tags that are not known yet. Returns the added tags."""
        known = {t.key for t in self._tags}
        added: list[Tag] = []
        for name in server_tags:
            name = name.strip()
            if not name or name.lower() in known:
                continue
            tag = Tag(name=name, is_selected=False, is_custom=False)
            known.add(tag.key)
            added.append(tag)

        if added:
            self._commit(self._tags + added)
            logger.info("tags.merged", added=[t.name for t in added], total=len(self._tags))
        return [t.model_copy() for t in added]

    def toggle(self, tag_id: str) -> Tag:
        tag = self._find(tag_id)
        if tag is None:
            raise TagNotFoundError(f"Tag '{tag_id}' not found")

        toggled = tag.model_copy(update={"is_selected": not tag.is_selected})
        self._commit([toggled if t.id == tag_id else t for t in self._tags])
        logger.info("tags.toggled", name=toggled.name, selected=toggled.is_selected)
        return toggled.model_copy()

    def add_custom(self, name: str) -> Tag:
        trimmed = name.strip()
        if not trimmed:
            raise EmptyTagNameError("Tag name must not be empty")
        if any(t.key == trimmed.lower() for t in self._tags):
            raise DuplicateTagError(f"Tag '{trimmed}' already exists")

        tag = Tag(name=trimmed, is_selected=True, is_custom=True)
        self._commit(self._tags + [tag])
        logger.info("tags.custom_added", name=tag.name)
        return tag.model_copy()

    def remove_custom(self, tag_id: str) -> bool:
        """Remove a user-created tag. Unknown and non-custom tags are ignored."""
        tag = self._find(tag_id)
        if tag is None or not tag.is_custom:
            logger.debug("tags.remove_ignored", tag_id=tag_id)
            return False

        self._commit([t for t in self._tags if t.id != tag_id])
        logger.info("tags.custom_removed", name=tag.name)
        return True

    def selected_tags(self) -> list[Tag]:
        """Selected tags in store order."""
        return [t.model_copy() for t in self._tags if t.is_selected]

    def selected_names(self) -> set[str]:
        """Lower-cased names of all selected tags."""
        return {t.key for t in self._tags if t.is_selected}

    def subscribe(self, listener: TagListener) -> Callable[[], None]:
        """Call ``listener`` with the tag list after each mutation."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _find(self, tag_id: str) -> Optional[Tag]:
        return next((t for t in self._tags if t.id == tag_id), None)

    def _defaults(self) -> list[Tag]:
        return [Tag(name=name, is_selected=False, is_custom=False) for name in self._predefined]

    def _reset_to_defaults(self) -> list[Tag]:
        """Use the predefined tags and try to write them back."""
        self._tags = self._defaults()
        try:
            self._persist()
        except Exception as e:
            # Defaults stay in memory; the next successful mutation saves them
            logger.error("tags.defaults_persist_failed", key=self._storage_key, error=str(e))
        return self.tags

    def _commit(self, tags: list[Tag]) -> None:
        """Persist ``tags`` and only then make them the current list."""
        self._persist(tags)
        self._tags = tags
        self._notify()

    def _persist(self, tags: Optional[list[Tag]] = None) -> None:
        if tags is None:
            tags = self._tags
        payload = json.dumps(
            [t.model_dump(mode="json", by_alias=True) for t in tags]
        )
        self._storage.write(self._storage_key, payload)

    def _notify(self) -> None:
        snapshot = self.tags
        for listener in list(self._listeners):
            listener(snapshot)
