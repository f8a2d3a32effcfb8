"""Tag preferences and their local persistence."""

from fragments.tags.storage import FileTagStorage, RedisTagStorage, TagStorage
from fragments.tags.store import (
    DuplicateTagError,
    EmptyTagNameError,
    TagNotFoundError,
    TagStore,
    TagStoreError,
)

__all__ = [
    "TagStorage",
    "FileTagStorage",
    "RedisTagStorage",
    "TagStore",
    "TagStoreError",
    "TagNotFoundError",
    "EmptyTagNameError",
    "DuplicateTagError",
]
