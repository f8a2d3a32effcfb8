"""Key-value slots the tag store persists into."""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import redis
import structlog

from fragments.config import AppConfig

logger = structlog.get_logger(__name__)


class TagStorage(ABC):
    """A tiny key-value store: each slot holds one serialized string."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the slot contents, or None if the slot was never written."""
        ...

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Replace the slot contents wholesale."""
        ...


class FileTagStorage(TagStorage):
    """JSON file mapping slot names to payload strings.

    Writes go to a sibling temp file which is then renamed over the target,
    so a reader only ever sees a complete document.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser()

    @classmethod
    def from_config(cls, config: AppConfig) -> "FileTagStorage":
        return cls(config.tags.file_path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        slots = self._load()
        slots[key] = value

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f".{self._path.name}.{os.getpid()}.tmp")
        try:
            tmp_path.write_text(json.dumps(slots), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as e:
            logger.error("tag_storage.write_failed", path=str(self._path), error=str(e))
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug("tag_storage.written", path=str(self._path), key=key)

    def _load(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            # ValueError covers bad JSON and bytes that are not UTF-8
            logger.warning("tag_storage.unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("tag_storage.unexpected_document", path=str(self._path))
            return {}
        return data


class RedisTagStorage(TagStorage):
    """Redis-backed slots under ``{namespace}:{key}``.

    A single SET replaces the slot, so readers never observe a partial value.
    """

    def __init__(self, namespace: str = "fragments"):
        self._namespace = namespace

        redis_host = os.getenv("REDIS_HOST", "localhost")
        redis_port = int(os.getenv("REDIS_PORT", "6379"))
        redis_password = os.getenv("REDIS_PASSWORD")

        self._client = redis.Redis(
            host=redis_host,
            port=redis_port,
            password=redis_password,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )

        logger.info(
            "tag_storage.redis_initialized",
            host=redis_host,
            port=redis_port,
            namespace=namespace,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> "RedisTagStorage":
        return cls(namespace=config.tags.redis_namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def read(self, key: str) -> Optional[str]:
        return self._client.get(self._key(key))

    def write(self, key: str, value: str) -> None:
        try:
            self._client.set(self._key(key), value)
        except redis.RedisError as e:
            logger.error("tag_storage.write_failed", key=self._key(key), error=str(e))
            raise
        logger.debug("tag_storage.written", key=self._key(key))

    def close(self) -> None:
        """Close Redis connection."""
        try:
            self._client.close()
        except Exception as e:
            logger.warning("tag_storage.close_failed", error=str(e))
