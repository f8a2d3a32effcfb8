"""Provider factory: creates the right implementation based on config."""

from fragments.config import AppConfig, Secrets
from fragments.news.base import NewsClient
from fragments.tags.storage import TagStorage

NEWS_CLIENTS = {
    "rest": "fragments.news.rest:RestNewsClient",
}

TAG_STORAGES = {
    "file": "fragments.tags.storage:FileTagStorage",
    "redis": "fragments.tags.storage:RedisTagStorage",
}


def _import_class(path: str):
    """Import a class from a 'module:ClassName' string."""
    module_path, class_name = path.split(":")
    import importlib

    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def create_news_client(config: AppConfig, secrets: Secrets) -> NewsClient:
    """Create a news client based on config.providers.news."""
    name = config.providers.news
    if name not in NEWS_CLIENTS:
        raise ValueError(
            f"Unknown news provider: '{name}'. Available: {list(NEWS_CLIENTS.keys())}"
        )
    cls = _import_class(NEWS_CLIENTS[name])
    return cls.from_config(config, secrets)


def create_tag_storage(config: AppConfig) -> TagStorage:
    """Create tag storage based on config.providers.tag_storage."""
    name = config.providers.tag_storage
    if name not in TAG_STORAGES:
        raise ValueError(
            f"Unknown tag storage provider: '{name}'. Available: {list(TAG_STORAGES.keys())}"
        )
    cls = _import_class(TAG_STORAGES[name])
    return cls.from_config(config)
