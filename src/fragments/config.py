"""Configuration loading and validation using Pydantic."""

import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from fragments.feed.filters import FilterStrategy

PREDEFINED_TAGS = [
    "Technology", "AI", "Science", "Business", "Politics",
    "Sports", "Entertainment", "Health", "Environment", "Finance",
    "Gaming", "Travel", "Food", "Fashion", "Education",
]


class ApiConfig(BaseModel):
    base_url: str = "http://127.0.0.1:4800/api"
    # None leaves the timeout to the transport default
    timeout_seconds: Optional[float] = Field(default=None, gt=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("base_url must not be empty")
        return v.rstrip("/")


class FeedConfig(BaseModel):
    page_size: int = Field(default=20, ge=1, le=100)
    filter_strategy: FilterStrategy = FilterStrategy.FIRST_SELECTED
    client_side_narrowing: bool = True


class TagsConfig(BaseModel):
    storage_key: str = "user_tags"
    file_path: str = "~/.config/fragments/tags.json"
    redis_namespace: str = "fragments"
    predefined: list[str] = Field(default_factory=lambda: list(PREDEFINED_TAGS))

    @field_validator("predefined")
    @classmethod
    def predefined_unique(cls, v):
        seen: set[str] = set()
        for name in v:
            key = name.strip().lower()
            if not key:
                raise ValueError("predefined tag names must not be blank")
            if key in seen:
                raise ValueError(f"duplicate predefined tag: '{name}'")
            seen.add(key)
        return [name.strip() for name in v]


class ProvidersConfig(BaseModel):
    news: str = "rest"
    tag_storage: str = "file"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    console: Literal["pretty", "plain", "json", "off"] = "pretty"
    # None disables the file log
    app_log: Optional[str] = "logs/fragments.log"
    max_bytes: int = 10485760
    backup_count: int = 5
    quiet_loggers: list[str] = Field(
        default_factory=lambda: ["urllib3", "requests", "redis"]
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v):
        if not isinstance(logging.getLevelName(v.upper()), int):
            raise ValueError(f"unknown log level: '{v}'")
        return v.upper()


class AppConfig(BaseModel):
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    tags: TagsConfig = Field(default_factory=TagsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Secrets(BaseSettings):
    """Loaded from .env file automatically."""

    news_api_token: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def load_config(config_path: Path = Path("config/settings.yaml")) -> AppConfig:
    """Load and validate application configuration from YAML."""
    with open(config_path) as f:
        raw = yaml.safe_load(f)

    # An empty file means "all defaults"
    return AppConfig(**(raw or {}))
