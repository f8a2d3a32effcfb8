"""Tests for configuration loading and validation."""

import pytest
import yaml

from fragments.config import (
    PREDEFINED_TAGS,
    AppConfig,
    Secrets,
    load_config,
)
from fragments.feed.filters import FilterStrategy


class TestAppConfig:
    def test_valid_config(self, test_config):
        """A valid config should load without errors."""
        assert test_config.api.base_url == "http://news.test/api"
        assert test_config.feed.page_size == 20
        assert test_config.feed.filter_strategy is FilterStrategy.FIRST_SELECTED
        assert test_config.tags.predefined == ["Technology", "AI", "Science"]

    def test_defaults(self):
        config = AppConfig()
        assert config.api.base_url == "http://127.0.0.1:4800/api"
        assert config.api.timeout_seconds is None
        assert config.providers.news == "rest"
        assert config.providers.tag_storage == "file"
        assert config.tags.storage_key == "user_tags"
        assert config.tags.predefined == PREDEFINED_TAGS
        assert len(PREDEFINED_TAGS) == 15

    def test_page_size_bounds(self):
        with pytest.raises(ValueError):
            AppConfig(feed={"page_size": 0})
        with pytest.raises(ValueError):
            AppConfig(feed={"page_size": 500})

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError):
            AppConfig(feed={"filter_strategy": "all_tags"})

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            AppConfig(api={"timeout_seconds": 0})

    def test_blank_base_url_rejected(self):
        with pytest.raises(ValueError, match="base_url must not be empty"):
            AppConfig(api={"base_url": "  "})

    def test_duplicate_predefined_tags_rejected(self):
        with pytest.raises(ValueError, match="duplicate predefined tag"):
            AppConfig(tags={"predefined": ["AI", "Science", "ai"]})

    def test_blank_predefined_tag_rejected(self):
        with pytest.raises(ValueError, match="must not be blank"):
            AppConfig(tags={"predefined": ["AI", " "]})


class TestLoadConfig:
    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "providers": {"tag_storage": "redis"},
                    "api": {"base_url": "https://news.example.com/api", "timeout_seconds": 10},
                    "feed": {"page_size": 10, "filter_strategy": "single_only"},
                }
            )
        )
        config = load_config(path)
        assert config.providers.tag_storage == "redis"
        assert config.api.timeout_seconds == 10
        assert config.feed.page_size == 10
        assert config.feed.filter_strategy is FilterStrategy.SINGLE_ONLY
        assert config.feed.client_side_narrowing is True

    def test_empty_file_means_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")


class TestSecrets:
    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("NEWS_API_TOKEN", "abc123")
        assert Secrets().news_api_token == "abc123"

    def test_token_optional(self, monkeypatch, tmp_path):
        monkeypatch.delenv("NEWS_API_TOKEN", raising=False)
        monkeypatch.chdir(tmp_path)
        assert Secrets().news_api_token == ""
