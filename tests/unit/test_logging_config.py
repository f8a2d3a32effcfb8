"""Tests for structured logging setup."""

import json
import logging

import pytest
import structlog

from fragments.config import LoggingConfig
from fragments.logging_config import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    structlog.reset_defaults()


def _installed(root):
    return [h for h in root.handlers if getattr(h, "_fragments_handler", False)]


class TestConfigureLogging:
    def test_events_written_as_json(self, tmp_path):
        log_path = tmp_path / "logs" / "app.log"
        configure_logging(LoggingConfig(level="info", console="off", app_log=str(log_path)))

        structlog.get_logger("fragments.test").info("feed.refreshed", tag="AI", received=20)

        record = json.loads(log_path.read_text().strip().splitlines()[-1])
        assert record["event"] == "feed.refreshed"
        assert record["tag"] == "AI"
        assert record["received"] == 20
        assert record["level"] == "info"
        assert record["logger"] == "fragments.test"

    def test_level_filters_debug(self, tmp_path):
        log_path = tmp_path / "app.log"
        configure_logging(LoggingConfig(level="WARNING", console="off", app_log=str(log_path)))

        logger = structlog.get_logger("fragments.test")
        logger.info("tags.loaded")
        logger.warning("tags.decode_failed")

        events = [json.loads(line)["event"] for line in log_path.read_text().splitlines()]
        assert events == ["tags.decode_failed"]

    def test_reconfigure_replaces_handlers(self, tmp_path):
        config = LoggingConfig(console="plain", app_log=str(tmp_path / "app.log"))
        configure_logging(config)
        configure_logging(config)

        assert len(_installed(logging.getLogger())) == 2

    def test_console_only(self):
        configure_logging(LoggingConfig(console="json", app_log=None))

        installed = _installed(logging.getLogger())
        assert len(installed) == 1
        assert not isinstance(installed[0], logging.FileHandler)

    def test_quiets_client_loggers(self, tmp_path):
        configure_logging(LoggingConfig(level="DEBUG", console="off", app_log=None))

        for name in ["urllib3", "requests", "redis"]:
            assert logging.getLogger(name).level == logging.WARNING


class TestLoggingConfig:
    def test_unknown_level_rejected(self):
        with pytest.raises(ValueError, match="unknown log level"):
            LoggingConfig(level="chatty")

    def test_unknown_console_rejected(self):
        with pytest.raises(ValueError):
            LoggingConfig(console="rainbow")
