"""Tests for sheetsync.logging."""

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from sheetsync.logging import get_logger, sanitize_for_log, setup_logging


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logging.getLogger("sheetsync").handlers.clear()


class TestSetupLogging:
    def test_console_handler(self) -> None:
        logger = setup_logging(level="DEBUG")
        assert logger.name == "sheetsync"
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_env_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHEETSYNC_LOG_LEVEL", "warning")
        assert setup_logging().level == logging.WARNING

    def test_unknown_level_defaults_to_info(self) -> None:
        assert setup_logging(level="chatty").level == logging.INFO

    def test_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "sync.log"
        logger = setup_logging(level="INFO", log_file=log_file, console=False)
        get_logger("pipeline").info("hello %s", "file")
        for handler in logger.handlers:
            handler.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")

    def test_no_duplicate_handlers(self) -> None:
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1


def test_get_logger_prefixes() -> None:
    assert get_logger("pipeline").name == "sheetsync.pipeline"
    assert get_logger("sheetsync.pipeline").name == "sheetsync.pipeline"


class TestSanitize:
    def test_github_token(self) -> None:
        assert sanitize_for_log("token ghp_" + "a" * 36) == "token [GITHUB_TOKEN]"

    def test_bearer(self) -> None:
        assert sanitize_for_log("Authorization: Bearer abc.def") == "Authorization: Bearer [REDACTED]"

    def test_api_key_param(self) -> None:
        assert sanitize_for_log("GET /v4?key=AIza123") == "GET /v4?key=[REDACTED]"

    def test_plain_text_unchanged(self) -> None:
        assert sanitize_for_log("could not add to project") == "could not add to project"
