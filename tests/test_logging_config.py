"""Tests for logging setup and the operation log context."""

import logging
from pathlib import Path

import pytest

from statement_planner.utils.logging_config import (
    ROOT_LOGGER_NAME,
    LogContext,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_file_handler_created(self, tmp_path: Path) -> None:
        """Test that a log file path creates its directory and handler."""
        log_file = tmp_path / "logs" / "planner.log"
        logger = setup_logging(level="DEBUG", log_file=str(log_file), console_output=False)

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert log_file.parent.is_dir()

    def test_no_handlers_when_disabled(self) -> None:
        """Test that file and console output can both be off."""
        logger = setup_logging(level="bogus", log_file=None, console_output=False)
        assert logger.handlers == []
        assert logger.level == logging.INFO

    def test_repeated_setup_replaces_handlers(self) -> None:
        """Test that handlers do not pile up across calls."""
        setup_logging(console_output=True)
        logger = setup_logging(console_output=True)
        assert len(logger.handlers) == 1


class TestGetLogger:
    """Tests for get_logger."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("statement_planner.cli", "statement_planner.cli"),
            ("statement_planner", "statement_planner"),
            ("plan_statements", "statement_planner.plan_statements"),
        ],
    )
    def test_namespace(self, name: str, expected: str) -> None:
        assert get_logger(name).name == expected


class TestLogContext:
    """Tests for LogContext."""

    def test_success_logs_start_and_completion(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test debug lines around a successful operation."""
        logger = get_logger("statement_planner.tests")
        with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER_NAME):
            with LogContext(logger, "extract statement", bank="Naranja X", files=2):
                pass

        messages = [r.getMessage() for r in caplog.records]
        assert messages[0] == "Starting extract statement: bank=Naranja X, files=2"
        assert messages[1].startswith("Completed extract statement in ")

    def test_failure_logged_and_reraised(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that errors are logged without being suppressed."""
        logger = get_logger("statement_planner.tests")
        with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER_NAME):
            with pytest.raises(RuntimeError, match="boom"):
                with LogContext(logger, "extract statement"):
                    raise RuntimeError("boom")

        (error,) = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert "Error in extract statement after" in error.getMessage()
        assert "RuntimeError: boom" in error.getMessage()
