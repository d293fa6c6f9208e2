"""Unit tests for the server logging configuration."""

import logging

import pytest
import uvicorn
from fastapi import FastAPI

from appforge.runtime.server import build_logging_config


@pytest.fixture
def restore_logging():
    loggers = [logging.getLogger(name) for name in ("", "uvicorn", "uvicorn.access", "httpx")]
    saved = [(lg, lg.handlers[:], lg.level, lg.propagate) for lg in loggers]
    yield
    for lg, handlers, level, propagate in saved:
        for handler in lg.handlers:
            if handler not in handlers:
                handler.close()
        lg.handlers[:] = handlers
        lg.setLevel(level)
        lg.propagate = propagate


class TestBuildLoggingConfig:
    """Tests for build_logging_config."""

    def test_routes_root_logger_to_default_handler(self):
        """Test that application loggers share uvicorn's console handler."""
        config = build_logging_config()

        assert config["loggers"][""]["handlers"] == ["default"]
        assert config["loggers"]["httpx"]["level"] == "WARNING"
        assert "file" not in config["handlers"]

    def test_log_file_receives_application_logs(self, tmp_path, restore_logging):
        """Test that with a log file the uvicorn config keeps application logs in the file."""
        log_file = tmp_path / "app.log"

        # Building the uvicorn config applies the logging config
        uvicorn.Config(FastAPI(), log_config=build_logging_config(log_file=str(log_file)))
        logging.getLogger("appforge.functions.code_agent").info("hello from app")
        logging.getLogger("uvicorn.error").info("hello from uvicorn")
        for handler in logging.getLogger().handlers:
            handler.flush()
        for handler in logging.getLogger("uvicorn").handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert "hello from app" in content
        assert "hello from uvicorn" in content
