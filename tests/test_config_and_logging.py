"""Tests for configuration, structured logging and database bootstrap."""

from __future__ import annotations

import json
import logging
import logging.handlers
import shutil

import pytest
from sqlalchemy import inspect, text

from alvu import config as config_module
from alvu.config import BaseConfig
from alvu.infra.database import bootstrap_database
from alvu.logging_config import JSONFormatter, get_logger, setup_logging


@pytest.fixture(autouse=True)
def _reset_alvu_logger():
    yield
    logger = logging.getLogger("alvu")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class TestConfig:
    """Tests for environment-driven configuration."""

    def test_data_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ALVU_DATA_DIR", str(tmp_path / "data"))

        config = BaseConfig()

        assert config.DATA_DIR == (tmp_path / "data").resolve()
        assert config.DATA_DIR.is_dir()
        assert config.DATABASE_URL == f"sqlite:///{config.DATA_DIR / 'alvu.db'}"

    @pytest.mark.parametrize("value,expected", [("1", True), ("yes", True), ("false", False), ("0", False)])
    def test_dev_mode_flag(self, tmp_path, monkeypatch, value, expected):
        monkeypatch.setenv("ALVU_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("ALVU_DEV_MODE", value)

        assert BaseConfig().DEV_MODE is expected

    def test_database_url_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ALVU_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("ALVU_DATABASE_URL", "postgresql://user:secret@db/alvu")

        config = BaseConfig()

        assert config.DATABASE_URL == "postgresql://user:secret@db/alvu"
        assert config.sqlalchemy_engine_options() == {}

    def test_sqlite_engine_options(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ALVU_DATA_DIR", str(tmp_path))

        options = BaseConfig().sqlalchemy_engine_options()

        assert options == {"connect_args": {"check_same_thread": False}}

    def test_testing_config_uses_fresh_directory(self):
        first = config_module.TestingConfig()
        second = config_module.TestingConfig()
        try:
            assert first.DATA_DIR != second.DATA_DIR
            assert first.DATABASE_URL.endswith("alvu.db")
        finally:
            shutil.rmtree(first.DATA_DIR, ignore_errors=True)
            shutil.rmtree(second.DATA_DIR, ignore_errors=True)


class TestDatabase:
    def test_bootstrap_creates_tables(self, test_config):
        engine, _ = bootstrap_database(test_config)
        try:
            tables = set(inspect(engine).get_table_names())
            assert {"envelope", "transaction", "goal_history"} <= tables

            with engine.connect() as connection:
                foreign_keys = connection.execute(text("PRAGMA foreign_keys")).scalar_one()
            assert foreign_keys == 1
        finally:
            engine.dispose()


class TestLogging:
    """Tests for structured logging."""

    def test_json_formatter(self):
        formatter = JSONFormatter()
        record = logging.LogRecord(
            name="alvu.test",
            level=logging.INFO,
            pathname="test.py",
            lineno=42,
            msg="Test message",
            args=(),
            exc_info=None,
        )
        record.monthly_payment = 50.0

        log_data = json.loads(formatter.format(record))

        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "alvu.test"
        assert log_data["message"] == "Test message"
        assert log_data["line"] == 42
        assert log_data["extra"] == {"monthly_payment": 50.0}
        assert "timestamp" in log_data

    def test_json_formatter_with_exception(self):
        formatter = JSONFormatter()
        try:
            raise ValueError("Test error")
        except ValueError:
            import sys

            exc_info = sys.exc_info()

        record = logging.LogRecord(
            name="alvu.test",
            level=logging.ERROR,
            pathname="test.py",
            lineno=42,
            msg="Error occurred",
            args=(),
            exc_info=exc_info,
        )

        log_data = json.loads(formatter.format(record))

        assert log_data["exception"]["type"] == "ValueError"
        assert "Test error" in log_data["exception"]["message"]

    def test_setup_logging_writes_json_file(self, test_config):
        logger = setup_logging(test_config)

        assert logger.name == "alvu"
        assert len(logger.handlers) == 2

        logger.warning("Something to look at")
        for handler in logger.handlers:
            handler.flush()

        log_file = test_config.DATA_DIR / "logs" / "alvu.log"
        lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line]
        assert lines[0]["message"] == "Logging initialized"
        assert lines[-1]["message"] == "Something to look at"

    @pytest.mark.parametrize("dev_mode,expected_level", [(True, logging.DEBUG), (False, logging.WARNING)])
    def test_console_level_by_mode(self, test_config, dev_mode, expected_level):
        test_config.DEV_MODE = dev_mode

        logger = setup_logging(test_config)

        console = [
            handler
            for handler in logger.handlers
            if not isinstance(handler, logging.handlers.RotatingFileHandler)
        ]
        assert console[0].level == expected_level

    def test_get_logger_namespaces(self):
        assert get_logger("services.debts").name == "alvu.services.debts"
        assert get_logger("alvu.services.debts").name == "alvu.services.debts"
