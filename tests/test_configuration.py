"""
Configuration Tests

🔧 Environment presets, dictionary/file/environment loading and the
logging setup driven by LoggingConfig.
"""

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from fieldbook.infrastructure import (
    ApplicationConfig, Environment, LoggingConfig, configure_logging, get_config, set_config,
)


class TestApplicationConfig:
    def test_defaults(self):
        config = ApplicationConfig()
        assert config.persistence.default_backend == "memory"
        assert config.persistence.timeout == 5.0
        assert config.validation.translator == "message"
        assert config.logging.level == "INFO"

    def test_testing_preset(self):
        config = ApplicationConfig.for_environment(Environment.TESTING)
        assert config.persistence.default_backend == "memory"
        assert config.persistence.timeout == 1.0
        assert config.validation.translator == "null"
        assert config.persistence.backends["sql"]["url"] == "sqlite+aiosqlite:///:memory:"

    def test_production_preset(self):
        config = ApplicationConfig.for_environment(Environment.PRODUCTION)
        assert config.persistence.default_backend == "sql"
        assert config.logging.file_path is not None
        assert not config.debug

    def test_presets_do_not_share_state(self):
        development = ApplicationConfig.for_environment(Environment.DEVELOPMENT)
        testing = ApplicationConfig.for_environment(Environment.TESTING)
        assert development.persistence.backends["sql"]["url"] != testing.persistence.backends["sql"]["url"]
        assert ApplicationConfig().persistence.backends["sql"]["echo"] is False

    def test_backend_options_rename_url(self):
        options = ApplicationConfig().persistence.backend_options("sql")
        assert options == {"database_url": "sqlite+aiosqlite:///fieldbook.db", "echo": False}
        assert ApplicationConfig().persistence.backend_options() == {"clear_on_shutdown": True}

    def test_from_dict_merges_sections(self):
        config = ApplicationConfig.from_dict({
            "environment": "staging",
            "persistence": {"timeout": 2.5, "backends": {"sql": {"url": "sqlite+aiosqlite:///other.db"}}},
            "validation": {"locale": "ja"},
            "custom": {"region": "kanto"},
            "unknown": {"ignored": True},
        })
        assert config.environment == Environment.STAGING
        assert config.persistence.default_backend == "sql"
        assert config.persistence.timeout == 2.5
        assert config.persistence.backends["sql"] == {"url": "sqlite+aiosqlite:///other.db", "echo": False}
        assert config.validation.locale == "ja"
        assert config.custom == {"region": "kanto"}

    def test_to_dict_round_trips(self):
        config = ApplicationConfig.for_environment(Environment.TESTING)
        assert ApplicationConfig.from_dict(config.to_dict()).to_dict() == config.to_dict()

    def test_from_environment(self):
        config = ApplicationConfig.from_environment({
            "FIELDBOOK_ENV": "testing",
            "FIELDBOOK_BACKEND": "sql",
            "FIELDBOOK_DATABASE_URL": "sqlite+aiosqlite:///env.db",
            "FIELDBOOK_TIMEOUT": "0.5",
            "FIELDBOOK_LOG_LEVEL": "debug",
            "FIELDBOOK_DEBUG": "true",
        })
        assert config.environment == Environment.TESTING
        assert config.persistence.default_backend == "sql"
        assert config.persistence.backend_options()["database_url"] == "sqlite+aiosqlite:///env.db"
        assert config.persistence.timeout == 0.5
        assert config.logging.level == "DEBUG"
        assert config.debug is True

    def test_from_file(self, tmp_path):
        path = tmp_path / "fieldbook.json"
        path.write_text(json.dumps({"environment": "testing", "persistence": {"default_backend": "sql"}}))
        config = ApplicationConfig.from_file(path)
        assert config.persistence.default_backend == "sql"

    def test_from_file_errors(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ApplicationConfig.from_file(tmp_path / "missing.json")
        path = tmp_path / "fieldbook.yaml"
        path.write_text("environment: testing")
        with pytest.raises(ValueError):
            ApplicationConfig.from_file(path)

    def test_global_configuration(self):
        config = ApplicationConfig.for_environment(Environment.TESTING)
        set_config(config)
        try:
            assert get_config() is config
        finally:
            set_config(None)


class TestConfigureLogging:
    def test_stream_and_rotating_file_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "fieldbook.log"
        config = LoggingConfig(level="DEBUG", file_path=str(log_file), max_file_size=1024, backup_count=2)
        logger = configure_logging(config)
        try:
            assert logger.name == "fieldbook"
            assert logger.level == logging.DEBUG
            file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
            assert len(file_handlers) == 1
            assert file_handlers[0].maxBytes == 1024
            assert file_handlers[0].backupCount == 2

            logging.getLogger("fieldbook.persistence.repository").debug("persist Feedback 1")
            file_handlers[0].flush()
            assert "persist Feedback 1" in log_file.read_text()
        finally:
            configure_logging(LoggingConfig(level="WARNING"))

    def test_reconfiguring_replaces_handlers(self):
        logger = configure_logging(LoggingConfig())
        count = len(logger.handlers)
        configure_logging(LoggingConfig(level="WARNING"))
        assert len(logger.handlers) == count
        assert logger.level == logging.WARNING
