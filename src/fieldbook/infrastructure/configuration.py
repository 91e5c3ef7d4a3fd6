"""
Configuration Management for Fieldbook

🔧 Unified Configuration System:
Dataclass-based configuration for the repository layer: which storage
backend to use and how to reach it, how long backend calls may take, how
validation messages are rendered and how logging is set up. Each
environment starts from its own defaults, which environment variables,
dictionaries or JSON files can override.
"""

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

ENV_PREFIX = "FIELDBOOK_"


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class PersistenceConfig:
    """Persistence layer configuration"""
    default_backend: str = "memory"
    timeout: Optional[float] = 5.0
    backends: Dict[str, Dict[str, Any]] = field(default_factory=lambda: {
        "memory": {
            "clear_on_shutdown": True,
        },
        "sql": {
            "url": "sqlite+aiosqlite:///fieldbook.db",
            "echo": False,
        },
    })

    def backend_options(self, backend: Optional[str] = None) -> Dict[str, Any]:
        """Constructor options for a backend, with ``url`` renamed for SQL engines"""
        name = backend or self.default_backend
        options = dict(self.backends.get(name, {}))
        if "url" in options:
            options["database_url"] = options.pop("url")
        return options


@dataclass
class ValidationConfig:
    """Validation layer configuration"""
    translator: str = "message"
    locale: str = "en"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class ApplicationConfig:
    """Complete application configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"
            config.persistence.backends["sql"]["echo"] = True

        elif environment == Environment.TESTING:
            config.persistence.default_backend = "memory"
            config.persistence.timeout = 1.0
            config.persistence.backends["sql"]["url"] = "sqlite+aiosqlite:///:memory:"
            config.validation.translator = "null"
            config.logging.level = "WARNING"

        elif environment == Environment.STAGING:
            config.persistence.default_backend = "sql"

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.persistence.default_backend = "sql"
            config.logging.level = "INFO"
            config.logging.file_path = "/var/log/fieldbook/fieldbook.log"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ApplicationConfig':
        """
        Create configuration from dictionary.

        Starts from the defaults of the dictionary's ``environment`` (or
        development) and overrides known keys; unknown keys are ignored.
        """
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls.for_environment(environment)

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        for section in ("persistence", "validation", "logging"):
            target = getattr(config, section)
            for key, value in config_dict.get(section, {}).items():
                if key == "backends" and isinstance(value, dict):
                    for backend, options in value.items():
                        target.backends.setdefault(backend, {}).update(options)
                elif hasattr(target, key):
                    setattr(target, key, value)

        config.custom.update(config_dict.get("custom", {}))
        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ApplicationConfig':
        """Load configuration from a JSON file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if config_path.suffix != '.json':
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        with open(config_path) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_environment(cls, environ: Optional[Dict[str, str]] = None) -> 'ApplicationConfig':
        """Create configuration from environment variables"""
        environ = os.environ if environ is None else environ
        environment = Environment(environ.get(f'{ENV_PREFIX}ENV', 'development'))

        config = cls.for_environment(environment)

        if environ.get(f'{ENV_PREFIX}DEBUG'):
            config.debug = environ[f'{ENV_PREFIX}DEBUG'].lower() == 'true'

        if environ.get(f'{ENV_PREFIX}BACKEND'):
            config.persistence.default_backend = environ[f'{ENV_PREFIX}BACKEND']

        if environ.get(f'{ENV_PREFIX}DATABASE_URL'):
            config.persistence.backends["sql"]["url"] = environ[f'{ENV_PREFIX}DATABASE_URL']

        if environ.get(f'{ENV_PREFIX}TIMEOUT'):
            config.persistence.timeout = float(environ[f'{ENV_PREFIX}TIMEOUT'])

        if environ.get(f'{ENV_PREFIX}LOG_LEVEL'):
            config.logging.level = environ[f'{ENV_PREFIX}LOG_LEVEL'].upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "persistence": {
                "default_backend": self.persistence.default_backend,
                "timeout": self.persistence.timeout,
                "backends": self.persistence.backends,
            },
            "validation": {
                "translator": self.validation.translator,
                "locale": self.validation.locale,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_path": self.logging.file_path,
                "max_file_size": self.logging.max_file_size,
                "backup_count": self.logging.backup_count,
            },
            "custom": self.custom,
        }


# Global configuration management
_current_config: Optional[ApplicationConfig] = None


def set_config(config: Optional[ApplicationConfig]):
    """Set (or with None, reset) the global configuration"""
    global _current_config
    _current_config = config


def get_config() -> ApplicationConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        _current_config = ApplicationConfig.from_environment()

    return _current_config


# Export main components
__all__ = [
    "ApplicationConfig", "Environment", "PersistenceConfig", "ValidationConfig",
    "LoggingConfig", "set_config", "get_config",
]
