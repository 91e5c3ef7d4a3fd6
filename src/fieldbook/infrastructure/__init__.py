"""
Fieldbook Infrastructure

Configuration, logging setup and the dependency injection container that
wires backends, translators and repositories together.
"""

from .configuration import (
    ApplicationConfig, Environment, LoggingConfig, PersistenceConfig,
    ValidationConfig, get_config, set_config,
)
from .container import (
    CircularDependencyError, Container, DIError, ServiceNotFoundError,
    ServiceScope, build_container,
)
from .logging_config import configure_logging

__all__ = [
    "ApplicationConfig", "Environment", "LoggingConfig", "PersistenceConfig",
    "ValidationConfig", "get_config", "set_config",
    "Container", "ServiceScope", "DIError", "ServiceNotFoundError",
    "CircularDependencyError", "build_container",
    "configure_logging",
]
