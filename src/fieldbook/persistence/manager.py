"""
Backend Registry - Backend Factory

🏭 Configuration-Driven Backend Selection:
This module maps backend names used in configuration ("memory", "sql") to
their implementation classes and builds configured instances. Applications
can register additional backends without touching repository code.
"""

import logging
from dataclasses import dataclass, field
from importlib import import_module
from typing import Any, Dict, Optional, Type

from ..core.errors import FieldbookError
from .interface import StorageBackend

logger = logging.getLogger(__name__)


@dataclass
class BackendConfig:
    """Configuration for a storage backend"""
    backend_type: str
    implementation_class: str
    config: Dict[str, Any] = field(default_factory=dict)
    enabled: bool = True


class BackendNotFoundError(FieldbookError):
    """Raised when no backend is registered under a name"""

    def __init__(self, backend_type: str):
        super().__init__(
            message=f"No backend registered for '{backend_type}'",
            details={"backend_type": backend_type},
        )


class BackendInitializationError(FieldbookError):
    """Raised when a backend cannot be built"""

    def __init__(self, backend_type: str, reason: str):
        super().__init__(
            message=f"Backend '{backend_type}' could not be created: {reason}",
            details={"backend_type": backend_type, "reason": reason},
        )


class BackendRegistry:
    """
    Registry for storage backend implementations.

    Backends are referenced by dotted class path so optional drivers are
    only imported when the backend is actually selected.
    """

    def __init__(self):
        self._backends: Dict[str, BackendConfig] = self._get_default_backends()

    def register_backend(self, config: BackendConfig):
        """Register (or replace) a storage backend"""
        self._backends[config.backend_type] = config
        logger.info(f"Registered backend {config.backend_type}: {config.implementation_class}")

    def get_backend_config(self, backend_type: str) -> Optional[BackendConfig]:
        """Get backend configuration by name"""
        return self._backends.get(backend_type)

    def list_backends(self) -> Dict[str, BackendConfig]:
        """List all registered backends"""
        return dict(self._backends)

    def _get_default_backends(self) -> Dict[str, BackendConfig]:
        """Get default backend configurations"""
        return {
            "memory": BackendConfig(
                backend_type="memory",
                implementation_class="fieldbook.persistence.memory.MemoryBackend",
            ),
            "sql": BackendConfig(
                backend_type="sql",
                implementation_class="fieldbook.persistence.sql.SQLBackend",
                config={"database_url": "sqlite+aiosqlite:///fieldbook.db", "echo": False},
            ),
        }

    def create_backend(self, backend_type: str, **overrides: Any) -> StorageBackend:
        """
        Build a backend instance.

        Args:
            backend_type: Registered backend name
            **overrides: Options merged over the registered defaults

        Returns:
            An uninitialized backend; call ``initialize()`` before use

        Raises:
            BackendNotFoundError: If the name is unknown or disabled
            BackendInitializationError: If the class cannot be loaded or built
        """
        config = self.get_backend_config(backend_type)
        if config is None or not config.enabled:
            raise BackendNotFoundError(backend_type)

        backend_class = self._load_backend_class(config)
        options = {**config.config, **overrides}
        try:
            if hasattr(backend_class, "from_options"):
                backend = backend_class.from_options(**options)
            else:
                backend = backend_class(**options)
        except (TypeError, ValueError) as e:
            raise BackendInitializationError(backend_type, str(e)) from e

        logger.info(f"Created backend {backend_type} ({backend_class.__name__})")
        return backend

    def _load_backend_class(self, config: BackendConfig) -> Type[StorageBackend]:
        """Load backend class from module path"""
        module_path, class_name = config.implementation_class.rsplit(".", 1)
        try:
            module = import_module(module_path)
            return getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise BackendInitializationError(config.backend_type, str(e)) from e


# Export main components
__all__ = [
    "BackendRegistry", "BackendConfig", "BackendNotFoundError",
    "BackendInitializationError",
]
