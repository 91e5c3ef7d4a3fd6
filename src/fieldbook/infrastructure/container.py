"""
Dependency Injection Container

🔧 Service Composition and Lifecycle:
The container registers services by type or key, builds them on demand with
constructor and factory injection, and runs startup/shutdown hooks.
``build_container`` is the composition root: it wires the configured
storage backend, the validation translator and the four repositories.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from ..core.criteria import Criteria
from ..core.errors import FieldbookError
from ..domains import RECORD_TABLES, REPOSITORY_TYPES
from ..persistence.interface import StorageBackend
from ..persistence.manager import BackendRegistry
from ..persistence.repository import Repository
from ..validation.translation import Translator, create_translator
from ..validation.validator import CRITERIA_RULES, CriteriaValidator
from .configuration import ApplicationConfig, get_config

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ServiceScope(Enum):
    """Service lifetime scopes"""
    SINGLETON = "singleton"      # One instance for the container's lifetime
    TRANSIENT = "transient"      # New instance every time


class DIError(FieldbookError):
    """Base exception for dependency injection errors"""

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message=message, details={"service": service})


class ServiceNotFoundError(DIError):
    """Raised when a service is not registered"""


class CircularDependencyError(DIError):
    """Raised when circular dependencies are detected"""


@dataclass
class ServiceRegistration:
    """Service registration information"""
    key: str
    implementation: Any = None
    factory: Optional[Callable] = None
    scope: ServiceScope = ServiceScope.SINGLETON
    registered_at: datetime = field(default_factory=datetime.now)


class Container:
    """
    Dependency injection container.

    Features:
    - Singleton and transient scopes
    - Registration of classes, ready instances or factories
    - Constructor/factory injection by parameter annotation
    - Circular dependency detection
    - Async startup and shutdown hooks
    """

    def __init__(self):
        self._registrations: Dict[str, ServiceRegistration] = {}
        self._singletons: Dict[str, Any] = {}
        self._resolution_stack: List[str] = []
        self._startup_hooks: List[Callable] = []
        self._shutdown_hooks: List[Callable] = []
        self._is_started = False

    @staticmethod
    def _key(service_type: Union[Type, str]) -> str:
        """Get normalized service key"""
        if isinstance(service_type, str):
            return service_type
        return f"{service_type.__module__}.{service_type.__name__}"

    def register(
        self,
        service_type: Union[Type[T], str],
        implementation: Union[Type[T], None] = None,
        scope: ServiceScope = ServiceScope.SINGLETON,
        factory: Optional[Callable[..., T]] = None,
    ) -> 'Container':
        """
        Register a service with the container.

        Args:
            service_type: The service type or string key
            implementation: The implementation class (defaults to the type)
            scope: Service lifetime scope
            factory: Optional factory; its annotated parameters are injected

        Returns:
            Self for method chaining
        """
        if implementation is None and factory is None:
            if not isinstance(service_type, type):
                raise DIError(f"Implementation required for string key: {service_type}", service_type)
            implementation = service_type

        key = self._key(service_type)
        self._registrations[key] = ServiceRegistration(key, implementation, factory, scope)
        self._singletons.pop(key, None)
        return self

    def register_instance(self, service_type: Union[Type[T], str], instance: T) -> 'Container':
        """Register a ready-made singleton"""
        key = self._key(service_type)
        self._registrations[key] = ServiceRegistration(key, implementation=instance)
        self._singletons[key] = instance
        return self

    def register_factory(self, service_type: Union[Type[T], str], factory: Callable[..., T],
                         scope: ServiceScope = ServiceScope.SINGLETON) -> 'Container':
        """Register a service with a factory function"""
        return self.register(service_type, factory=factory, scope=scope)

    def is_registered(self, service_type: Union[Type, str]) -> bool:
        return self._key(service_type) in self._registrations

    def get(self, service_type: Union[Type[T], str]) -> T:
        """
        Get a service instance.

        Raises:
            ServiceNotFoundError: if nothing is registered for the type/key
            CircularDependencyError: if resolution loops back on itself
        """
        key = self._key(service_type)
        if key not in self._registrations:
            raise ServiceNotFoundError(f"Service not registered: {key}", key)

        if key in self._singletons:
            return self._singletons[key]

        if key in self._resolution_stack:
            cycle = " -> ".join(self._resolution_stack + [key])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}", key)

        registration = self._registrations[key]
        self._resolution_stack.append(key)
        try:
            instance = self._create_instance(registration)
        finally:
            self._resolution_stack.pop()

        if registration.scope == ServiceScope.SINGLETON:
            self._singletons[key] = instance
        return instance

    def try_get(self, service_type: Union[Type[T], str]) -> Optional[T]:
        """Try to get a service, returning None if not registered"""
        try:
            return self.get(service_type)
        except ServiceNotFoundError:
            return None

    def _create_instance(self, registration: ServiceRegistration) -> Any:
        if registration.factory is not None:
            return self._invoke(registration.factory)
        if inspect.isclass(registration.implementation):
            return self._invoke(registration.implementation)
        return registration.implementation

    def _invoke(self, target: Callable) -> Any:
        """Call ``target`` injecting every annotated parameter that is registered"""
        kwargs = {}
        for name, param in inspect.signature(target).parameters.items():
            annotation = param.annotation
            if annotation is inspect.Parameter.empty or not isinstance(annotation, type):
                continue
            if self.is_registered(annotation):
                kwargs[name] = self.get(annotation)
        return target(**kwargs)

    def add_startup_hook(self, hook: Callable):
        self._startup_hooks.append(hook)

    def add_shutdown_hook(self, hook: Callable):
        self._shutdown_hooks.append(hook)

    @staticmethod
    async def _run(hook: Callable):
        result = hook()
        if asyncio.iscoroutine(result):
            await result

    async def startup(self):
        """Run startup hooks in registration order"""
        if self._is_started:
            return
        for hook in self._startup_hooks:
            await self._run(hook)
        self._is_started = True
        logger.info("Container started")

    async def shutdown(self):
        """Run shutdown hooks in reverse order; every hook runs, the first error is re-raised"""
        if not self._is_started:
            return
        first_error: Optional[BaseException] = None
        for hook in reversed(self._shutdown_hooks):
            try:
                await self._run(hook)
            except Exception as e:
                logger.error(f"Shutdown hook {getattr(hook, '__name__', hook)} failed: {e}")
                first_error = first_error or e
        self._singletons.clear()
        self._is_started = False
        logger.info("Container shut down")
        if first_error is not None:
            raise first_error

    @property
    def is_started(self) -> bool:
        return self._is_started

    def get_metrics(self) -> Dict[str, Any]:
        """Get container metrics"""
        return {
            "registered_services": len(self._registrations),
            "singleton_instances": len(self._singletons),
            "is_started": self._is_started,
        }


def _repository_factory(repository_type: Type[Repository], timeout: Optional[float]) -> Callable:
    def create(backend: StorageBackend) -> Repository:
        return repository_type(backend, timeout=timeout)
    create.__name__ = f"create_{repository_type.__name__}"
    return create


def build_container(
    config: Optional[ApplicationConfig] = None,
    backend: Optional[StorageBackend] = None,
    registry: Optional[BackendRegistry] = None,
) -> Container:
    """
    Wire the application services.

    Args:
        config: Application configuration (global configuration if omitted)
        backend: Ready backend to use instead of the configured one
        registry: Backend registry (default registry if omitted)

    Returns:
        A container; ``await container.startup()`` initializes the backend
        and ``await container.shutdown()`` releases it
    """
    config = config or get_config()
    container = Container()
    container.register_instance(ApplicationConfig, config)
    container.register_instance(BackendRegistry, registry or BackendRegistry())

    if backend is not None:
        container.register_instance(StorageBackend, backend)
    else:
        def create_backend(backend_registry: BackendRegistry) -> StorageBackend:
            name = config.persistence.default_backend
            options = config.persistence.backend_options(name)
            if name == "sql":
                options["models"] = RECORD_TABLES
            return backend_registry.create_backend(name, **options)
        container.register_factory(StorageBackend, create_backend)

    container.register_factory(
        Translator,
        lambda: create_translator(config.validation.translator, config.validation.locale),
    )

    for repository_type in REPOSITORY_TYPES:
        container.register_factory(
            repository_type, _repository_factory(repository_type, config.persistence.timeout)
        )

    def create_validators(translator: Translator) -> Dict[Type[Criteria], CriteriaValidator]:
        return {criteria_type: CriteriaValidator(criteria_type, translator) for criteria_type in CRITERIA_RULES}
    container.register_factory("criteria_validators", create_validators)

    async def initialize_backend():
        await container.get(StorageBackend).initialize()

    async def shutdown_backend():
        await container.get(StorageBackend).shutdown()

    container.add_startup_hook(initialize_backend)
    container.add_shutdown_hook(shutdown_backend)

    logger.debug(
        f"Container built for {config.environment.value} "
        f"with backend {config.persistence.default_backend if backend is None else type(backend).__name__}"
    )
    return container


# Export main components
__all__ = [
    "Container", "ServiceScope", "ServiceRegistration",
    "DIError", "ServiceNotFoundError", "CircularDependencyError",
    "build_container",
]
