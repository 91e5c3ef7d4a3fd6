"""
Container Tests

🔧 Service registration, injection, lifecycle hooks and the application
composition root.
"""

import pytest

from fieldbook.domains import (
    DailyReportRepository, FeedbackCriteria, FeedbackRepository, TransactionHistoryRepository,
    VisitRepository,
)
from fieldbook.infrastructure import (
    ApplicationConfig, CircularDependencyError, Container, Environment, ServiceNotFoundError,
    ServiceScope, build_container,
)
from fieldbook.persistence import MemoryBackend, SQLBackend, StorageBackend
from fieldbook.validation import CriteriaValidator, MessageTranslator, NullTranslator, Translator

from .support.factories import make_feedback, sqlite_url


class Clock:
    pass


class Scheduler:
    def __init__(self, clock: Clock):
        self.clock = clock


class Left:
    pass


class Right:
    pass


def make_left(right: Right) -> Left:
    return Left()


def make_right(left: Left) -> Right:
    return Right()


class TestContainer:
    def test_singletons_are_shared(self):
        container = Container().register(Clock)
        assert container.get(Clock) is container.get(Clock)

    def test_transients_are_rebuilt(self):
        container = Container().register(Clock, scope=ServiceScope.TRANSIENT)
        assert container.get(Clock) is not container.get(Clock)

    def test_constructor_injection_by_annotation(self):
        container = Container().register(Clock).register(Scheduler)
        assert container.get(Scheduler).clock is container.get(Clock)

    def test_instances_and_string_keys(self):
        clock = Clock()
        container = Container().register_instance(Clock, clock).register_factory("answer", lambda: 42)
        assert container.get(Clock) is clock
        assert container.get("answer") == 42
        assert container.is_registered("answer")

    def test_missing_services(self):
        container = Container()
        with pytest.raises(ServiceNotFoundError):
            container.get(Clock)
        assert container.try_get(Clock) is None

    def test_circular_dependencies_are_detected(self):
        container = Container().register_factory(Left, make_left).register_factory(Right, make_right)
        with pytest.raises(CircularDependencyError) as exc_info:
            container.get(Left)
        assert "->" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_hooks_run_in_order_and_shutdown_runs_every_hook(self):
        calls = []

        async def open_pool():
            calls.append("open")

        def close_pool():
            calls.append("close")
            raise RuntimeError("already closed")

        async def flush():
            calls.append("flush")

        container = Container()
        container.add_startup_hook(open_pool)
        container.add_shutdown_hook(close_pool)
        container.add_shutdown_hook(flush)

        await container.startup()
        await container.startup()
        assert container.is_started
        with pytest.raises(RuntimeError):
            await container.shutdown()
        assert calls == ["open", "flush", "close"]
        assert not container.is_started

    def test_metrics(self):
        container = Container().register(Clock)
        container.get(Clock)
        assert container.get_metrics() == {
            "registered_services": 1,
            "singleton_instances": 1,
            "is_started": False,
        }


class TestBuildContainer:
    @pytest.mark.asyncio
    async def test_testing_configuration_wires_memory_backend(self):
        container = build_container(ApplicationConfig.for_environment(Environment.TESTING))
        await container.startup()
        try:
            backend = container.get(StorageBackend)
            assert isinstance(backend, MemoryBackend)
            assert backend.is_initialized
            assert isinstance(container.get(Translator), NullTranslator)

            repository = container.get(FeedbackRepository)
            assert repository.backend is backend
            assert repository.timeout == 1.0
            for repository_type in (DailyReportRepository, VisitRepository, TransactionHistoryRepository):
                assert container.get(repository_type).backend is backend

            feedback = make_feedback()
            await repository.persist(feedback)
            assert await container.get(FeedbackRepository).find(feedback.identifier) == feedback
        finally:
            await container.shutdown()
        assert not backend.is_initialized

    @pytest.mark.asyncio
    async def test_sql_configuration_creates_tables(self, tmp_path):
        config = ApplicationConfig.from_dict({
            "environment": "testing",
            "persistence": {"default_backend": "sql", "backends": {"sql": {"url": sqlite_url(tmp_path)}}},
        })
        container = build_container(config)
        await container.startup()
        try:
            backend = container.get(StorageBackend)
            assert isinstance(backend, SQLBackend)
            repository = container.get(FeedbackRepository)
            feedback = make_feedback()
            await repository.persist(feedback)
            assert await repository.find(feedback.identifier) == feedback
        finally:
            await container.shutdown()

    def test_explicit_backend_and_validators(self):
        backend = MemoryBackend()
        container = build_container(ApplicationConfig(), backend=backend)
        assert container.get(StorageBackend) is backend
        assert isinstance(container.get(Translator), MessageTranslator)

        validators = container.get("criteria_validators")
        assert isinstance(validators[FeedbackCriteria], CriteriaValidator)
        assert validators[FeedbackCriteria].validator.translator is container.get(Translator)
