"""
Pytest Configuration and Fixtures for the Golden Credits test suite
===================================================================

Purpose
-------
Centralized fixtures for unit and integration tests: configuration,
event bus, database, a controllable clock and a fully wired service
container.

Architecture Notes
------------------
- Unit tests use pure components and pytest-mock mocks (fast, isolated)
- Service tests run against a per-test SQLite file via aiosqlite
- Container tests run against PostgreSQL/Redis testcontainers and are
  enabled with GC_RUN_CONTAINER_TESTS=1
"""

from __future__ import annotations

import os

# Must be set before any golden_credits import reads Config
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_AUTOCONFIGURE", "false")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio

from golden_credits.core.config.manager import ConfigManager
from golden_credits.core.database.service import DatabaseService
from golden_credits.core.event.bus import EventBus
from golden_credits.core.logging.logger import clear_log_context, get_logger
from golden_credits.core.services.container import ServiceContainer
from golden_credits.modules.rewards.stats import InMemoryGamesPlayed

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = PROJECT_ROOT / "config"

CONTAINER_TESTS_ENABLED = os.getenv("GC_RUN_CONTAINER_TESTS") == "1"


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_collection_modifyitems(config, items):
    """Skip testcontainer tests unless explicitly enabled."""
    if CONTAINER_TESTS_ENABLED:
        return
    skip_containers = pytest.mark.skip(reason="set GC_RUN_CONTAINER_TESTS=1 to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_containers)


# ============================================================================
# CLOCK
# ============================================================================


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now

    def set(self, moment: datetime) -> datetime:
        self.now = moment
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    """Starts at 2025-03-10 12:00 UTC."""
    return FrozenClock(datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc))


# ============================================================================
# CONFIGURATION & EVENTS
# ============================================================================


@pytest.fixture
def config_manager() -> Generator[type[ConfigManager], None, None]:
    """ConfigManager loaded from the repository's config/ directory."""
    ConfigManager.reset()
    ConfigManager.initialize(CONFIG_DIR)
    yield ConfigManager
    ConfigManager.reset()


@pytest.fixture
def event_bus(config_manager) -> EventBus:
    return EventBus(config_manager=config_manager)


@pytest.fixture
def recorded_events(event_bus) -> list:
    """Every event published on `event_bus`, as (name, payload) tuples."""
    events: list = []
    original_publish = event_bus.publish

    async def recording_publish(event_name, data):
        events.append((event_name, dict(data)))
        return await original_publish(event_name, data)

    event_bus.publish = recording_publish
    return events


@pytest.fixture(autouse=True)
def _clean_log_context() -> Generator[None, None, None]:
    yield
    clear_log_context()


# ============================================================================
# DATABASE
# ============================================================================


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[type[DatabaseService], None]:
    """Fresh SQLite database with the full schema, one per test."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'golden_credits.db'}"
    await DatabaseService.initialize(url)
    await DatabaseService.create_schema()
    yield DatabaseService
    await DatabaseService.shutdown()


# ============================================================================
# SERVICE CONTAINER
# ============================================================================


@pytest.fixture
def games_played() -> InMemoryGamesPlayed:
    return InMemoryGamesPlayed()


@pytest_asyncio.fixture
async def container(
    database,
    config_manager,
    event_bus,
    clock,
    games_played,
) -> AsyncGenerator[ServiceContainer, None]:
    services = ServiceContainer(
        config_manager,
        event_bus,
        get_logger("tests.container"),
        games_played=games_played,
        clock=clock,
        rng=random.Random(1234),
        use_redis_locks=False,
    )
    await services.initialize()
    yield services
    await services.shutdown()


@pytest.fixture
def orchestrator(container):
    return container.orchestrator


# ============================================================================
# MOCK FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def mock_event_bus(mocker):
    mock_bus = mocker.MagicMock()
    mock_bus.publish = mocker.AsyncMock(return_value=[])
    mock_bus.subscribe = mocker.MagicMock()
    return mock_bus


@pytest.fixture
def mock_config_manager(mocker):
    """ConfigManager stand-in that returns the supplied default for every key."""
    mock_config = mocker.MagicMock()
    mock_config.get = mocker.MagicMock(side_effect=lambda key, default=None: default)
    return mock_config


# ============================================================================
# TESTCONTAINERS FIXTURES (Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def postgres_container():
    """
    Start a PostgreSQL testcontainer.

    Scope: session (container persists across all tests)
    """
    from testcontainers.postgres import PostgresContainer

    logger.info("Starting PostgreSQL testcontainer...")
    container = PostgresContainer(image="postgres:17-alpine", driver="asyncpg")
    container.start()
    yield container
    logger.info("Stopping PostgreSQL testcontainer...")
    container.stop()


@pytest.fixture(scope="session")
def redis_container():
    """
    Start a Redis testcontainer.

    Scope: session (container persists across all tests)
    """
    from testcontainers.redis import RedisContainer

    logger.info("Starting Redis testcontainer...")
    container = RedisContainer(image="redis:7-alpine")
    container.start()
    yield container
    logger.info("Stopping Redis testcontainer...")
    container.stop()
