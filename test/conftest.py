"""
Test Configuration and Fixtures

This module provides:
- A throwaway SQLite database per test (integration tests)
- A fixed, steerable clock
- The DI container wired to both, so tests resolve the same use cases
  the service runs

Architecture:
- Unit tests (test/**/unit/): mocks only, no database fixture requested
- Integration tests: real schema on SQLite with BEGIN IMMEDIATE writers
"""

# =============================================================================
# Environment setup MUST happen before any application import; settings and
# the logger read it at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ.setdefault('DEPLOY_ENV', 'test')
    os.environ.setdefault('SERVICE_NAME', 'event-checkout-test')


_early_setup_test_environment()

from collections.abc import AsyncGenerator, Generator  # noqa: E402

import pytest  # noqa: E402

from src.platform.config.di import Container, container  # noqa: E402
from src.platform.database.orm_db_setting import Database  # noqa: E402
import src.service.checkout.driven_adapter.model  # noqa: E402, F401
from test.service.checkout.checkout_test_helpers import (  # noqa: E402
    CheckoutSeeder,
    FixedClock,
    RecordingNotificationSink,
)
from test.test_constants import TEST_NOW  # noqa: E402


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        path = str(item.fspath)
        if '/unit/' in path or '\\unit\\' in path:
            item.add_marker(pytest.mark.unit)
        elif '/integration/' in path or '\\integration\\' in path:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Infrastructure Fixtures
# =============================================================================
@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TEST_NOW)


@pytest.fixture
def notification_sink(clock: FixedClock) -> RecordingNotificationSink:
    return RecordingNotificationSink(clock=clock)


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    db = Database(url=f'sqlite+aiosqlite:///{tmp_path / "checkout_test.sqlite"}')
    await db.connect()
    await db.create_all()
    yield db
    await db.disconnect()


@pytest.fixture
def wired_container(
    database: Database,
    clock: FixedClock,
    notification_sink: RecordingNotificationSink,
) -> Generator[Container, None, None]:
    """Container with the test database, clock and notification sink injected"""
    container.database.override(database)
    container.clock.override(clock)
    container.notification_sink.override(notification_sink)
    yield container
    container.reset_override()


@pytest.fixture
def seeder(database: Database) -> CheckoutSeeder:
    return CheckoutSeeder(database=database, clock_now=TEST_NOW)
