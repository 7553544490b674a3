"""
Test fixtures and configuration.
"""

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from tests.helpers.fakes import (
    CHECKOUT_KEY_ID,
    CHECKOUT_SECRET,
    OTP_SECRET,
    WEBHOOK_SECRET,
    FakePayoutGateway,
    RecordingOtpDispatcher,
    WalletHarness,
)
from tresorier.config.settings import Settings, override_settings, reset_settings
from tresorier.di.container import DIContainer, set_container
from tresorier.infrastructure.persistence.database import Database

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
INTERNAL_TOKEN = "test-internal-token"


def build_test_settings(**overrides) -> Settings:
    """Settings for an isolated in-process service."""
    values = {
        "ENV": "test",
        "LOG_LEVEL": "WARNING",
        "DATABASE_URL": TEST_DATABASE_URL,
        "DATABASE_CREATE_TABLES": True,
        "JWT_SECRET_KEY": "test-jwt-secret",
        "INTERNAL_API_TOKEN": INTERNAL_TOKEN,
        "OTP_HASH_SECRET": OTP_SECRET,
        "PAYMENT_WEBHOOK_SECRET": WEBHOOK_SECRET,
        "PAYOUT_GATEWAY": "simulated",
        "RAZORPAY_KEY_ID": CHECKOUT_KEY_ID,
        "RAZORPAY_KEY_SECRET": CHECKOUT_SECRET,
        "REDIS_ENABLED": False,
        "SWEEPER_ENABLED": False,
        "METRICS_ENABLED": True,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def harness() -> WalletHarness:
    """Use cases wired to in-memory fakes."""
    return WalletHarness()


@pytest.fixture
def test_settings():
    """Install test settings as the global settings."""
    settings = build_test_settings()
    override_settings(settings)
    yield settings
    reset_settings()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """
    Fresh in-memory SQLite database.

    Each test gets a clean schema.
    """
    db = Database(database_url=TEST_DATABASE_URL, echo=False)
    await db.connect()
    await db.create_tables()

    yield db

    await db.drop_tables()
    await db.disconnect()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Provide database session for tests."""
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def api(test_settings: Settings):
    """
    Running application with a SQLite database and controllable gateways.

    Yields (client, container). The payout gateway is a FakePayoutGateway
    and OTP codes are captured by a RecordingOtpDispatcher.
    """
    from tresorier.main import create_app

    container = DIContainer()
    container._payout_gateway = FakePayoutGateway()
    container._otp_dispatcher = RecordingOtpDispatcher()
    set_container(container)
    await container.initialize()

    app = create_app(test_settings)
    client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    )

    yield client, container

    await client.aclose()
    await container.shutdown()
    set_container(None)
