"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta
from pathlib import Path

# Configure the app for tests before any application module reads settings
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["INVITATION_SWEEP_INTERVAL_SECONDS"] = "0"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities.identity import Identity
from domain.services.access_control_service import AccessControlService
from domain.services.delivery import DeliveryIntent
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.database.models import Base
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed start of the test clock
T0 = datetime(2026, 3, 1, 12, 0, 0)


class FakeClock:
    """Manually advanced clock injected into the service."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingDeliveryChannel:
    """Keeps delivered intents in memory."""

    def __init__(self) -> None:
        self.intents: list[DeliveryIntent] = []

    async def deliver(self, intent: DeliveryIntent) -> None:
        self.intents.append(intent)


class FailingDeliveryChannel:
    """Raises on every delivery, like an unreachable mail relay."""

    def __init__(self) -> None:
        self.attempts = 0

    async def deliver(self, intent: DeliveryIntent) -> None:
        self.attempts += 1
        raise ConnectionError("mail relay unreachable")


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database with all tables for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """UoW factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def delivery() -> RecordingDeliveryChannel:
    return RecordingDeliveryChannel()


@pytest.fixture
def service(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    delivery: RecordingDeliveryChannel,
    clock: FakeClock,
) -> AccessControlService:
    """Access-control service over the test database with a controllable clock."""
    return AccessControlService(
        uow_factory,
        delivery=delivery,
        clock=clock,
        invitation_ttl=timedelta(days=7),
        resend_cooldown=timedelta(seconds=60),
    )


# --- Identities ---


@pytest.fixture
def owner() -> Identity:
    return Identity(email="owner@example.com", display_name="Olivia Owner")


@pytest.fixture
def admin() -> Identity:
    return Identity(email="admin@example.com", display_name="Adrian Admin")


@pytest.fixture
def analyst() -> Identity:
    return Identity(email="analyst@example.com", display_name="Ana Analyst")


@pytest.fixture
def viewer() -> Identity:
    return Identity(email="viewer@example.com")


@pytest.fixture
def outsider() -> Identity:
    return Identity(email="outsider@example.org")


# --- Auth ---


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def headers_for(auth_provider: JWTAuthProvider) -> Callable[[Identity], dict[str, str]]:
    """Build authorization headers for an identity."""

    def build(identity: Identity) -> dict[str, str]:
        return {"Authorization": f"Bearer {auth_provider.create_token(identity)}"}

    return build


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no overrides)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def api_client(
    service: AccessControlService,
    auth_provider: JWTAuthProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client wired to the test database.

    This client:
    - Uses an in-memory SQLite database through the test service
    - Validates tokens minted by ``auth_provider``
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import get_access_control_service
    from main import create_app

    app = create_app()
    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_access_control_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
