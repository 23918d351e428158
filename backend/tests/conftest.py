"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.jwt import create_phone_token
from backend.app.services.cache import TTLCache
from backend.app.services.entitlement import get_entitlement_policy
from backend.app.services.journey_store import record_verified_journey
from backend.app.services.otp_provider import OtpProvider, OtpProviderError, get_otp_provider
from backend.app.services.pnr_service import PnrService, get_pnr_service
import backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

VALID_OTP = "123456"


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        return await self.set(key, value, ex=ttl)

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


class FakeOtpProvider(OtpProvider):
    """Accepts VALID_OTP for every number; can be switched to fail."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, phone_number):
        if self.fail:
            raise OtpProviderError("provider down")
        self.sent.append(phone_number)

    async def check(self, phone_number, code):
        if self.fail:
            raise OtpProviderError("provider down")
        return code == VALID_OTP

    def reset(self):
        self.sent = []
        self.fail = False


# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session")
def otp_provider_session():
    return FakeOtpProvider()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session, otp_provider_session):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """

    # Patch the global redis client used by token revocation
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    # No API key: deterministic mock lookups, fresh cache per session
    pnr_service = PnrService(api_key="", cache=TTLCache())

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pnr_service] = lambda: pnr_service
    app.dependency_overrides[get_otp_provider] = lambda: otp_provider_session
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session, otp_provider_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()
    otp_provider_session.reset()

    yield

    app.dependency_overrides.pop(get_entitlement_policy, None)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def fake_otp(otp_provider_session):
    return otp_provider_session


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a phone number."""
    def _headers(phone_number):
        return {"Authorization": f"Bearer {create_phone_token(phone_number)}"}
    return _headers


@pytest.fixture
def verify_journey(db_session):
    """Record a verified journey directly, bypassing the PNR provider."""
    async def _verify(
        phone_number,
        pnr,
        status_type="CNF",
        train_number="12951",
        travel_class="3A",
        boarding_date="2025-12-20",
        from_station="BCT",
        to_station="NDLS",
    ):
        return await record_verified_journey(
            db_session,
            phone_number=phone_number,
            pnr=pnr,
            journey={
                "trainNumber": train_number,
                "trainName": "Mumbai Rajdhani",
                "class": travel_class,
                "from": from_station,
                "to": to_station,
                "boardingDate": boarding_date,
            },
            status_type=status_type,
        )
    return _verify
