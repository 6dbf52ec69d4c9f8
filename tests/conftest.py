"""
Shared pytest fixtures for testing stockfolio.

Uses an in-memory SQLite database for fast, isolated tests, and a fake quote
API served through httpx.MockTransport so no test touches the network.
"""

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from stockfolio.auth import create_access_token
from stockfolio.database import Base, get_session
from stockfolio.main import app
from stockfolio.schemas.auth import SignupRequest
from stockfolio.services import users as user_service
from stockfolio.services.cache import MemoryCache
from stockfolio.services.quotes import QuoteClient
from stockfolio.services.stock import StockService, get_stock_service


# Use in-memory SQLite for tests (fast, isolated)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeQuoteAPI:
    """Stand-in for the Twelve Data /quote endpoint.

    Unknown symbols get Twelve Data's error body (HTTP 200, no ``close``).
    Symbols in ``failing`` get an HTTP 500.
    """

    def __init__(self):
        self.quotes: dict[str, dict] = {}
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def set_quote(self, symbol: str, close: str, percent_change: str = "0", **extra) -> None:
        self.quotes[symbol] = {
            "symbol": symbol,
            "name": extra.pop("name", f"{symbol} Inc"),
            "close": close,
            "change": extra.pop("change", "0"),
            "percent_change": percent_change,
            "volume": extra.pop("volume", "1000000"),
            "datetime": "2026-01-02",
            **extra,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        symbol = request.url.params["symbol"]
        self.calls.append(symbol)
        if symbol in self.failing:
            return httpx.Response(500, text="upstream unavailable")
        payload = self.quotes.get(symbol)
        if payload is None:
            return httpx.Response(
                200,
                json={"code": 404, "message": f"symbol {symbol} not found", "status": "error"},
            )
        return httpx.Response(200, json=payload)


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio backend for pytest-asyncio."""
    return "asyncio"


@pytest.fixture
def quote_api():
    """Fake quote API with AAPL at $150 and MSFT at $300 (both flat)."""
    api = FakeQuoteAPI()
    api.set_quote("AAPL", "150.00", "0")
    api.set_quote("MSFT", "300.00", "0")
    return api


@pytest.fixture
def stock_service(quote_api):
    """Stock service wired to the fake quote API with a fresh memory cache."""
    client = QuoteClient(
        base_url="https://quotes.test",
        api_key="test-key",
        timeout=5,
        transport=httpx.MockTransport(quote_api.handler),
    )
    return StockService(client, MemoryCache(ttl=300))


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine.

    Creates tables at the start, drops them at the end.
    Each test gets a fresh database.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Provide a database session for a test.

    Rolls back the session after each test for isolation.
    """
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_engine, stock_service):
    """Provide a FastAPI test client with test database and fake quotes.

    Overrides the get_session and get_stock_service dependencies.
    """
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with async_session() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_stock_service] = lambda: stock_service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# --- Helper fixtures for creating test data ---

@pytest_asyncio.fixture
async def sample_user(test_session):
    """Create a sample user for testing."""
    return await user_service.create_user(
        test_session,
        SignupRequest(username="alice", email="alice@example.com", password="secret123"),
    )


@pytest_asyncio.fixture
async def other_user(test_session, sample_user):
    """Create a second user, for ownership checks."""
    return await user_service.create_user(
        test_session,
        SignupRequest(username="bob", email="bob@example.com", password="hunter22"),
    )


@pytest.fixture
def auth_headers(sample_user):
    """Bearer headers for sample_user."""
    return {"Authorization": f"Bearer {create_access_token(sample_user.id)}"}
