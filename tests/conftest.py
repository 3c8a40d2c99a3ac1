"""Pytest configuration and fixtures for tokengate tests.

Most tests run against the in-memory store. PostgreSQL-backed tests use
TEST_DATABASE_URL when set, otherwise try testcontainers, and are skipped
when neither is available.
"""

import os
import warnings
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
TEST_SECRET = "test-signing-secret-0123456789-abcdefghij"
os.environ["JWT_SECRET_KEY"] = TEST_SECRET
os.environ["TOKENGATE_STORE"] = "memory"
os.environ["BOOTSTRAP_ADMIN"] = "false"

from tokengate.core.config import Settings  # noqa: E402
from tokengate.services.codec import TokenCodec  # noqa: E402
from tokengate.services.gateway import Gateway, build_gateway  # noqa: E402
from tokengate.store.memory import InMemoryTokenStore  # noqa: E402


# --- PostgreSQL Container Management ---

_container = None


def _try_testcontainers() -> str | None:
    """Try to start PostgreSQL using testcontainers.

    Returns database URL if successful, None otherwise.
    """
    try:
        from testcontainers.postgres import PostgresContainer
    except ImportError:
        return None

    global _container
    try:
        _container = PostgresContainer(
            image="postgres:15-alpine",
            username="test",
            password="test",
            dbname="tokengate_test",
        )
        _container.start()
        url = _container.get_connection_url()
        url = url.replace("postgresql+psycopg2://", "postgresql+asyncpg://")
        return url.replace("postgresql://", "postgresql+asyncpg://")
    except Exception as e:
        # Docker not available
        warnings.warn(f"Testcontainers not available: {e}", stacklevel=2)
        if _container:
            try:
                _container.stop()
            except Exception:
                pass
            _container = None
        return None


@pytest.fixture(scope="session")
def postgres_url() -> Generator[str, None, None]:
    """Database URL for SQL store tests; skips when PostgreSQL is unavailable."""
    global _container
    url = os.environ.get("TEST_DATABASE_URL") or _try_testcontainers()
    if not url:
        pytest.skip("PostgreSQL test database not available")
    yield url
    if _container:
        _container.stop()
        _container = None


# --- Gateway Fixtures ---


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret_key=TEST_SECRET,
        tokengate_store="memory",
        bootstrap_admin=False,
    )


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    return TokenCodec(settings.jwt_secret_key, default_validity=settings.default_token_validity)


@pytest.fixture
def memory_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def gateway(settings: Settings, memory_store: InMemoryTokenStore) -> Gateway:
    return build_gateway(settings, store=memory_store)


@pytest_asyncio.fixture
async def admin_token(gateway: Gateway) -> str:
    """Bootstrap admin token (General.Access, Tokens.Generate, Tokens.List, General.Logs)."""
    record = await gateway.lifecycle.bootstrap_admin()
    await gateway.audit.flush()
    return record.token_string


@pytest.fixture
def admin_headers(admin_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest_asyncio.fixture
async def async_client(gateway: Gateway) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app around the in-memory gateway.

    ASGITransport does not run the lifespan, so no bootstrap happens here;
    use the admin_token fixture for credentials.
    """
    from tokengate.main import create_app

    app = create_app(gateway=gateway)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await gateway.audit.flush()


@pytest.fixture
def issue_token(gateway: Gateway):
    """Factory issuing tokens directly through the lifecycle manager."""

    async def _issue(user: str, scope: list[str], validity: str = "1 hour") -> str:
        result = await gateway.lifecycle.generate({"id": "admin"}, user, scope, validity)
        await gateway.audit.flush()
        return result["token"]

    return _issue
