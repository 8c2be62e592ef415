"""Shared test fixtures."""

import os

# Settings are read at import time; tokens in tests are signed with this secret.
os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-in-production")

from collections.abc import AsyncGenerator, Callable, Iterator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.am_common.database import get_db_session  # noqa: E402
from src.am_gateway.auth.dependencies import get_current_user  # noqa: E402
from src.am_gateway.user.db_models import UserModel  # noqa: E402
from src.main import app  # noqa: E402


@pytest.fixture
def db() -> MagicMock:
    """Stand-in AsyncSession: awaitable execute/commit/rollback."""
    session = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def as_user(db: MagicMock) -> Iterator[Callable[[UserModel], UserModel]]:
    """Override auth + DB dependencies; call with a UserModel to act as that user."""

    def _login(user: UserModel) -> UserModel:
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_db_session] = lambda: db
        return user

    yield _login
    app.dependency_overrides.clear()
