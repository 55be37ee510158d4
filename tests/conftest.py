"""Shared test fixtures."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.fx_common.database import get_db_session
from src.main import app


@pytest.fixture
def db_session() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
async def client(db_session: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints; the DB session is a mock."""

    async def override() -> AsyncGenerator[AsyncMock, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
