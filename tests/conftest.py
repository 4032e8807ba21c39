from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from sqlbridge.main import app


@pytest.fixture
def fake_acquire(monkeypatch):
    """Route commands.acquire to a FakeConnection instead of a real server."""
    from sqlbridge.core import commands

    def install(conn):
        @asynccontextmanager
        async def acquire(target):
            yield conn

        monkeypatch.setattr(commands, "acquire", acquire)
        return conn

    return install


# Client
@pytest_asyncio.fixture(scope="function")
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
