"""
Pytest configuration and fixtures for Mailcraft API tests.

Routes run against MemoryStorage seeded with the starter templates; no
database is needed. httpx's ASGITransport does not run the lifespan, so the
storage is attached to app.state here.
"""

from __future__ import annotations

import httpx
import pytest_asyncio

from backend.main import app
from mailcraft.kernel.library import starter_templates
from mailcraft.kernel.storage import MemoryStorage


@pytest_asyncio.fixture
async def storage():
    """Fresh seeded in-memory storage for each test."""
    storage = MemoryStorage(seed=starter_templates())
    app.state.storage = storage
    yield storage
    del app.state.storage


@pytest_asyncio.fixture
async def async_client(storage):
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
