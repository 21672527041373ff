"""Tests for storage selection at startup."""

from __future__ import annotations

import pytest

from backend import main
from backend.config import Settings, settings
from mailcraft.kernel.storage import MemoryStorage


@pytest.fixture
def in_memory(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", "")


class TestCreateStorage:
    @pytest.mark.asyncio
    async def test_seeded_memory_storage(self, in_memory):
        storage = await main.create_storage()
        assert isinstance(storage, MemoryStorage)
        assert [t.id for t in await storage.list()] == ["template-1", "template-2"]

    @pytest.mark.asyncio
    async def test_seed_disabled(self, in_memory, monkeypatch):
        monkeypatch.setattr(settings, "SEED_STARTER_TEMPLATES", False)
        storage = await main.create_storage()
        assert await storage.list() == []

    @pytest.mark.asyncio
    async def test_lifespan_attaches_storage(self, in_memory):
        async with main.lifespan(main.app):
            assert isinstance(main.app.state.storage, MemoryStorage)


class TestSettings:
    def test_use_postgres_follows_database_url(self, monkeypatch):
        s = Settings()
        monkeypatch.setattr(s, "DATABASE_URL", "")
        assert s.USE_POSTGRES is False
        monkeypatch.setattr(s, "DATABASE_URL", "postgresql://localhost/mailcraft")
        assert s.USE_POSTGRES is True

    def test_bool_env(self, monkeypatch):
        from backend.config import _bool

        monkeypatch.setenv("SEED_STARTER_TEMPLATES", "False")
        assert _bool("SEED_STARTER_TEMPLATES", "true") is False
        monkeypatch.delenv("SEED_STARTER_TEMPLATES")
        assert _bool("SEED_STARTER_TEMPLATES", "true") is True
