"""
Mailcraft FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend import db
from backend.config import settings
from backend.routes import templates as template_routes
from mailcraft.kernel.library import starter_templates
from mailcraft.kernel.postgres_storage import PostgresStorage
from mailcraft.kernel.storage import MemoryStorage, TemplateStorage

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def create_storage() -> TemplateStorage:
    """
    Postgres when DATABASE_URL is set, otherwise an in-memory store
    (seeded with the starter templates unless SEED_STARTER_TEMPLATES is off).
    """
    if settings.USE_POSTGRES:
        pool = await db.init_pool()
        storage = PostgresStorage(pool)
        await storage.ensure_schema()
        logger.info("Database pool initialized")
        return storage

    seed = starter_templates() if settings.SEED_STARTER_TEMPLATES else []
    logger.info("Using in-memory storage (%d starter templates)", len(seed))
    return MemoryStorage(seed=seed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Choose and initialize template storage
    - Close database pool on shutdown
    """
    # Startup
    app.state.storage = await create_storage()

    yield

    # Shutdown
    await db.close_pool()
    logger.info("Storage closed")


app = FastAPI(
    title="Mailcraft",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(template_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
