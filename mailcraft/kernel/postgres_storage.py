"""
PostgresStorage adapter for the Mailcraft kernel storage protocol.

Implements TemplateStorage using Postgres as the backend.
Stores template documents as JSONB in the email_templates table.

The pool must decode jsonb to Python objects (see backend.db._init_connection).
"""

from __future__ import annotations

import asyncpg

from mailcraft.kernel.storage import TemplateStorage
from mailcraft.kernel.types import Template

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS email_templates (
    id          TEXT PRIMARY KEY,
    document    JSONB NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""


class PostgresStorage(TemplateStorage):
    """
    Postgres-based storage for template documents.

    One row per template; `document` holds Template.to_dict().
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def ensure_schema(self) -> None:
        """Create the email_templates table if it does not exist."""
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)

    async def get(self, template_id: str) -> Template | None:
        """Fetch one template. Returns None if not found."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT document FROM email_templates WHERE id = $1",
                template_id,
            )
            return Template.from_dict(row["document"]) if row else None

    async def put(self, template_id: str, template: Template) -> Template:
        """Insert or replace a template document."""
        document = template.to_dict()
        document["id"] = template_id
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO email_templates (id, document, updated_at)
                VALUES ($1, $2, now())
                ON CONFLICT (id)
                DO UPDATE SET document = EXCLUDED.document, updated_at = now()
                """,
                template_id,
                document,
            )
        return Template.from_dict(document)

    async def delete(self, template_id: str) -> bool:
        """Delete a template. Returns True if a row was removed."""
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                "DELETE FROM email_templates WHERE id = $1",
                template_id,
            )
            # asyncpg returns the command tag, e.g. "DELETE 1"
            return status.split()[-1] != "0"

    async def list(self) -> list[Template]:
        """All templates, oldest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT document FROM email_templates ORDER BY created_at, id")
            return [Template.from_dict(row["document"]) for row in rows]

    async def close(self) -> None:
        """Close the connection pool."""
        await self.pool.close()
