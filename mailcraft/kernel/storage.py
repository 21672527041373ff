"""
Mailcraft Kernel — Storage

The persistence collaborator: a document store keyed by template id.
The kernel never does IO itself; callers hand templates to a TemplateStorage
and get them back. Stored values are JSON documents (Template.to_dict()),
so a reopened template is a fresh value, never an alias of a live one.
"""

from __future__ import annotations

import logging

from mailcraft.kernel.types import Template

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TemplateNotFound(Exception):
    """Template does not exist in storage."""

    pass


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class TemplateStorage:
    """Abstract storage backend."""

    async def get(self, template_id: str) -> Template | None:
        """Load a template. Returns None if absent."""
        raise NotImplementedError

    async def put(self, template_id: str, template: Template) -> Template:
        """Insert or replace. Returns the stored template."""
        raise NotImplementedError

    async def delete(self, template_id: str) -> bool:
        """Remove a template. Returns False when there was nothing to remove."""
        raise NotImplementedError

    async def list(self) -> list[Template]:
        """All templates, oldest first."""
        raise NotImplementedError


class MemoryStorage(TemplateStorage):
    """In-memory storage for tests and database-less deployments."""

    def __init__(self, seed: list[Template] | None = None) -> None:
        self.documents: dict[str, dict] = {}
        for template in seed or []:
            self.documents[template.id] = template.to_dict()

    async def get(self, template_id: str) -> Template | None:
        document = self.documents.get(template_id)
        return Template.from_dict(document) if document is not None else None

    async def put(self, template_id: str, template: Template) -> Template:
        document = template.to_dict()
        document["id"] = template_id
        self.documents[template_id] = document
        return Template.from_dict(document)

    async def delete(self, template_id: str) -> bool:
        return self.documents.pop(template_id, None) is not None

    async def list(self) -> list[Template]:
        return [Template.from_dict(d) for d in self.documents.values()]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def fetch(storage: TemplateStorage, template_id: str) -> Template:
    """Load a template or raise TemplateNotFound."""
    template = await storage.get(template_id)
    if template is None:
        logger.debug("storage: template %s not found", template_id)
        raise TemplateNotFound(template_id)
    return template
