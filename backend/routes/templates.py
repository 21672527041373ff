"""Email template routes: CRUD, search, export, and component edits."""

from __future__ import annotations

import copy
import dataclasses
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from backend.config import settings
from backend.models.template import (
    AddComponentRequest,
    AddComponentResponse,
    ApplyEventsRequest,
    ApplyEventsResponse,
    CreateTemplateRequest,
    ExportRequest,
    ExportResponse,
    RejectedEvent,
    UpdateTemplateRequest,
)
from mailcraft.kernel.defaults import empty_template
from mailcraft.kernel.events import apply_events, assign_metadata
from mailcraft.kernel.library import RECENT_LIMIT, recent_templates, search_templates
from mailcraft.kernel.reducer import add_component
from mailcraft.kernel.renderer import export_filename, render
from mailcraft.kernel.storage import TemplateStorage
from mailcraft.kernel.tree import count_nodes
from mailcraft.kernel.types import ParseError, Template, new_id, now_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/templates", tags=["templates"])


def get_storage(request: Request) -> TemplateStorage:
    """The storage backend chosen at startup (see backend.main.lifespan)."""
    return request.app.state.storage


async def _load(storage: TemplateStorage, template_id: str) -> Template:
    template = await storage.get(template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found.")
    return template


def _overlay(document: dict[str, Any], fields: dict[str, Any]) -> Template:
    """
    Apply request fields over a template document and load the result.
    Malformed component documents are a client error.
    """
    merged = copy.deepcopy(document)
    for key, value in fields.items():
        if key == "settings":
            merged["settings"] = {**merged.get("settings", {}), **value}
        else:
            merged[key] = value
    try:
        template = Template.from_dict(merged)
    except ParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    metadata = dataclasses.replace(template.metadata, components=count_nodes(template.components))
    return dataclasses.replace(template, metadata=metadata)


@router.get("", status_code=200)
async def list_templates(
    q: str = Query(default="", max_length=200),
    category: str | None = None,
    tag: list[str] | None = Query(default=None),
    storage: TemplateStorage = Depends(get_storage),
) -> list[dict[str, Any]]:
    """List stored templates, optionally filtered by text, category and tags."""
    templates = search_templates(await storage.list(), q, category=category, tags=tag)
    return [t.to_dict() for t in templates]


@router.get("/recent", status_code=200)
async def list_recent_templates(
    limit: int = Query(default=RECENT_LIMIT, ge=1, le=100),
    storage: TemplateStorage = Depends(get_storage),
) -> list[dict[str, Any]]:
    """Most recently modified templates first."""
    templates = recent_templates(await storage.list(), limit)
    return [t.to_dict() for t in templates]


@router.post("", status_code=201)
async def create_template(
    req: CreateTemplateRequest,
    storage: TemplateStorage = Depends(get_storage),
) -> dict[str, Any]:
    """Create a template from the default document plus whatever the client sent."""
    base = empty_template(req.name)
    fields = req.model_dump(by_alias=True, exclude_none=True)
    template = _overlay(base.to_dict(), fields)
    stored = await storage.put(template.id, template)
    logger.info("templates: created %s (%d components)", stored.id, stored.metadata.components)
    return stored.to_dict()


@router.get("/{template_id}", status_code=200)
async def get_template(
    template_id: str,
    storage: TemplateStorage = Depends(get_storage),
) -> dict[str, Any]:
    """Get a single template by ID."""
    template = await _load(storage, template_id)
    return template.to_dict()


@router.put("/{template_id}", status_code=200)
async def update_template(
    template_id: str,
    req: UpdateTemplateRequest,
    storage: TemplateStorage = Depends(get_storage),
) -> dict[str, Any]:
    """Replace the fields the client sent. Bumps the version."""
    existing = await _load(storage, template_id)
    fields = req.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    template = _overlay(existing.to_dict(), fields)
    template = dataclasses.replace(template, version=existing.version + 1, last_modified=now_iso())
    stored = await storage.put(template_id, template)
    return stored.to_dict()


@router.delete("/{template_id}", status_code=204)
async def delete_template(
    template_id: str,
    storage: TemplateStorage = Depends(get_storage),
) -> Response:
    """Delete a template."""
    deleted = await storage.delete(template_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{template_id}/export", status_code=200)
async def export_template(
    template_id: str,
    req: ExportRequest | None = None,
    storage: TemplateStorage = Depends(get_storage),
) -> ExportResponse:
    """Render the stored template to email HTML (or AMP4EMAIL)."""
    template = await _load(storage, template_id)
    req = req or ExportRequest()
    options = req.render_options(settings.DEFAULT_ESP)
    html = render(template, options, req.data)
    return ExportResponse(html=html, filename=export_filename(template, options.format))


@router.post("/{template_id}/components", status_code=201)
async def add_template_component(
    template_id: str,
    req: AddComponentRequest,
    storage: TemplateStorage = Depends(get_storage),
) -> AddComponentResponse:
    """Append (or insert at `index`) a default component of the requested type."""
    template = await _load(storage, template_id)
    result = add_component(template, req.type, req.parent_id, req.index)
    if result.new_component_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot add a component under '{req.parent_id}'.",
        )
    stored = await storage.put(template_id, result.template)
    return AddComponentResponse(template=stored.to_dict(), new_component_id=result.new_component_id)


@router.post("/{template_id}/events", status_code=200)
async def apply_template_events(
    template_id: str,
    req: ApplyEventsRequest,
    storage: TemplateStorage = Depends(get_storage),
) -> ApplyEventsResponse:
    """
    Apply a batch of edits through the reducer.
    Partial application: rejected events are reported, the rest are saved.
    """
    template = await _load(storage, template_id)
    events = assign_metadata(
        [e.model_dump() for e in req.events],
        start_sequence=1,
        actor=req.actor,
        source="api",
        id_prefix=new_id("evt"),
    )
    result = apply_events(template, events)
    if result.applied:
        template = await storage.put(template_id, result.template)
    if result.rejected:
        logger.info("templates: %s rejected %d of %d events", template_id, len(result.rejected), len(events))
    return ApplyEventsResponse(
        template=template.to_dict(),
        applied=[e.id for e in result.applied],
        rejected=[RejectedEvent(id=e.id, type=e.type, error=error) for e, error in result.rejected],
        warnings=[f"{w.code}: {w.message}" for w in result.warnings],
    )
