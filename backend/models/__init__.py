"""
Pydantic models for Mailcraft.

All request/response shapes defined here. No imports from db or routes.
"""

from backend.models.template import (
    AddComponentRequest,
    AddComponentResponse,
    ApplyEventsRequest,
    ApplyEventsResponse,
    CreateTemplateRequest,
    ExportRequest,
    ExportResponse,
    Primitive,
    RejectedEvent,
    UpdateTemplateRequest,
)

__all__ = [
    "CreateTemplateRequest",
    "UpdateTemplateRequest",
    "AddComponentRequest",
    "AddComponentResponse",
    "Primitive",
    "ApplyEventsRequest",
    "ApplyEventsResponse",
    "RejectedEvent",
    "ExportRequest",
    "ExportResponse",
]
