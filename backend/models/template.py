"""Email template request/response models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from mailcraft.kernel.types import COMPONENT_TYPES, RenderOptions


class CreateTemplateRequest(BaseModel):
    """What the client sends to POST /api/templates."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    name: str = Field(min_length=1, max_length=200)
    subject: str = Field(default="", max_length=500)
    preheader: str = Field(default="", max_length=500)
    category: str = "custom"
    tags: list[str] = Field(default_factory=list)
    components: list[dict[str, Any]] = Field(default_factory=list)
    global_styles: dict[str, Any] | None = Field(default=None, alias="globalStyles")
    settings: dict[str, Any] | None = None


class UpdateTemplateRequest(BaseModel):
    """
    What the client sends to PUT /api/templates/{id}.
    Only the fields that are present replace the stored ones.
    """

    model_config = {"extra": "forbid", "populate_by_name": True}

    name: str | None = Field(default=None, min_length=1, max_length=200)
    subject: str | None = Field(default=None, max_length=500)
    preheader: str | None = Field(default=None, max_length=500)
    category: str | None = None
    tags: list[str] | None = None
    components: list[dict[str, Any]] | None = None
    global_styles: dict[str, Any] | None = Field(default=None, alias="globalStyles")
    settings: dict[str, Any] | None = None


class AddComponentRequest(BaseModel):
    """What the client sends to POST /api/templates/{id}/components."""

    model_config = {"extra": "forbid"}

    type: str
    parent_id: str | None = None
    index: int | None = Field(default=None, ge=0)

    @field_validator("type")
    @classmethod
    def known_type(cls, v: str) -> str:
        if v not in COMPONENT_TYPES:
            raise ValueError(f"unknown component type '{v}'")
        return v


class AddComponentResponse(BaseModel):
    """The updated template document plus the id of the node that was added."""

    template: dict[str, Any]
    new_component_id: str


class ExportRequest(BaseModel):
    """Render options for POST /api/templates/{id}/export. Every field is optional."""

    model_config = {"extra": "forbid"}

    format: Literal["html", "amp"] = "html"
    minify: bool = False
    inline_css: bool = True
    remove_comments: bool = False
    include_preheader: bool = True
    include_dark_mode: bool = False
    esp_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    def render_options(self, default_esp: str = "") -> RenderOptions:
        """
        `default_esp` applies only when the client left `esp_id` out.
        An explicit "" or null turns translation off.
        """
        esp_id = self.esp_id if "esp_id" in self.model_fields_set else default_esp
        return RenderOptions(
            format=self.format,
            minify=self.minify,
            inline_css=self.inline_css,
            remove_comments=self.remove_comments,
            include_preheader=self.include_preheader,
            include_dark_mode=self.include_dark_mode,
            esp_id=esp_id or None,
        )


class ExportResponse(BaseModel):
    """What the export endpoint returns."""

    html: str
    filename: str


class Primitive(BaseModel):
    """One raw edit: a reducer event type and its payload."""

    model_config = {"extra": "forbid"}

    type: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)


class ApplyEventsRequest(BaseModel):
    """What the client sends to POST /api/templates/{id}/events."""

    model_config = {"extra": "forbid"}

    events: list[Primitive] = Field(min_length=1, max_length=500)
    actor: str = "user"


class RejectedEvent(BaseModel):
    id: str
    type: str
    error: str


class ApplyEventsResponse(BaseModel):
    """The template after the batch, with per-event outcomes."""

    template: dict[str, Any]
    applied: list[str]
    rejected: list[RejectedEvent]
    warnings: list[str]
