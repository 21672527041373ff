"""
Mailcraft Kernel — Shared Types

Data classes used across the mutation engine, renderer, history log and storage.
These are the contracts that bind the kernel together.

Key shapes:
- `Template` is the root aggregate: metadata, root components, global style
  tokens and delivery settings.
- `ComponentNode` is a tagged-union tree node: `type` selects the `content`
  variant, container-like types own `children`.
- Documents serialize to camelCase JSON (`globalStyles`, `lastModified`, ...)
  and round-trip exactly through `to_dict` / `from_dict`.
"""

from __future__ import annotations

import copy
import re
import uuid
from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

COMPONENT_TYPES: set[str] = {
    # Layout
    "container",
    "row",
    "column",
    "columns",
    # Content
    "text",
    "heading",
    "header",
    "hero",
    "footer",
    "navigation",
    "image",
    "button",
    "divider",
    "spacer",
    "social",
    "video",
    "html",
    # Widgets
    "timer",
    "product",
    "testimonial",
    "pricing",
    "gallery",
    "form",
    "survey",
    # AMP
    "amp-carousel",
    "amp-accordion",
    "amp-form",
    "amp-list",
}

CONTAINER_TYPES: set[str] = {"container", "row", "column", "columns"}

AMP_TYPES: set[str] = {"amp-carousel", "amp-accordion", "amp-form", "amp-list"}

TEXT_ALIGN_VALUES: set[str] = {"left", "center", "right", "justify"}

VARIABLE_TYPES: set[str] = {"text", "email", "number", "date", "url", "image", "boolean"}

CHANGE_TYPES: set[str] = {
    "component_add",
    "component_remove",
    "component_update",
    "style_change",
    "content_change",
    "template_settings",
}

RENDER_FORMATS: set[str] = {"html", "amp"}

GLOBAL_STYLE_GROUPS: tuple[str, ...] = (
    "container",
    "colors",
    "typography",
    "spacing",
    "borderRadius",
    "shadows",
    "responsive",
)

PRIMITIVE_TYPES: set[str] = {
    "component.add",
    "component.update",
    "component.remove",
    "component.duplicate",
    "component.reorder",
    "styles.update",
    "template.update",
}

# Nested override sets carried inside a StyleSet
RESPONSIVE_STYLE_KEYS: tuple[str, ...] = ("mobileStyles", "tabletStyles")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ParseError(Exception):
    """A persisted template document is missing required fields or is malformed."""

    pass


# ---------------------------------------------------------------------------
# Record base
# ---------------------------------------------------------------------------

_CAMEL_RE = re.compile(r"_([a-z])")
_SNAKE_RE = re.compile(r"(?<!^)(?=[A-Z])")


def to_camel(name: str) -> str:
    """hidden_on_mobile → hiddenOnMobile"""
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def to_snake(name: str) -> str:
    """hiddenOnMobile → hidden_on_mobile"""
    return _SNAKE_RE.sub("_", name).lower()


class _Record:
    """
    Mixin for flat dataclasses that serialize with camelCase keys.
    Unknown keys are ignored on load; values are deep-copied both ways.
    """

    def to_dict(self) -> dict[str, Any]:
        return {to_camel(f.name): _dump(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, d: dict[str, Any]):
        names = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in d.items():
            name = to_snake(key)
            if name in names:
                kwargs[name] = copy.deepcopy(value)
        return cls(**kwargs)

    def merged(self, partial: dict[str, Any]):
        """
        Shallow merge: keys in `partial` replace, everything else is kept.
        `partial` may use snake_case or camelCase keys.
        """
        patch = {to_camel(key): value for key, value in partial.items()}
        return type(self).from_dict({**self.to_dict(), **patch})


def _dump(value: Any) -> Any:
    if isinstance(value, _Record):
        return value.to_dict()
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value


# ---------------------------------------------------------------------------
# Merge tags
# ---------------------------------------------------------------------------


@dataclass
class Variable(_Record):
    """A declared merge tag. `key` is what appears inside `{{key}}`."""

    key: str
    label: str = ""
    type: str = "text"
    default_value: Any = None
    required: bool = False
    description: str = ""
    validation: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Content variants (tagged union keyed by component type)
# ---------------------------------------------------------------------------


@dataclass
class ContentItem(_Record):
    """One entry of a list-shaped content payload (social link, carousel slide, ...)."""

    id: str
    type: str
    content: Any = None


@dataclass
class TextContent(_Record):
    text: str = ""


@dataclass
class HeaderContent(_Record):
    title: str = ""
    subtitle: str = ""


@dataclass
class ImageContent(_Record):
    src: str = ""
    alt: str = ""
    href: str = ""


@dataclass
class ButtonContent(_Record):
    text: str = ""
    href: str = ""
    target: str = "_blank"


@dataclass
class FooterContent(_Record):
    text: str = ""


@dataclass
class SocialContent(_Record):
    items: list[ContentItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SocialContent:
        return cls(items=_load_items(d.get("items")))


@dataclass
class HtmlContent(_Record):
    html: str = ""


@dataclass
class LayoutContent(_Record):
    """Container-like types carry no content of their own; they own children."""

    pass


@dataclass
class WidgetContent(_Record):
    """Presentation-rich widgets (timer, product, carousel, ...)."""

    title: str = ""
    description: str = ""
    text: str = ""
    items: list[ContentItem] = field(default_factory=list)
    variables: list[Variable] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> WidgetContent:
        return cls(
            title=d.get("title", ""),
            description=d.get("description", ""),
            text=d.get("text", ""),
            items=_load_items(d.get("items")),
            variables=_load_variables(d.get("variables")),
        )


@dataclass
class RawContent:
    """Content of a component type outside the known vocabulary, kept verbatim."""

    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self.data)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RawContent:
        return cls(data=copy.deepcopy(d))

    def merged(self, partial: dict[str, Any]) -> RawContent:
        return RawContent.from_dict({**self.data, **partial})


Content = (
    TextContent
    | HeaderContent
    | ImageContent
    | ButtonContent
    | FooterContent
    | SocialContent
    | HtmlContent
    | LayoutContent
    | WidgetContent
    | RawContent
)

CONTENT_VARIANTS: dict[str, type] = {
    "container": LayoutContent,
    "row": LayoutContent,
    "column": LayoutContent,
    "columns": LayoutContent,
    "text": TextContent,
    "heading": TextContent,
    "header": HeaderContent,
    "hero": HeaderContent,
    "footer": FooterContent,
    "navigation": WidgetContent,
    "image": ImageContent,
    "button": ButtonContent,
    "divider": LayoutContent,
    "spacer": LayoutContent,
    "social": SocialContent,
    "video": ImageContent,
    "html": HtmlContent,
    "timer": WidgetContent,
    "product": WidgetContent,
    "testimonial": WidgetContent,
    "pricing": WidgetContent,
    "gallery": WidgetContent,
    "form": WidgetContent,
    "survey": WidgetContent,
    "amp-carousel": WidgetContent,
    "amp-accordion": WidgetContent,
    "amp-form": WidgetContent,
    "amp-list": WidgetContent,
}


def content_class(component_type: str) -> type:
    """Content variant for a component type. Unknown types keep their raw payload."""
    return CONTENT_VARIANTS.get(component_type, RawContent)


def load_content(component_type: str, d: dict[str, Any] | None) -> Content:
    return content_class(component_type).from_dict(d or {})


def _load_items(value: Any) -> list[ContentItem]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"'items' must be a list, got {type(value).__name__}")
    return [_load_item(i) for i in value]


def _load_item(item: Any) -> ContentItem:
    """An item without an id gets a fresh one."""
    if isinstance(item, ContentItem):
        return item
    if not isinstance(item, dict):
        raise ParseError(f"content item must be an object, got {type(item).__name__}")
    item_id = item.get("id")
    if not isinstance(item_id, str) or not item_id:
        item_id = new_id("item")
    return ContentItem(id=item_id, type=item.get("type") or "", content=copy.deepcopy(item.get("content")))


def _load_variables(value: Any) -> list[Variable]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"merge tags must be a list, got {type(value).__name__}")
    variables = []
    for v in value:
        if isinstance(v, Variable):
            variables.append(v)
        elif isinstance(v, dict) and isinstance(v.get("key"), str) and v["key"]:
            variables.append(Variable.from_dict(v))
        else:
            raise ParseError(f"merge tag must be an object with a 'key', got {v!r}")
    return variables


# ---------------------------------------------------------------------------
# Component node
# ---------------------------------------------------------------------------


@dataclass
class ComponentSettings(_Record):
    """Per-node flags consumed by the renderer and by editing UIs."""

    visible: bool = True
    hidden_on_mobile: bool = False
    hidden_on_desktop: bool = False
    mobile_visible: bool = True
    tablet_visible: bool = True
    amp_validation: bool = True
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class ComponentNode:
    """
    One node of the component tree.

    Ownership is exclusive: a node lives in exactly one sibling list.
    Mutations never edit a node in place; they build a replacement.
    """

    id: str
    type: str
    content: Content = field(default_factory=LayoutContent)
    styles: dict[str, Any] = field(default_factory=dict)
    settings: ComponentSettings = field(default_factory=ComponentSettings)
    children: list[ComponentNode] = field(default_factory=list)
    name: str | None = None
    order: int = 0
    locked: bool = False
    hidden: bool = False

    @property
    def is_container(self) -> bool:
        return self.type in CONTAINER_TYPES

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "order": self.order,
            "locked": self.locked,
            "hidden": self.hidden,
            "content": self.content.to_dict(),
            "styles": copy.deepcopy(self.styles),
            "settings": self.settings.to_dict(),
        }
        if self.is_container or self.children:
            d["children"] = [c.to_dict() for c in self.children]
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ComponentNode:
        if not isinstance(d, dict):
            raise ParseError(f"component must be an object, got {type(d).__name__}")
        if not isinstance(d.get("id"), str) or not d["id"]:
            raise ParseError("component is missing 'id'")
        if not isinstance(d.get("type"), str) or not d["type"]:
            raise ParseError(f"component '{d['id']}' is missing 'type'")
        children = d.get("children") or []
        if not isinstance(children, list):
            raise ParseError(f"component '{d['id']}' has non-list 'children'")
        return cls(
            id=d["id"],
            type=d["type"],
            name=d.get("name"),
            order=d.get("order", 0),
            locked=d.get("locked", False),
            hidden=d.get("hidden", False),
            content=load_content(d["type"], d.get("content")),
            styles=copy.deepcopy(d.get("styles") or {}),
            settings=ComponentSettings.from_dict(d.get("settings") or {}),
            children=[cls.from_dict(c) for c in children],
        )


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------


@dataclass
class TemplateSettings(_Record):
    width: int = 600
    background_color: str = "#f5f5f5"
    content_area_background_color: str = "#ffffff"
    direction: str = "ltr"
    language: str = "en"
    # Email client compatibility
    outlook_compatibility: bool = True
    apple_mail: bool = True
    gmail: bool = True
    yahoo_mail: bool = True
    # Features
    dark_mode_support: bool = False
    amp_support: bool = False
    interactive_elements: bool = True
    # Tracking
    open_tracking: bool = True
    click_tracking: bool = True
    unsubscribe_link: bool = True
    # Personalization
    merge_tags: list[Variable] = field(default_factory=list)
    dynamic_content: bool = False
    conditional_content: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TemplateSettings:
        data = dict(d)
        snake = data.pop("merge_tags", None)
        tags = data.pop("mergeTags", snake)
        settings = super().from_dict(data)
        settings.merge_tags = _load_variables(tags)
        return settings


@dataclass
class Change(_Record):
    """Immutable audit record produced by the history diff."""

    id: str
    type: str
    description: str
    timestamp: str
    user_id: str = "anonymous"
    user_name: str = "Anonymous User"
    component_id: str | None = None
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        if self.component_id is None:
            d.pop("componentId")
        if self.data is None:
            d.pop("data")
        return d


@dataclass
class TemplateMetadata(_Record):
    components: int = 0
    size: int = 0
    version: str = "1.0.0"
    description: str = ""
    industry: str = ""
    purpose: str = ""
    difficulty: str = "beginner"
    changelog: list[Change] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TemplateMetadata:
        data = dict(d)
        changelog = data.pop("changelog", [])
        metadata = super().from_dict(data)
        metadata.changelog = [c if isinstance(c, Change) else Change.from_dict(c) for c in changelog]
        return metadata


@dataclass
class Template:
    """
    The root document aggregate, one per editing session.

    Every mutation produces a new Template value; history entries keep
    references to earlier values, so nodes are never edited in place.
    """

    id: str
    name: str = "Untitled Email"
    subject: str = "Your Email Subject"
    preheader: str = ""
    components: list[ComponentNode] = field(default_factory=list)
    global_styles: dict[str, Any] = field(default_factory=dict)
    settings: TemplateSettings = field(default_factory=TemplateSettings)
    metadata: TemplateMetadata = field(default_factory=TemplateMetadata)
    created: str = ""
    last_modified: str = ""
    created_by: str = "user"
    modified_by: str = "user"
    version: int = 1
    tags: list[str] = field(default_factory=list)
    category: str = "custom"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "subject": self.subject,
            "preheader": self.preheader,
            "components": [c.to_dict() for c in self.components],
            "globalStyles": copy.deepcopy(self.global_styles),
            "settings": self.settings.to_dict(),
            "metadata": self.metadata.to_dict(),
            "created": self.created,
            "lastModified": self.last_modified,
            "createdBy": self.created_by,
            "modifiedBy": self.modified_by,
            "version": self.version,
            "tags": list(self.tags),
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Template:
        """
        Load a persisted document. Raises ParseError when required fields
        (`id`, `name`, `components`) are missing or malformed, or when two
        components share an id.
        """
        if not isinstance(d, dict):
            raise ParseError("template document must be an object")
        for key in ("id", "name"):
            if not isinstance(d.get(key), str):
                raise ParseError(f"template document is missing '{key}'")
        if not isinstance(d.get("components"), list):
            raise ParseError("template document is missing 'components'")
        try:
            template = cls(
                id=d["id"],
                name=d["name"],
                subject=d.get("subject") or "",
                preheader=d.get("preheader") or "",
                components=[ComponentNode.from_dict(c) for c in d["components"]],
                global_styles=copy.deepcopy(d.get("globalStyles") or {}),
                settings=TemplateSettings.from_dict(d.get("settings") or {}),
                metadata=TemplateMetadata.from_dict(d.get("metadata") or {}),
                created=d.get("created", ""),
                last_modified=d.get("lastModified", ""),
                created_by=d.get("createdBy", "user"),
                modified_by=d.get("modifiedBy", "user"),
                version=d.get("version", 1),
                tags=list(d.get("tags") or []),
                category=d.get("category", "custom"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ParseError(f"malformed template document: {e}") from e
        _check_unique_ids(template.components)
        return template


def _check_unique_ids(nodes: list[ComponentNode]) -> None:
    seen: set[str] = set()
    stack = list(nodes)
    while stack:
        node = stack.pop()
        if node.id in seen:
            raise ParseError(f"duplicate component id '{node.id}'")
        seen.add(node.id)
        stack.extend(node.children)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@dataclass
class HistoryEntry:
    id: str
    template: Template
    timestamp: str
    user_id: str
    user_name: str
    description: str
    changes: list[Change] = field(default_factory=list)
    is_auto_save: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "template": self.template.to_dict(),
            "timestamp": self.timestamp,
            "userId": self.user_id,
            "userName": self.user_name,
            "description": self.description,
            "changes": [c.to_dict() for c in self.changes],
            "isAutoSave": self.is_auto_save,
        }


# ---------------------------------------------------------------------------
# Events and results
# ---------------------------------------------------------------------------


@dataclass
class Event:
    """
    Wraps a mutation with metadata for an append-only operation log.
    The reducer reads only `type` and `payload` (plus `timestamp` and `id`
    for deterministic bookkeeping).
    """

    id: str
    sequence: int
    timestamp: str  # ISO 8601 UTC
    actor: str
    source: str
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sequence": self.sequence,
            "timestamp": self.timestamp,
            "actor": self.actor,
            "source": self.source,
            "type": self.type,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Event:
        return cls(
            id=d["id"],
            sequence=d["sequence"],
            timestamp=d["timestamp"],
            actor=d["actor"],
            source=d["source"],
            type=d["type"],
            payload=d["payload"],
        )


@dataclass
class Warning:
    """A non-fatal issue encountered during reduction."""

    code: str
    message: str


@dataclass
class ReduceResult:
    """
    Result of applying one event to a template.
    The reducer never throws; it always returns one of these.
    """

    template: Template
    applied: bool
    warnings: list[Warning] = field(default_factory=list)
    error: str | None = None


@dataclass
class AddResult:
    """Result of add/duplicate: the new template plus the id to auto-select."""

    template: Template
    new_component_id: str | None


@dataclass
class RenderOptions:
    """Options controlling what the renderer emits."""

    format: str = "html"  # "html" or "amp"
    minify: bool = False
    inline_css: bool = True
    remove_comments: bool = False
    include_preheader: bool = True
    include_dark_mode: bool = False
    esp_id: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def new_id(prefix: str = "cmp") -> str:
    """Process-unique identifier. Never reused, even after deletion."""
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
