"""
Mailcraft Kernel — Defaults

The single source of truth for what a fresh template and a freshly dropped
component look like. Every ComponentType has an entry in COMPONENT_DEFAULTS;
a missing entry is a defect, not a runtime fallback.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any

from mailcraft.kernel.types import (
    ButtonContent,
    ComponentNode,
    ComponentSettings,
    Content,
    ContentItem,
    FooterContent,
    HeaderContent,
    HtmlContent,
    ImageContent,
    LayoutContent,
    SocialContent,
    Template,
    TemplateMetadata,
    TemplateSettings,
    TextContent,
    Variable,
    WidgetContent,
    new_id,
    now_iso,
)

PLACEHOLDER_IMAGE_URL = "https://images.unsplash.com/photo-1557804506-669a67965ba0?w=600&h=300&fit=crop"

DEFAULT_GLOBAL_STYLES: dict[str, Any] = {
    "container": {
        "maxWidth": "600px",
        "backgroundColor": "#ffffff",
        "fontFamily": "Arial, sans-serif",
        "lineHeight": "1.6",
        "padding": "0",
    },
    "colors": {
        "primary": "#2563eb",
        "secondary": "#64748b",
        "accent": "#f59e0b",
        "text": "#1f2937",
        "background": "#ffffff",
        "link": "#2563eb",
        "border": "#e5e7eb",
    },
    "typography": {
        "headingFont": "Arial, sans-serif",
        "bodyFont": "Arial, sans-serif",
        "h1Size": "32px",
        "h2Size": "24px",
        "h3Size": "20px",
        "bodySize": "16px",
        "smallSize": "14px",
    },
    "spacing": {
        "xs": "4px",
        "sm": "8px",
        "md": "16px",
        "lg": "24px",
        "xl": "32px",
    },
    "borderRadius": {
        "sm": "4px",
        "md": "8px",
        "lg": "16px",
    },
    "shadows": {
        "sm": "0 1px 2px 0 rgba(0, 0, 0, 0.05)",
        "md": "0 4px 6px -1px rgba(0, 0, 0, 0.1)",
        "lg": "0 10px 15px -3px rgba(0, 0, 0, 0.1)",
    },
    "responsive": {
        "mobile": "320px",
        "tablet": "768px",
        "desktop": "1024px",
    },
}


def default_global_styles() -> dict[str, Any]:
    return copy.deepcopy(DEFAULT_GLOBAL_STYLES)


def empty_template(
    name: str = "Untitled Email",
    *,
    template_id: str | None = None,
    author: str = "user",
    timestamp: str | None = None,
) -> Template:
    """A blank template with the default style tokens and delivery settings."""
    ts = timestamp or now_iso()
    return Template(
        id=template_id or new_id("tpl"),
        name=name,
        subject="Your Email Subject",
        preheader="",
        components=[],
        global_styles=default_global_styles(),
        settings=TemplateSettings(),
        metadata=TemplateMetadata(components=0, version="1.0.0"),
        created=ts,
        last_modified=ts,
        created_by=author,
        modified_by=author,
        version=1,
    )


# ---------------------------------------------------------------------------
# Default content table
# ---------------------------------------------------------------------------

ComponentDefaults = Callable[[dict[str, Any], Callable[[], str]], tuple[Content, dict[str, Any]]]


def _tokens(gs: dict[str, Any], group: str, key: str) -> str:
    return gs.get(group, {}).get(key) or DEFAULT_GLOBAL_STYLES[group][key]


def _container(gs, make_id):
    return LayoutContent(), {
        "maxWidth": _tokens(gs, "container", "maxWidth"),
        "backgroundColor": _tokens(gs, "colors", "background"),
        "padding": _tokens(gs, "spacing", "md"),
        "margin": "0 auto",
    }


def _row(gs, make_id):
    return LayoutContent(), {"width": "100%"}


def _column(gs, make_id):
    return LayoutContent(), {"padding": _tokens(gs, "spacing", "sm"), "verticalAlign": "top"}


def _text(gs, make_id):
    return TextContent(text="Your text content here. You can personalize with {{firstName}} and other merge tags."), {
        "fontSize": _tokens(gs, "typography", "bodySize"),
        "fontFamily": _tokens(gs, "typography", "bodyFont"),
        "color": _tokens(gs, "colors", "text"),
        "lineHeight": _tokens(gs, "container", "lineHeight"),
        "padding": _tokens(gs, "spacing", "sm"),
    }


def _heading(gs, make_id):
    return TextContent(text="Your Heading Text"), {
        "fontSize": _tokens(gs, "typography", "h2Size"),
        "fontFamily": _tokens(gs, "typography", "headingFont"),
        "fontWeight": "600",
        "color": _tokens(gs, "colors", "text"),
        "padding": _tokens(gs, "spacing", "sm"),
        "margin": "0",
    }


def _header(gs, make_id):
    return HeaderContent(title="Email Header", subtitle="Welcome to our newsletter"), {
        "backgroundColor": _tokens(gs, "colors", "primary"),
        "color": "#ffffff",
        "textAlign": "center",
        "padding": "32px 16px",
        "fontFamily": _tokens(gs, "typography", "headingFont"),
    }


def _hero(gs, make_id):
    return HeaderContent(title="Big Announcement", subtitle="Tell your readers what is new"), {
        "backgroundColor": _tokens(gs, "colors", "secondary"),
        "color": "#ffffff",
        "textAlign": "center",
        "padding": "48px 24px",
        "fontFamily": _tokens(gs, "typography", "headingFont"),
    }


def _footer(gs, make_id):
    return FooterContent(text="© 2024 Your Company. All rights reserved."), {
        "backgroundColor": "#f3f4f6",
        "color": "#6b7280",
        "textAlign": "center",
        "fontSize": _tokens(gs, "typography", "smallSize"),
        "padding": "24px 16px",
        "fontFamily": _tokens(gs, "typography", "bodyFont"),
    }


def _image(gs, make_id):
    return ImageContent(src=PLACEHOLDER_IMAGE_URL, alt="Placeholder image", href=""), {
        "width": "100%",
        "height": "auto",
        "borderRadius": _tokens(gs, "borderRadius", "md"),
        "padding": _tokens(gs, "spacing", "sm"),
    }


def _video(gs, make_id):
    return ImageContent(
        src=PLACEHOLDER_IMAGE_URL,
        alt="Video thumbnail",
        href="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    ), {
        "width": "100%",
        "height": "300px",
        "borderRadius": _tokens(gs, "borderRadius", "md"),
        "padding": _tokens(gs, "spacing", "sm"),
    }


def _button(gs, make_id):
    sm, lg = _tokens(gs, "spacing", "sm"), _tokens(gs, "spacing", "lg")
    return ButtonContent(text="Click Here", href="https://example.com"), {
        "backgroundColor": _tokens(gs, "colors", "primary"),
        "color": "#ffffff",
        "padding": f"{sm} {lg}",
        "borderRadius": _tokens(gs, "borderRadius", "md"),
        "textDecoration": "none",
        "display": "inline-block",
        "fontWeight": "500",
        "textAlign": "center",
    }


def _divider(gs, make_id):
    return LayoutContent(), {
        "height": "1px",
        "backgroundColor": _tokens(gs, "colors", "border"),
        "margin": f"{_tokens(gs, 'spacing', 'lg')} 0",
        "border": "none",
    }


def _spacer(gs, make_id):
    return LayoutContent(), {
        "height": _tokens(gs, "spacing", "xl"),
        "backgroundColor": "transparent",
    }


def _social(gs, make_id):
    return SocialContent(
        items=[
            ContentItem(id=make_id(), type="facebook", content="https://facebook.com"),
            ContentItem(id=make_id(), type="twitter", content="https://twitter.com"),
            ContentItem(id=make_id(), type="instagram", content="https://instagram.com"),
        ]
    ), {
        "textAlign": "center",
        "padding": _tokens(gs, "spacing", "md"),
    }


def _html(gs, make_id):
    return HtmlContent(html="<p>Custom HTML content goes here</p>"), {"padding": _tokens(gs, "spacing", "sm")}


def _widget(title: str, description: str = "") -> ComponentDefaults:
    def build(gs, make_id):
        return WidgetContent(title=title, description=description), {
            "textAlign": "center",
            "padding": _tokens(gs, "spacing", "lg"),
        }

    return build


def _timer(gs, make_id):
    return WidgetContent(
        title="Limited Time Offer",
        description="Hurry! This offer expires soon.",
        variables=[Variable(key="endDate", label="End Date", type="date")],
    ), {
        "textAlign": "center",
        "padding": _tokens(gs, "spacing", "lg"),
        "backgroundColor": _tokens(gs, "colors", "accent"),
        "color": "#ffffff",
        "borderRadius": _tokens(gs, "borderRadius", "md"),
    }


def _carousel(gs, make_id):
    return WidgetContent(
        title="Carousel",
        items=[
            ContentItem(id=make_id(), type="slide", content=PLACEHOLDER_IMAGE_URL),
            ContentItem(id=make_id(), type="slide", content=PLACEHOLDER_IMAGE_URL),
        ],
    ), {"padding": _tokens(gs, "spacing", "sm")}


def _accordion(gs, make_id):
    return WidgetContent(
        title="Frequently Asked Questions",
        items=[
            ContentItem(id=make_id(), type="section", content={"title": "Question one", "text": "Answer one."}),
            ContentItem(id=make_id(), type="section", content={"title": "Question two", "text": "Answer two."}),
        ],
    ), {"padding": _tokens(gs, "spacing", "sm")}


COMPONENT_DEFAULTS: dict[str, ComponentDefaults] = {
    "container": _container,
    "row": _row,
    "column": _column,
    "columns": _row,
    "text": _text,
    "heading": _heading,
    "header": _header,
    "hero": _hero,
    "footer": _footer,
    "navigation": _widget("Navigation"),
    "image": _image,
    "button": _button,
    "divider": _divider,
    "spacer": _spacer,
    "social": _social,
    "video": _video,
    "html": _html,
    "timer": _timer,
    "product": _widget("Product Name", "Short product description."),
    "testimonial": _widget("Customer Name", "What our customers say about us."),
    "pricing": _widget("Pro Plan", "Everything you need to grow."),
    "gallery": _widget("Gallery"),
    "form": _widget("Sign up", "Fill in the form below."),
    "survey": _widget("Quick Survey", "How did we do?"),
    "amp-carousel": _carousel,
    "amp-accordion": _accordion,
    "amp-form": _widget("Interactive Form"),
    "amp-list": _widget("Dynamic List"),
}


def component_display_name(component_type: str) -> str:
    return f"{component_type[:1].upper()}{component_type[1:]} Component"


def create_component(
    component_type: str,
    global_styles: dict[str, Any] | None = None,
    *,
    id_factory: Callable[[], str] = new_id,
) -> ComponentNode:
    """
    Build a fresh node of `component_type` from the default table.
    Raises KeyError for a type outside the vocabulary.
    """
    build = COMPONENT_DEFAULTS[component_type]
    content, styles = build(global_styles or DEFAULT_GLOBAL_STYLES, id_factory)
    return ComponentNode(
        id=id_factory(),
        type=component_type,
        name=component_display_name(component_type),
        content=content,
        styles=styles,
        settings=ComponentSettings(),
        children=[],
    )
