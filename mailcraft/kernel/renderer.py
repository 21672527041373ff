"""
Mailcraft Kernel — Renderer

Pure function: (template, options?, data?) → HTML string
No IO. Deterministic: same input → same output, always.

The component tree is walked depth-first in `order` sequence. Every node
becomes one table row (`<tr><td>…</td></tr>`) inside a table-based document
shell sized to `settings.width`. Container types nest a presentation table
and render their children inside it.

Formats:
- "html": plain email HTML.
- "amp": AMP4EMAIL document. Types with an AMP rule (image, amp-carousel,
  amp-accordion) use it; every other type falls back to its HTML rule.

Author text (`text`, `title`, `subtitle`, `description`, html blocks) is
trusted and emitted as-is after merge-tag resolution. Attribute values
(`src`, `href`, `alt`, style strings) are escaped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from html import escape as _html_escape
from typing import Any

import chevron

from mailcraft.kernel.merge_tags import merge_tag_defaults, resolve_for_export
from mailcraft.kernel.types import (
    RESPONSIVE_STYLE_KEYS,
    ButtonContent,
    ComponentNode,
    FooterContent,
    HeaderContent,
    HtmlContent,
    ImageContent,
    RenderOptions,
    SocialContent,
    Template,
    TextContent,
    WidgetContent,
)

logger = logging.getLogger(__name__)

AMP_RUNTIME_URL = "https://cdn.ampproject.org/v0.js"

_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_WHITESPACE_RE = re.compile(r"\s+")
_BETWEEN_TAGS_RE = re.compile(r">\s<")
_KEBAB_RE = re.compile(r"(?<!^)(?=[A-Z])")
_CLASS_UNSAFE_RE = re.compile(r"[^\w-]")
_FILENAME_SPACE_RE = re.compile(r"\s+")

_TABLE_ATTRS = 'role="presentation" cellspacing="0" cellpadding="0" border="0"'

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render(
    template: Template,
    options: RenderOptions | None = None,
    data: dict[str, Any] | None = None,
) -> str:
    """
    Render a complete email document.
    `data` is live merge-tag data; it overrides the declared tag defaults.
    Returns a UTF-8 HTML (or AMP4EMAIL) string.
    Pure function. No side effects. No IO.
    """
    opts = options or RenderOptions()
    ctx = _RenderContext.build(template, opts, data)

    body = _render_rows(template.components, ctx)
    html = chevron.render(DOCUMENT_TEMPLATE, _shell_context(template, ctx, body))
    return _postprocess(html, opts)


def render_component(
    node: ComponentNode,
    template: Template,
    options: RenderOptions | None = None,
    data: dict[str, Any] | None = None,
) -> str:
    """
    Render one node (and its subtree) as a markup fragment, without the
    document shell. Collected class rules, if any, lead the fragment in a
    <style> block.
    """
    opts = options or RenderOptions()
    ctx = _RenderContext.build(template, opts, data)
    rows = _render_rows([node], ctx)

    parts: list[str] = []
    css = ctx.node_css()
    if css:
        parts.append(f"<style>\n{css}\n</style>")
    parts.append(f'<table {_TABLE_ATTRS} width="100%">')
    parts.append(rows)
    parts.append("</table>")
    return _postprocess("\n".join(parts), opts)


def export_filename(template: Template, format: str = "html") -> str:
    """Download name: "My Template" → "my-template.html" / "my-template.amp.html"."""
    stem = _FILENAME_SPACE_RE.sub("-", template.name).lower()
    return f"{stem}.amp.html" if format == "amp" else f"{stem}.html"


def escape(text: Any) -> str:
    """HTML-escape an attribute value."""
    return _html_escape(str(text), quote=True)


def css_declarations(styles: dict[str, Any]) -> str:
    """{"fontSize": "16px", "textAlign": "center"} → "font-size: 16px; text-align: center" """
    decls = []
    for key, value in styles.items():
        if value is None or value == "" or isinstance(value, dict | list):
            continue
        decls.append(f"{_KEBAB_RE.sub('-', key).lower()}: {value}")
    return "; ".join(decls)


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------


@dataclass
class _RenderContext:
    """Per-call state: the inputs plus everything collected during the walk."""

    template: Template
    options: RenderOptions
    data: dict[str, Any]
    rules: list[str] = field(default_factory=list)
    media: dict[str, list[str]] = field(default_factory=dict)
    amp_extensions: set[str] = field(default_factory=set)

    @classmethod
    def build(cls, template: Template, options: RenderOptions, data: dict[str, Any] | None) -> _RenderContext:
        merged = {**merge_tag_defaults(template.settings.merge_tags), **(data or {})}
        media = {"tabletStyles": [], "mobileStyles": []}
        return cls(template=template, options=options, data=merged, media=media)

    @property
    def amp(self) -> bool:
        return self.options.format == "amp"

    @property
    def important(self) -> str:
        # Media rules must beat inline styles; AMP forbids !important
        return " !important" if self.options.inline_css and not self.amp else ""

    def token(self, group: str, key: str, default: str) -> str:
        return self.template.global_styles.get(group, {}).get(key) or default

    def text(self, value: str) -> str:
        """Author text with merge tags resolved (and ESP-translated)."""
        return resolve_for_export(value or "", self.data, self.options.esp_id)

    def attrs(self, node: ComponentNode, styles: dict[str, Any], part: str | None = None) -> str:
        """
        Attribute string for one element of `node`: inline `style` or a
        generated class. The node's outer cell (part=None) also carries
        visibility classes, responsive overrides and custom attributes.
        """
        name = f"mc-{_CLASS_UNSAFE_RE.sub('-', node.id)}" + (f"-{part}" if part else "")
        css = css_declarations(styles)
        classes: list[str] = []
        out = ""

        if self.options.inline_css:
            if css:
                out += f' style="{escape(css)}"'
        elif css:
            self.rules.append(f".{name} {{ {css} }}")
            classes.append(name)

        if part is None:
            if any(node.styles.get(key) for key in RESPONSIVE_STYLE_KEYS):
                self._responsive(node, name)
                if name not in classes:
                    classes.append(name)
            if node.settings.hidden_on_mobile:
                classes.append("mobile-hide")
            if node.settings.hidden_on_desktop:
                classes.append("desktop-hide")

        if classes:
            out = f' class="{" ".join(classes)}"' + out
        if part is None:
            for key, value in node.settings.attributes.items():
                out += f' {escape(key)}="{escape(value)}"'
        return out

    def _responsive(self, node: ComponentNode, name: str) -> None:
        for key in RESPONSIVE_STYLE_KEYS:
            overrides = node.styles.get(key)
            if not isinstance(overrides, dict) or not overrides:
                continue
            decls = css_declarations(overrides)
            if not decls:
                continue
            if self.important:
                decls = "; ".join(f"{d}{self.important}" for d in decls.split("; "))
            self.media[key].append(f".{name} {{ {decls} }}")

    def node_css(self) -> str:
        """Class rules plus responsive overrides, in walk order."""
        parts = list(self.rules)
        breakpoints = {
            "tabletStyles": self.token("responsive", "desktop", "1024px"),
            "mobileStyles": self.token("responsive", "tablet", "768px"),
        }
        for key in ("tabletStyles", "mobileStyles"):
            if self.media[key]:
                parts.append(f"@media only screen and (max-width: {breakpoints[key]}) {{")
                parts.extend(f"  {rule}" for rule in self.media[key])
                parts.append("}")
        return "\n".join(parts)


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


def _is_visible(node: ComponentNode) -> bool:
    return not node.hidden and node.settings.visible


def _render_rows(nodes: list[ComponentNode], ctx: _RenderContext) -> str:
    """Render visible siblings in `order` sequence, one row each."""
    visible = sorted((n for n in nodes if _is_visible(n)), key=lambda n: n.order)
    return "\n".join(_render_node(node, ctx) for node in visible)


def _render_node(node: ComponentNode, ctx: _RenderContext) -> str:
    rule = None
    if ctx.amp:
        rule = _AMP_RULES.get(node.type)
    if rule is None:
        rule = _RULES.get(node.type)
    if rule is None:
        logger.warning("renderer: unknown component type %s (id=%s)", node.type, node.id)
        return _render_unknown(node, ctx)
    return rule(node, ctx)


def _row(node: ComponentNode, ctx: _RenderContext, inner: str, styles: dict[str, Any]) -> str:
    return "\n".join(["<tr>", f"<td{ctx.attrs(node, styles)}>", inner, "</td>", "</tr>"])


def _with_defaults(node: ComponentNode, defaults: dict[str, Any], exclude: set[str] | None = None) -> dict[str, Any]:
    styles = {**defaults, **node.styles}
    for key in RESPONSIVE_STYLE_KEYS:
        styles.pop(key, None)
    if exclude:
        for key in exclude:
            styles.pop(key, None)
    return styles


def _pick(node: ComponentNode, defaults: dict[str, Any], keys: set[str]) -> dict[str, Any]:
    styles = {**defaults, **node.styles}
    return {k: v for k, v in styles.items() if k in keys}


def _percent(count: int) -> str:
    return f"{round(100 / count, 2):g}"


# ---------------------------------------------------------------------------
# Per-type rules
# ---------------------------------------------------------------------------

Rule = Callable[[ComponentNode, _RenderContext], str]


def _render_header(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, HeaderContent) else HeaderContent()
    parts = [f'<h1 style="margin: 0 0 8px 0; font-size: 24px;">{ctx.text(content.title)}</h1>']
    if content.subtitle:
        parts.append(f'<p style="margin: 0; opacity: 0.9;">{ctx.text(content.subtitle)}</p>')
    styles = _with_defaults(node, {"textAlign": "center", "padding": "32px 16px"})
    return _row(node, ctx, "\n".join(parts), styles)


def _render_heading(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, TextContent) else TextContent()
    inner = f'<h2 style="margin: 0; font-size: inherit; font-weight: inherit;">{ctx.text(content.text)}</h2>'
    styles = _with_defaults(node, {"fontSize": ctx.token("typography", "h2Size", "24px")})
    return _row(node, ctx, inner, styles)


def _render_text(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, TextContent) else TextContent()
    return _row(node, ctx, ctx.text(content.text), _with_defaults(node, {}))


_IMAGE_KEYS = {"width", "height", "borderRadius", "border", "boxShadow", "opacity"}


def _image_tag(node: ComponentNode, ctx: _RenderContext, content: ImageContent) -> str:
    img_styles = _pick(node, {"width": "100%", "height": "auto", "display": "block"}, _IMAGE_KEYS | {"display"})
    return f'<img src="{escape(content.src)}" alt="{escape(content.alt)}"{ctx.attrs(node, img_styles, "img")} />'


def _render_image(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, ImageContent) else ImageContent()
    inner = _image_tag(node, ctx, content)
    if content.href:
        inner = f'<a href="{escape(content.href)}">{inner}</a>'
    return _row(node, ctx, inner, _with_defaults(node, {}, exclude=_IMAGE_KEYS))


def _render_video(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, ImageContent) else ImageContent()
    inner = _image_tag(node, ctx, content)
    if content.href:
        inner = f'<a href="{escape(content.href)}" target="_blank">{inner}</a>'
    return _row(node, ctx, inner, _with_defaults(node, {"textAlign": "center"}, exclude=_IMAGE_KEYS))


_BUTTON_CELL_KEYS = {"textAlign"}


def _render_button(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, ButtonContent) else ButtonContent()
    link_styles = _with_defaults(
        node,
        {"display": "inline-block", "textDecoration": "none"},
        exclude=_BUTTON_CELL_KEYS,
    )
    target = f' target="{escape(content.target)}"' if content.target else ""
    inner = f'<a href="{escape(content.href)}"{target}{ctx.attrs(node, link_styles, "link")}>{ctx.text(content.text)}</a>'
    cell = {**_pick(node, {"textAlign": "center"}, _BUTTON_CELL_KEYS), "padding": "16px"}
    return _row(node, ctx, inner, cell)


def _render_divider(node: ComponentNode, ctx: _RenderContext) -> str:
    rule_styles = _with_defaults(node, {"height": "1px", "border": "none"}, exclude={"margin"})
    rule_styles["margin"] = "0"
    inner = f"<hr{ctx.attrs(node, rule_styles, 'rule')} />"
    cell = {"padding": node.styles.get("margin") or "24px 0"}
    return _row(node, ctx, inner, cell)


def _render_spacer(node: ComponentNode, ctx: _RenderContext) -> str:
    height = node.styles.get("height") or ctx.token("spacing", "xl", "32px")
    styles = _with_defaults(node, {"fontSize": "0", "lineHeight": height})
    styles["height"] = height
    return _row(node, ctx, "&nbsp;", styles)


def _render_social(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, SocialContent) else SocialContent()
    color = ctx.token("colors", "primary", "#2563eb")
    link_style = (
        "display: inline-block; margin: 0 4px; width: 32px; height: 32px; "
        f"background-color: {color}; color: #ffffff; text-align: center; line-height: 32px; "
        "border-radius: 4px; text-decoration: none"
    )
    links = []
    for item in content.items:
        label = escape(item.type[:1].upper())
        links.append(f'<a href="{escape(item.content or "")}" title="{escape(item.type)}" style="{link_style}">{label}</a>')
    styles = _with_defaults(node, {"textAlign": "center", "padding": "16px"})
    return _row(node, ctx, "".join(links), styles)


def _render_footer(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, FooterContent) else FooterContent()
    styles = _with_defaults(node, {"textAlign": "center", "padding": "24px 16px"})
    return _row(node, ctx, ctx.text(content.text), styles)


def _render_html_block(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, HtmlContent) else HtmlContent()
    return _row(node, ctx, content.html, _with_defaults(node, {}))


def _render_columns(node: ComponentNode, ctx: _RenderContext) -> str:
    """One cell per visible child, each `100 / count` percent wide."""
    children = sorted((c for c in node.children if _is_visible(c)), key=lambda c: c.order)
    parts = [f'<table {_TABLE_ATTRS} width="100%">', "<tr>"]
    if children:
        width = _percent(len(children))
        for child in children:
            parts.append(f'<td class="mc-col" width="{width}%" style="vertical-align: top; width: {width}%;">')
            parts.append(f'<table {_TABLE_ATTRS} width="100%">')
            parts.append(_render_node(child, ctx))
            parts.append("</table>")
            parts.append("</td>")
    else:
        parts.append("<td></td>")
    parts.extend(["</tr>", "</table>"])
    return _row(node, ctx, "\n".join(parts), _with_defaults(node, {}))


def _render_container(node: ComponentNode, ctx: _RenderContext) -> str:
    """Nested presentation table holding the children as rows."""
    rows = _render_rows(node.children, ctx)
    inner = "\n".join([f'<table {_TABLE_ATTRS} width="100%">', rows, "</table>"]) if rows else ""
    return _row(node, ctx, inner, _with_defaults(node, {}))


_PLACEHOLDER_STYLES = {"padding": "16px", "textAlign": "center", "color": "#666666"}


def _render_widget(node: ComponentNode, ctx: _RenderContext) -> str:
    """Labeled placeholder for presentation-rich widgets."""
    content = node.content if isinstance(node.content, WidgetContent) else WidgetContent()
    parts = []
    if content.title:
        parts.append(f'<p style="margin: 0 0 4px 0; font-weight: bold;">{ctx.text(content.title)}</p>')
    if content.description:
        parts.append(f'<p style="margin: 0 0 4px 0;">{ctx.text(content.description)}</p>')
    parts.append(f'<p style="margin: 0; font-size: 12px; opacity: 0.7;">[{escape(node.type)} component]</p>')
    return _row(node, ctx, "\n".join(parts), _with_defaults(node, _PLACEHOLDER_STYLES))


def _render_unknown(node: ComponentNode, ctx: _RenderContext) -> str:
    style = "padding: 16px; text-align: center; color: #b91c1c; border: 1px dashed #b91c1c"
    label = f"[unknown component: {escape(node.type)}]"
    return "\n".join(["<tr>", f'<td style="{style}">', label, "</td>", "</tr>"])


# ---------------------------------------------------------------------------
# AMP rules
# ---------------------------------------------------------------------------


def _amp_height(node: ComponentNode, default: int = 300) -> int:
    height = str(node.styles.get("height") or "")
    return int(height[:-2]) if height.endswith("px") and height[:-2].isdigit() else default


def _render_amp_image(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, ImageContent) else ImageContent()
    width = ctx.template.settings.width
    inner = (
        f'<amp-img src="{escape(content.src)}" alt="{escape(content.alt)}" '
        f'width="{width}" height="{_amp_height(node)}" layout="responsive"></amp-img>'
    )
    if content.href:
        inner = f'<a href="{escape(content.href)}">{inner}</a>'
    return _row(node, ctx, inner, _with_defaults(node, {}, exclude=_IMAGE_KEYS))


def _render_amp_carousel(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, WidgetContent) else WidgetContent()
    ctx.amp_extensions.add("amp-carousel")
    width, height = ctx.template.settings.width, _amp_height(node)
    parts = [f'<amp-carousel width="{width}" height="{height}" layout="responsive" type="slides">']
    for item in content.items:
        src = item.content.get("src", "") if isinstance(item.content, dict) else item.content or ""
        parts.append(f'<amp-img src="{escape(src)}" width="{width}" height="{height}" layout="responsive"></amp-img>')
    parts.append("</amp-carousel>")
    return _row(node, ctx, "\n".join(parts), _with_defaults(node, {}, exclude={"height"}))


def _render_amp_accordion(node: ComponentNode, ctx: _RenderContext) -> str:
    content = node.content if isinstance(node.content, WidgetContent) else WidgetContent()
    ctx.amp_extensions.add("amp-accordion")
    parts = ["<amp-accordion>"]
    for item in content.items:
        section = item.content if isinstance(item.content, dict) else {"title": item.type, "text": item.content or ""}
        parts.append("<section>")
        parts.append(f'<h4 style="margin: 0; padding: 8px;">{ctx.text(section.get("title", ""))}</h4>')
        parts.append(f'<div style="padding: 8px;">{ctx.text(section.get("text", ""))}</div>')
        parts.append("</section>")
    parts.append("</amp-accordion>")
    return _row(node, ctx, "\n".join(parts), _with_defaults(node, {}))


_RULES: dict[str, Rule] = {
    "container": _render_container,
    "column": _render_container,
    "row": _render_columns,
    "columns": _render_columns,
    "header": _render_header,
    "hero": _render_header,
    "heading": _render_heading,
    "text": _render_text,
    "footer": _render_footer,
    "image": _render_image,
    "video": _render_video,
    "button": _render_button,
    "divider": _render_divider,
    "spacer": _render_spacer,
    "social": _render_social,
    "html": _render_html_block,
    "navigation": _render_widget,
    "timer": _render_widget,
    "product": _render_widget,
    "testimonial": _render_widget,
    "pricing": _render_widget,
    "gallery": _render_widget,
    "form": _render_widget,
    "survey": _render_widget,
    "amp-carousel": _render_widget,
    "amp-accordion": _render_widget,
    "amp-form": _render_widget,
    "amp-list": _render_widget,
}

# Types without an entry here fall back to _RULES in AMP documents
_AMP_RULES: dict[str, Rule] = {
    "image": _render_amp_image,
    "amp-carousel": _render_amp_carousel,
    "amp-accordion": _render_amp_accordion,
}


# ---------------------------------------------------------------------------
# Document shell
# ---------------------------------------------------------------------------

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html{{#amp}} ⚡4email{{/amp}} lang="{{language}}" dir="{{direction}}">
<head>
<meta charset="utf-8">
{{^amp}}
<meta name="viewport" content="width=device-width, initial-scale=1">
{{/amp}}
<title>{{title}}</title>
{{#amp}}
<script async src="{{runtime}}"></script>
{{#extensions}}
<script async custom-element="{{name}}" src="https://cdn.ampproject.org/v0/{{name}}-0.1.js"></script>
{{/extensions}}
<style amp4email-boilerplate>body{visibility:hidden}</style>
<style amp-custom>
{{{css}}}
</style>
{{/amp}}
{{^amp}}
<style type="text/css">
{{{css}}}
</style>
{{/amp}}
</head>
<body style="{{body_style}}">
{{#has_preheader}}
<div style="display: none; max-height: 0; overflow: hidden;">{{{preheader}}}</div>
{{/has_preheader}}
<!-- Email body -->
<table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">
<tr>
<td align="center">
<table role="presentation" cellspacing="0" cellpadding="0" border="0" width="{{width}}" style="{{content_style}}">
{{{body}}}
</table>
</td>
</tr>
</table>
</body>
</html>
"""


def _base_css(ctx: _RenderContext) -> str:
    imp = "" if ctx.amp else " !important"
    parts: list[str] = []
    if not ctx.amp:
        parts.extend(
            [
                "/* Reset styles */",
                "body, table, td, p, a, li, blockquote { -webkit-text-size-adjust: 100%; -ms-text-size-adjust: 100%; }",
                "table, td { mso-table-lspace: 0pt; mso-table-rspace: 0pt; }",
                "img { -ms-interpolation-mode: bicubic; }",
            ]
        )
    parts.append(f"table {{ border-collapse: collapse{imp}; }}")
    parts.append("@media only screen and (max-width: 600px) {")
    parts.append(f"  .mobile-hide {{ display: none{imp}; }}")
    parts.append(f"  .mc-col {{ display: block{imp}; width: 100%{imp}; }}")
    parts.append("}")
    parts.append("@media only screen and (min-width: 601px) {")
    parts.append(f"  .desktop-hide {{ display: none{imp}; }}")
    parts.append("}")
    if ctx.options.include_dark_mode:
        parts.append("@media (prefers-color-scheme: dark) {")
        parts.append(f"  .dark-mode-bg {{ background-color: #1f2937{imp}; }}")
        parts.append(f"  .dark-mode-text {{ color: #f9fafb{imp}; }}")
        parts.append("}")
    return "\n".join(parts)


def _shell_context(template: Template, ctx: _RenderContext, body: str) -> dict[str, Any]:
    settings = template.settings
    css_parts = [_base_css(ctx)]
    node_css = ctx.node_css()
    if node_css:
        css_parts.append(node_css)
    custom = template.global_styles.get("customCSS")
    if custom:
        css_parts.append(custom)

    body_style = css_declarations(
        {
            "margin": "0",
            "padding": "0",
            "backgroundColor": settings.background_color,
            "fontFamily": ctx.token("typography", "bodyFont", "Arial, sans-serif"),
            "color": ctx.token("colors", "text", ""),
        }
    )
    content_style = css_declarations(
        {"maxWidth": f"{settings.width}px", "backgroundColor": settings.content_area_background_color}
    )
    preheader = ctx.text(template.preheader) if ctx.options.include_preheader else ""

    return {
        "amp": ctx.amp,
        "runtime": AMP_RUNTIME_URL,
        "extensions": [{"name": name} for name in sorted(ctx.amp_extensions)],
        "language": settings.language,
        "direction": settings.direction,
        "title": ctx.text(template.subject),
        "css": "\n".join(css_parts),
        "body_style": body_style,
        "has_preheader": bool(preheader),
        "preheader": preheader,
        "width": settings.width,
        "content_style": content_style,
        "body": body,
    }


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------


def _postprocess(html: str, opts: RenderOptions) -> str:
    if opts.remove_comments:
        html = _COMMENT_RE.sub("", html)
    if opts.minify:
        html = _WHITESPACE_RE.sub(" ", html)
        html = _BETWEEN_TAGS_RE.sub("><", html).strip()
    return html
