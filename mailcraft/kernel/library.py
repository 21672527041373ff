"""
Mailcraft Kernel — Starter Library

Built-in templates offered on a fresh install. Each is assembled through the
mutation engine from an empty template, so a starter is exactly what an
author would get by clicking the same blocks together. Ids and timestamps
are fixed, so every process seeds the same documents.

Also the library queries: text and category/tag search, and recently edited.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass

from mailcraft.kernel.defaults import empty_template
from mailcraft.kernel.reducer import add_component, update_component, update_template
from mailcraft.kernel.types import Template

SEED_TIMESTAMP = "2024-01-01T00:00:00Z"

RECENT_LIMIT = 6


@dataclass(frozen=True)
class StarterSpec:
    template_id: str
    name: str
    subject: str
    title: str
    subtitle: str
    body: str
    button_text: str
    category: str


STARTERS: tuple[StarterSpec, ...] = (
    StarterSpec(
        template_id="template-1",
        name="Newsletter Template",
        subject="Weekly Newsletter",
        title="Weekly Newsletter",
        subtitle="Stay updated with our latest news",
        body="Hello there! Here's what's new this week.",
        button_text="Read More",
        category="newsletter",
    ),
    StarterSpec(
        template_id="template-2",
        name="Welcome Email",
        subject="Welcome to our platform!",
        title="Welcome!",
        subtitle="Get started with your journey",
        body="We're excited to have you on board.",
        button_text="Get Started",
        category="welcome",
    ),
)


def build_starter(spec: StarterSpec) -> Template:
    """Header, text and call-to-action button, in that order."""
    counter = itertools.count(1)

    def ids() -> str:
        return f"{spec.template_id}-cmp{next(counter)}"

    template = empty_template(spec.name, template_id=spec.template_id, author="system", timestamp=SEED_TIMESTAMP)
    template = update_template(template, subject=spec.subject, category=spec.category, timestamp=SEED_TIMESTAMP)

    blocks = (
        ("header", {"title": spec.title, "subtitle": spec.subtitle}),
        ("text", {"text": spec.body}),
        ("button", {"text": spec.button_text, "href": "#"}),
    )
    for component_type, content in blocks:
        added = add_component(template, component_type, id_factory=ids, timestamp=SEED_TIMESTAMP)
        template = update_component(
            added.template,
            added.new_component_id,
            {"content": content},
            timestamp=SEED_TIMESTAMP,
        )
    return template


def starter_templates() -> list[Template]:
    """Fresh copies of every built-in template."""
    return [build_starter(spec) for spec in STARTERS]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def search_templates(
    templates: list[Template],
    query: str = "",
    *,
    category: str | None = None,
    tags: list[str] | None = None,
) -> list[Template]:
    """
    Case-insensitive substring match of `query` against name, subject,
    description and tags; then an exact `category` filter and an any-of
    `tags` filter. Input order is kept. An empty query matches everything.
    """
    term = query.strip().lower()
    wanted = {t.lower() for t in tags or []}
    results = []
    for template in templates:
        if term and not _matches(template, term):
            continue
        if category and template.category != category:
            continue
        if wanted and not wanted & {t.lower() for t in template.tags}:
            continue
        results.append(template)
    return results


def _matches(template: Template, term: str) -> bool:
    fields = [template.name, template.subject, template.metadata.description, *template.tags]
    return any(term in f.lower() for f in fields)


def recent_templates(templates: list[Template], limit: int = RECENT_LIMIT) -> list[Template]:
    """Most recently modified first. ISO 8601 UTC strings sort chronologically."""
    return sorted(templates, key=lambda t: t.last_modified, reverse=True)[:limit]
