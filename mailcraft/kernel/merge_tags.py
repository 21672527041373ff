"""
Mailcraft Kernel — Merge Tags

`{{key}}` placeholders in author-written text. Two modes:

- resolve: substitute a literal value for every key present in `data`.
- translate: rewrite recognized keys into an ESP's own placeholder syntax.

Unknown keys are never dropped. They stay as `{{key}}` so the author can
spot them in the output.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from mailcraft.kernel.types import Variable

TAG_RE = re.compile(r"\{\{(\w+)\}\}")

ESP_MERGE_TAGS: dict[str, dict[str, str]] = {
    "mailchimp": {
        "firstName": "*|FNAME|*",
        "lastName": "*|LNAME|*",
        "email": "*|EMAIL|*",
        "company": "*|COMPANY|*",
    },
    "activecampaign": {
        "firstName": "%FIRSTNAME%",
        "lastName": "%LASTNAME%",
        "email": "%EMAIL%",
        "company": "%COMPANY%",
    },
    "convertkit": {
        "firstName": "{{ subscriber.first_name }}",
        "lastName": "{{ subscriber.last_name }}",
        "email": "{{ subscriber.email_address }}",
        "company": "{{ subscriber.company }}",
    },
    "sendgrid": {
        "firstName": "{{first_name}}",
        "lastName": "{{last_name}}",
        "email": "{{email}}",
        "company": "{{company}}",
    },
}


def resolve(text: str, data: Mapping[str, Any]) -> str:
    """
    Replace `{{key}}` with `data[key]` for every key present in `data`.
    A None value counts as absent.
    """
    if not text or "{{" not in text:
        return text

    def sub(match: re.Match) -> str:
        value = data.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return TAG_RE.sub(sub, text)


def translate(text: str, esp_id: str | None) -> str:
    """
    Rewrite recognized keys into `esp_id`'s placeholder syntax.
    Unknown ESPs and unmapped keys keep `{{key}}`.
    """
    tags = ESP_MERGE_TAGS.get(esp_id or "")
    if not tags or not text:
        return text
    return TAG_RE.sub(lambda m: tags.get(m.group(1), m.group(0)), text)


def resolve_for_export(text: str, data: Mapping[str, Any], esp_id: str | None = None) -> str:
    """Literal values for keys that have one, ESP syntax for the rest."""
    return translate(resolve(text, data), esp_id)


def find_tags(text: str) -> list[str]:
    """Distinct tag keys in order of first appearance."""
    seen: dict[str, None] = {}
    for match in TAG_RE.finditer(text or ""):
        seen.setdefault(match.group(1), None)
    return list(seen)


def merge_tag_defaults(variables: list[Variable]) -> dict[str, Any]:
    """Data map from the declared default values. Undeclared defaults are skipped."""
    return {v.key: v.default_value for v in variables if v.default_value is not None}
