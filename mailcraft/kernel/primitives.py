"""
Mailcraft Kernel — Primitive Validation

Validates event payloads before they reach the reducer.
Every logged change goes through one of 7 primitive types.
Validation is structural (well-formed?) not semantic (will it apply?).
The reducer handles semantic checks (does the component exist? etc.).
"""

from __future__ import annotations

from typing import Any

from mailcraft.kernel.types import (
    COMPONENT_TYPES,
    GLOBAL_STYLE_GROUPS,
    PRIMITIVE_TYPES,
    TEXT_ALIGN_VALUES,
)

# Keys component.update may carry besides 'id'
_UPDATABLE_KEYS = {"content", "styles", "settings", "name", "locked", "hidden"}

# Keys template.update may carry
_TEMPLATE_KEYS = {"name", "subject", "preheader", "tags", "category", "settings"}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_primitive(type: str, payload: dict[str, Any]) -> list[str]:
    """
    Validate a primitive's type and payload structure.
    Returns a list of error strings. Empty list = valid.

    This checks structural validity only:
    - Is the type recognized?
    - Is the payload a dict?
    - Are required fields present and of the right shape?

    It does NOT check whether referenced components exist.
    That's the reducer's job.
    """
    errors: list[str] = []

    if type not in PRIMITIVE_TYPES:
        errors.append(f"Unknown primitive type: {type}")
        return errors  # can't validate payload for unknown type

    if not isinstance(payload, dict):
        errors.append("Payload must be a non-null object")
        return errors

    validator = _VALIDATORS.get(type)
    if validator:
        errors.extend(validator(payload))

    return errors


# ---------------------------------------------------------------------------
# Per-primitive validators
# ---------------------------------------------------------------------------


def _require_id(p: dict, primitive: str, key: str = "id") -> list[str]:
    if key not in p:
        return [f"{primitive} requires '{key}'"]
    if not isinstance(p[key], str) or not p[key]:
        return [f"Invalid component ID: {p[key]!r}"]
    return []


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_styles(styles: Any) -> list[str]:
    if not isinstance(styles, dict):
        return ["'styles' must be an object"]
    errors: list[str] = []
    align = styles.get("textAlign")
    if align is not None and align not in TEXT_ALIGN_VALUES:
        errors.append(f"Unknown textAlign: {align}")
    for key in ("mobileStyles", "tabletStyles"):
        if key in styles and styles[key] is not None and not isinstance(styles[key], dict):
            errors.append(f"'{key}' must be an object")
    return errors


def _validate_items(items: Any) -> list[str]:
    if not isinstance(items, list):
        return ["'items' must be a list"]
    errors: list[str] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            errors.append(f"items[{i}] must be an object")
        elif not isinstance(item.get("id"), str) or not item["id"]:
            errors.append(f"items[{i}] requires 'id'")
    return errors


def _validate_variables(variables: Any, key: str) -> list[str]:
    if not isinstance(variables, list):
        return [f"'{key}' must be a list"]
    errors: list[str] = []
    for i, v in enumerate(variables):
        if not isinstance(v, dict) or not isinstance(v.get("key"), str) or not v["key"]:
            errors.append(f"{key}[{i}] requires 'key'")
    return errors


def _validate_component_add(p: dict) -> list[str]:
    errors: list[str] = []
    if "type" not in p:
        errors.append("component.add requires 'type'")
    elif p["type"] not in COMPONENT_TYPES:
        errors.append(f"Unknown component type: {p['type']}")

    if p.get("parent_id") is not None:
        errors.extend(_require_id(p, "component.add", "parent_id"))

    if p.get("index") is not None and not _is_index(p["index"]):
        errors.append("'index' must be an integer")

    return errors


def _validate_component_update(p: dict) -> list[str]:
    errors = _require_id(p, "component.update")

    for key in ("content", "settings"):
        if key in p and not isinstance(p[key], dict):
            errors.append(f"'{key}' must be an object")
    content = p.get("content")
    if isinstance(content, dict):
        if content.get("items") is not None:
            errors.extend(_validate_items(content["items"]))
        if content.get("variables") is not None:
            errors.extend(_validate_variables(content["variables"], "variables"))
    if "styles" in p:
        errors.extend(_validate_styles(p["styles"]))
    for key in ("locked", "hidden"):
        if key in p and not isinstance(p[key], bool):
            errors.append(f"'{key}' must be a boolean")

    unknown = set(p) - _UPDATABLE_KEYS - {"id"}
    if unknown:
        errors.append(f"component.update cannot change: {', '.join(sorted(unknown))}")

    return errors


def _validate_component_remove(p: dict) -> list[str]:
    return _require_id(p, "component.remove")


def _validate_component_duplicate(p: dict) -> list[str]:
    return _require_id(p, "component.duplicate")


def _validate_component_reorder(p: dict) -> list[str]:
    errors = _require_id(p, "component.reorder")
    if "index" not in p:
        errors.append("component.reorder requires 'index'")
    elif not _is_index(p["index"]):
        errors.append("'index' must be an integer")
    return errors


def _validate_styles_update(p: dict) -> list[str]:
    errors: list[str] = []
    for group, value in p.items():
        if group == "customCSS":
            if value is not None and not isinstance(value, str):
                errors.append("'customCSS' must be a string")
        elif group in GLOBAL_STYLE_GROUPS and value is not None and not isinstance(value, dict):
            errors.append(f"Style group '{group}' must be an object")
    # Unknown groups are accepted and stored as-is
    return errors


def _validate_template_update(p: dict) -> list[str]:
    errors: list[str] = []
    for key in ("name", "subject", "preheader", "category"):
        if key in p and not isinstance(p[key], str):
            errors.append(f"'{key}' must be a string")
    if "name" in p and isinstance(p["name"], str) and not p["name"].strip():
        errors.append("'name' must not be empty")
    if "tags" in p and not isinstance(p["tags"], list):
        errors.append("'tags' must be a list")
    if "settings" in p and not isinstance(p["settings"], dict):
        errors.append("'settings' must be an object")
    elif "settings" in p:
        for key in ("mergeTags", "merge_tags"):
            if p["settings"].get(key) is not None:
                errors.extend(_validate_variables(p["settings"][key], key))
    if not set(p) & _TEMPLATE_KEYS:
        errors.append("template.update changes nothing")
    return errors


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

_VALIDATORS: dict[str, Any] = {
    "component.add": _validate_component_add,
    "component.update": _validate_component_update,
    "component.remove": _validate_component_remove,
    "component.duplicate": _validate_component_duplicate,
    "component.reorder": _validate_component_reorder,
    "styles.update": _validate_styles_update,
    "template.update": _validate_template_update,
}
