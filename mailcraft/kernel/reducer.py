"""
Mailcraft Kernel — Reducer

Two layers over the same tree operations:

1. Mutation functions: (Template, args) → Template. Pure, never throw for
   well-formed input. An id that is not in the tree is a silent no-op that
   returns the input template unchanged.

2. Event dispatch: reduce(template, event) → ReduceResult. Validates the
   payload, rejects what cannot apply (with a "CODE: message" error string)
   and derives ids and timestamps from the event, so replaying the same log
   always builds the same template.

Every mutation returns a new Template. Nodes that did not change are shared
with the previous value; nodes that did are rebuilt, never edited in place.
"""

from __future__ import annotations

import copy
import dataclasses
import itertools
import logging
from collections.abc import Callable
from typing import Any

from mailcraft.kernel.defaults import COMPONENT_DEFAULTS, create_component, empty_template
from mailcraft.kernel.primitives import validate_primitive
from mailcraft.kernel.tree import (
    count_nodes,
    filter_tree,
    find_by_id,
    map_tree,
    resequence,
    transform_children_of,
    transform_siblings_of,
    with_children_replaced,
)
from mailcraft.kernel.types import (
    AddResult,
    ComponentNode,
    Event,
    ParseError,
    ReduceResult,
    Template,
    Warning,
    new_id,
    now_iso,
)

logger = logging.getLogger(__name__)

# Top-level node fields replaced wholesale by update_component
REPLACEABLE_FIELDS = ("name", "locked", "hidden")

# Top-level template fields replaced wholesale by update_template
TEMPLATE_FIELDS = ("name", "subject", "preheader", "tags", "category")

__all__ = [
    "add_component",
    "delete_component",
    "duplicate_component",
    "empty_template",
    "reduce",
    "reorder_components",
    "replay",
    "update_component",
    "update_global_styles",
    "update_template",
]


# ---------------------------------------------------------------------------
# Mutation functions
# ---------------------------------------------------------------------------


def add_component(
    template: Template,
    component_type: str,
    parent_id: str | None = None,
    index: int | None = None,
    *,
    id_factory: Callable[[], str] = new_id,
    timestamp: str | None = None,
) -> AddResult:
    """
    Create a node of `component_type` from the default content table and
    insert it into `parent_id`'s children (root when None) at `index`.
    An omitted or out-of-range index appends.

    Returns the new template plus the new node's id. When the parent is
    missing, is not a container, or the type is unknown, the input template
    comes back unchanged with `new_component_id=None`.
    """
    if component_type not in COMPONENT_DEFAULTS:
        logger.debug("add_component: unknown component type %s", component_type)
        return AddResult(template=template, new_component_id=None)

    if parent_id is not None:
        parent = find_by_id(template.components, parent_id)
        if parent is None:
            logger.debug("add_component: parent %s not found", parent_id)
            return AddResult(template=template, new_component_id=None)
        if not parent.is_container:
            logger.debug("add_component: parent %s (%s) cannot hold children", parent_id, parent.type)
            return AddResult(template=template, new_component_id=None)

    node = create_component(component_type, template.global_styles, id_factory=id_factory)

    def insert(siblings: list[ComponentNode]) -> list[ComponentNode]:
        result = list(siblings)
        if index is not None and 0 <= index <= len(result):
            result.insert(index, node)
        else:
            result.append(node)
        return resequence(result)

    components, _ = transform_children_of(template.components, parent_id, insert)
    return AddResult(template=_commit(template, components, timestamp), new_component_id=node.id)


def update_component(
    template: Template,
    component_id: str,
    partial: dict[str, Any],
    *,
    timestamp: str | None = None,
) -> Template:
    """
    Patch one node anywhere in the tree.

    `content`, `styles` and `settings` are shallow-merged into the existing
    values, so a single style property can be changed without touching the
    others. A style set to None is removed. `name`, `locked` and `hidden`
    are replaced. Every other node is kept by identity.
    """
    found = False

    def patch(node: ComponentNode) -> ComponentNode:
        nonlocal found
        if node.id != component_id:
            return node
        found = True
        return _patched(node, partial)

    components = map_tree(template.components, patch)
    if not found:
        logger.debug("update_component: %s not found", component_id)
        return template
    return _commit(template, components, timestamp)


def delete_component(
    template: Template,
    component_id: str,
    *,
    timestamp: str | None = None,
) -> Template:
    """
    Remove a node and its whole subtree, searching at every depth.
    Sibling `order` is re-sequenced at each level that lost a node.
    """
    components = filter_tree(template.components, lambda node: node.id != component_id)
    if components is template.components:
        logger.debug("delete_component: %s not found", component_id)
        return template
    return _commit(template, components, timestamp)


def duplicate_component(
    template: Template,
    component_id: str,
    *,
    id_factory: Callable[[], str] = new_id,
    timestamp: str | None = None,
) -> AddResult:
    """
    Deep-clone a subtree and insert the clone right after the original.

    The clone and every descendant get fresh ids; nothing is shared with
    the original subtree. Later siblings shift by one.
    """
    original = find_by_id(template.components, component_id)
    if original is None:
        logger.debug("duplicate_component: %s not found", component_id)
        return AddResult(template=template, new_component_id=None)

    clone = _clone_with_fresh_ids(original, id_factory)

    def insert_after(siblings: list[ComponentNode]) -> list[ComponentNode]:
        position = next(i for i, node in enumerate(siblings) if node.id == component_id)
        result = list(siblings)
        result.insert(position + 1, clone)
        return resequence(result)

    components, _ = transform_siblings_of(template.components, component_id, insert_after)
    return AddResult(template=_commit(template, components, timestamp), new_component_id=clone.id)


def reorder_components(
    template: Template,
    moving_id: str,
    target_index: int,
    *,
    timestamp: str | None = None,
) -> Template:
    """
    Move a node to `target_index` within its own sibling list. The index is
    clamped to the list bounds. Only that list is renumbered.
    """

    def move(siblings: list[ComponentNode]) -> list[ComponentNode]:
        result = list(siblings)
        position = next(i for i, node in enumerate(result) if node.id == moving_id)
        node = result.pop(position)
        target = max(0, min(target_index, len(result)))
        result.insert(target, node)
        return resequence(result)

    components, found = transform_siblings_of(template.components, moving_id, move)
    if not found:
        logger.debug("reorder_components: %s not found", moving_id)
        return template
    return _commit(template, components, timestamp)


def update_global_styles(
    template: Template,
    partial: dict[str, Any],
    *,
    timestamp: str | None = None,
) -> Template:
    """
    Deep-merge style tokens group by group: a patch to `colors.primary`
    leaves `colors.secondary` alone. Non-dict values (e.g. `customCSS`)
    are replaced.
    """
    styles = copy.deepcopy(template.global_styles)
    for group, value in partial.items():
        if isinstance(value, dict) and isinstance(styles.get(group), dict):
            styles[group] = {**styles[group], **copy.deepcopy(value)}
        elif value is None:
            styles.pop(group, None)
        else:
            styles[group] = copy.deepcopy(value)
    return _bump(dataclasses.replace(template, global_styles=styles), timestamp)


def update_template(
    template: Template,
    *,
    timestamp: str | None = None,
    settings: dict[str, Any] | None = None,
    **fields: Any,
) -> Template:
    """
    Replace top-level template fields (`name`, `subject`, `preheader`,
    `tags`, `category`) and shallow-merge `settings`.
    Unknown field names are ignored.
    """
    changes: dict[str, Any] = {}
    for key, value in fields.items():
        if key in TEMPLATE_FIELDS:
            changes[key] = copy.deepcopy(value)
        else:
            logger.debug("update_template: ignoring unknown field %s", key)
    if settings:
        changes["settings"] = template.settings.merged(settings)
    if not changes:
        return template
    return _bump(dataclasses.replace(template, **changes), timestamp)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _commit(template: Template, components: list[ComponentNode], timestamp: str | None) -> Template:
    """New template value with `components`, a recomputed count and a bumped version."""
    metadata = dataclasses.replace(template.metadata, components=count_nodes(components))
    return _bump(dataclasses.replace(template, components=components, metadata=metadata), timestamp)


def _bump(template: Template, timestamp: str | None) -> Template:
    return dataclasses.replace(
        template,
        version=template.version + 1,
        last_modified=timestamp or now_iso(),
    )


def _patched(node: ComponentNode, partial: dict[str, Any]) -> ComponentNode:
    changes: dict[str, Any] = {}
    if partial.get("content"):
        changes["content"] = node.content.merged(partial["content"])
    if partial.get("styles"):
        styles = dict(node.styles)
        for key, value in partial["styles"].items():
            if value is None:
                styles.pop(key, None)
            else:
                styles[key] = copy.deepcopy(value)
        changes["styles"] = styles
    if partial.get("settings"):
        changes["settings"] = node.settings.merged(partial["settings"])
    for key in REPLACEABLE_FIELDS:
        if key in partial:
            changes[key] = partial[key]
    return dataclasses.replace(node, **changes)


def _clone_with_fresh_ids(node: ComponentNode, id_factory: Callable[[], str]) -> ComponentNode:
    children = [_clone_with_fresh_ids(child, id_factory) for child in node.children]
    clone = dataclasses.replace(
        node,
        id=id_factory(),
        content=copy.deepcopy(node.content),
        styles=copy.deepcopy(node.styles),
        settings=copy.deepcopy(node.settings),
    )
    return with_children_replaced(clone, children)


# ---------------------------------------------------------------------------
# Event dispatch
# ---------------------------------------------------------------------------


def reduce(template: Template, event: Event) -> ReduceResult:
    """
    Apply one event to the current template.
    Returns new template + applied flag + warnings/errors.

    Never raises. The input template is never modified.
    """
    handler = _HANDLERS.get(event.type)
    if handler is None:
        return _reject(template, "UNKNOWN_PRIMITIVE", event.type)

    errors = validate_primitive(event.type, event.payload)
    if errors:
        return _reject(template, "INVALID_PAYLOAD", "; ".join(errors))

    try:
        return handler(template, event)
    except ParseError as e:
        # Content that validates structurally but cannot be loaded
        return _reject(template, "INVALID_PAYLOAD", str(e))


def replay(events: list[Event], template: Template | None = None) -> Template:
    """
    Rebuild a template by reducing over all events.
    Rejected events are skipped, as they were when first applied.
    """
    if template is None:
        first = events[0].timestamp if events else None
        template = empty_template(template_id="tpl_replay", timestamp=first)
    for event in events:
        result = reduce(template, event)
        if result.applied:
            template = result.template
        else:
            logger.debug("replay: skipped %s (%s)", event.id, result.error)
    return template


def _reject(template: Template, code: str, msg: str) -> ReduceResult:
    return ReduceResult(template=template, applied=False, error=f"{code}: {msg}")


def _ok(template: Template, warnings: list[Warning] | None = None) -> ReduceResult:
    return ReduceResult(template=template, applied=True, warnings=warnings or [])


def _event_ids(event: Event) -> Callable[[], str]:
    """Deterministic id source: evt_x_c0, evt_x_c1, ..."""
    counter = itertools.count()
    return lambda: f"{event.id}_c{next(counter)}"


def _handle_component_add(template: Template, event: Event) -> ReduceResult:
    p = event.payload
    parent_id = p.get("parent_id")
    siblings = template.components
    if parent_id is not None:
        parent = find_by_id(template.components, parent_id)
        if parent is None:
            return _reject(template, "PARENT_NOT_FOUND", parent_id)
        if not parent.is_container:
            return _reject(template, "PARENT_NOT_CONTAINER", f"'{parent_id}' is a {parent.type}")
        siblings = parent.children

    warnings: list[Warning] = []
    index = p.get("index")
    if index is not None and not 0 <= index <= len(siblings):
        warnings.append(Warning(code="INDEX_OUT_OF_RANGE", message=f"index {index} appended at {len(siblings)}"))

    result = add_component(
        template,
        p["type"],
        parent_id,
        index,
        id_factory=_event_ids(event),
        timestamp=event.timestamp,
    )
    return _ok(result.template, warnings)


def _handle_component_update(template: Template, event: Event) -> ReduceResult:
    p = event.payload
    if find_by_id(template.components, p["id"]) is None:
        return _reject(template, "COMPONENT_NOT_FOUND", p["id"])
    partial = {key: value for key, value in p.items() if key != "id"}
    return _ok(update_component(template, p["id"], partial, timestamp=event.timestamp))


def _handle_component_remove(template: Template, event: Event) -> ReduceResult:
    component_id = event.payload["id"]
    node = find_by_id(template.components, component_id)
    if node is None:
        return _reject(template, "COMPONENT_NOT_FOUND", component_id)

    warnings: list[Warning] = []
    if node.children:
        descendants = count_nodes(node.children)
        warnings.append(Warning(code="CASCADE_DELETE", message=f"'{component_id}' removed with {descendants} descendants"))
    return _ok(delete_component(template, component_id, timestamp=event.timestamp), warnings)


def _handle_component_duplicate(template: Template, event: Event) -> ReduceResult:
    component_id = event.payload["id"]
    if find_by_id(template.components, component_id) is None:
        return _reject(template, "COMPONENT_NOT_FOUND", component_id)
    result = duplicate_component(template, component_id, id_factory=_event_ids(event), timestamp=event.timestamp)
    return _ok(result.template)


def _handle_component_reorder(template: Template, event: Event) -> ReduceResult:
    p = event.payload
    if find_by_id(template.components, p["id"]) is None:
        return _reject(template, "COMPONENT_NOT_FOUND", p["id"])
    return _ok(reorder_components(template, p["id"], p["index"], timestamp=event.timestamp))


def _handle_styles_update(template: Template, event: Event) -> ReduceResult:
    return _ok(update_global_styles(template, event.payload, timestamp=event.timestamp))


def _handle_template_update(template: Template, event: Event) -> ReduceResult:
    warnings: list[Warning] = []
    fields: dict[str, Any] = {}
    for key, value in event.payload.items():
        if key in TEMPLATE_FIELDS or key == "settings":
            fields[key] = value
        else:
            warnings.append(Warning(code="UNKNOWN_FIELD_IGNORED", message=f"template has no field '{key}'"))
    return _ok(update_template(template, timestamp=event.timestamp, **fields), warnings)


_HANDLERS: dict[str, Any] = {
    "component.add": _handle_component_add,
    "component.update": _handle_component_update,
    "component.remove": _handle_component_remove,
    "component.duplicate": _handle_component_duplicate,
    "component.reorder": _handle_component_reorder,
    "styles.update": _handle_styles_update,
    "template.update": _handle_template_update,
}
