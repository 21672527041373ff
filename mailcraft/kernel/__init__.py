"""
Mailcraft Kernel — the pure engine.

  types       — template document model and its JSON shape
  reducer     — (template, args) → template mutations, plus event replay
  renderer    — template → email HTML / AMP4EMAIL
  merge_tags  — {{key}} substitution and ESP translation
  history     — undo/redo snapshots with auto-save
  storage     — async document store protocol
"""

from mailcraft.kernel.defaults import create_component, empty_template
from mailcraft.kernel.history import HistoryLog
from mailcraft.kernel.primitives import validate_primitive
from mailcraft.kernel.reducer import (
    add_component,
    delete_component,
    duplicate_component,
    reduce,
    reorder_components,
    replay,
    update_component,
    update_global_styles,
    update_template,
)
from mailcraft.kernel.renderer import render, render_component

__all__ = [
    "validate_primitive",
    "reduce",
    "replay",
    "empty_template",
    "create_component",
    "add_component",
    "update_component",
    "delete_component",
    "duplicate_component",
    "reorder_components",
    "update_global_styles",
    "update_template",
    "render",
    "render_component",
    "HistoryLog",
]
