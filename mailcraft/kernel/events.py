"""
Mailcraft Kernel — Event Construction and Batch Application

Editors send edits as raw primitives ({"type": ..., "payload": ...}).
assign_metadata() turns a batch into sequenced Events; apply_events() runs
them through the reducer with partial application, the way a collaborative
session or a stored operation log is played back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from mailcraft.kernel.reducer import reduce
from mailcraft.kernel.types import Event, Template, Warning, now_iso

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Outcome of a batch: the final template plus what went in and what didn't."""

    template: Template
    applied: list[Event] = field(default_factory=list)
    rejected: list[tuple[Event, str]] = field(default_factory=list)
    warnings: list[Warning] = field(default_factory=list)


def make_event(
    seq: int,
    type: str,
    payload: dict[str, Any],
    *,
    actor: str = "user",
    source: str = "editor",
    timestamp: str | None = None,
    event_id: str | None = None,
) -> Event:
    """
    Build a complete Event from minimal inputs.

    The id defaults to evt_<yyyymmdd>_<seq>, which is also the prefix of
    every component id the event creates.
    """
    ts = timestamp or now_iso()
    return Event(
        id=event_id or f"evt_{ts[:10].replace('-', '')}_{seq:03d}",
        sequence=seq,
        timestamp=ts,
        actor=actor,
        source=source,
        type=type,
        payload=payload,
    )


def assign_metadata(
    primitives: list[dict[str, Any]],
    *,
    start_sequence: int,
    actor: str,
    source: str,
    timestamp: str | None = None,
    id_prefix: str | None = None,
) -> list[Event]:
    """
    Sequence a batch of raw primitives. Every event shares one timestamp.
    With `id_prefix`, ids become <id_prefix>_<seq> instead of the dated form.
    """
    ts = timestamp or now_iso()
    events = []
    for i, primitive in enumerate(primitives):
        seq = start_sequence + i
        events.append(
            make_event(
                seq,
                primitive["type"],
                primitive.get("payload") or {},
                actor=actor,
                source=source,
                timestamp=ts,
                event_id=f"{id_prefix}_{seq:03d}" if id_prefix else None,
            )
        )
    return events


def apply_events(template: Template, events: list[Event]) -> ApplyResult:
    """
    Reduce each event in order. Rejected events are skipped and reported;
    the rest still apply on top of whatever came before them.
    """
    result = ApplyResult(template=template)
    for event in events:
        reduced = reduce(result.template, event)
        if not reduced.applied:
            logger.debug("events: rejected %s %s (%s)", event.id, event.type, reduced.error)
            result.rejected.append((event, reduced.error or "UNKNOWN: rejected"))
            continue
        result.template = reduced.template
        result.applied.append(event)
        result.warnings.extend(reduced.warnings)
    return result
