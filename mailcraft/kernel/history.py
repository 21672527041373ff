"""
Mailcraft Kernel — History Log

Append-only list of template snapshots with a movable cursor for undo/redo.

Every save diffs the snapshot at the cursor against the new template and
records the result as Change records. Auto-saves are throttled to one per
threshold window and never record a no-change entry. The log keeps the most
recent `limit` entries; redo past a truncation point is impossible.

Timers go through the Clock port so tests can drive time by hand.
"""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from mailcraft.kernel.tree import walk
from mailcraft.kernel.types import Change, HistoryEntry, Template, new_id

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 50
AUTO_SAVE_THRESHOLD = 30.0  # seconds


# ---------------------------------------------------------------------------
# Clock port
# ---------------------------------------------------------------------------


class Clock:
    """
    Time source and periodic scheduler.
    `every` returns a callable that cancels the timer.
    """

    def now(self) -> float:
        """Seconds since the epoch."""
        raise NotImplementedError

    def every(self, interval: float, callback: Callable[[], None]) -> Callable[[], None]:
        raise NotImplementedError

    def iso(self) -> str:
        return datetime.fromtimestamp(self.now(), UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class AsyncioClock(Clock):
    """Wall clock with timers on the running asyncio loop."""

    def now(self) -> float:
        return time.time()

    def every(self, interval: float, callback: Callable[[], None]) -> Callable[[], None]:
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle | None = None

        def tick() -> None:
            nonlocal handle
            handle = loop.call_later(interval, tick)
            callback()

        handle = loop.call_later(interval, tick)

        def cancel() -> None:
            if handle is not None:
                handle.cancel()

        return cancel


@dataclasses.dataclass
class _Timer:
    interval: float
    callback: Callable[[], None]
    next_at: float
    seq: int


class ManualClock(Clock):
    """Test clock: time moves only when `advance` is called."""

    def __init__(self, start: float = 1_700_000_000.0):
        self._now = start
        self._timers: list[_Timer] = []
        self._seq = 0

    def now(self) -> float:
        return self._now

    def every(self, interval: float, callback: Callable[[], None]) -> Callable[[], None]:
        timer = _Timer(interval=interval, callback=callback, next_at=self._now + interval, seq=self._seq)
        self._seq += 1
        self._timers.append(timer)

        def cancel() -> None:
            if timer in self._timers:
                self._timers.remove(timer)

        return cancel

    def advance(self, seconds: float) -> None:
        """Move time forward, firing due timers in deadline order."""
        target = self._now + seconds
        while True:
            due = [t for t in self._timers if t.next_at <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.next_at, t.seq))
            self._now = timer.next_at
            timer.next_at += timer.interval
            timer.callback()
        self._now = target


# ---------------------------------------------------------------------------
# Change detection
# ---------------------------------------------------------------------------


def detect_changes(
    old: Template | None,
    new: Template,
    *,
    user_id: str = "anonymous",
    user_name: str = "Anonymous User",
    timestamp: str = "",
) -> list[Change]:
    """
    Diff two templates into Change records:
    name/subject edits, added and removed node ids, then content, style and
    settings differences on nodes present in both. Nodes shared by identity
    are skipped without comparing.
    """
    if old is None:
        return []

    changes: list[Change] = []

    def record(type: str, description: str, component_id: str | None = None, data=None) -> None:
        changes.append(
            Change(
                id=new_id("chg"),
                type=type,
                description=description,
                timestamp=timestamp,
                user_id=user_id,
                user_name=user_name,
                component_id=component_id,
                data=data,
            )
        )

    for field_name, label in (("name", "template name"), ("subject", "subject")):
        before, after = getattr(old, field_name), getattr(new, field_name)
        if before != after:
            record(
                "template_settings",
                f'Changed {label} from "{before}" to "{after}"',
                data={"field": field_name, "oldValue": before, "newValue": after},
            )

    old_nodes = {node.id: node for node in walk(old.components)}
    new_nodes = {node.id: node for node in walk(new.components)}

    for node_id, node in new_nodes.items():
        if node_id not in old_nodes:
            record("component_add", f"Added {node.type}", node_id, {"componentType": node.type})

    for node_id, node in old_nodes.items():
        if node_id not in new_nodes:
            record("component_remove", f"Removed {node.type}", node_id, {"componentType": node.type})

    for node_id, after in new_nodes.items():
        before = old_nodes.get(node_id)
        if before is None or before is after:
            continue
        old_content, new_content = before.content.to_dict(), after.content.to_dict()
        if old_content != new_content:
            record(
                "content_change",
                f"Updated content in {after.type}",
                node_id,
                {"oldContent": old_content, "newContent": new_content},
            )
        if before.styles != after.styles:
            record(
                "style_change",
                f"Updated styles in {after.type}",
                node_id,
                {"oldStyles": copy.deepcopy(before.styles), "newStyles": copy.deepcopy(after.styles)},
            )
        if (before.settings, before.name, before.locked, before.hidden) != (
            after.settings,
            after.name,
            after.locked,
            after.hidden,
        ):
            record("component_update", f"Updated settings in {after.type}", node_id)

    return changes


# ---------------------------------------------------------------------------
# History log
# ---------------------------------------------------------------------------


class HistoryLog:
    """
    Undo/redo log for one editing session.

    Entries hold deep copies of the saved templates, so later edits by the
    caller can never reach a recorded snapshot.
    """

    def __init__(
        self,
        template: Template | None = None,
        *,
        limit: int = MAX_HISTORY_ENTRIES,
        user_id: str = "anonymous",
        user_name: str = "Anonymous User",
        clock: Clock | None = None,
        auto_save_threshold: float = AUTO_SAVE_THRESHOLD,
    ):
        self.limit = limit
        self.user_id = user_id
        self.user_name = user_name
        self.clock = clock or AsyncioClock()
        self.auto_save_threshold = auto_save_threshold
        self._entries: list[HistoryEntry] = []
        self._cursor = -1
        self._last_save = self.clock.now()
        if template is not None:
            self._reset(template, "Initial version")

    # -- queries ------------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    @property
    def current(self) -> Template | None:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor].template

    def entries(self) -> list[HistoryEntry]:
        """Most recent first."""
        return list(reversed(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    # -- mutations ----------------------------------------------------------

    def save(
        self,
        template: Template,
        description: str | None = None,
        is_auto_save: bool = False,
    ) -> HistoryEntry | None:
        """
        Record `template` after the cursor, discarding any redo tail.
        Returns the new entry, or None when an auto-save was skipped
        (inside the threshold window, or nothing changed).
        """
        now = self.clock.now()
        if is_auto_save and now - self._last_save < self.auto_save_threshold:
            return None

        timestamp = self.clock.iso()
        changes = detect_changes(
            self.current,
            template,
            user_id=self.user_id,
            user_name=self.user_name,
            timestamp=timestamp,
        )
        # With no prior entry the first save is always a change
        if is_auto_save and not changes and self.current is not None:
            logger.debug("history: auto-save skipped, no changes")
            return None

        if description is None:
            description = "Auto-save" if is_auto_save else f"Updated {len(changes)} item(s)"

        entry = HistoryEntry(
            id=new_id("ver"),
            template=copy.deepcopy(template),
            timestamp=timestamp,
            user_id=self.user_id,
            user_name=self.user_name,
            description=description,
            changes=changes,
            is_auto_save=is_auto_save,
        )

        entries = self._entries[: self._cursor + 1]
        entries.append(entry)
        if len(entries) > self.limit:
            entries = entries[-self.limit :]
        self._entries = entries
        self._cursor = len(entries) - 1
        self._last_save = now
        return entry

    def undo(self) -> Template | None:
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self.current

    def redo(self) -> Template | None:
        if not self.can_redo:
            return None
        self._cursor += 1
        return self.current

    def restore(self, entry_id: str) -> Template | None:
        """Move the cursor to `entry_id` and return a copy of its template."""
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                self._cursor = i
                return copy.deepcopy(entry.template)
        return None

    def clear(self, template: Template) -> None:
        """Drop every entry; `template` becomes the single starting point."""
        self._reset(template, "Reset history")

    def _reset(self, template: Template, description: str) -> None:
        self._entries = [
            HistoryEntry(
                id=new_id("ver"),
                template=copy.deepcopy(template),
                timestamp=self.clock.iso(),
                user_id=self.user_id,
                user_name=self.user_name,
                description=description,
                changes=[],
                is_auto_save=False,
            )
        ]
        self._cursor = 0
        self._last_save = self.clock.now()


class AutoSaver:
    """Periodic auto-save of whatever `get_template` returns."""

    def __init__(
        self,
        history: HistoryLog,
        get_template: Callable[[], Template],
        *,
        clock: Clock | None = None,
        interval: float = AUTO_SAVE_THRESHOLD,
    ):
        self.history = history
        self.get_template = get_template
        self.clock = clock or history.clock
        self.interval = interval
        self._cancel: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._cancel is not None

    def start(self) -> None:
        if self._cancel is None:
            self._cancel = self.clock.every(self.interval, self._tick)

    def stop(self) -> None:
        if self._cancel is not None:
            self._cancel()
            self._cancel = None

    def _tick(self) -> None:
        entry = self.history.save(self.get_template(), is_auto_save=True)
        if entry is not None:
            logger.debug("history: auto-saved %s (%d changes)", entry.id, len(entry.changes))
