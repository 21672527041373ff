"""
Mailcraft History — Undo/Redo and Auto-Save Tests

Time is driven by ManualClock, so the 30 s auto-save threshold and the
periodic timer are tested without sleeping.
"""

import dataclasses

import pytest

from mailcraft.kernel.defaults import empty_template
from mailcraft.kernel.history import AutoSaver, HistoryLog, ManualClock, detect_changes
from mailcraft.kernel.reducer import add_component, delete_component, update_component, update_template


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def base():
    return empty_template(template_id="tpl_hist", timestamp="2026-01-15T10:00:00Z")


@pytest.fixture
def log(base, clock):
    return HistoryLog(base, user_id="u1", user_name="Ana", clock=clock)


def with_text(template, text="Hello"):
    result = add_component(template, "text")
    return update_component(result.template, result.new_component_id, {"content": {"text": text}})


# ============================================================================
# detect_changes
# ============================================================================


class TestDetectChanges:
    def test_no_previous(self, base):
        assert detect_changes(None, base) == []

    def test_identical(self, base):
        assert detect_changes(base, base) == []

    def test_added_and_removed(self, base):
        added = add_component(base, "button")
        changes = detect_changes(base, added.template)
        assert [(c.type, c.description) for c in changes] == [("component_add", "Added button")]
        assert changes[0].component_id == added.new_component_id

        removed = delete_component(added.template, added.new_component_id)
        changes = detect_changes(added.template, removed)
        assert [(c.type, c.description) for c in changes] == [("component_remove", "Removed button")]

    def test_content_style_and_settings(self, base):
        result = add_component(base, "text")
        node_id = result.new_component_id
        after = update_component(
            result.template,
            node_id,
            {"content": {"text": "New"}, "styles": {"color": "red"}, "settings": {"hiddenOnMobile": True}},
        )
        types = [c.type for c in detect_changes(result.template, after)]
        assert types == ["content_change", "style_change", "component_update"]

    def test_template_settings(self, base):
        after = update_template(base, name="Renamed", subject="New subject")
        changes = detect_changes(base, after, user_id="u1", user_name="Ana", timestamp="ts")
        assert [c.description for c in changes] == [
            'Changed template name from "Untitled Email" to "Renamed"',
            'Changed subject from "Your Email Subject" to "New subject"',
        ]
        assert {(c.user_id, c.user_name, c.timestamp) for c in changes} == {("u1", "Ana", "ts")}


# ============================================================================
# save / undo / redo
# ============================================================================


class TestSaveUndoRedo:
    def test_initial_entry(self, log, base):
        assert len(log) == 1
        assert log.entries()[0].description == "Initial version"
        assert log.current.to_dict() == base.to_dict()
        assert not log.can_undo and not log.can_redo

    def test_save_advances_cursor(self, log, base):
        entry = log.save(with_text(base))
        assert entry.description == "Updated 1 item(s)"
        assert log.cursor == 1
        assert log.can_undo

    def test_undo_then_redo(self, log, base):
        edited = with_text(base)
        log.save(edited, "Add text")

        assert log.undo().components == []
        assert log.can_redo
        assert len(log.redo().components) == 1
        assert log.undo() is not None
        assert log.undo() is None

    def test_redo_at_end_is_none(self, log):
        assert log.redo() is None

    def test_save_discards_redo_tail(self, log, base):
        log.save(with_text(base, "one"), "one")
        log.save(with_text(base, "two"), "two")
        log.undo()
        log.save(with_text(base, "three"), "three")

        assert [e.description for e in log.entries()] == ["three", "one", "Initial version"]
        assert not log.can_redo

    def test_snapshot_is_frozen(self, log, base):
        edited = with_text(base)
        log.save(edited, "Add text")
        edited.components[0].content.text = "mutated later"
        assert log.current.components[0].content.text == "Hello"

    def test_limit_truncates_oldest(self, base, clock):
        log = HistoryLog(base, limit=3, clock=clock)
        template = base
        for i in range(5):
            template = update_template(template, name=f"v{i}")
            log.save(template, f"v{i}")
        assert [e.description for e in log.entries()] == ["v4", "v3", "v2"]
        assert log.cursor == 2

    def test_restore(self, log, base):
        first = log.save(with_text(base, "one"), "one")
        log.save(with_text(base, "two"), "two")

        restored = log.restore(first.id)
        assert restored.components[0].content.text == "one"
        assert log.cursor == 1
        assert log.restore("ver_missing") is None

    def test_clear(self, log, base):
        log.save(with_text(base), "x")
        log.clear(base)
        assert len(log) == 1
        assert log.entries()[0].description == "Reset history"


# ============================================================================
# Auto-save
# ============================================================================


class TestAutoSave:
    def test_skipped_inside_threshold(self, log, base, clock):
        clock.advance(10)
        assert log.save(with_text(base), is_auto_save=True) is None
        assert len(log) == 1

    def test_saved_after_threshold(self, log, base, clock):
        clock.advance(30)
        entry = log.save(with_text(base), is_auto_save=True)
        assert entry is not None
        assert entry.is_auto_save
        assert entry.description == "Auto-save"

    def test_no_change_auto_save_skipped(self, log, base, clock):
        clock.advance(60)
        assert log.save(dataclasses.replace(base), is_auto_save=True) is None

    def test_manual_save_ignores_threshold(self, log, base):
        assert log.save(with_text(base), "now") is not None

    def test_first_auto_save_without_seed(self, base, clock):
        log = HistoryLog(clock=clock)
        clock.advance(31)
        entry = log.save(base, is_auto_save=True)
        assert entry is not None
        assert log.current == base
        assert not log.can_undo


class TestAutoSaver:
    def test_ticks_on_clock(self, log, base, clock):
        current = {"template": base}
        saver = AutoSaver(log, lambda: current["template"], clock=clock, interval=30)
        saver.start()
        assert saver.running

        current["template"] = with_text(base)
        clock.advance(30)
        assert len(log) == 2
        assert log.entries()[0].is_auto_save

        clock.advance(30)
        assert len(log) == 2

        current["template"] = with_text(base, "again")
        clock.advance(29)
        assert len(log) == 2
        clock.advance(1)
        assert len(log) == 3

    def test_stop_cancels_timer(self, log, base, clock):
        current = {"template": base}
        saver = AutoSaver(log, lambda: current["template"], clock=clock)
        saver.start()
        saver.stop()
        assert not saver.running

        current["template"] = with_text(base)
        clock.advance(120)
        assert len(log) == 1
