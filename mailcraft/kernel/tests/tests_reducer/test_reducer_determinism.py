"""
Mailcraft Reducer — Determinism Tests

Replaying the same event log must build the same template, byte for byte:
node ids are derived from event ids and timestamps come from the events,
never from the clock.
"""

from mailcraft.kernel.events import apply_events, assign_metadata, make_event
from mailcraft.kernel.reducer import reduce, replay
from mailcraft.kernel.types import Event

TS = "2026-01-15T10:05:00Z"


def editing_session():
    events = [
        make_event(1, "template.update", {"name": "Launch", "subject": "We are live"}, timestamp=TS),
        make_event(2, "component.add", {"type": "header"}, timestamp=TS),
        make_event(3, "component.add", {"type": "columns"}, timestamp=TS),
        make_event(4, "component.add", {"type": "text", "parent_id": "evt_20260115_003_c0"}, timestamp=TS),
        make_event(5, "component.add", {"type": "image", "parent_id": "evt_20260115_003_c0"}, timestamp=TS),
        make_event(
            6,
            "component.update",
            {"id": "evt_20260115_004_c0", "content": {"text": "Hi {{firstName}}"}},
            timestamp=TS,
        ),
        make_event(7, "component.duplicate", {"id": "evt_20260115_002_c0"}, timestamp=TS),
        make_event(8, "component.reorder", {"id": "evt_20260115_007_c0", "index": 2}, timestamp=TS),
        make_event(9, "styles.update", {"colors": {"primary": "#111111"}}, timestamp=TS),
    ]
    return events


class TestReplayDeterminism:
    def test_same_log_same_document(self):
        a = replay(editing_session())
        b = replay(editing_session())
        assert a.to_dict() == b.to_dict()

    def test_ids_derived_from_event(self):
        template = replay(editing_session())
        assert [n.id for n in template.components] == [
            "evt_20260115_002_c0",
            "evt_20260115_003_c0",
            "evt_20260115_007_c0",
        ]
        columns = template.components[1]
        assert [c.id for c in columns.children] == ["evt_20260115_004_c0", "evt_20260115_005_c0"]

    def test_replay_matches_step_by_step(self):
        events = editing_session()
        template = replay(events[:1])
        for event in events[1:]:
            result = reduce(template, event)
            assert result.applied, result.error
            template = result.template
        assert template.to_dict() == replay(events).to_dict()

    def test_timestamps_come_from_events(self):
        template = replay(editing_session())
        assert template.created == TS
        assert template.last_modified == TS

    def test_rejected_events_are_skipped(self):
        events = editing_session()
        events.insert(3, make_event(99, "component.remove", {"id": "ghost"}, timestamp=TS))
        assert replay(events).to_dict() == replay(editing_session()).to_dict()

    def test_events_survive_serialization(self):
        events = [Event.from_dict(e.to_dict()) for e in editing_session()]
        assert replay(events).to_dict() == replay(editing_session()).to_dict()


class TestAssignMetadata:
    def test_batch_shares_timestamp_and_sequences(self):
        events = assign_metadata(
            [
                {"type": "component.add", "payload": {"type": "text"}},
                {"type": "component.add", "payload": {"type": "button"}},
            ],
            start_sequence=10,
            actor="user_ana",
            source="web",
            timestamp=TS,
        )
        assert [e.sequence for e in events] == [10, 11]
        assert [e.id for e in events] == ["evt_20260115_010", "evt_20260115_011"]
        assert {e.timestamp for e in events} == {TS}
        assert {e.actor for e in events} == {"user_ana"}

    def test_id_prefix(self):
        events = assign_metadata(
            [{"type": "component.add", "payload": {"type": "text"}}],
            start_sequence=3,
            actor="user",
            source="web",
            timestamp=TS,
            id_prefix="evt_batch",
        )
        assert events[0].id == "evt_batch_003"


# ============================================================================
# Batch application
# ============================================================================


class TestApplyEvents:
    def test_matches_replay(self, empty):
        events = editing_session()
        result = apply_events(empty, events)
        assert result.applied == events
        assert result.rejected == []
        assert result.template.components == replay(events, empty).components

    def test_partial_application(self, empty):
        events = [
            make_event(1, "component.add", {"type": "text"}, timestamp=TS),
            make_event(2, "component.remove", {"id": "ghost"}, timestamp=TS),
            make_event(3, "component.add", {"type": "button"}, timestamp=TS),
        ]
        result = apply_events(empty, events)

        assert [e.sequence for e in result.applied] == [1, 3]
        assert len(result.rejected) == 1
        rejected, error = result.rejected[0]
        assert rejected.sequence == 2
        assert error.startswith("COMPONENT_NOT_FOUND")
        assert [n.type for n in result.template.components] == ["text", "button"]

    def test_warnings_collected(self, empty):
        events = [make_event(1, "template.update", {"name": "X", "owner": "me"}, timestamp=TS)]
        result = apply_events(empty, events)
        assert result.template.name == "X"
        assert [w.code for w in result.warnings] == ["UNKNOWN_FIELD_IGNORED"]

    def test_input_untouched(self, empty):
        apply_events(empty, [make_event(1, "component.add", {"type": "text"}, timestamp=TS)])
        assert empty.components == []
