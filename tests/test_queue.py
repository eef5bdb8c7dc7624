"""Tests for eventstate.queue."""

import pytest

from eventstate.helpers import build_machine
from eventstate.queue import Emitter, EventQueue
from eventstate.types import Event


class Counter:
    def __init__(self, name):
        self.name = name
        self.state = None
        self.seen = []


def _recording_machine(effect=None):
    """Machine with one state that self-loops on every event and records it."""

    def record(obj, payload, event):
        obj.seen.append(event.kind)
        if effect is not None:
            effect(obj, payload, event)

    return build_machine([
        (None, "listening"),
        ("listening", [(None, None, record)]),
    ])


# ── EventQueue basics ──────────────────────────────────────────────────────────

class TestEventQueue:
    def test_starts_empty(self):
        q = EventQueue()
        assert q.is_empty()
        assert len(q) == 0

    def test_pop_empty_returns_none(self):
        assert EventQueue().pop() is None

    def test_fifo_order(self):
        q = EventQueue()
        q.add(Event("a"))
        q.add(Event("b"))
        assert q.pop().kind == "a"
        assert q.pop().kind == "b"
        assert q.is_empty()

    def test_clear_discards_events(self):
        q = EventQueue()
        q.add(Event("a"))
        q.clear()
        assert q.is_empty()

    def test_queues_are_independent(self):
        q1, q2 = EventQueue(), EventQueue()
        q1.add(Event("a"))
        assert q2.is_empty()


# ── Emitter ────────────────────────────────────────────────────────────────────

class TestEmitter:
    def test_emit_enqueues_event(self):
        q = EventQueue()
        Emitter("click", q).emit(7)
        assert q.pop() == Event("click", 7)

    def test_emit_without_payload(self):
        q = EventQueue()
        Emitter("click", q).emit()
        assert q.pop() == Event("click", None)

    def test_emit_returns_none(self):
        assert Emitter("click", EventQueue()).emit() is None


# ── Pump ───────────────────────────────────────────────────────────────────────

class TestPump:
    def test_delivers_every_event_to_every_object(self):
        m = _recording_machine()
        a, b = Counter("a"), Counter("b")
        m.initialize_state(a)
        m.initialize_state(b)

        q = EventQueue()
        q.add(Event("e1"))
        q.add(Event("e2"))
        q.pump([a, b])

        assert a.seen == ["e1", "e2"]
        assert b.seen == ["e1", "e2"]
        assert q.is_empty()

    def test_returns_delivered_count(self):
        m = _recording_machine()
        a = Counter("a")
        m.initialize_state(a)
        q = EventQueue()
        q.add(Event("e1"))
        q.add(Event("e2"))
        assert q.pump([a]) == 2

    def test_empty_queue_delivers_nothing(self):
        assert EventQueue().pump([]) == 0

    def test_breadth_first_over_events(self):
        q = EventQueue()
        delivery = []
        second = Emitter("e2", q)

        def react(obj, payload, event):
            delivery.append((obj.name, event.kind))
            if obj.name == "a" and event.kind == "e1":
                second.emit()

        m = build_machine([
            (None, "listening"),
            ("listening", [(None, None, react)]),
        ])
        a, b = Counter("a"), Counter("b")
        m.initialize_state(a)
        m.initialize_state(b)
        assert delivery == []

        q.add(Event("e1"))
        q.pump([a, b])

        assert delivery == [("a", "e1"), ("b", "e1"), ("a", "e2"), ("b", "e2")]

    def test_drains_events_emitted_during_pump(self):
        q = EventQueue()
        ping = Emitter("ping", q)

        def bounce(obj, payload, event):
            if payload < 3:
                ping.emit(payload + 1)

        m = build_machine([
            (None, "on"),
            ("on", [("ping", None, bounce)]),
        ])
        c = Counter("c")
        m.initialize_state(c)

        ping.emit(0)
        assert q.pump([c]) == 4
        assert q.is_empty()

    def test_effect_error_propagates_and_keeps_rest_queued(self):
        def explode(obj, payload, event):
            raise RuntimeError("effect failed")

        m = build_machine([
            (None, "on"),
            ("on", [("boom", None, explode)]),
        ])
        c = Counter("c")
        m.initialize_state(c)

        q = EventQueue()
        q.add(Event("boom"))
        q.add(Event("later"))
        with pytest.raises(RuntimeError, match="effect failed"):
            q.pump([c])
        assert len(q) == 1
