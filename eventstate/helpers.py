"""
Helper utilities for building state machines.

Provides the compact table compiler plus the guard/effect combinators and
decorators that reduce boilerplate when wiring host callables into edges.
"""

import logging
from functools import wraps
from typing import Any, List, Mapping, Optional, Sequence

from eventstate.machine import StateMachine
from eventstate.types import AllOf, EachOf, Edge, Effect, Event, Guard, State, StateKind

logger = logging.getLogger(__name__)

_STATE_BUILDERS = {
    StateKind.REGULAR: State.regular,
    StateKind.CHOICE: State.choice,
}

_TRANSITION_FIELDS = ("trigger", "guard", "effect", "to")


def all_of(*guards: Guard) -> AllOf:
    """
    Combine guards with logical AND.

    The combined guard stops at the first guard that fails. With no guards
    at all it never passes.
    """
    return AllOf(tuple(guards))


def each_of(*effects: Effect) -> EachOf:
    """Combine effects so that every one runs, in order."""
    return EachOf(tuple(effects))


def _as_guard(guard) -> Optional[Guard]:
    if isinstance(guard, (list, tuple)):
        return all_of(*guard)
    return guard


def _as_effect(effect) -> Optional[Effect]:
    if isinstance(effect, (list, tuple)):
        return each_of(*effect)
    return effect


def _as_kind(kind) -> StateKind:
    if kind is None:
        return StateKind.REGULAR
    if not isinstance(kind, StateKind):
        try:
            kind = StateKind(kind)
        except ValueError:
            raise ValueError(f"Unknown state kind {kind!r}") from None
    if kind not in _STATE_BUILDERS:
        raise ValueError(f"State kind {kind.value!r} cannot be declared in a table")
    return kind


def build_edge(raw_transition, state_name: str) -> Edge:
    """
    Build one Edge from a raw transition.

    Args:
        raw_transition: Either a sequence ``(trigger, guard, effect, to)``,
            where trailing items may be omitted, or a mapping with any of
            those keys.
        state_name: Name of the declaring state, used when ``to`` is absent.

    Returns:
        The compiled Edge. List-valued guards become ``AllOf`` and
        list-valued effects become ``EachOf``.
    """
    if isinstance(raw_transition, Mapping):
        fields = {key: raw_transition.get(key) for key in _TRANSITION_FIELDS}
    else:
        values = list(raw_transition) + [None] * (4 - len(raw_transition))
        fields = dict(zip(_TRANSITION_FIELDS, values))

    return Edge(
        to=fields["to"] if fields["to"] is not None else state_name,
        trigger=fields["trigger"],
        guard=_as_guard(fields["guard"]),
        effect=_as_effect(fields["effect"]),
    )


def _build_state(raw_state) -> State:
    if isinstance(raw_state, Mapping):
        if "name" not in raw_state:
            raise ValueError(f"State entry {dict(raw_state)!r} missing required 'name' field")
        name = raw_state["name"]
        raw_transitions = raw_state.get("transitions", ())
        kind = raw_state.get("kind")
    else:
        name, raw_transitions, *rest = raw_state
        kind = rest[0] if rest else None

    kind = _as_kind(kind)
    edges = [build_edge(raw, name) for raw in raw_transitions or ()]
    return _STATE_BUILDERS[kind](name, edges)


def build_machine(raw_states: Sequence, max_cascade: Optional[int] = None) -> StateMachine:
    """
    Compile a compact table into a StateMachine.

    The first entry describes the initial transition as
    ``(effect, target)``; it fires as soon as an object is initialised.
    Every following entry describes one state as ``(name, transitions)``,
    ``(name, transitions, kind)`` or a mapping with ``name``,
    ``transitions`` and optional ``kind`` keys. ``kind`` is ``"regular"``
    (default) or ``"choice"``.

    Args:
        raw_states: Ordered table entries, initial transition first.
        max_cascade: Forwarded to ``StateMachine``.

    Returns:
        A machine containing the initial state, every declared state and the
        synthesized ``final`` state.

    Raises:
        ValueError: If the table is empty, declares an unknown kind, or has
                    a mapping entry without a name.

    Example:
        machine = build_machine([
            (None, "idle"),
            ("idle",    [("start", None, None, "running")]),
            ("running", [("stop",  None, None, "idle"),
                         ("tick",  [is_hot, is_loud], [log, beep])]),
        ])
    """
    if not raw_states:
        raise ValueError("No states provided in table")

    initial_effect, initial_target = raw_states[0]
    states: List[State] = [
        State.initial(Edge(to=initial_target, effect=_as_effect(initial_effect)))
    ]
    for raw_state in raw_states[1:]:
        states.append(_build_state(raw_state))

    logger.debug(f"Compiled table — {len(states)} states, initial target {initial_target!r}")
    return StateMachine(states, max_cascade=max_cascade)


def log_effect(func):
    """
    Decorator that adds entry/exit logging to effect callables.

    Logs the event kind at DEBUG level without requiring manual logger
    calls inside every effect.

    Usage:
        @log_effect
        def start_motor(motor, payload, event):
            motor.spin_up(payload)
    """

    @wraps(func)
    def wrapper(obj: Any, payload: Any, event: Event) -> None:
        logger.debug(f"{func.__name__}: running for {event.kind!r}")
        func(obj, payload, event)
        logger.debug(f"{func.__name__}: done")

    return wrapper
