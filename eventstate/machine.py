"""
StateMachine — a reusable, event-driven state machine engine.

Features:
- Named states holding ordered, guarded, side-effecting edges
- First-match-wins edge selection in declaration order
- Automatic cascades through initial and choice pseudo-states
- A synthesized, absorbing ``final`` state in every machine
- One machine shared read-only by any number of host objects
- Optional cap on the number of edges a single dispatch may take

Usage:
    from eventstate import Event, EventQueue, Emitter, StateMachine, process

    machine = StateMachine.from_table([
        (None, "idle"),
        ("idle",    [("start", None, None, "running")]),
        ("running", [("stop",  None, None, "idle")]),
    ])

    class Motor:
        state = None

    motor = Motor()
    machine.initialize_state(motor)      # motor.state.name == "idle"
    process(motor, Event("start"))       # motor.state.name == "running"
"""

import logging
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional

from eventstate.types import (
    FINAL_STATE_NAME,
    INITIAL_STATE_NAME,
    Event,
    State,
    StateRef,
    Stateful,
)

logger = logging.getLogger(__name__)


class StateMachine:
    """
    Lookup table of named states that drives objects from event to event.

    The machine holds no per-object data: each object carries its own
    ``StateRef`` and the machine only reads and rewrites its ``name``.

    Args:
        states: States to register. Later states replace earlier ones with
                the same name. ``"final"`` always resolves to the synthesized
                final state.
        max_cascade: Maximum number of edges one ``process_event`` call may
                     take. None (default) never limits cascades.

    Attributes:
        DEFAULT_MAX_CASCADE: Value used when ``max_cascade`` is not given.
    """

    DEFAULT_MAX_CASCADE: Optional[int] = None

    def __init__(self, states: Iterable[State], max_cascade: Optional[int] = None):
        lookup = {}
        for state in states:
            lookup[state.name] = state
        lookup[FINAL_STATE_NAME] = State.final()
        self._states: Mapping[str, State] = MappingProxyType(lookup)

        if max_cascade is None:
            max_cascade = self.DEFAULT_MAX_CASCADE
        if max_cascade is not None and max_cascade < 1:
            raise ValueError(f"max_cascade must be >= 1 or None, got {max_cascade}")
        self.max_cascade = max_cascade

        initial = lookup.get(INITIAL_STATE_NAME)
        initial_target = initial.transitions[0].to if initial and initial.transitions else None
        logger.info(
            f"{self.__class__.__name__} built — "
            f"{len(self._states)} states, initial target {initial_target!r}, "
            f"cascade limit {max_cascade}"
        )

    @classmethod
    def from_table(cls, raw_states, max_cascade: Optional[int] = None) -> "StateMachine":
        """Build a machine from a compact table. See ``helpers.build_machine``."""
        from eventstate.helpers import build_machine

        return build_machine(raw_states, max_cascade=max_cascade)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def states(self) -> Mapping[str, State]:
        """Read-only mapping of state name to State."""
        return self._states

    def get_state(self, name: str) -> State:
        """
        Return the state called ``name``.

        Raises:
            ValueError: If the machine has no such state.
        """
        state = self._states.get(name)
        if state is None:
            raise ValueError(f"No state named {name!r} in {self.__class__.__name__}")
        return state

    def state_names(self) -> List[str]:
        return list(self._states)

    def __contains__(self, name: object) -> bool:
        return name in self._states

    def is_final(self, obj: Stateful) -> bool:
        """True once ``obj`` has reached the absorbing final state."""
        return obj.state.name == FINAL_STATE_NAME

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def initialize_state(self, obj: Any) -> None:
        """
        Attach this machine to ``obj`` and run the initial cascade.

        The object starts in the initial pseudo-state and receives an empty
        event, so it settles on its first regular or final state before it
        sees any real event.
        """
        obj.state = StateRef(INITIAL_STATE_NAME, self)
        self.process_event(obj, Event())

    def process_event(self, obj: Stateful, event: Event) -> None:
        """
        Move ``obj`` through at most one real transition for ``event``.

        The first edge of the current state that matches the event and
        passes its guard is taken. While the state reached is an initial or
        choice state, its edges are evaluated against the same event.
        The new state name is written to ``obj.state.name`` only once the
        cascade ends, so an exception from a guard or effect leaves the
        recorded state untouched.

        Raises:
            ValueError: If the object's state, or the target of a taken
                        edge, is not a state of this machine.
            RuntimeError: If ``max_cascade`` edges were taken and the
                          pseudo-state reached has yet another edge to take.
        """
        current = obj.state.name
        if current not in self._states:
            logger.error(f"Object state {current!r} is not a state of this machine")
            raise ValueError(f"Current object state {current!r} not a state in state machine")

        taken = 0
        while True:
            state = self._states[current]
            edge = self._select_edge(state, obj, event)
            if edge is None:
                break
            if self.max_cascade is not None and taken >= self.max_cascade:
                logger.error(
                    f"Cascade limit reached ({self.max_cascade} edges) — "
                    f"still moving at {current!r}"
                )
                raise RuntimeError(
                    f"Cascade exceeded {self.max_cascade} edges at state {current!r}"
                )

            target = edge.execute(obj, event.payload, event)
            if target not in self._states:
                logger.error(f"Edge from {current!r} targets unknown state {target!r}")
                raise ValueError(
                    f"State transitioned to does not exist in the state table: {target!r}"
                )

            logger.debug(f"Transition: {current} → {target} (event {event.kind!r})")
            current = target
            taken += 1

            if not self._states[current].kind.is_pseudo:
                break

        obj.state.name = current

    def _select_edge(self, state: State, obj: Any, event: Event):
        """Return the first edge of ``state`` that matches and passes its guard."""
        for edge in state.transitions:
            if edge.matches(event) and edge.passes_guard(obj, event.payload):
                return edge
        return None


def process(obj: Stateful, event: Event) -> None:
    """Dispatch ``event`` to ``obj`` through the machine it is attached to."""
    obj.state.machine.process_event(obj, event)
