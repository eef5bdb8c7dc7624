"""
State machine data types and structures.

Defines the core types used by the event-driven engine:
- StateKind: Tag that decides whether a state cascades or waits for events
- Event: Immutable (kind, payload) record delivered to machines
- Edge: A single guarded, side-effecting transition
- State: A named node holding an ordered tuple of Edges
- StateRef: The record attached to every stateful object
- Stateful: Capability protocol for host objects
- AllOf / EachOf: Guard and effect combinators used by the table builder
"""

from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Hashable,
    Optional,
    Protocol,
    Tuple,
)

if TYPE_CHECKING:
    from eventstate.machine import StateMachine

Guard = Callable[[Any, Any], bool]
Effect = Callable[[Any, Any, "Event"], None]

INITIAL_STATE_NAME = "initial"
FINAL_STATE_NAME = "final"


class StateKind(Enum):
    """
    Kind of a state.

    Initial and choice states are pseudo-states: their edges are evaluated
    against the same event that entered them. Regular and final states wait
    for the next event.
    """

    INITIAL = "initial"
    REGULAR = "regular"
    CHOICE = "choice"
    FINAL = "final"

    @property
    def is_pseudo(self) -> bool:
        """True for kinds whose edges fire in the same dispatch that entered them."""
        return self in (StateKind.INITIAL, StateKind.CHOICE)


@dataclass(frozen=True)
class Event:
    """
    Something that happened, delivered to every stateful object by the queue.

    Args:
        kind: Trigger value matched against Edge.trigger. None is the wildcard
              event used to start cascades; it only matches untriggered edges.
        payload: Opaque value passed through to guards and effects.
    """

    kind: Optional[Hashable] = None
    payload: Any = None


@dataclass(frozen=True)
class Edge:
    """
    A directed transition out of a state.

    Args:
        to: Name of the target state. Checked by the machine when taken.
        trigger: Event kind required to match. None matches every event.
        guard: Optional predicate ``guard(obj, payload)``. None always passes.
        effect: Optional procedure ``effect(obj, payload, event)`` run when
                the edge is taken.
    """

    to: str
    trigger: Optional[Hashable] = None
    guard: Optional[Guard] = None
    effect: Optional[Effect] = None

    def matches(self, event: Event) -> bool:
        if self.trigger is None:
            return True
        return event.kind == self.trigger

    def passes_guard(self, obj: Any, payload: Any) -> bool:
        """
        Check whether the guard allows this edge for ``obj``.

        Exceptions raised by the guard propagate to the caller.
        """
        if self.guard is None:
            return True
        return bool(self.guard(obj, payload))

    def execute(self, obj: Any, payload: Any, event: Event) -> str:
        """Run the effect, if any, and return the target state name."""
        if self.effect is not None:
            self.effect(obj, payload, event)
        return self.to


@dataclass(frozen=True)
class State:
    """
    A named node of a state machine.

    Use the ``regular``/``choice``/``initial``/``final`` constructors rather
    than building states by hand; they fix the kind and the reserved names.
    """

    name: str
    kind: StateKind = StateKind.REGULAR
    transitions: Tuple[Edge, ...] = ()

    @classmethod
    def regular(cls, name: str, transitions=()) -> "State":
        return cls(name=name, kind=StateKind.REGULAR, transitions=tuple(transitions))

    @classmethod
    def choice(cls, name: str, transitions=()) -> "State":
        return cls(name=name, kind=StateKind.CHOICE, transitions=tuple(transitions))

    @classmethod
    def initial(cls, edge: Edge) -> "State":
        return cls(name=INITIAL_STATE_NAME, kind=StateKind.INITIAL, transitions=(edge,))

    @classmethod
    def final(cls) -> "State":
        return cls(name=FINAL_STATE_NAME, kind=StateKind.FINAL)


class StateRef:
    """
    Current-state record attached to a stateful object.

    ``name`` is rewritten by the machine after every dispatch. ``machine`` is
    a non-owning reference to the governing machine and cannot be rebound.
    """

    __slots__ = ("name", "_machine")

    def __init__(self, name: str, machine: "StateMachine"):
        self.name = name
        self._machine = machine

    @property
    def machine(self) -> "StateMachine":
        return self._machine

    def __repr__(self) -> str:
        return f"StateRef(name={self.name!r})"


class Stateful(Protocol):
    """Anything with a ``state`` attribute the engine can read and write."""

    state: StateRef


@dataclass(frozen=True)
class AllOf:
    """
    Guard that passes only when every wrapped guard passes.

    Evaluation stops at the first failing guard. An empty AllOf never passes.
    """

    guards: Tuple[Guard, ...]

    def __call__(self, obj: Any, payload: Any) -> bool:
        if not self.guards:
            return False
        for guard in self.guards:
            if not guard(obj, payload):
                return False
        return True


@dataclass(frozen=True)
class EachOf:
    """Effect that runs every wrapped effect in order."""

    effects: Tuple[Effect, ...]

    def __call__(self, obj: Any, payload: Any, event: Event) -> None:
        for effect in self.effects:
            effect(obj, payload, event)
