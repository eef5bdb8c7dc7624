"""
python-eventstate
~~~~~~~~~~~~~~~~~

A small, embeddable engine that drives objects through state machines
in response to queued events.

Quick start:
    from eventstate import StateMachine, Event, EventQueue, Emitter, process
    from eventstate import build_machine, all_of, each_of
"""

from eventstate.machine import StateMachine, process
from eventstate.queue import Emitter, EventQueue
from eventstate.types import (
    AllOf,
    EachOf,
    Edge,
    Event,
    State,
    StateKind,
    StateRef,
    Stateful,
)
from eventstate.helpers import (
    all_of,
    build_edge,
    build_machine,
    each_of,
    log_effect,
)

__all__ = [
    "StateMachine",
    "process",
    "Event",
    "EventQueue",
    "Emitter",
    "Edge",
    "State",
    "StateKind",
    "StateRef",
    "Stateful",
    "AllOf",
    "EachOf",
    "all_of",
    "each_of",
    "build_edge",
    "build_machine",
    "log_effect",
]
