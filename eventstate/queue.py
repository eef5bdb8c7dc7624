"""
Event queue and emitters.

The queue is an explicit instance: create one per group of objects that
should see the same events, and hand it to the Emitters that feed it.
"""

import logging
from collections import deque
from typing import Any, Deque, Hashable, Iterable, Optional

from eventstate.machine import process
from eventstate.types import Event, Stateful

logger = logging.getLogger(__name__)


class EventQueue:
    """
    FIFO buffer of events plus a pump that delivers them.

    Events added while pumping (usually by effects calling ``Emitter.emit``)
    wait at the tail until the current event has reached every object.
    """

    def __init__(self):
        self._events: Deque[Event] = deque()

    def add(self, event: Event) -> None:
        self._events.append(event)

    def pop(self) -> Optional[Event]:
        """Remove and return the head event, or None if the queue is empty."""
        if not self._events:
            return None
        return self._events.popleft()

    def is_empty(self) -> bool:
        return not self._events

    def clear(self) -> None:
        """Discard every pending event."""
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def pump(self, objects: Iterable[Stateful]) -> int:
        """
        Deliver queued events until the queue is empty.

        Each event is dispatched to every object, in order, before the next
        event is popped. Exceptions from guards or effects propagate and
        leave the remaining events queued.

        Args:
            objects: Stateful objects that already carry a ``state`` record
                     (see ``StateMachine.initialize_state``).

        Returns:
            Number of events delivered.
        """
        targets = list(objects)
        delivered = 0
        event = self.pop()
        while event is not None:
            logger.debug(f"Pumping {event.kind!r} to {len(targets)} objects")
            for obj in targets:
                process(obj, event)
            delivered += 1
            event = self.pop()
        return delivered


class Emitter:
    """
    Named event source bound to a queue.

    Args:
        kind: Event kind stamped on every emitted event.
        queue: Queue that receives the events.
    """

    def __init__(self, kind: Hashable, queue: EventQueue):
        self.kind = kind
        self.queue = queue

    def emit(self, payload: Any = None) -> None:
        logger.debug(f"Emitting {self.kind!r}")
        self.queue.add(Event(self.kind, payload))

    def __repr__(self) -> str:
        return f"Emitter(kind={self.kind!r})"
