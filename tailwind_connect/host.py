"""
Host environment for wallet discovery.

The host plays the part of the page document: it reports a ready state and
carries named events between independent scripts (the dApp and the injected
wallet provider).
"""
import logging
import threading
from enum import Enum
from typing import Callable, Dict, List, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

EventListener = Callable[[str], None]


class ReadyState(str, Enum):
    """Document load states, in the order a host moves through them."""
    LOADING = "loading"
    INTERACTIVE = "interactive"
    COMPLETE = "complete"


@runtime_checkable
class Host(Protocol):
    """Protocol for host environments"""

    @property
    def ready_state(self) -> ReadyState:
        ...

    def add_event_listener(self, event_name: str, listener: EventListener) -> None:
        ...

    def remove_event_listener(self, event_name: str, listener: EventListener) -> None:
        ...

    def dispatch_event(self, event_name: str) -> int:
        """Deliver an event to its listeners and return how many were called"""
        ...


class InMemoryHost:
    """
    Document-like host kept in process.

    Listeners are called synchronously, in registration order, from
    :meth:`dispatch_event`. A failing listener is logged and does not stop
    delivery to the others.
    """

    def __init__(self, ready_state: ReadyState = ReadyState.LOADING):
        self._ready_state = ReadyState(ready_state)
        self._listeners: Dict[str, List[EventListener]] = {}
        self._lock = threading.RLock()
        self.dispatched: List[str] = []

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    def set_ready_state(self, state: ReadyState) -> None:
        """
        Advance the ready state.

        Raises:
            ValueError: If the state would move backwards
        """
        state = ReadyState(state)
        order = list(ReadyState)
        if order.index(state) < order.index(self._ready_state):
            raise ValueError(
                f"Ready state cannot go from {self._ready_state.value} back to {state.value}"
            )
        logger.debug("Host ready state %s -> %s", self._ready_state.value, state.value)
        self._ready_state = state

    def add_event_listener(self, event_name: str, listener: EventListener) -> None:
        with self._lock:
            handlers = self._listeners.setdefault(event_name, [])
            if listener not in handlers:
                handlers.append(listener)

    def remove_event_listener(self, event_name: str, listener: EventListener) -> None:
        with self._lock:
            handlers = self._listeners.get(event_name, [])
            if listener in handlers:
                handlers.remove(listener)

    def listener_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._listeners.get(event_name, []))

    def dispatch_event(self, event_name: str) -> int:
        with self._lock:
            handlers = list(self._listeners.get(event_name, []))
            self.dispatched.append(event_name)

        for handler in handlers:
            try:
                handler(event_name)
            except Exception:
                logger.exception("Listener for %s failed", event_name)
        return len(handlers)
