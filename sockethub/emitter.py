"""A small thread-safe event emitter."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable

Listener = Callable[..., Any]


@dataclass
class _Entry:
    listener: Listener
    once: bool


class EventEmitter:
    """Registers listeners per event name and calls them on emit."""

    def __init__(self) -> None:
        self._events: dict[str, list[_Entry]] = {}
        self._lock = threading.RLock()

    def _add(self, event: str, listeners: tuple, once: bool) -> None:
        for listener in listeners:
            if not callable(listener):
                raise TypeError("listener must be callable")
        with self._lock:
            entries = self._events.setdefault(event, [])
            entries.extend(_Entry(listener, once) for listener in listeners)

    def on(self, event: str, *args: Listener) -> EventEmitter:
        """Register listeners for an event."""
        self._add(event, args, once=False)
        return self

    def once(self, event: str, *args: Listener) -> EventEmitter:
        """Register listeners that are removed after their first call."""
        self._add(event, args, once=True)
        return self

    def remove_listener(self, event: str, listener: Listener) -> EventEmitter:
        """Remove the most recently added registration of a listener."""
        with self._lock:
            entries = self._events.get(event)
            if not entries:
                return self
            for position in reversed(range(len(entries))):
                if entries[position].listener == listener:
                    del entries[position]
                    break
            if not entries:
                del self._events[event]
        return self

    def remove_all_listeners(self, event: str | None = None) -> EventEmitter:
        """Remove every listener of an event, or of all events."""
        with self._lock:
            if event is None:
                self._events.clear()
            else:
                self._events.pop(event, None)
        return self

    def emit(self, event: str, *args: Any) -> bool:
        """Call the listeners of an event; return whether any were registered."""
        with self._lock:
            entries = list(self._events.get(event, ()))
            if not entries:
                return False
            remaining = [entry for entry in self._events[event] if not entry.once]
            if remaining:
                self._events[event] = remaining
            else:
                del self._events[event]
        for entry in entries:
            entry.listener(*args)
        return True

    def emit_reserved(self, event: str, *args: Any) -> bool:
        """Emit a reserved (internal) event."""
        return self.emit(event, *args)

    def emit_untyped(self, event: str, *args: Any) -> bool:
        """Emit an arbitrary event received from elsewhere."""
        return self.emit(event, *args)

    def listeners(self, event: str) -> list[Listener]:
        """Return the listeners registered for an event."""
        with self._lock:
            return [entry.listener for entry in self._events.get(event, ())]

    def listener_count(self, event: str) -> int:
        """Return how many listeners are registered for an event."""
        with self._lock:
            return len(self._events.get(event, ()))