"""Event system for the chromatic tuner components."""

import threading
from enum import Enum, auto
from typing import Any, Callable, DefaultDict, List
from collections import defaultdict

from ..logging_config import get_logger

logger = get_logger(__name__)

Listener = Callable[..., None]


class TunerEventType(Enum):
    """Event types emitted by the sampling loop."""

    READING = auto()
    ERROR = auto()
    STATE_CHANGED = auto()


class EventEmitter:
    """Synchronous event emitter that tolerates cross-thread use.

    Readings are emitted on the scheduler thread while listeners are
    usually added from the main thread, so the listener table is guarded
    by a lock and each emit works on a snapshot.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: DefaultDict[Any, List[Listener]] = defaultdict(list)

    def on(self, event_type: Any, callback: Listener) -> Callable[[], None]:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Called with the emitted arguments

        Returns:
            A function that removes the callback again
        """
        with self._lock:
            if callback not in self._listeners[event_type]:
                self._listeners[event_type].append(callback)
        return lambda: self.off(event_type, callback)

    def off(self, event_type: Any, callback: Listener) -> None:
        """Remove a previously registered callback, if present."""
        with self._lock:
            listeners = self._listeners.get(event_type)
            if listeners and callback in listeners:
                listeners.remove(callback)

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Call every listener for ``event_type`` in registration order.

        A listener that raises is logged and skipped; it never reaches the
        emitter or stops the remaining listeners.
        """
        with self._lock:
            listeners = list(self._listeners.get(event_type, ()))

        for callback in listeners:
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in {event_type} listener {callback!r}: {e}", exc_info=True)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()


class TunerEvents:
    """Typed wrapper around EventEmitter for the sampling loop's events."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_reading(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback(reading)`` for every published TunerReading."""
        return self._emitter.on(TunerEventType.READING, callback)

    def on_error(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback(error)`` for terminal setup failures."""
        return self._emitter.on(TunerEventType.ERROR, callback)

    def on_state_change(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback(old_state, new_state)``."""
        return self._emitter.on(TunerEventType.STATE_CHANGED, callback)

    def emit_reading(self, reading) -> None:
        self._emitter.emit(TunerEventType.READING, reading)

    def emit_error(self, error: Exception) -> None:
        self._emitter.emit(TunerEventType.ERROR, error)

    def emit_state_change(self, old_state, new_state) -> None:
        self._emitter.emit(TunerEventType.STATE_CHANGED, old_state, new_state)

    def clear(self) -> None:
        self._emitter.clear()
