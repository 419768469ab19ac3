from __future__ import annotations

import logging
import typing as t

from .types import LifecycleEvent, Listener

_logger = logging.getLogger(__name__)


class LifecycleEmitter:
    """Per-instance observer registry for store lifecycle signals."""

    def __init__(self) -> None:
        self._listeners: t.Dict[LifecycleEvent, t.List[Listener]] = {event: [] for event in LifecycleEvent}

    def on(self, event: t.Union[LifecycleEvent, str], listener: Listener) -> Listener:
        self._listeners[LifecycleEvent(event)].append(listener)
        return listener

    def off(self, event: t.Union[LifecycleEvent, str], listener: Listener) -> None:
        listeners = self._listeners[LifecycleEvent(event)]
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: t.Union[LifecycleEvent, str]) -> int:
        return len(self._listeners[LifecycleEvent(event)])

    def emit(self, event: t.Union[LifecycleEvent, str], *args: t.Any) -> bool:
        """Call every listener registered for `event`; return whether any ran.

        A failing listener is logged and does not stop the others.
        """
        event = LifecycleEvent(event)
        listeners = list(self._listeners[event])
        if not listeners and event is LifecycleEvent.ERROR:
            _logger.debug("unhandled store error: %r", args[0] if args else None)
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                _logger.exception("%s listener %r failed", event.value, listener)
        return bool(listeners)
