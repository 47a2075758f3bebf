"""
Minimal synchronous publish/subscribe used by the model to notify consumers.

Listeners are plain callables invoked inline, in registration order, with the
arguments passed to ``emit``.
"""

from __future__ import annotations

from typing import Any, Callable, List

Listener = Callable[..., None]


class Emitter:
    """Broadcasts one kind of event to its listeners."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        """Remove a listener; raises ValueError if it was never added."""
        self._listeners.remove(listener)

    def has_listener(self, listener: Listener) -> bool:
        return listener in self._listeners

    def emit(self, *args: Any) -> None:
        # copy: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(*args)
