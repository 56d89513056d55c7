"""Shared observable state holder."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .models import AppState

logger = logging.getLogger(__name__)

Listener = Callable[[AppState, set[str]], None]


class StateStore:
    """Holds the single AppState and notifies listeners on every change.

    Each component receives the same store in its constructor. Listeners
    get the state and the set of field names that changed.
    """

    def __init__(self, state: AppState | None = None) -> None:
        self.state = state or AppState()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def update(self, **changes: Any) -> None:
        changed = set()
        for name, value in changes.items():
            if getattr(self.state, name) != value:
                setattr(self.state, name, value)
                changed.add(name)
        if not changed:
            return
        for listener in list(self._listeners):
            try:
                listener(self.state, changed)
            except Exception:
                logger.exception("State listener failed")
