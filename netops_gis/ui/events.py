"""Named-event subscription for the GIS page host.

The controller emits selection_changed, neighbors_changed, viewport_changed,
history_changed and dataset_changed; the marker reconciler emits
hover_enter, hover_exit and activate. Subscribers are plain callables.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class GisEvents:
    """Event names emitted to the UI host."""

    SELECTION_CHANGED = "selection_changed"
    NEIGHBORS_CHANGED = "neighbors_changed"
    VIEWPORT_CHANGED = "viewport_changed"
    HISTORY_CHANGED = "history_changed"
    DATASET_CHANGED = "dataset_changed"

    ALL = (SELECTION_CHANGED, NEIGHBORS_CHANGED, VIEWPORT_CHANGED, HISTORY_CHANGED, DATASET_CHANGED)


class MarkerEvents:
    """Event names emitted by marker handles."""

    HOVER_ENTER = "hover_enter"
    HOVER_EXIT = "hover_exit"
    ACTIVATE = "activate"

    ALL = (HOVER_ENTER, HOVER_EXIT, ACTIVATE)


class EventBus:
    """Minimal synchronous publish/subscribe.

    Example:
        bus = EventBus()
        unsubscribe = bus.subscribe("viewport_changed", print)
        bus.emit("viewport_changed", frame)
        unsubscribe()
    """

    def __init__(self, names: tuple[str, ...] | None = None) -> None:
        self._names = set(names) if names is not None else None
        self._subscribers: dict[str, list[Callable[..., Any]]] = defaultdict(list)

    def _check(self, name: str) -> None:
        if self._names is not None and name not in self._names:
            raise ValueError(f"Unknown event '{name}'. Expected one of {sorted(self._names)}.")

    def subscribe(self, name: str, callback: Callable[..., Any]) -> Callable[[], None]:
        """Register callback for name. Returns a function that unsubscribes it."""
        self._check(name)
        self._subscribers[name].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[name]:
                self._subscribers[name].remove(callback)

        return unsubscribe

    def emit(self, name: str, *args: Any) -> None:
        """Call every subscriber of name, in subscription order."""
        self._check(name)
        for callback in list(self._subscribers[name]):
            callback(*args)
