"""Selection state machine for the GIS site map.

Uses python-statemachine for the selection lifecycle:
- Clear state definitions
- Explicit event-driven transitions
- Entry hooks for clearing derived state

States (2 states):
    UNSELECTED: No focal site, no neighbours highlighted
    SELECTED: One focal site with its neighbour set

Transitions:
    UNSELECTED -> SELECTED: select_site (click a marker or a table row)
    SELECTED -> SELECTED: select_site (another site, or the same one again)
    UNSELECTED | SELECTED -> UNSELECTED: filter_changed (dataset rebuilt)
    SELECTED -> UNSELECTED: reset_selection

Restoring the previous view (double click) is not a transition: it changes
the viewport only and is handled by SiteMapController.

The machine owns the selection state only. Neighbour search, viewport
framing, marker recolouring and the history fetch are orchestrated by
SiteMapController around the transitions.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from netops_gis.model.neighbor_result import NeighborResult

logger = logging.getLogger(__name__)


class BaseContext(ABC):
    """Abstract base class for all context dataclasses."""

    @abstractmethod
    def clear(self) -> None:
        """Reset context to initial state."""
        ...


@dataclass
class SelectionContext(BaseContext):
    """Focal site and its derived neighbour result."""

    focal_id: str | None = None
    neighbors: NeighborResult = field(default_factory=NeighborResult.empty)

    def clear(self) -> None:
        self.focal_id = None
        self.neighbors = NeighborResult.empty()

    def set(self, focal_id: str, neighbors: NeighborResult) -> None:
        """Set the selection. Use this setter, don't set fields directly."""
        self.focal_id = focal_id
        self.neighbors = neighbors

    def has_selection(self) -> bool:
        return self.focal_id is not None


@dataclass
class ClickDetectionResult:
    """Result of click detection.

    Attributes:
        site_id: Clicked site id, or None for a map (background) click
        coordinate: [lon, lat] of the click, when the toolkit reports one
    """

    site_id: str | None
    coordinate: list[float] | None

    @property
    def is_valid(self) -> bool:
        return self.site_id is not None or self.coordinate is not None

    @property
    def is_site(self) -> bool:
        return self.site_id is not None

    @staticmethod
    def no_click() -> "ClickDetectionResult":
        return ClickDetectionResult(site_id=None, coordinate=None)


@dataclass
class ClickDeduplicationContext(BaseContext):
    """Drops repeated click events.

    The map component returns its last click on every Streamlit rerun; only
    a click that differs from the last one seen is new.
    """

    last_click_key: str | None = None

    def detect_new_click(self, site_id: str | None, coordinate: list[float] | None) -> ClickDetectionResult:
        """Return the click if it is new, ClickDetectionResult.no_click() otherwise."""
        if site_id is None and coordinate is None:
            return ClickDetectionResult.no_click()
        key = self._key(site_id=site_id, coordinate=coordinate)
        if key == self.last_click_key:
            return ClickDetectionResult.no_click()
        self.last_click_key = key
        return ClickDetectionResult(site_id=site_id, coordinate=coordinate)

    @staticmethod
    def _key(site_id: str | None, coordinate: list[float] | None) -> str:
        parts = []
        if site_id is not None:
            parts.append(f"site_{site_id}")
        if coordinate:
            parts.append(f"coord_{coordinate[0]:.5f}_{coordinate[1]:.5f}")
        return "_".join(parts)

    def clear(self) -> None:
        self.last_click_key = None


@dataclass
class UIMessagesContext(BaseContext):
    """User-facing status text."""

    error: str = ""

    def clear(self) -> None:
        self.error = ""


@dataclass
class GisContext:
    """Shared context/model for the selection state machine.

    Note: The 'state' field is managed by python-statemachine when this
    object is passed as the model. It stores the current state value.
    """

    # State managed by python-statemachine (model pattern)
    state: str | None = None

    selection: SelectionContext = field(default_factory=SelectionContext)
    click_dedup: ClickDeduplicationContext = field(default_factory=ClickDeduplicationContext)
    messages: UIMessagesContext = field(default_factory=UIMessagesContext)

    def clear_selection(self) -> None:
        self.selection.clear()

    def has_selection(self) -> bool:
        return self.selection.has_selection()

    def __repr__(self) -> str:
        return (
            f"GisContext(state={self.state}, focal={self.selection.focal_id}, "
            f"neighbors={len(self.selection.neighbors)})"
        )


class TransitionLogListener:
    """Listener that logs every state transition."""

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.info(f"[STATE] {source.name} --({event})--> {target.name}")


class SelectionStateMachine(StateMachine):
    """State machine for the site selection lifecycle.

    States:
        unselected: No focal site
        selected: One focal site with neighbours
    """

    unselected = State("Unselected", initial=True)
    selected = State("Selected")

    # Click on a marker or a table row
    select_site = unselected.to(selected) | selected.to.itself()
    # Upstream filtered dataset rebuilt
    filter_changed = unselected.to.itself() | selected.to(unselected)
    # Explicit reset (clear button, selecting nothing)
    reset_selection = selected.to(unselected)

    @property
    def is_selected(self) -> bool:
        return self.selected.is_active

    @property
    def is_unselected(self) -> bool:
        return self.unselected.is_active

    # ==========================================================================
    # Hooks
    # ==========================================================================

    def on_enter_unselected(self) -> None:
        """Hook: Entering unselected state clears the selection and its neighbours."""
        self.context.clear_selection()

    def before_select_site(self, site_id: str, neighbors: NeighborResult) -> None:
        """Action before selecting a site."""
        self.context.selection.set(focal_id=site_id, neighbors=neighbors)

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(self, context: GisContext | None = None) -> None:
        """Initialize state machine with model pattern.

        Args:
            context: Shared context/model (creates new if None)
        """
        model = context or GisContext()
        super().__init__(model=model)

    @property
    def context(self) -> GisContext:
        """Alias for model."""
        return self.model

    def get_state_name(self) -> str:
        return self.current_state.name

    def try_transition(self, event: str, **kwargs: Any) -> bool:
        """Attempt a transition, returning success/failure."""
        try:
            self.send(event, **kwargs)
            return True
        except TransitionNotAllowed:
            logger.warning(f"Transition '{event}' not allowed from {self.get_state_name()}")
            return False

    def __repr__(self) -> str:
        return f"SelectionStateMachine(state={self.get_state_name()}, model={self.context!r})"

    @staticmethod
    def create(add_log_listener: bool = True) -> tuple["SelectionStateMachine", GisContext]:
        """Factory method to create state machine with context and optional log listener."""
        context = GisContext()
        sm = SelectionStateMachine(context=context)
        if add_log_listener:
            sm.add_listener(TransitionLogListener())
        return sm, context
