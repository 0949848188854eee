"""MarkerReconciler - Keeps rendered site markers equal to f(working set, selection).

The reconciler exclusively owns the live marker handles, kept in a keyed
map (site id -> MarkerHandle). Every pass diffs that map against the working
set:

1. Handles for ids that left the working set (or lost coordinates) are
   disposed: popup closed, listeners unbound.
2. Every coordinate-valid site gets exactly one handle, styled by its
   MarkerVisualState and bound to hover_enter / hover_exit / activate.
3. The viewport is reframed around the working set, or around the focal
   site when a selection is active.

Rendering toolkits (pydeck here) only read the handles; they never create
or mutate them. Interaction from the toolkit comes back in through
hover_enter(), hover_exit() and activate(), which fire the handle's bound
listeners and re-emit on `events` for subscribers such as the selection
controller.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from netops_gis.constants import SearchConfig
from netops_gis.core.viewport_framer import ViewportFramer
from netops_gis.model.marker_state import MarkerVisualState
from netops_gis.model.neighbor_result import NeighborResult
from netops_gis.model.site_point import SitePoint
from netops_gis.model.viewport import ViewportFrame
from netops_gis.ui.events import EventBus, MarkerEvents

logger = logging.getLogger(__name__)


@dataclass
class MarkerHandle:
    """One live marker on the map.

    Attributes:
        point: Site the marker represents (replaced on every pass)
        visual_state: Style derived for the current pass
        popup_open: Whether the info popup is shown
        listeners: Bound interaction callbacks keyed by MarkerEvents name
    """

    point: SitePoint
    visual_state: MarkerVisualState = MarkerVisualState.DEFAULT
    popup_open: bool = False
    listeners: dict[str, Callable[[], None]] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.point.id

    def bind(self, event: str, callback: Callable[[], None]) -> None:
        if event not in MarkerEvents.ALL:
            raise ValueError(f"Unknown marker event '{event}'")
        self.listeners[event] = callback

    def fire(self, event: str) -> None:
        callback = self.listeners.get(event)
        if callback is not None:
            callback()

    def dispose(self) -> None:
        """Close the popup and unbind every listener."""
        self.popup_open = False
        self.listeners.clear()

    def popup_html(self) -> str:
        """Info popup content for this site."""
        p = self.point
        missing = SearchConfig.MISSING
        return (
            f"<div style='font-size:12px;line-height:1.25;max-width:280px'>"
            f"<div><strong>{p.id}</strong></div>"
            f"<div>Class: {p.classification or missing}</div>"
            f"<div>District: {p.district or missing}</div>"
            f"<div>Grid: {p.grid or missing}</div>"
            f"<div>{p.address or missing}</div>"
            f"</div>"
        )


@dataclass(frozen=True)
class ReconcileResult:
    """What one reconciliation pass changed."""

    added: frozenset[str]
    removed: frozenset[str]
    restyled: frozenset[str]
    frame: ViewportFrame | None

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.restyled)


class MarkerReconciler:
    """Owns marker handles and keeps them consistent with the selection.

    Example:
        reconciler = MarkerReconciler(framer=ViewportFramer())
        reconciler.events.subscribe(MarkerEvents.ACTIVATE, controller.select)
        reconciler.reconcile(working_set=sites)
        reconciler.activate("ISB1234")
    """

    def __init__(self, framer: ViewportFramer) -> None:
        self.framer = framer
        self.events = EventBus(names=MarkerEvents.ALL)
        self._handles: dict[str, MarkerHandle] = {}
        self._focal_id: str | None = None

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def handles(self) -> dict[str, MarkerHandle]:
        """Live handles by site id (read-only view for renderers)."""
        return dict(self._handles)

    @property
    def rendered_ids(self) -> set[str]:
        return set(self._handles)

    @property
    def open_popup_ids(self) -> set[str]:
        return {marker_id for marker_id, handle in self._handles.items() if handle.popup_open}

    @property
    def listener_count(self) -> int:
        """Total bound listeners across all handles."""
        return sum(len(handle.listeners) for handle in self._handles.values())

    def visual_state(self, marker_id: str) -> MarkerVisualState | None:
        handle = self._handles.get(marker_id)
        return handle.visual_state if handle else None

    # =========================================================================
    # RECONCILIATION
    # =========================================================================

    def reconcile(
        self,
        working_set: Iterable[SitePoint],
        focal_id: str | None = None,
        neighbors: NeighborResult | None = None,
        reframe: bool = True,
    ) -> ReconcileResult:
        """Bring the handle map in line with the working set and selection.

        Args:
            working_set: Current sites; coordinate-less ones are skipped and
                duplicate ids resolve last-write-wins
            focal_id: Selected site id, or None
            neighbors: Neighbour result for the focal site, or None
            reframe: Whether to reframe the viewport after the pass

        Returns:
            ReconcileResult with added/removed/restyled ids and the new frame.
        """
        desired = self._desired_points(working_set)
        neighbor_ids = neighbors.ids if neighbors is not None else frozenset()
        self._focal_id = focal_id if focal_id in desired else None

        removed = frozenset(set(self._handles) - set(desired))
        for marker_id in removed:
            self._handles.pop(marker_id).dispose()

        added = set()
        restyled = set()
        for marker_id, point in desired.items():
            state = MarkerVisualState.derive(point_id=marker_id, focal_id=self._focal_id, neighbor_ids=neighbor_ids)
            handle = self._handles.get(marker_id)
            if handle is None:
                handle = MarkerHandle(point=point, visual_state=state)
                self._bind(handle)
                self._handles[marker_id] = handle
                added.add(marker_id)
            else:
                if handle.visual_state != state:
                    restyled.add(marker_id)
                    if handle.visual_state == MarkerVisualState.SELECTED:
                        # The popup was only kept open by the selection
                        handle.popup_open = False
                handle.point = point
                handle.visual_state = state
            if state == MarkerVisualState.SELECTED:
                handle.popup_open = True

        frame = None
        if reframe:
            if self._focal_id is not None:
                frame = self.framer.frame_focus(point=desired[self._focal_id])
            else:
                frame = self.framer.frame_working_set(points=desired.values())

        logger.debug(
            f"Reconciled {len(self._handles)} markers "
            f"(+{len(added)} -{len(removed)} ~{len(restyled)}, focal={self._focal_id})"
        )
        return ReconcileResult(
            added=frozenset(added),
            removed=removed,
            restyled=frozenset(restyled),
            frame=frame,
        )

    @staticmethod
    def _desired_points(working_set: Iterable[SitePoint]) -> dict[str, SitePoint]:
        """Coordinate-valid points keyed by id, last write wins."""
        desired: dict[str, SitePoint] = {}
        for point in working_set:
            try:
                if point.has_coordinates:
                    desired[point.id] = point
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed site row {point!r}: {e}")
        return desired

    def _bind(self, handle: MarkerHandle) -> None:
        marker_id = handle.id
        handle.bind(MarkerEvents.HOVER_ENTER, lambda: self._on_hover_enter(marker_id))
        handle.bind(MarkerEvents.HOVER_EXIT, lambda: self._on_hover_exit(marker_id))
        handle.bind(MarkerEvents.ACTIVATE, lambda: self._on_activate(marker_id))

    def clear(self) -> None:
        """Dispose every handle."""
        for handle in self._handles.values():
            handle.dispose()
        self._handles.clear()
        self._focal_id = None

    # =========================================================================
    # INTERACTION (from the rendering toolkit)
    # =========================================================================

    def hover_enter(self, marker_id: str) -> None:
        self._fire(marker_id, MarkerEvents.HOVER_ENTER)

    def hover_exit(self, marker_id: str) -> None:
        self._fire(marker_id, MarkerEvents.HOVER_EXIT)

    def activate(self, marker_id: str) -> None:
        self._fire(marker_id, MarkerEvents.ACTIVATE)

    def _fire(self, marker_id: str, event: str) -> None:
        handle = self._handles.get(marker_id)
        if handle is None:
            # Event from a marker removed by an earlier pass
            logger.debug(f"Ignoring {event} for unknown marker {marker_id}")
            return
        handle.fire(event)

    def _on_hover_enter(self, marker_id: str) -> None:
        self._handles[marker_id].popup_open = True
        self.events.emit(MarkerEvents.HOVER_ENTER, marker_id)

    def _on_hover_exit(self, marker_id: str) -> None:
        if marker_id != self._focal_id:
            self._handles[marker_id].popup_open = False
        self.events.emit(MarkerEvents.HOVER_EXIT, marker_id)

    def _on_activate(self, marker_id: str) -> None:
        self.events.emit(MarkerEvents.ACTIVATE, marker_id)

    def open_popup_only(self, marker_id: str) -> None:
        """Open the popup of one marker and close all others."""
        for handle_id, handle in self._handles.items():
            handle.popup_open = handle_id == marker_id

    def pick_payload(self) -> list[dict[str, Any]]:
        """Plain dict rows for a rendering layer, one per handle."""
        return [
            {
                "id": handle.id,
                "position": list(handle.point.lon_lat),
                "state": handle.visual_state.value,
                "color": handle.visual_state.color,
                "radius": handle.visual_state.radius_px,
                "popup_open": handle.popup_open,
                "popup_html": handle.popup_html(),
            }
            for handle in self._handles.values()
        ]
