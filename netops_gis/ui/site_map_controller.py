"""SiteMapController - Page-facing orchestration of the GIS site map.

Owns the upstream dataset and the working set derived from it, and wires the
selection state machine, NeighborFinder, MarkerReconciler and ViewportFramer
together. The UI host talks to this class only:

    controller = SiteMapController(dataset_fetch=client.fetch_map_points,
                                   history_fetch=client.fetch_timeseries)
    controller.events.subscribe(GisEvents.SELECTION_CHANGED, on_selection)
    controller.refresh_dataset(filters)
    controller.drain()
    controller.select("ISB1234")

Data flow per interaction:
    dataset replaced -> filter_changed -> search narrows -> reconcile
    select(id)       -> select_site    -> neighbours    -> reconcile -> history fetch

Single writer: every method must be called from the hosting UI thread.
Background fetch results are applied only by drain().
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from netops_gis.core.fuzzy_matcher import SearchQuery, filter_points
from netops_gis.core.neighbor_finder import NeighborFinder
from netops_gis.core.viewport_framer import ViewportFramer
from netops_gis.model.neighbor_result import NeighborResult
from netops_gis.model.site_point import SitePoint
from netops_gis.model.timeseries import AvailabilitySample
from netops_gis.model.viewport import ViewportFrame
from netops_gis.ui.events import EventBus, GisEvents, MarkerEvents
from netops_gis.ui.marker_reconciler import MarkerReconciler, ReconcileResult
from netops_gis.ui.request_tracker import BackgroundFetcher, Completion, RequestGeneration
from netops_gis.ui.state_machine import SelectionStateMachine

logger = logging.getLogger(__name__)

DatasetFetch = Callable[[Any], list[SitePoint]]
HistoryFetch = Callable[[str], list[AvailabilitySample]]


class SiteMapController:
    """Selection, neighbours, markers and viewport for one map page.

    Attributes:
        dataset: Last committed upstream dataset (replaced wholesale, never patched)
        query: Active search boxes
        working_set: Dataset rows passing the search query, in dataset order
        history: Availability samples of the focal site (empty when unselected)
        events: Emits GisEvents to the UI host
    """

    def __init__(
        self,
        dataset_fetch: DatasetFetch | None = None,
        history_fetch: HistoryFetch | None = None,
        fetcher: BackgroundFetcher | None = None,
        finder: NeighborFinder | None = None,
        framer: ViewportFramer | None = None,
        add_log_listener: bool = True,
    ) -> None:
        """Initialize controller.

        Args:
            dataset_fetch: Callable(filters) -> sites, run in the background
            history_fetch: Callable(site_id) -> samples, run in the background
            fetcher: Background runner (default: inline, results applied by drain())
            finder: Neighbour search (default radius and cap from NeighborConfig)
            framer: Viewport owner (default: fallback center)
            add_log_listener: Log state transitions
        """
        self._dataset_fetch = dataset_fetch
        self._history_fetch = history_fetch
        self.fetcher = fetcher or BackgroundFetcher(max_workers=0)
        self.finder = finder or NeighborFinder()
        self.framer = framer or ViewportFramer()
        self.reconciler = MarkerReconciler(framer=self.framer)
        self.sm, self.context = SelectionStateMachine.create(add_log_listener=add_log_listener)
        self.events = EventBus(names=GisEvents.ALL)

        self._dataset_gen = RequestGeneration("dataset")
        self._history_gen = RequestGeneration("history")

        self.dataset: list[SitePoint] = []
        self.query = SearchQuery()
        self.working_set: list[SitePoint] = []
        self._working_index: dict[str, SitePoint] = {}
        self.history: list[AvailabilitySample] = []

        self.reconciler.events.subscribe(MarkerEvents.ACTIVATE, self.select)

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def focal_id(self) -> str | None:
        return self.context.selection.focal_id

    @property
    def neighbors(self) -> NeighborResult:
        return self.context.selection.neighbors

    @property
    def focal_point(self) -> SitePoint | None:
        focal_id = self.focal_id
        return self._working_index.get(focal_id) if focal_id is not None else None

    @property
    def viewport(self) -> ViewportFrame:
        return self.framer.current

    # =========================================================================
    # DATASET AND SEARCH
    # =========================================================================

    def set_working_set(self, points: Iterable[SitePoint]) -> None:
        """Replace the upstream dataset. Always clears the selection."""
        self.dataset = list(points)
        had_selection = self.context.has_selection()
        self.sm.filter_changed()
        self._cancel_history()
        self._rebuild_working_set()
        result = self._reconcile(reframe=True)

        logger.info(f"Dataset replaced: {len(self.dataset)} sites, {len(self.working_set)} in working set")
        self.events.emit(GisEvents.DATASET_CHANGED, list(self.working_set))
        if had_selection:
            self._emit_selection_cleared()
        self._emit_frame(result)

    def set_search_query(self, query: SearchQuery) -> None:
        """Narrow the working set in memory.

        The selection survives when its focal site still passes the query,
        otherwise it is reset.
        """
        if query == self.query:
            return
        self.query = query
        previous_ids = [p.id for p in self.working_set]
        self._rebuild_working_set()
        identity_changed = previous_ids != [p.id for p in self.working_set]

        dropped_focal = self.focal_id is not None and self.focal_id not in self._working_index
        if dropped_focal:
            self.sm.reset_selection()
            self._cancel_history()

        result = self._reconcile(reframe=identity_changed or dropped_focal)
        logger.debug(f"Search {query} -> {len(self.working_set)} sites")
        self.events.emit(GisEvents.DATASET_CHANGED, list(self.working_set))
        if dropped_focal:
            self._emit_selection_cleared()
        self._emit_frame(result)

    def _rebuild_working_set(self) -> None:
        if self.query.is_empty:
            self.working_set = list(self.dataset)
        else:
            self.working_set = filter_points(self.dataset, self.query)
        self._working_index = {p.id: p for p in self.working_set}

    # =========================================================================
    # SELECTION
    # =========================================================================

    def select(self, point_id: str | None) -> None:
        """Select a site by id (marker click or table row).

        None, or an id outside the working set, resets an active selection
        and is ignored otherwise. Re-selecting the focal site reframes and
        reopens its popup without fetching its history again.
        """
        point = self._working_index.get(point_id) if point_id is not None else None
        if point is None:
            if self.sm.is_selected:
                logger.debug(f"Select {point_id!r} not in working set, resetting")
                self.reset()
            return

        reselect = point.id == self.focal_id
        neighbors = self.neighbors if reselect else self.finder.find(focal=point, dataset=self.dataset)
        self.sm.select_site(site_id=point.id, neighbors=neighbors)

        result = self._reconcile(reframe=point.has_coordinates)
        self.reconciler.open_popup_only(point.id)

        if not reselect:
            self.events.emit(GisEvents.SELECTION_CHANGED, point.id)
            self.events.emit(GisEvents.NEIGHBORS_CHANGED, neighbors)
            self._request_history(point.id)
        self._emit_frame(result)

    def reset(self) -> None:
        """Clear the selection and frame the working set again."""
        if not self.sm.is_selected:
            return
        self.sm.reset_selection()
        self._cancel_history()
        result = self._reconcile(reframe=True)
        self._emit_selection_cleared()
        self._emit_frame(result)

    def restore_previous_view(self) -> ViewportFrame | None:
        """Go back to the view shown before the last reframing. Selection is untouched."""
        frame = self.framer.restore_previous()
        if frame is not None:
            self.events.emit(GisEvents.VIEWPORT_CHANGED, frame)
        return frame

    def hover_enter(self, point_id: str) -> None:
        self.reconciler.hover_enter(point_id)

    def hover_exit(self, point_id: str) -> None:
        self.reconciler.hover_exit(point_id)

    # =========================================================================
    # BACKGROUND FETCHES
    # =========================================================================

    def refresh_dataset(self, filters: Any) -> int:
        """Start a dataset fetch for the given filters.

        The selection is cleared right away; the fetched rows replace the
        dataset when drain() applies the completion. Returns the request
        generation.
        """
        if self._dataset_fetch is None:
            raise RuntimeError("SiteMapController has no dataset_fetch configured")
        if self.context.has_selection():
            self.sm.filter_changed()
            self._cancel_history()
            result = self._reconcile(reframe=False)
            self._emit_selection_cleared()
            self._emit_frame(result)

        generation = self._dataset_gen.issue()
        fetch = self._dataset_fetch
        self.fetcher.submit(category=self._dataset_gen.category, generation=generation, fn=lambda: fetch(filters))
        logger.debug(f"Dataset request #{generation} for {filters}")
        return generation

    def set_history_fetch(self, history_fetch: HistoryFetch | None) -> None:
        """Swap the history source (e.g., a new day window) and refetch for the focal site."""
        self._history_fetch = history_fetch
        if self.focal_id is not None:
            self._request_history(self.focal_id)

    def _request_history(self, site_id: str) -> None:
        self.history = []
        self.events.emit(GisEvents.HISTORY_CHANGED, [])
        if self._history_fetch is None:
            return
        generation = self._history_gen.issue()
        fetch = self._history_fetch
        self.fetcher.submit(category=self._history_gen.category, generation=generation, fn=lambda: fetch(site_id))

    def _cancel_history(self) -> None:
        self._history_gen.invalidate()
        if self.history:
            self.history = []
            self.events.emit(GisEvents.HISTORY_CHANGED, [])

    def drain(self) -> int:
        """Apply queued fetch completions that are still current.

        Returns the number of completions applied; superseded ones are dropped.
        """
        applied = 0
        for completion in self.fetcher.drain():
            if completion.category == self._dataset_gen.category:
                applied += self._apply_dataset(completion)
            elif completion.category == self._history_gen.category:
                applied += self._apply_history(completion)
            else:
                raise ValueError(f"Unknown completion category '{completion.category}'")
        return applied

    def _apply_dataset(self, completion: Completion) -> int:
        if not self._dataset_gen.is_current(completion.generation):
            logger.debug(f"Dropping stale dataset response #{completion.generation}")
            return 0
        if completion.ok:
            self.context.messages.error = ""
            self.set_working_set(completion.result or [])
        else:
            logger.warning(f"Dataset fetch failed, showing empty map: {completion.error}")
            self.context.messages.error = str(completion.error)
            self.set_working_set([])
        return 1

    def _apply_history(self, completion: Completion) -> int:
        if not self._history_gen.is_current(completion.generation) or not self.sm.is_selected:
            logger.debug(f"Dropping stale history response #{completion.generation}")
            return 0
        if completion.ok:
            self.history = list(completion.result or [])
        else:
            logger.warning(f"History fetch for {self.focal_id} failed: {completion.error}")
            self.history = []
        self.events.emit(GisEvents.HISTORY_CHANGED, list(self.history))
        return 1

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _reconcile(self, reframe: bool) -> ReconcileResult:
        return self.reconciler.reconcile(
            working_set=self.working_set,
            focal_id=self.focal_id,
            neighbors=self.neighbors,
            reframe=reframe,
        )

    def _emit_selection_cleared(self) -> None:
        self.events.emit(GisEvents.SELECTION_CHANGED, None)
        self.events.emit(GisEvents.NEIGHBORS_CHANGED, self.neighbors)

    def _emit_frame(self, result: ReconcileResult) -> None:
        if result.frame is not None:
            self.events.emit(GisEvents.VIEWPORT_CHANGED, result.frame)

    def shutdown(self) -> None:
        self.reconciler.clear()
        self.fetcher.shutdown()

    def __repr__(self) -> str:
        return (
            f"SiteMapController(dataset={len(self.dataset)}, working={len(self.working_set)}, "
            f"state={self.sm.get_state_name()}, focal={self.focal_id})"
        )
