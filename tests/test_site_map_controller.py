"""SiteMapController - selection, search, reframing and last-request-wins fetches.

Tests: filter/selection lifecycle, events, stale response handling
Fixtures: controller (inline fetcher), loaded_controller (ABCD committed), backend
"""

from typing import Any

import pytest

from netops_gis.constants import MapConfig
from netops_gis.core.fuzzy_matcher import SearchQuery
from netops_gis.model.marker_state import MarkerVisualState
from netops_gis.model.site_point import SitePoint
from netops_gis.model.timeseries import AvailabilitySample
from netops_gis.ui.events import GisEvents
from netops_gis.ui.request_tracker import BackgroundFetcher
from netops_gis.ui.site_map_controller import SiteMapController


def _record_events(controller: SiteMapController) -> list[tuple[str, Any]]:
    """Subscribe to every GisEvent; returns the shared record list."""
    record: list[tuple[str, Any]] = []
    for name in GisEvents.ALL:
        controller.events.subscribe(name, lambda payload, name=name: record.append((name, payload)))
    return record


class TestWorkingSet:
    """Dataset replacement and in-memory search narrowing."""

    def test_set_working_set_renders_valid_points(self, loaded_controller: SiteMapController) -> None:
        assert [p.id for p in loaded_controller.working_set] == ["A", "B", "C", "D"]
        assert loaded_controller.reconciler.rendered_ids == {"A", "B", "C"}
        assert loaded_controller.sm.is_unselected

    def test_dataset_change_clears_selection(self, loaded_controller: SiteMapController, site_a: SitePoint) -> None:
        loaded_controller.select("A")
        loaded_controller.set_working_set([site_a])
        assert loaded_controller.focal_id is None
        assert loaded_controller.neighbors.is_empty
        assert loaded_controller.sm.is_unselected
        assert loaded_controller.reconciler.open_popup_ids == set()

    def test_dataset_change_emits(self, controller: SiteMapController, abc_sites: list[SitePoint]) -> None:
        record = _record_events(controller)
        controller.set_working_set(abc_sites)
        names = [name for name, _ in record]
        assert names == [GisEvents.DATASET_CHANGED, GisEvents.VIEWPORT_CHANGED]
        assert record[0][1] == abc_sites

    def test_search_narrows_working_set(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.set_search_query(SearchQuery(address="main"))
        assert [p.id for p in loaded_controller.working_set] == ["A", "C"]
        assert loaded_controller.reconciler.rendered_ids == {"A", "C"}
        assert len(loaded_controller.dataset) == 4

    def test_search_keeps_selection_when_focal_survives(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("A")
        loaded_controller.set_search_query(SearchQuery(address="gulshan road"))
        assert loaded_controller.focal_id == "A"
        assert loaded_controller.reconciler.visual_state("A") == MarkerVisualState.SELECTED

    def test_search_drops_selection_when_focal_filtered_out(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("B")
        record = _record_events(loaded_controller)
        loaded_controller.set_search_query(SearchQuery(site="alpha"))
        assert loaded_controller.focal_id is None
        assert (GisEvents.SELECTION_CHANGED, None) in record

    def test_same_query_is_a_no_op(self, loaded_controller: SiteMapController) -> None:
        record = _record_events(loaded_controller)
        loaded_controller.set_search_query(SearchQuery())
        assert record == []

    def test_clearing_search_restores_dataset(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.set_search_query(SearchQuery(site="charlie"))
        loaded_controller.set_search_query(SearchQuery())
        assert len(loaded_controller.working_set) == 4


class TestSelection:
    """select() / reset() and the derived neighbour and marker state."""

    def test_select_finds_neighbors_and_styles_markers(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("A")
        assert loaded_controller.sm.is_selected
        assert [n.id for n in loaded_controller.neighbors.neighbors] == ["B"]
        assert loaded_controller.reconciler.visual_state("A") == MarkerVisualState.SELECTED
        assert loaded_controller.reconciler.visual_state("B") == MarkerVisualState.NEIGHBOR
        assert loaded_controller.reconciler.visual_state("C") == MarkerVisualState.DEFAULT
        assert loaded_controller.reconciler.open_popup_ids == {"A"}

    def test_select_frames_focal_site(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("C")
        assert loaded_controller.viewport.lat_lon == (10.0, 10.0)
        assert loaded_controller.viewport.zoom >= MapConfig.FOCUS_ZOOM

    def test_select_emits_selection_neighbors_history(self, loaded_controller: SiteMapController) -> None:
        record = _record_events(loaded_controller)
        loaded_controller.select("A")
        names = [name for name, _ in record]
        assert names == [
            GisEvents.SELECTION_CHANGED,
            GisEvents.NEIGHBORS_CHANGED,
            GisEvents.HISTORY_CHANGED,
            GisEvents.VIEWPORT_CHANGED,
        ]
        assert record[0][1] == "A"

    def test_switching_selection_recomputes_neighbors(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("A")
        loaded_controller.select("C")
        assert loaded_controller.focal_id == "C"
        assert loaded_controller.neighbors.is_empty
        assert loaded_controller.reconciler.visual_state("A") == MarkerVisualState.DEFAULT
        assert loaded_controller.reconciler.visual_state("B") == MarkerVisualState.DEFAULT

    def test_reselect_same_site_skips_history_but_reframes(
        self, loaded_controller: SiteMapController, backend: Any
    ) -> None:
        loaded_controller.select("A")
        loaded_controller.drain()
        loaded_controller.framer.frame_working_set(loaded_controller.working_set)
        record = _record_events(loaded_controller)

        loaded_controller.select("A")
        assert backend.history_calls == ["A"]
        assert [name for name, _ in record] == [GisEvents.VIEWPORT_CHANGED]
        assert loaded_controller.viewport.lat_lon == (0.0, 0.0)

    def test_select_site_without_coordinates_keeps_viewport(self, loaded_controller: SiteMapController) -> None:
        before = loaded_controller.viewport
        loaded_controller.select("D")
        assert loaded_controller.focal_id == "D"
        assert loaded_controller.viewport == before
        assert loaded_controller.neighbors.is_empty

    def test_select_unknown_id_resets_selection(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("A")
        loaded_controller.select("nope")
        assert loaded_controller.focal_id is None

    def test_select_none_when_unselected_is_ignored(self, loaded_controller: SiteMapController) -> None:
        record = _record_events(loaded_controller)
        loaded_controller.select(None)
        assert record == []
        assert loaded_controller.sm.is_unselected

    def test_reset_frames_working_set(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("C")
        loaded_controller.reset()
        assert loaded_controller.focal_id is None
        assert loaded_controller.viewport.zoom == MapConfig.NEAR_ZOOM
        assert loaded_controller.reconciler.open_popup_ids == set()

    def test_marker_activate_selects(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.reconciler.activate("B")
        assert loaded_controller.focal_id == "B"
        assert [n.id for n in loaded_controller.neighbors.neighbors] == ["A"]

    def test_hover_does_not_change_selection(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("A")
        loaded_controller.hover_enter("C")
        loaded_controller.hover_exit("C")
        assert loaded_controller.focal_id == "A"
        assert loaded_controller.reconciler.open_popup_ids == {"A"}


class TestPreviousView:
    """Double-click gesture: restore the view shown before the last reframing."""

    def test_restore_after_select(self, loaded_controller: SiteMapController) -> None:
        overview = loaded_controller.viewport
        loaded_controller.select("C")
        restored = loaded_controller.restore_previous_view()
        assert restored == overview
        assert loaded_controller.focal_id == "C"

    def test_restore_toggles(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("C")
        focused = loaded_controller.viewport
        loaded_controller.restore_previous_view()
        assert loaded_controller.restore_previous_view() == focused

    def test_nothing_to_restore(self, controller: SiteMapController) -> None:
        record = _record_events(controller)
        assert controller.restore_previous_view() is None
        assert record == []


class TestDatasetFetch:
    """refresh_dataset + drain, last request wins."""

    def test_refresh_applies_on_drain(self, controller: SiteMapController, backend: Any, abc_sites: list[SitePoint]) -> None:
        backend.dataset_responses.append(abc_sites)
        controller.refresh_dataset(filters="north")
        assert controller.working_set == []
        assert controller.drain() == 1
        assert [p.id for p in controller.working_set] == ["A", "B", "C"]
        assert backend.dataset_calls == ["north"]

    def test_stale_dataset_response_is_dropped(
        self, controller: SiteMapController, backend: Any, site_a: SitePoint, site_c: SitePoint
    ) -> None:
        backend.dataset_responses.extend([[site_a], [site_c]])
        first = controller.refresh_dataset(filters="first")
        second = controller.refresh_dataset(filters="second")
        assert second > first
        assert controller.drain() == 1
        assert [p.id for p in controller.working_set] == ["C"]

    def test_refresh_clears_selection_immediately(self, loaded_controller: SiteMapController) -> None:
        loaded_controller.select("A")
        loaded_controller.refresh_dataset(filters=None)
        assert loaded_controller.focal_id is None
        assert loaded_controller.reconciler.open_popup_ids == set()

    def test_fetch_failure_shows_empty_map(self, loaded_controller: SiteMapController, backend: Any) -> None:
        backend.dataset_responses.append(RuntimeError("statement timeout"))
        loaded_controller.refresh_dataset(filters=None)
        loaded_controller.drain()
        assert loaded_controller.working_set == []
        assert loaded_controller.reconciler.rendered_ids == set()
        assert "statement timeout" in loaded_controller.context.messages.error

    def test_successful_fetch_clears_error(self, controller: SiteMapController, backend: Any, abc_sites: list[SitePoint]) -> None:
        backend.dataset_responses.extend([RuntimeError("boom"), abc_sites])
        controller.refresh_dataset(filters=None)
        controller.drain()
        controller.refresh_dataset(filters=None)
        controller.drain()
        assert controller.context.messages.error == ""
        assert len(controller.working_set) == 3

    def test_refresh_without_fetch_raises(self) -> None:
        bare = SiteMapController(add_log_listener=False)
        with pytest.raises(RuntimeError, match="dataset_fetch"):
            bare.refresh_dataset(filters=None)


class TestHistoryFetch:
    """History for the focal site, dropped when superseded or deselected."""

    def test_history_applied_for_focal_site(
        self, loaded_controller: SiteMapController, backend: Any, history_samples: list[AvailabilitySample]
    ) -> None:
        backend.history_responses.append(history_samples)
        loaded_controller.select("A")
        assert loaded_controller.history == []
        assert loaded_controller.drain() == 1
        assert loaded_controller.history == history_samples

    def test_stale_history_dropped(
        self, loaded_controller: SiteMapController, backend: Any, history_samples: list[AvailabilitySample]
    ) -> None:
        backend.history_responses.extend([history_samples, history_samples[:1]])
        loaded_controller.select("A")
        loaded_controller.select("B")
        assert loaded_controller.drain() == 1
        assert backend.history_calls == ["A", "B"]
        assert loaded_controller.history == history_samples[:1]

    def test_history_dropped_after_reset(
        self, loaded_controller: SiteMapController, backend: Any, history_samples: list[AvailabilitySample]
    ) -> None:
        backend.history_responses.append(history_samples)
        loaded_controller.select("A")
        loaded_controller.reset()
        assert loaded_controller.drain() == 0
        assert loaded_controller.history == []

    def test_history_failure_leaves_empty_history(self, loaded_controller: SiteMapController, backend: Any) -> None:
        backend.history_responses.append(ConnectionError("down"))
        loaded_controller.select("A")
        assert loaded_controller.drain() == 1
        assert loaded_controller.history == []
        assert loaded_controller.focal_id == "A"

    def test_set_history_fetch_refetches_focal(self, loaded_controller: SiteMapController) -> None:
        calls: list[str] = []
        loaded_controller.select("B")
        loaded_controller.set_history_fetch(lambda site_id: calls.append(site_id) or [])
        assert calls == ["B"]

    def test_set_history_fetch_when_unselected_does_not_fetch(self, loaded_controller: SiteMapController) -> None:
        calls: list[str] = []
        loaded_controller.set_history_fetch(lambda site_id: calls.append(site_id) or [])
        assert calls == []


class TestThreadedFetcher:
    """Real worker threads; results still applied only by drain()."""

    def test_background_dataset_fetch(self, backend: Any, abc_sites: list[SitePoint]) -> None:
        backend.dataset_responses.append(abc_sites)
        controller = SiteMapController(
            dataset_fetch=backend.fetch_dataset,
            fetcher=BackgroundFetcher(max_workers=1),
            add_log_listener=False,
        )
        try:
            controller.refresh_dataset(filters=None)
            assert controller.fetcher.wait_idle(timeout=5)
            assert controller.working_set == []
            assert controller.drain() == 1
            assert len(controller.working_set) == 3
        finally:
            controller.shutdown()


def test_repr_mentions_state(loaded_controller: SiteMapController) -> None:
    loaded_controller.select("A")
    assert "Selected" in repr(loaded_controller)
    assert "focal=A" in repr(loaded_controller)
