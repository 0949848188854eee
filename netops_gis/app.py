"""GIS - Network Sites: map, neighbours and availability history.

Filter sites by sub-region, grid and district, narrow them with free-text
search, click a site to highlight its neighbours within 5 km and chart its
availability history.

Run: streamlit run netops_gis/app.py
Requires SUPABASE_URL and SUPABASE_ANON_KEY in the environment.
"""

import logging
import traceback
from functools import partial

import streamlit as st

from netops_gis.constants import AppConfig, ChartConfig, DataConfig
from netops_gis.data.gis_client import SupabaseRpcClient
from netops_gis.model.message import FetchFailedMessage, NoDataMessage, NoHistoryMessage
from netops_gis.ui import (
    AvailabilityChart,
    BackgroundFetcher,
    ClickDetector,
    GisEvents,
    MapRenderer,
    SidebarRenderer,
    SiteMapController,
    bump_map_version,
    render_neighbors_table,
    render_sites_table,
    trigger_rerun,
)
from netops_gis.ui.pydeck_click_handler import render_pydeck_map

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# SESSION STATE
# =============================================================================


def init_session_state() -> None:
    """Create the backend client and the map controller once per session."""
    if "client" not in st.session_state:
        st.session_state.client = SupabaseRpcClient.from_env()

    if "controller" not in st.session_state:
        client: SupabaseRpcClient = st.session_state.client
        controller = SiteMapController(
            dataset_fetch=client.fetch_map_points,
            history_fetch=partial(client.fetch_timeseries, days=DataConfig.DEFAULT_DAYS),
            fetcher=BackgroundFetcher(max_workers=2),
        )
        # A new frame only takes effect on a freshly mounted map component
        controller.events.subscribe(GisEvents.VIEWPORT_CHANGED, lambda frame: bump_map_version())
        st.session_state.controller = controller
        st.session_state.map_renderer = MapRenderer(reconciler=controller.reconciler)
        st.session_state.history_days = DataConfig.DEFAULT_DAYS
        st.session_state.last_filters = None

    if "map_version" not in st.session_state:
        st.session_state.map_version = 0


def reset_ui_state() -> None:
    """Drop the controller so the next rerun starts from a fresh page."""
    logger.info("Resetting UI state due to error recovery")
    controller: SiteMapController | None = st.session_state.get("controller")
    if controller is not None:
        controller.shutdown()
    for key in ("controller", "map_renderer", "last_filters"):
        st.session_state.pop(key, None)
    st.session_state.map_version = st.session_state.get("map_version", 0) + 1


def apply_background_results(controller: SiteMapController) -> None:
    """Apply the fetch completions that already arrived. Never blocks."""
    applied = controller.drain()
    if applied:
        logger.info(f"[FETCH] Applied {applied} background result(s)")


def rerun_when_fetched(controller: SiteMapController) -> None:
    """Once the page is drawn, wait for running fetches and rerun to show them.

    Called last, so the previous map and tables stay visible while the
    fetch runs on the worker pool.
    """
    if not controller.fetcher.busy:
        return
    with st.spinner("Loading sites..."):
        controller.fetcher.wait_idle(timeout=DataConfig.TIMEOUT_S)
    trigger_rerun()


# =============================================================================
# MAP
# =============================================================================


def _render_map(controller: SiteMapController) -> None:
    """Render markers and route clicks to the controller."""
    renderer: MapRenderer = st.session_state.map_renderer
    deck = renderer.render(frame=controller.viewport)

    map_key = f"gis_map_{st.session_state.map_version}"
    click_result = render_pydeck_map(deck=deck, key=map_key, height=ChartConfig.MAP_HEIGHT)

    detector = ClickDetector(dedup=controller.context.click_dedup)
    click = detector.detect(
        clicked_object=click_result.clicked_object,
        clicked_coordinate=click_result.clicked_coordinate,
    )
    if click.is_site:
        # Same path as a marker's activate listener
        controller.reconciler.activate(click.site_id)
        trigger_rerun()
    elif click.is_valid and controller.sm.is_selected:
        controller.reset()
        trigger_rerun()


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Application entry point."""
    st.set_page_config(page_title=AppConfig.TITLE, page_icon=AppConfig.ICON, layout=AppConfig.LAYOUT)
    st.title(f"{AppConfig.ICON} {AppConfig.TITLE}")

    try:
        init_session_state()
    except RuntimeError as e:
        st.error(str(e))
        return

    try:
        _run_app_ui()
        rerun_when_fetched(st.session_state.controller)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        logger.error(f"[UI] UI error caught: {error_msg}\n{traceback.format_exc()}")
        st.error(f"⚠️ [UI] Something went wrong: {error_msg}")
        reset_ui_state()
        if st.button("🔄 Reset and Continue", type="primary"):
            st.rerun()


def _run_app_ui() -> None:
    """Run the main application UI. Separated for error handling wrapper."""
    controller: SiteMapController = st.session_state.controller
    client: SupabaseRpcClient = st.session_state.client
    logger.info(f"[MAIN] Render cycle starting: {controller!r}, map_version={st.session_state.map_version}")

    sidebar = SidebarRenderer(client=client, controller=controller).render()

    if sidebar.filters != st.session_state.last_filters:
        st.session_state.last_filters = sidebar.filters
        controller.refresh_dataset(sidebar.filters)
    if sidebar.days != st.session_state.history_days:
        st.session_state.history_days = sidebar.days
        controller.set_history_fetch(partial(client.fetch_timeseries, days=sidebar.days))

    apply_background_results(controller)

    if controller.context.messages.error:
        FetchFailedMessage(what="map points", error=controller.context.messages.error).display()
        controller.context.messages.error = ""

    controller.set_search_query(sidebar.query)
    if sidebar.clear_clicked:
        controller.reset()
    if sidebar.previous_view_clicked:
        controller.restore_previous_view()

    _render_map(controller)

    if not controller.working_set:
        NoDataMessage(searching=not controller.query.is_empty).display()

    col_sites, col_neighbors = st.columns([3, 2])
    with col_sites:
        picked = render_sites_table(points=controller.working_set, key=f"sites_table_{st.session_state.map_version}")
        if picked is not None and picked != controller.focal_id:
            controller.select(picked)
            trigger_rerun()

    if controller.focal_id is None:
        return

    with col_neighbors:
        render_neighbors_table(focal_id=controller.focal_id, neighbors=controller.neighbors)

    chart = AvailabilityChart(width=ChartConfig.WIDTH, height=ChartConfig.HEIGHT)
    if controller.history:
        st.plotly_chart(chart.render(samples=controller.history, site_id=controller.focal_id), key="history_chart")
    else:
        NoHistoryMessage(site_id=controller.focal_id, days=st.session_state.history_days).display()


if __name__ == "__main__":
    main()
