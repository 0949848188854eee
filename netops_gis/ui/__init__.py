"""User interface components for the GIS site map.

File Structure (layout-based naming):
- left_panel.py: Sidebar with picklists, search boxes and selection controls
- map_renderer.py: Pydeck map with reconciled site markers
- site_tables.py: Sites and neighbours tables under the map
- history_chart.py: Plotly availability history chart

Core Components:
- state_machine.py: SelectionStateMachine (2 states) + GisContext
- marker_reconciler.py: Owns marker handles, popups and their listeners
- site_map_controller.py: Page-facing orchestration and async fetches
- request_tracker.py: Last-request-wins generations and background fetcher
- events.py: Named-event subscription for the UI host
"""

from netops_gis.ui.click_detector import ClickDetector
from netops_gis.ui.events import EventBus, GisEvents, MarkerEvents
from netops_gis.ui.history_chart import AvailabilityChart
from netops_gis.ui.infra import bump_map_version, trigger_rerun
from netops_gis.ui.left_panel import SidebarRenderer
from netops_gis.ui.map_renderer import MapRenderer
from netops_gis.ui.marker_reconciler import MarkerHandle, MarkerReconciler, ReconcileResult
from netops_gis.ui.request_tracker import BackgroundFetcher, RequestGeneration
from netops_gis.ui.site_map_controller import SiteMapController
from netops_gis.ui.site_tables import render_neighbors_table, render_sites_table
from netops_gis.ui.state_machine import GisContext, SelectionStateMachine, TransitionLogListener

__all__ = [
    "SelectionStateMachine",
    "GisContext",
    "TransitionLogListener",
    "SiteMapController",
    "MarkerReconciler",
    "MarkerHandle",
    "ReconcileResult",
    "EventBus",
    "GisEvents",
    "MarkerEvents",
    "RequestGeneration",
    "BackgroundFetcher",
    "MapRenderer",
    "AvailabilityChart",
    "SidebarRenderer",
    "ClickDetector",
    "render_sites_table",
    "render_neighbors_table",
    "bump_map_version",
    "trigger_rerun",
]
