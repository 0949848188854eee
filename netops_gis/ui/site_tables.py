"""Site and neighbour tables under the map.

The sites table lists the whole working set, including sites without
coordinates (text-only view). Picking a row selects that site like a marker
click. The neighbours table lists the focal site's neighbours nearest first.
"""

import logging
from typing import Any

import streamlit as st

from netops_gis.constants import SearchConfig
from netops_gis.model.message import NoNeighborsMessage
from netops_gis.model.neighbor_result import NeighborResult
from netops_gis.model.site_point import SitePoint

logger = logging.getLogger(__name__)

_LAST_PICK_KEY = "_sites_table_last_pick"


def site_row(point: SitePoint) -> dict[str, Any]:
    missing = SearchConfig.MISSING
    return {
        "Site": point.id,
        "Name": point.name or missing,
        "Class": point.classification or missing,
        "District": point.district or missing,
        "Grid": point.grid or missing,
        "Address": point.address or missing,
        "Lat": round(point.lat, 5) if point.has_coordinates else None,
        "Lon": round(point.lon, 5) if point.has_coordinates else None,
    }


def neighbor_rows(neighbors: NeighborResult) -> list[dict[str, Any]]:
    return [
        {**site_row(n.point), "Distance (km)": round(n.distance_km, 2)}
        for n in neighbors.neighbors
    ]


def render_sites_table(points: list[SitePoint], key: str) -> str | None:
    """Render the working set; return a newly picked site id, else None."""
    st.subheader(f"Sites ({len(points)})")
    event = st.dataframe(
        [site_row(p) for p in points],
        hide_index=True,
        use_container_width=True,
        on_select="rerun",
        selection_mode="single-row",
        key=key,
    )
    rows = event.selection.rows if event is not None else []
    picked = points[rows[0]].id if rows and rows[0] < len(points) else None
    # The widget keeps its selection across reruns; only a change is a new pick
    if picked == st.session_state.get(_LAST_PICK_KEY):
        return None
    st.session_state[_LAST_PICK_KEY] = picked
    if picked is not None:
        logger.info(f"[TABLE] picked {picked}")
    return picked


def render_neighbors_table(focal_id: str, neighbors: NeighborResult) -> None:
    st.subheader(f"Neighbours of {focal_id} within {neighbors.radius_km:g} km")
    if neighbors.is_empty:
        NoNeighborsMessage(radius_km=neighbors.radius_km).display()
        return
    st.dataframe(neighbor_rows(neighbors), hide_index=True, use_container_width=True)
