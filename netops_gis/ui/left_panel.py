"""Sidebar UI renderer for the GIS site map.

Renders the left sidebar with:
- Cascading picklists (sub-region -> grid -> district) and site name suggestions
- Search boxes (site composite, address) narrowing the map in memory
- History window (days)
- Selection context message and the Clear / Previous view buttons

Picklist calls are cached with st.cache_data; the client argument is
underscore-prefixed so Streamlit does not try to hash it.
"""

import logging
from dataclasses import dataclass

import streamlit as st

from netops_gis.constants import DataConfig
from netops_gis.core.fuzzy_matcher import SearchQuery
from netops_gis.data.gis_client import GisFilters, SupabaseRpcClient
from netops_gis.model.message import SelectedSiteMessage, SelectSiteHintMessage
from netops_gis.ui.site_map_controller import SiteMapController

logger = logging.getLogger(__name__)

ANY = "(any)"


@st.cache_data(ttl=600, show_spinner=False)
def _subregions(_client: SupabaseRpcClient) -> list[str]:
    return _client.fetch_subregions()


@st.cache_data(ttl=600, show_spinner=False)
def _grids(_client: SupabaseRpcClient, subregion: str | None) -> list[str]:
    return _client.fetch_grids(subregion)


@st.cache_data(ttl=600, show_spinner=False)
def _districts(_client: SupabaseRpcClient, subregion: str | None, grid: str | None) -> list[str]:
    return _client.fetch_districts(subregion, grid)


@st.cache_data(ttl=120, show_spinner=False)
def _sitenames(
    _client: SupabaseRpcClient, query: str, subregion: str | None, grid: str | None, district: str | None
) -> list[str]:
    return _client.search_sitenames(query, subregion=subregion, grid=grid, district=district)


def _picked(value: str | None) -> str | None:
    return None if value in (None, ANY) else value


@dataclass(frozen=True)
class SidebarResult:
    """What the user chose in the sidebar on this rerun."""

    filters: GisFilters
    query: SearchQuery
    days: int
    clear_clicked: bool = False
    previous_view_clicked: bool = False


class SidebarRenderer:
    """Renders the sidebar and returns the user's choices.

    Example:
        result = SidebarRenderer(client=client, controller=controller).render()
        controller.set_search_query(result.query)
    """

    def __init__(self, client: SupabaseRpcClient, controller: SiteMapController) -> None:
        self.client = client
        self.controller = controller

    def render(self) -> SidebarResult:
        with st.sidebar:
            st.header("Filters")
            filters = self._render_filters()

            st.header("Search")
            site_text = st.text_input("Site", key="search_site", placeholder="name, id, grid, district...")
            address_text = st.text_input("Address", key="search_address", placeholder="street, area...")
            query = SearchQuery(site=site_text, address=address_text)

            days = st.selectbox(
                "History window (days)",
                options=list(DataConfig.DAY_OPTIONS),
                index=DataConfig.DAY_OPTIONS.index(DataConfig.DEFAULT_DAYS),
                key="f_history_days",
            )

            st.divider()
            self._render_context_message()
            col_clear, col_prev = st.columns(2)
            with col_clear:
                clear_clicked = st.button(
                    "✖️ Clear", use_container_width=True, disabled=not self.controller.sm.is_selected
                )
            with col_prev:
                previous_view_clicked = st.button(
                    "↩️ Previous view", use_container_width=True, disabled=self.controller.framer.previous is None
                )

        return SidebarResult(
            filters=filters,
            query=query,
            days=int(days),
            clear_clicked=clear_clicked,
            previous_view_clicked=previous_view_clicked,
        )

    def _render_filters(self) -> GisFilters:
        subregions = _subregions(self.client)
        default_index = 0
        if DataConfig.DEFAULT_SUBREGION in subregions:
            default_index = subregions.index(DataConfig.DEFAULT_SUBREGION) + 1
        subregion = _picked(st.selectbox("Sub-region", [ANY, *subregions], index=default_index, key="f_subregion"))
        grid = _picked(st.selectbox("Grid", [ANY, *_grids(self.client, subregion)], key="f_grid"))
        district = _picked(st.selectbox("District", [ANY, *_districts(self.client, subregion, grid)], key="f_district"))

        typed = st.text_input("Site name lookup", key="f_site_lookup").strip()
        sitename = None
        if typed:
            suggestions = _sitenames(self.client, typed, subregion, grid, district)
            sitename = _picked(st.selectbox("Matching sites", [ANY, *suggestions], key="f_sitename"))

        return GisFilters(subregion=subregion, grid=grid, district=district, sitename=sitename)

    def _render_context_message(self) -> None:
        controller = self.controller
        if controller.sm.is_selected and controller.focal_id is not None:
            SelectedSiteMessage(
                site_id=controller.focal_id,
                neighbor_count=len(controller.neighbors),
                radius_km=controller.finder.radius_km,
            ).display()
        else:
            SelectSiteHintMessage(site_count=len(controller.working_set)).display()
