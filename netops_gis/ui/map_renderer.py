"""MapRenderer - Pydeck rendering of the reconciled site markers.

Reads the MarkerReconciler's handles and the ViewportFramer's current frame;
never creates or mutates markers itself.

Layers (back to front):
- sites: ScatterplotLayer, one pickable dot per handle, colored by visual state
- popups: TextLayer labels for handles whose popup is open (selected site)

Hover popups use the deck.gl tooltip with the same HTML as the handle's
popup_html(). Coordinates are [lon, lat]; colors are RGBA lists.
"""

import logging
from typing import Any

import pydeck as pdk

from netops_gis.constants import ClickConfig, MapConfig, MarkerConfig
from netops_gis.model.marker_state import MarkerVisualState
from netops_gis.model.viewport import ViewportFrame
from netops_gis.ui.marker_reconciler import MarkerReconciler

logger = logging.getLogger(__name__)

# Draw order within the sites layer: later rows are drawn on top
_STATE_ORDER = {
    MarkerVisualState.DEFAULT.value: 0,
    MarkerVisualState.NEIGHBOR.value: 1,
    MarkerVisualState.SELECTED.value: 2,
}


class MapRenderer:
    """Renders reconciled markers on a Pydeck map.

    Example:
        renderer = MapRenderer(reconciler=controller.reconciler)
        deck = renderer.render(frame=controller.viewport)
        render_pydeck_map(deck=deck, key="gis_map")
    """

    def __init__(
        self,
        reconciler: MarkerReconciler,
        pitch: float = MapConfig.PITCH,
        bearing: float = MapConfig.BEARING,
    ) -> None:
        self.reconciler = reconciler
        self.pitch = pitch
        self.bearing = bearing

    def get_view_state(self, frame: ViewportFrame) -> pdk.ViewState:
        """Create Pydeck ViewState from a viewport frame."""
        return pdk.ViewState(
            latitude=frame.center_lat,
            longitude=frame.center_lon,
            zoom=frame.zoom,
            pitch=self.pitch,
            bearing=self.bearing,
        )

    def site_rows(self) -> list[dict[str, Any]]:
        """Layer data for the sites layer, selected/neighbour markers last."""
        rows = [{"type": ClickConfig.TYPE_SITE, **row} for row in self.reconciler.pick_payload()]
        return sorted(rows, key=lambda row: _STATE_ORDER[row["state"]])

    def render(self, frame: ViewportFrame) -> pdk.Deck:
        """Build the deck for the current markers and frame."""
        rows = self.site_rows()
        layers = [self._create_site_layer(rows=rows)]
        popup_rows = [row for row in rows if row["popup_open"]]
        if popup_rows:
            layers.append(self._create_popup_layer(rows=popup_rows))

        logger.debug(f"Rendering {len(rows)} markers ({len(popup_rows)} popups) at {frame}")
        return pdk.Deck(
            map_provider=MapConfig.MAP_PROVIDER,
            map_style=MapConfig.MAP_STYLE,
            initial_view_state=self.get_view_state(frame=frame),
            layers=layers,
            tooltip=self._create_tooltip_config(),
            parameters={"pickingRadius": ClickConfig.PICKING_RADIUS_PX},
        )

    @staticmethod
    def _create_site_layer(rows: list[dict[str, Any]]) -> pdk.Layer:
        return pdk.Layer(
            "ScatterplotLayer",
            rows,
            id=ClickConfig.LAYER_ID_SITES,
            get_position="position",
            get_fill_color="color",
            get_radius="radius",
            radius_units="pixels",
            get_line_color=MarkerConfig.BORDER_COLOR,
            stroked=True,
            line_width_min_pixels=1,
            pickable=True,
            auto_highlight=True,
        )

    @staticmethod
    def _create_popup_layer(rows: list[dict[str, Any]]) -> pdk.Layer:
        """Persistent label for open popups (the tooltip disappears on hover-out)."""
        return pdk.Layer(
            "TextLayer",
            rows,
            id=ClickConfig.LAYER_ID_POPUPS,
            get_position="position",
            get_text="id",
            get_size=14,
            get_color=[17, 24, 39, 255],
            get_pixel_offset=[0, -18],
            background=True,
            get_background_color=[255, 255, 255, 230],
            pickable=False,
        )

    @staticmethod
    def _create_tooltip_config() -> dict[str, str | dict[str, str]]:
        """Hover popup: the handle's popup HTML."""
        return {
            "html": "{popup_html}",
            "style": {
                "backgroundColor": "rgba(255, 255, 255, 0.95)",
                "color": "#333",
                "padding": "6px 10px",
                "borderRadius": "4px",
            },
        }
