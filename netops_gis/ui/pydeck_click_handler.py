"""Pydeck map rendering with click capture through streamlit-deckgl.

st.pydeck_chart only reports object selections; st_deckgl returns the full
deck.gl onClick event, including clicks on the empty map, which the page
uses to clear the selection.
"""

import logging
from dataclasses import dataclass
from typing import Any

import pydeck as pdk
from streamlit_deckgl import st_deckgl  # type: ignore[import-untyped]

from netops_gis.constants import ChartConfig

logger = logging.getLogger(__name__)


@dataclass
class PydeckClickResult:
    """Raw click returned by the map component.

    Attributes:
        clicked_object: Picked row of a pickable layer, or None for a map click
        clicked_coordinate: [lon, lat] of the click
    """

    clicked_object: dict[str, Any] | None
    clicked_coordinate: list[float] | None

    @property
    def is_object_click(self) -> bool:
        return self.clicked_object is not None

    @property
    def is_map_click(self) -> bool:
        """True if empty map space was clicked."""
        return self.clicked_object is None and self.clicked_coordinate is not None

    @staticmethod
    def empty() -> "PydeckClickResult":
        return PydeckClickResult(clicked_object=None, clicked_coordinate=None)


def parse_click_event(event: Any) -> PydeckClickResult:
    """Split a st_deckgl event into picked object and coordinate.

    st_deckgl spreads the picked row into the event dict (there is no
    "object" key). Rows from our layers carry a "type" field:
    - Map click: {coordinate: [lon, lat], eventType: "click"}
    - Site click: {type: "site", id: ..., position: [...], coordinate: [...], eventType: "click"}
    """
    if not event or not isinstance(event, dict):
        return PydeckClickResult.empty()

    clicked_coordinate: list[float] | None = None
    coord = event.get("coordinate")
    if isinstance(coord, (list, tuple)) and len(coord) >= 2:
        clicked_coordinate = [float(coord[0]), float(coord[1])]

    clicked_object: dict[str, Any] | None = None
    if event.get("type") and event["type"] != "click":
        clicked_object = {k: v for k, v in event.items() if k not in ("coordinate", "eventType")}

    return PydeckClickResult(clicked_object=clicked_object, clicked_coordinate=clicked_coordinate)


def render_pydeck_map(deck: pdk.Deck, key: str, height: int = ChartConfig.MAP_HEIGHT) -> PydeckClickResult:
    """Render the deck and return the last click the component reported.

    The component repeats its last event on every rerun; callers deduplicate
    with ClickDetector.
    """
    # MUST pass events=['click'] to enable click detection
    event = st_deckgl(deck, key=key, height=height, events=["click"])
    result = parse_click_event(event)
    if result.is_object_click:
        logger.debug(f"Object click: type={event.get('type')}, id={event.get('id')}")
    return result
