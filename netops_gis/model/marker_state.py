"""MarkerVisualState - How a site marker is drawn in the current pass."""

from collections.abc import Container
from enum import Enum

from netops_gis.constants import MarkerConfig


class MarkerVisualState(Enum):
    """Visual state of a marker, derived fresh on every reconciliation pass.

    Precedence: SELECTED > NEIGHBOR > DEFAULT.
    """

    DEFAULT = "default"
    SELECTED = "selected"
    NEIGHBOR = "neighbor"

    @staticmethod
    def derive(point_id: str, focal_id: str | None, neighbor_ids: Container[str]) -> "MarkerVisualState":
        """Derive the visual state of one marker from the selection."""
        if focal_id is not None and point_id == focal_id:
            return MarkerVisualState.SELECTED
        if point_id in neighbor_ids:
            return MarkerVisualState.NEIGHBOR
        return MarkerVisualState.DEFAULT

    @property
    def color(self) -> list[int]:
        """RGBA fill color for pydeck."""
        return {
            MarkerVisualState.DEFAULT: MarkerConfig.DEFAULT_COLOR,
            MarkerVisualState.SELECTED: MarkerConfig.SELECTED_COLOR,
            MarkerVisualState.NEIGHBOR: MarkerConfig.NEIGHBOR_COLOR,
        }[self]

    @property
    def hex_color(self) -> str:
        """Hex color for tables and legends."""
        return {
            MarkerVisualState.DEFAULT: MarkerConfig.DEFAULT_HEX,
            MarkerVisualState.SELECTED: MarkerConfig.SELECTED_HEX,
            MarkerVisualState.NEIGHBOR: MarkerConfig.NEIGHBOR_HEX,
        }[self]

    @property
    def radius_px(self) -> int:
        return {
            MarkerVisualState.DEFAULT: MarkerConfig.DEFAULT_RADIUS_PX,
            MarkerVisualState.SELECTED: MarkerConfig.SELECTED_RADIUS_PX,
            MarkerVisualState.NEIGHBOR: MarkerConfig.NEIGHBOR_RADIUS_PX,
        }[self]
