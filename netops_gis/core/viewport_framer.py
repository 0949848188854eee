"""ViewportFramer - Centroid/zoom heuristics and "previous view" memory.

Frames the map around the working set (or a single selected site) and keeps
the view that was shown before the last reframing, so a secondary gesture
(double click) can go back to it. Memory depth is one view, not a history.
"""

import logging
from collections.abc import Iterable
from math import floor, log, log2, pi, radians, sin

from netops_gis.constants import MapConfig
from netops_gis.core.geo_calculator import GeoCalculator
from netops_gis.model.site_point import SitePoint
from netops_gis.model.viewport import ViewportFrame

logger = logging.getLogger(__name__)

# Web Mercator is undefined at the poles
MAX_MERCATOR_LAT = 85.05112878


def centroid(points: Iterable[SitePoint]) -> tuple[float, float]:
    """Arithmetic mean (lat, lon) of coordinate-valid points.

    Returns the configured fallback center when no point qualifies, so the
    result is never NaN.
    """
    coords = [p.lat_lon for p in points if p.has_coordinates]
    if not coords:
        return (MapConfig.FALLBACK_CENTER_LAT, MapConfig.FALLBACK_CENTER_LON)
    lat = sum(c[0] for c in coords) / len(coords)
    lon = sum(c[1] for c in coords) / len(coords)
    return (lat, lon)


def zoom_heuristic(count: int) -> int:
    """Discrete zoom bucket by point count (more points = farther out)."""
    if count > MapConfig.FAR_THRESHOLD:
        return MapConfig.FAR_ZOOM
    if count > MapConfig.MEDIUM_THRESHOLD:
        return MapConfig.MEDIUM_ZOOM
    return MapConfig.NEAR_ZOOM


def _mercator_y(lat: float) -> float:
    """Normalized Web Mercator y (0 at the equator, +-0.5 near the poles)."""
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
    s = sin(radians(lat))
    return log((1 + s) / (1 - s)) / (4 * pi)


def fit_bounds_zoom(
    points: Iterable[SitePoint],
    width_px: int = MapConfig.VIEWPORT_WIDTH_PX,
    height_px: int = MapConfig.VIEWPORT_HEIGHT_PX,
    padding_px: int = MapConfig.VIEWPORT_PADDING_PX,
) -> int:
    """Largest integer zoom at which the bounding box of points fits the viewport.

    A single point (or a set with no extent) gets the focus zoom; no valid
    points gets the initial zoom. Result is clamped to [MIN_ZOOM, MAX_ZOOM].
    """
    box = GeoCalculator.bounding_box(p.lat_lon for p in points if p.has_coordinates)
    if box is None:
        return MapConfig.INITIAL_ZOOM
    lat_min, lon_min, lat_max, lon_max = box

    lon_fraction = (lon_max - lon_min) / 360.0
    y_fraction = _mercator_y(lat_max) - _mercator_y(lat_min)
    if lon_fraction <= 0 and y_fraction <= 0:
        return MapConfig.FOCUS_ZOOM

    avail_w = max(1, width_px - 2 * padding_px)
    avail_h = max(1, height_px - 2 * padding_px)
    candidates = []
    if lon_fraction > 0:
        candidates.append(log2(avail_w / (lon_fraction * MapConfig.TILE_SIZE_PX)))
    if y_fraction > 0:
        candidates.append(log2(avail_h / (y_fraction * MapConfig.TILE_SIZE_PX)))
    zoom = floor(min(candidates))
    return max(MapConfig.MIN_ZOOM, min(MapConfig.MAX_ZOOM, zoom))


class ViewportFramer:
    """Owns the current map frame and the one-deep previous view.

    Example:
        framer = ViewportFramer()
        framer.frame_working_set(points=sites)
        framer.frame_focus(point=selected)
        framer.restore_previous()  # back to the working-set frame
    """

    def __init__(
        self,
        initial: ViewportFrame | None = None,
        use_bounds_fitting: bool = MapConfig.USE_BOUNDS_FITTING,
    ) -> None:
        self.current = initial or ViewportFrame(
            center_lat=MapConfig.FALLBACK_CENTER_LAT,
            center_lon=MapConfig.FALLBACK_CENTER_LON,
            zoom=MapConfig.INITIAL_ZOOM,
        )
        self.previous: ViewportFrame | None = None
        self.use_bounds_fitting = use_bounds_fitting

    def _move_to(self, frame: ViewportFrame) -> ViewportFrame:
        """Record the current frame as previous, then switch to frame."""
        self.previous = self.current
        self.current = frame
        logger.debug(f"Viewport {self.previous} -> {frame}")
        return frame

    def frame_working_set(self, points: Iterable[SitePoint]) -> ViewportFrame:
        """Frame the map around all coordinate-valid points."""
        valid = [p for p in points if p.has_coordinates]
        lat, lon = centroid(valid)
        if self.use_bounds_fitting:
            zoom = fit_bounds_zoom(valid)
        else:
            zoom = zoom_heuristic(len(valid))
        return self._move_to(ViewportFrame(center_lat=lat, center_lon=lon, zoom=zoom))

    def frame_focus(self, point: SitePoint, min_zoom: int = MapConfig.FOCUS_ZOOM) -> ViewportFrame | None:
        """Center on one site, zooming in to at least min_zoom.

        Returns None (and leaves the view untouched) for a site without
        coordinates.
        """
        if not point.has_coordinates:
            return None
        lat, lon = point.lat_lon
        zoom = min(MapConfig.MAX_ZOOM, max(self.current.zoom, min_zoom))
        return self._move_to(ViewportFrame(center_lat=lat, center_lon=lon, zoom=zoom))

    def restore_previous(self) -> ViewportFrame | None:
        """Go back to the previously recorded view.

        The view being left becomes the new previous view, so repeating the
        gesture toggles between the two. Returns None when nothing is recorded.
        """
        if self.previous is None:
            return None
        return self._move_to(self.previous)

    def set_current(self, frame: ViewportFrame) -> None:
        """Report a view change made by the user (pan/zoom) without recording history."""
        self.current = frame
