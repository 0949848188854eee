"""NeighborFinder - Radius search over the working set.

Linear scan over the dataset (hundreds to low thousands of sites), using the
vectorised haversine from GeoCalculator. No spatial index is needed at this
scale.
"""

import logging
from collections.abc import Iterable

import numpy as np

from netops_gis.constants import NeighborConfig
from netops_gis.core.geo_calculator import GeoCalculator
from netops_gis.model.neighbor_result import Neighbor, NeighborResult
from netops_gis.model.site_point import SitePoint

logger = logging.getLogger(__name__)


class NeighborFinder:
    """Finds sites within a radius of a focal site.

    Example:
        finder = NeighborFinder(radius_km=5.0)
        result = finder.find(focal=site, dataset=sites)
        [n.id for n in result.neighbors]
    """

    def __init__(
        self,
        radius_km: float = NeighborConfig.RADIUS_KM,
        cap: int | None = NeighborConfig.RENDER_CAP,
    ) -> None:
        """Initialize finder.

        Args:
            radius_km: Inclusive search radius in kilometers
            cap: Maximum neighbours returned (None = unlimited)
        """
        if radius_km < 0:
            raise ValueError(f"radius_km must be >= 0, got {radius_km}")
        if cap is not None and cap < 0:
            raise ValueError(f"cap must be >= 0 or None, got {cap}")
        self.radius_km = radius_km
        self.cap = cap

    def find(self, focal: SitePoint | None, dataset: Iterable[SitePoint]) -> NeighborResult:
        """Return neighbours of focal within the radius, nearest first.

        The focal id is never part of the result, coordinate-less points are
        skipped, and an empty result is returned (not raised) when the focal
        site has no coordinates or nothing is in range.
        """
        if focal is None:
            return NeighborResult.empty(radius_km=self.radius_km, cap=self.cap)
        if not focal.has_coordinates:
            logger.debug(f"Focal site {focal.id} has no coordinates, no neighbours")
            return NeighborResult.empty(focal_id=focal.id, radius_km=self.radius_km, cap=self.cap)

        candidates = [p for p in dataset if p.id != focal.id and p.has_coordinates]
        if not candidates:
            return NeighborResult.empty(focal_id=focal.id, radius_km=self.radius_km, cap=self.cap)

        focal_lat, focal_lon = focal.lat_lon
        lats = np.array([p.lat for p in candidates], dtype=float)
        lons = np.array([p.lon for p in candidates], dtype=float)
        distances = GeoCalculator.distances_km_from(lat=focal_lat, lon=focal_lon, lats=lats, lons=lons)

        in_range = np.flatnonzero(distances <= self.radius_km)
        order = in_range[np.argsort(distances[in_range], kind="stable")]
        if self.cap is not None:
            order = order[: self.cap]

        neighbors = tuple(Neighbor(point=candidates[i], distance_km=float(distances[i])) for i in order)
        logger.debug(f"{len(neighbors)} neighbours within {self.radius_km} km of {focal.id}")
        return NeighborResult(focal_id=focal.id, neighbors=neighbors, radius_km=self.radius_km, cap=self.cap)
