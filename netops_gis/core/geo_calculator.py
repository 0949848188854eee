"""Great-circle distance calculations on Earth's surface.

Provides geographic helper functions for site proximity:
- Distance calculation (Haversine formula), scalar and vectorised
- Bounding box of a coordinate set

All calculations use a spherical Earth approximation (R = 6,371 km).
Coordinates are (lat, lon) pairs in decimal degrees.
"""

from collections.abc import Iterable
from math import atan2, cos, radians, sin, sqrt

import numpy as np

# Earth's radius in kilometers (spherical approximation)
EARTH_RADIUS_KM = 6371.0

# (lat, lon) in decimal degrees
LatLon = tuple[float, float]


class GeoCalculator:
    """Static methods for geodesic calculations on Earth's surface.

    Callers must pre-filter missing coordinates; every method is total
    for finite inputs.
    """

    EARTH_RADIUS_KM = EARTH_RADIUS_KM

    @staticmethod
    def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate great-circle distance between two points using Haversine formula.

        Args:
            lat1: Latitude of first point (decimal degrees)
            lon1: Longitude of first point (decimal degrees)
            lat2: Latitude of second point (decimal degrees)
            lon2: Longitude of second point (decimal degrees)

        Returns:
            Distance in kilometers (never negative).
        """
        dlat = radians(lat2 - lat1)
        dlon = radians(lon2 - lon1)
        a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
        # Rounding can push a marginally above 1 for antipodal points
        a = min(1.0, max(0.0, a))
        return EARTH_RADIUS_KM * 2 * atan2(sqrt(a), sqrt(1 - a))

    @staticmethod
    def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Same as haversine_distance_km, in meters."""
        return GeoCalculator.haversine_distance_km(lat1=lat1, lon1=lon1, lat2=lat2, lon2=lon2) * 1000.0

    @staticmethod
    def distances_km_from(
        lat: float,
        lon: float,
        lats: np.ndarray,
        lons: np.ndarray,
    ) -> np.ndarray:
        """Vectorised haversine distance from one point to many.

        Args:
            lat: Latitude of the origin (decimal degrees)
            lon: Longitude of the origin (decimal degrees)
            lats: Array of target latitudes
            lons: Array of target longitudes (same shape as lats)

        Returns:
            Array of distances in kilometers, same shape as lats.
        """
        lat_rad = np.radians(lat)
        lats_rad = np.radians(np.asarray(lats, dtype=float))
        dlat = lats_rad - lat_rad
        dlon = np.radians(np.asarray(lons, dtype=float) - lon)
        a = np.sin(dlat / 2) ** 2 + np.cos(lat_rad) * np.cos(lats_rad) * np.sin(dlon / 2) ** 2
        a = np.clip(a, 0.0, 1.0)
        return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    @staticmethod
    def bounding_box(coords: Iterable[LatLon]) -> tuple[float, float, float, float] | None:
        """Return (lat_min, lon_min, lat_max, lon_max), or None for no coordinates."""
        coords = list(coords)
        if not coords:
            return None
        lats = [c[0] for c in coords]
        lons = [c[1] for c in coords]
        return (min(lats), min(lons), max(lats), max(lons))


def distance_km(a: LatLon, b: LatLon) -> float:
    """Haversine distance in kilometers between two (lat, lon) pairs."""
    return GeoCalculator.haversine_distance_km(lat1=a[0], lon1=a[1], lat2=b[0], lon2=b[1])
