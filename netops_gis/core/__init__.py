"""Core spatial and search logic, free of any UI toolkit.

- GeoCalculator / distance_km: Haversine great-circle distances
- SearchQuery / tokenize / contains_all: Tokenized AND substring search
- NeighborFinder: Radius search around a focal site
- ViewportFramer: Centroid/zoom framing with one-deep previous view
"""

from netops_gis.core.fuzzy_matcher import SearchQuery, contains_all, filter_points, tokenize
from netops_gis.core.geo_calculator import EARTH_RADIUS_KM, GeoCalculator, distance_km
from netops_gis.core.neighbor_finder import NeighborFinder
from netops_gis.core.viewport_framer import ViewportFramer, centroid, fit_bounds_zoom, zoom_heuristic

__all__ = [
    # Geo calculator
    "EARTH_RADIUS_KM",
    "GeoCalculator",
    "distance_km",
    # Fuzzy matcher
    "SearchQuery",
    "contains_all",
    "filter_points",
    "tokenize",
    # Neighbour finder
    "NeighborFinder",
    # Viewport framer
    "ViewportFramer",
    "centroid",
    "fit_bounds_zoom",
    "zoom_heuristic",
]
