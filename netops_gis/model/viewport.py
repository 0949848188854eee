"""ViewportFrame - Map center and discrete zoom level."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ViewportFrame:
    """A map view: center coordinate plus zoom level.

    Attributes:
        center_lat: Latitude of the view center (decimal degrees)
        center_lon: Longitude of the view center (decimal degrees)
        zoom: Discrete zoom level (higher = closer)
    """

    center_lat: float
    center_lon: float
    zoom: int

    @property
    def lat_lon(self) -> tuple[float, float]:
        """Return (lat, lon) tuple - standard geographic order."""
        return (self.center_lat, self.center_lon)

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.center_lon, self.center_lat)

    def __repr__(self) -> str:
        return f"ViewportFrame(lat={self.center_lat:.4f}, lon={self.center_lon:.4f}, zoom={self.zoom})"
