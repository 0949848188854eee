"""SitePoint - A single geo-located network asset record.

A SitePoint is the row shape shared by every GIS screen: identity,
nullable coordinates, and descriptive attributes used for search and popups.

Points without both coordinates stay visible in text-only views (tables,
search) but are skipped by every spatial operation.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np


MAX_LAT = 90.0
MAX_LON = 180.0


def _coerce_coordinate(value: Any, limit: float) -> float | None:
    """Return a finite float coordinate within [-limit, limit], or None for missing/invalid values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(number) or abs(number) > limit:
        return None
    return number


def _coerce_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


@dataclass(frozen=True)
class SitePoint:
    """A network site with optional coordinates.

    Attributes:
        id: Unique site identifier (e.g., "ISB1234")
        lat: Latitude in decimal degrees, or None when unknown
        lon: Longitude in decimal degrees, or None when unknown
        name: Site name
        address: Street address
        region, subregion, grid, district: Administrative groupings
        classification: Site classification (e.g., "Platinum")
        franchise_id, franchise_name, remarks: Franchise screen attributes

    Example:
        site = SitePoint(id="ISB1234", lat=33.70, lon=73.05, name="ISB1234")
        site.has_coordinates  # True
    """

    id: str
    lat: float | None = None
    lon: float | None = None
    name: str | None = None
    address: str | None = None
    region: str | None = None
    subregion: str | None = None
    grid: str | None = None
    district: str | None = None
    classification: str | None = None
    franchise_id: str | None = None
    franchise_name: str | None = None
    remarks: str | None = None

    @property
    def has_coordinates(self) -> bool:
        """True when both coordinates are finite and within WGS84 range."""
        lat_ok = _coerce_coordinate(self.lat, MAX_LAT) is not None
        return lat_ok and _coerce_coordinate(self.lon, MAX_LON) is not None

    @property
    def lat_lon(self) -> tuple[float, float]:
        """Return (lat, lon) tuple. Raises if coordinates are missing."""
        if not self.has_coordinates:
            raise ValueError(f"Site {self.id} has no coordinates. Check has_coordinates first.")
        return (float(self.lat), float(self.lon))  # type: ignore[arg-type]

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        lat, lon = self.lat_lon
        return (lon, lat)

    def text(self, fields: tuple[str, ...]) -> str:
        """Join the given attributes into one space-separated haystack."""
        return " ".join(str(getattr(self, name) or "") for name in fields)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "SitePoint":
        """Create a SitePoint from a backend row.

        Accepts both the GIS RPC column names (site_id, latitude, ...) and
        the dataclass field names. Invalid coordinates become None.
        """
        site_id = record.get("site_id", record.get("id"))
        if site_id is None:
            raise ValueError(f"Record has no site id: {record}")
        return cls(
            id=str(site_id),
            lat=_coerce_coordinate(record.get("latitude", record.get("lat")), MAX_LAT),
            lon=_coerce_coordinate(record.get("longitude", record.get("lon")), MAX_LON),
            name=_coerce_text(record.get("sitename", record.get("name"))),
            address=_coerce_text(record.get("address")),
            region=_coerce_text(record.get("region")),
            subregion=_coerce_text(record.get("subregion")),
            grid=_coerce_text(record.get("grid")),
            district=_coerce_text(record.get("district")),
            classification=_coerce_text(record.get("site_classification", record.get("classification"))),
            franchise_id=_coerce_text(record.get("franchise_id")),
            franchise_name=_coerce_text(record.get("franchise_name")),
            remarks=_coerce_text(record.get("remarks")),
        )

    def __repr__(self) -> str:
        if self.has_coordinates:
            return f"SitePoint({self.id}, lat={self.lat:.5f}, lon={self.lon:.5f})"
        return f"SitePoint({self.id}, no coordinates)"
