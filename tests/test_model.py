"""Tests for netops_gis model classes.

Tests: SitePoint, NeighborResult, MarkerVisualState, AvailabilitySample, messages
Focus: Record mapping, coordinate validity and derived state
"""

import pytest

from netops_gis.constants import MarkerConfig
from netops_gis.model.marker_state import MarkerVisualState
from netops_gis.model.message import (
    FetchFailedMessage,
    MessageLevel,
    NoDataMessage,
    NoNeighborsMessage,
    SelectedSiteMessage,
)
from netops_gis.model.neighbor_result import Neighbor, NeighborResult
from netops_gis.model.site_point import SitePoint
from netops_gis.model.timeseries import AvailabilitySample, is_fraction_scale, max_value


class TestSitePoint:
    """SitePoint - coordinates, record mapping, search text."""

    def test_has_coordinates(self, site_a: SitePoint, site_no_coords: SitePoint) -> None:
        assert site_a.has_coordinates
        assert not site_no_coords.has_coordinates

    @pytest.mark.parametrize(
        "lat,lon",
        [
            (None, 73.0),
            (33.0, None),
            (float("nan"), 73.0),
            (33.0, float("inf")),
            (336.844, 73.0479),  # latitude off by a decimal place
            (33.6844, 730.479),
            (-90.5, 0.0),
            (0.0, -180.5),
        ],
    )
    def test_partial_or_invalid_coordinates(self, lat: float | None, lon: float | None) -> None:
        """A point lacking either valid coordinate is not spatial."""
        assert not SitePoint(id="X", lat=lat, lon=lon).has_coordinates

    def test_lat_lon_order(self) -> None:
        site = SitePoint(id="X", lat=33.7, lon=73.05)
        assert site.lat_lon == (33.7, 73.05)
        assert site.lon_lat == (73.05, 33.7)

    def test_lat_lon_without_coordinates_raises(self, site_no_coords: SitePoint) -> None:
        with pytest.raises(ValueError):
            _ = site_no_coords.lat_lon

    def test_from_rpc_record(self) -> None:
        record = {
            "site_id": "ISB1234",
            "sitename": "ISB1234",
            "subregion": "North-1",
            "district": "Islamabad",
            "grid": "G-9",
            "latitude": "33.6938",
            "longitude": 73.0297,
            "address": "Street 5, G-9/2",
            "site_classification": "Platinum",
        }
        site = SitePoint.from_record(record)
        assert site.id == "ISB1234"
        assert site.lat_lon == (33.6938, 73.0297)
        assert site.classification == "Platinum"
        assert site.grid == "G-9"
        assert site.region is None

    @pytest.mark.parametrize("bad", [None, "", "n/a", True, float("nan")])
    def test_from_record_invalid_coordinate_becomes_none(self, bad: object) -> None:
        site = SitePoint.from_record({"site_id": "X", "latitude": bad, "longitude": 73.0})
        assert site.lat is None
        assert not site.has_coordinates

    def test_from_record_out_of_range_coordinates_become_none(self) -> None:
        site = SitePoint.from_record({"site_id": "X", "latitude": 336.844, "longitude": 730.479})
        assert site.lat is None
        assert site.lon is None
        assert not site.has_coordinates

    @pytest.mark.parametrize("lat,lon", [(90.0, 180.0), (-90.0, -180.0), (0.0, 0.0)])
    def test_range_bounds_are_valid(self, lat: float, lon: float) -> None:
        assert SitePoint(id="X", lat=lat, lon=lon).has_coordinates

    def test_from_record_accepts_field_names(self) -> None:
        site = SitePoint.from_record({"id": 42, "lat": 1.0, "lon": 2.0, "name": "N", "classification": "Gold"})
        assert site.id == "42"
        assert site.name == "N"
        assert site.classification == "Gold"

    def test_from_record_without_id_raises(self) -> None:
        with pytest.raises(ValueError):
            SitePoint.from_record({"latitude": 1.0, "longitude": 2.0})

    def test_text_joins_fields(self, site_b: SitePoint) -> None:
        assert site_b.text(("name", "grid", "district")) == "Bravo G-7 "


class TestNeighborResult:
    """NeighborResult - ordered neighbours and id lookups."""

    def test_empty(self) -> None:
        result = NeighborResult.empty(focal_id="A", radius_km=5.0, cap=10)
        assert result.is_empty
        assert len(result) == 0
        assert result.ids == frozenset()
        assert (result.focal_id, result.radius_km, result.cap) == ("A", 5.0, 10)

    def test_ids(self, site_b: SitePoint, site_c: SitePoint) -> None:
        result = NeighborResult(
            focal_id="A",
            neighbors=(Neighbor(point=site_b, distance_km=1.1), Neighbor(point=site_c, distance_km=4.0)),
            radius_km=5.0,
        )
        assert result.ids == frozenset({"B", "C"})
        assert [n.id for n in result.neighbors] == ["B", "C"]
        assert len(result) == 2


class TestMarkerVisualState:
    """MarkerVisualState - precedence Selected > Neighbor > Default."""

    @pytest.mark.parametrize(
        "point_id,focal_id,neighbor_ids,expected",
        [
            ("A", "A", set(), MarkerVisualState.SELECTED),
            ("A", "A", {"A"}, MarkerVisualState.SELECTED),
            ("B", "A", {"B"}, MarkerVisualState.NEIGHBOR),
            ("C", "A", {"B"}, MarkerVisualState.DEFAULT),
            ("B", None, {"B"}, MarkerVisualState.NEIGHBOR),
            ("A", None, set(), MarkerVisualState.DEFAULT),
        ],
    )
    def test_derive(self, point_id: str, focal_id: str | None, neighbor_ids: set[str], expected: MarkerVisualState) -> None:
        assert MarkerVisualState.derive(point_id=point_id, focal_id=focal_id, neighbor_ids=neighbor_ids) == expected

    def test_styles(self) -> None:
        assert MarkerVisualState.SELECTED.color == MarkerConfig.SELECTED_COLOR
        assert MarkerVisualState.NEIGHBOR.hex_color == "#ef4444"
        assert MarkerVisualState.DEFAULT.hex_color == "#64748b"
        assert MarkerVisualState.SELECTED.radius_px > MarkerVisualState.DEFAULT.radius_px


class TestAvailabilitySample:
    """AvailabilitySample - record mapping and scale detection."""

    def test_from_record(self) -> None:
        sample = AvailabilitySample.from_record({"dt": "2024-05-01", "overall": "99.5", "v2g": None, "v3g": 98, "v4g": "x"})
        assert sample == AvailabilitySample(dt="2024-05-01", overall=99.5, v2g=None, v3g=98.0, v4g=None)

    def test_value_by_series(self, history_samples: list[AvailabilitySample]) -> None:
        assert history_samples[0].value("v4g") == 0.995
        with pytest.raises(ValueError):
            history_samples[0].value("v5g")

    def test_fraction_scale(self, history_samples: list[AvailabilitySample]) -> None:
        assert max_value(history_samples) == 1.0
        assert is_fraction_scale(history_samples)

    def test_percent_scale(self) -> None:
        samples = [AvailabilitySample(dt="2024-05-01", overall=97.2, v2g=99.0)]
        assert not is_fraction_scale(samples)

    def test_empty_is_not_fraction_scale(self) -> None:
        """No data falls back to the 25..100 percent axis."""
        assert max_value([]) is None
        assert not is_fraction_scale([AvailabilitySample(dt="2024-05-01")])


class TestMessages:
    """User-facing messages render without Streamlit for their text and level."""

    def test_no_neighbors_text(self) -> None:
        message = NoNeighborsMessage(radius_km=5.0)
        assert message.message == "No neighbour found within 5 km"
        assert message.level == MessageLevel.WARNING

    def test_no_data_is_info_not_error(self) -> None:
        assert NoDataMessage().level == MessageLevel.INFO
        assert "search" in NoDataMessage(searching=True).message

    def test_selected_site(self) -> None:
        text = SelectedSiteMessage(site_id="ISB1234", neighbor_count=3).message
        assert "ISB1234" in text and "3 neighbour(s)" in text

    def test_fetch_failed_toast(self) -> None:
        toast = FetchFailedMessage(what="map points", error="timeout")
        assert toast.message == "Could not load map points: timeout"
        assert toast.icon
