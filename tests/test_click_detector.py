"""Tests for click handling - st_deckgl event parsing and ClickDetector.

Both are pure dict logic and testable without Streamlit:
- parse_click_event splits a raw deck.gl event into picked row + coordinate
- ClickDetector turns that into a new site/map click, or nothing on repeats
"""

import pytest

from netops_gis.constants import ClickConfig
from netops_gis.ui.click_detector import ClickDetector
from netops_gis.ui.pydeck_click_handler import PydeckClickResult, parse_click_event
from netops_gis.ui.state_machine import ClickDeduplicationContext


@pytest.fixture
def detector() -> ClickDetector:
    """Fresh ClickDetector with clean dedup context."""
    return ClickDetector(dedup=ClickDeduplicationContext())


class TestParseClickEvent:
    """Raw st_deckgl events."""

    def test_map_click(self) -> None:
        result = parse_click_event({"coordinate": [73.05, 33.7], "eventType": "click"})
        assert result.is_map_click
        assert result.clicked_coordinate == [73.05, 33.7]
        assert result.clicked_object is None

    def test_site_click_spreads_row(self) -> None:
        event = {
            "type": ClickConfig.TYPE_SITE,
            "id": "ISB1234",
            "position": [73.05, 33.7],
            "coordinate": [73.0501, 33.7002],
            "eventType": "click",
        }
        result = parse_click_event(event)
        assert result.is_object_click
        assert result.clicked_object == {"type": "site", "id": "ISB1234", "position": [73.05, 33.7]}
        assert result.clicked_coordinate == [73.0501, 33.7002]

    @pytest.mark.parametrize("event", [None, {}, "click", [1, 2]])
    def test_empty_or_foreign_events(self, event: object) -> None:
        result = parse_click_event(event)
        assert result == PydeckClickResult.empty()

    def test_short_coordinate_ignored(self) -> None:
        assert parse_click_event({"coordinate": [1.0]}).clicked_coordinate is None


class TestSiteClicks:
    def test_site_click_returns_id(self, detector: ClickDetector) -> None:
        result = detector.detect(
            clicked_object={"type": ClickConfig.TYPE_SITE, "id": "ISB1234"},
            clicked_coordinate=[73.05, 33.7],
        )
        assert result.is_site
        assert result.site_id == "ISB1234"

    def test_numeric_id_is_stringified(self, detector: ClickDetector) -> None:
        result = detector.detect(clicked_object={"type": "site", "id": 42}, clicked_coordinate=None)
        assert result.site_id == "42"

    def test_other_layer_is_map_click(self, detector: ClickDetector) -> None:
        """A picked row from a non-site layer (e.g., popup text) does not select."""
        result = detector.detect(clicked_object={"type": "popup", "id": "ISB1234"}, clicked_coordinate=[1.0, 2.0])
        assert not result.is_site
        assert result.is_valid

    def test_row_without_id(self, detector: ClickDetector) -> None:
        result = detector.detect(clicked_object={"type": "site"}, clicked_coordinate=None)
        assert not result.is_valid


class TestMapClicks:
    def test_map_click_is_valid_without_site(self, detector: ClickDetector) -> None:
        result = detector.detect(clicked_object=None, clicked_coordinate=[73.0, 33.0])
        assert result.is_valid
        assert result.site_id is None
        assert result.coordinate == [73.0, 33.0]

    def test_nothing_clicked(self, detector: ClickDetector) -> None:
        assert not detector.detect(clicked_object=None, clicked_coordinate=None).is_valid


class TestDeduplication:
    """The component repeats its last event on every rerun."""

    def test_repeated_event_is_ignored(self, detector: ClickDetector) -> None:
        click = {"type": "site", "id": "A"}
        assert detector.detect(clicked_object=click, clicked_coordinate=[0.0, 0.0]).is_site
        assert not detector.detect(clicked_object=click, clicked_coordinate=[0.0, 0.0]).is_valid

    def test_alternating_clicks_all_count(self, detector: ClickDetector) -> None:
        site = {"type": "site", "id": "A"}
        assert detector.detect(clicked_object=site, clicked_coordinate=[0.0, 0.0]).is_site
        assert detector.detect(clicked_object=None, clicked_coordinate=[5.0, 5.0]).is_valid
        assert detector.detect(clicked_object=site, clicked_coordinate=[0.0, 0.0]).is_site
