"""Shared pytest fixtures for netops_gis tests.

COORDINATE SYSTEM:
    Most fixtures sit near the equator (lat~0, lon~0) where 0.01° of
    longitude is ~1.11 km, so expected distances are easy to reason about:
        A(0, 0) -- B(0, 0.01): ~1.11 km apart
        C(10, 10): ~1570 km from A
"""

import pytest

from netops_gis.core.neighbor_finder import NeighborFinder
from netops_gis.core.viewport_framer import ViewportFramer
from netops_gis.model.site_point import SitePoint
from netops_gis.model.timeseries import AvailabilitySample
from netops_gis.ui.marker_reconciler import MarkerReconciler
from netops_gis.ui.request_tracker import BackgroundFetcher
from netops_gis.ui.site_map_controller import SiteMapController
from netops_gis.ui.state_machine import GisContext, SelectionStateMachine


# =============================================================================
# SITES
# =============================================================================


@pytest.fixture
def site_a() -> SitePoint:
    """Focal site at the origin."""
    return SitePoint(id="A", lat=0.0, lon=0.0, name="Alpha", address="Main Road Gulshan", district="Karachi East")


@pytest.fixture
def site_b() -> SitePoint:
    """~1.11 km east of A."""
    return SitePoint(id="B", lat=0.0, lon=0.01, name="Bravo", address="Canal View", grid="G-7")


@pytest.fixture
def site_c() -> SitePoint:
    """~1570 km from A, far outside any neighbour radius."""
    return SitePoint(id="C", lat=10.0, lon=10.0, name="Charlie", address="Main Boulevard")


@pytest.fixture
def site_no_coords() -> SitePoint:
    """Text-only site without coordinates."""
    return SitePoint(id="D", lat=None, lon=None, name="Delta", address="Unknown Road")


@pytest.fixture
def abc_sites(site_a: SitePoint, site_b: SitePoint, site_c: SitePoint) -> list[SitePoint]:
    """Dataset [A(0,0), B(0,0.01), C(10,10)]."""
    return [site_a, site_b, site_c]


@pytest.fixture
def abcd_sites(abc_sites: list[SitePoint], site_no_coords: SitePoint) -> list[SitePoint]:
    """ABC plus one site without coordinates."""
    return [*abc_sites, site_no_coords]


@pytest.fixture
def history_samples() -> list[AvailabilitySample]:
    """Three days of fraction-scale availability."""
    return [
        AvailabilitySample(dt="2024-05-01", overall=0.99, v2g=0.98, v3g=0.97, v4g=0.995),
        AvailabilitySample(dt="2024-05-02", overall=0.97, v2g=None, v3g=0.96, v4g=0.99),
        AvailabilitySample(dt="2024-05-03", overall=1.0, v2g=1.0, v3g=1.0, v4g=1.0),
    ]


# =============================================================================
# ENGINE
# =============================================================================


@pytest.fixture
def finder() -> NeighborFinder:
    return NeighborFinder(radius_km=5.0, cap=2000)


@pytest.fixture
def framer() -> ViewportFramer:
    return ViewportFramer(use_bounds_fitting=False)


@pytest.fixture
def reconciler(framer: ViewportFramer) -> MarkerReconciler:
    return MarkerReconciler(framer=framer)


@pytest.fixture
def sm_and_ctx() -> tuple[SelectionStateMachine, GisContext]:
    """Fresh selection state machine without the log listener."""
    return SelectionStateMachine.create(add_log_listener=False)


class FakeBackend:
    """Records fetch calls; responses are queued per call.

    Each fetch pops the next queued response, which is either a value or an
    exception instance to raise.
    """

    def __init__(self) -> None:
        self.dataset_calls: list[object] = []
        self.history_calls: list[str] = []
        self.dataset_responses: list[object] = []
        self.history_responses: list[object] = []

    def fetch_dataset(self, filters: object) -> list[SitePoint]:
        self.dataset_calls.append(filters)
        return self._next(self.dataset_responses, default=[])

    def fetch_history(self, site_id: str) -> list[AvailabilitySample]:
        self.history_calls.append(site_id)
        return self._next(self.history_responses, default=[])

    @staticmethod
    def _next(responses: list[object], default: object) -> object:
        response = responses.pop(0) if responses else default
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def controller(backend: FakeBackend) -> SiteMapController:
    """Controller with inline fetches (max_workers=0); results applied by drain()."""
    return SiteMapController(
        dataset_fetch=backend.fetch_dataset,
        history_fetch=backend.fetch_history,
        fetcher=BackgroundFetcher(max_workers=0),
        add_log_listener=False,
    )


@pytest.fixture
def loaded_controller(controller: SiteMapController, abcd_sites: list[SitePoint]) -> SiteMapController:
    """Controller with the ABCD dataset committed."""
    controller.set_working_set(abcd_sites)
    return controller
