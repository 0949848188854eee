"""NeighborResult - Sites within a radius of a focal site.

Produced by NeighborFinder, consumed by the marker reconciler (recolouring)
and the neighbour table.
"""

from dataclasses import dataclass, field

from netops_gis.model.site_point import SitePoint


@dataclass(frozen=True)
class Neighbor:
    """A site and its great-circle distance to the focal site."""

    point: SitePoint
    distance_km: float

    @property
    def id(self) -> str:
        return self.point.id


@dataclass(frozen=True)
class NeighborResult:
    """Ordered neighbours (ascending distance) of a focal site.

    Attributes:
        focal_id: Site the search was centered on, or None for no selection
        neighbors: Neighbours sorted by ascending distance
        radius_km: Search radius used
        cap: Rendering cap applied to the result (None = no cap)
    """

    focal_id: str | None
    neighbors: tuple[Neighbor, ...] = field(default_factory=tuple)
    radius_km: float = 0.0
    cap: int | None = None

    @property
    def ids(self) -> frozenset[str]:
        """Neighbour ids, for O(1) membership checks while styling markers."""
        return frozenset(n.id for n in self.neighbors)

    @property
    def is_empty(self) -> bool:
        return len(self.neighbors) == 0

    def __len__(self) -> int:
        return len(self.neighbors)

    @staticmethod
    def empty(focal_id: str | None = None, radius_km: float = 0.0, cap: int | None = None) -> "NeighborResult":
        """Factory for a result with no neighbours."""
        return NeighborResult(focal_id=focal_id, neighbors=(), radius_km=radius_km, cap=cap)
