"""Data model classes for the GIS site map.

- SitePoint: One network site with nullable coordinates
- Neighbor / NeighborResult: Sites within a radius of a focal site
- ViewportFrame: Map center plus discrete zoom
- MarkerVisualState: Per-pass marker style (Selected > Neighbor > Default)
- AvailabilitySample: One day of per-technology availability
- Message / ToastMessage: User-facing Streamlit messages
"""

from netops_gis.model.marker_state import MarkerVisualState
from netops_gis.model.neighbor_result import Neighbor, NeighborResult
from netops_gis.model.site_point import SitePoint
from netops_gis.model.timeseries import AvailabilitySample
from netops_gis.model.viewport import ViewportFrame

__all__ = [
    "SitePoint",
    "Neighbor",
    "NeighborResult",
    "ViewportFrame",
    "MarkerVisualState",
    "AvailabilitySample",
]
