"""Click detector - turns map component clicks into site ids.

Picked rows carry a "type" field set by MapRenderer; only site rows select
a site. Everything else with a coordinate is a click on the empty map.
Deduplication state lives in ClickDeduplicationContext so repeated events
on Streamlit reruns are ignored.
"""

import logging
from dataclasses import dataclass
from typing import Any

from netops_gis.constants import ClickConfig
from netops_gis.ui.state_machine import ClickDeduplicationContext, ClickDetectionResult

logger = logging.getLogger(__name__)


@dataclass
class ClickDetector:
    """Detects new site/map clicks.

    Attributes:
        dedup: ClickDeduplicationContext for tracking the last-seen click
    """

    dedup: ClickDeduplicationContext

    def detect(
        self,
        clicked_object: dict[str, Any] | None,
        clicked_coordinate: list[float] | None,
    ) -> ClickDetectionResult:
        """Return the click if it is new, ClickDetectionResult.no_click() otherwise."""
        site_id = self._site_id(obj=clicked_object)
        result = self.dedup.detect_new_click(site_id=site_id, coordinate=clicked_coordinate)
        if result.is_site:
            logger.info(f"[CLICK] site {result.site_id}")
        elif result.is_valid:
            logger.debug(f"[CLICK] map at {result.coordinate}")
        return result

    @staticmethod
    def _site_id(obj: dict[str, Any] | None) -> str | None:
        if obj is None or obj.get("type") != ClickConfig.TYPE_SITE:
            return None
        site_id = obj.get("id")
        return str(site_id) if site_id is not None else None
