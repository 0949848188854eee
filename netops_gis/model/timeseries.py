"""AvailabilitySample - One day of per-technology site availability."""

from dataclasses import dataclass
from typing import Any

from netops_gis.constants import ChartConfig


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class AvailabilitySample:
    """Availability values for one date.

    Values are either fractions (0..1) or percentages (0..100) depending on
    the backend; see max_value() and ChartConfig.FRACTION_SCALE_MAX.
    """

    dt: str  # ISO date
    overall: float | None = None
    v2g: float | None = None
    v3g: float | None = None
    v4g: float | None = None

    SERIES = ("overall", "v2g", "v3g", "v4g")

    def value(self, series: str) -> float | None:
        """Value of one series by name."""
        if series not in self.SERIES:
            raise ValueError(f"Unknown series '{series}'. Expected one of {self.SERIES}.")
        return getattr(self, series)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "AvailabilitySample":
        return cls(
            dt=str(record["dt"]),
            overall=_optional_float(record.get("overall")),
            v2g=_optional_float(record.get("v2g")),
            v3g=_optional_float(record.get("v3g")),
            v4g=_optional_float(record.get("v4g")),
        )


def max_value(samples: list[AvailabilitySample]) -> float | None:
    """Maximum across all series of all samples, None when there is no value."""
    values = [v for s in samples for v in (s.overall, s.v2g, s.v3g, s.v4g) if v is not None]
    return max(values) if values else None


def is_fraction_scale(samples: list[AvailabilitySample]) -> bool:
    """True when values look like fractions (0..1) rather than percentages."""
    peak = max_value(samples)
    if peak is None:
        return False
    return peak <= ChartConfig.FRACTION_SCALE_MAX
