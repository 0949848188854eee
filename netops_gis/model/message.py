"""Message - User-facing messages for the GIS site map page.

Layout:
- SIDEBAR: ONE blue info message describing the current selection
- UNDER MAP: benign empty states (no data, no neighbours) in blue/yellow
- TOASTS: transient feedback for failed fetches

Empty results are normal page states, never errors: they are shown with
st.info / st.warning, not st.error.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from netops_gis.constants import NeighborConfig


class MessageLevel(Enum):
    """Display level for UI messages."""

    INFO = "info"  # Blue - context/status
    WARNING = "warning"  # Yellow - empty results
    ERROR = "error"  # Red - unrecoverable page errors


@dataclass(frozen=True)
class Message(ABC):
    """Abstract base class for inline messages (sidebar, under map).

    Rendered as st.info/st.warning/st.error blocks that persist until the
    next rerun replaces them.
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Formatted message for display in Streamlit."""
        raise NotImplementedError

    @property
    @abstractmethod
    def level(self) -> MessageLevel:
        """Display level."""
        raise NotImplementedError

    def display(self) -> None:
        """Render this message using the appropriate Streamlit function."""
        import streamlit as st

        render_fn = {
            MessageLevel.INFO: st.info,
            MessageLevel.WARNING: st.warning,
            MessageLevel.ERROR: st.error,
        }[self.level]
        render_fn(self.message)


@dataclass(frozen=True)
class ToastMessage(ABC):
    """Abstract base class for transient toast notifications."""

    @property
    @abstractmethod
    def message(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def icon(self) -> str:
        raise NotImplementedError

    def display(self) -> None:
        """Show this message as a toast notification and log it."""
        import streamlit as st

        logger = logging.getLogger(__name__)
        logger.info(f"[TOAST] {self.icon} {self.message}")
        st.toast(f"{self.icon} {self.message}")


# =============================================================================
# TOASTS
# =============================================================================


@dataclass(frozen=True)
class FetchFailedMessage(ToastMessage):
    """Backend request failed; the page falls back to an empty state."""

    what: str  # e.g., "map points", "availability history"
    error: str

    @property
    def icon(self) -> str:
        return "📡"

    @property
    def message(self) -> str:
        return f"Could not load {self.what}: {self.error}"


# =============================================================================
# UNDER MAP - Empty states
# =============================================================================


@dataclass(frozen=True)
class NoDataMessage(Message):
    """Working set is empty (no rows for the filters, or fetch failed)."""

    searching: bool = False

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        if self.searching:
            return "🔎 **No sites match the search.** Clear a search box to see more sites."
        return "🗺️ **No data.** Adjust the filters in the sidebar."


@dataclass(frozen=True)
class NoNeighborsMessage(Message):
    """Focal site has no neighbour within the search radius."""

    radius_km: float = NeighborConfig.RADIUS_KM

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.WARNING

    @property
    def message(self) -> str:
        return f"No neighbour found within {self.radius_km:g} km"


@dataclass(frozen=True)
class NoHistoryMessage(Message):
    """Focal site has no availability samples in the chosen window."""

    site_id: str
    days: int

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        return f"No availability data for {self.site_id} in the last {self.days} days."


# =============================================================================
# SIDEBAR - Selection context
# =============================================================================


@dataclass(frozen=True)
class SelectSiteHintMessage(Message):
    """Shown while nothing is selected."""

    site_count: int

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        return (
            f"📍 **{self.site_count} sites on the map**\n\n"
            "- Hover a **marker** → site details\n"
            "- Click a **marker** or a **table row** → neighbours and history\n"
            "- **Previous view** → back to the last map view"
        )


@dataclass(frozen=True)
class SelectedSiteMessage(Message):
    """Shown while a site is selected."""

    site_id: str
    neighbor_count: int
    radius_km: float = NeighborConfig.RADIUS_KM

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        return (
            f"📡 **Selected: {self.site_id}**\n\n"
            f"{self.neighbor_count} neighbour(s) within {self.radius_km:g} km, shown in red.\n\n"
            "**Clear** → back to all sites"
        )
