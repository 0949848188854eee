"""AvailabilityChart - Plotly line chart of a site's availability history.

One line per technology series (overall, 2G, 3G, 4G). The backend reports
either fractions (0..1) or percentages (0..100); the y axis follows:
- fraction scale (max <= 1): range 0..1, ticks formatted as percent
- percent scale (or no data): range 25..100 with a % suffix
"""

import logging

import plotly.graph_objects as go

from netops_gis.constants import ChartConfig
from netops_gis.model.timeseries import AvailabilitySample, is_fraction_scale

logger = logging.getLogger(__name__)


class AvailabilityChart:
    """Renders availability history using Plotly.

    Example:
        chart = AvailabilityChart()
        fig = chart.render(samples=controller.history, site_id="ISB1234")
        st.plotly_chart(fig)
    """

    def __init__(self, width: int = ChartConfig.WIDTH, height: int = ChartConfig.HEIGHT) -> None:
        self.width = width
        self.height = height

    def render(self, samples: list[AvailabilitySample], site_id: str) -> go.Figure:
        """Render one line per series; an empty figure when there are no samples."""
        if not samples:
            return self._empty_figure(message=f"No availability data for {site_id}")

        fraction = is_fraction_scale(samples)
        dates = [s.dt for s in samples]

        fig = go.Figure()
        for series in AvailabilitySample.SERIES:
            values = [s.value(series) for s in samples]
            if all(v is None for v in values):
                continue
            fig.add_trace(
                go.Scatter(
                    x=dates,
                    y=values,
                    mode="lines+markers",
                    name=ChartConfig.SERIES_LABELS[series],
                    line=dict(color=ChartConfig.SERIES_COLORS[series], width=2),
                    marker=dict(size=4),
                    connectgaps=False,
                    hovertemplate=self._hover_template(fraction=fraction),
                )
            )

        fig.update_layout(
            title=dict(text=f"Availability - {site_id}", x=0.5),
            xaxis=dict(title="Date", showgrid=True, gridcolor="rgba(200, 200, 200, 0.3)"),
            yaxis=self._y_axis(fraction=fraction),
            legend=dict(orientation="h", y=-0.2),
            width=self.width,
            height=self.height,
            margin=dict(l=50, r=30, t=50, b=50),
            plot_bgcolor="white",
        )
        logger.debug(f"History chart for {site_id}: {len(samples)} samples, fraction={fraction}")
        return fig

    @staticmethod
    def _y_axis(fraction: bool) -> dict:
        if fraction:
            return dict(
                title="Availability",
                range=list(ChartConfig.FRACTION_RANGE),
                tickformat=".1%",
                showgrid=True,
                gridcolor="rgba(200, 200, 200, 0.3)",
            )
        return dict(
            title="Availability",
            range=list(ChartConfig.PERCENT_RANGE),
            ticksuffix="%",
            tickformat=".1f",
            showgrid=True,
            gridcolor="rgba(200, 200, 200, 0.3)",
        )

    @staticmethod
    def _hover_template(fraction: bool) -> str:
        value = "%{y:.2%}" if fraction else "%{y:.2f}%"
        return f"%{{x}}<br>%{{fullData.name}}: {value}<extra></extra>"

    def _empty_figure(self, message: str) -> go.Figure:
        """Create empty figure with message."""
        fig = go.Figure()
        fig.add_annotation(
            xref="paper",
            yref="paper",
            x=0.5,
            y=0.5,
            text=message,
            showarrow=False,
            font=dict(size=14, color="gray"),
        )
        fig.update_layout(
            width=self.width,
            height=self.height,
            xaxis=dict(visible=False),
            yaxis=dict(visible=False),
            plot_bgcolor="white",
        )
        return fig
