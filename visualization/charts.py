"""
Chart generation for imported keyword metrics.
Uses Plotly for interactive charts.
"""
import numpy as np
import plotly.graph_objects as go
from typing import Dict, Sequence

from normalization.formatting import format_metric_value
from normalization.mapper import to_number
from normalization.models import CanonicalRecord, Source


SOURCE_COLORS: Dict[Source, str] = {
    Source.RANK_TOOL: "#92D050",
    Source.BACKLINK_TOOL: "#6BB3FF",
    Source.AD_PLANNER: "#FFD966",
    Source.AI_GENERATED: "#C9A0DC",
    Source.MANUAL: "#CCCCCC",
}


def create_source_breakdown(
    records: Sequence[CanonicalRecord]
) -> go.Figure:
    """
    Create donut chart of accepted records per tool.

    Args:
        records: Accepted canonical records

    Returns:
        Plotly figure
    """
    counts: Dict[Source, int] = {}
    for record in records:
        counts[record.source] = counts.get(record.source, 0) + 1

    sources = sorted(counts, key=lambda s: s.quality_rank, reverse=True)

    fig = go.Figure(go.Pie(
        labels=[source.label for source in sources],
        values=[counts[source] for source in sources],
        hole=0.4,
        marker=dict(colors=[SOURCE_COLORS[source] for source in sources]),
        hovertemplate="<b>%{label}</b><br>%{value} keywords<extra></extra>"
    ))

    fig.update_layout(
        title="Keywords by Source",
        template="plotly_white",
        height=400
    )

    return fig


def create_difficulty_distribution(
    records: Sequence[CanonicalRecord]
) -> go.Figure:
    """
    Create scatter plot of search volume vs difficulty per keyword.

    Keywords missing either metric are left out.

    Args:
        records: Accepted canonical records

    Returns:
        Plotly figure
    """
    volumes = []
    difficulties = []
    names = []
    colors = []

    for record in records:
        volume = to_number(record.metrics.volume)
        difficulty = to_number(record.metrics.difficulty)
        if volume is None or difficulty is None:
            continue
        volumes.append(volume)
        difficulties.append(difficulty)
        names.append(
            f"{record.keyword or '-'} "
            f"({format_metric_value('volume', volume)})"
        )
        colors.append(SOURCE_COLORS[record.source])

    fig = go.Figure(go.Scatter(
        x=difficulties,
        y=volumes,
        mode="markers",
        text=names,
        marker=dict(size=10, color=colors),
        hovertemplate=(
            "<b>%{text}</b><br>"
            "Volume: %{y:,}<br>"
            "Difficulty: %{x:.0f}<br>"
            "<extra></extra>"
        )
    ))

    fig.update_layout(
        title="Keyword Opportunity Matrix",
        xaxis_title="Keyword Difficulty",
        yaxis_title="Search Volume",
        template="plotly_white",
        height=600,
        showlegend=False
    )

    if volumes:
        # Quadrant lines
        fig.add_hline(
            y=float(np.median(volumes)), line_dash="dash", line_color="gray"
        )
        fig.add_vline(
            x=float(np.mean(difficulties)), line_dash="dash", line_color="gray"
        )

    return fig
