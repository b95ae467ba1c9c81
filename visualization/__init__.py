"""
Visualization module for keyword metrics import.

Provides interactive charts and import result displays.
"""
from visualization.charts import (
    create_source_breakdown,
    create_difficulty_distribution
)
from visualization.metrics_display import (
    display_import_summary,
    display_issues,
    display_suggestions,
    display_keyword_table
)

__all__ = [
    # Charts
    "create_source_breakdown",
    "create_difficulty_distribution",
    # Metrics display
    "display_import_summary",
    "display_issues",
    "display_suggestions",
    "display_keyword_table",
]
