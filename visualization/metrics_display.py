"""
Metrics display components for Streamlit.
Renders import summaries, issues and keyword tables.
"""
import pandas as pd
import streamlit as st
from typing import List, Sequence

from normalization.formatting import format_metric_value
from normalization.models import (
    METRIC_FIELDS,
    BatchResult,
    CanonicalRecord,
    Severity,
)


def display_import_summary(result: BatchResult):
    """
    Display top-level row counts for a validated batch.

    Args:
        result: BatchResult from the validation pipeline
    """
    summary = result.summary
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric(
            label="Total Rows",
            value=f"{summary.total_rows:,}"
        )

    with col2:
        st.metric(
            label="Valid Rows",
            value=f"{summary.valid_rows:,}"
        )

    with col3:
        st.metric(
            label="Invalid Rows",
            value=f"{summary.invalid_rows:,}",
            delta="-" if summary.invalid_rows else None,
            delta_color="inverse"
        )

    with col4:
        st.metric(
            label="Detected Tool",
            value=(
                summary.detected_source.label
                if summary.detected_source else "Unknown"
            )
        )


def display_issues(result: BatchResult, limit: int = 100):
    """
    Display errors and warnings, errors first.

    Args:
        result: BatchResult from the validation pipeline
        limit: Maximum messages to show per severity
    """
    errors = [i for i in result.issues if i.severity == Severity.ERROR]
    warnings = [i for i in result.issues if i.severity == Severity.WARNING]

    if not errors and not warnings:
        st.success("All rows passed validation!")
        return

    if errors:
        with st.expander(f"**Errors** ({len(errors)})", expanded=True):
            for issue in errors[:limit]:
                st.markdown(f":red[{issue.message}]")
            if len(errors) > limit:
                st.info(f"Showing {limit} of {len(errors)} errors")

    if warnings:
        with st.expander(f"**Warnings** ({len(warnings)})"):
            for issue in warnings[:limit]:
                st.markdown(f":orange[{issue.message}]")
            if len(warnings) > limit:
                st.info(f"Showing {limit} of {len(warnings)} warnings")


def display_suggestions(suggestions: List[str]):
    """Display remediation hints."""
    if not suggestions:
        return

    st.markdown("### Suggestions")
    for suggestion in suggestions:
        st.markdown(f"- {suggestion}")


def display_keyword_table(
    records: Sequence[CanonicalRecord],
    limit: int = 500
):
    """
    Display accepted keywords with formatted metrics.

    Args:
        records: Canonical records to show
        limit: Maximum rows to render
    """
    if not records:
        st.info("No keywords to display")
        return

    data = []
    for record in records[:limit]:
        metrics = record.metrics.to_dict()
        row = {
            "Keyword": record.keyword or "-",
            "Source": record.source.label,
        }
        for name in METRIC_FIELDS:
            row[name.upper() if name == "cpc" else name.title()] = (
                format_metric_value(name, metrics[name])
            )
        data.append(row)

    st.dataframe(
        pd.DataFrame(data),
        use_container_width=True,
        height=400
    )

    if len(records) > limit:
        st.info(f"Showing {limit} of {len(records)} keywords")
