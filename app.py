"""
Keyword Metrics Import Application

A Streamlit app for importing keyword exports from SEO tools:
- Auto-detection of the exporting tool from CSV headers
- User-defined column mapping for other exports
- Row validation with errors and warnings
- Multi-source merge per keyword
- CSV and Excel download of accepted keywords
"""
import logging
import streamlit as st
from typing import List, Optional

# Page config must be first
st.set_page_config(
    page_title="Keyword Metrics Import",
    page_icon="📥",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Imports
from config.settings import get_settings
from config.tool_config import IGNORE_COLUMN, MAPPABLE_FIELDS
from core.exceptions import KeywordImportError, MappingError
from ingestion.column_mapping import (
    ColumnMapping,
    apply_column_mapping,
    create_column_mapping,
    suggest_column_mapping
)
from ingestion.csv_parser import parse_uploaded_file
from ingestion.validator import ValidationPipeline
from normalization.models import Source
from normalization.merger import merge_by_keyword
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
from export.csv_exporter import CSVExporter, create_download_link
from export.excel_exporter import ExcelExporter


logger = logging.getLogger(__name__)

AUTO_DETECT = "Auto-detect"


def configure_logging():
    """Configure root logging once per process."""
    settings = get_settings()
    try:
        level = settings.log_level
    except KeywordImportError as e:
        st.sidebar.warning(e.message)
        level = "INFO"

    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def init_session_state():
    """Initialize session state variables."""
    defaults = {
        "file_key": None,
        "validation_key": None,
        "csv_preview": None,
        "records": None,
        "result": None,
        "suggestions": [],
        "merged": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def render_sidebar() -> dict:
    """Render sidebar with import options."""
    settings = get_settings()
    st.sidebar.title("📥 Keyword Metrics Import")
    st.sidebar.caption(f"v{settings.app_version}")

    st.sidebar.markdown("### Source")
    source_options = [AUTO_DETECT] + [source.label for source in Source]
    selected = st.sidebar.selectbox(
        "Tool",
        options=source_options,
        index=0,
        help="Pick the tool the file was exported from, or let the "
             "headers decide"
    )

    map_columns = st.sidebar.checkbox(
        "Map columns manually",
        value=False,
        help="Assign your own columns to keyword, volume, difficulty, "
             "competition and CPC. Overrides the tool choice."
    )

    st.sidebar.markdown("---")

    merge = st.sidebar.checkbox(
        "Merge duplicate keywords",
        value=True,
        help="Collapse rows for the same keyword into one record"
    )

    source = None
    if selected != AUTO_DETECT:
        source = next(s for s in Source if s.label == selected)

    return {"source": source, "map_columns": map_columns, "merge": merge}


def render_column_mapping(columns: List[str]) -> Optional[ColumnMapping]:
    """
    Render one field selector per uploaded column in the sidebar.

    Returns:
        Accepted ColumnMapping, or None while the selection is incomplete
    """
    st.sidebar.markdown("### Column Mapping")
    suggested = suggest_column_mapping(columns)
    choices = [IGNORE_COLUMN] + list(MAPPABLE_FIELDS)

    selections = {}
    for column in columns:
        selections[column] = st.sidebar.selectbox(
            column,
            options=choices,
            index=choices.index(suggested.get(column, IGNORE_COLUMN)),
            key=f"column_map_{column}"
        )

    try:
        return create_column_mapping(columns, selections)
    except MappingError as e:
        st.sidebar.warning(e.message)
        return None


def render_upload_section(options: dict):
    """Render file upload and validation."""
    st.markdown("## 📤 Step 1: Upload Export")

    uploaded_file = st.file_uploader(
        "Upload a CSV export",
        type=["csv"],
        help="Rank tool, backlink tool, ad planner or AI keyword exports"
    )

    if uploaded_file is None:
        return

    file_key = f"{uploaded_file.name}_{uploaded_file.size}"
    if st.session_state.file_key != file_key:
        try:
            records, preview = parse_uploaded_file(uploaded_file)
        except KeywordImportError as e:
            st.error(f"Error reading file: {e.message}")
            return

        st.session_state.file_key = file_key
        st.session_state.csv_preview = preview
        st.session_state.records = records
        st.session_state.validation_key = None

    preview = st.session_state.csv_preview
    st.success(
        f"📄 Loaded **{preview['row_count']:,}** rows "
        f"with **{len(preview['columns'])}** columns"
    )

    column_mapping = None
    if options["map_columns"]:
        column_mapping = render_column_mapping(preview["columns"])
        if column_mapping is None:
            st.session_state.result = None
            st.session_state.validation_key = None
            return

    validation_key = (
        options["source"],
        tuple(column_mapping.columns.items()) if column_mapping else None
    )
    if st.session_state.validation_key == validation_key:
        return

    records = st.session_state.records
    if column_mapping is not None:
        records = apply_column_mapping(records, column_mapping)
        source = Source.MANUAL
    else:
        # Headers are more reliable than the first row's filled cells
        source = options["source"] or preview["detected_source"]

    pipeline = ValidationPipeline()
    result = pipeline.validate_batch(records, source)

    st.session_state.validation_key = validation_key
    st.session_state.result = result
    st.session_state.suggestions = pipeline.get_suggestions(result)
    st.session_state.merged = None
    logger.info("Validated upload %s", uploaded_file.name)


def render_results_section(options: dict):
    """Render validation results, charts and downloads."""
    result = st.session_state.result
    if result is None:
        return

    st.markdown("## ✅ Step 2: Review")
    display_import_summary(result)
    display_issues(result)
    display_suggestions(st.session_state.suggestions)

    accepted = list(result.accepted)
    if options["merge"] and accepted:
        if st.session_state.merged is None:
            st.session_state.merged = merge_by_keyword(accepted)
        accepted = st.session_state.merged

    if not accepted:
        return

    st.markdown("### Keywords")
    display_keyword_table(accepted)

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(
            create_source_breakdown(accepted),
            use_container_width=True
        )
    with col2:
        st.plotly_chart(
            create_difficulty_distribution(accepted),
            use_container_width=True
        )

    st.markdown("## 💾 Step 3: Download")
    col_a, col_b = st.columns(2)

    with col_a:
        csv_content = CSVExporter().export_records(accepted, include_display=True)
        st.download_button(
            "Download CSV",
            data=create_download_link(csv_content, "keywords.csv"),
            file_name="keywords.csv",
            mime="text/csv"
        )

    with col_b:
        excel_bytes = ExcelExporter().export_full_report(
            result,
            st.session_state.suggestions,
            records=accepted
        )
        st.download_button(
            "Download Excel Report",
            data=excel_bytes,
            file_name="keyword_import_report.xlsx",
            mime=(
                "application/vnd.openxmlformats-officedocument."
                "spreadsheetml.sheet"
            )
        )


def main():
    """Main application entry point."""
    configure_logging()
    init_session_state()
    options = render_sidebar()

    st.title("📥 Keyword Metrics Import")
    st.markdown(
        "Import keyword exports from SEO tools and reconcile them into "
        "one set of metrics per keyword."
    )

    render_upload_section(options)
    render_results_section(options)

    if st.session_state.result is not None:
        if st.button("🔄 Start New Import"):
            for key in list(st.session_state.keys()):
                del st.session_state[key]
            st.rerun()


if __name__ == "__main__":
    main()
