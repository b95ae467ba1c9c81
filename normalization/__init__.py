"""
Normalization module for keyword metrics import.
Maps tool exports to canonical records, merges and formats them.
"""
from normalization.models import (
    Source,
    StandardMetrics,
    CanonicalRecord,
    BatchResult,
    BatchSummary,
    ValidationIssue,
    ErrorCode,
    Severity,
)
from normalization.mapper import ToolDataMapper, map_row, detect_source
from normalization.merger import merge_records, merge_by_keyword
from normalization.formatting import format_metric_value

__all__ = [
    "Source",
    "StandardMetrics",
    "CanonicalRecord",
    "BatchResult",
    "BatchSummary",
    "ValidationIssue",
    "ErrorCode",
    "Severity",
    "ToolDataMapper",
    "map_row",
    "detect_source",
    "merge_records",
    "merge_by_keyword",
    "format_metric_value",
]
