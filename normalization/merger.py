"""
Precedence-based merging of canonical records.
"""
import logging
import re
from typing import Any, Dict, List, Sequence

from core.exceptions import EmptyMergeSetError
from normalization.models import (
    METRIC_FIELDS,
    CanonicalRecord,
    StandardMetrics,
    utc_now,
)

logger = logging.getLogger(__name__)


def merge_records(records: Sequence[CanonicalRecord]) -> CanonicalRecord:
    """
    Merge records describing the same keyword into one.

    Records are ranked by source quality (ties keep input order). Each
    metric is taken from the best-ranked record that reports it, so a
    lower-ranked source can still fill a field the better one left empty.

    Args:
        records: One or more records for the same keyword

    Returns:
        Merged CanonicalRecord. A single record is returned unchanged.

    Raises:
        EmptyMergeSetError: If records is empty
    """
    if not records:
        raise EmptyMergeSetError()

    if len(records) == 1:
        return records[0]

    # sorted() is stable, ties keep input order
    ranked = sorted(
        records,
        key=lambda record: record.source.quality_rank,
        reverse=True
    )

    merged_metrics: Dict[str, Any] = {}
    merged_raw: Dict[str, Any] = {}

    for record in ranked:
        for name in METRIC_FIELDS:
            value = getattr(record.metrics, name)
            if merged_metrics.get(name) is None and value is not None:
                merged_metrics[name] = value

        # Namespace raw keys by source to avoid collisions
        prefix = record.source.value
        for key, value in record.raw.items():
            merged_raw[f"{prefix}_{key}"] = value

    merged_raw["sources"] = [record.source.value for record in records]
    merged_raw["mergedAt"] = utc_now().isoformat()

    best = ranked[0]
    logger.debug(
        "Merged %d records, primary source %s",
        len(records),
        best.source.value
    )

    return CanonicalRecord(
        source=best.source,
        metrics=StandardMetrics(**merged_metrics),
        raw=merged_raw,
        imported_at=best.imported_at,
        tool_version=best.tool_version,
    )


def keyword_key(keyword: str) -> str:
    """Grouping key: lowercase with collapsed whitespace."""
    return re.sub(r"\s+", " ", keyword.strip().lower())


def merge_by_keyword(
    records: Sequence[CanonicalRecord]
) -> List[CanonicalRecord]:
    """
    Collapse records to one per keyword.

    Keywords are compared case-insensitively. Groups are returned in the
    order their keyword first appears. Records without a keyword are kept
    as they are.
    """
    groups: Dict[str, List[CanonicalRecord]] = {}
    order: List[Any] = []

    for index, record in enumerate(records):
        keyword = record.keyword
        if keyword is None or not keyword.strip():
            order.append(index)
            continue

        key = keyword_key(keyword)
        if key not in groups:
            groups[key] = []
            order.append(key)
        groups[key].append(record)

    merged = []
    for entry in order:
        if isinstance(entry, int):
            merged.append(records[entry])
        else:
            merged.append(merge_records(groups[entry]))

    logger.info(
        "Merged %d records into %d keywords",
        len(records),
        len(merged)
    )
    return merged
