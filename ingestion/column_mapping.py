"""
User-defined column mapping for exports that match no known tool.

A mapping assigns uploaded columns to the canonical fields (keyword,
volume, difficulty, competition, cpc). Mapped rows are renamed so the
validation pipeline can read them with manual mapping.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from config.tool_config import (
    COLUMN_MAPPING_HINTS,
    IGNORE_COLUMN,
    KEYWORD_FIELD,
    MAPPABLE_FIELDS,
)
from core.exceptions import MappingError

logger = logging.getLogger(__name__)


@dataclass
class ColumnMapping:
    """Accepted column assignments for one upload."""

    # Uploaded column -> canonical field
    columns: Dict[str, str]
    unmapped_columns: List[str] = field(default_factory=list)


def suggest_column_mapping(headers: Sequence[str]) -> Dict[str, str]:
    """
    Pre-select a target for headers with a recognised spelling.

    Each target is suggested for at most one header, the first match.

    Returns:
        Dict of header -> canonical field; unrecognised headers are left out
    """
    suggestions: Dict[str, str] = {}
    taken = set()

    for header in headers:
        normalized = str(header).strip().lower()
        for target in MAPPABLE_FIELDS:
            if target in taken:
                continue
            if normalized in COLUMN_MAPPING_HINTS[target]:
                suggestions[header] = target
                taken.add(target)
                break

    return suggestions


def create_column_mapping(
    headers: Sequence[str],
    selections: Mapping[str, str]
) -> ColumnMapping:
    """
    Build a mapping from the user's per-column selections.

    Selections for columns not in ``headers`` and selections of
    ``"ignore"`` are dropped.

    Args:
        headers: Columns of the uploaded file
        selections: Column -> canonical field or "ignore"

    Returns:
        ColumnMapping

    Raises:
        MappingError: If a target is unknown, a target is chosen for more
            than one column, or no column is mapped to keyword
    """
    columns: Dict[str, str] = {}
    used: Dict[str, str] = {}

    for column, target in selections.items():
        if column not in headers or target == IGNORE_COLUMN:
            continue
        if target not in MAPPABLE_FIELDS:
            raise MappingError(
                f"Unknown field '{target}' for column '{column}'",
                column=column
            )
        if target in used:
            raise MappingError(
                f"Field '{target}' is mapped from both "
                f"'{used[target]}' and '{column}'",
                column=column
            )
        used[target] = column
        columns[column] = target

    if KEYWORD_FIELD not in used:
        raise MappingError(
            "Keyword column mapping is required",
            column=KEYWORD_FIELD
        )

    unmapped = [header for header in headers if header not in columns]
    logger.info(
        "Column mapping: %s (%d columns ignored)",
        columns,
        len(unmapped)
    )
    return ColumnMapping(columns=columns, unmapped_columns=unmapped)


def apply_column_mapping(
    rows: Sequence[Any],
    mapping: ColumnMapping
) -> List[Any]:
    """
    Rename mapped columns to their canonical field names.

    Unmapped columns are dropped. Rows that are not key/value mappings are
    passed through so validation can report them.

    Args:
        rows: Parsed rows
        mapping: Accepted column mapping

    Returns:
        New list of rows
    """
    mapped_rows = []
    for row in rows:
        if not isinstance(row, Mapping):
            mapped_rows.append(row)
            continue
        mapped_rows.append({
            target: row[column]
            for column, target in mapping.columns.items()
            if column in row
        })
    return mapped_rows
