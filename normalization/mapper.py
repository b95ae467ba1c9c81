"""
Conversion of tool-specific keyword rows into canonical records.
"""
import logging
import math
import re
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from config.tool_config import (
    AD_PLANNER_FIELDS,
    AI_GENERATED_FIELDS,
    BACKLINK_TOOL_FIELDS,
    COMPETITION_ANCHORS,
    HEADER_SIGNATURES,
    MANUAL_FIELD_ALIASES,
    RANK_TOOL_FIELDS,
    VOLUME_MULTIPLIERS,
)
from normalization.models import CanonicalRecord, Source, StandardMetrics

logger = logging.getLogger(__name__)

_MAGNITUDE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*([KkMm])?")

Number = Union[int, float]


def to_number(value: Any) -> Optional[Number]:
    """
    Coerce a cell value to a number.

    Accepts ints, floats and fully numeric strings (surrounding whitespace
    and thousands separators allowed). Booleans, NaN and infinities are
    rejected. Whole floats come back as int.

    Returns:
        The number, or None if the value is not numeric
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None

    if not isinstance(value, (int, float)):
        return None

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        if value.is_integer():
            return int(value)

    return value


def parse_percentage(value: Any) -> Optional[Number]:
    """Parse "42%" to 42. Non-percentage numbers pass through."""
    if isinstance(value, str) and "%" in value:
        return to_number(value.replace("%", ""))
    return to_number(value)


def parse_abbreviated_volume(value: Any) -> Optional[int]:
    """
    Turn an abbreviated volume such as "1K-10K" or "1.5M" into one number.

    Only the first numeric token and its own suffix are used, so a range
    resolves to its lower bound.
    """
    number = to_number(value)
    if number is not None:
        return int(round(number))

    if not isinstance(value, str):
        return None

    match = _MAGNITUDE_PATTERN.search(value.replace(",", ""))
    if not match:
        return None

    amount = float(match.group(1))
    suffix = match.group(2)
    if suffix:
        amount *= VOLUME_MULTIPLIERS[suffix.upper()]

    if not math.isfinite(amount):
        return None

    return int(round(amount))


def competition_from_label(value: Any) -> Optional[Union[float, str]]:
    """Map Low/Medium/High to fixed anchors; other values pass through."""
    if isinstance(value, str):
        anchor = COMPETITION_ANCHORS.get(value.strip().lower())
        if anchor is not None:
            return anchor
    return _number_or_label(value)


def _number_or_label(value: Any) -> Optional[Union[Number, str]]:
    if isinstance(value, str):
        label = value.strip()
        if not label:
            return None
        number = to_number(label)
        return label if number is None else number
    return to_number(value)


def _lowercase_keys(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Index a row by lowercased key, keeping the first spelling seen."""
    lowered: Dict[str, Any] = {}
    for key, value in row.items():
        lowered.setdefault(str(key).strip().lower(), value)
    return lowered


def detect_source(sample_row: Mapping[str, Any]) -> Optional[Source]:
    """
    Infer the exporting tool from a row's field names.

    Signatures are checked in a fixed order and the first match wins.

    Args:
        sample_row: Typically the first row of a batch

    Returns:
        Detected Source, or None when no signature matches
    """
    if not isinstance(sample_row, Mapping):
        return None

    headers = frozenset(str(key).strip().lower() for key in sample_row.keys())
    for signature in HEADER_SIGNATURES:
        if signature.matches(headers):
            return Source(signature.source)

    return None


class ToolDataMapper:
    """
    Maps flat keyword rows from each supported tool to CanonicalRecord.
    """

    def map(
        self,
        row: Mapping[str, Any],
        source: Optional[Source] = None,
        tool_version: Optional[str] = None
    ) -> CanonicalRecord:
        """
        Convert one row into a canonical record.

        Args:
            row: Flat key/value row, field names in any case
            source: Tool that produced the row, auto-detected if None
            tool_version: Optional export version to carry along

        Returns:
            CanonicalRecord with the row preserved as raw data
        """
        if source is None:
            source = detect_source(row) or Source.MANUAL

        fields = _lowercase_keys(row)
        handler = {
            Source.RANK_TOOL: self._map_rank_tool,
            Source.BACKLINK_TOOL: self._map_backlink_tool,
            Source.AD_PLANNER: self._map_ad_planner,
            Source.AI_GENERATED: self._map_ai_generated,
            Source.MANUAL: self._map_manual,
        }[source]

        metrics = handler(fields)
        logger.debug(
            "Mapped %s row with fields %s",
            source.value,
            metrics.defined_fields()
        )

        return CanonicalRecord(
            source=source,
            metrics=metrics,
            raw=row,
            tool_version=tool_version,
        )

    def _map_rank_tool(self, fields: Dict[str, Any]) -> StandardMetrics:
        """Rank tool exports are already numeric."""
        return StandardMetrics(
            volume=to_number(fields.get(RANK_TOOL_FIELDS["volume"])),
            difficulty=to_number(fields.get(RANK_TOOL_FIELDS["difficulty"])),
            competition=to_number(fields.get(RANK_TOOL_FIELDS["competition"])),
            cpc=to_number(fields.get(RANK_TOOL_FIELDS["cpc"])),
        )

    def _map_backlink_tool(self, fields: Dict[str, Any]) -> StandardMetrics:
        """Backlink tool reports competition as a percentage string."""
        return StandardMetrics(
            volume=to_number(fields.get(BACKLINK_TOOL_FIELDS["volume"])),
            difficulty=to_number(fields.get(BACKLINK_TOOL_FIELDS["difficulty"])),
            competition=parse_percentage(
                fields.get(BACKLINK_TOOL_FIELDS["competition"])
            ),
            cpc=to_number(fields.get(BACKLINK_TOOL_FIELDS["cpc"])),
        )

    def _map_ad_planner(self, fields: Dict[str, Any]) -> StandardMetrics:
        """
        Ad planner reports volume as a bucket ("1K-10K"), competition as
        a tier label and CPC as a low/high bid pair.
        """
        low, high = self._bid_range(fields)
        cpc = (low + high) / 2 if low is not None and high is not None else None

        return StandardMetrics(
            volume=parse_abbreviated_volume(
                fields.get(AD_PLANNER_FIELDS["volume"])
            ),
            competition=competition_from_label(
                fields.get(AD_PLANNER_FIELDS["competition"])
            ),
            cpc=cpc,
        )

    def _bid_range(
        self,
        fields: Dict[str, Any]
    ) -> Tuple[Optional[Number], Optional[Number]]:
        return (
            to_number(fields.get(AD_PLANNER_FIELDS["bid_low"])),
            to_number(fields.get(AD_PLANNER_FIELDS["bid_high"])),
        )

    def _map_ai_generated(self, fields: Dict[str, Any]) -> StandardMetrics:
        # Competition and CPC are never estimated for generated keywords
        return StandardMetrics(
            volume=to_number(fields.get(AI_GENERATED_FIELDS["volume"])),
            difficulty=to_number(fields.get(AI_GENERATED_FIELDS["difficulty"])),
        )

    def _map_manual(self, fields: Dict[str, Any]) -> StandardMetrics:
        """Best-effort extraction for rows that match no known tool."""
        return StandardMetrics(
            volume=to_number(self._first_present(fields, "volume")),
            difficulty=to_number(self._first_present(fields, "difficulty")),
            competition=_number_or_label(
                self._first_present(fields, "competition")
            ),
            cpc=to_number(self._first_present(fields, "cpc")),
        )

    def _first_present(self, fields: Dict[str, Any], metric: str) -> Any:
        for alias in MANUAL_FIELD_ALIASES[metric]:
            value = fields.get(alias)
            if value is not None and value != "":
                return value
        return None


_default_mapper = ToolDataMapper()


def map_row(
    row: Mapping[str, Any],
    source: Optional[Source] = None,
    tool_version: Optional[str] = None
) -> CanonicalRecord:
    """Convert one row using the shared ToolDataMapper."""
    return _default_mapper.map(row, source, tool_version=tool_version)
