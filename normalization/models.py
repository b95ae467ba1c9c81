"""
Canonical keyword metric records.
"""
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from config.tool_config import SOURCE_QUALITY, KEYWORD_FIELD
from core.exceptions import ValidationError


Competition = Union[float, int, str]


class Source(Enum):
    """Tool a keyword record was exported from."""

    RANK_TOOL = "rank_tool"
    BACKLINK_TOOL = "backlink_tool"
    AD_PLANNER = "ad_planner"
    AI_GENERATED = "ai_generated"
    MANUAL = "manual"

    @property
    def quality_rank(self) -> int:
        """Merge precedence, higher wins."""
        return SOURCE_QUALITY[self.value]

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()

    @classmethod
    def from_value(cls, value: Union["Source", str]) -> "Source":
        """
        Resolve a Source from a member, tag value or member name.

        Raises:
            ValidationError: If the value names no known source
        """
        if isinstance(value, cls):
            return value

        text = str(value).strip().lower().replace(" ", "_")
        for source in cls:
            if text in (source.value, source.name.lower()):
                return source

        raise ValidationError(
            f"Unknown tool source: {value}",
            field="source",
            value=value
        )


METRIC_FIELDS = ("volume", "difficulty", "competition", "cpc")


@dataclass(frozen=True)
class StandardMetrics:
    """Metric set for one keyword observation. None means not reported."""

    volume: Optional[Union[int, float]] = None
    difficulty: Optional[Union[int, float]] = None
    competition: Optional[Competition] = None
    cpc: Optional[float] = None

    def defined_fields(self) -> List[str]:
        return [
            name for name in METRIC_FIELDS
            if getattr(self, name) is not None
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in METRIC_FIELDS}

    @property
    def is_empty(self) -> bool:
        return not self.defined_fields()


def _freeze(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(raw, MappingProxyType):
        return raw
    return MappingProxyType(dict(raw))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(text: str) -> datetime:
    """
    Parse an ISO 8601 timestamp, including the "Z" suffix.

    Raises:
        ValueError: If the text is not a valid timestamp
    """
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class CanonicalRecord:
    """
    Source-tagged metric record that every tool row is converted into.

    ``raw`` holds the original row as received and is exposed read-only.
    """

    source: Source
    metrics: StandardMetrics
    raw: Mapping[str, Any] = field(default_factory=dict)
    imported_at: datetime = field(default_factory=utc_now)
    tool_version: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "raw", _freeze(self.raw))

    @property
    def keyword(self) -> Optional[str]:
        """Keyword text from the raw payload, if present."""
        # Merged payloads namespace keys by source
        names = (KEYWORD_FIELD, f"{self.source.value}_{KEYWORD_FIELD}")
        value = None
        for key, candidate in self.raw.items():
            if str(key).lower() in names:
                value = candidate
                break
        return None if value is None else str(value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape used for storage."""
        data = {
            "source": self.source.value,
            "standardMetrics": {
                name: value
                for name, value in self.metrics.to_dict().items()
                if value is not None
            },
            "rawData": dict(self.raw),
            "importedAt": self.imported_at.isoformat(),
        }
        if self.tool_version is not None:
            data["toolVersion"] = self.tool_version
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CanonicalRecord":
        """
        Rebuild a record from its stored JSON shape.

        Raises:
            ValidationError: If required keys are missing or malformed
        """
        try:
            metrics_data = data.get("standardMetrics") or {}
            known = {f.name for f in fields(StandardMetrics)}
            metrics = StandardMetrics(**{
                key: value for key, value in metrics_data.items()
                if key in known
            })
            imported_at = data["importedAt"]
            if isinstance(imported_at, str):
                imported_at = parse_timestamp(imported_at)
            return cls(
                source=Source.from_value(data["source"]),
                metrics=metrics,
                raw=data.get("rawData") or {},
                imported_at=imported_at,
                tool_version=data.get("toolVersion"),
            )
        except KeyError as e:
            raise ValidationError(
                f"Missing required field: {e.args[0]}",
                field=e.args[0]
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ValidationError(f"Invalid external tool data: {e}")


class Severity(Enum):
    """Severity of a validation issue."""

    ERROR = "error"
    WARNING = "warning"


class ErrorCode(Enum):
    """Kinds of validation issues reported for a batch."""

    KEYWORD_REQUIRED = "KeywordRequired"
    NEGATIVE_VOLUME = "NegativeVolume"
    IMPLAUSIBLE_VOLUME = "ImplausibleVolume"
    DIFFICULTY_OUT_OF_RANGE = "DifficultyOutOfRange"
    NEGATIVE_CPC = "NegativeCPC"
    IMPLAUSIBLE_CPC = "ImplausibleCPC"
    EMPTY_BATCH = "EmptyBatch"
    STRUCTURAL_PARSE_FAILURE = "StructuralParseFailure"
    SOURCE_NOT_DETECTED = "SourceNotDetected"


@dataclass(frozen=True)
class ValidationIssue:
    """One error or warning. ``row`` is 1-based, None for batch issues."""

    code: ErrorCode
    severity: Severity
    message: str
    row: Optional[int] = None


@dataclass(frozen=True)
class BatchSummary:
    """Row counts for a validated batch."""

    total_rows: int = 0
    valid_rows: int = 0
    invalid_rows: int = 0
    detected_source: Optional[Source] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "invalidRows": self.invalid_rows,
            "detectedSource": (
                self.detected_source.value if self.detected_source else None
            ),
        }


@dataclass(frozen=True)
class BatchResult:
    """Outcome of validating one batch of rows."""

    accepted: tuple = ()
    errors: tuple = ()
    warnings: tuple = ()
    summary: BatchSummary = field(default_factory=BatchSummary)
    issues: tuple = ()

    @property
    def success(self) -> bool:
        return not self.errors

    def issues_for(self, code: ErrorCode) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.code == code]
