"""
Batch validation of uploaded keyword rows.

Each row is sanitized, checked for a keyword, mapped to a canonical record
and range-checked. A bad row never stops the batch: its problems are
reported with a 1-based row number and the remaining rows carry on.
"""
import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from config.settings import ValidationSettings, get_settings
from config.tool_config import KEYWORD_FIELD
from normalization.mapper import ToolDataMapper, detect_source, to_number
from normalization.models import (
    BatchResult,
    BatchSummary,
    CanonicalRecord,
    ErrorCode,
    Severity,
    Source,
    ValidationIssue,
)
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Characters stripped from keys and values before processing
INJECTION_CHARS = re.compile(r"[<>'\"]")

NO_DATA_MESSAGE = "No data provided"
NO_SOURCE_MESSAGE = "Could not auto-detect tool source. Using manual mapping."


class _RowIssues:
    """Issues collected while checking one row."""

    def __init__(self, row: Optional[int]):
        self.row = row
        self.items: List[ValidationIssue] = []

    def error(self, code: ErrorCode, text: str):
        self.items.append(ValidationIssue(
            code=code,
            severity=Severity.ERROR,
            message=self._prefix(text),
            row=self.row
        ))

    def warning(self, code: ErrorCode, text: str):
        self.items.append(ValidationIssue(
            code=code,
            severity=Severity.WARNING,
            message=self._prefix(text),
            row=self.row
        ))

    def _prefix(self, text: str) -> str:
        return text if self.row is None else f"Row {self.row}: {text}"

    @property
    def has_errors(self) -> bool:
        return any(item.severity == Severity.ERROR for item in self.items)


class ValidationPipeline:
    """
    Validates batches of flat keyword rows from external tools.
    """

    def __init__(
        self,
        settings: ValidationSettings = None,
        mapper: ToolDataMapper = None
    ):
        """
        Initialize pipeline.

        Args:
            settings: Validation thresholds (defaults from app settings)
            mapper: Row mapper to delegate conversion to
        """
        self.settings = settings or get_settings().validation
        self.mapper = mapper or ToolDataMapper()

    def validate_batch(
        self,
        rows: Optional[Sequence[Any]],
        expected_source: Optional[Union[Source, str]] = None
    ) -> BatchResult:
        """
        Validate and map a batch of rows.

        Args:
            rows: Flat key/value rows, e.g. one per CSV line
            expected_source: Tool that produced the rows; skips detection

        Returns:
            BatchResult with accepted records, errors, warnings and summary

        Raises:
            ValidationError: If expected_source names no known tool
        """
        if not rows:
            return BatchResult(
                errors=(NO_DATA_MESSAGE,),
                summary=BatchSummary(),
                issues=(ValidationIssue(
                    code=ErrorCode.EMPTY_BATCH,
                    severity=Severity.ERROR,
                    message=NO_DATA_MESSAGE
                ),),
            )

        source = (
            Source.from_value(expected_source)
            if expected_source is not None else None
        )

        issues: List[ValidationIssue] = []
        if source is None:
            source = self.detect_source(self.sanitize_row(rows[0]))
            if source is None:
                batch = _RowIssues(None)
                batch.warning(ErrorCode.SOURCE_NOT_DETECTED, NO_SOURCE_MESSAGE)
                issues.extend(batch.items)
        detected_source = source

        accepted: List[CanonicalRecord] = []
        for index, row in enumerate(rows, start=1):
            record, row_issues = self._validate_row(
                row, index, source or Source.MANUAL
            )
            issues.extend(row_issues.items)
            if record is not None:
                accepted.append(record)

        result = BatchResult(
            accepted=tuple(accepted),
            errors=tuple(
                i.message for i in issues if i.severity == Severity.ERROR
            ),
            warnings=tuple(
                i.message for i in issues if i.severity == Severity.WARNING
            ),
            summary=BatchSummary(
                total_rows=len(rows),
                valid_rows=len(accepted),
                invalid_rows=len(rows) - len(accepted),
                detected_source=detected_source,
            ),
            issues=tuple(issues),
        )

        logger.info(
            "Validated %d rows from %s: %d accepted, %d errors, %d warnings",
            len(rows),
            detected_source.value if detected_source else "unknown source",
            len(accepted),
            len(result.errors),
            len(result.warnings)
        )
        return result

    def _validate_row(
        self,
        row: Any,
        index: int,
        source: Source
    ) -> Tuple[Optional[CanonicalRecord], _RowIssues]:
        """Run structural, mapping and range checks for one row."""
        issues = _RowIssues(index)

        if not isinstance(row, Mapping):
            issues.error(
                ErrorCode.STRUCTURAL_PARSE_FAILURE,
                "Invalid row format"
            )
            return None, issues

        row = self.sanitize_row(row)

        keyword_key, keyword = self._find_keyword(row)
        if not keyword:
            issues.error(ErrorCode.KEYWORD_REQUIRED, "Keyword is required")
            return None, issues

        if len(keyword) > self.settings.max_keyword_length:
            issues.error(
                ErrorCode.KEYWORD_REQUIRED,
                f"Keyword exceeds {self.settings.max_keyword_length} characters"
            )
            return None, issues

        row[keyword_key] = keyword

        try:
            record = self.mapper.map(row, source)
        except (
            TypeError, ValueError, KeyError, AttributeError, ArithmeticError
        ) as e:
            logger.warning("Row %d could not be mapped: %s", index, e)
            issues.error(
                ErrorCode.STRUCTURAL_PARSE_FAILURE,
                f"Could not parse row ({e})"
            )
            return None, issues

        self._check_ranges(record, issues)
        if issues.has_errors:
            return None, issues

        return record, issues

    def _find_keyword(self, row: Dict[str, Any]) -> Tuple[str, str]:
        """Locate the keyword field (any case) and return its text."""
        for key, value in row.items():
            if str(key).strip().lower() != KEYWORD_FIELD:
                continue
            if value is None:
                return key, ""
            if isinstance(value, float) and math.isnan(value):
                return key, ""
            return key, str(value).strip()
        return KEYWORD_FIELD, ""

    def _check_ranges(self, record: CanonicalRecord, issues: _RowIssues):
        """Semantic range checks on mapped metrics."""
        metrics = record.metrics
        volume = to_number(metrics.volume)
        difficulty = to_number(metrics.difficulty)
        cpc = to_number(metrics.cpc)

        if volume is not None:
            if volume < 0:
                issues.error(
                    ErrorCode.NEGATIVE_VOLUME,
                    "Search volume cannot be negative"
                )
            elif volume > self.settings.max_plausible_volume:
                issues.warning(
                    ErrorCode.IMPLAUSIBLE_VOLUME,
                    f"Search volume seems unusually high ({volume})"
                )

        if difficulty is not None:
            if not (
                self.settings.min_difficulty
                <= difficulty
                <= self.settings.max_difficulty
            ):
                issues.error(
                    ErrorCode.DIFFICULTY_OUT_OF_RANGE,
                    "Difficulty must be between "
                    f"{self.settings.min_difficulty}-{self.settings.max_difficulty}"
                )

        if cpc is not None:
            if cpc < 0:
                issues.error(ErrorCode.NEGATIVE_CPC, "CPC cannot be negative")
            elif cpc > self.settings.max_plausible_cpc:
                issues.warning(
                    ErrorCode.IMPLAUSIBLE_CPC,
                    f"CPC seems unusually high (${cpc})"
                )

    def detect_source(self, sample_row: Mapping[str, Any]) -> Optional[Source]:
        """
        Detect the exporting tool from the first row's headers.

        Returns:
            Source, or None if no header signature matches
        """
        return detect_source(sample_row)

    def sanitize_row(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Strip markup and quote characters, trim, and coerce numbers.

        The keyword field is kept as text. Non-string values are left as
        they are.
        """
        sanitized: Dict[str, Any] = {}
        if not isinstance(row, Mapping):
            return sanitized

        for key, value in row.items():
            clean_key = (
                INJECTION_CHARS.sub("", key).strip()
                if isinstance(key, str) else key
            )

            if isinstance(value, str):
                value = INJECTION_CHARS.sub("", value).strip()
                is_keyword = (
                    isinstance(clean_key, str)
                    and clean_key.lower() == KEYWORD_FIELD
                )
                if not is_keyword:
                    number = to_number(value)
                    if number is not None:
                        value = number

            sanitized[clean_key] = value

        return sanitized

    def sanitize_batch(self, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Sanitize every row of a batch."""
        return [self.sanitize_row(row) for row in rows]

    def get_suggestions(self, result: BatchResult) -> List[str]:
        """
        Suggest fixes for common import problems.

        Args:
            result: BatchResult from validate_batch

        Returns:
            List of suggestion strings
        """
        suggestions = []

        if result.summary.detected_source is None:
            suggestions.append(
                "Consider manually specifying the tool source to improve "
                "data mapping accuracy."
            )

        if result.summary.invalid_rows > 0:
            suggestions.append(
                "Review invalid rows and ensure all required fields are "
                "present and properly formatted."
            )

        if any("unusually high" in w for w in result.warnings):
            suggestions.append(
                "Double-check any unusually high values - they may indicate "
                "data format issues."
            )

        if any("Keyword is required" in e for e in result.errors):
            suggestions.append(
                'Ensure your CSV has a "keyword" column with non-empty '
                "values in each row."
            )

        if result.issues_for(ErrorCode.STRUCTURAL_PARSE_FAILURE):
            suggestions.append(
                "Some rows could not be read. Try exporting the file again "
                "from the original tool."
            )

        return suggestions

    def validate_record(self, data: Any) -> Tuple[bool, List[str]]:
        """
        Check a stored canonical record (JSON shape) for structural issues.

        Returns:
            Tuple of (is_valid, error messages)
        """
        errors = []
        if not isinstance(data, Mapping):
            return False, ["Record must be an object"]

        for key in ("source", "standardMetrics", "rawData", "importedAt"):
            if key not in data:
                errors.append(f"{key}: Required")

        metrics = data.get("standardMetrics")
        if metrics is not None and not isinstance(metrics, Mapping):
            errors.append("standardMetrics: Expected object")
        elif isinstance(metrics, Mapping):
            for name in ("volume", "difficulty", "cpc"):
                value = metrics.get(name)
                if value is not None and to_number(value) is None:
                    errors.append(f"standardMetrics.{name}: Expected number")
            competition = metrics.get("competition")
            if competition is not None and not isinstance(
                competition, (int, float, str)
            ):
                errors.append(
                    "standardMetrics.competition: Expected number or string"
                )

        raw = data.get("rawData")
        if raw is not None and not isinstance(raw, Mapping):
            errors.append("rawData: Expected object")

        if errors:
            return False, errors

        imported_at = data.get("importedAt")
        if not isinstance(imported_at, str):
            return False, ["importedAt: Expected string"]

        try:
            CanonicalRecord.from_dict(data)
        except ValidationError as e:
            return False, [e.message]

        return True, []

    def get_stats(self, result: BatchResult) -> dict:
        """
        Get validation statistics.

        Args:
            result: BatchResult object

        Returns:
            Statistics dictionary
        """
        code_counts: Dict[str, int] = {}
        for issue in result.issues:
            code_counts[issue.code.value] = code_counts.get(issue.code.value, 0) + 1

        total = result.summary.total_rows
        rate = result.summary.valid_rows / total if total else 0.0

        return {
            "total_input": total,
            "valid": result.summary.valid_rows,
            "invalid": result.summary.invalid_rows,
            "validity_rate": f"{rate:.1%}",
            "issue_counts": code_counts,
            "detected_source": (
                result.summary.detected_source.label
                if result.summary.detected_source else None
            ),
        }


def validate_batch(
    rows: Optional[Sequence[Any]],
    expected_source: Optional[Union[Source, str]] = None
) -> BatchResult:
    """Validate a batch with default settings."""
    return ValidationPipeline().validate_batch(rows, expected_source)
