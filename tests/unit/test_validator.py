"""
Unit Tests for the Validation Pipeline

Covers batch-level behaviour (empty input, detection, summary counts),
row-level error isolation, range checks, sanitization and suggestions.
"""

import pytest

from config.settings import ValidationSettings
from core.exceptions import ValidationError
from ingestion.validator import ValidationPipeline, validate_batch
from normalization.models import BatchSummary, ErrorCode, Severity, Source
from normalization.mapper import ToolDataMapper


# ============================================================================
# Batch Behaviour
# ============================================================================

class TestValidateBatch:
    """Tests for validate_batch"""

    @pytest.mark.parametrize("rows", [[], None])
    def test_empty_batch(self, pipeline, rows):
        """Empty input short-circuits with a single error"""
        result = pipeline.validate_batch(rows)

        assert result.accepted == ()
        assert result.errors == ("No data provided",)
        assert result.warnings == ()
        assert result.summary == BatchSummary(
            total_rows=0, valid_rows=0, invalid_rows=0
        )
        assert result.issues[0].code == ErrorCode.EMPTY_BATCH
        assert result.success is False

    def test_empty_keyword(self, pipeline):
        result = pipeline.validate_batch([{"keyword": "", "volume": 100}])

        assert result.accepted == ()
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 1:")
        assert "Keyword is required" in result.errors[0]

    def test_error_isolation(self, pipeline):
        """A bad row does not affect its neighbours"""
        rows = [
            {"keyword": "a", "kd": 10, "volume": 100, "cmp": 0.1},
            {"keyword": "b", "kd": 150, "volume": 200, "cmp": 0.2},
            {"keyword": "c", "kd": 30, "volume": 300, "cmp": 0.3},
        ]

        result = pipeline.validate_batch(rows)

        assert result.summary.valid_rows == 2
        assert result.summary.invalid_rows == 1
        assert len(result.accepted) == 2
        assert result.errors == ("Row 2: Difficulty must be between 0-100",)
        assert [r.keyword for r in result.accepted] == ["a", "c"]
        assert result.accepted[1].metrics.volume == 300

    def test_detects_rank_tool(self, pipeline):
        rows = [
            {"keyword": "a", "kd": 10, "volume": 100, "cmp": 0.1},
            {"keyword": "b", "kd": 20, "volume": 200, "cmp": 0.2},
        ]

        result = pipeline.validate_batch(rows)

        assert result.summary.detected_source == Source.RANK_TOOL
        assert all(r.source == Source.RANK_TOOL for r in result.accepted)
        assert result.warnings == ()

    def test_detection_uses_first_row_only(self, pipeline):
        rows = [
            {"keyword": "a", "search volume": 100, "kd": 10},
            {"keyword": "b", "kd": 20, "volume": 200, "cmp": 0.2},
        ]

        result = pipeline.validate_batch(rows)

        assert result.summary.detected_source == Source.BACKLINK_TOOL
        assert all(r.source == Source.BACKLINK_TOOL for r in result.accepted)

    def test_undetected_source_warns_and_maps_manually(self, pipeline):
        rows = [{"keyword": "a", "volume": "100"}, {"keyword": "b", "cpc": 2}]

        result = pipeline.validate_batch(rows)

        assert result.summary.detected_source is None
        assert result.warnings == (
            "Could not auto-detect tool source. Using manual mapping.",
        )
        assert len(result.accepted) == 2
        assert all(r.source == Source.MANUAL for r in result.accepted)
        assert result.accepted[0].metrics.volume == 100

    def test_expected_source_skips_detection(self, pipeline):
        rows = [{"keyword": "a", "kd": 10, "volume": 100, "cmp": 0.1}]

        result = pipeline.validate_batch(rows, Source.AI_GENERATED)

        assert result.summary.detected_source == Source.AI_GENERATED
        assert result.accepted[0].source == Source.AI_GENERATED

    def test_expected_source_as_string(self, pipeline, ad_planner_row):
        result = pipeline.validate_batch([ad_planner_row], "ad_planner")

        assert result.summary.detected_source == Source.AD_PLANNER
        assert result.accepted[0].metrics.volume == 1000

    def test_unknown_expected_source(self, pipeline):
        with pytest.raises(ValidationError):
            pipeline.validate_batch([{"keyword": "a"}], "spreadsheet")

    def test_module_level_helper(self, rank_tool_row):
        result = validate_batch([rank_tool_row])
        assert result.summary.detected_source == Source.RANK_TOOL
        assert result.success is True


# ============================================================================
# Row Checks
# ============================================================================

class TestRowChecks:
    """Structural and semantic checks on individual rows"""

    @pytest.mark.parametrize("row", [
        {"volume": 10},
        {"keyword": None},
        {"keyword": "   "},
        {"keyword": "<>"},
        {"keyword": float("nan")},
    ])
    def test_keyword_required(self, pipeline, row):
        result = pipeline.validate_batch([row])

        assert result.errors == ("Row 1: Keyword is required",)
        assert result.issues_for(ErrorCode.KEYWORD_REQUIRED)

    def test_keyword_too_long(self, pipeline):
        result = pipeline.validate_batch([{"keyword": "k" * 256}])

        assert result.errors == ("Row 1: Keyword exceeds 255 characters",)
        assert result.issues_for(ErrorCode.KEYWORD_REQUIRED)[0].row == 1

    def test_keyword_length_after_sanitization(self, pipeline):
        """Stripped characters do not count towards the limit"""
        keyword = "k" * 255 + '"'
        result = pipeline.validate_batch([{"keyword": keyword}])

        assert result.errors == ()
        assert result.accepted[0].keyword == "k" * 255

    def test_capitalised_keyword_column(self, pipeline):
        result = pipeline.validate_batch([{"Keyword": " shoes ", "Volume": 5}])

        assert result.errors == ()
        assert result.accepted[0].keyword == "shoes"

    def test_numeric_keyword_stays_text(self, pipeline):
        result = pipeline.validate_batch([{"keyword": "404", "volume": 5}])

        assert result.accepted[0].keyword == "404"
        assert result.accepted[0].raw["keyword"] == "404"

    def test_invalid_row_format(self, pipeline):
        result = pipeline.validate_batch(
            [{"keyword": "a"}, ["keyword", "b"], {"keyword": "c"}]
        )

        assert result.errors == ("Row 2: Invalid row format",)
        assert result.issues_for(ErrorCode.STRUCTURAL_PARSE_FAILURE)[0].row == 2
        assert result.summary.valid_rows == 2

    def test_negative_volume(self, pipeline):
        result = pipeline.validate_batch([{"keyword": "a", "volume": -1}])

        assert result.errors == ("Row 1: Search volume cannot be negative",)
        assert result.issues_for(ErrorCode.NEGATIVE_VOLUME)

    def test_implausible_volume_is_warning(self, pipeline):
        result = pipeline.validate_batch([{"keyword": "a", "volume": 15_000_000}])

        assert len(result.accepted) == 1
        assert result.errors == ()
        assert "Row 1: Search volume seems unusually high (15000000)" in result.warnings
        issue = result.issues_for(ErrorCode.IMPLAUSIBLE_VOLUME)[0]
        assert issue.severity == Severity.WARNING

    @pytest.mark.parametrize("difficulty", [-1, 100.5, 150])
    def test_difficulty_out_of_range(self, pipeline, difficulty):
        result = pipeline.validate_batch([{"keyword": "a", "difficulty": difficulty}])

        assert result.accepted == ()
        assert result.issues_for(ErrorCode.DIFFICULTY_OUT_OF_RANGE)

    @pytest.mark.parametrize("difficulty", [0, 100, 55.5])
    def test_difficulty_bounds_inclusive(self, pipeline, difficulty):
        result = pipeline.validate_batch([{"keyword": "a", "difficulty": difficulty}])
        assert len(result.accepted) == 1

    def test_negative_cpc(self, pipeline):
        result = pipeline.validate_batch([{"keyword": "a", "cpc": -0.5}])

        assert result.errors == ("Row 1: CPC cannot be negative",)
        assert result.issues_for(ErrorCode.NEGATIVE_CPC)

    def test_implausible_cpc_is_warning(self, pipeline):
        result = pipeline.validate_batch([{"keyword": "a", "cpc": 1500}])

        assert len(result.accepted) == 1
        assert "Row 1: CPC seems unusually high ($1500)" in result.warnings

    def test_multiple_errors_on_one_row(self, pipeline):
        result = pipeline.validate_batch(
            [{"keyword": "a", "volume": -5, "difficulty": 101, "cpc": -1}]
        )

        assert len(result.errors) == 3
        assert result.summary.invalid_rows == 1

    def test_oversized_ad_planner_volume(self, pipeline, ad_planner_row):
        """An unrepresentable bucket drops the volume, not the batch"""
        oversized = dict(ad_planner_row, keyword="a")
        oversized["avg monthly searches"] = "9" * 400 + "K"

        result = pipeline.validate_batch([oversized, ad_planner_row])

        assert result.summary.total_rows == 2
        assert result.summary.valid_rows == 2
        assert result.accepted[0].metrics.volume is None
        assert result.accepted[1].metrics.volume == 1000

    def test_arithmetic_failure_is_row_error(self, rank_tool_row):
        """Overflow while mapping is reported against the row"""

        class OverflowingMapper(ToolDataMapper):
            def map(self, row, source=None, tool_version=None):
                if row.get("keyword") == "boom":
                    raise OverflowError("cannot convert float infinity to integer")
                return super().map(row, source, tool_version)

        pipeline = ValidationPipeline(
            settings=ValidationSettings(), mapper=OverflowingMapper()
        )
        rows = [dict(rank_tool_row, keyword="boom"), rank_tool_row]

        result = pipeline.validate_batch(rows)

        assert result.summary.valid_rows == 1
        assert result.errors == (
            "Row 1: Could not parse row (cannot convert float infinity to integer)",
        )
        assert result.issues_for(ErrorCode.STRUCTURAL_PARSE_FAILURE)[0].row == 1

    def test_custom_thresholds(self):
        settings = ValidationSettings(max_plausible_volume=100)
        pipeline = ValidationPipeline(settings=settings)

        result = pipeline.validate_batch([{"keyword": "a", "volume": 101}])

        assert result.issues_for(ErrorCode.IMPLAUSIBLE_VOLUME)

    def test_messages_mirror_issues(self, pipeline):
        rows = [{"keyword": ""}, {"keyword": "b", "volume": 20_000_000}]
        result = pipeline.validate_batch(rows)

        errors = [i.message for i in result.issues if i.severity == Severity.ERROR]
        warnings = [i.message for i in result.issues if i.severity == Severity.WARNING]
        assert list(result.errors) == errors
        assert list(result.warnings) == warnings


# ============================================================================
# Sanitization
# ============================================================================

class TestSanitizeRow:
    """Tests for sanitize_row"""

    def test_strips_markup_and_quotes(self, pipeline):
        row = {'<b>keyword</b>': ' <script>shoes</script> ', "note": "it's \"ok\""}

        sanitized = pipeline.sanitize_row(row)

        assert sanitized == {"bkeyword/b": "scriptshoes/script", "note": "its ok"}

    def test_converts_numbers(self, pipeline):
        sanitized = pipeline.sanitize_row(
            {"keyword": "12", "volume": " 1200 ", "cpc": "'1.5'", "kd": "n/a"}
        )

        assert sanitized == {"keyword": "12", "volume": 1200, "cpc": 1.5, "kd": "n/a"}

    def test_percentages_stay_text(self, pipeline):
        """Tool-specific formats are left for the mapper"""
        sanitized = pipeline.sanitize_row({"competition": "42%", "vol": "1K-10K"})
        assert sanitized == {"competition": "42%", "vol": "1K-10K"}

    def test_non_string_values_untouched(self, pipeline):
        marker = object()
        row = {"keyword": "a", "volume": 5, "extra": marker, 3: "x", "none": None}

        sanitized = pipeline.sanitize_row(row)

        assert sanitized["volume"] == 5
        assert sanitized["extra"] is marker
        assert sanitized[3] == "x"
        assert sanitized["none"] is None

    def test_never_raises(self, pipeline):
        assert pipeline.sanitize_row(None) == {}
        assert pipeline.sanitize_row("keyword") == {}

    def test_does_not_mutate_input(self, pipeline):
        row = {"keyword": " a ", "volume": "5"}
        pipeline.sanitize_row(row)
        assert row == {"keyword": " a ", "volume": "5"}

    def test_sanitize_batch(self, pipeline):
        rows = [{"volume": "1"}, {"volume": "2"}]
        assert pipeline.sanitize_batch(rows) == [{"volume": 1}, {"volume": 2}]


# ============================================================================
# Suggestions
# ============================================================================

class TestSuggestions:
    """Tests for get_suggestions"""

    def test_clean_batch_has_no_suggestions(self, pipeline, rank_tool_row):
        result = pipeline.validate_batch([rank_tool_row])
        assert pipeline.get_suggestions(result) == []

    def test_undetected_source(self, pipeline):
        result = pipeline.validate_batch([{"keyword": "a"}])
        suggestions = pipeline.get_suggestions(result)

        assert len(suggestions) == 1
        assert "manually specifying the tool source" in suggestions[0]

    def test_problem_batch(self, pipeline):
        rows = [
            {"keyword": "", "kd": 1, "volume": 1, "cmp": 1},
            {"keyword": "b", "kd": 1, "volume": 50_000_000, "cmp": 1},
            "not a row",
        ]
        result = pipeline.validate_batch(rows)
        suggestions = pipeline.get_suggestions(result)

        assert any("Review invalid rows" in s for s in suggestions)
        assert any("unusually high values" in s for s in suggestions)
        assert any('"keyword" column' in s for s in suggestions)
        assert any("exporting the file again" in s for s in suggestions)

    def test_does_not_alter_result(self, pipeline):
        result = pipeline.validate_batch([{"keyword": ""}])
        before = (result.errors, result.warnings, result.summary)

        pipeline.get_suggestions(result)

        assert (result.errors, result.warnings, result.summary) == before


# ============================================================================
# Stored Record Validation and Stats
# ============================================================================

class TestValidateRecord:
    """Tests for validate_record"""

    def test_valid_round_trip(self, pipeline, rank_tool_row):
        record = pipeline.validate_batch([rank_tool_row]).accepted[0]
        assert pipeline.validate_record(record.to_dict()) == (True, [])

    def test_missing_keys(self, pipeline):
        valid, errors = pipeline.validate_record({"source": "rank_tool"})

        assert valid is False
        assert "standardMetrics: Required" in errors
        assert "importedAt: Required" in errors

    def test_bad_types(self, pipeline):
        valid, errors = pipeline.validate_record({
            "source": "rank_tool",
            "standardMetrics": {"volume": "many", "competition": [1]},
            "rawData": [],
            "importedAt": "2024-01-01T00:00:00+00:00",
        })

        assert valid is False
        assert "standardMetrics.volume: Expected number" in errors
        assert "standardMetrics.competition: Expected number or string" in errors
        assert "rawData: Expected object" in errors

    def test_unknown_source(self, pipeline):
        valid, errors = pipeline.validate_record({
            "source": "spreadsheet",
            "standardMetrics": {},
            "rawData": {},
            "importedAt": "2024-01-01T00:00:00+00:00",
        })

        assert valid is False
        assert errors == ["Unknown tool source: spreadsheet"]

    def test_not_an_object(self, pipeline):
        assert pipeline.validate_record("record") == (False, ["Record must be an object"])


class TestGetStats:
    """Tests for get_stats"""

    def test_stats(self, pipeline):
        rows = [
            {"keyword": "a", "kd": 1, "volume": 1, "cmp": 1},
            {"keyword": "", "kd": 1, "volume": 1, "cmp": 1},
        ]
        stats = pipeline.get_stats(pipeline.validate_batch(rows))

        assert stats["total_input"] == 2
        assert stats["valid"] == 1
        assert stats["invalid"] == 1
        assert stats["validity_rate"] == "50.0%"
        assert stats["issue_counts"] == {"KeywordRequired": 1}
        assert stats["detected_source"] == "Rank Tool"
