"""
Excel export functionality for keyword import results.
Uses openpyxl for rich Excel formatting.
"""
import io
from typing import List, Sequence
from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment

from normalization.models import BatchResult, CanonicalRecord, Severity


class ExcelExporter:
    """Exports import results to Excel with formatting."""

    # Style definitions
    HEADER_FILL = PatternFill(
        start_color="4472C4",
        end_color="4472C4",
        fill_type="solid"
    )
    HEADER_FONT = Font(bold=True, color="FFFFFF")

    SEVERITY_COLORS = {
        Severity.ERROR: "FF6B6B",    # Red
        Severity.WARNING: "FFB347",  # Orange
    }

    SOURCE_COLORS = {
        "rank_tool": "92D050",
        "backlink_tool": "6BB3FF",
        "ad_planner": "FFD966",
        "ai_generated": "C9A0DC",
        "manual": "CCCCCC",
    }

    def __init__(self):
        """Initialize exporter."""
        self.wb = None

    def export_full_report(
        self,
        result: BatchResult,
        suggestions: List[str] = None,
        records: Sequence[CanonicalRecord] = None
    ) -> bytes:
        """
        Export complete report with multiple sheets.

        Args:
            result: Validated batch
            suggestions: Optional remediation hints
            records: Records for the Keywords sheet, e.g. merged by
                keyword (defaults to the accepted records)

        Returns:
            Excel file as bytes
        """
        self.wb = Workbook()

        # Remove default sheet
        self.wb.remove(self.wb.active)

        self._create_summary_sheet(result, suggestions or [])
        self._create_keywords_sheet(
            result.accepted if records is None else records
        )
        if result.issues:
            self._create_issues_sheet(result)

        return self._save()

    def export_records(self, records: Sequence[CanonicalRecord]) -> bytes:
        """
        Export just the keywords sheet.

        Returns:
            Excel file bytes
        """
        self.wb = Workbook()
        self.wb.remove(self.wb.active)

        self._create_keywords_sheet(records)

        return self._save()

    def _save(self) -> bytes:
        output = io.BytesIO()
        self.wb.save(output)
        output.seek(0)
        return output.getvalue()

    def _write_headers(self, ws, headers: List[str]):
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = self.HEADER_FILL
            cell.font = self.HEADER_FONT
            cell.alignment = Alignment(horizontal="center")

    def _set_widths(self, ws, widths: List[int]):
        for col, width in enumerate(widths, 1):
            ws.column_dimensions[
                ws.cell(row=1, column=col).column_letter
            ].width = width

    def _create_summary_sheet(self, result: BatchResult, suggestions: List[str]):
        """Create summary sheet with row counts and suggestions."""
        ws = self.wb.create_sheet("Summary")

        # Title
        ws["A1"] = "Keyword Import Report"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        ws["A3"] = "Generated:"
        ws["B3"] = datetime.now().strftime("%Y-%m-%d %H:%M")

        summary = result.summary
        metrics = [
            (
                "Detected Tool",
                summary.detected_source.label if summary.detected_source else "Unknown"
            ),
            ("Total Rows", summary.total_rows),
            ("Valid Rows", summary.valid_rows),
            ("Invalid Rows", summary.invalid_rows),
            ("Errors", len(result.errors)),
            ("Warnings", len(result.warnings)),
        ]

        row = 5
        for label, value in metrics:
            ws[f"A{row}"] = label
            ws[f"A{row}"].font = Font(bold=True)
            ws[f"B{row}"] = value
            row += 1

        if suggestions:
            row += 1
            ws[f"A{row}"] = "Suggestions"
            ws[f"A{row}"].font = Font(bold=True, size=12)
            row += 1
            for suggestion in suggestions:
                ws[f"A{row}"] = suggestion
                row += 1

        ws.column_dimensions["A"].width = 25
        ws.column_dimensions["B"].width = 20

    def _create_keywords_sheet(self, records: Sequence[CanonicalRecord]):
        """Create sheet with one row per accepted keyword."""
        ws = self.wb.create_sheet("Keywords")

        headers = [
            "Keyword",
            "Source",
            "Search Volume",
            "Difficulty",
            "Competition",
            "CPC",
            "Imported At"
        ]
        self._write_headers(ws, headers)

        for row_idx, record in enumerate(records, 2):
            metrics = record.metrics
            values = [
                record.keyword or "",
                record.source.label,
                metrics.volume,
                metrics.difficulty,
                metrics.competition,
                metrics.cpc,
                record.imported_at.strftime("%Y-%m-%d %H:%M"),
            ]

            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_idx, column=col, value=value)

                # Source color
                if col == 2:
                    color = self.SOURCE_COLORS.get(record.source.value, "CCCCCC")
                    cell.fill = PatternFill(
                        start_color=color,
                        end_color=color,
                        fill_type="solid"
                    )

                if col == 6 and value is not None:
                    cell.number_format = '"$"#,##0.00'

        self._set_widths(ws, [40, 16, 15, 12, 14, 10, 18])

        # Freeze header row
        ws.freeze_panes = "A2"

    def _create_issues_sheet(self, result: BatchResult):
        """Create sheet listing every error and warning."""
        ws = self.wb.create_sheet("Issues")

        self._write_headers(ws, ["Row", "Severity", "Code", "Message"])

        for row_idx, issue in enumerate(result.issues, 2):
            values = [
                issue.row,
                issue.severity.value.title(),
                issue.code.value,
                issue.message,
            ]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_idx, column=col, value=value)
                if col == 2:
                    color = self.SEVERITY_COLORS[issue.severity]
                    cell.fill = PatternFill(
                        start_color=color,
                        end_color=color,
                        fill_type="solid"
                    )

        self._set_widths(ws, [8, 12, 24, 70])
        ws.freeze_panes = "A2"
