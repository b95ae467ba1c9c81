"""
CSV export functionality for imported keyword records.
"""
import csv
import io
from typing import List, Sequence
from datetime import datetime

from normalization.formatting import format_metric_value
from normalization.models import METRIC_FIELDS, BatchResult, CanonicalRecord


class CSVExporter:
    """Exports canonical keyword records to CSV format."""

    BASE_FIELDS = [
        "keyword",
        "source",
        "volume",
        "difficulty",
        "competition",
        "cpc",
        "imported_at",
    ]

    def export_records(
        self,
        records: Sequence[CanonicalRecord],
        include_display: bool = False
    ) -> str:
        """
        Export records to CSV string.

        Args:
            records: Canonical records to export
            include_display: Add formatted display columns

        Returns:
            CSV content as string
        """
        output = io.StringIO()

        fieldnames = list(self.BASE_FIELDS)
        if include_display:
            fieldnames += [f"{name}_display" for name in METRIC_FIELDS]

        writer = csv.DictWriter(output, fieldnames=fieldnames)
        writer.writeheader()

        for record in records:
            metrics = record.metrics.to_dict()
            row = {
                "keyword": record.keyword or "",
                "source": record.source.label,
                "imported_at": record.imported_at.isoformat(),
            }
            for name in METRIC_FIELDS:
                value = metrics[name]
                row[name] = "" if value is None else value
                if include_display:
                    row[f"{name}_display"] = format_metric_value(name, value)

            writer.writerow(row)

        return output.getvalue()

    def export_issues(self, result: BatchResult) -> str:
        """
        Export errors and warnings of a batch.

        Returns:
            CSV content with one row per issue
        """
        output = io.StringIO()

        writer = csv.DictWriter(
            output,
            fieldnames=["row", "severity", "code", "message"]
        )
        writer.writeheader()

        for issue in result.issues:
            writer.writerow({
                "row": "" if issue.row is None else issue.row,
                "severity": issue.severity.value,
                "code": issue.code.value,
                "message": issue.message,
            })

        return output.getvalue()

    def export_full_report(
        self,
        result: BatchResult,
        suggestions: List[str] = None
    ) -> str:
        """
        Export a full import report.

        Args:
            result: Validated batch
            suggestions: Optional remediation hints

        Returns:
            CSV content with a metadata header and accepted records
        """
        output = io.StringIO()
        summary = result.summary

        # Write metadata header
        output.write("# Keyword Import Report\n")
        output.write(f"# Generated: {datetime.now().isoformat()}\n")
        source = summary.detected_source.label if summary.detected_source else "Unknown"
        output.write(f"# Detected Tool: {source}\n")
        output.write(f"# Total Rows: {summary.total_rows}\n")
        output.write(f"# Valid Rows: {summary.valid_rows}\n")
        output.write(f"# Invalid Rows: {summary.invalid_rows}\n")
        for suggestion in suggestions or []:
            output.write(f"# Suggestion: {suggestion}\n")
        output.write("\n")

        output.write(self.export_records(result.accepted, include_display=True))

        return output.getvalue()


def create_download_link(
    csv_content: str,
    filename: str
) -> bytes:
    """
    Create downloadable CSV bytes.

    Args:
        csv_content: CSV content string
        filename: Suggested filename

    Returns:
        UTF-8 encoded bytes with BOM for Excel compatibility
    """
    # Add BOM for Excel UTF-8 compatibility
    bom = b'\xef\xbb\xbf'
    return bom + csv_content.encode('utf-8')
