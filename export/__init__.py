"""
Export module for keyword metrics import.

Provides CSV and Excel export functionality.
"""
from export.csv_exporter import CSVExporter, create_download_link
from export.excel_exporter import ExcelExporter

__all__ = [
    "CSVExporter",
    "ExcelExporter",
    "create_download_link",
]
