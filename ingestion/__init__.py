"""
Ingestion module for keyword metrics import.
Handles CSV upload, parsing, column mapping and batch validation.
"""
from ingestion.csv_parser import CSVParser, parse_uploaded_file
from ingestion.column_mapping import (
    ColumnMapping,
    apply_column_mapping,
    create_column_mapping,
    suggest_column_mapping,
)
from ingestion.validator import ValidationPipeline, validate_batch

__all__ = [
    "CSVParser",
    "parse_uploaded_file",
    "ColumnMapping",
    "apply_column_mapping",
    "create_column_mapping",
    "suggest_column_mapping",
    "ValidationPipeline",
    "validate_batch",
]
