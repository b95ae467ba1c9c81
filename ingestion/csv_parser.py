"""
CSV parsing for keyword tool exports.
Turns an uploaded file into flat records for the validation pipeline.
"""
import logging
import pandas as pd
from typing import List, Dict, Tuple, Optional, Any
from io import BytesIO

from config.settings import ImportSettings, get_settings
from core.exceptions import ParsingError
from normalization.mapper import detect_source

logger = logging.getLogger(__name__)


class CSVParser:
    """
    Parses CSV exports from keyword tools.
    Every cell is read as text; value coercion happens during validation.
    """

    def __init__(self, settings: ImportSettings = None):
        self.settings = settings or get_settings().importing
        self.df: Optional[pd.DataFrame] = None
        self.original_columns: List[str] = []
        self.filename: Optional[str] = None

    def load(
        self,
        file_content: BytesIO,
        encoding: str = "utf-8",
        filename: str = None
    ) -> pd.DataFrame:
        """
        Read the CSV into a DataFrame, trying several encodings.

        Args:
            file_content: File content as BytesIO
            encoding: Preferred encoding, tried first
            filename: Original file name for error messages

        Returns:
            Loaded DataFrame

        Raises:
            ParsingError: If the file cannot be decoded or read
        """
        self.filename = filename
        encodings = [encoding] + [
            enc for enc in self.settings.encodings if enc != encoding
        ]

        try:
            for enc in encodings:
                try:
                    file_content.seek(0)
                    self.df = pd.read_csv(
                        file_content,
                        encoding=enc,
                        dtype=str,
                        keep_default_na=False,
                        skipinitialspace=True,
                        on_bad_lines="skip"  # Skip malformed rows
                    )
                    break
                except UnicodeDecodeError:
                    continue
            else:
                raise ParsingError(
                    "Could not decode file with any supported encoding",
                    filename=filename
                )
        except ParsingError:
            raise
        except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
            raise ParsingError(f"Failed to read CSV: {str(e)}", filename=filename)

        self.df.columns = [str(col).lstrip("\ufeff").strip() for col in self.df.columns]
        self.original_columns = list(self.df.columns)

        if len(self.df) > self.settings.max_upload_rows:
            raise ParsingError(
                f"File has {len(self.df):,} rows; the limit is "
                f"{self.settings.max_upload_rows:,}",
                filename=filename
            )

        logger.info(
            "Loaded %d rows with %d columns from %s",
            len(self.df),
            len(self.original_columns),
            filename or "upload"
        )
        return self.df

    def preview(
        self,
        file_content: BytesIO,
        encoding: str = "utf-8",
        filename: str = None
    ) -> Dict[str, Any]:
        """
        Preview CSV file and return column information.

        Returns:
            Dict with columns, row count, sample rows and detected tool
        """
        self.load(file_content, encoding=encoding, filename=filename)
        records = self.to_records()

        return {
            "columns": self.original_columns,
            "row_count": len(self.df),
            "sample_data": records[:self.settings.preview_rows],
            "detected_source": self.detect_source(),
        }

    def parse(
        self,
        file_content: BytesIO,
        encoding: str = "utf-8",
        filename: str = None
    ) -> List[Dict[str, Any]]:
        """
        Parse CSV file into flat records.

        Returns:
            One dict per row; empty cells are left out

        Raises:
            ParsingError: If parsing fails
        """
        self.load(file_content, encoding=encoding, filename=filename)
        return self.to_records()

    def to_records(self) -> List[Dict[str, Any]]:
        """Convert the loaded DataFrame to flat records."""
        if self.df is None:
            raise ParsingError("No file loaded. Call load() first.")

        records = []
        for row in self.df.to_dict("records"):
            record = {
                column: value
                for column, value in row.items()
                if value is not None and str(value).strip() != ""
            }
            if record:
                records.append(record)

        return records

    def detect_source(self):
        """Detect the exporting tool from the column headers."""
        if not self.original_columns:
            return None
        return detect_source({col: None for col in self.original_columns})

    def get_column_info(self) -> dict:
        """
        Get information about the loaded columns.

        Returns:
            Dict with column names and the detected tool
        """
        detected = self.detect_source()

        return {
            "total_columns": len(self.original_columns),
            "column_names": list(self.original_columns),
            "has_keyword": any(
                col.lower() == "keyword" for col in self.original_columns
            ),
            "detected_source": detected,
        }


def parse_uploaded_file(
    uploaded_file,
    settings: ImportSettings = None
) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """
    Convenience function to parse a Streamlit uploaded file.

    Args:
        uploaded_file: Streamlit UploadedFile object
        settings: Import settings (defaults from app settings)

    Returns:
        Tuple of (records, preview)

    Raises:
        ParsingError: If the file cannot be read
    """
    parser = CSVParser(settings=settings)
    content = BytesIO(uploaded_file.read())
    preview = parser.preview(content, filename=getattr(uploaded_file, "name", None))
    return parser.to_records(), preview
