"""
Custom exceptions for keyword metrics import.
"""


class KeywordImportError(Exception):
    """Base exception for keyword import errors."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(KeywordImportError):
    """Exception for data validation errors."""

    def __init__(self, message: str, field: str = None, value=None):
        self.field = field
        self.value = value
        super().__init__(
            message,
            {"field": field, "value": str(value) if value else None}
        )


class MappingError(KeywordImportError):
    """Exception for tool data mapping errors."""

    def __init__(self, message: str, source: str = None, column: str = None):
        self.source = source
        self.column = column
        super().__init__(
            message,
            {"source": source, "column": column}
        )


class EmptyMergeSetError(MappingError):
    """Raised when merge is called without any records."""

    def __init__(self):
        super().__init__("No data entries to merge")


class ParsingError(KeywordImportError):
    """Exception for uploaded file parsing errors."""

    def __init__(self, message: str, filename: str = None):
        self.filename = filename
        super().__init__(
            message,
            {"filename": filename}
        )


class ConfigurationError(KeywordImportError):
    """Exception for configuration errors."""

    def __init__(self, message: str, missing_keys: list = None):
        self.missing_keys = missing_keys or []
        super().__init__(
            message,
            {"missing_keys": missing_keys}
        )
