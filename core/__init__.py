"""
Core module for keyword metrics import.
Contains the exception hierarchy.
"""
from core.exceptions import (
    KeywordImportError,
    ValidationError,
    MappingError,
    EmptyMergeSetError,
    ParsingError,
    ConfigurationError
)

__all__ = [
    "KeywordImportError",
    "ValidationError",
    "MappingError",
    "EmptyMergeSetError",
    "ParsingError",
    "ConfigurationError"
]
