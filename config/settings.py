"""
Application settings and configuration.
Optional overrides are read from Streamlit secrets when available.
"""
import streamlit as st
from dataclasses import dataclass, field
from typing import List
from functools import lru_cache

from core.exceptions import ConfigurationError


@dataclass
class ValidationSettings:
    """Thresholds for row-level metric validation."""

    max_keyword_length: int = 255

    # Volume above this is accepted with a warning
    max_plausible_volume: int = 10_000_000

    # CPC above this is accepted with a warning
    max_plausible_cpc: float = 1000.0

    min_difficulty: float = 0
    max_difficulty: float = 100


@dataclass
class ImportSettings:
    """Settings for reading uploaded files."""

    encodings: List[str] = field(default_factory=lambda: [
        "utf-8", "utf-8-sig", "latin-1", "cp1252"
    ])
    preview_rows: int = 5
    max_upload_rows: int = 50_000


@dataclass
class Settings:
    """
    Main application settings.
    Reads optional values from Streamlit secrets (st.secrets).
    """

    # App info
    app_name: str = "Keyword Metrics Import"
    app_version: str = "1.0.0"

    # Sub-settings
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    importing: ImportSettings = field(default_factory=ImportSettings)

    def _get_secret(self, flat_key: str, nested_section: str, nested_key: str) -> str:
        """
        Get secret supporting both flat and nested formats.

        Flat: LOG_LEVEL = "..."
        Nested: [logging]
                level = "..."
        """
        try:
            if flat_key in st.secrets:
                return st.secrets[flat_key]
            if nested_section in st.secrets:
                section = st.secrets[nested_section]
                if nested_key in section:
                    return section[nested_key]
        except Exception:
            # No secrets.toml outside of a Streamlit deployment
            pass

        return ""

    @property
    def log_level(self) -> str:
        """Get log level from Streamlit secrets, defaulting to INFO."""
        level = self._get_secret("LOG_LEVEL", "logging", "level") or "INFO"
        level = str(level).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(
                f"Invalid log level: {level}",
                missing_keys=["LOG_LEVEL"]
            )
        return level


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid recreating settings on each call.
    """
    return Settings()
