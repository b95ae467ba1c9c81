"""
Pytest configuration and shared fixtures

Sample rows mirror the column layout of each supported tool export, as
produced by the CSV reader (flat dicts, one per row).
"""

import pytest

from config.settings import ValidationSettings
from ingestion.validator import ValidationPipeline


@pytest.fixture
def rank_tool_row() -> dict:
    """Row from a rank-tracking tool export."""
    return {
        "keyword": "running shoes",
        "volume": 12000,
        "kd": 67,
        "cmp": 0.82,
        "cpc": 1.45,
    }


@pytest.fixture
def backlink_tool_row() -> dict:
    """Row from a backlink/analytics tool export."""
    return {
        "keyword": "running shoes",
        "search volume": 11000,
        "kd": 54,
        "competition": "42%",
        "cpc": 1.3,
    }


@pytest.fixture
def ad_planner_row() -> dict:
    """Row from an ad-auction planning tool export."""
    return {
        "keyword": "running shoes",
        "avg monthly searches": "1K-10K",
        "competition": "High",
        "top of page bid (low range)": 0.8,
        "top of page bid (high range)": 2.4,
    }


@pytest.fixture
def ai_generated_row() -> dict:
    """Row from the AI keyword generator."""
    return {
        "keyword": "best running shoes for flat feet",
        "searchVolume": 900,
        "difficulty": 35,
    }


@pytest.fixture
def pipeline() -> ValidationPipeline:
    """Pipeline with default thresholds, independent of app settings."""
    return ValidationPipeline(settings=ValidationSettings())
