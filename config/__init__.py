"""
Configuration module for keyword metrics import.
"""
from config.settings import Settings, get_settings
from config.tool_config import HEADER_SIGNATURES, SOURCE_QUALITY

__all__ = ["Settings", "get_settings", "HEADER_SIGNATURES", "SOURCE_QUALITY"]
