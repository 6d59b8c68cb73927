"""
Core module for the module registry store: configuration, logging, errors.
"""

from core.config import get_settings, settings
from core.exceptions import ConfigurationError, DatabaseError, ValidationError
from core.logger import setup_logging

__all__ = [
    "settings",
    "get_settings",
    "setup_logging",
    "ConfigurationError",
    "DatabaseError",
    "ValidationError",
]
