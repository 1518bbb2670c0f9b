"""
Error classification for position processing.

This module provides a structured exception hierarchy for the failures
encountered while ingesting positions and maintaining device idle state.
"""

from .data_quality import (
    DataQualityError,
    MissingDataError,
    MalformedDataError,
)
from .system_failures import (
    SystemFailureError,
    PersistenceError,
    StorageError,
    ConfigurationError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MissingDataError",
    "MalformedDataError",
    # System Failures
    "SystemFailureError",
    "PersistenceError",
    "StorageError",
    "ConfigurationError",
]
