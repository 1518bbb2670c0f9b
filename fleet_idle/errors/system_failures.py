"""
System failure error classifications.

These exceptions represent failures of the collaborators around the idle
state machine: storage and configuration.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for system-level failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class PersistenceError(SystemFailureError):
    """Database or file system persistence failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class StorageError(PersistenceError):
    """Device storage update or query failure."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        # Callers log and continue; the device row is retried on the next change
        self.recoverable = True


class ConfigurationError(SystemFailureError):
    """Configuration file or value could not be used."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
