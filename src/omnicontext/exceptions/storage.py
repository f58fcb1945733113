"""
Storage-related exceptions for OmniContext.
"""

from omnicontext.exceptions.base import OmniContextError


class StorageError(OmniContextError):
    """Base exception for all storage-related errors."""
    pass


class StorageReadError(StorageError):
    """Raised when a driver fails to read and no valid state can be loaded."""
    pass


class DriverConfigurationError(StorageError):
    """Raised when a storage is assembled with missing or invalid drivers."""
    pass


class StorageNotInitializedError(StorageError):
    """Raised when a database-backed driver is used before its engine is initialized."""
    pass
