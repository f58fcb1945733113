"""
OmniContext exceptions module.

All exceptions are exported from this module for convenient imports:
    from omnicontext.exceptions import StorageReadError, UnknownDiscriminatorError
"""

from omnicontext.exceptions.base import OmniContextError

from omnicontext.exceptions.data_model import (
    DataModelError,
    InvalidDataModelError,
    UnknownDiscriminatorError,
    MalformedToolCallError,
)

from omnicontext.exceptions.storage import (
    StorageError,
    StorageReadError,
    DriverConfigurationError,
    StorageNotInitializedError,
)

from omnicontext.exceptions.truncation import (
    TruncationError,
    TruncationConfigError,
)

__all__ = [
    # Base
    "OmniContextError",
    # Data model
    "DataModelError",
    "InvalidDataModelError",
    "UnknownDiscriminatorError",
    "MalformedToolCallError",
    # Storage
    "StorageError",
    "StorageReadError",
    "DriverConfigurationError",
    "StorageNotInitializedError",
    # Truncation
    "TruncationError",
    "TruncationConfigError",
]
