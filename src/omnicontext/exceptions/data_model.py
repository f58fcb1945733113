"""
Typed record and collection exceptions for OmniContext.
"""

from omnicontext.exceptions.base import OmniContextError


class DataModelError(OmniContextError):
    """Base exception for typed record and collection errors."""
    pass


class InvalidDataModelError(DataModelError):
    """Raised when raw data cannot be turned into a typed record."""
    pass


class UnknownDiscriminatorError(InvalidDataModelError):
    """Raised when a discriminator value has no registered record kind."""

    def __init__(
        self,
        message: str,
        *,
        discriminator: str,
        value: object = None,
        details: str | None = None,
    ):
        super().__init__(message, details=details)
        self.discriminator = discriminator
        self.value = value


class MalformedToolCallError(InvalidDataModelError):
    """Raised when a tool call carries arguments that are not a JSON string."""
    pass
