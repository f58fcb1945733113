"""
Truncation-related exceptions for OmniContext.
"""

from omnicontext.exceptions.base import OmniContextError


class TruncationError(OmniContextError):
    """Base exception for truncation errors."""
    pass


class TruncationConfigError(TruncationError):
    """Raised when a truncation strategy is configured with invalid values."""
    pass
