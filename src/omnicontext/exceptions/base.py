"""
Root of the omnicontext exception hierarchy.
"""


class OmniContextError(Exception):
    """Raised for any omnicontext failure; catch this to handle them all.

    ``details`` carries optional context (a key, a driver name, the bad
    value) and is appended to the message when the error is rendered.
    """

    def __init__(self, message: str, *, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message}\nDetails: {self.details}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, details={self.details!r})"
