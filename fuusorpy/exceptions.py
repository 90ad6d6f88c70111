"""Custom exceptions for the fuusorpy package."""

class FuusorAPIError(Exception):
    """Base exception for Fuusor API errors."""
    pass

class ConfigurationError(FuusorAPIError):
    """Raised when client or dataset options are missing or malformed."""
    pass

class ValidationError(FuusorAPIError):
    """Raised when a row, field or user value fails its type or format rule."""
    pass

class NotFoundError(FuusorAPIError):
    """Raised when referencing an undefined dimension or hierarchy id."""
    pass

class AuthenticationError(FuusorAPIError):
    """Raised when an access token cannot be obtained."""
    pass

class HttpError(FuusorAPIError):
    """Raised when the API answers with anything other than HTTP 200."""

    def __init__(self, status_code: int, reason: str = "", body: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        message = f"HTTP {status_code} {reason}".strip()
        if body:
            message = f"{message}: {body}"
        super().__init__(message)
