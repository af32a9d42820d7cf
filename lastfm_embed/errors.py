"""
Embed errors - Exception taxonomy shared by the aggregation layer and the API

Input and configuration errors are raised before any network call is made.
Upstream errors are raised only by the list calls; track info lookups absorb
their failures and return None instead.
"""
from typing import Optional


class EmbedError(Exception):
    """Base exception for the embed service"""
    pass


class InputError(EmbedError):
    """Raised when a caller-supplied parameter is missing or invalid"""
    pass


class MissingParameterError(InputError):
    """Raised when `type` or `user` is absent"""
    pass


class InvalidTypeError(InputError):
    """Raised when the display mode is neither 'recently' nor 'frequently'"""
    pass


class InvalidPeriodError(InputError):
    """Raised when a period string is not one of the Last.fm aggregation windows"""
    pass


class InvalidLimitError(InputError):
    """Raised when the limit is not a positive decimal integer"""
    pass


class ConfigurationError(EmbedError):
    """Raised when the Last.fm API key is not configured"""
    pass


class UpstreamError(EmbedError):
    """Raised when a Last.fm list call fails"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """5xx responses and transport failures (no status) are worth retrying"""
        return self.status_code is None or self.status_code >= 500
