"""Exception types raised across the inventory layer."""


class SitesyncError(Exception):
    """Base class for all sitesync errors."""

    pass


class TransportError(SitesyncError):
    """Raised when an endpoint is unreachable or answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(SitesyncError):
    """Raised when a provider response does not have the expected shape."""

    pass


class ValidationError(SitesyncError):
    """Raised for malformed identifiers or unknown entity fields."""

    pass
