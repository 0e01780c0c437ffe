"""Custom exception hierarchy for the image proxy."""


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class BadURLError(ProxyError):
    """Raised when the target URL cannot be turned into an absolute URL."""


class UpstreamError(ProxyError):
    """Raised when the origin server cannot serve the image.

    Attributes:
        message: Error message
        status_code: HTTP status code from the origin (optional)
        location: Redirect target sent by the origin (optional)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        location: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.location = location


class UpstreamTimeoutError(UpstreamError):
    """Raised when the origin request times out."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=None)


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to the origin."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=None)


class EncodingError(ProxyError):
    """Raised when the encoder reports a failure."""
