"""Custom exceptions for the Spotify API Explorer with HTTP status codes."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error responses."""

    # Generic errors
    EXPLORER_ERROR = "EXPLORER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"

    # Authorization
    AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"
    TOKEN_EXCHANGE_FAILED = "TOKEN_EXCHANGE_FAILED"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"

    # Web API outcomes
    NETWORK_ERROR = "NETWORK_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    UNEXPECTED_STATUS = "UNEXPECTED_STATUS"

    # Playback device
    NO_DEVICE_AVAILABLE = "NO_DEVICE_AVAILABLE"
    DEVICE_LOST = "DEVICE_LOST"
    SDK_INITIALIZATION_FAILED = "SDK_INITIALIZATION_FAILED"


class ExplorerException(Exception):
    """Base exception for explorer errors with HTTP status code support.

    All custom exceptions inherit from this class so the exception handler
    can render them as structured JSON errors.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EXPLORER_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize explorer exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code (default 500)
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ConfigurationException(ExplorerException):
    """Configuration errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.CONFIG_ERROR, status_code=500, details=details)


class SearchValidationError(ExplorerException):
    """Search input rejected before any network call."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.VALIDATION_ERROR, status_code=422, details=details)


# Authorization


class AuthorizationDenied(ExplorerException):
    """The provider redirect carried an error, or the state did not match."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        self.reason = reason
        super().__init__(
            f"Authentication failed: {reason}",
            code=ErrorCode.AUTHORIZATION_DENIED,
            status_code=400,
            details=details,
        )


class TokenExchangeFailed(ExplorerException):
    """The token endpoint rejected the authorization code."""

    def __init__(self, provider_message: str, details: dict[str, Any] | None = None):
        self.provider_message = provider_message
        super().__init__(
            f"Token exchange failed: {provider_message}",
            code=ErrorCode.TOKEN_EXCHANGE_FAILED,
            status_code=502,
            details=details,
        )


class NotAuthenticated(ExplorerException):
    """No fresh session is available."""

    def __init__(self, message: str = "Not authenticated. Please connect to Spotify first."):
        super().__init__(message, code=ErrorCode.NOT_AUTHENTICATED, status_code=401)


class NetworkError(ExplorerException):
    """The request never produced an HTTP response."""

    def __init__(self, message: str = "Network error while contacting Spotify", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.NETWORK_ERROR, status_code=503, details=details)


# Web API status outcomes


class SpotifyAPIException(ExplorerException):
    """Spotify Web API returned a non-success status."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        status_code: int,
        upstream_status: int,
        details: dict[str, Any] | None = None,
    ):
        self.upstream_status = upstream_status
        details = {"upstream_status": upstream_status, **(details or {})}
        super().__init__(message, code=code, status_code=status_code, details=details)


class BadRequest(SpotifyAPIException):
    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        super().__init__(f"Invalid request: {message}", ErrorCode.BAD_REQUEST, 400, 400, details)


class Unauthorized(SpotifyAPIException):
    """401 from the Web API. The token is treated as permanently invalid."""

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__(
            "Unauthorized: Your session expired. Please reconnect.",
            ErrorCode.UNAUTHORIZED,
            401,
            401,
            details,
        )


class Forbidden(SpotifyAPIException):
    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__(
            "Forbidden: You do not have permission to access this resource.",
            ErrorCode.FORBIDDEN,
            403,
            403,
            details,
        )


class NotFound(SpotifyAPIException):
    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__(
            "Not found: The requested resource was not found.",
            ErrorCode.NOT_FOUND,
            404,
            404,
            details,
        )


class RateLimited(SpotifyAPIException):
    def __init__(self, retry_after: str | None = None, details: dict[str, Any] | None = None):
        self.retry_after = retry_after
        details = dict(details or {})
        if retry_after is not None:
            details["retry_after"] = retry_after
        super().__init__(
            "Rate limited: Too many requests. Please try again later.",
            ErrorCode.RATE_LIMITED,
            429,
            429,
            details,
        )


class ServerError(SpotifyAPIException):
    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__(
            "Server error: Spotify API is experiencing issues.",
            ErrorCode.SERVER_ERROR,
            502,
            500,
            details,
        )


class UnexpectedStatus(SpotifyAPIException):
    def __init__(self, upstream_status: int, status_text: str, details: dict[str, Any] | None = None):
        self.status_text = status_text
        super().__init__(
            f"API error: {upstream_status} {status_text}".rstrip(),
            ErrorCode.UNEXPECTED_STATUS,
            502,
            upstream_status,
            details,
        )


# Playback device


class NoDeviceAvailable(ExplorerException):
    """Recoverable: no playback device could be resolved."""

    def __init__(
        self,
        message: str = (
            "No device ID found. Make sure Spotify is open on a device or browser tab and try again."
        ),
    ):
        super().__init__(message, code=ErrorCode.NO_DEVICE_AVAILABLE, status_code=409)


class DeviceLost(ExplorerException):
    """The bound device no longer exists on the provider side (404 on play)."""

    def __init__(self, device_id: str | None = None):
        super().__init__(
            "No active device found. Make sure Spotify is open on a device.",
            code=ErrorCode.DEVICE_LOST,
            status_code=409,
            details={"device_id": device_id} if device_id else None,
        )


class SdkInitializationFailed(ExplorerException):
    """The playback component reported a fatal initialization/auth/account error."""

    def __init__(self, kind: str, message: str):
        self.kind = kind
        super().__init__(
            f"Failed to initialize player ({kind}): {message}",
            code=ErrorCode.SDK_INITIALIZATION_FAILED,
            status_code=503,
            details={"kind": kind},
        )
