"""
Unified exception hierarchy for sdkcore.

Provides typed exceptions with a category so callers can decide how to
react without re-deriving state from messages.
"""

from typing import Any

from sdkcore.types import ErrorCategory


class SdkError(Exception):
    """
    Base exception for all sdkcore errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (ErrorCategory.TRANSIENT, ErrorCategory.AUTH)

    @property
    def should_refresh_auth(self) -> bool:
        return self.category == ErrorCategory.AUTH

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Transport Errors
# =============================================================================


class ConnectionError(SdkError):
    """Remote host unreachable or connection-level failure."""

    category = ErrorCategory.TRANSIENT


# =============================================================================
# HTTP Errors
# =============================================================================


class HttpError(SdkError):
    """
    Error tied to an HTTP response.

    Attributes:
        response: The raw Response that triggered the error
        formatted_response: Best-effort decoded body (dict, list, str or None)
    """

    def __init__(
        self,
        message: str,
        response: Any = None,
        formatted_response: Any = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.response = response
        self.formatted_response = formatted_response

    @property
    def status_code(self) -> int | None:
        return getattr(self.response, "status_code", None)


class AuthError(HttpError):
    """Token endpoint did not hand out a usable token."""

    category = ErrorCategory.AUTH


# =============================================================================
# Configuration / Usage Errors
# =============================================================================


class ConfigError(SdkError):
    """Required configuration is missing or invalid."""

    category = ErrorCategory.PERMANENT


class InvalidArgumentError(SdkError, ValueError):
    """A caller-supplied argument is not acceptable."""

    category = ErrorCategory.PERMANENT


class CacheError(SdkError, RuntimeError):
    """Token store did not keep a write, or does not honour the store contract."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 400:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


__all__ = [
    "SdkError",
    "ConnectionError",
    "HttpError",
    "AuthError",
    "ConfigError",
    "InvalidArgumentError",
    "CacheError",
    "classify_http_status",
]
