"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- SdkError hierarchy for typed exceptions
- HTTP status classification
"""

from sdkcore.errors.exceptions import (
    AuthError,
    CacheError,
    ConfigError,
    ConnectionError,
    HttpError,
    InvalidArgumentError,
    # Base class
    SdkError,
    classify_http_status,
)
from sdkcore.types import ErrorCategory

__all__ = [
    # Enums
    "ErrorCategory",
    # Base class
    "SdkError",
    # Errors
    "ConnectionError",
    "HttpError",
    "AuthError",
    "ConfigError",
    "InvalidArgumentError",
    "CacheError",
    # Classification
    "classify_http_status",
]
