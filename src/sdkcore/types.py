"""
Core types and protocols used across modules.

This module provides base enums and protocol definitions shared by the token
and HTTP layers. Concrete implementations live in ``sdkcore.token`` and
``sdkcore.http``; anything that quacks like these protocols can be plugged in.
"""

from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sdkcore.http.models import PendingRequest, Response


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures (network errors, 5xx, 429)
        AUTH: Authentication failures requiring a token refresh (401)
        PERMANENT: Failures that won't succeed on retry (config, 404)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


@runtime_checkable
class TokenStore(Protocol):
    """
    Cache contract for persisted token payloads.

    Stores may be shared by many managers and processes. ``set`` is
    last-write-wins; expiry is the store's responsibility.
    """

    def has(self, key: str) -> bool:
        """Return True if a non-expired entry exists for key."""
        ...

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the stored payload, or None on a miss."""
        ...

    def set(self, key: str, value: Mapping[str, Any], ttl: int) -> bool:
        """Store value under key for ttl seconds. Returns success."""
        ...


class HttpTransport(Protocol):
    """
    Protocol for the component that performs the actual network call.

    Implementations raise ``sdkcore.errors.ConnectionError`` when the remote
    end cannot be reached and return a Response for every HTTP answer,
    whatever its status code.
    """

    def send(self, request: "PendingRequest") -> "Response":
        ...


__all__ = ["ErrorCategory", "TokenStore", "HttpTransport"]
