"""Token data models and cache-key derivation."""

import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

EXPIRES_IN_FIELD = "expires_in"


def serialize_credentials(credentials: Mapping[str, Any]) -> str:
    """
    Serialise credentials deterministically.

    Keys are sorted so two mappings with the same content always produce the
    same string, whatever order they were built in.
    """
    return json.dumps(credentials, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def build_cache_key(prefix: str, credentials: Mapping[str, Any]) -> str:
    """Cache key for a credential set: prefix + md5 of the serialised credentials."""
    digest = hashlib.md5(serialize_credentials(credentials).encode("utf-8")).hexdigest()
    return f"{prefix}{digest}"


@dataclass(frozen=True)
class TokenRecord:
    """
    A token as persisted in a TokenStore.

    Attributes:
        value: The access token string
        lifetime_seconds: TTL the record was stored with (always > 0)
        token_field_name: Key holding the token in the cached payload
    """

    value: str
    lifetime_seconds: int
    token_field_name: str = "access_token"

    def __post_init__(self):
        if self.lifetime_seconds <= 0:
            raise ValueError(f"lifetime_seconds must be positive, got {self.lifetime_seconds}")

    def to_payload(self) -> dict[str, Any]:
        """Shape written to the store: {<token field>: value, "expires_in": lifetime}."""
        return {self.token_field_name: self.value, EXPIRES_IN_FIELD: self.lifetime_seconds}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], token_field_name: str = "access_token") -> "TokenRecord":
        return cls(
            value=str(payload[token_field_name]),
            lifetime_seconds=int(payload[EXPIRES_IN_FIELD]),
            token_field_name=token_field_name,
        )


__all__ = ["TokenRecord", "build_cache_key", "serialize_credentials", "EXPIRES_IN_FIELD"]
