"""
Access token management.

Provides:
- CredentialProvider / StaticCredentialProvider
- TokenStore implementations (in-memory, file)
- TokenManager (fetch, cache, refresh, apply to requests)
"""

from sdkcore.token.manager import TokenManager
from sdkcore.token.models import TokenRecord, build_cache_key
from sdkcore.token.provider import CredentialProvider, StaticCredentialProvider
from sdkcore.token.store import FileTokenStore, InMemoryTokenStore, ensure_token_store

__all__ = [
    "TokenManager",
    "TokenRecord",
    "build_cache_key",
    "CredentialProvider",
    "StaticCredentialProvider",
    "InMemoryTokenStore",
    "FileTokenStore",
    "ensure_token_store",
]
