"""
sdkcore: access token lifecycle and request pipeline for HTTP API clients.

Modules:
    token    - Credential providers, token stores, TokenManager
    http     - Request/response models, requests transport, middlewares, RequestPipeline
    events   - Synchronous event dispatch (token refreshed, response created)
    errors   - Error classification and exception hierarchy
    config   - YAML configuration with env var expansion
    logging  - Structured JSON/console logging with context variables
"""

from sdkcore.client import build_pipeline
from sdkcore.config import ClientConfig, load_config
from sdkcore.events import EventDispatcher, ResponseCreated, TokenRefreshed
from sdkcore.http import PendingRequest, RequestPipeline, RequestsTransport, Response
from sdkcore.token import (
    CredentialProvider,
    FileTokenStore,
    InMemoryTokenStore,
    StaticCredentialProvider,
    TokenManager,
)
from sdkcore.types import ErrorCategory, HttpTransport, TokenStore

__version__ = "0.1.0"

__all__ = [
    "build_pipeline",
    "ClientConfig",
    "load_config",
    "EventDispatcher",
    "TokenRefreshed",
    "ResponseCreated",
    "PendingRequest",
    "Response",
    "RequestPipeline",
    "RequestsTransport",
    "CredentialProvider",
    "StaticCredentialProvider",
    "InMemoryTokenStore",
    "FileTokenStore",
    "TokenManager",
    "ErrorCategory",
    "HttpTransport",
    "TokenStore",
]
