"""
HTTP layer.

Provides:
- PendingRequest / Response models
- RequestsTransport (requests-backed transport)
- Middlewares: retry, access token injection, logging
- RequestPipeline (request builder + middleware chain)
"""

from sdkcore.http.middleware import (
    Handler,
    Middleware,
    MiddlewareStack,
    auth_middleware,
    logging_middleware,
    retry_middleware,
)
from sdkcore.http.models import PendingRequest, Response, split_query
from sdkcore.http.pipeline import RequestPipeline
from sdkcore.http.transport import RequestsTransport

__all__ = [
    # Models
    "PendingRequest",
    "Response",
    "split_query",
    # Transport
    "RequestsTransport",
    # Middlewares
    "Handler",
    "Middleware",
    "MiddlewareStack",
    "retry_middleware",
    "auth_middleware",
    "logging_middleware",
    # Pipeline
    "RequestPipeline",
]
