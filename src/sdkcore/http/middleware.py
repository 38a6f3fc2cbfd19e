"""
Request middlewares and the stack that composes them.

A handler turns a PendingRequest into a Response. A middleware wraps a
handler and returns a new one:

    def middleware(next_handler: Handler) -> Handler:
        def handler(request: PendingRequest) -> Response:
            ...
            return next_handler(request)
        return handler

MiddlewareStack composes middlewares so the first one pushed is the outermost
and sees the request first and the response last.
"""

import logging
import time
from collections.abc import Callable, Iterable

from sdkcore.config.config import DEFAULT_LOG_TEMPLATE
from sdkcore.errors.exceptions import classify_http_status
from sdkcore.http.models import PendingRequest, Response
from sdkcore.logging.formatters import sanitize_url
from sdkcore.logging.utilities import log_exception
from sdkcore.types import ErrorCategory

logger = logging.getLogger(__name__)

Handler = Callable[[PendingRequest], Response]
Middleware = Callable[[Handler], Handler]
# Returns the current token manager, or None when none is attached
TokenManagerGetter = Callable[[], object | None]

RETRYABLE_STATUSES = (400, 401)


class MiddlewareStack:
    """Ordered, named middlewares around a terminal handler."""

    def __init__(self):
        self._entries: list[tuple[str | None, Middleware]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return any(entry_name == name for entry_name, _ in self._entries)

    @property
    def names(self) -> list[str | None]:
        return [name for name, _ in self._entries]

    def push(self, middleware: Middleware, name: str | None = None) -> "MiddlewareStack":
        """Add middleware inside every middleware pushed before it."""
        self._entries.append((name, middleware))
        return self

    def resolve(self, handler: Handler) -> Handler:
        """Wrap handler so the first pushed middleware runs first."""
        for _, middleware in reversed(self._entries):
            handler = middleware(handler)
        return handler


def retry_middleware(
    token_manager: TokenManagerGetter,
    max_retries: int,
    delay_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Middleware:
    """
    Retry 400/401 responses once the access token has been refreshed.

    Each call through the returned handler keeps its own retry counter. A
    retry needs an attached token manager and is re-dispatched with the
    request as it entered this middleware, so inner middlewares apply the
    new token. Exceptions raised by inner handlers are never retried.
    """

    def middleware(next_handler: Handler) -> Handler:
        def handler(request: PendingRequest) -> Response:
            retries = 0
            while True:
                response = next_handler(request)
                manager = token_manager()
                if (
                    manager is None
                    or retries >= max_retries
                    or response.status_code not in RETRYABLE_STATUSES
                ):
                    return response

                manager.refresh()
                logger.debug(
                    "Retrying with refreshed access token",
                    extra={
                        "http_method": request.method,
                        "http_url": request.url,
                        "http_status": response.status_code,
                        "attempt": retries + 1,
                        "max_retries": max_retries,
                        "delay_ms": delay_seconds * 1000,
                    },
                )
                sleep(delay_seconds)
                retries += 1

        return handler

    return middleware


def auth_middleware(token_manager: TokenManagerGetter) -> Middleware:
    """Inject the current access token into the request query."""

    def middleware(next_handler: Handler) -> Handler:
        def handler(request: PendingRequest) -> Response:
            manager = token_manager()
            if manager is not None:
                request = manager.apply_to_request(request)
            return next_handler(request)

        return handler

    return middleware


def logging_middleware(
    log: logging.Logger | None = None,
    template: str = DEFAULT_LOG_TEMPLATE,
    redact_params: Callable[[], Iterable[str]] | None = None,
) -> Middleware:
    """
    Log every attempt at DEBUG.

    The template receives method, url (secrets redacted), status and
    duration_ms. Exceptions are logged and re-raised unchanged.

    redact_params returns query parameter names to redact on top of the
    sensitive-name pattern, such as the access token query field.
    """
    log = log or logger

    def middleware(next_handler: Handler) -> Handler:
        def handler(request: PendingRequest) -> Response:
            url = sanitize_url(request.full_url, redact_params() if redact_params else ())
            start = time.perf_counter()
            try:
                response = next_handler(request)
            except Exception as e:
                log_exception(
                    log,
                    e,
                    f"{request.method} {url} failed",
                    level=logging.DEBUG,
                    http_method=request.method,
                    http_url=url,
                    duration_ms=(time.perf_counter() - start) * 1000,
                )
                raise

            duration_ms = (time.perf_counter() - start) * 1000
            extra = {
                "http_method": request.method,
                "http_url": url,
                "http_status": response.status_code,
                "duration_ms": duration_ms,
            }
            category = classify_http_status(response.status_code)
            if category is not ErrorCategory.UNKNOWN:
                extra["error_category"] = category.value

            log.debug(
                template.format(
                    method=request.method,
                    url=url,
                    status=response.status_code,
                    duration_ms=duration_ms,
                ),
                extra=extra,
            )
            return response

        return handler

    return middleware


__all__ = [
    "Handler",
    "Middleware",
    "MiddlewareStack",
    "retry_middleware",
    "auth_middleware",
    "logging_middleware",
    "RETRYABLE_STATUSES",
]
