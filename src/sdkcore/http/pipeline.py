"""
Request pipeline: a request builder in front of an ordered middleware chain.

Every send() runs through, outermost first:

    retry -> access token -> logging -> [user middlewares] -> transport

The retry middleware refreshes the token and re-sends on a 400/401, the
access token middleware adds the current token to the query, and the logging
middleware records each attempt. The chain is built on the first send() and
rebuilt whenever a middleware is added.

Usage:
    pipeline = RequestPipeline(token_manager=manager, config=config)
    pipeline.base_uri("https://api.example.com/v1/")

    response = pipeline.get("users", {"page": 2})
    response = pipeline.as_form().post("messages", {"text": "hi"})
"""

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

from requests.auth import HTTPDigestAuth

from sdkcore.config.config import BODY_FORMATS, ClientConfig
from sdkcore.errors.exceptions import InvalidArgumentError
from sdkcore.events import EventDispatcher, ResponseCreated
from sdkcore.http.middleware import (
    Handler,
    Middleware,
    MiddlewareStack,
    auth_middleware,
    logging_middleware,
    retry_middleware,
)
from sdkcore.http.models import PendingRequest, Response, split_query
from sdkcore.http.transport import RequestsTransport
from sdkcore.types import HttpTransport

if TYPE_CHECKING:
    from sdkcore.token.manager import TokenManager

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Keyword options consumed by the builder rather than handed to the transport
_REQUEST_KEYS = frozenset({"query", "headers", "timeout", *BODY_FORMATS})


def _multipart_parts(data: Any) -> list[tuple[str, tuple]]:
    """Turn a mapping of fields (or a list of part dicts) into requests' files list."""
    if isinstance(data, Mapping):
        items: Iterable[Any] = [
            value if isinstance(value, Mapping) else {"name": key, "contents": value}
            for key, value in data.items()
        ]
    else:
        items = data or []
    return [_part(item) for item in items]


def _part(item: Any) -> tuple[str, tuple]:
    if isinstance(item, Mapping):
        return (
            str(item["name"]),
            (item.get("filename"), item.get("contents", ""), None, dict(item.get("headers") or {})),
        )
    name, contents, *rest = item
    filename = rest[0] if rest else None
    headers = rest[1] if len(rest) > 1 else {}
    return (str(name), (filename, contents, None, dict(headers or {})))


class RequestPipeline:
    """
    HTTP client with access token injection and refresh-on-401 retry.

    Builder methods mutate the pipeline and return it, so calls chain. Headers
    and transport options persist across requests; the raw body set by
    with_body() and files added by attach() are consumed by the next send().

    Args:
        transport: Performs the network call (default: RequestsTransport)
        token_manager: Supplies and refreshes the access token, optional
        config: Client configuration (retry budget, delay, headers, timeout)
        events: Dispatcher notified with ResponseCreated after each send
        logger: Logger for the per-attempt log lines
        sleep: Called with the retry delay in seconds
    """

    def __init__(
        self,
        transport: HttpTransport | None = None,
        token_manager: "TokenManager | None" = None,
        *,
        config: ClientConfig | None = None,
        events: EventDispatcher | None = None,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or ClientConfig()
        http = self.config.http

        self.transport = transport or RequestsTransport(default_timeout=http.timeout)
        self.events = events or EventDispatcher()
        self._token_manager = token_manager
        self._logger = logger or logging.getLogger(__name__)
        self._sleep = sleep

        self._base_uri: str | None = None
        self._body_format = "json"
        self._headers: dict[str, str] = {}
        self._options: dict[str, Any] = {}
        self._timeout: float | None = http.timeout
        self._pending_body: bytes | str | None = None
        self._pending_files: list[tuple[str, tuple]] = []

        self._middlewares = MiddlewareStack()
        self._handler: Handler | None = None

        self.with_user_agent(http.user_agent)
        self.body_format(http.body_format)
        if http.body_format == "json":
            self.as_json()
        elif http.body_format == "form":
            self.as_form()
        self.accept_json()
        self.with_headers(http.headers)

    def __enter__(self) -> "RequestPipeline":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if callable(close):
            close()

    # =========================================================================
    # Token manager
    # =========================================================================

    @property
    def token_manager(self) -> "TokenManager | None":
        return self._token_manager

    def set_token_manager(self, token_manager: "TokenManager | None") -> "RequestPipeline":
        self._token_manager = token_manager
        return self

    # =========================================================================
    # Builder
    # =========================================================================

    def base_uri(self, url: str) -> "RequestPipeline":
        """Resolve relative request URLs against url."""
        self._base_uri = url
        return self

    def with_body(self, content: bytes | str, content_type: str) -> "RequestPipeline":
        """Send content as the raw body of the next request."""
        self.body_format("body")
        self._pending_body = content
        return self.content_type(content_type)

    def as_json(self) -> "RequestPipeline":
        return self.body_format("json").content_type(JSON_CONTENT_TYPE)

    def as_form(self) -> "RequestPipeline":
        return self.body_format("form").content_type(FORM_CONTENT_TYPE)

    def as_multipart(self) -> "RequestPipeline":
        return self.body_format("multipart")

    def attach(
        self,
        name: str | Iterable[Any],
        contents: bytes | str = "",
        filename: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> "RequestPipeline":
        """
        Add a file to the next multipart request.

        name may also be an iterable of (name, contents[, filename[, headers]])
        tuples or part dicts, each attached in turn.
        """
        if not isinstance(name, str):
            for item in name:
                if isinstance(item, Mapping):
                    self.attach(**item)
                else:
                    self.attach(*item)
            return self

        self.as_multipart()
        self._pending_files.append((name, (filename, contents, None, dict(headers or {}))))
        return self

    def body_format(self, fmt: str) -> "RequestPipeline":
        """
        Set how request data is encoded: json, form, multipart or body.

        Raises:
            InvalidArgumentError: If fmt is not a known format
        """
        if fmt not in BODY_FORMATS:
            raise InvalidArgumentError(f"Unknown body format {fmt!r}, expected one of {BODY_FORMATS}")
        self._body_format = fmt
        return self

    def content_type(self, content_type: str) -> "RequestPipeline":
        return self.with_headers({"Content-Type": content_type})

    def accept(self, content_type: str) -> "RequestPipeline":
        return self.with_headers({"Accept": content_type})

    def accept_json(self) -> "RequestPipeline":
        return self.accept(JSON_CONTENT_TYPE)

    def with_headers(self, headers: Mapping[str, str]) -> "RequestPipeline":
        self._headers.update({str(k): str(v) for k, v in headers.items()})
        return self

    def with_basic_auth(self, username: str, password: str) -> "RequestPipeline":
        self._options["auth"] = (username, password)
        return self

    def with_digest_auth(self, username: str, password: str) -> "RequestPipeline":
        self._options["auth"] = HTTPDigestAuth(username, password)
        return self

    def with_token(self, token: str, token_type: str = "Bearer") -> "RequestPipeline":
        """Set the Authorization header. This is unrelated to the query token."""
        return self.with_authorization(f"{token_type} {token}")

    def with_authorization(self, value: str) -> "RequestPipeline":
        """Set the raw Authorization header value."""
        return self.with_headers({"Authorization": value.strip()})

    def with_user_agent(self, user_agent: str) -> "RequestPipeline":
        return self.with_headers({"User-Agent": user_agent})

    def with_referer(self, referer: str) -> "RequestPipeline":
        return self.with_headers({"Referer": referer})

    def with_origin(self, origin: str) -> "RequestPipeline":
        return self.with_headers({"Origin": origin})

    def with_cookies(self, cookies: Mapping[str, str]) -> "RequestPipeline":
        """Send cookies with every request, merged over cookies set earlier."""
        current = dict(self._options.get("cookies") or {})
        current.update({str(k): str(v) for k, v in cookies.items()})
        self._options["cookies"] = current
        return self

    def timeout(self, seconds: float) -> "RequestPipeline":
        self._timeout = float(seconds)
        return self

    def without_redirecting(self) -> "RequestPipeline":
        self._options["allow_redirects"] = False
        return self

    def without_verifying(self) -> "RequestPipeline":
        self._options["verify"] = False
        return self

    def with_options(self, options: Mapping[str, Any]) -> "RequestPipeline":
        """Merge transport options (verify, allow_redirects, proxies, cert...)."""
        self._options.update(options)
        return self

    def with_middleware(self, middleware: Middleware, name: str | None = None) -> "RequestPipeline":
        """Add a middleware between the logging middleware and the transport."""
        self._middlewares.push(middleware, name)
        self._handler = None
        logger.debug("Registered middleware %s", name or getattr(middleware, "__name__", "anonymous"))
        return self

    @property
    def middlewares(self) -> MiddlewareStack:
        return self._middlewares

    # =========================================================================
    # Sending
    # =========================================================================

    def send(self, url: str, method: str = "GET", **options: Any) -> Response:
        """
        Build a request, run it through the middleware chain and return the response.

        Keyword options:
            query: Query parameters; replaces any query string in url
            headers: Extra headers for this request only
            timeout: Seconds for this request only
            json / form / multipart / body: Request data in that format
            anything else: passed to the transport (verify, allow_redirects...)

        Raises:
            ConnectionError: If the transport could not reach the server
        """
        request = self._build_request(url, method, options)
        response = self._resolve_handler()(request)
        self.events.dispatch(ResponseCreated(response=response))
        return response

    request = send

    def get(self, url: str, query: Mapping[str, Any] | None = None) -> Response:
        return self.send(url, "GET", query=query)

    def head(self, url: str, query: Mapping[str, Any] | None = None) -> Response:
        return self.send(url, "HEAD", query=query)

    def post(self, url: str, data: Any = None) -> Response:
        return self.send(url, "POST", **{self._body_format: data if data is not None else {}})

    def patch(self, url: str, data: Any = None) -> Response:
        return self.send(url, "PATCH", **{self._body_format: data if data is not None else {}})

    def put(self, url: str, data: Any = None) -> Response:
        return self.send(url, "PUT", **{self._body_format: data if data is not None else {}})

    def delete(self, url: str, data: Any = None) -> Response:
        if not data:
            return self.send(url, "DELETE")
        return self.send(url, "DELETE", **{self._body_format: data})

    def _current_token_manager(self) -> "TokenManager | None":
        return self._token_manager

    def _token_query_params(self) -> list[str]:
        if self._token_manager is None:
            return []
        return [self._token_manager.query_field_name]

    def _resolve_handler(self) -> Handler:
        if self._handler is None:
            http = self.config.http
            manager = self._current_token_manager

            stack = MiddlewareStack()
            stack.push(
                retry_middleware(manager, http.max_retries, http.retry_delay_seconds, self._sleep),
                "retry",
            )
            stack.push(auth_middleware(manager), "access_token")
            stack.push(logging_middleware(self._logger, http.log_template, self._token_query_params), "log")
            handler = self._middlewares.resolve(self.transport.send)
            self._handler = stack.resolve(handler)
        return self._handler

    def _build_request(self, url: str, method: str, options: dict[str, Any]) -> PendingRequest:
        if self._base_uri:
            url = urljoin(self._base_uri, url)

        url, query = split_query(url)
        if options.get("query") is not None:
            query = dict(options["query"])

        headers = {**self._headers, **(options.get("headers") or {})}
        timeout = options.get("timeout", self._timeout)
        transport_options = {
            **self._options,
            **{k: v for k, v in options.items() if k not in _REQUEST_KEYS},
        }

        body = self._consume_body(options)
        if body.get("files") is not None:
            headers.pop("Content-Type", None)

        return PendingRequest(
            method=method,
            url=url,
            query=query,
            headers=headers,
            timeout=timeout,
            options=transport_options,
            **body,
        )

    def _consume_body(self, options: Mapping[str, Any]) -> dict[str, Any]:
        """Map body options onto PendingRequest fields and reset the pending body and files."""
        fmt = self._body_format
        body: dict[str, Any] = {}

        if options.get("json") is not None:
            body["json"] = options["json"]
        if options.get("form") is not None:
            body["data"] = dict(options["form"])
        if fmt == "body" and self._pending_body is not None:
            body["content"] = self._pending_body
        elif options.get("body") is not None:
            body["content"] = options["body"]

        if fmt == "multipart" or options.get("multipart") is not None:
            files = [*_multipart_parts(options.get("multipart")), *self._pending_files]
            if files:
                body["files"] = files

        self._pending_body, self._pending_files = None, []
        return body


__all__ = ["RequestPipeline", "JSON_CONTENT_TYPE", "FORM_CONTENT_TYPE"]
