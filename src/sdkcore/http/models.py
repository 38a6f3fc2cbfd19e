"""Request and response models shared by the pipeline, middlewares and transports."""

import json as jsonlib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from requests.structures import CaseInsensitiveDict


def split_query(url: str) -> tuple[str, dict[str, str]]:
    """Split a URL into (url without query, query mapping)."""
    parts = urlsplit(url)
    if not parts.query:
        return url, {}
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    return urlunsplit(parts._replace(query="")), query


@dataclass(frozen=True)
class PendingRequest:
    """
    A fully built outgoing request.

    Instances are immutable once created; middlewares derive modified copies
    with with_query(), with_headers() or replace().

    Attributes:
        method: Upper-case HTTP verb
        url: Absolute URL without query string
        query: Query parameters
        headers: Request headers
        json: JSON-serialisable body (json body format)
        data: Form fields (form body format)
        content: Raw body bytes/str (body format)
        files: Multipart attachments as (name, (filename, contents, content_type, headers))
        timeout: Seconds before the transport gives up, None for no limit
        options: Transport options (verify, allow_redirects, auth)
    """

    method: str
    url: str
    query: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    json: Any = None
    data: Mapping[str, Any] | None = None
    content: bytes | str | None = None
    files: list[tuple[str, tuple]] | None = None
    timeout: float | None = None
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())

    @property
    def full_url(self) -> str:
        """URL including the encoded query string."""
        if not self.query:
            return self.url
        separator = "&" if urlsplit(self.url).query else "?"
        return f"{self.url}{separator}{urlencode(self.query, doseq=True)}"

    def with_query(self, query: Mapping[str, Any]) -> "PendingRequest":
        """Return a copy whose query is replaced by query."""
        return replace(self, query=dict(query))

    def with_headers(self, headers: Mapping[str, str]) -> "PendingRequest":
        """Return a copy with headers merged over the existing ones."""
        return replace(self, headers={**self.headers, **headers})

    def replace(self, **changes: Any) -> "PendingRequest":
        return replace(self, **changes)


_NOT_DECODED = object()


class Response:
    """
    HTTP response with explicit accessors.

    The body is kept as bytes; json() decodes it once and caches the result.
    """

    def __init__(
        self,
        status_code: int,
        headers: Mapping[str, str] | None = None,
        content: bytes = b"",
        url: str | None = None,
        elapsed_ms: float | None = None,
        encoding: str | None = None,
    ):
        self.status_code = int(status_code)
        self.headers = CaseInsensitiveDict(headers or {})
        self.content = content if isinstance(content, bytes) else str(content).encode("utf-8")
        self.url = url
        self.elapsed_ms = elapsed_ms
        self.encoding = encoding or "utf-8"
        self._decoded: Any = _NOT_DECODED

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"

    def __str__(self) -> str:
        return self.body()

    @property
    def text(self) -> str:
        return self.body()

    def body(self) -> str:
        """Body decoded as text."""
        return self.content.decode(self.encoding, errors="replace")

    def json(self, key: str | None = None, default: Any = None) -> Any:
        """
        JSON decoded body, or a single top-level key of it.

        Invalid or empty JSON decodes to None rather than raising, so callers
        can report the raw body.
        """
        if self._decoded is _NOT_DECODED:
            try:
                self._decoded = jsonlib.loads(self.content) if self.content else None
            except ValueError:
                self._decoded = None

        if key is None:
            return self._decoded
        if isinstance(self._decoded, Mapping):
            return self._decoded.get(key, default)
        return default

    def header(self, name: str) -> str:
        """Header value, or an empty string when absent."""
        return self.headers.get(name, "")

    def successful(self) -> bool:
        return 200 <= self.status_code < 300

    def ok(self) -> bool:
        return self.status_code == 200

    def redirect(self) -> bool:
        return 300 <= self.status_code < 400

    def client_error(self) -> bool:
        return 400 <= self.status_code < 500

    def server_error(self) -> bool:
        return self.status_code >= 500

    def failed(self) -> bool:
        return self.client_error() or self.server_error()


__all__ = ["PendingRequest", "Response", "split_query"]
