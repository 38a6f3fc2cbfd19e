"""
HTTP transport backed by requests.

The transport performs exactly one network call per send() and turns every
HTTP answer into a Response, whatever the status code. Only failures to reach
the remote end, or a connection dropped mid-body, are raised as
sdkcore.errors.ConnectionError.
"""

import logging
import time

import requests

from sdkcore.errors.exceptions import ConnectionError
from sdkcore.http.models import PendingRequest, Response

logger = logging.getLogger(__name__)


class RequestsTransport:
    """
    Transport using a requests.Session for connection pooling.

    Args:
        session: Session to use; one is created (and owned) when omitted
        default_timeout: Seconds applied when a request carries no timeout
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        default_timeout: float | None = None,
    ):
        self._owns_session = session is None
        self._session = session or requests.Session()
        self.default_timeout = default_timeout

    @property
    def session(self) -> requests.Session:
        return self._session

    def __enter__(self) -> "RequestsTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def send(self, request: PendingRequest) -> Response:
        kwargs = dict(request.options)
        kwargs["params"] = request.query or None
        kwargs["headers"] = request.headers or None
        kwargs["timeout"] = request.timeout if request.timeout is not None else self.default_timeout
        if request.json is not None:
            kwargs["json"] = request.json
        if request.data is not None:
            kwargs["data"] = request.data
        elif request.content is not None:
            kwargs["data"] = request.content
        if request.files:
            kwargs["files"] = request.files

        start = time.perf_counter()
        try:
            raw = self._session.request(request.method, request.url, **kwargs)
            content = raw.content
        except (
            requests.ConnectionError,
            requests.Timeout,
            requests.exceptions.ChunkedEncodingError,
        ) as e:
            raise ConnectionError(
                f"Could not reach {request.url}: {e}",
                cause=e,
                context={"http_method": request.method, "http_url": request.url},
            ) from e
        duration_ms = (time.perf_counter() - start) * 1000

        return Response(
            status_code=raw.status_code,
            headers=dict(raw.headers),
            content=content,
            url=raw.url,
            elapsed_ms=duration_ms,
            encoding=raw.encoding,
        )


__all__ = ["RequestsTransport"]
