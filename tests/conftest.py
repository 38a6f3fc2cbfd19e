"""
pytest configuration for sdkcore tests.

Adds src directory to Python path for imports and provides shared fakes:
a scripted transport that records requests and a recording sleep.
"""

import json
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from sdkcore.config import ClientConfig  # noqa: E402
from sdkcore.events import EventDispatcher  # noqa: E402
from sdkcore.http.models import PendingRequest, Response  # noqa: E402
from sdkcore.token.provider import StaticCredentialProvider  # noqa: E402
from sdkcore.token.store import InMemoryTokenStore  # noqa: E402

TOKEN_ENDPOINT = "https://auth.example.com/token"


def make_response(status: int = 200, body=None, headers=None) -> Response:
    """Build a Response; dict/list bodies are JSON encoded."""
    if isinstance(body, (dict, list)):
        content = json.dumps(body).encode()
        headers = {"Content-Type": "application/json", **(headers or {})}
    elif body is None:
        content = b""
    else:
        content = body.encode() if isinstance(body, str) else body
    return Response(status, headers=headers, content=content)


class ScriptedTransport:
    """
    Transport returning queued responses in order.

    Queue items may be a Response, an exception (raised), or a callable
    taking the request and returning either. Every request is recorded.
    """

    def __init__(self, *responses):
        self.queue = list(responses)
        self.requests: list[PendingRequest] = []

    def add(self, *responses) -> "ScriptedTransport":
        self.queue.extend(responses)
        return self

    def send(self, request: PendingRequest) -> Response:
        self.requests.append(request)
        if not self.queue:
            raise AssertionError(f"Unexpected request: {request.method} {request.full_url}")
        item = self.queue.pop(0)
        if callable(item) and not isinstance(item, Response):
            item = item(request)
        if isinstance(item, BaseException):
            raise item
        return item

    def requests_to(self, url_prefix: str) -> list[PendingRequest]:
        return [r for r in self.requests if r.url.startswith(url_prefix)]


class RecordingSleep:
    """Sleep replacement recording requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def response_factory() -> Callable[..., Response]:
    return make_response


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def store():
    return InMemoryTokenStore()


@pytest.fixture
def events():
    return EventDispatcher()


@pytest.fixture
def credentials():
    return {"app_id": "x", "secret": "y"}


@pytest.fixture
def provider(credentials):
    return StaticCredentialProvider(credentials, TOKEN_ENDPOINT)


@pytest.fixture
def client_config():
    return ClientConfig()


@pytest.fixture
def token_endpoint():
    return TOKEN_ENDPOINT
