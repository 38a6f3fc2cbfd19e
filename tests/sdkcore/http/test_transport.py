"""Tests for RequestsTransport."""

from unittest.mock import MagicMock, PropertyMock

import pytest
import requests

from sdkcore.errors import ConnectionError
from sdkcore.http.models import PendingRequest
from sdkcore.http.transport import RequestsTransport


def make_raw_response(status=200, content=b"{}", headers=None, url="https://api.example.com/x"):
    raw = MagicMock(spec=requests.Response)
    raw.status_code = status
    raw.content = content
    raw.headers = headers or {"Content-Type": "application/json"}
    raw.url = url
    raw.encoding = "utf-8"
    return raw


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.request.return_value = make_raw_response()
    return session


class TestRequestsTransport:
    def test_maps_request_to_session_call(self, session):
        transport = RequestsTransport(session=session)
        request = PendingRequest(
            "GET",
            "https://api.example.com/x",
            query={"access_token": "tok"},
            headers={"Accept": "application/json"},
            timeout=5,
            options={"verify": False},
        )

        transport.send(request)

        session.request.assert_called_once_with(
            "GET",
            "https://api.example.com/x",
            params={"access_token": "tok"},
            headers={"Accept": "application/json"},
            timeout=5,
            verify=False,
        )

    def test_body_fields(self, session):
        transport = RequestsTransport(session=session)

        transport.send(PendingRequest("POST", "https://x.test", json={"a": 1}))
        assert session.request.call_args.kwargs["json"] == {"a": 1}

        transport.send(PendingRequest("POST", "https://x.test", data={"a": "1"}))
        assert session.request.call_args.kwargs["data"] == {"a": "1"}

        transport.send(PendingRequest("POST", "https://x.test", content=b"raw"))
        assert session.request.call_args.kwargs["data"] == b"raw"

        files = [("file", ("a.txt", b"hi", None, {}))]
        transport.send(PendingRequest("POST", "https://x.test", files=files))
        assert session.request.call_args.kwargs["files"] == files

    def test_default_timeout(self, session):
        RequestsTransport(session=session, default_timeout=30).send(PendingRequest("GET", "https://x.test"))
        assert session.request.call_args.kwargs["timeout"] == 30

    def test_builds_response(self, session):
        session.request.return_value = make_raw_response(401, b'{"errcode": 42001}')

        response = RequestsTransport(session=session).send(PendingRequest("GET", "https://x.test"))

        assert response.status_code == 401
        assert response.json("errcode") == 42001
        assert response.header("content-type") == "application/json"
        assert response.elapsed_ms is not None

    @pytest.mark.parametrize(
        "error",
        [
            requests.ConnectionError("refused"),
            requests.Timeout("slow"),
            requests.exceptions.ChunkedEncodingError("dropped"),
        ],
    )
    def test_wraps_connection_failures(self, session, error):
        session.request.side_effect = error

        with pytest.raises(ConnectionError) as exc_info:
            RequestsTransport(session=session).send(PendingRequest("GET", "https://x.test"))

        assert exc_info.value.cause is error
        assert exc_info.value.context["http_url"] == "https://x.test"

    def test_wraps_body_dropped_while_reading(self, session):
        """A chunked body cut off after the headers arrive is a connection failure."""
        raw = make_raw_response()
        type(raw).content = PropertyMock(side_effect=requests.exceptions.ChunkedEncodingError("cut"))
        session.request.return_value = raw

        with pytest.raises(ConnectionError) as exc_info:
            RequestsTransport(session=session).send(PendingRequest("GET", "https://x.test"))

        assert isinstance(exc_info.value.cause, requests.exceptions.ChunkedEncodingError)

    def test_other_errors_propagate(self, session):
        session.request.side_effect = requests.TooManyRedirects("loop")

        with pytest.raises(requests.TooManyRedirects):
            RequestsTransport(session=session).send(PendingRequest("GET", "https://x.test"))

    def test_close_only_owned_session(self, session):
        RequestsTransport(session=session).close()
        session.close.assert_not_called()

        with RequestsTransport() as transport:
            owned = transport.session
        assert isinstance(owned, requests.Session)
