"""Tests for the middleware stack and the retry, access token and logging middlewares."""

import logging
from unittest.mock import MagicMock

import pytest

from sdkcore.errors import ConnectionError
from sdkcore.http.middleware import (
    MiddlewareStack,
    auth_middleware,
    logging_middleware,
    retry_middleware,
)
from sdkcore.http.models import PendingRequest, Response

REQUEST = PendingRequest("GET", "https://api.example.com/users", query={"page": "1"})


def tagging(tag, calls):
    def middleware(next_handler):
        def handler(request):
            calls.append(f"{tag}:in")
            response = next_handler(request)
            calls.append(f"{tag}:out")
            return response

        return handler

    return middleware


class TestMiddlewareStack:
    def test_first_pushed_is_outermost(self):
        calls = []
        stack = MiddlewareStack().push(tagging("a", calls), "a").push(tagging("b", calls), "b")

        def terminal(request):
            calls.append("transport")
            return Response(200)

        stack.resolve(terminal)(REQUEST)

        assert calls == ["a:in", "b:in", "transport", "b:out", "a:out"]

    def test_names(self):
        stack = MiddlewareStack().push(tagging("a", []), "retry").push(tagging("b", []))
        assert stack.names == ["retry", None]
        assert "retry" in stack
        assert len(stack) == 2

    def test_empty_stack_returns_handler(self):
        def terminal(request):
            return Response(204)

        assert MiddlewareStack().resolve(terminal) is terminal


class TestRetryMiddleware:
    def run(self, statuses, manager, max_retries=1, delay=0.5):
        sleeps = []
        seen = []
        responses = [Response(status) for status in statuses]

        def terminal(request):
            seen.append(request)
            return responses.pop(0)

        handler = retry_middleware(lambda: manager, max_retries, delay, sleeps.append)(terminal)
        return handler(REQUEST), seen, sleeps

    @pytest.mark.parametrize("status", [400, 401])
    def test_retries_once_after_refresh(self, status):
        manager = MagicMock()

        response, seen, sleeps = self.run([status, 200], manager)

        assert response.status_code == 200
        manager.refresh.assert_called_once_with()
        assert sleeps == [0.5]
        assert seen == [REQUEST, REQUEST]

    def test_second_failure_is_returned(self):
        manager = MagicMock()

        response, seen, sleeps = self.run([401, 401], manager)

        assert response.status_code == 401
        assert manager.refresh.call_count == 1
        assert len(seen) == 2

    def test_respects_max_retries(self):
        manager = MagicMock()

        response, seen, _ = self.run([401, 401, 401, 200], manager, max_retries=3)

        assert response.status_code == 200
        assert manager.refresh.call_count == 3
        assert len(seen) == 4

    def test_zero_retries_disables_retry(self):
        manager = MagicMock()

        response, seen, _ = self.run([401], manager, max_retries=0)

        assert response.status_code == 401
        manager.refresh.assert_not_called()

    @pytest.mark.parametrize("status", [200, 403, 404, 429, 500, 503])
    def test_other_statuses_are_not_retried(self, status):
        manager = MagicMock()

        response, seen, sleeps = self.run([status], manager)

        assert response.status_code == status
        manager.refresh.assert_not_called()
        assert sleeps == []

    def test_no_retry_without_token_manager(self):
        response, seen, sleeps = self.run([401], None)

        assert response.status_code == 401
        assert len(seen) == 1
        assert sleeps == []

    def test_exceptions_are_not_retried(self):
        manager = MagicMock()

        def terminal(request):
            raise ConnectionError("unreachable")

        handler = retry_middleware(lambda: manager, 1, 0.5, lambda s: None)(terminal)

        with pytest.raises(ConnectionError):
            handler(REQUEST)
        manager.refresh.assert_not_called()

    def test_counter_is_per_call(self):
        manager = MagicMock()
        responses = [Response(401), Response(401), Response(401), Response(200)]

        def terminal(request):
            return responses.pop(0)

        handler = retry_middleware(lambda: manager, 1, 0, lambda s: None)(terminal)

        assert handler(REQUEST).status_code == 401
        assert handler(REQUEST).status_code == 200
        assert manager.refresh.call_count == 2

    def test_logs_retry(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="sdkcore.http.middleware"):
            self.run([401, 200], MagicMock())

        assert "Retrying with refreshed access token" in caplog.text


class TestAuthMiddleware:
    def test_applies_token(self):
        manager = MagicMock()
        manager.apply_to_request.side_effect = lambda r: r.with_query({"access_token": "tok", **r.query})
        seen = []

        handler = auth_middleware(lambda: manager)(lambda r: seen.append(r) or Response(200))
        handler(REQUEST)

        assert seen[0].query == {"access_token": "tok", "page": "1"}

    def test_passes_through_without_manager(self):
        seen = []

        handler = auth_middleware(lambda: None)(lambda r: seen.append(r) or Response(200))
        handler(REQUEST)

        assert seen == [REQUEST]


class TestLoggingMiddleware:
    def test_logs_attempt_with_redacted_url(self, caplog):
        log = logging.getLogger("sdkcore.test.http")
        request = REQUEST.with_query({"access_token": "supersecret", "page": "1"})
        handler = logging_middleware(log, "{method} {url} -> {status}")(lambda r: Response(401))

        with caplog.at_level(logging.DEBUG, logger="sdkcore.test.http"):
            response = handler(request)

        assert response.status_code == 401
        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert record.message == "GET https://api.example.com/users?access_token=[REDACTED]&page=1 -> 401"
        assert record.http_status == 401
        assert record.error_category == "auth"
        assert "supersecret" not in caplog.text

    def test_redacts_extra_params(self, caplog):
        log = logging.getLogger("sdkcore.test.http")
        request = REQUEST.with_query({"ak": "SUPERSECRETTOKEN", "page": "1"})
        handler = logging_middleware(log, redact_params=lambda: ["ak"])(lambda r: Response(200))

        with caplog.at_level(logging.DEBUG, logger="sdkcore.test.http"):
            handler(request)

        assert "SUPERSECRETTOKEN" not in caplog.text
        assert "ak=[REDACTED]" in caplog.records[-1].http_url

    def test_success_has_no_error_category(self, caplog):
        log = logging.getLogger("sdkcore.test.http")
        handler = logging_middleware(log)(lambda r: Response(200))

        with caplog.at_level(logging.DEBUG, logger="sdkcore.test.http"):
            handler(REQUEST)

        assert not hasattr(caplog.records[-1], "error_category")

    def test_logs_and_reraises_exceptions(self, caplog):
        log = logging.getLogger("sdkcore.test.http")
        error = ConnectionError("unreachable")

        def terminal(request):
            raise error

        handler = logging_middleware(log)(terminal)

        with caplog.at_level(logging.DEBUG, logger="sdkcore.test.http"):
            with pytest.raises(ConnectionError) as exc_info:
                handler(REQUEST)

        assert exc_info.value is error
        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert record.error_type == "ConnectionError"
        assert "failed" in record.message
