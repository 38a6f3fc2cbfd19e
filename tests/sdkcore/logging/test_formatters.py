"""Tests for JSON/console formatters and URL redaction."""

import json
import logging
import sys

import pytest

from sdkcore.logging.context import clear_log_context, set_log_context
from sdkcore.logging.formatters import ConsoleFormatter, JSONFormatter, sanitize_url


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


def make_record(msg="hello", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="sdkcore.test",
        level=level,
        pathname=__file__,
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSanitizeUrl:
    def test_redacts_access_token(self):
        url = "https://api.example.com/users?access_token=tok123&page=2"
        assert sanitize_url(url) == "https://api.example.com/users?access_token=[REDACTED]&page=2"

    @pytest.mark.parametrize("param", ["secret", "client_secret", "api_key", "sig", "password"])
    def test_redacts_sensitive_params(self, param):
        assert "s3cr3t" not in sanitize_url(f"https://x.test/?{param}=s3cr3t")

    def test_redacts_named_params_whatever_their_name(self):
        url = "https://api.example.com/users?ak=tok123&page=2&back=1"
        assert sanitize_url(url, ["ak"]) == "https://api.example.com/users?ak=[REDACTED]&page=2&back=1"

    def test_named_param_match_is_exact(self):
        url = "https://x.test/?track=1&ak=tok"
        assert sanitize_url(url, ["ak", ""]) == "https://x.test/?track=1&ak=[REDACTED]"

    def test_leaves_plain_urls_alone(self):
        url = "https://api.example.com/users?page=2&per_page=10"
        assert sanitize_url(url) == url


class TestJSONFormatter:
    def test_base_fields(self):
        entry = json.loads(JSONFormatter().format(make_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "sdkcore.test"
        assert entry["message"] == "hello"
        assert entry["ts"].endswith("Z")
        assert "file" not in entry

    def test_debug_includes_file_location(self):
        entry = json.loads(JSONFormatter().format(make_record(level=logging.DEBUG)))
        assert entry["file"].endswith(":42")

    def test_extra_fields_are_typed_and_sanitized(self):
        record = make_record(
            http_status="401",
            duration_ms="12.5",
            http_url="https://api.example.com/x?access_token=abc",
            cache_key="sdkcore.access_token.abc",
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["http_status"] == 401
        assert entry["duration_ms"] == 12.5
        assert entry["http_url"] == "https://api.example.com/x?access_token=[REDACTED]"
        assert entry["cache_key"] == "sdkcore.access_token.abc"

    def test_uncoercible_numeric_field_becomes_null(self):
        entry = json.loads(JSONFormatter().format(make_record(attempt="first")))
        assert entry["attempt"] is None

    def test_unknown_extras_are_ignored(self):
        entry = json.loads(JSONFormatter().format(make_record(unrelated="x")))
        assert "unrelated" not in entry

    def test_context_is_injected(self):
        set_log_context(integration="wechat", trace_id="abcdef0123456789")
        entry = json.loads(JSONFormatter().format(make_record()))
        assert entry["integration"] == "wechat"
        assert entry["trace_id"] == "abcdef0123456789"

    def test_exception_is_serialized(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record(level=logging.ERROR, exc_info=sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "bad"
        assert "Traceback" in entry["exception"]["stacktrace"]


class TestConsoleFormatter:
    def test_plain_output_without_tty(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        output = formatter.format(make_record(msg="sent"))
        assert " - INFO - sent" in output

    def test_integration_and_trace_prefix(self):
        set_log_context(integration="wechat", trace_id="abcdef0123456789")
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        output = formatter.format(make_record(msg="sent"))
        assert "[wechat]" in output
        assert "[abcdef01] sent" in output

    def test_colors_wrap_level_name(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = True
        output = formatter.format(make_record(level=logging.WARNING))
        assert "\033[33mWARNING\033[0m" in output
