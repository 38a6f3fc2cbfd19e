"""Log formatters for JSON and console output."""

import json
import logging
import re
import sys
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote_plus

from sdkcore.logging.context import get_log_context

# Query parameters whose values must never reach a log line. Matches names
# such as token, access_token, client_secret, api_key, sig, password.
SENSITIVE_PARAMS_PATTERN = re.compile(
    r"([?&])([^=&#]*(?:sig|token|key|secret|password|auth)[^=&#]*)=[^&#]*",
    re.IGNORECASE,
)


def sanitize_url(url: str, extra_params: Iterable[str] = ()) -> str:
    """
    Redact sensitive query parameter values from a URL.

    Parameters named in extra_params are redacted whatever their name, for
    token query fields that do not look sensitive.
    """
    url = SENSITIVE_PARAMS_PATTERN.sub(r"\1\2=[REDACTED]", url)
    names = "|".join(re.escape(quote_plus(name)) for name in extra_params if name)
    if not names:
        return url
    pattern = re.compile(r"([?&])(" + names + r")=[^&#]*")
    return pattern.sub(r"\1\2=[REDACTED]", url)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "value"):
        return obj.value
    return str(obj)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    Sanitizes URLs to remove tokens and secrets before logging.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Correlation
        "trace_id",
        "duration_ms",
        # HTTP
        "http_method",
        "http_url",
        "http_status",
        # Token lifecycle
        "token_endpoint",
        "cache_key",
        "token_field",
        "expires_in",
        "force_refresh",
        # Retry
        "attempt",
        "max_retries",
        "delay_ms",
        # Errors
        "error_category",
        "error_message",
        "error_type",
    ]

    # Numeric fields are coerced so downstream aggregations don't see strings
    NUMERIC_FIELDS = {
        "duration_ms": float,
        "delay_ms": float,
        "http_status": int,
        "expires_in": int,
        "attempt": int,
        "max_retries": int,
    }

    # Fields that contain URLs and should be sanitized
    URL_FIELDS = ["http_url", "token_endpoint", "url"]

    def _sanitize_value(self, key: str, value: Any) -> Any:
        if key in self.URL_FIELDS and isinstance(value, str):
            return sanitize_url(value)
        return value

    def _ensure_type(self, field: str, value: Any) -> Any:
        if field not in self.NUMERIC_FIELDS or value is None:
            return value

        expected_type = self.NUMERIC_FIELDS[field]
        try:
            return expected_type(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _base_log_entry(record: logging.LogRecord) -> dict[str, Any]:
        return {
            "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

    @staticmethod
    def _inject_context(log_entry: dict[str, Any], log_context: dict[str, str]) -> None:
        for field, value in log_context.items():
            if value:
                log_entry[field] = value

    def _inject_extra_fields(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                typed_value = self._ensure_type(field, value)
                log_entry[field] = self._sanitize_value(field, typed_value)

    def _inject_exception(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        if not record.exc_info:
            return

        exc_type, exc_value, _ = record.exc_info
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "stacktrace": self.formatException(record.exc_info),
        }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._base_log_entry(record)
        self._inject_context(log_entry, get_log_context())

        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        self._inject_extra_fields(log_entry, record)
        self._inject_exception(log_entry, record)

        return json.dumps(log_entry, default=_json_default, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with color-coded log levels.

    Colors are auto-disabled when output is not a TTY (pipes, files).
    """

    # ANSI color codes
    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty()

    def _format_level_name(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        if not self._use_colors:
            return level_name

        color = self.COLORS.get(record.levelno, "")
        if not color:
            return level_name

        return f"{color}{level_name}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        log_context = get_log_context()

        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            self._format_level_name(record),
        ]
        if log_context["integration"]:
            parts.append(f"[{log_context['integration']}]")
        prefix = " - ".join(parts)

        trace_id = getattr(record, "trace_id", None) or log_context["trace_id"]
        message = record.getMessage()
        if trace_id:
            message = f"[{trace_id[:8]}] {message}"

        output = f"{prefix} - {message}"
        if record.exc_info:
            output = f"{output}\n{self.formatException(record.exc_info)}"
        return output


__all__ = ["JSONFormatter", "ConsoleFormatter", "sanitize_url", "SENSITIVE_PARAMS_PATTERN"]
