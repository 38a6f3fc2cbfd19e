"""
Structured logging module.

Provides JSON/console logging with context propagation and URL redaction.
"""

from sdkcore.logging.context import (
    clear_log_context,
    generate_trace_id,
    get_log_context,
    set_log_context,
)
from sdkcore.logging.formatters import ConsoleFormatter, JSONFormatter, sanitize_url
from sdkcore.logging.setup import get_logger, setup_logging
from sdkcore.logging.utilities import log_exception, log_with_context

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    "sanitize_url",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    "generate_trace_id",
    # Utilities
    "log_with_context",
    "log_exception",
]
