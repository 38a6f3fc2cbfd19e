"""Context variables for structured logging."""

import secrets
from contextvars import ContextVar

_integration: ContextVar[str] = ContextVar("integration", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    integration: str | None = None,
    trace_id: str | None = None,
) -> None:
    if integration is not None:
        _integration.set(integration)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> dict[str, str]:
    return {
        "integration": _integration.get(),
        "trace_id": _trace_id.get(),
    }


def clear_log_context() -> None:
    _integration.set("")
    _trace_id.set("")


def generate_trace_id() -> str:
    """Short random identifier for correlating one logical call's log lines."""
    return secrets.token_hex(8)
