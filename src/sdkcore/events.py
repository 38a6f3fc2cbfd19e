"""
Synchronous event notification.

The token manager and the request pipeline each own (or share) an
EventDispatcher and call it at exactly two points:

- ``token_refreshed``: a new token was fetched and stored
- ``response_created``: RequestPipeline.send produced its final response

Listeners run in the caller's thread, in registration order. A listener that
raises aborts the dispatch and the exception reaches the caller.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from sdkcore.http.models import Response
    from sdkcore.token.manager import TokenManager

logger = logging.getLogger(__name__)

WILDCARD = "*"


@dataclass(frozen=True)
class Event:
    kind: ClassVar[str] = "event"


@dataclass(frozen=True)
class TokenRefreshed(Event):
    """A token was fetched from the endpoint and written to the store."""

    kind: ClassVar[str] = "token_refreshed"
    manager: "TokenManager"


@dataclass(frozen=True)
class ResponseCreated(Event):
    """The pipeline finished a send, retries included."""

    kind: ClassVar[str] = "response_created"
    response: "Response"


Listener = Callable[[Any], None]


class EventDispatcher:
    """Registry of listeners keyed by event kind."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def listen(self, kind: str, listener: Listener) -> Listener:
        """
        Register listener for kind (or ``"*"`` for every event).

        Returns the listener so this can be used as a decorator factory target.
        """
        self._listeners[kind].append(listener)
        return listener

    def forget(self, kind: str, listener: Listener) -> None:
        """Remove a previously registered listener. Unknown listeners are ignored."""
        listeners = self._listeners.get(kind)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def has_listeners(self, kind: str) -> bool:
        return bool(self._listeners.get(kind) or self._listeners.get(WILDCARD))

    def dispatch(self, event: Event) -> None:
        listeners = [*self._listeners.get(event.kind, ()), *self._listeners.get(WILDCARD, ())]
        logger.debug(
            "Dispatching event",
            extra={"event_kind": event.kind, "listener_count": len(listeners)},
        )
        for listener in listeners:
            listener(event)


__all__ = ["Event", "TokenRefreshed", "ResponseCreated", "EventDispatcher", "WILDCARD"]
