"""Wire a RequestPipeline, TokenManager and store together from a ClientConfig."""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from sdkcore.config.config import ClientConfig, load_config
from sdkcore.events import EventDispatcher
from sdkcore.http.pipeline import RequestPipeline
from sdkcore.http.transport import RequestsTransport
from sdkcore.token.manager import TokenManager
from sdkcore.token.provider import CredentialProvider, StaticCredentialProvider
from sdkcore.token.store import FileTokenStore, InMemoryTokenStore
from sdkcore.types import HttpTransport, TokenStore

logger = logging.getLogger(__name__)


def build_store(config: ClientConfig) -> TokenStore:
    """FileTokenStore when token.cache_dir is set, otherwise an in-memory store."""
    if config.token.cache_dir:
        return FileTokenStore(config.token.cache_dir)
    return InMemoryTokenStore()


def build_pipeline(
    config: ClientConfig | Path | str | None = None,
    *,
    provider: CredentialProvider | None = None,
    store: TokenStore | None = None,
    transport: HttpTransport | None = None,
    events: EventDispatcher | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RequestPipeline:
    """
    Build a ready-to-use pipeline.

    The token manager and the pipeline share one transport and one event
    dispatcher. Without an explicit provider, one is built from the config's
    ``provider`` section; when that section is empty the pipeline sends
    requests without a token.

    Args:
        config: ClientConfig, or a YAML path passed to load_config
        provider: Credential provider overriding the config section
        store: Token store (default: from token.cache_dir)
        transport: Shared transport (default: RequestsTransport)
        events: Shared event dispatcher
        sleep: Retry sleep, injectable for tests
    """
    if not isinstance(config, ClientConfig):
        config = load_config(config)

    transport = transport or RequestsTransport(default_timeout=config.http.timeout)
    events = events or EventDispatcher()

    if provider is None and config.provider:
        provider = StaticCredentialProvider.from_config(config.provider)

    manager = None
    if provider is not None:
        manager = TokenManager(
            provider,
            store if store is not None else build_store(config),
            transport,
            config=config.token,
            events=events,
        )

    logger.debug(
        "Built request pipeline",
        extra={
            "max_retries": config.http.max_retries,
            "delay_ms": config.http.retry_delay,
            "token_endpoint": provider.token_endpoint if provider else None,
        },
    )
    return RequestPipeline(transport, manager, config=config, events=events, sleep=sleep)


__all__ = ["build_pipeline", "build_store"]
