"""Configuration for token management and the request pipeline."""

from sdkcore.config.config import (
    BODY_FORMATS,
    DEFAULT_CACHE_PREFIX,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TOKEN_LIFETIME,
    ClientConfig,
    HttpConfig,
    TokenConfig,
    load_config,
)

__all__ = [
    "ClientConfig",
    "HttpConfig",
    "TokenConfig",
    "load_config",
    "BODY_FORMATS",
    "DEFAULT_CACHE_PREFIX",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_DELAY_MS",
    "DEFAULT_TOKEN_LIFETIME",
]
