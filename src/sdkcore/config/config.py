"""Client configuration from YAML file.

Loads from an explicit YAML path with all settings in one place:
- http: retry budget, retry delay, timeout, default headers, log template
- token: default lifetime, cache key prefix, cache directory
- provider: optional token endpoint / credentials for StaticCredentialProvider

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
All retry delays are in milliseconds; timeouts and lifetimes in seconds.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from sdkcore.errors.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 1
DEFAULT_RETRY_DELAY_MS = 500
DEFAULT_TOKEN_LIFETIME = 7200
DEFAULT_CACHE_PREFIX = "sdkcore.access_token."
DEFAULT_USER_AGENT = "sdkcore/1.0"
DEFAULT_LOG_TEMPLATE = "{method} {url} -> {status} ({duration_ms:.1f}ms)"
BODY_FORMATS = ("json", "form", "multipart", "body")


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


@dataclass
class HttpConfig:
    """Settings for RequestPipeline."""

    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY_MS  # milliseconds
    timeout: float | None = None  # seconds, None = no timeout
    user_agent: str = DEFAULT_USER_AGENT
    headers: dict[str, str] = field(default_factory=dict)
    body_format: str = "json"
    log_template: str = DEFAULT_LOG_TEMPLATE

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.max_retries = int(self.max_retries)
        self.retry_delay = float(self.retry_delay)
        if self.timeout is not None:
            self.timeout = float(self.timeout)
        self.headers = {str(k): str(v) for k, v in (self.headers or {}).items()}
        if self.body_format not in BODY_FORMATS:
            raise ConfigError(
                f"http.body_format must be one of {BODY_FORMATS}, got {self.body_format!r}"
            )

    @property
    def retry_delay_seconds(self) -> float:
        """Retry delay in seconds, never negative."""
        return abs(self.retry_delay) / 1000


@dataclass
class TokenConfig:
    """Settings for TokenManager and the token stores."""

    default_lifetime: int = DEFAULT_TOKEN_LIFETIME
    cache_prefix: str = DEFAULT_CACHE_PREFIX
    cache_dir: str | None = None

    def __post_init__(self):
        self.default_lifetime = int(self.default_lifetime)
        if self.default_lifetime <= 0:
            raise ConfigError(
                f"token.default_lifetime must be positive, got {self.default_lifetime}"
            )
        self.cache_prefix = str(self.cache_prefix)


@dataclass
class ClientConfig:
    """Root configuration object.

    Configuration structure:
        http:
          max_retries: 1
          retry_delay: 500
          timeout: 30
          headers: {...}
        token:
          default_lifetime: 7200
          cache_prefix: "sdkcore.access_token."
        provider:
          token_endpoint: "https://..."
          request_method: "GET"
          credentials: {...}
    """

    http: HttpConfig = field(default_factory=HttpConfig)
    token: TokenConfig = field(default_factory=TokenConfig)
    provider: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ClientConfig":
        data = data or {}
        try:
            return cls(
                http=HttpConfig(**(data.get("http") or {})),
                token=TokenConfig(**(data.get("token") or {})),
                provider=dict(data.get("provider") or {}),
            )
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}", cause=e) from e
        except ValueError as e:
            raise ConfigError(f"Invalid configuration value: {e}", cause=e) from e

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a dotted key such as ``http.max_retries``.

        Returns default when any segment is missing.
        """
        current: Any = self
        for part in key.split("."):
            if isinstance(current, dict):
                if part not in current:
                    return default
                current = current[part]
            elif hasattr(current, part):
                current = getattr(current, part)
            else:
                return default
        return current


def load_config(
    path: Path | str | None = None,
    env_file: Path | str | None = None,
) -> ClientConfig:
    """Load ClientConfig from a YAML file.

    Args:
        path: YAML file; defaults are used when None or the file is missing
        env_file: Optional .env file loaded before ${VAR} expansion

    Returns:
        ClientConfig instance
    """
    if env_file is not None:
        load_dotenv(env_file)

    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        data = load_yaml(path)
        if not data:
            logger.debug("No configuration found, using defaults", extra={"config_path": str(path)})

    config = ClientConfig.from_dict(_expand_env_vars(data))
    logger.debug(
        "Loaded client configuration",
        extra={
            "max_retries": config.http.max_retries,
            "delay_ms": config.http.retry_delay,
        },
    )
    return config


__all__ = [
    "ClientConfig",
    "HttpConfig",
    "TokenConfig",
    "load_config",
    "load_yaml",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_DELAY_MS",
    "DEFAULT_TOKEN_LIFETIME",
    "DEFAULT_CACHE_PREFIX",
    "BODY_FORMATS",
]
