"""Credential providers: base interface and a static, config-driven implementation."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from sdkcore.errors.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_FIELD = "access_token"
REQUEST_FORMATS = ("json", "form")


class CredentialProvider(ABC):
    """
    Per-integration source of token-request parameters and endpoint settings.

    Subclasses set the settings as class attributes or pass them to
    __init__, and implement get_credentials().

    Attributes:
        token_endpoint: URL of the token endpoint (required)
        request_method: HTTP verb; GET sends credentials as query, others as body
        token_field_name: Response field holding the token
        query_field_name: Query parameter used when injecting the token;
            defaults to token_field_name
        request_format: Body encoding for non-GET token requests ("json" or "form")
    """

    token_endpoint: str | None = None
    request_method: str = "GET"
    token_field_name: str = DEFAULT_TOKEN_FIELD
    query_field_name: str | None = None
    request_format: str = "json"

    def __init__(
        self,
        token_endpoint: str | None = None,
        *,
        request_method: str | None = None,
        token_field_name: str | None = None,
        query_field_name: str | None = None,
        request_format: str | None = None,
    ):
        if token_endpoint is not None:
            self.token_endpoint = token_endpoint
        if request_method is not None:
            self.request_method = request_method
        if token_field_name is not None:
            self.token_field_name = token_field_name
        if query_field_name is not None:
            self.query_field_name = query_field_name
        if request_format is not None:
            self.request_format = request_format

        self.request_method = self.request_method.upper()
        if self.request_format not in REQUEST_FORMATS:
            raise ConfigError(
                f"request_format must be one of {REQUEST_FORMATS}, got {self.request_format!r}"
            )

    @abstractmethod
    def get_credentials(self) -> dict[str, Any]:
        """Parameters sent to the token endpoint."""
        pass

    def get_endpoint(self) -> str:
        """
        Token endpoint URL.

        Raises:
            ConfigError: If no endpoint is configured
        """
        if not self.token_endpoint:
            raise ConfigError(f"No endpoint for access token request configured on {type(self).__name__}.")
        return self.token_endpoint

    def get_query_field_name(self) -> str:
        return self.query_field_name or self.token_field_name


class StaticCredentialProvider(CredentialProvider):
    """
    Provider with a fixed credential mapping.

    Suits integrations whose token request is a constant set of parameters
    (app id + secret, client credentials, API key exchange).
    """

    def __init__(self, credentials: Mapping[str, Any], token_endpoint: str | None = None, **settings: Any):
        super().__init__(token_endpoint, **settings)
        self._credentials = dict(credentials)

    def get_credentials(self) -> dict[str, Any]:
        return dict(self._credentials)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "StaticCredentialProvider":
        """
        Build from a ``provider`` config section.

        Expected keys: token_endpoint, credentials and optionally
        request_method, token_field_name, query_field_name, request_format.
        """
        if not config.get("token_endpoint"):
            raise ConfigError("provider.token_endpoint is required")

        credentials = config.get("credentials") or {}
        if not isinstance(credentials, Mapping):
            raise ConfigError("provider.credentials must be a mapping")

        settings = {
            key: config[key]
            for key in ("request_method", "token_field_name", "query_field_name", "request_format")
            if config.get(key) is not None
        }
        provider = cls(credentials, config["token_endpoint"], **settings)
        logger.debug(
            "Built static credential provider",
            extra={"token_endpoint": provider.token_endpoint, "http_method": provider.request_method},
        )
        return provider


__all__ = ["CredentialProvider", "StaticCredentialProvider", "DEFAULT_TOKEN_FIELD", "REQUEST_FORMATS"]
