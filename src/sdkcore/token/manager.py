"""Token manager: fetch, cache and refresh access tokens, and attach them to requests."""

import json
import logging
from typing import Any

from sdkcore.config.config import TokenConfig
from sdkcore.errors.exceptions import AuthError, CacheError
from sdkcore.events import EventDispatcher, TokenRefreshed
from sdkcore.http.models import PendingRequest, Response
from sdkcore.http.transport import RequestsTransport
from sdkcore.token.models import EXPIRES_IN_FIELD, TokenRecord, build_cache_key
from sdkcore.token.provider import CredentialProvider
from sdkcore.token.store import InMemoryTokenStore, ensure_token_store
from sdkcore.types import HttpTransport, TokenStore

logger = logging.getLogger(__name__)


class TokenManager:
    """
    Manages the access token for one credential set.

    Tokens live in the TokenStore under a key derived from the provider's
    credentials, so every manager sharing a store and credentials shares the
    token. Expiry is left to the store: a cached payload is trusted until the
    store stops returning it.

    Concurrent managers are not coordinated. Two callers that miss at the same
    time both call the token endpoint and the last store write wins.

    Usage:
        provider = StaticCredentialProvider(
            {"app_id": "...", "secret": "..."},
            token_endpoint="https://api.example.com/token",
        )
        manager = TokenManager(provider, store=FileTokenStore("/var/cache/tokens"))

        token = manager.get_token()["access_token"]
        request = manager.apply_to_request(request)
    """

    def __init__(
        self,
        provider: CredentialProvider,
        store: TokenStore | None = None,
        transport: HttpTransport | None = None,
        *,
        config: TokenConfig | None = None,
        events: EventDispatcher | None = None,
    ):
        """
        Initialize token manager.

        Args:
            provider: Source of credentials and endpoint settings
            store: Token store (default: a private InMemoryTokenStore)
            transport: Transport used for the token endpoint call
            config: Default lifetime and cache prefix
            events: Dispatcher notified with TokenRefreshed

        Raises:
            CacheError: If store does not implement has/get/set
        """
        self.provider = provider
        self.store = ensure_token_store(store if store is not None else InMemoryTokenStore())
        self.transport = transport or RequestsTransport()
        self.config = config or TokenConfig()
        self.events = events or EventDispatcher()

    @property
    def token_field_name(self) -> str:
        return self.provider.token_field_name

    @property
    def query_field_name(self) -> str:
        return self.provider.get_query_field_name()

    @property
    def cache_key(self) -> str:
        return build_cache_key(self.config.cache_prefix, self.provider.get_credentials())

    def get_token(self, force_refresh: bool = False) -> dict[str, Any]:
        """
        Get the token payload, from the store when possible.

        Args:
            force_refresh: Skip the store and always call the token endpoint

        Returns:
            The cached payload on a hit, otherwise the full decoded endpoint response

        Raises:
            AuthError: If the endpoint answered without the token field
            ConnectionError: If the endpoint could not be reached
            CacheError: If the store did not keep the new token
        """
        cache_key = self.cache_key
        if not force_refresh and self.store.has(cache_key):
            cached = self.store.get(cache_key)
            if cached:
                logger.debug("Using cached access token", extra={"cache_key": cache_key})
                return cached

        token = self.request_token(self.provider.get_credentials())
        self.set_token(token[self.token_field_name], self._lifetime_from(token))

        logger.info(
            "Access token refreshed",
            extra={
                "cache_key": cache_key,
                "force_refresh": force_refresh,
                "expires_in": token.get(EXPIRES_IN_FIELD),
            },
        )
        self.events.dispatch(TokenRefreshed(manager=self))
        return token

    def get_refreshed_token(self) -> dict[str, Any]:
        return self.get_token(force_refresh=True)

    def refresh(self) -> "TokenManager":
        """Force a token refresh, discarding the payload."""
        self.get_token(force_refresh=True)
        return self

    def current_token(self) -> str:
        """Token value from the store, fetching one on a miss."""
        return str(self.get_token()[self.token_field_name])

    def set_token(self, token: str, lifetime: int | None = None) -> "TokenManager":
        """
        Write a token to the store under this manager's cache key.

        Raises:
            CacheError: If the store rejects the write or cannot read it back
        """
        record = TokenRecord(
            value=token,
            lifetime_seconds=lifetime or self.config.default_lifetime,
            token_field_name=self.token_field_name,
        )
        cache_key = self.cache_key

        stored = self.store.set(cache_key, record.to_payload(), record.lifetime_seconds)
        if stored is False or not self.store.has(cache_key):
            raise CacheError(
                "Failed to cache access token.",
                context={"cache_key": cache_key, "store": type(self.store).__name__},
            )
        return self

    def request_token(self, credentials: dict[str, Any]) -> dict[str, Any]:
        """
        Call the token endpoint once and return its decoded body.

        Raises:
            AuthError: If the body is not a mapping with a non-empty token field
            ConnectionError: If the transport could not reach the endpoint
        """
        response = self._send_request(credentials)
        payload = response.json()

        if not isinstance(payload, dict) or not payload.get(self.token_field_name):
            formatted = payload if payload is not None else response.body()
            raise AuthError(
                f"Request {self.token_field_name} fail: "
                f"{json.dumps(formatted, ensure_ascii=False, default=str)}",
                response=response,
                formatted_response=formatted,
                context={"http_status": response.status_code},
            )
        return payload

    def apply_to_request(self, request: PendingRequest) -> PendingRequest:
        """
        Return request with the token added to its query.

        The request's own query parameters are merged over the injected one,
        so a parameter already named like the query field keeps its value.
        """
        injected = {self.query_field_name: self.current_token()}
        return request.with_query({**injected, **request.query})

    def _send_request(self, credentials: dict[str, Any]) -> Response:
        method = self.provider.request_method
        endpoint = self.provider.get_endpoint()

        if method == "GET":
            request = PendingRequest(method=method, url=endpoint, query=dict(credentials))
        elif self.provider.request_format == "form":
            request = PendingRequest(method=method, url=endpoint, data=dict(credentials))
        else:
            request = PendingRequest(method=method, url=endpoint, json=dict(credentials))

        logger.debug(
            "Requesting access token",
            extra={"token_endpoint": endpoint, "http_method": method},
        )
        return self.transport.send(request)

    def _lifetime_from(self, token: dict[str, Any]) -> int:
        expires_in = token.get(EXPIRES_IN_FIELD)
        if expires_in is None:
            return self.config.default_lifetime
        try:
            lifetime = int(expires_in)
        except (TypeError, ValueError):
            lifetime = 0
        if lifetime <= 0:
            logger.warning(
                "Token endpoint returned unusable expires_in, using default lifetime",
                extra={"token_field": self.token_field_name},
            )
            return self.config.default_lifetime
        return lifetime


__all__ = ["TokenManager"]
