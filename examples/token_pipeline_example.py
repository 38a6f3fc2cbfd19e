#!/usr/bin/env python3
"""
Example demonstrating RequestPipeline with token refresh.

Runs offline against an in-process fake API: the first call fetches a token,
the second reuses it, and an expired token triggers a refresh and a retry.

Usage:
    python examples/token_pipeline_example.py
"""

import json

from sdkcore import (
    ClientConfig,
    EventDispatcher,
    InMemoryTokenStore,
    PendingRequest,
    Response,
    StaticCredentialProvider,
    build_pipeline,
)
from sdkcore.logging import setup_logging

TOKEN_ENDPOINT = "https://auth.example.com/token"


class FakeApi:
    """Transport answering token and API calls in memory."""

    def __init__(self):
        self.issued = 0
        self.valid_tokens: set[str] = set()

    def send(self, request: PendingRequest) -> Response:
        if request.url == TOKEN_ENDPOINT:
            self.issued += 1
            token = f"tok-{self.issued}"
            self.valid_tokens = {token}
            return self._json(200, {"access_token": token, "expires_in": 3600})

        if request.query.get("access_token") not in self.valid_tokens:
            return self._json(401, {"errcode": 42001, "errmsg": "access_token expired"})
        return self._json(200, {"path": request.url, "query": request.query})

    @staticmethod
    def _json(status: int, body: dict) -> Response:
        return Response(status, {"Content-Type": "application/json"}, json.dumps(body).encode())


def main():
    setup_logging(integration="example", json_format=False)

    print("=" * 70)
    print("RequestPipeline Example")
    print("=" * 70)
    print()

    api = FakeApi()
    events = EventDispatcher()
    events.listen("token_refreshed", lambda e: print(f"  event: token refreshed ({e.manager.cache_key})"))

    config = ClientConfig.from_dict({"http": {"retry_delay": 100}})
    provider = StaticCredentialProvider({"app_id": "x", "secret": "y"}, TOKEN_ENDPOINT)
    pipeline = build_pipeline(
        config,
        provider=provider,
        store=InMemoryTokenStore(),
        transport=api,
        events=events,
    )
    pipeline.base_uri("https://api.example.com/v1/")

    print("1. First request fetches a token")
    print("-" * 70)
    print(f"  {pipeline.get('users', {'page': 1}).json()}")
    print()

    print("2. Second request reuses the cached token")
    print("-" * 70)
    print(f"  {pipeline.get('users', {'page': 2}).json()}")
    print(f"  tokens issued so far: {api.issued}")
    print()

    print("3. Server-side expiry triggers refresh and retry")
    print("-" * 70)
    api.valid_tokens.clear()
    response = pipeline.get("users", {"page": 3})
    print(f"  status {response.status_code}: {response.json()}")
    print(f"  tokens issued so far: {api.issued}")


if __name__ == "__main__":
    main()
