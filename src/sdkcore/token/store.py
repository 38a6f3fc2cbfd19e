"""
Token stores with TTL-based expiry.

Any object exposing has/get/set (see sdkcore.types.TokenStore) can back a
TokenManager. Two implementations ship here:

- InMemoryTokenStore: per-process, thread-safe, monotonic-clock expiry
- FileTokenStore: one JSON file per key, shareable between processes

Neither store serialises check-then-set across callers. Two managers that
miss at the same time both refresh and the last write wins.

Example:
    >>> store = InMemoryTokenStore()
    >>> store.set("sdkcore.access_token.abc", {"access_token": "t", "expires_in": 60}, 60)
    True
    >>> store.get("sdkcore.access_token.abc")["access_token"]
    't'
"""

import hashlib
import json
import logging
import os
import tempfile
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sdkcore.errors.exceptions import CacheError

logger = logging.getLogger(__name__)

REQUIRED_STORE_METHODS = ("has", "get", "set")


def ensure_token_store(store: Any) -> Any:
    """
    Check that store honours the TokenStore contract.

    Raises:
        CacheError: If has, get or set is missing or not callable
    """
    missing = [name for name in REQUIRED_STORE_METHODS if not callable(getattr(store, name, None))]
    if missing:
        raise CacheError(
            f"The cache instance must implement {', '.join(REQUIRED_STORE_METHODS)}; "
            f"{type(store).__name__} is missing {', '.join(missing)}"
        )
    return store


@dataclass
class CachedEntry:
    """Stored payload with its absolute expiry on the monotonic clock."""

    value: dict[str, Any]
    expires_at: float

    def is_valid(self, now: float | None = None) -> bool:
        return (now if now is not None else time.monotonic()) < self.expires_at


class InMemoryTokenStore:
    """
    Thread-safe in-process token store.

    All operations are protected by a threading.Lock. Expired entries are
    dropped lazily on access.
    """

    def __init__(self):
        self._entries: dict[str, CachedEntry] = {}
        self._lock = threading.Lock()

    def _live_entry(self, key: str) -> CachedEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_valid():
            del self._entries[key]
            return None
        return entry

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._live_entry(key)
            return dict(entry.value) if entry else None

    def set(self, key: str, value: Mapping[str, Any], ttl: int) -> bool:
        if ttl <= 0:
            return False
        with self._lock:
            self._entries[key] = CachedEntry(value=dict(value), expires_at=time.monotonic() + ttl)
        return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def remaining_ttl(self, key: str) -> float | None:
        """Seconds before key expires, for diagnostics. None if not cached."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return entry.expires_at - time.monotonic()


class FileTokenStore:
    """
    Token store persisting one JSON file per key under a directory.

    Files are named by the sha256 of the key and hold
    ``{"expires_at": <unix ts>, "value": {...}}``. They are written
    atomically (temp file + os.replace), so concurrent readers in other
    processes never observe a partial write.

    Args:
        directory: Directory for cache files (created on first write)
    """

    SUFFIX = ".json"

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        # One file per key, named by the sha256 of the key
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}{self.SUFFIX}"

    def _read(self, key: str) -> dict[str, Any] | None:
        path = self._path_for(key)
        try:
            with open(path, encoding="utf-8") as f:
                stored = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(
                "Unreadable token cache file, treating as miss",
                extra={"cache_key": key, "error_message": str(e)[:200]},
            )
            return None

        if not isinstance(stored, dict):
            self._remove(path)
            return None
        try:
            expires_at = float(stored.get("expires_at", 0))
        except (TypeError, ValueError) as e:
            logger.warning(
                "Corrupt token cache file, removing",
                extra={"cache_key": key, "error_message": str(e)[:200]},
            )
            self._remove(path)
            return None
        if time.time() >= expires_at:
            self._remove(path)
            return None
        value = stored.get("value")
        return value if isinstance(value, dict) else None

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def has(self, key: str) -> bool:
        return self._read(key) is not None

    def get(self, key: str) -> dict[str, Any] | None:
        return self._read(key)

    def set(self, key: str, value: Mapping[str, Any], ttl: int) -> bool:
        """Write value with a ttl in seconds. Returns False when nothing was written."""
        if ttl <= 0:
            return False
        payload = {"expires_at": time.time() + ttl, "value": dict(value)}

        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=self.SUFFIX)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False)
            os.replace(tmp_name, self._path_for(key))
        except OSError as e:
            if tmp_name is not None:
                self._remove(Path(tmp_name))
            logger.warning(
                "Failed to write token cache file",
                extra={"cache_key": key, "error_message": str(e)[:200]},
            )
            return False
        return True

    def delete(self, key: str) -> None:
        self._remove(self._path_for(key))


__all__ = [
    "InMemoryTokenStore",
    "FileTokenStore",
    "CachedEntry",
    "ensure_token_store",
    "REQUIRED_STORE_METHODS",
]
