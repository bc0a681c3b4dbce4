"""
In-memory session registry for the editor.

Each browser tab owns one editor session. Sessions live in a thread-safe
TTL cache and expire after SESSION_TTL_SECONDS (see config.settings)
without access.
"""

import time
from cachetools import TTLCache
from threading import Lock
from typing import Any, Callable, Optional

from config.settings import get_settings


class SessionCache:
    """Thread-safe TTL cache keyed by session id."""

    def __init__(
        self,
        maxsize: Optional[int] = None,
        ttl: Optional[float] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()
        self._cache: TTLCache = TTLCache(
            maxsize=maxsize if maxsize is not None else settings.SESSION_MAX_COUNT,
            ttl=ttl if ttl is not None else settings.SESSION_TTL_SECONDS,
            timer=timer,
        )
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a session by key and refresh its expiry.

        Args:
            key: The session id

        Returns:
            The stored value if present and not expired, None otherwise
        """
        with self._lock:
            value = self._cache.get(key)
            if value is not None:
                # Re-insert so active sessions do not expire mid-edit
                self._cache[key] = value
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    def pop(self, key: str) -> Optional[Any]:
        """
        Remove a key from the cache.

        Returns:
            The removed value, or None if the key was not present
        """
        with self._lock:
            return self._cache.pop(key, None)

    def clear(self) -> int:
        """
        Clear all sessions.

        Returns:
            Number of entries that were cleared
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
