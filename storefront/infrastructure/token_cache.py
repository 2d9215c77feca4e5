import threading
import time
from typing import Callable

from cachetools import TTLCache

class TokenCache:
    """Process-wide bearer token with expiry and single-flight refresh.

    Concurrent requests that find the token expired queue on the lock;
    the first one logs in and the rest reuse its token.
    """

    _KEY = "bearer"

    def __init__(self, fetch_token: Callable[[], str], ttl_seconds: float, timer: Callable[[], float] = time.monotonic):
        self._fetch_token = fetch_token
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

    def get_valid_token(self) -> str:
        with self._lock:
            token = self._cache.get(self._KEY)
            if token is None:
                token = self._fetch_token()
                self._cache[self._KEY] = token
            return token

    def invalidate(self) -> None:
        with self._lock:
            self._cache.pop(self._KEY, None)
