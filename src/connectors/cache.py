"""In-process key-value cache with per-entry expiry."""

import logging
import time
from typing import Any, Callable


logger = logging.getLogger(__name__)


class MemoryCache:
    """Key-value cache used by the read surface.

    Entries expire `ttl` seconds after they were set. A ttl of 0 stores
    nothing. The sync engine never reads or writes this cache.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default

        return value

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        if ttl <= 0:
            return False
        self._entries[key] = (self._clock() + ttl, value)
        return True

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> bool:
        logger.debug(f"Clearing {len(self._entries)} cache entries")
        self._entries.clear()
        return True
