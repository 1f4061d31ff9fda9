"""Time-boxed in-memory cache for Smartlead API responses.

Entries are keyed by request identity and stay valid for a fixed TTL after
they were stored. Expiry is checked lazily on read; nothing is evicted
proactively, so the cache grows with the number of distinct identities.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Union

from .identity import RequestIdentity

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class CacheEntry:
    """Cached payload and the clock reading at which it was stored."""

    payload: Any
    stored_at: float


class ResponseCache:
    """TTL cache of successful upstream responses.

    Only the request gateway writes to the cache, and only after a
    successful response, so failed responses are never stored.

    :param ttl: Seconds an entry stays valid
    :type ttl: float
    :param clock: Monotonic clock, injectable for tests
    :type clock: Callable[[], float]
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError("Cache TTL must be positive")
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    @staticmethod
    def _key(identity: Union[RequestIdentity, str]) -> str:
        return identity.key if isinstance(identity, RequestIdentity) else identity

    def get(self, identity: Union[RequestIdentity, str], default: Any = None) -> Any:
        """Return the cached payload, or ``default`` if absent or expired.

        :param identity: Request identity or its key
        :param default: Value returned on a miss
        :return: Cached payload or default
        """
        key = self._key(identity)
        entry = self._entries.get(key)
        if entry is None:
            return default
        if self._clock() - entry.stored_at >= self.ttl:
            logger.debug("Cache entry expired for %s", key)
            return default
        return entry.payload

    def contains(self, identity: Union[RequestIdentity, str]) -> bool:
        """Check for a valid entry, distinguishing cached ``None`` from a miss."""
        return self.get(identity, _MISSING) is not _MISSING

    def put(self, identity: Union[RequestIdentity, str], payload: Any) -> None:
        """Store a payload, replacing any previous entry for the identity."""
        self._entries[self._key(identity)] = CacheEntry(
            payload=payload, stored_at=self._clock()
        )

    def clear(self) -> None:
        """Drop every entry."""
        size = len(self._entries)
        self._entries.clear()
        logger.info("Cleared response cache (%d entries)", size)

    def __len__(self) -> int:
        return len(self._entries)
