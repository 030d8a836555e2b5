"""ReferralCodeCache: bounded, insertion-ordered map of listing id -> code.

When full, the oldest *inserted* entry is evicted; lookups never reorder.
"""

import logging

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


class ReferralCodeCache:
    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"Cache capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._codes: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._codes)

    def __contains__(self, listing_id: int) -> bool:
        return listing_id in self._codes

    def get(self, listing_id: int) -> str | None:
        return self._codes.get(listing_id)

    def put(self, listing_id: int, code: str) -> int | None:
        """Insert a code; returns the evicted listing id, if any."""
        if listing_id in self._codes:
            self._codes[listing_id] = code
            return None
        evicted = None
        if len(self._codes) >= self.capacity:
            evicted = next(iter(self._codes))
            del self._codes[evicted]
            logger.debug("Referral cache full; evicted listing %s", evicted)
        self._codes[listing_id] = code
        return evicted

    def items(self) -> list[tuple[int, str]]:
        return list(self._codes.items())

    def to_dict(self) -> dict[str, str]:
        return {str(k): v for k, v in self._codes.items()}

    @classmethod
    def from_dict(cls, data: dict[str, str], capacity: int = DEFAULT_CAPACITY) -> "ReferralCodeCache":
        """Rebuild from stored data, keeping only the newest ``capacity`` entries."""
        cache = cls(capacity)
        for key, code in list(data.items())[-capacity:]:
            try:
                listing_id = int(key)
            except (TypeError, ValueError):
                logger.warning("Dropping stored referral entry with bad key %r", key)
                continue
            if not isinstance(code, str):
                logger.warning("Dropping stored referral entry %s with non-string code", key)
                continue
            cache.put(listing_id, code)
        return cache
