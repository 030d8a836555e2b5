"""Durable referral-code storage, one Redis string per wallet.

Key: ``{REFERRAL_KEY_PREFIX}:{wallet_lower}``; value: a JSON object of
listing id -> code in insertion order (json preserves dict order).
"""

import json
import logging
from typing import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings
from src.lp_common.errors import StoragePersistError
from src.lp_common.redis_client import get_redis

logger = logging.getLogger(__name__)


class RedisReferralStore:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        key_prefix: str | None = None,
    ) -> None:
        self._redis_factory = redis_factory
        self._prefix = key_prefix or settings.REFERRAL_KEY_PREFIX

    def key(self, wallet: str) -> str:
        return f"{self._prefix}:{wallet.lower()}"

    async def load(self, wallet: str) -> dict[str, str]:
        """Stored map for ``wallet``; unreadable data is discarded, not raised."""
        key = self.key(wallet)
        try:
            redis = await self._redis_factory()
            raw = await redis.get(key)
        except RedisError as exc:
            logger.warning("Could not read referral codes for %s: %s", key, exc)
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable referral codes under %s", key)
            return {}
        if not isinstance(data, dict):
            logger.warning("Discarding non-object referral codes under %s", key)
            return {}
        return data

    async def save(self, wallet: str, codes: dict[str, str]) -> None:
        key = self.key(wallet)
        try:
            redis = await self._redis_factory()
            await redis.set(key, json.dumps(codes))
        except RedisError as exc:
            raise StoragePersistError(f"{key}: {exc}") from exc
