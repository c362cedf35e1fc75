"""
Redis cache gateway for viewer payloads.
"""

import json
from typing import Any, Iterable, List, Optional

import redis.asyncio as redis

from shared.errors import CacheUnavailable, CacheWriteFailure
from shared.logging import get_logger

from ..domain.models import AssemblyFailure, ProfileResult, ViewerPayload

# What get() hands back when nothing can be read
EMPTY_ENCODING = "{}"


def encode_profiles(results: Iterable[ProfileResult]) -> str:
    """Serialize a batch the way it is stored and served: {"profiles": [...]}"""
    return json.dumps({"profiles": [result.to_wire() for result in results]})


def decode_profiles(raw: Any) -> List[ProfileResult]:
    """Rebuild a batch from its cached encoding.

    Empty objects and {"error": ...} entries decode to AssemblyFailure.
    Raises ValueError when the value is not a batch encoding.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")

    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ValueError(f"cached value is not JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("cached value is not an object")

    if "profiles" not in data:
        raise ValueError("cached value has no profiles")

    entries = data["profiles"]
    if not isinstance(entries, list):
        raise ValueError("cached profiles is not a list")

    results: List[ProfileResult] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("cached profile entry is not an object")
        if not entry or "error" in entry:
            error = entry.get("error") or {}
            results.append(AssemblyFailure(
                reason=error.get("message", ""),
                code=error.get("code", "UPSTREAM_FAILURE"),
            ))
            continue
        # pydantic's ValidationError is a ValueError
        results.append(ViewerPayload.model_validate(entry))
    return results


class CacheGateway:
    """Key/value access to Redis with TTLs.

    Reads never raise: when Redis is not configured or a call fails,
    exists() reports False and get() returns EMPTY_ENCODING so callers
    simply recompute. Writes raise CacheWriteFailure.
    """

    def __init__(self, redis_url: Optional[str] = None, *, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.logger = get_logger("viewer.cache")
        self._redis: Optional[redis.Redis] = client

    @property
    def available(self) -> bool:
        return self._redis is not None or bool(self.redis_url)

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            if not self.redis_url:
                raise CacheUnavailable("Redis URL not configured")
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        return self._redis

    async def exists(self, key: str) -> bool:
        try:
            client = await self._get_redis()
            return bool(await client.exists(key))
        except CacheUnavailable:
            return False
        except Exception as e:
            self.logger.warning("Cache exists check failed", key=key, error=str(e))
            return False

    async def get(self, key: str) -> str:
        try:
            client = await self._get_redis()
            value = await client.get(key)
        except CacheUnavailable:
            return EMPTY_ENCODING
        except Exception as e:
            self.logger.warning("Cache get failed", key=key, error=str(e))
            return EMPTY_ENCODING

        if value is None:
            return EMPTY_ENCODING
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store a value; with ttl_seconds the value and its expiry are written in one command."""
        try:
            client = await self._get_redis()
            if ttl_seconds is None:
                await client.set(key, value)
            else:
                await client.set(key, value, ex=ttl_seconds)
        except Exception as e:
            raise CacheWriteFailure(key, str(e)) from e
        self.logger.debug("Cached value", key=key)

    async def expire(self, key: str, ttl_seconds: int) -> None:
        try:
            client = await self._get_redis()
            await client.expire(key, ttl_seconds)
        except Exception as e:
            raise CacheWriteFailure(key, str(e)) from e

    async def ping(self) -> bool:
        """Check Redis health."""
        try:
            client = await self._get_redis()
            return bool(await client.ping())
        except Exception:
            return False

    async def close(self) -> None:
        if self._redis is not None:
            try:
                await self._redis.close()
            except Exception as e:  # pragma: no cover - close is best effort
                self.logger.debug("Cache close failed", error=str(e))
            self._redis = None
