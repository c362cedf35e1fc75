"""
Unit tests for the Redis cache gateway and the batch encoding.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from service_viewer.app.caching.cache_gateway import (
    EMPTY_ENCODING,
    CacheGateway,
    decode_profiles,
    encode_profiles,
)
from service_viewer.app.domain.models import (
    AssemblyFailure,
    Clan,
    Details,
    Heading,
    Player,
    Portrait,
    Stats,
    ViewerPayload,
)
from shared.errors import CacheWriteFailure
from shared.test_helpers import FakeRedis


def _payload(name: str = "Serral") -> ViewerPayload:
    return ViewerPayload(
        heading=Heading(
            portrait=Portrait(url="https://example.invalid/p.jpg", frame="master"),
            player=Player(clan=Clan(name="ENCE", tag="ENCE"), name=name, server="eu"),
        ),
        details=Details(snapshot=[], stats=Stats(), history=[]),
    )


class TestBatchEncoding:
    """Test cases for encode_profiles and decode_profiles."""

    def test_encode_wraps_profiles(self):
        raw = encode_profiles([_payload(), AssemblyFailure(reason="get_profile: timed out after 10s")])

        data = json.loads(raw)
        assert list(data) == ["profiles"]
        assert data["profiles"][0]["heading"]["player"]["name"] == "Serral"
        assert data["profiles"][0]["details"]["stats"]["seasonWinRatio"] == 0
        assert data["profiles"][1] == {
            "error": {"code": "UPSTREAM_FAILURE", "message": "get_profile: timed out after 10s"}
        }

    def test_decode_restores_order_and_failures(self):
        raw = encode_profiles([_payload("A"), AssemblyFailure(reason="nope"), _payload("B")])

        results = decode_profiles(raw)

        assert [type(r) for r in results] == [ViewerPayload, AssemblyFailure, ViewerPayload]
        assert results[0].heading.player.name == "A"
        assert results[1].reason == "nope"
        assert results[2].heading.player.name == "B"

    def test_decode_accepts_empty_object_entries(self):
        results = decode_profiles('{"profiles": [{}]}')

        assert len(results) == 1
        assert isinstance(results[0], AssemblyFailure)

    def test_decode_bytes(self):
        results = decode_profiles(encode_profiles([_payload()]).encode("utf-8"))

        assert results[0].heading.player.server == "eu"

    @pytest.mark.parametrize("raw", [
        "not json",
        "[]",
        '{"x": 1}',
        '{"profiles": {}}',
        '{"profiles": [1]}',
        '{"profiles": [{"heading": {}}]}',
    ])
    def test_decode_rejects_bad_values(self, raw):
        with pytest.raises(ValueError):
            decode_profiles(raw)


class TestCacheGateway:
    """Test cases for CacheGateway."""

    @pytest.fixture
    def redis(self):
        return FakeRedis()

    @pytest.fixture
    def cache(self, redis):
        return CacheGateway(client=redis)

    @pytest.mark.asyncio
    async def test_set_get_exists(self, cache, redis):
        assert await cache.exists("viewer-1") is False

        await cache.set("viewer-1", '{"profiles": []}')
        await cache.expire("viewer-1", 300)

        assert await cache.exists("viewer-1") is True
        assert await cache.get("viewer-1") == '{"profiles": []}'
        assert redis.ttls["viewer-1"] == 300

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, cache, redis):
        await cache.set("viewer-1", '{"profiles": []}', ttl_seconds=300)

        assert redis.values["viewer-1"] == '{"profiles": []}'
        assert redis.ttls["viewer-1"] == 300
        assert redis.commands == [("set", "viewer-1")]

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_empty_encoding(self, cache):
        assert await cache.get("viewer-404") == EMPTY_ENCODING

    @pytest.mark.asyncio
    async def test_expired_entry_is_absent(self, cache, redis):
        await cache.set("viewer-1", '{"profiles": []}')
        await cache.expire("viewer-1", 1)

        redis.expire_now("viewer-1")

        assert await cache.exists("viewer-1") is False
        assert await cache.get("viewer-1") == EMPTY_ENCODING

    @pytest.mark.asyncio
    async def test_reads_degrade_when_redis_fails(self):
        cache = CacheGateway(client=FakeRedis(fail=True))

        assert await cache.exists("viewer-1") is False
        assert await cache.get("viewer-1") == EMPTY_ENCODING
        assert await cache.ping() is False

    @pytest.mark.asyncio
    async def test_writes_raise_when_redis_fails(self):
        cache = CacheGateway(client=FakeRedis(fail=True))

        with pytest.raises(CacheWriteFailure):
            await cache.set("viewer-1", "{}")
        with pytest.raises(CacheWriteFailure):
            await cache.expire("viewer-1", 300)

    @pytest.mark.asyncio
    async def test_unconfigured_cache(self):
        cache = CacheGateway(None)

        assert cache.available is False
        assert await cache.exists("viewer-1") is False
        assert await cache.get("viewer-1") == EMPTY_ENCODING
        with pytest.raises(CacheWriteFailure):
            await cache.set("viewer-1", "{}")

    @pytest.mark.asyncio
    async def test_connection_created_from_url(self, redis):
        cache = CacheGateway("redis://localhost:6379/0")

        with patch("service_viewer.app.caching.cache_gateway.redis.from_url", return_value=redis) as from_url:
            assert await cache.ping() is True
            assert await cache.ping() is True

        from_url.assert_called_once()
        assert from_url.call_args.kwargs["decode_responses"] is True

    @pytest.mark.asyncio
    async def test_close(self, cache, redis):
        redis.close = AsyncMock()

        await cache.close()

        redis.close.assert_awaited_once()
        assert cache.available is False
