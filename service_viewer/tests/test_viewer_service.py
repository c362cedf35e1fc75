"""
Unit tests for the read-through viewer service.
"""

import json

import pytest

from service_viewer.app.assembly.batch_aggregator import BatchAggregator
from service_viewer.app.assembly.profile_assembler import ProfileAssembler
from service_viewer.app.caching.cache_gateway import CacheGateway
from service_viewer.app.domain.models import AssemblyFailure, PlayerProfile, ViewerPayload
from service_viewer.app.ratelimit.token_bucket import Pacer
from service_viewer.app.viewer.service import ViewerService, viewer_cache_key
from shared.test_helpers import FakeRedis, FakeUpstreamClient, RecordingSleep


class DummyMetrics:
    """Minimal metrics collector stub."""

    def __init__(self):
        self.counters = []
        self.histograms = []

    def increment_counter(self, metric_name: str, **labels):
        self.counters.append((metric_name, labels))

    def observe_histogram(self, metric_name: str, value: float, **labels):
        self.histograms.append((metric_name, value, labels))


PROFILES = [
    PlayerProfile(regionId=1, realmId=1, profileId=101),
    PlayerProfile(regionId=2, realmId=1, profileId=202),
    PlayerProfile(regionId=3, realmId=1, profileId=303),
]


class TestViewerService:
    """Test cases for ViewerService."""

    @pytest.fixture
    def redis(self):
        return FakeRedis()

    @pytest.fixture
    def client(self):
        return FakeUpstreamClient()

    @pytest.fixture
    def metrics(self):
        return DummyMetrics()

    @pytest.fixture
    def service(self, client, redis, metrics):
        cache = CacheGateway(client=redis)
        assembler = ProfileAssembler(client, Pacer(1.0, sleep=RecordingSleep()))
        aggregator = BatchAggregator(assembler, cache, ttl_seconds=300)
        return ViewerService(cache, aggregator, metrics=metrics)

    def test_cache_key(self):
        assert viewer_cache_key("42") == "viewer-42"

    @pytest.mark.asyncio
    async def test_miss_assembles_and_caches(self, service, client, redis, metrics):
        results = await service.get_data("42", PROFILES)

        assert len(results) == 3
        assert all(isinstance(r, ViewerPayload) for r in results)
        assert client.operations().count("get_profile") == 3
        assert redis.ttls["viewer-42"] == 300
        assert json.loads(redis.values["viewer-42"]) == {"profiles": [r.to_wire() for r in results]}
        assert ("viewer_cache_lookups_total", {"result": "miss"}) in metrics.counters

    @pytest.mark.asyncio
    async def test_hit_makes_no_upstream_calls(self, service, client, metrics):
        first = await service.get_data("42", PROFILES)
        client.calls.clear()

        second = await service.get_data("42", PROFILES)

        assert client.calls == []
        assert [r.to_wire() for r in second] == [r.to_wire() for r in first]
        assert ("viewer_cache_lookups_total", {"result": "hit"}) in metrics.counters

    @pytest.mark.asyncio
    async def test_hit_returns_stored_batch_for_different_profiles(self, service, client):
        await service.get_data("42", PROFILES)
        client.calls.clear()

        results = await service.get_data("42", PROFILES[:1])

        assert len(results) == 3
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_channels_are_cached_separately(self, service, redis):
        await service.get_data("42", PROFILES[:1])
        await service.get_data("43", PROFILES[:2])

        assert set(redis.values) == {"viewer-42", "viewer-43"}

    @pytest.mark.asyncio
    async def test_expired_entry_is_recomputed(self, service, client, redis):
        await service.get_data("42", PROFILES)
        redis.expire_now("viewer-42")
        client.calls.clear()

        await service.get_data("42", PROFILES)

        assert client.operations().count("get_profile") == 3
        assert "viewer-42" in redis.values

    @pytest.mark.asyncio
    async def test_cached_failures_are_served(self, service, client):
        client.failing_profiles.add(202)
        await service.get_data("42", PROFILES)
        client.failing_profiles.clear()

        results = await service.get_data("42", PROFILES)

        assert isinstance(results[1], AssemblyFailure)
        assert results[1].reason == "get_profile: Unexpected status 503"

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self, service, client, redis):
        redis.values["viewer-42"] = "not json"

        results = await service.get_data("42", PROFILES[:1])

        assert isinstance(results[0], ViewerPayload)
        assert client.operations().count("get_profile") == 1
        assert json.loads(redis.values["viewer-42"])["profiles"][0]["heading"]["player"]["name"] == "Player101"

    @pytest.mark.asyncio
    async def test_entry_without_profiles_is_a_miss(self, service, client, redis):
        redis.values["viewer-42"] = '{"x": 1}'

        results = await service.get_data("42", PROFILES[:1])

        assert len(results) == 1
        assert client.operations().count("get_profile") == 1

    @pytest.mark.asyncio
    async def test_empty_encoding_is_a_miss(self, service, client, redis):
        redis.values["viewer-42"] = "{}"

        await service.get_data("42", PROFILES[:1])

        assert client.operations().count("get_profile") == 1

    @pytest.mark.asyncio
    async def test_refresh_flag_still_served_from_cache(self, service, client):
        await service.get_data("42", PROFILES)
        client.calls.clear()

        await service.get_data("42", PROFILES, refresh=True)

        assert client.calls == []

    @pytest.mark.asyncio
    async def test_unavailable_cache_assembles_every_time(self, client):
        cache = CacheGateway(client=FakeRedis(fail=True))
        assembler = ProfileAssembler(client, Pacer(0))
        service = ViewerService(cache, BatchAggregator(assembler, cache, ttl_seconds=300))

        await service.get_data("42", PROFILES[:1])
        await service.get_data("42", PROFILES[:1])

        assert client.operations().count("get_profile") == 2
