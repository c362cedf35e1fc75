"""
Read-through viewer data service.
"""

from typing import List, Optional, Sequence, TYPE_CHECKING

from shared.logging import get_logger

from ..assembly.batch_aggregator import BatchAggregator
from ..caching.cache_gateway import CacheGateway, EMPTY_ENCODING, decode_profiles
from ..domain.models import PlayerProfile, ProfileResult

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


def viewer_cache_key(channel_id: str) -> str:
    return f"viewer-{channel_id}"


class ViewerService:
    """Serves a channel's viewer data from cache, assembling it on a miss."""

    def __init__(
        self,
        cache: CacheGateway,
        aggregator: BatchAggregator,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.cache = cache
        self.aggregator = aggregator
        self.metrics = metrics
        self.logger = get_logger("viewer.service")

    async def get_data(
        self,
        channel_id: str,
        profiles: Sequence[PlayerProfile],
        refresh: bool = False,
    ) -> List[ProfileResult]:
        """
        Return one result per profile for the channel.

        A cached batch is returned as stored, without touching the ladder
        API. Otherwise every profile is assembled and the batch is cached.
        """
        # TODO: refresh is accepted from clients but does not bypass the cache
        # until the frontend agrees on what a forced refresh should do.
        cache_key = viewer_cache_key(channel_id)

        cached = await self._read_cache(cache_key)
        if cached is not None:
            self.logger.debug("Viewer cache hit", cache_key=cache_key, refresh=refresh)
            self._record_lookup("hit")
            return cached

        self._record_lookup("miss")
        self.logger.info("Viewer cache miss, assembling", cache_key=cache_key, profiles=len(profiles))
        return await self.aggregator.assemble_all(profiles, cache_key)

    async def _read_cache(self, cache_key: str) -> Optional[List[ProfileResult]]:
        if not await self.cache.exists(cache_key):
            return None

        raw = await self.cache.get(cache_key)
        # Entry expired between exists() and get(), or the backend went away
        if raw == EMPTY_ENCODING:
            return None

        try:
            return decode_profiles(raw)
        except ValueError as exc:
            self.logger.warning("Discarding undecodable cache entry", cache_key=cache_key, error=str(exc))
            return None

    def _record_lookup(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("viewer_cache_lookups_total", result=result)
