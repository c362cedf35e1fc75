"""
Concurrent assembly of a channel's profiles.
"""

import asyncio
import time
from typing import List, Optional, Sequence, TYPE_CHECKING

from shared.errors import CacheWriteFailure
from shared.logging import get_logger

from ..caching.cache_gateway import CacheGateway, encode_profiles
from ..domain.models import AssemblyFailure, PlayerProfile, ProfileResult
from .profile_assembler import ProfileAssembler

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class BatchAggregator:
    """Runs one ProfileAssembler pipeline per profile, all at once.

    Results keep the order of the input profiles; a failed profile keeps its
    slot as an AssemblyFailure. The finished batch is written to the cache
    best effort: a failed write is logged and the results are still returned.
    """

    def __init__(
        self,
        assembler: ProfileAssembler,
        cache: CacheGateway,
        *,
        ttl_seconds: int,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.assembler = assembler
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.metrics = metrics
        self.logger = get_logger("viewer.aggregator")

    async def assemble_all(self, profiles: Sequence[PlayerProfile], cache_key: str) -> List[ProfileResult]:
        start = time.perf_counter()

        outcomes = await asyncio.gather(
            *(self.assembler.assemble(profile, index) for index, profile in enumerate(profiles)),
            return_exceptions=True,
        )

        results: List[ProfileResult] = []
        for profile, outcome in zip(profiles, outcomes):
            if isinstance(outcome, BaseException):
                self.logger.error("Profile pipeline raised", profile_id=profile.profile_id, error=str(outcome))
                outcome = AssemblyFailure(reason=str(outcome), profile=profile)
            results.append(outcome)

        duration = time.perf_counter() - start
        if self.metrics:
            self.metrics.observe_histogram("viewer_batch_duration_seconds", duration)

        failed = sum(1 for result in results if isinstance(result, AssemblyFailure))
        self.logger.info(
            "Batch assembled",
            cache_key=cache_key,
            profiles=len(results),
            failed=failed,
            duration_ms=round(duration * 1000, 2),
        )

        await self._write_cache(cache_key, results)
        return results

    async def _write_cache(self, cache_key: str, results: List[ProfileResult]) -> None:
        if not self.cache.available:
            self.logger.debug("Cache disabled, batch not cached", cache_key=cache_key)
            return

        try:
            await self.cache.set(cache_key, encode_profiles(results), ttl_seconds=self.ttl_seconds)
        except CacheWriteFailure as exc:
            self.logger.warning("Failed to cache batch", cache_key=cache_key, error=exc.message)
            self._record_write("failed")
            return

        self._record_write("ok")

    def _record_write(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("viewer_cache_writes_total", outcome=outcome)
