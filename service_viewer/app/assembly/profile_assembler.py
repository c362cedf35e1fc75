"""
Per-profile assembly of viewer payloads.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, TYPE_CHECKING

from shared.errors import UpstreamFailure, UpstreamRateLimited
from shared.logging import get_logger

from ..adapters.sc2_client import UpstreamClient
from ..domain.models import (
    AssemblyFailure,
    Details,
    LadderResult,
    PlayerProfile,
    ProfileResult,
    ViewerPayload,
)
from ..domain.transforms import (
    build_heading,
    build_history,
    build_ladder_result,
    build_stats,
)
from ..ratelimit.token_bucket import Pacer, TokenBucket

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class ProfileAssembler:
    """Turns the four ladder API responses of one profile into a ViewerPayload.

    The calls run in order: profile, then (paced) match history, then (paced)
    ladder summary, then one more pause before the ladder calls, each of
    which is paced again by its position in the summary. Any failure along
    the way yields an AssemblyFailure for the profile; nothing partial is
    returned.

    Every upstream call takes a token from ``limiter`` (when given), holds a
    slot of the shared in-flight gate and is bounded by ``timeout``.
    """

    def __init__(
        self,
        client: UpstreamClient,
        pacer: Pacer,
        *,
        limiter: Optional[TokenBucket] = None,
        timeout: Optional[float] = 10.0,
        max_in_flight: int = 8,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.client = client
        self.pacer = pacer
        self.limiter = limiter
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("viewer.assembler")
        self._gate = asyncio.Semaphore(max(1, max_in_flight))

    async def assemble(self, profile: PlayerProfile, index: int) -> ProfileResult:
        try:
            payload = await self._assemble(profile, index)
        except UpstreamFailure as exc:
            self.logger.warning(
                "Profile assembly failed",
                profile_id=profile.profile_id,
                region_id=profile.region_id,
                code=exc.code,
                error=exc.message,
            )
            self._record("failed")
            return AssemblyFailure(reason=exc.message, profile=profile, code=exc.code)
        except Exception as exc:
            self.logger.error(
                "Unexpected error assembling profile",
                profile_id=profile.profile_id,
                error=str(exc),
                exc_info=True,
            )
            self._record("failed")
            return AssemblyFailure(reason=str(exc), profile=profile)

        self._record("assembled")
        return payload

    async def _assemble(self, profile: PlayerProfile, index: int) -> ViewerPayload:
        profile_data = await self._call("get_profile", self.client.get_profile, profile)
        heading = build_heading(profile_data, self.client.get_region_name(profile.region_id))

        await self.pacer.schedule(index)
        match_history = await self._call(
            "get_legacy_match_history", self.client.get_legacy_match_history, profile
        )
        history = build_history(match_history)

        await self.pacer.schedule(index)
        ladder_summary = await self._call("get_ladder_summary", self.client.get_ladder_summary, profile)

        await self.pacer.schedule(index)
        snapshot = await self._fetch_snapshot(profile, [m.ladder_id for m in ladder_summary.all_ladder_memberships])

        return ViewerPayload(
            heading=heading,
            details=Details(snapshot=snapshot, stats=build_stats(profile_data), history=history),
        )

    async def _fetch_snapshot(self, profile: PlayerProfile, ladder_ids: List[int]) -> List[LadderResult]:
        outcomes = await asyncio.gather(
            *(self._fetch_ladder(profile, ladder_id, k) for k, ladder_id in enumerate(ladder_ids)),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return list(outcomes)

    async def _fetch_ladder(self, profile: PlayerProfile, ladder_id: int, index: int) -> LadderResult:
        await self.pacer.schedule(index)
        ladder = await self._call("get_ladder", self.client.get_ladder, profile, ladder_id)
        return build_ladder_result(ladder, profile.profile_id)

    async def _call(self, operation: str, func: Callable[..., Awaitable[Any]], *args) -> Any:
        if self.limiter is not None:
            await self.limiter.acquire()

        async with self._gate:
            try:
                result = await asyncio.wait_for(func(*args), timeout=self.timeout)
            except asyncio.TimeoutError as exc:
                self._record_call(operation, "timeout")
                raise UpstreamFailure(operation, f"timed out after {self.timeout}s") from exc
            except UpstreamRateLimited as exc:
                self._record_call(operation, "rate_limited")
                if self.limiter is not None:
                    self.limiter.penalize(exc.retry_after)
                raise
            except UpstreamFailure:
                self._record_call(operation, "error")
                raise
            except Exception as exc:
                self._record_call(operation, "error")
                raise UpstreamFailure(operation, str(exc)) from exc

        self._record_call(operation, "ok")
        return result

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("viewer_profile_assemblies_total", outcome=outcome)

    def _record_call(self, operation: str, outcome: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("viewer_upstream_calls_total", operation=operation, outcome=outcome)
