"""
Battle.net StarCraft II community API client for the Viewer service.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from shared.circuit_breaker import CircuitBreaker
from shared.errors import UpstreamFailure, UpstreamRateLimited
from shared.logging import get_logger
from shared.retry import RetryConfig, retry_on_exception

from ..domain.models import PlayerProfile
from ..domain.schemas import (
    LadderResponse,
    LadderSummaryResponse,
    MatchHistoryResponse,
    ProfileResponse,
)

OAUTH_TOKEN_URL = "https://oauth.battle.net/token"

REGION_NAMES: Dict[int, tuple] = {
    1: ("us",),
    2: ("eu",),
    3: ("kr", "tw"),
    5: ("cn",),
}

API_HOSTS: Dict[int, str] = {
    1: "https://us.api.blizzard.com",
    2: "https://eu.api.blizzard.com",
    3: "https://kr.api.blizzard.com",
    5: "https://gateway.battlenet.com.cn",
}

# Refresh the access token this long before Battle.net expires it
TOKEN_EXPIRY_MARGIN_SECONDS = 60

ModelT = TypeVar("ModelT", bound=BaseModel)


class UpstreamClient(Protocol):
    """What the assembler needs from the ladder API."""

    async def get_profile(self, profile: PlayerProfile) -> ProfileResponse: ...

    async def get_legacy_match_history(self, profile: PlayerProfile) -> MatchHistoryResponse: ...

    async def get_ladder_summary(self, profile: PlayerProfile) -> LadderSummaryResponse: ...

    async def get_ladder(self, profile: PlayerProfile, ladder_id: int) -> LadderResponse: ...

    def get_region_name(self, region_id: int) -> str: ...


def profile_path(profile: PlayerProfile) -> str:
    return f"{profile.region_id}/{profile.realm_id}/{profile.profile_id}"


class Sc2CommunityClient:
    """Client for the StarCraft II community endpoints on Battle.net."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        locale: str = "en_US",
        timeout: float = 10.0,
        oauth_url: str = OAUTH_TOKEN_URL,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.locale = locale
        self.oauth_url = oauth_url
        self.logger = get_logger("viewer.sc2_client")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0
        self._token_lock = asyncio.Lock()

        self.circuit_breaker = CircuitBreaker(
            "battlenet",
            failure_threshold=5,
            recovery_timeout=30.0
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def get_region_name(self, region_id: int) -> str:
        names = REGION_NAMES.get(region_id)
        if not names:
            raise UpstreamFailure("get_region_name", f"unknown region id {region_id}")
        return names[0]

    async def get_profile(self, profile: PlayerProfile) -> ProfileResponse:
        """Fetch the profile summary, season snapshot and career."""
        data = await self._get("get_profile", profile.region_id, f"/sc2/profile/{profile_path(profile)}")
        return self._decode("get_profile", ProfileResponse, data)

    async def get_legacy_match_history(self, profile: PlayerProfile) -> MatchHistoryResponse:
        """Fetch the recent match list."""
        data = await self._get(
            "get_legacy_match_history",
            profile.region_id,
            f"/sc2/legacy/profile/{profile_path(profile)}/matches",
        )
        return self._decode("get_legacy_match_history", MatchHistoryResponse, data)

    async def get_ladder_summary(self, profile: PlayerProfile) -> LadderSummaryResponse:
        """Fetch the ladders the profile currently plays in."""
        data = await self._get(
            "get_ladder_summary",
            profile.region_id,
            f"/sc2/profile/{profile_path(profile)}/ladder/summary",
        )
        return self._decode("get_ladder_summary", LadderSummaryResponse, data)

    async def get_ladder(self, profile: PlayerProfile, ladder_id: int) -> LadderResponse:
        """Fetch one ladder as seen from the profile."""
        data = await self._get(
            "get_ladder",
            profile.region_id,
            f"/sc2/profile/{profile_path(profile)}/ladder/{ladder_id}",
        )
        return self._decode("get_ladder", LadderResponse, data)

    async def _get_token(self) -> str:
        """Return a cached client-credentials token, fetching a new one when stale."""
        async with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token

            try:
                response = await self._client.post(
                    self.oauth_url,
                    data={"grant_type": "client_credentials"},
                    auth=(self.client_id, self.client_secret),
                )
            except httpx.HTTPError as exc:
                self.logger.error("Battle.net token request failed", error=str(exc))
                raise UpstreamFailure("oauth", str(exc)) from exc

            if response.status_code != 200:
                self.logger.error("Battle.net token rejected", status_code=response.status_code)
                raise UpstreamFailure(
                    "oauth",
                    f"Unexpected status {response.status_code}",
                    details={"status_code": response.status_code},
                )

            try:
                body = response.json()
                token = body["access_token"]
            except (ValueError, KeyError, TypeError) as exc:
                raise UpstreamFailure("oauth", "malformed token response") from exc

            expires_in = int(body.get("expires_in") or 0)
            self._token = token
            self._token_expires_at = time.monotonic() + max(0, expires_in - TOKEN_EXPIRY_MARGIN_SECONDS)
            self.logger.info("Battle.net access token refreshed", expires_in=expires_in)
            return token

    def _invalidate_token(self) -> None:
        self._token = None
        self._token_expires_at = 0.0

    @retry_on_exception((httpx.TransportError,), config=RetryConfig(max_attempts=3, base_delay=0.5))
    async def _send(self, request: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        return await self.circuit_breaker.call(request)

    async def _get(self, operation: str, region_id: int, path: str) -> Any:
        """GET a community endpoint and return its JSON body."""
        host = API_HOSTS.get(region_id)
        if host is None:
            raise UpstreamFailure(operation, f"unknown region id {region_id}")

        url = f"{host}{path}"
        token = await self._get_token()

        async def _request() -> httpx.Response:
            response = await self._client.get(
                url,
                params={"locale": self.locale},
                headers={"Authorization": f"Bearer {token}"},
            )
            # Only server-side errors count against the breaker
            if response.status_code >= 500:
                raise UpstreamFailure(
                    operation,
                    f"Unexpected status {response.status_code}",
                    details={"status_code": response.status_code, "url": url},
                )
            return response

        try:
            response = await self._send(_request)
        except UpstreamFailure:
            raise
        except httpx.HTTPError as exc:
            self.logger.error("Battle.net request failed", operation=operation, url=url, error=str(exc))
            raise UpstreamFailure(operation, str(exc), details={"url": url}) from exc

        if response.status_code == 429:
            raise UpstreamRateLimited(operation, retry_after=self._retry_after(response))

        if response.status_code == 401:
            self._invalidate_token()

        if response.status_code != 200:
            self.logger.warning(
                "Battle.net request rejected",
                operation=operation,
                url=url,
                status_code=response.status_code,
            )
            raise UpstreamFailure(
                operation,
                f"Unexpected status {response.status_code}",
                details={"status_code": response.status_code, "url": url},
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFailure(operation, "malformed JSON body", details={"url": url}) from exc

    def _decode(self, operation: str, model: Type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            self.logger.warning(
                "Battle.net payload failed validation",
                operation=operation,
                errors=exc.error_count(),
            )
            raise UpstreamFailure(
                operation,
                "malformed payload",
                details={"errors": exc.error_count()},
            ) from exc

    @staticmethod
    def _retry_after(response: httpx.Response) -> float:
        try:
            return max(0.0, float(response.headers.get("Retry-After", "1")))
        except ValueError:
            return 1.0
