"""
Viewer service for the ladder viewer.
"""

from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import StoreFailure, ValidationError
from shared.logging import set_channel_context

from .adapters.sc2_client import Sc2CommunityClient, UpstreamClient
from .assembly.batch_aggregator import BatchAggregator
from .assembly.profile_assembler import ProfileAssembler
from .caching.cache_gateway import CacheGateway
from .domain.models import ChannelConfigRequest, PlayerProfile, ViewerRequest
from .persistence.postgres import ChannelConfigStore
from .ratelimit.token_bucket import Pacer, TokenBucket
from .viewer.service import ViewerService


class ViewerApp(BaseService):
    """Viewer service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        upstream_client: Optional[UpstreamClient] = None,
        cache: Optional[CacheGateway] = None,
        store: Optional[ChannelConfigStore] = None,
    ):
        super().__init__("viewer", 8080, config)

        self.upstream_client = upstream_client or Sc2CommunityClient(
            self.config.battlenet_client_id,
            self.config.battlenet_client_secret,
            locale=self.config.battlenet_locale,
            timeout=self.config.upstream_timeout_seconds,
        )
        self.cache = cache or CacheGateway(self.config.redis_url or None)
        self.store = store or ChannelConfigStore(
            self.config.postgres_dsn or None,
            self.config.max_player_profile_count,
        )

        self.limiter = TokenBucket(self.config.upstream_rate_per_second, self.config.upstream_burst)
        self.pacer = Pacer(self.config.pacing_base_delay_seconds)
        self.assembler = ProfileAssembler(
            self.upstream_client,
            self.pacer,
            limiter=self.limiter,
            timeout=self.config.upstream_timeout_seconds,
            max_in_flight=self.config.max_in_flight_upstream_calls,
            metrics=self.metrics,
        )
        self.aggregator = BatchAggregator(
            self.assembler,
            self.cache,
            ttl_seconds=self.config.cache_ttl_seconds,
            metrics=self.metrics,
        )
        self.viewer_service = ViewerService(self.cache, self.aggregator, metrics=self.metrics)

        self.app.state.viewer_app = self

        @self.app.on_event("startup")
        async def _startup():
            if self.store.dsn:
                try:
                    await self.store.start()
                except StoreFailure as exc:
                    self.logger.warning("Channel config store unavailable", error=exc.message)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.store.stop()
            await self.cache.close()
            close = getattr(self.upstream_client, "close", None)
            if close is not None:
                await close()

        self._setup_viewer_routes()

    def _setup_viewer_routes(self):
        """Set up viewer and channel config routes."""

        @self.app.get("/")
        async def root():
            return {
                "service": "viewer",
                "message": "Ladder viewer - Viewer Service",
                "version": "1.1.0",
                "capabilities": ["viewer", "caching", "channel_config"]
            }

        @self.app.post("/v1.1/viewer/get")
        async def get_viewer_data(request: ViewerRequest):
            """Viewer data for an explicit list of profiles."""
            set_channel_context(request.channel_id)
            results = await self.viewer_service.get_data(
                request.channel_id,
                request.profiles,
                refresh=request.refresh,
            )
            return {"profiles": [result.to_wire() for result in results]}

        @self.app.get("/v1.1/viewer/{channel_id}")
        async def get_channel_viewer_data(channel_id: str):
            """Viewer data for the profiles saved for a channel."""
            set_channel_context(channel_id)
            config = await self.store.get(channel_id)
            if config["status"] != 200:
                return JSONResponse(status_code=config["status"], content=config)

            try:
                profiles = [PlayerProfile.model_validate(p) for p in config["profiles"]]
            except PydanticValidationError as exc:
                raise ValidationError(
                    "Stored profiles are invalid",
                    details={"channel_id": channel_id, "errors": exc.error_count()},
                ) from exc

            results = await self.viewer_service.get_data(channel_id, profiles)
            return {"profiles": [result.to_wire() for result in results]}

        @self.app.get("/v1.1/config/get/{channel_id}")
        async def get_channel_config(channel_id: str):
            result = await self.store.get(channel_id)
            return JSONResponse(status_code=result["status"], content=result)

        @self.app.post("/v1.1/config/save")
        async def save_channel_config(request: ChannelConfigRequest):
            saved = await self.store.save(request.channel_id, request.profiles)
            if not saved:
                return JSONResponse(status_code=400, content={"status": 400})
            return {"status": 200}

    async def _check_dependencies(self) -> Dict[str, str]:
        dependencies = {}

        if self.cache.available:
            dependencies["redis"] = "ok" if await self.cache.ping() else "error"
        else:
            dependencies["redis"] = "disabled"

        if self.store.pool is not None:
            dependencies["postgres"] = "ok" if await self.store.health_check() else "error"
        else:
            dependencies["postgres"] = "disabled"

        return dependencies


def create_app(config: Optional[ServiceConfig] = None, **dependencies) -> FastAPI:
    """Create viewer service application."""
    return ViewerApp(config, **dependencies).app


if __name__ == "__main__":
    ViewerApp().run()
