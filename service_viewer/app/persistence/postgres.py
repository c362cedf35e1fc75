"""
PostgreSQL persistence of channel profile lists.
"""

import json
from typing import Any, Dict, Optional, Sequence

import asyncpg

from shared.errors import StoreFailure
from shared.logging import get_logger

from ..domain.models import PlayerProfile


class ChannelConfigStore:
    """Stores the list of profiles each channel shows."""

    def __init__(self, dsn: Optional[str], max_profile_count: int = 5, *, pool: Optional[asyncpg.Pool] = None):
        self.dsn = dsn
        self.max_profile_count = max_profile_count
        self.logger = get_logger("viewer.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = pool

    async def start(self):
        """Open the pool and create tables."""
        if not self.dsn:
            raise StoreFailure("PostgreSQL DSN not configured")

        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=1,
                max_size=5,
                command_timeout=30
            )
            await self._create_tables()
            self.logger.info("PostgreSQL persistence started")

        except Exception as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise StoreFailure(str(e)) from e

    async def stop(self):
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS channel_configs (
                    channel_id VARCHAR(255) PRIMARY KEY,
                    profiles JSONB NOT NULL DEFAULT '[]',
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)

    def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise StoreFailure("PostgreSQL persistence not started")
        return self.pool

    async def save(self, channel_id: str, profiles: Sequence[PlayerProfile]) -> bool:
        """Upsert the channel's profiles, keeping at most max_profile_count."""
        kept = [profile.to_wire() for profile in list(profiles)[:self.max_profile_count]]

        try:
            pool = self._require_pool()
            async with pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO channel_configs (channel_id, profiles, updated_at)
                    VALUES ($1, $2::jsonb, NOW())
                    ON CONFLICT (channel_id) DO UPDATE SET
                        profiles = EXCLUDED.profiles,
                        updated_at = EXCLUDED.updated_at
                """, str(channel_id), json.dumps(kept))

        except Exception as e:
            self.logger.error("Error saving channel config", channel_id=channel_id, error=str(e))
            return False

        self.logger.info("Channel config saved", channel_id=channel_id, profiles=len(kept))
        return True

    async def get(self, channel_id: str) -> Dict[str, Any]:
        """Load the channel's profiles as a status-tagged result."""
        try:
            pool = self._require_pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow("""
                    SELECT channel_id, profiles FROM channel_configs WHERE channel_id = $1
                """, str(channel_id))

            if not row:
                return {
                    "status": 404,
                    "message": "No config found",
                }

            profiles = row["profiles"]
            if isinstance(profiles, str):
                profiles = json.loads(profiles)

            return {
                "status": 200,
                "channelId": row["channel_id"],
                "profiles": profiles,
            }

        except Exception as e:
            self.logger.error("Error loading channel config", channel_id=channel_id, error=str(e))
            return {
                "status": 400,
            }

    async def health_check(self) -> bool:
        try:
            pool = self._require_pool()
            async with pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception:
            return False
