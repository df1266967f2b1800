"""
Matching Registry Service for the Walk Check-in service.

Teams submitted for matching are kept in the Redis set ``teams``. A
submitted team is held to the minimum team size when members leave.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import get_settings
from app.core.exceptions import StoreError

logger = logging.getLogger(__name__)

SUBMITTED_TEAMS_KEY = "teams"

# Redis connection pool
_redis_pool: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Get or create Redis connection pool."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.from_url(get_settings().redis_url, decode_responses=True)
    return _redis_pool


class MatchingRegistry:
    """Membership of teams in the matching pool."""

    def __init__(self, redis_client: redis.Redis | None = None):
        self._redis = redis_client

    async def _get_redis(self) -> redis.Redis:
        """Get Redis client, initializing if necessary."""
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def is_submitted(self, team_id: int) -> bool:
        """
        Whether the team sits in the matching pool.

        Raises:
            StoreError: Redis is unreachable or failed the command
        """
        r = await self._get_redis()
        try:
            return bool(await r.sismember(SUBMITTED_TEAMS_KEY, str(team_id)))
        except RedisError as e:
            logger.error(f"Matching registry lookup failed for team {team_id}: {e}")
            raise StoreError("Matching registry unavailable") from e

    async def submit(self, team_id: int) -> None:
        r = await self._get_redis()
        try:
            await r.sadd(SUBMITTED_TEAMS_KEY, str(team_id))
        except RedisError as e:
            logger.error(f"Failed to submit team {team_id} for matching: {e}")
            raise StoreError("Matching registry unavailable") from e
        logger.info(f"Team {team_id} submitted for matching")

    async def withdraw(self, team_id: int) -> None:
        r = await self._get_redis()
        try:
            await r.srem(SUBMITTED_TEAMS_KEY, str(team_id))
        except RedisError as e:
            logger.error(f"Failed to withdraw team {team_id} from matching: {e}")
            raise StoreError("Matching registry unavailable") from e
        logger.info(f"Team {team_id} withdrawn from matching")
