"""
Redis client backing the live-sync order mirror.
"""
from typing import Optional
import logging
from redis.asyncio import Redis, ConnectionPool
from redis.exceptions import RedisError
from ezyeats.config import settings
from ezyeats.core.exceptions import LiveSyncError

logger = logging.getLogger(__name__)


class RedisClient:
    """Async Redis client wrapper"""

    def __init__(self, url: Optional[str] = None):
        self._url = url or settings.REDIS_URL
        self._redis: Optional[Redis] = None
        self._pool: Optional[ConnectionPool] = None

    async def connect(self):
        """Initialize Redis connection pool"""
        try:
            self._pool = ConnectionPool.from_url(
                self._url,
                decode_responses=True,
                max_connections=20
            )
            self._redis = Redis(connection_pool=self._pool)

            # Test connection
            await self._redis.ping()
            logger.info("Redis connected successfully")
        except (RedisError, OSError) as e:
            logger.error(f"Redis connection failed: {e}")
            logger.warning("Running without Redis - live order updates fall back to the database")
            self._redis = None

    async def disconnect(self):
        """Close Redis connection"""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis disconnected")

    @property
    def is_connected(self) -> bool:
        """Check if Redis is available"""
        return self._redis is not None

    @property
    def client(self) -> Redis:
        """Connected client, or LiveSyncError when running without Redis"""
        if self._redis is None:
            raise LiveSyncError("Live-sync store is not connected")
        return self._redis

    async def ping(self) -> bool:
        if not self._redis:
            return False
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False


# Singleton instance
redis_client = RedisClient()


# Convenience functions
async def init_redis():
    """Initialize Redis connection on startup"""
    await redis_client.connect()


async def close_redis():
    """Close Redis connection on shutdown"""
    await redis_client.disconnect()
