"""
Redis Connection Management

Builds a bounded, blocking connection pool for the Redis storage adapter.
"""

import logging
from typing import Optional

import redis
from redis.backoff import NoBackoff
from redis.retry import Retry

from onetime.config.settings import RedisSettings

logger = logging.getLogger(__name__)


class RedisConnectionManager:
    """
    Manages a Redis client backed by a BlockingConnectionPool.

    When every connection is checked out, callers wait up to
    pool_timeout seconds for one to be released instead of opening
    more connections.
    """

    def __init__(self, settings: RedisSettings):
        pool_kwargs = {
            "max_connections": settings.max_connections,
            "timeout": settings.pool_timeout,
            # Contents are stored as raw bytes
            "decode_responses": False,
            # Every command is sent once; failures surface to the caller
            "retry": Retry(NoBackoff(), 0),
            "socket_keepalive": True,
        }

        if settings.url:
            self.connection_pool = redis.BlockingConnectionPool.from_url(
                settings.url, **pool_kwargs
            )
        else:
            self.connection_pool = redis.BlockingConnectionPool(
                host=settings.host,
                port=settings.port,
                db=settings.db,
                password=settings.password,
                **pool_kwargs,
            )
        logger.info(
            f"Redis pool configured: max_connections={settings.max_connections}, "
            f"timeout={settings.pool_timeout}s"
        )
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client
