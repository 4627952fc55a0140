"""
Storage Factory

Factory for creating the storage implementation named by configuration.
The application layer asks for an OnetimeStorage without knowing which
concrete backend it receives. Exactly one backend is built per process.
"""

import logging

from onetime.config.settings import OnetimeConfig, StorageProvider
from onetime.domain.errors import DomainError
from onetime.domain.storage import OnetimeStorage
from onetime.infrastructure.invalid_storage import InvalidStorage

logger = logging.getLogger(__name__)


class StorageFactory:
    """
    Factory for creating storage implementations.

    Selection Logic:
    - ONETIME_PROVIDER=redis selects RedisStorage
    - ONETIME_PROVIDER=postgres selects SqlStorage and creates its tables
    - anything else, or a postgres backend that fails to initialize,
      yields InvalidStorage carrying the reason
    """

    @staticmethod
    def create_storage(config: OnetimeConfig) -> OnetimeStorage:
        """
        Create storage based on configuration.

        Args:
            config: Application configuration

        Returns:
            OnetimeStorage implementation
        """
        try:
            provider = StorageProvider(config.provider)
        except ValueError:
            error = f"Invalid or no storage provider given! '{config.provider}'"
            logger.error(error)
            return InvalidStorage(error)

        if provider is StorageProvider.REDIS:
            storage = StorageFactory._create_redis_storage(config)
        else:
            storage = StorageFactory._create_sql_storage(config)

        logger.info(f"Storage factory: created storage '{storage.name}'")
        return storage

    @staticmethod
    def _create_redis_storage(config: OnetimeConfig) -> OnetimeStorage:
        """
        Create Redis storage.

        The pool connects lazily, so an unreachable server surfaces as
        StorageUnavailableError on the first operation.
        """
        from onetime.infrastructure.redis_connection import RedisConnectionManager
        from onetime.infrastructure.redis_storage import RedisStorage

        try:
            manager = RedisConnectionManager(config.redis)
        except ValueError as e:
            error = f"Invalid redis storage provider! {e}"
            logger.error(error)
            return InvalidStorage(error)

        return RedisStorage(
            manager.client,
            files_table=config.redis.files_table,
            links_table=config.redis.links_table,
        )

    @staticmethod
    def _create_sql_storage(config: OnetimeConfig) -> OnetimeStorage:
        """Create SQL storage and make sure its tables exist."""
        from sqlalchemy.exc import ArgumentError

        from onetime.infrastructure.sql_storage import SqlStorage

        try:
            storage = SqlStorage.from_settings(config.postgres)
            storage.init_tables()
            return storage
        except (DomainError, ArgumentError) as e:
            error = f"Invalid postgres storage provider! {e}"
            logger.error(error)
            return InvalidStorage(error)
