"""Infrastructure layer: storage backends and their wiring."""

from .invalid_storage import InvalidStorage
from .redis_connection import RedisConnectionManager
from .redis_storage import RedisStorage
from .sql_storage import SqlStorage
from .storage_factory import StorageFactory

__all__ = [
    "InvalidStorage",
    "RedisConnectionManager",
    "RedisStorage",
    "SqlStorage",
    "StorageFactory",
]
