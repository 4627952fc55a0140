"""Configuration and logging setup."""

from .logging_config import SensitiveDataFilter, setup_logging
from .settings import OnetimeConfig, PostgresSettings, RedisSettings, StorageProvider

__all__ = [
    "OnetimeConfig",
    "PostgresSettings",
    "RedisSettings",
    "StorageProvider",
    "SensitiveDataFilter",
    "setup_logging",
]
