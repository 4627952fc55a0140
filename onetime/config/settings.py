"""
Onetime Configuration

Reads every setting from the environment exactly once. The resulting
OnetimeConfig is passed explicitly to the components that need it;
nothing re-reads the environment after startup.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


class StorageProvider(Enum):
    """Storage backends selectable through ONETIME_PROVIDER."""

    REDIS = "redis"
    POSTGRES = "postgres"


def _env_str(environ: Mapping[str, str], name: str, default: str) -> str:
    return environ.get(name, default)


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using default {default}")
        return default


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class RedisSettings:
    """Redis connection settings."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    url: Optional[str] = None
    max_connections: int = 20
    pool_timeout: int = 5
    files_table: str = "Onetime.Files"
    links_table: str = "Onetime.Links"

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "RedisSettings":
        return cls(
            host=_env_str(environ, "REDIS_HOST", cls.host),
            port=_env_int(environ, "REDIS_PORT", cls.port),
            db=_env_int(environ, "REDIS_DB", cls.db),
            password=environ.get("REDIS_PASSWORD") or None,
            url=environ.get("REDIS_URL") or None,
            max_connections=_env_int(environ, "REDIS_MAX_CONNECTIONS", cls.max_connections),
            pool_timeout=_env_int(environ, "REDIS_POOL_TIMEOUT", cls.pool_timeout),
            files_table=_env_str(environ, "REDIS_FILES_TABLE", cls.files_table),
            links_table=_env_str(environ, "REDIS_LINKS_TABLE", cls.links_table),
        )


@dataclass(frozen=True)
class PostgresSettings:
    """
    PostgreSQL connection settings.

    DATABASE_URL, when set, takes precedence over the individual PG_*
    connection variables.
    """

    host: str = "postgres"
    port: int = 5432
    user: str = "postgres"
    password: str = ""
    dbname: str = "postgres"
    database_url: Optional[str] = None
    schema: Optional[str] = "onetime"
    files_table: str = "files"
    links_table: str = "links"
    pool_size: int = 10
    pool_timeout: int = 30

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "PostgresSettings":
        return cls(
            host=_env_str(environ, "PG_HOST", cls.host),
            port=_env_int(environ, "PG_PORT", cls.port),
            user=_env_str(environ, "PG_USER", cls.user),
            password=_env_str(environ, "PG_PASS", cls.password),
            dbname=_env_str(environ, "PG_DBNAME", cls.dbname),
            database_url=environ.get("DATABASE_URL") or None,
            schema=_env_str(environ, "PG_SCHEMA", cls.schema) or None,
            files_table=_env_str(environ, "PG_FILES_TABLE", cls.files_table),
            links_table=_env_str(environ, "PG_LINKS_TABLE", cls.links_table),
            pool_size=_env_int(environ, "PG_POOL_SIZE", cls.pool_size),
            pool_timeout=_env_int(environ, "PG_POOL_TIMEOUT", cls.pool_timeout),
        )

    def sqlalchemy_url(self):
        """Build the SQLAlchemy URL for the psycopg2 driver."""
        from sqlalchemy.engine import URL, make_url

        if self.database_url:
            return make_url(self.database_url)
        return URL.create(
            "postgresql+psycopg2",
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.dbname,
        )


@dataclass(frozen=True)
class OnetimeConfig:
    """Application configuration."""

    provider: str = ""
    files_api_key: str = ""
    links_api_key: str = ""
    max_len_file: int = 100000
    max_len_value: int = 80
    trust_forwarded_for: bool = False
    log_level: str = "INFO"
    redis: RedisSettings = field(default_factory=RedisSettings)
    postgres: PostgresSettings = field(default_factory=PostgresSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OnetimeConfig":
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            Frozen OnetimeConfig
        """
        if environ is None:
            environ = os.environ

        return cls(
            provider=_env_str(environ, "ONETIME_PROVIDER", "").strip().lower(),
            files_api_key=_env_str(environ, "FILES_API_KEY", ""),
            links_api_key=_env_str(environ, "LINKS_API_KEY", ""),
            max_len_file=_env_int(environ, "FILE_MAX_LEN", cls.max_len_file),
            max_len_value=_env_int(environ, "VALUE_MAX_LEN", cls.max_len_value),
            trust_forwarded_for=_env_bool(environ, "TRUST_FORWARDED_FOR", False),
            log_level=_env_str(environ, "LOG_LEVEL", "INFO").upper(),
            redis=RedisSettings.from_env(environ),
            postgres=PostgresSettings.from_env(environ),
        )

    def describe(self) -> dict:
        """Loggable summary without credentials."""
        return {
            "provider": self.provider,
            "files_api_key_set": bool(self.files_api_key),
            "links_api_key_set": bool(self.links_api_key),
            "max_len_file": self.max_len_file,
            "max_len_value": self.max_len_value,
            "trust_forwarded_for": self.trust_forwarded_for,
        }
