import os

import pytest
import redis
from sqlalchemy import create_engine

from onetime.infrastructure.redis_storage import RedisStorage
from onetime.infrastructure.sql_storage import SqlStorage


@pytest.fixture
def redis_client():
    """
    Yields a clean Redis client for integration testing.
    Connects to the redis service named by REDIS_HOST/REDIS_PORT.
    """
    host = os.getenv("REDIS_HOST", "localhost")
    port = int(os.getenv("REDIS_PORT", 6379))
    db = int(os.getenv("REDIS_TEST_DB", 15))

    client = redis.Redis(host=host, port=port, db=db, decode_responses=False)

    try:
        client.ping()
    except redis.ConnectionError:
        pytest.skip("Redis service not available. Skipping integration tests.")

    # Clean before test
    client.flushdb()

    yield client

    # Clean after test
    client.flushdb()
    client.close()


@pytest.fixture
def redis_storage(redis_client):
    return RedisStorage(redis_client, files_table="Test.Files", links_table="Test.Links")


@pytest.fixture
def sql_engine(tmp_path):
    """
    SQLite file database shared by threads.

    A file (not :memory:) so every pooled connection sees the same data;
    the busy timeout lets concurrent writers queue instead of failing.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'onetime.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def sql_storage(sql_engine):
    storage = SqlStorage(sql_engine, schema=None)
    storage.init_tables()
    return storage
