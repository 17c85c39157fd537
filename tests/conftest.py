from collections.abc import AsyncIterator
from pathlib import Path

import fakeredis
import pytest
import pytest_asyncio

from history_toolkit.conversation_database.key_value.provider import RedisProvider
from history_toolkit.conversation_database.provider import StoreProvider
from history_toolkit.conversation_database.relational.provider import SQLProvider
from history_toolkit.utils.logging import StoreLogger


@pytest.fixture
def sqlite_dsn(tmp_path: Path) -> str:
    """A file-backed database; in-memory SQLite is not shared between pooled connections."""
    return f"sqlite:///{tmp_path / 'history.db'}"


@pytest.fixture
def redis_client() -> fakeredis.FakeAsyncRedis:
    return fakeredis.FakeAsyncRedis(decode_responses=True)


@pytest_asyncio.fixture
async def sql_provider(sqlite_dsn: str) -> AsyncIterator[SQLProvider]:
    provider = await SQLProvider.create(sqlite_dsn)
    yield provider
    await provider.close()


@pytest_asyncio.fixture
async def redis_provider(redis_client: fakeredis.FakeAsyncRedis) -> AsyncIterator[RedisProvider]:
    provider = RedisProvider(redis_client, StoreLogger("Redis"))
    yield provider
    await provider.close()


@pytest.fixture(params=["relational", "key_value"])
def provider(request: pytest.FixtureRequest) -> StoreProvider:
    """Run the contract tests once per backend."""
    fixture_name = "sql_provider" if request.param == "relational" else "redis_provider"
    return request.getfixturevalue(fixture_name)
