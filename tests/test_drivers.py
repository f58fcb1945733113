"""
Unit tests for the non-SQL storage drivers.

Redis and Beanie are replaced with unittest.mock doubles; the file driver
writes to pytest's tmp_path.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import PyMongoError
from redis.exceptions import ConnectionError as RedisConnectionError

from omnicontext.context.drivers import CacheDriver, FileDriver, InMemoryDriver, MongoDriver, SessionDriver
from omnicontext.exceptions import DriverConfigurationError, StorageReadError

RECORDS = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]


@pytest.mark.unit
@pytest.mark.storage
class TestInMemoryDriver:
    """Tests for the process-local driver."""

    @pytest.mark.asyncio
    async def test_read_missing_returns_none(self, memory_driver, identity):
        assert await memory_driver.read(identity) is None

    @pytest.mark.asyncio
    async def test_write_then_read(self, memory_driver, identity):
        assert await memory_driver.write(identity, RECORDS) is True
        assert await memory_driver.read(identity) == RECORDS
        assert memory_driver.keys() == [identity.get_key()]

    @pytest.mark.asyncio
    async def test_data_is_copied(self, memory_driver, identity):
        records = [{"role": "user", "content": "hi"}]
        await memory_driver.write(identity, records)
        records[0]["content"] = "changed"
        loaded = await memory_driver.read(identity)
        loaded[0]["content"] = "changed again"
        assert (await memory_driver.read(identity))[0]["content"] == "hi"

    @pytest.mark.asyncio
    async def test_shared_store(self, memory_store, identity):
        await InMemoryDriver(memory_store).write(identity, RECORDS)
        assert await InMemoryDriver(memory_store).read(identity) == RECORDS

    @pytest.mark.asyncio
    async def test_remove(self, memory_driver, identity):
        await memory_driver.write(identity, RECORDS)
        assert await memory_driver.remove(identity) is True
        assert await memory_driver.read(identity) is None
        assert await memory_driver.remove(identity) is True


@pytest.mark.unit
@pytest.mark.storage
class TestFileDriver:
    """Tests for JSON file persistence."""

    @pytest.fixture
    def driver(self, tmp_path):
        return FileDriver(tmp_path / "storage")

    @pytest.mark.asyncio
    async def test_write_then_read(self, driver, identity):
        assert await driver.write(identity, RECORDS) is True
        assert driver.path_for(identity).is_file()
        assert await driver.read(identity) == RECORDS

    @pytest.mark.asyncio
    async def test_missing_file_reads_none(self, driver, identity):
        assert await driver.read(identity) is None

    def test_path_is_sanitised(self, driver):
        from omnicontext.context.identity import SessionIdentity

        identity = SessionIdentity(agent_name="Agent/../x", chat_name="a b", user_id="u@1")
        path = driver.path_for(identity)
        assert path.parent == driver.folder
        assert path.name == "Agent____x_a_b_user-u_1.json"

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, driver, identity):
        path = driver.path_for(identity)
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageReadError):
            await driver.read(identity)

    @pytest.mark.asyncio
    async def test_non_list_file_raises(self, driver, identity):
        path = driver.path_for(identity)
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"role": "user"}), encoding="utf-8")
        with pytest.raises(StorageReadError, match="JSON array"):
            await driver.read(identity)

    @pytest.mark.asyncio
    async def test_unserializable_write_returns_false(self, driver, identity):
        assert await driver.write(identity, [{"value": object()}]) is False
        assert not driver.path_for(identity).exists()

    @pytest.mark.asyncio
    async def test_remove(self, driver, identity):
        await driver.write(identity, RECORDS)
        assert await driver.remove(identity) is True
        assert not driver.path_for(identity).exists()
        assert await driver.remove(identity) is True


@pytest.mark.unit
@pytest.mark.storage
class TestSessionDriver:
    """Tests for the session-mapping driver."""

    @pytest.mark.asyncio
    async def test_values_are_json_strings(self, identity):
        session = {}
        driver = SessionDriver(session)
        assert await driver.write(identity, RECORDS) is True
        stored = session[f"omnicontext.{identity.get_key()}"]
        assert isinstance(stored, str)
        assert json.loads(stored) == RECORDS
        assert await driver.read(identity) == RECORDS

    @pytest.mark.asyncio
    async def test_corrupt_entry_raises(self, identity):
        driver = SessionDriver({f"omnicontext.{identity.get_key()}": "{oops"})
        with pytest.raises(StorageReadError):
            await driver.read(identity)

    @pytest.mark.asyncio
    async def test_non_list_entry_raises(self, identity):
        driver = SessionDriver({f"omnicontext.{identity.get_key()}": {"role": "user"}})
        with pytest.raises(StorageReadError):
            await driver.read(identity)

    @pytest.mark.asyncio
    async def test_bind_switches_session(self, identity):
        driver = SessionDriver({})
        await driver.write(identity, RECORDS)
        assert await driver.bind({}).read(identity) is None

    @pytest.mark.asyncio
    async def test_remove(self, identity):
        session = {}
        driver = SessionDriver(session)
        await driver.write(identity, RECORDS)
        assert await driver.remove(identity) is True
        assert session == {}


@pytest.mark.unit
@pytest.mark.storage
class TestCacheDriver:
    """Tests for the Redis driver against a mocked client."""

    @pytest.fixture
    def redis_client(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=None)
        client.set = AsyncMock(return_value=True)
        client.delete = AsyncMock(return_value=1)
        client.aclose = AsyncMock()
        return client

    def test_requires_client_or_url(self):
        with pytest.raises(DriverConfigurationError):
            CacheDriver()

    def test_builds_client_from_url(self):
        with patch("omnicontext.context.drivers.cache.Redis") as redis_cls:
            driver = CacheDriver(url="redis://cache:6379/1")
        redis_cls.from_url.assert_called_once_with("redis://cache:6379/1", decode_responses=True)
        assert driver.client is redis_cls.from_url.return_value

    @pytest.mark.asyncio
    async def test_write_uses_prefix_and_ttl(self, redis_client, identity):
        driver = CacheDriver(redis_client, ttl=60, prefix="ctx:")
        assert await driver.write(identity, RECORDS) is True
        redis_client.set.assert_awaited_once_with(
            f"ctx:{identity.get_key()}",
            json.dumps(RECORDS),
            ex=60,
        )

    @pytest.mark.asyncio
    async def test_read_hit(self, redis_client, identity):
        redis_client.get.return_value = json.dumps(RECORDS)
        assert await CacheDriver(redis_client).read(identity) == RECORDS
        redis_client.get.assert_awaited_once_with(f"omnicontext:{identity.get_key()}")

    @pytest.mark.asyncio
    async def test_read_bytes(self, redis_client, identity):
        redis_client.get.return_value = json.dumps(RECORDS).encode("utf-8")
        assert await CacheDriver(redis_client).read(identity) == RECORDS

    @pytest.mark.asyncio
    async def test_read_miss(self, redis_client, identity):
        assert await CacheDriver(redis_client).read(identity) is None

    @pytest.mark.asyncio
    async def test_unreachable_cache_reads_as_miss(self, redis_client, identity):
        redis_client.get.side_effect = RedisConnectionError("down")
        assert await CacheDriver(redis_client).read(identity) is None

    @pytest.mark.asyncio
    async def test_corrupt_entry_raises(self, redis_client, identity):
        redis_client.get.return_value = "{oops"
        with pytest.raises(StorageReadError, match="Corrupt cache entry"):
            await CacheDriver(redis_client).read(identity)

    @pytest.mark.asyncio
    async def test_non_list_entry_raises(self, redis_client, identity):
        redis_client.get.return_value = json.dumps({"role": "user"})
        with pytest.raises(StorageReadError):
            await CacheDriver(redis_client).read(identity)

    @pytest.mark.asyncio
    async def test_write_failure_returns_false(self, redis_client, identity):
        redis_client.set.side_effect = RedisConnectionError("down")
        assert await CacheDriver(redis_client).write(identity, RECORDS) is False

    @pytest.mark.asyncio
    async def test_remove(self, redis_client, identity):
        assert await CacheDriver(redis_client).remove(identity) is True
        redis_client.delete.assert_awaited_once_with(f"omnicontext:{identity.get_key()}")

    @pytest.mark.asyncio
    async def test_close(self, redis_client):
        await CacheDriver(redis_client).close()
        redis_client.aclose.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.storage
class TestMongoDriver:
    """Tests for the Beanie driver against a mocked document model."""

    @pytest.fixture
    def document_model(self):
        model = MagicMock()
        model.__name__ = "StoredContext"
        model.find_one = AsyncMock(return_value=None)
        model.return_value.insert = AsyncMock()
        model.find.return_value.delete = AsyncMock()
        return model

    @pytest.mark.asyncio
    async def test_read_missing(self, document_model, identity):
        assert await MongoDriver(document_model).read(identity) is None

    @pytest.mark.asyncio
    async def test_read_document(self, document_model, identity):
        document_model.find_one.return_value = MagicMock(data=RECORDS)
        assert await MongoDriver(document_model).read(identity) == RECORDS

    @pytest.mark.asyncio
    async def test_read_error_raises(self, document_model, identity):
        document_model.find_one.side_effect = PyMongoError("down")
        with pytest.raises(StorageReadError):
            await MongoDriver(document_model).read(identity)

    @pytest.mark.asyncio
    async def test_write_inserts_new_document(self, document_model, identity):
        assert await MongoDriver(document_model).write(identity, RECORDS) is True
        document_model.assert_called_once_with(key=identity.get_key(), data=RECORDS)
        document_model.return_value.insert.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_updates_existing_document(self, document_model, identity):
        existing = MagicMock()
        existing.save = AsyncMock()
        document_model.find_one.return_value = existing
        assert await MongoDriver(document_model).write(identity, RECORDS) is True
        assert existing.data == RECORDS
        existing.touch.assert_called_once()
        existing.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_failure_returns_false(self, document_model, identity):
        document_model.find_one.side_effect = PyMongoError("down")
        assert await MongoDriver(document_model).write(identity, RECORDS) is False

    @pytest.mark.asyncio
    async def test_remove(self, document_model, identity):
        assert await MongoDriver(document_model).remove(identity) is True
        document_model.find.return_value.delete.assert_awaited_once()
