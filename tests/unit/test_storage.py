"""Key-value storage backend tests."""

import pytest

import vaultflow.storage as storage
from vaultflow.config import VaultflowConfig
from vaultflow.storage import (
    FileStorage,
    InMemoryStorage,
    SQLiteStorage,
    get_storage,
)


async def _exercise(backend):
    assert await backend.get_item("missing") is None

    await backend.set_item("queue", "[1, 2]")
    assert await backend.get_item("queue") == "[1, 2]"

    await backend.set_item("queue", "[]")
    assert await backend.get_item("queue") == "[]"

    await backend.remove_item("queue")
    await backend.remove_item("queue")
    assert await backend.get_item("queue") is None


@pytest.mark.asyncio
async def test_inmemory_storage():
    await _exercise(InMemoryStorage())


@pytest.mark.asyncio
async def test_sqlite_storage(tmp_path):
    backend = SQLiteStorage(tmp_path / "queue.db")
    await _exercise(backend)

    await backend.set_item("active", "tx-1")
    reopened = SQLiteStorage(tmp_path / "queue.db")
    assert await reopened.get_item("active") == "tx-1"


@pytest.mark.asyncio
async def test_file_storage(tmp_path):
    path = tmp_path / "state" / "queue.json"
    backend = FileStorage(path)
    await _exercise(backend)

    await backend.set_item("active", "tx-1")
    assert await FileStorage(path).get_item("active") == "tx-1"
    assert not path.with_name("queue.json.tmp").exists()


def test_get_storage_defaults_to_inmemory():
    backend = get_storage()
    assert isinstance(backend, InMemoryStorage)
    assert get_storage() is backend


def test_get_storage_selects_backend_from_url(tmp_path):
    assert isinstance(get_storage(f"sqlite://{tmp_path / 'q.db'}"), SQLiteStorage)
    assert isinstance(get_storage(f"file://{tmp_path / 'q.json'}"), FileStorage)
    with pytest.raises(ValueError):
        get_storage("mongodb://localhost")


def test_get_storage_uses_env_and_config(tmp_path, monkeypatch):
    config = VaultflowConfig()
    config.storage.url = f"file://{tmp_path / 'from-config.json'}"
    backend = get_storage(config=config)
    assert isinstance(backend, FileStorage)
    assert backend.path == tmp_path / "from-config.json"

    monkeypatch.setenv("VAULTFLOW_STORAGE_URL", f"sqlite://{tmp_path / 'env.db'}")
    storage._storage_instance = None
    assert isinstance(get_storage(config=config), SQLiteStorage)


def test_redis_storage_from_url():
    """Redis storage can be built without a running server."""
    from vaultflow.storage.redis import RedisStorage

    backend = RedisStorage.from_url("redis://:secret@cache.internal:6380/2")
    assert backend.host == "cache.internal"
    assert backend.port == 6380
    assert backend.db == 2
    assert backend.password == "secret"

    assert isinstance(get_storage("redis://localhost"), RedisStorage)


@pytest.mark.asyncio
async def test_redis_storage_operations(fake_redis):
    from vaultflow.storage.redis import RedisStorage

    backend = RedisStorage.from_url("redis://:secret@cache.internal:6380/2")
    await _exercise(backend)

    await backend.set_item("active", "tx-1")
    assert fake_redis.data == {"active": "tx-1"}
    assert fake_redis.clients[0].kwargs["db"] == 2
    assert fake_redis.clients[0].kwargs["decode_responses"] is True

    await backend.disconnect()
    assert fake_redis.clients[0].closed
    assert await backend.get_item("active") == "tx-1"
    assert len(fake_redis.clients) == 2
