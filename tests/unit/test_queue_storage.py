"""Queue serialization tests."""

from datetime import datetime, timedelta, timezone

import pytest

from vaultflow.constants import ACTIVE_TRANSACTION_KEY, TRANSACTION_QUEUE_KEY
from vaultflow.queue import QueueStorage, QueueTransaction, TransactionStatus
from vaultflow.storage import InMemoryStorage


class BrokenStorage:
    async def get_item(self, key):
        raise OSError("disk unavailable")

    async def set_item(self, key, value):
        raise OSError("disk full")

    async def remove_item(self, key):
        raise OSError("disk unavailable")


def _transaction(**overrides):
    fields = dict(
        title="Deposit",
        chain_id=1,
        contract_address="0xvault",
        function_name="deposit",
        abi=[{"type": "function", "name": "deposit"}],
        args=[2**256 - 1, "0xreceiver"],
        value=10**18,
    )
    fields.update(overrides)
    return QueueTransaction(**fields)


@pytest.mark.asyncio
async def test_round_trip_preserves_dates_and_big_integers():
    kv = InMemoryStorage()
    store = QueueStorage(kv)
    created = datetime(2024, 5, 1, 12, 30, 15, 123000, tzinfo=timezone.utc)
    original = [
        _transaction(created_at=created, updated_at=created + timedelta(seconds=5)),
        _transaction(status=TransactionStatus.FAILED, error="reverted"),
    ]

    await store.save_transactions(original)
    loaded = await store.load_transactions()

    assert loaded == original
    assert isinstance(loaded[0].created_at, datetime)
    assert loaded[0].created_at == created
    assert loaded[0].updated_at - loaded[0].created_at == timedelta(seconds=5)
    assert loaded[0].args[0] == 2**256 - 1
    assert loaded[1].status == TransactionStatus.FAILED

    raw = await kv.get_item(TRANSACTION_QUEUE_KEY)
    assert '"created_at":"2024-05-01T12:30:15.123000Z"' in raw.replace(" ", "")


@pytest.mark.asyncio
async def test_missing_or_corrupt_data_yields_empty_queue():
    kv = InMemoryStorage()
    store = QueueStorage(kv)
    assert await store.load_transactions() == []

    await kv.set_item(TRANSACTION_QUEUE_KEY, "{not json")
    assert await store.load_transactions() == []

    await kv.set_item(TRANSACTION_QUEUE_KEY, '{"id": "x"}')
    assert await store.load_transactions() == []

    await kv.set_item(TRANSACTION_QUEUE_KEY, '[{"id": "x"}]')
    assert await store.load_transactions() == []


@pytest.mark.asyncio
async def test_active_transaction_id_set_and_removed():
    kv = InMemoryStorage()
    store = QueueStorage(kv)

    await store.save_active_transaction_id("tx-1")
    assert await store.load_active_transaction_id() == "tx-1"

    await store.save_active_transaction_id(None)
    assert await kv.get_item(ACTIVE_TRANSACTION_KEY) is None

    await store.save_transactions([_transaction()])
    await store.save_active_transaction_id("tx-2")
    await store.clear_all()
    assert await kv.get_item(TRANSACTION_QUEUE_KEY) is None
    assert await kv.get_item(ACTIVE_TRANSACTION_KEY) is None


@pytest.mark.asyncio
async def test_storage_failures_are_logged_not_raised(caplog):
    store = QueueStorage(BrokenStorage())

    await store.save_transactions([_transaction()])
    await store.save_active_transaction_id("tx-1")
    await store.clear_all()
    assert await store.load_transactions() == []
    assert await store.load_active_transaction_id() is None

    assert "Failed to save transaction queue: disk full" in caplog.text
