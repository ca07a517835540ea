import asyncio
from types import SimpleNamespace
from typing import Any, Callable, List, Optional

import pytest

import vaultflow.storage as storage
from vaultflow.queue import ContractCall, TransactionDescriptor, TransactionType
from vaultflow.storage import InMemoryStorage


class RecordingWriter:
    """Contract writer double that records every call it receives."""

    def __init__(
        self,
        fail_on: Optional[dict[str, str]] = None,
        on_write: Optional[Callable[[ContractCall], Any]] = None,
    ) -> None:
        self.fail_on = fail_on or {}
        self.on_write = on_write
        self.simulated: List[ContractCall] = []
        self.written: List[ContractCall] = []

    async def simulate_contract(self, call: ContractCall) -> Any:
        self.simulated.append(call)
        await asyncio.sleep(0)
        if call.function_name in self.fail_on:
            raise RuntimeError(self.fail_on[call.function_name])
        return {"gas": call.gas_limit // 2}

    async def write_contract(self, call: ContractCall) -> str:
        if self.on_write is not None:
            self.on_write(call)
        await asyncio.sleep(0)
        self.written.append(call)
        return f"0x{len(self.written):064x}"


def make_descriptor(title: str = "Deposit 100 USDC", **overrides: Any) -> TransactionDescriptor:
    fields = dict(
        title=title,
        subtitle="Alpha USDC Core",
        chain_id=1,
        type=TransactionType.DEPOSIT,
        contract_address="0xb0f05E4De970A1aaf77f8C2F823953a367504BA9",
        function_name="deposit",
        abi=[{"type": "function", "name": "deposit", "inputs": [], "outputs": []}],
        args=[100_000_000, "0x0000000000000000000000000000000000000001"],
    )
    fields.update(overrides)
    return TransactionDescriptor(**fields)


@pytest.fixture
def kv_storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def writer_factory():
    return RecordingWriter


@pytest.fixture
def descriptor_factory():
    return make_descriptor


@pytest.fixture(autouse=True)
def _reset_storage_factory(monkeypatch):
    monkeypatch.delenv("VAULTFLOW_STORAGE_URL", raising=False)
    monkeypatch.setenv("VAULTFLOW_CONFIG", "/nonexistent/vaultflow.yaml")
    storage._storage_instance = None
    yield
    storage._storage_instance = None


class FakeRedis:
    """In-process stand-in for ``redis.asyncio.Redis``.

    Like the real client, an instance only works inside the event loop that
    first used it.
    """

    def __init__(self, data: dict[str, str], **kwargs: Any) -> None:
        self.data = data
        self.kwargs = kwargs
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.closed = False

    def _check_loop(self) -> None:
        loop = asyncio.get_running_loop()
        if self.loop is None:
            self.loop = loop
        elif self.loop is not loop or self.closed:
            raise RuntimeError("Event loop is closed")

    async def ping(self) -> bool:
        self._check_loop()
        return True

    async def get(self, key: str) -> Optional[str]:
        self._check_loop()
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._check_loop()
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self._check_loop()
        self.data.pop(key, None)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis(monkeypatch):
    """Route ``RedisStorage`` to ``FakeRedis``; returns the shared key space."""
    import vaultflow.storage.redis as redis_storage

    data: dict[str, str] = {}
    clients: List[FakeRedis] = []

    def factory(**kwargs: Any) -> FakeRedis:
        client = FakeRedis(data, **kwargs)
        clients.append(client)
        return client

    monkeypatch.setattr(redis_storage, "redis", SimpleNamespace(Redis=factory))
    return SimpleNamespace(data=data, clients=clients)
