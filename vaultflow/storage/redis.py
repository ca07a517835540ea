"""Redis key-value storage for queues shared across processes."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlparse

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from .base import KeyValueStorage


class RedisStorage(KeyValueStorage):
    """Store each key as a plain Redis string.

    The client is created on first use, so constructing the storage never
    touches the network.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
    ) -> None:
        if redis is None:
            raise ImportError("redis package is required for RedisStorage")

        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self._client: Optional[Any] = None

    @classmethod
    def from_url(cls, url: str) -> "RedisStorage":
        """Build from ``redis://[:password@]host[:port][/db]``."""
        parsed = urlparse(url)
        db_path = parsed.path.lstrip("/")
        return cls(
            host=parsed.hostname or "localhost",
            port=parsed.port or 6379,
            db=int(db_path) if db_path else 0,
            password=parsed.password,
        )

    async def connect(self) -> None:
        """Open the client and check the server answers."""
        client = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await client.ping()
        self._client = client

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _redis(self) -> Any:
        if self._client is None:
            await self.connect()
        return self._client

    async def get_item(self, key: str) -> Optional[str]:
        client = await self._redis()
        return await client.get(key)

    async def set_item(self, key: str, value: str) -> None:
        client = await self._redis()
        await client.set(key, value)

    async def remove_item(self, key: str) -> None:
        client = await self._redis()
        await client.delete(key)
