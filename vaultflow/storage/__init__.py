"""Durable key-value storage backends for the transaction queue."""

from __future__ import annotations

import os
from typing import Optional

from ..config import VaultflowConfig, load_config
from .base import KeyValueStorage
from .file import FileStorage
from .inmemory import InMemoryStorage
from .sqlite import SQLiteStorage

_storage_instance: KeyValueStorage | None = None


def get_storage(
    storage_url: Optional[str] = None, config: Optional[VaultflowConfig] = None
) -> KeyValueStorage:
    """Factory function to obtain a key-value storage backend.

    The backend is selected from ``storage_url``, which can be provided
    explicitly, via environment variable ``VAULTFLOW_STORAGE_URL``, or from
    loaded configuration. Supported schemes are ``sqlite://``, ``file://``
    and ``redis://``. When nothing is configured an in-memory storage is
    returned.
    """

    global _storage_instance
    if _storage_instance is not None and storage_url is None and config is None:
        return _storage_instance

    config = config or load_config()
    storage_url = (
        storage_url
        or os.getenv("VAULTFLOW_STORAGE_URL")
        or config.storage.url
    )

    if not storage_url:
        _storage_instance = InMemoryStorage()
        return _storage_instance

    if storage_url.startswith("sqlite://"):
        path = storage_url.replace("sqlite://", "", 1)
        _storage_instance = SQLiteStorage(path)
    elif storage_url.startswith("file://"):
        path = storage_url.replace("file://", "", 1)
        _storage_instance = FileStorage(path)
    elif storage_url.startswith("redis://"):
        from .redis import RedisStorage

        _storage_instance = RedisStorage.from_url(storage_url)
    else:
        raise ValueError(f"Unsupported storage backend: {storage_url}")

    return _storage_instance


__all__ = [
    "KeyValueStorage",
    "InMemoryStorage",
    "SQLiteStorage",
    "FileStorage",
    "get_storage",
]
