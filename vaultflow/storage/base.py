"""Key-value storage abstraction used to persist the transaction queue."""

from __future__ import annotations

from typing import Optional, Protocol


class KeyValueStorage(Protocol):
    """Protocol for durable string key-value backends."""

    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored value or ``None`` when the key is absent."""

    async def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    async def remove_item(self, key: str) -> None:
        """Delete ``key``. Missing keys are ignored."""
