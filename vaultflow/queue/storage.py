"""Serialization of the transaction queue onto a key-value storage."""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..constants import ACTIVE_TRANSACTION_KEY, TRANSACTION_QUEUE_KEY
from ..errors import QueuePersistenceError
from ..storage import KeyValueStorage
from .models import QueueTransaction

logger = logging.getLogger(__name__)


class QueueStorage:
    """Reads and writes queue state under two fixed keys.

    Transactions are stored as a JSON array with ISO 8601 timestamps. Integer
    call arguments are written as JSON numbers, which keeps uint256 values
    exact. Storage failures are logged and swallowed: a failed load yields an
    empty queue and a failed save leaves the in-memory queue authoritative.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    @staticmethod
    def dumps(transactions: List[QueueTransaction]) -> str:
        return json.dumps([tx.model_dump(mode="json") for tx in transactions])

    @staticmethod
    def loads(data: str) -> List[QueueTransaction]:
        raw = json.loads(data)
        if not isinstance(raw, list):
            raise QueuePersistenceError(
                "Stored transaction queue is not a list", TRANSACTION_QUEUE_KEY
            )
        return [QueueTransaction.model_validate(item) for item in raw]

    async def save_transactions(self, transactions: List[QueueTransaction]) -> None:
        try:
            await self._storage.set_item(TRANSACTION_QUEUE_KEY, self.dumps(transactions))
        except Exception as exc:
            self._log_failure("save transaction queue", exc, TRANSACTION_QUEUE_KEY)

    async def load_transactions(self) -> List[QueueTransaction]:
        try:
            data = await self._storage.get_item(TRANSACTION_QUEUE_KEY)
            if not data:
                return []
            return self.loads(data)
        except (ValueError, ValidationError, QueuePersistenceError) as exc:
            self._log_failure("decode transaction queue", exc, TRANSACTION_QUEUE_KEY)
        except Exception as exc:
            self._log_failure("load transaction queue", exc, TRANSACTION_QUEUE_KEY)
        return []

    async def save_active_transaction_id(self, transaction_id: Optional[str]) -> None:
        try:
            if transaction_id:
                await self._storage.set_item(ACTIVE_TRANSACTION_KEY, transaction_id)
            else:
                await self._storage.remove_item(ACTIVE_TRANSACTION_KEY)
        except Exception as exc:
            self._log_failure("save active transaction id", exc, ACTIVE_TRANSACTION_KEY)

    async def load_active_transaction_id(self) -> Optional[str]:
        try:
            return await self._storage.get_item(ACTIVE_TRANSACTION_KEY)
        except Exception as exc:
            self._log_failure("load active transaction id", exc, ACTIVE_TRANSACTION_KEY)
            return None

    async def clear_all(self) -> None:
        for key in (TRANSACTION_QUEUE_KEY, ACTIVE_TRANSACTION_KEY):
            try:
                await self._storage.remove_item(key)
            except Exception as exc:
                self._log_failure("clear transaction queue data", exc, key)

    @staticmethod
    def _log_failure(action: str, exc: Exception, key: str) -> None:
        error = (
            exc
            if isinstance(exc, QueuePersistenceError)
            else QueuePersistenceError(f"Failed to {action}: {exc}", key)
        )
        logger.error(f"{error} (key={error.key})")
