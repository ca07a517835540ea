"""Ordered, persisted queue of pending on-chain transactions."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from ..config import QueueConfig
from ..errors import InvalidTransitionError, QueueExecutionError, TransactionNotFoundError
from ..storage import KeyValueStorage
from .models import (
    ExecutionResult,
    QueueTransaction,
    SimulationResult,
    TransactionDescriptor,
    TransactionStatus,
    utcnow,
)
from .storage import QueueStorage
from .writer import ContractWriter, format_error, prepare_call

logger = logging.getLogger(__name__)


class TransactionQueue:
    """Single shared queue of transactions awaiting execution.

    Construct one instance at application start and pass it to every
    consumer. Each mutation updates the in-memory list and then persists the
    whole queue through the injected storage. Execution is serial: an
    ``asyncio.Lock`` guarantees at most one entry is ``executing`` at a time.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        writer: Optional[ContractWriter] = None,
        config: Optional[QueueConfig] = None,
    ) -> None:
        self._store = QueueStorage(storage)
        self._writer = writer
        self._config = config or QueueConfig()
        self._transactions: List[QueueTransaction] = []
        self._active_transaction_id: Optional[str] = None
        self._execution_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Persistence
    async def load(self) -> None:
        """Replace in-memory state with what the storage holds.

        Entries left ``executing`` by an interrupted session are marked
        ``failed``: their outcome is unknown and they must not be re-sent
        automatically.
        """
        self._transactions = await self._store.load_transactions()
        self._active_transaction_id = await self._store.load_active_transaction_id()

        interrupted = [
            tx for tx in self._transactions if tx.status == TransactionStatus.EXECUTING
        ]
        for tx in interrupted:
            logger.warning(f"Transaction {tx.id} was interrupted while executing")
            tx.status = TransactionStatus.FAILED
            tx.error = "Interrupted before completion"
            tx.touch()
        if self._active_transaction_id and self.get_transaction(
            self._active_transaction_id
        ) is None:
            self._active_transaction_id = None
        if interrupted:
            await self._persist()
        logger.info(f"Loaded {len(self._transactions)} queued transactions")

    async def _persist(self) -> None:
        await self._store.save_transactions(self._transactions)
        await self._store.save_active_transaction_id(self._active_transaction_id)

    # ------------------------------------------------------------------
    # Read side
    @property
    def transactions(self) -> List[QueueTransaction]:
        return list(self._transactions)

    @property
    def active_transaction_id(self) -> Optional[str]:
        return self._active_transaction_id

    @property
    def is_executing(self) -> bool:
        return self._execution_lock.locked()

    def get_transaction(self, transaction_id: str) -> Optional[QueueTransaction]:
        for tx in self._transactions:
            if tx.id == transaction_id:
                return tx
        return None

    def get_transactions_by_status(
        self, status: TransactionStatus
    ) -> List[QueueTransaction]:
        return [tx for tx in self._transactions if tx.status == status]

    def get_pending_count(self) -> int:
        """Entries still awaiting an outcome (pending or executing)."""
        return sum(
            1
            for tx in self._transactions
            if tx.status in (TransactionStatus.PENDING, TransactionStatus.EXECUTING)
        )

    def get_active_transaction(self) -> Optional[QueueTransaction]:
        if not self._active_transaction_id:
            return None
        return self.get_transaction(self._active_transaction_id)

    def _require(self, transaction_id: str) -> QueueTransaction:
        tx = self.get_transaction(transaction_id)
        if tx is None:
            raise TransactionNotFoundError(transaction_id)
        return tx

    # ------------------------------------------------------------------
    # Mutations
    async def add_transaction(self, descriptor: TransactionDescriptor) -> str:
        """Append a new pending entry and return its id."""
        ids = await self.add_transactions([descriptor])
        return ids[0]

    async def add_transactions(
        self, descriptors: Iterable[TransactionDescriptor]
    ) -> List[str]:
        ids: List[str] = []
        for descriptor in descriptors:
            now = utcnow()
            tx = QueueTransaction(
                **descriptor.model_dump(include=set(TransactionDescriptor.model_fields)),
                status=TransactionStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            self._transactions.append(tx)
            ids.append(tx.id)
            logger.info(f"Queued {tx.type.value} transaction {tx.id}: {tx.title}")

        if ids and not self._active_transaction_id:
            self._active_transaction_id = ids[0]
        await self._persist()
        return ids

    async def move_transaction_up(self, transaction_id: str) -> None:
        await self._move(transaction_id, -1)

    async def move_transaction_down(self, transaction_id: str) -> None:
        await self._move(transaction_id, 1)

    async def _move(self, transaction_id: str, offset: int) -> None:
        index = next(
            (i for i, tx in enumerate(self._transactions) if tx.id == transaction_id),
            None,
        )
        if index is None:
            logger.debug(f"Ignoring move for unknown transaction {transaction_id}")
            return
        target = index + offset
        if not 0 <= target < len(self._transactions):
            return
        items = self._transactions
        items[index], items[target] = items[target], items[index]
        await self._persist()

    async def reorder_transactions(self, ordered_ids: List[str]) -> None:
        """Put ``ordered_ids`` first, in that order; keep the rest after them."""
        by_id = {tx.id: tx for tx in self._transactions}
        ordered = [by_id[tx_id] for tx_id in ordered_ids if tx_id in by_id]
        listed = set(ordered_ids)
        remaining = [tx for tx in self._transactions if tx.id not in listed]
        self._transactions = ordered + remaining
        await self._persist()

    async def remove_transaction(self, transaction_id: str) -> None:
        """Delete an entry regardless of its status."""
        await self.remove_transactions([transaction_id])

    async def remove_transactions(self, transaction_ids: Iterable[str]) -> None:
        ids = set(transaction_ids)
        self._transactions = [tx for tx in self._transactions if tx.id not in ids]
        if self._active_transaction_id in ids:
            self._active_transaction_id = None
        await self._persist()

    async def cancel_transaction(self, transaction_id: str) -> None:
        """Cancel an entry that has not started executing."""
        tx = self._require(transaction_id)
        if tx.status != TransactionStatus.PENDING:
            raise InvalidTransitionError(
                transaction_id, tx.status.value, TransactionStatus.CANCELLED.value
            )
        tx.status = TransactionStatus.CANCELLED
        tx.touch()
        if self._active_transaction_id == transaction_id:
            self._active_transaction_id = None
        logger.info(f"Cancelled transaction {transaction_id}")
        await self._persist()

    async def requeue_transaction(self, transaction_id: str) -> str:
        """Queue a fresh copy of a finished entry; the original stays as is."""
        tx = self._require(transaction_id)
        if not tx.status.is_terminal:
            raise InvalidTransitionError(
                transaction_id, tx.status.value, TransactionStatus.PENDING.value
            )
        return await self.add_transaction(tx.descriptor())

    async def clear_all(self) -> None:
        self._transactions = []
        self._active_transaction_id = None
        await self._store.clear_all()
        logger.info("Cleared transaction queue")

    async def clear_completed(self) -> None:
        """Drop every entry in a terminal status."""
        self._transactions = [
            tx for tx in self._transactions if not tx.status.is_terminal
        ]
        await self._persist()

    async def cleanup_old_transactions(
        self,
        now: Optional[datetime] = None,
        max_age: Optional[timedelta] = None,
    ) -> int:
        """Purge terminal entries last updated more than ``max_age`` ago.

        Returns the number of purged entries.
        """
        if now is None:
            now = utcnow()
        if max_age is None:
            max_age = timedelta(hours=self._config.cleanup_max_age_hours)
        cutoff = now - max_age
        kept = [
            tx
            for tx in self._transactions
            if not (tx.status.is_terminal and tx.updated_at < cutoff)
        ]
        purged = len(self._transactions) - len(kept)
        if purged:
            self._transactions = kept
            logger.info(f"Purged {purged} transactions older than {max_age}")
            await self._persist()
        return purged

    # ------------------------------------------------------------------
    # Execution
    async def execute_transaction(self, transaction_id: str) -> ExecutionResult:
        """Send one pending entry through the contract writer.

        Raises:
            TransactionNotFoundError: unknown id.
            InvalidTransitionError: the entry is not pending.
        """
        async with self._execution_lock:
            tx = self._require(transaction_id)
            if tx.status != TransactionStatus.PENDING:
                raise InvalidTransitionError(
                    transaction_id, tx.status.value, TransactionStatus.EXECUTING.value
                )
            return await self._execute(tx)

    async def execute_all(self) -> List[Tuple[str, ExecutionResult]]:
        """Execute every pending entry serially in current queue order.

        A failed entry is recorded and the remaining entries still run.
        """
        results: List[Tuple[str, ExecutionResult]] = []
        async with self._execution_lock:
            pending = [
                tx.id for tx in self._transactions if tx.status == TransactionStatus.PENDING
            ]
            logger.info(f"Executing {len(pending)} queued transactions")
            for position, transaction_id in enumerate(pending):
                tx = self.get_transaction(transaction_id)
                if tx is None or tx.status != TransactionStatus.PENDING:
                    # removed or cancelled while earlier entries were running
                    continue
                if position and self._config.inter_transaction_delay:
                    await asyncio.sleep(self._config.inter_transaction_delay)
                results.append((transaction_id, await self._execute(tx)))
        return results

    async def simulate_transaction(self, transaction_id: str) -> SimulationResult:
        """Dry-run an entry without touching its status."""
        tx = self._require(transaction_id)
        try:
            writer = self._require_writer(tx)
            call = prepare_call(tx, self._config.default_gas_limit)
            simulation = await writer.simulate_contract(call)
        except Exception as exc:
            error = format_error(exc)
            logger.warning(f"Simulation of transaction {tx.id} failed: {error}")
            return SimulationResult(success=False, error=error)
        return SimulationResult(success=True, simulation=simulation)

    def _require_writer(self, tx: QueueTransaction) -> ContractWriter:
        if self._writer is None:
            raise QueueExecutionError("No contract writer configured", tx.id)
        return self._writer

    async def _execute(self, tx: QueueTransaction) -> ExecutionResult:
        tx.status = TransactionStatus.EXECUTING
        tx.error = None
        tx.touch()
        self._active_transaction_id = tx.id
        await self._persist()
        logger.info(f"Executing transaction {tx.id}: {tx.function_name}")

        try:
            writer = self._require_writer(tx)
            call = prepare_call(tx, self._config.default_gas_limit)
            await writer.simulate_contract(call)
            tx_hash = await writer.write_contract(call)
        except Exception as exc:
            error = format_error(exc)
            tx.status = TransactionStatus.FAILED
            tx.error = error
            result = ExecutionResult(success=False, error=error)
            logger.error(f"Transaction {tx.id} failed: {error}")
        else:
            tx.status = TransactionStatus.COMPLETED
            tx.tx_hash = tx_hash
            result = ExecutionResult(success=True, tx_hash=tx_hash, gas_used=call.gas_limit)
            logger.info(f"Transaction {tx.id} completed with hash {tx_hash}")
        finally:
            tx.touch()
            self._active_transaction_id = None
            await self._persist()
        return result
