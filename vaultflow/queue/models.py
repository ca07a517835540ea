"""Data models for queued on-chain transactions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionStatus(str, Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {TransactionStatus.COMPLETED, TransactionStatus.FAILED, TransactionStatus.CANCELLED}
)


class TransactionType(str, Enum):
    APPROVE = "approve"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    MINT = "mint"
    REDEEM = "redeem"
    TRANSFER = "transfer"
    SWAP = "swap"
    CUSTOM = "custom"


class TransactionDescriptor(BaseModel):
    """Everything needed to execute one contract call later."""

    title: str
    subtitle: str = ""
    chain_id: int
    type: TransactionType = TransactionType.CUSTOM
    contract_address: str
    function_name: str
    abi: List[dict[str, Any]] = Field(default_factory=list)
    args: List[Any] = Field(default_factory=list)
    value: Optional[int] = None
    gas_limit: Optional[int] = None
    token_amount: Optional[str] = None
    token_symbol: Optional[str] = None


class QueueTransaction(TransactionDescriptor):
    """Persisted queue entry."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: TransactionStatus = TransactionStatus.PENDING
    error: Optional[str] = None
    tx_hash: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def descriptor(self) -> TransactionDescriptor:
        return TransactionDescriptor(
            **{name: getattr(self, name) for name in TransactionDescriptor.model_fields}
        )

    def touch(self) -> None:
        self.updated_at = utcnow()


class ContractCall(BaseModel):
    """Validated call handed to a contract writer."""

    chain_id: int
    contract_address: str
    function_name: str
    abi: List[dict[str, Any]]
    args: List[Any] = Field(default_factory=list)
    value: int = 0
    gas_limit: int


class ExecutionResult(BaseModel):
    success: bool
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    gas_used: Optional[int] = None


class SimulationResult(BaseModel):
    success: bool
    simulation: Any = None
    error: Optional[str] = None
