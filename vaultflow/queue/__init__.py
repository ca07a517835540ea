"""Persisted transaction queue."""

from .models import (
    ContractCall,
    ExecutionResult,
    QueueTransaction,
    SimulationResult,
    TransactionDescriptor,
    TransactionStatus,
    TransactionType,
)
from .storage import QueueStorage
from .store import TransactionQueue
from .writer import ContractWriter, format_error, prepare_call

__all__ = [
    "ContractCall",
    "ContractWriter",
    "ExecutionResult",
    "QueueStorage",
    "QueueTransaction",
    "SimulationResult",
    "TransactionDescriptor",
    "TransactionQueue",
    "TransactionStatus",
    "TransactionType",
    "format_error",
    "prepare_call",
]
