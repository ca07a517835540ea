"""vaultflow: multi-step transaction flows and a persisted transaction queue."""

from .contracts import FlowState, Step, StepDefinition, StepResult, StepStatus
from .flow import FlowExecutor
from .queue import (
    QueueTransaction,
    TransactionDescriptor,
    TransactionQueue,
    TransactionStatus,
)
from .storage import get_storage

__version__ = "0.1.0"
__all__ = [
    "FlowExecutor",
    "FlowState",
    "QueueTransaction",
    "Step",
    "StepDefinition",
    "StepResult",
    "StepStatus",
    "TransactionDescriptor",
    "TransactionQueue",
    "TransactionStatus",
    "get_storage",
]
