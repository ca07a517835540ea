"""Exception hierarchy for vaultflow."""

from __future__ import annotations

from typing import Optional


class VaultflowError(Exception):
    """Base class for all vaultflow errors."""


class InvalidFlowError(VaultflowError):
    """Raised when a flow is initialized from an unusable step list."""


class StepError(VaultflowError):
    """Failure of one phase of a step.

    These never escape ``FlowExecutor.execute_step``; the executor turns them
    into recorded step state and an ``on_error`` notification.
    """

    phase: str = "execution"

    def __init__(self, message: str, step_id: str) -> None:
        super().__init__(message)
        self.message = message
        self.step_id = step_id


class StepValidationError(StepError):
    phase = "validation"


class SkipEvaluationError(StepError):
    phase = "skip_condition"


class StepExecutionError(StepError):
    phase = "execution"


class QueuePersistenceError(VaultflowError):
    """Storage read or write failed. Logged, never raised to queue callers."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class QueueExecutionError(VaultflowError):
    """A single queue entry could not be executed."""

    def __init__(self, message: str, transaction_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.transaction_id = transaction_id


class TransactionNotFoundError(VaultflowError, KeyError):
    """No queue entry with the given id."""

    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id

    def __str__(self) -> str:
        return self.args[0]


class InvalidTransitionError(VaultflowError):
    """Requested status change is not allowed from the entry's current status."""

    def __init__(self, transaction_id: str, current: str, requested: str) -> None:
        super().__init__(
            f"Transaction {transaction_id} cannot move from {current} to {requested}"
        )
        self.transaction_id = transaction_id
        self.current = current
        self.requested = requested
