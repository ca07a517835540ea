"""Step definition model for vaultflow transaction flows."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, Field

# Callables may be plain functions or coroutine functions.
Predicate = Callable[[], Any]
Execution = Callable[[], Any]


class StepStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"


class StepPhase(str, Enum):
    """Phase of a step that produced its error."""

    VALIDATION = "validation"
    SKIP_CONDITION = "skip_condition"
    EXECUTION = "execution"


class StepResult(BaseModel):
    """Outcome of a single step attempt."""

    success: bool
    tx_hash: Optional[str] = None
    data: Any = None
    error: Optional[str] = None


class StepDefinition(BaseModel):
    """Defines one unit of sequenced work in a flow."""

    id: str
    title: str
    description: Optional[str] = None
    estimated_time: Optional[float] = Field(
        default=None, description="Advisory duration in seconds"
    )
    validation: Optional[Predicate] = None
    skip_condition: Optional[Predicate] = None
    execution: Optional[Execution] = None
    can_skip: bool = False


class Step(StepDefinition):
    """A step definition together with its runtime state inside a flow."""

    status: StepStatus = StepStatus.PENDING
    error: Optional[str] = None
    tx_hash: Optional[str] = None
    failed_phase: Optional[StepPhase] = None

    @classmethod
    def from_definition(cls, definition: StepDefinition, status: StepStatus) -> "Step":
        fields = {
            name: getattr(definition, name) for name in StepDefinition.model_fields
        }
        return cls(**fields, status=status)

    def is_done(self) -> bool:
        return self.status in (StepStatus.COMPLETED, StepStatus.SKIPPED)


class FlowState(BaseModel):
    """Snapshot of a flow's progress."""

    steps: List[Step] = Field(default_factory=list)
    current_step_index: int = 0
    is_executing: bool = False
    results: List[StepResult] = Field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        """``True`` when every step is completed or skipped."""
        return bool(self.steps) and all(step.is_done() for step in self.steps)

    @property
    def has_error(self) -> bool:
        return any(step.status == StepStatus.ERROR for step in self.steps)

    @property
    def current_step(self) -> Optional[Step]:
        if 0 <= self.current_step_index < len(self.steps):
            return self.steps[self.current_step_index]
        return None

    @property
    def active_steps(self) -> List[Step]:
        return [step for step in self.steps if step.status == StepStatus.ACTIVE]
