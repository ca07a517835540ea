"""Flow executor driving an ordered list of steps to completion."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, List, Optional, Sequence

from .constants import (
    EXECUTION_FAILED_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    VALIDATION_FAILED_MESSAGE,
)
from .contracts import (
    FlowState,
    Step,
    StepDefinition,
    StepPhase,
    StepResult,
    StepStatus,
)
from .errors import (
    InvalidFlowError,
    SkipEvaluationError,
    StepError,
    StepExecutionError,
    StepValidationError,
)

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[List[StepResult]], Any]
ErrorCallback = Callable[[str, str], Any]


async def _resolve(func: Callable[[], Any]) -> Any:
    """Call ``func`` and await the result when it is awaitable."""
    result = func()
    if inspect.isawaitable(result):
        result = await result
    return result


def _message(exc: BaseException) -> str:
    return str(exc) or UNKNOWN_ERROR_MESSAGE


def initialize(steps: Sequence[StepDefinition]) -> FlowState:
    """Build the initial state: first step active, all others pending."""
    if not steps:
        raise InvalidFlowError("A flow needs at least one step")

    seen: set[str] = set()
    for definition in steps:
        if definition.id in seen:
            raise InvalidFlowError(f"Duplicate step id in flow: {definition.id}")
        seen.add(definition.id)

    return FlowState(
        steps=[
            Step.from_definition(
                definition,
                StepStatus.ACTIVE if index == 0 else StepStatus.PENDING,
            )
            for index, definition in enumerate(steps)
        ],
    )


class FlowExecutor:
    """Runs the steps of one flow strictly in order, one at a time.

    Each ``execute_step`` call runs validation, then the skip condition, then
    the execution callable of the active step. Success or skip moves the
    active pointer forward by one when ``auto_advance`` is enabled; failure
    halts the flow on that step until ``retry_step`` re-activates it.
    Failures are recorded on the step and reported through ``on_error``;
    they are never raised to the caller.
    """

    def __init__(
        self,
        steps: Sequence[StepDefinition],
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        auto_advance: bool = True,
    ) -> None:
        self._definitions: List[StepDefinition] = list(steps)
        self._on_success = on_success
        self._on_error = on_error
        self.auto_advance = auto_advance
        self._state = initialize(self._definitions)
        self._success_notified = False

    # ------------------------------------------------------------------
    # Read side
    @property
    def state(self) -> FlowState:
        """Snapshot of the current state.

        Steps and results are copied; the step callables are shared with the
        live flow.
        """
        state = self._state
        return FlowState(
            steps=[step.model_copy() for step in state.steps],
            current_step_index=state.current_step_index,
            is_executing=state.is_executing,
            results=[result.model_copy(deep=True) for result in state.results],
        )

    @property
    def steps(self) -> List[Step]:
        return list(self._state.steps)

    @property
    def current_step_index(self) -> int:
        return self._state.current_step_index

    @property
    def is_executing(self) -> bool:
        return self._state.is_executing

    @property
    def results(self) -> List[StepResult]:
        return list(self._state.results)

    @property
    def is_completed(self) -> bool:
        return self._state.is_completed

    @property
    def has_error(self) -> bool:
        return self._state.has_error

    def get_step(self, step_id: str) -> Optional[Step]:
        for step in self._state.steps:
            if step.id == step_id:
                return step
        return None

    # ------------------------------------------------------------------
    # Commands
    async def execute_step(self, step_id: str) -> None:
        """Run the named step if it is the active one.

        The step only has to be ``active``; it need not sit at
        ``current_step_index``. A step left active by ``retry_step`` or
        ``go_to_step`` can still run, and on success the pointer advances
        from its current position, not from that step.
        """
        step = self.get_step(step_id)
        if step is None:
            logger.warning(f"Ignoring execute for unknown step {step_id}")
            return
        if step.status != StepStatus.ACTIVE:
            logger.debug(
                f"Ignoring execute for step {step_id} with status {step.status.value}"
            )
            return
        if self._state.is_executing:
            logger.debug(f"Ignoring execute for step {step_id}: another step is running")
            return

        pointer = self._state.current_step_index
        if self._state.steps[pointer].id != step_id:
            logger.debug(
                f"Executing step {step_id} away from the current step "
                f"{self._state.steps[pointer].id}"
            )

        self._state.is_executing = True
        try:
            await self._validate(step)
            if await self._should_skip(step):
                logger.info(f"Step {step_id} skipped by its skip condition")
                await self._mark_skipped(step)
                return
            result = await self._execute(step)
            step.status = StepStatus.COMPLETED
            step.tx_hash = result.tx_hash
            step.error = None
            step.failed_phase = None
            self._state.results.append(result)
            logger.info(f"Step {step_id} completed")
            await self._advance()
        except StepError as exc:
            await self._fail(step, exc)
        finally:
            self._state.is_executing = False

    async def skip_step(self, step_id: str) -> None:
        """Manually skip the active step when it allows it."""
        step = self.get_step(step_id)
        if step is None or not step.can_skip:
            logger.warning(f"Step {step_id} cannot be skipped")
            return
        if step.status != StepStatus.ACTIVE or self._state.is_executing:
            logger.warning(
                f"Ignoring skip for step {step_id}: only the active step can be "
                f"skipped while nothing is running"
            )
            return
        logger.info(f"Step {step_id} skipped manually")
        await self._mark_skipped(step)

    def retry_step(self, step_id: str) -> None:
        """Re-activate a step and clear its error so it can run again."""
        step = self.get_step(step_id)
        if step is None:
            logger.warning(f"Ignoring retry for unknown step {step_id}")
            return
        step.status = StepStatus.ACTIVE
        step.error = None
        step.failed_phase = None

    def go_to_step(self, index: int) -> None:
        """Move the active pointer to ``index``. Other statuses are untouched."""
        if not 0 <= index < len(self._state.steps):
            logger.debug(f"Ignoring go_to_step({index}): out of range")
            return
        self._state.current_step_index = index
        self._state.steps[index].status = StepStatus.ACTIVE

    def reset(self) -> None:
        """Return to the state produced by ``initialize``."""
        self._state = initialize(self._definitions)
        self._success_notified = False

    # ------------------------------------------------------------------
    # Phases
    async def _validate(self, step: Step) -> None:
        if step.validation is None:
            return
        try:
            valid = await _resolve(step.validation)
        except Exception as exc:
            raise StepValidationError(_message(exc), step.id) from exc
        if not valid:
            raise StepValidationError(VALIDATION_FAILED_MESSAGE, step.id)

    async def _should_skip(self, step: Step) -> bool:
        if step.skip_condition is None:
            return False
        try:
            return bool(await _resolve(step.skip_condition))
        except Exception as exc:
            raise SkipEvaluationError(_message(exc), step.id) from exc

    async def _execute(self, step: Step) -> StepResult:
        if step.execution is None:
            return StepResult(success=True)
        try:
            raw = await _resolve(step.execution)
            result = (
                raw if isinstance(raw, StepResult) else StepResult.model_validate(raw)
            )
        except Exception as exc:
            raise StepExecutionError(_message(exc), step.id) from exc
        if not result.success:
            raise StepExecutionError(result.error or EXECUTION_FAILED_MESSAGE, step.id)
        return result

    # ------------------------------------------------------------------
    # Bookkeeping
    async def _mark_skipped(self, step: Step) -> None:
        step.status = StepStatus.SKIPPED
        self._state.results.append(StepResult(success=True, data={"skipped": True}))
        await self._advance()

    async def _fail(self, step: Step, exc: StepError) -> None:
        step.status = StepStatus.ERROR
        step.error = exc.message
        step.failed_phase = StepPhase(exc.phase)
        self._state.results.append(StepResult(success=False, error=exc.message))
        logger.error(f"Step {step.id} failed during {exc.phase}: {exc.message}")
        await self._notify(self._on_error, exc.message, step.id)

    async def _advance(self) -> None:
        if self.auto_advance:
            next_index = self._state.current_step_index + 1
            if next_index < len(self._state.steps):
                self._state.current_step_index = next_index
                self._state.steps[next_index].status = StepStatus.ACTIVE
        await self._check_completion()

    async def _check_completion(self) -> None:
        state = self._state
        if self._success_notified:
            return
        if state.is_completed and not state.has_error and state.results:
            self._success_notified = True
            logger.info(f"Flow completed after {len(state.steps)} steps")
            await self._notify(self._on_success, list(state.results))

    async def _notify(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            await _resolve(lambda: callback(*args))
        except Exception as exc:
            logger.error(f"Flow callback {callback!r} raised: {exc}")
