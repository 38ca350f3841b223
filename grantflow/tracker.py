"""Observable step state for a single application workflow."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple

from pydantic import BaseModel

from .contracts import StepStatus, WorkflowStep, default_steps
from .errors import StepTransitionError

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS = {
    StepStatus.NOT_STARTED: {StepStatus.IN_PROGRESS, StepStatus.ERROR},
    StepStatus.IN_PROGRESS: {StepStatus.SUCCESS, StepStatus.ERROR},
    StepStatus.SUCCESS: set(),
    StepStatus.ERROR: set(),
}


class StepEvent(BaseModel):
    """Notification sent to listeners after every tracker mutation."""

    index: int
    field: str
    value: Any
    steps: List[WorkflowStep]


StepListener = Callable[[StepEvent], None]


class StepTracker:
    """Fixed-length, forward-only list of workflow steps.

    Mutations are applied in place and pushed to every subscribed listener
    before the mutator returns.
    """

    def __init__(self, steps: Optional[List[WorkflowStep]] = None) -> None:
        self._steps: List[WorkflowStep] = [
            step.model_copy(deep=True) for step in (steps or default_steps())
        ]
        self._listeners: List[StepListener] = []
        self._history: List[Tuple[int, StepStatus]] = []

    def __len__(self) -> int:
        return len(self._steps)

    def _step(self, index: int) -> WorkflowStep:
        if not 0 <= index < len(self._steps):
            raise IndexError(f"Step index {index} out of range")
        return self._steps[index]

    def set_target(self, index: int, value: str) -> None:
        self._step(index).target = value
        self._notify(index, "target", value)

    def set_href(self, index: int, value: str) -> None:
        self._step(index).href = value
        self._notify(index, "href", value)

    def set_status(self, index: int, value: StepStatus) -> None:
        step = self._step(index)
        value = StepStatus(value)
        if step.status == value:
            return
        if value not in _ALLOWED_TRANSITIONS[step.status]:
            raise StepTransitionError(
                f"Step {index} cannot move from {step.status.value} to {value.value}"
            )
        if value == StepStatus.IN_PROGRESS:
            active = self.active_index
            if active is not None:
                raise StepTransitionError(
                    f"Step {active} is still in progress; cannot start step {index}"
                )
        step.status = value
        self._history.append((index, value))
        self._notify(index, "status", value)

    def status(self, index: int) -> StepStatus:
        return self._step(index).status

    @property
    def active_index(self) -> Optional[int]:
        """Index of the step currently in progress, if any."""
        for i, step in enumerate(self._steps):
            if step.status == StepStatus.IN_PROGRESS:
                return i
        return None

    @property
    def history(self) -> List[Tuple[int, StepStatus]]:
        """Status transitions in the order they were applied."""
        return list(self._history)

    def snapshot(self) -> List[WorkflowStep]:
        """Return detached copies of the current steps."""
        return [step.model_copy(deep=True) for step in self._steps]

    def subscribe(self, listener: StepListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, index: int, field: str, value: Any) -> None:
        if not self._listeners:
            return
        event = StepEvent(index=index, field=field, value=value, steps=self.snapshot())
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Step listener {listener!r} failed: {e}")
