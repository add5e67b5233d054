"""Sequential saga with compensating rollback.

A saga is an ordered list of steps. Each step pairs an action with an
optional compensation that receives the action's result. Steps run
front-to-back; when one raises, the compensations recorded so far run
back-to-front and the original exception is re-raised.

Compensations are best-effort: a failing compensation is logged and counted,
never retried, and never replaces the original error.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SagaStep:
    name: str
    action: Callable[[], Any]
    compensate: Callable[[Any], Any] | None = None


@dataclass
class SagaResult:
    values: list[Any] = field(default_factory=list)
    steps_executed: int = 0


@dataclass
class RollbackReport:
    step_failed: str
    compensators_run: int = 0
    compensators_failed: int = 0

    @property
    def rollback_complete(self) -> bool:
        return self.compensators_failed == 0


class Saga:
    """Ordered (action, compensation) pairs executed as one unit."""

    def __init__(self, name: str):
        self.name = name
        self._steps: list[SagaStep] = []
        self.last_rollback: RollbackReport | None = None

    def step(self, name: str, action: Callable[[], Any], compensate: Callable[[Any], Any] | None = None) -> "Saga":
        self._steps.append(SagaStep(name=name, action=action, compensate=compensate))
        return self

    def __len__(self) -> int:
        return len(self._steps)

    def run(self) -> SagaResult:
        result = SagaResult()
        recorded: list[tuple[SagaStep, Any]] = []

        for step in self._steps:
            try:
                value = step.action()
            except Exception:
                self.last_rollback = self._unwind(step.name, recorded)
                raise
            if step.compensate is not None:
                recorded.append((step, value))
            result.values.append(value)
            result.steps_executed += 1

        return result

    def compensate_all(self, values: list[Any]) -> RollbackReport:
        """Unwind a saga that completed but whose follow-up work failed."""
        recorded = [(step, value) for step, value in zip(self._steps, values, strict=False) if step.compensate]
        self.last_rollback = self._unwind("<after completion>", recorded)
        return self.last_rollback

    def _unwind(self, failed_step: str, recorded: list[tuple[SagaStep, Any]]) -> RollbackReport:
        report = RollbackReport(step_failed=failed_step)

        for step, value in reversed(recorded):
            try:
                step.compensate(value)
                report.compensators_run += 1
            except Exception as exc:
                report.compensators_failed += 1
                logger.error(
                    "Saga compensation failed",
                    saga=self.name,
                    step=step.name,
                    error=str(exc),
                )

        logger.warning(
            "Saga rolled back",
            saga=self.name,
            step_failed=failed_step,
            compensators_run=report.compensators_run,
            compensators_failed=report.compensators_failed,
        )
        return report
