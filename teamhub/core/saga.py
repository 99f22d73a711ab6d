"""
Compensating-action runner for multi-step team operations.

The document store offers no transaction spanning a team record and its
role/member sub-collections, so each lifecycle operation is an ordered list of
steps, each optionally paired with a compensation. When step n fails, the
compensations of steps n-1 .. 1 run in reverse order and the original error is
re-raised. Compensations are best effort: a failing compensation is logged and
the remaining ones still run.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

SagaContext = Dict[str, Any]


@dataclass
class SagaStep:
    name: str
    action: Callable[[SagaContext], Any]
    compensation: Optional[Callable[[SagaContext], None]] = None


class Saga:
    def __init__(self, name: str, steps: List[SagaStep], context: Optional[SagaContext] = None):
        self.name = name
        self.steps = steps
        self.context: SagaContext = dict(context or {})
        self.completed: List[SagaStep] = []

    def run(self) -> SagaContext:
        """Run every step, storing each step's result in the context under its name."""
        for step in self.steps:
            try:
                self.context[step.name] = step.action(self.context)
            except Exception as e:
                logger.warning(f"{self.name}: step '{step.name}' failed: {e}")
                self._compensate()
                raise
            self.completed.append(step)
            logger.debug(f"{self.name}: step '{step.name}' done")
        return self.context

    def _compensate(self) -> None:
        for step in reversed(self.completed):
            if step.compensation is None:
                continue
            try:
                step.compensation(self.context)
                logger.info(f"{self.name}: compensated step '{step.name}'")
            except Exception as e:
                # Not retried; the operation still reports its original failure
                logger.error(f"{self.name}: compensation for '{step.name}' failed: {e}")
        self.completed = []
