"""
Lightweight step runner for validation requests.

Demonstrates:
- Steps declared with dependencies and executed in topological order
- A shared context that each step reads from and merges its result into
- Per-step status and timing for observability
- Stop-at-first-failure with the original exception kept for the caller
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

StepFn = Callable[[dict[str, Any]], "dict[str, Any] | None"]


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Step:
    """One stage of a request."""

    name: str
    fn: StepFn
    after: list[str] = field(default_factory=list)
    status: StepStatus = StepStatus.PENDING
    result: dict[str, Any] = field(default_factory=dict)
    exception: BaseException | None = None
    duration_ms: float = 0.0


class Pipeline:
    """
    Usage:
        pipeline = Pipeline("validate_document")
        pipeline.add_step("parse", parse)
        pipeline.add_step("check", check, after=["parse"])
        summary = pipeline.run({"raw_text": text})
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: dict[str, Step] = {}

    def add_step(self, name: str, fn: StepFn, after: list[str] | None = None) -> Pipeline:
        if name in self.steps:
            raise ValueError(f"Duplicate step name: {name}")
        self.steps[name] = Step(name=name, fn=fn, after=list(after or []))
        return self

    def execution_order(self) -> list[str]:
        """Kahn's algorithm; ties keep declaration order."""
        dependents: dict[str, list[str]] = {name: [] for name in self.steps}
        waiting: dict[str, int] = {}
        for step in self.steps.values():
            for upstream in step.after:
                if upstream not in self.steps:
                    raise ValueError(f"Step '{step.name}' runs after unknown step '{upstream}'")
                dependents[upstream].append(step.name)
            waiting[step.name] = len(step.after)

        ready = deque(name for name, count in waiting.items() if count == 0)
        order: list[str] = []
        while ready:
            current = ready.popleft()
            order.append(current)
            for name in dependents[current]:
                waiting[name] -= 1
                if waiting[name] == 0:
                    ready.append(name)

        if len(order) != len(self.steps):
            raise ValueError("Cycle detected between pipeline steps")
        return order

    def run(self, initial_context: dict[str, Any] | None = None, *, raise_on_failure: bool = False) -> dict[str, Any]:
        """
        Run every step once. After the first failure, the remaining steps are
        skipped; with ``raise_on_failure`` the failing step's exception is
        re-raised once the summary is complete.
        """
        order = self.execution_order()
        context = dict(initial_context or {})
        summary: dict[str, Any] = {"pipeline": self.name, "steps": {}}
        failed: Step | None = None

        logger.debug("Starting pipeline '%s' (%s)", self.name, " -> ".join(order))

        for name in order:
            step = self.steps[name]
            if failed is not None:
                step.status = StepStatus.SKIPPED
                summary["steps"][name] = {"status": step.status.value}
                continue

            step.status = StepStatus.RUNNING
            start = time.perf_counter()
            try:
                step.result = step.fn(context) or {}
                step.status = StepStatus.SUCCESS
                context.update(step.result)
            except Exception as exc:
                step.status = StepStatus.FAILED
                step.exception = exc
                failed = step
                logger.info("Step '%s' of '%s' failed: %s", name, self.name, exc)
            finally:
                step.duration_ms = (time.perf_counter() - start) * 1000

            summary["steps"][name] = {
                "status": step.status.value,
                "duration_ms": round(step.duration_ms, 2),
                "error": str(step.exception) if step.exception else None,
            }

        summary["status"] = "failed" if failed else "completed"
        summary["context"] = context
        if failed is not None and raise_on_failure:
            raise failed.exception
        return summary

