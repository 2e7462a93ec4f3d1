"""
Eligibility Checker
===================

Decides whether a step may leave ``pending``, from the statuses of its
dependencies, and answers the navigation questions built on that rule
(next step, available steps, steps waiting on dependencies).

Results are computed on demand from a snapshot and never cached: any
dependency's status change invalidates them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from .config import DEFAULT_CONFIG, PlanflowConfig
from .enums import TERMINAL_STATUSES, StepStatus
from .graph import DependencyGraph
from .models import Plan, Step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of a canStart check."""

    step_id: str
    allowed: bool
    missing_dependencies: list[str] = field(default_factory=list)
    reason: str | None = None

    def to_dict(self) -> dict:
        result = {
            "stepId": self.step_id,
            "allowed": self.allowed,
            "missingDependencies": list(self.missing_dependencies),
        }
        if self.reason:
            result["reason"] = self.reason
        return result


def satisfying_statuses(config: PlanflowConfig) -> frozenset[StepStatus]:
    """Dependency statuses that unlock dependents under ``config``."""
    if config.skipped_satisfies_dependencies:
        return frozenset({StepStatus.DONE, StepStatus.SKIPPED})
    return frozenset({StepStatus.DONE})


def can_start(
    step_id: str,
    graph: DependencyGraph,
    statuses: Mapping[str, StepStatus],
    config: PlanflowConfig | None = None,
) -> EligibilityResult:
    """Check whether every dependency of ``step_id`` is satisfied.

    A dependency is satisfied when it is ``done`` (or ``skipped`` when the
    config opts in). All unsatisfied dependencies are listed, in dependsOn
    order.
    """
    config = config or DEFAULT_CONFIG
    satisfied = satisfying_statuses(config)

    missing = [
        dep
        for dep in graph.dependencies(step_id)
        if StepStatus(statuses.get(dep, StepStatus.PENDING)) not in satisfied
    ]
    if not missing:
        return EligibilityResult(step_id=step_id, allowed=True)

    waiting_on = ", ".join(
        f"{dep} ({StepStatus(statuses.get(dep, StepStatus.PENDING)).value})" for dep in missing
    )
    noun = "dependency" if len(missing) == 1 else "dependencies"
    return EligibilityResult(
        step_id=step_id,
        allowed=False,
        missing_dependencies=missing,
        reason=f"Step {step_id!r} is waiting on {len(missing)} unfinished {noun}: {waiting_on}",
    )


class EligibilityChecker:
    """Eligibility and navigation over one plan snapshot."""

    def __init__(
        self,
        plan: Plan,
        config: PlanflowConfig | None = None,
        graph: DependencyGraph | None = None,
    ):
        self.plan = plan
        self.config = config or DEFAULT_CONFIG
        self.graph = graph or DependencyGraph.from_plan(plan)
        self.statuses = plan.status_map()

    def can_start(self, step_id: str) -> EligibilityResult:
        result = can_start(step_id, self.graph, self.statuses, self.config)
        logger.debug(f"canStart({step_id}) -> {result.allowed}")
        return result

    def available_steps(self) -> list[Step]:
        """Pending steps whose dependencies are satisfied, in plan order."""
        return [
            step
            for step in self.plan.steps
            if step.state is StepStatus.PENDING and self.can_start(step.id).allowed
        ]

    def next_step(self) -> Step | None:
        """First pending step that can start, or None."""
        available = self.available_steps()
        return available[0] if available else None

    def waiting_on_dependencies(self) -> list[Step]:
        """Unfinished steps with at least one unsatisfied dependency."""
        return [
            step
            for step in self.plan.steps
            if step.state not in TERMINAL_STATUSES and not self.can_start(step.id).allowed
        ]
