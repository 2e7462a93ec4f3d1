"""
Progress Aggregation
====================

Plan-wide and phase-wide completion metrics computed from step statuses.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .config import PlanflowConfig
from .eligibility import EligibilityChecker
from .enums import StepStatus
from .models import Plan, Step


@dataclass(frozen=True)
class ProgressReport:
    """Step counts per status and the completion percentage."""

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    blocked: int = 0
    skipped: int = 0
    pending: int = 0
    percent_complete: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "completed": self.completed,
            "inProgress": self.in_progress,
            "blocked": self.blocked,
            "skipped": self.skipped,
            "pending": self.pending,
            "percentComplete": self.percent_complete,
        }


@dataclass(frozen=True)
class PhaseProgress:
    """Progress of one group of steps."""

    name: str
    step_ids: list[str] = field(default_factory=list)
    progress: ProgressReport = field(default_factory=ProgressReport)

    def to_dict(self) -> dict:
        return {"name": self.name, "stepIds": list(self.step_ids), **self.progress.to_dict()}


def _percent(completed: int, total: int) -> int:
    # round-half-up in integer arithmetic
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_progress(steps: Iterable[Step | StepStatus | str]) -> ProgressReport:
    """Count steps per status.

    Accepts Steps or bare statuses. ``percentComplete`` counts only ``done``
    steps; an empty plan reports 0.
    """
    counts = {status: 0 for status in StepStatus}
    for item in steps:
        status = item.state if isinstance(item, Step) else StepStatus(item)
        counts[status] += 1

    total = sum(counts.values())
    completed = counts[StepStatus.DONE]
    return ProgressReport(
        total=total,
        completed=completed,
        in_progress=counts[StepStatus.IN_PROGRESS],
        blocked=counts[StepStatus.BLOCKED],
        skipped=counts[StepStatus.SKIPPED],
        pending=counts[StepStatus.PENDING],
        percent_complete=_percent(completed, total),
    )


def compute_phase_progress(
    steps: Iterable[Step], key: Callable[[Step], str]
) -> list[PhaseProgress]:
    """Progress per group, groups in order of first appearance."""
    groups: dict[str, list[Step]] = {}
    for step in steps:
        groups.setdefault(key(step), []).append(step)

    return [
        PhaseProgress(
            name=name,
            step_ids=[s.id for s in members],
            progress=compute_progress(members),
        )
        for name, members in groups.items()
    ]


def plan_status(progress: ProgressReport) -> str:
    """Overall status of a plan from its progress.

    - completed: every step done or skipped (and at least one step)
    - blocked: nothing in progress and at least one step blocked
    - in-progress: some step started or finished
    - pending: nothing started yet
    """
    if progress.total and progress.completed + progress.skipped == progress.total:
        return "completed"
    if progress.in_progress == 0 and progress.blocked > 0:
        return "blocked"
    if progress.in_progress or progress.completed or progress.skipped or progress.blocked:
        return "in-progress"
    return "pending"


def status_summary(plan: Plan, config: PlanflowConfig | None = None) -> str:
    """Get a human-readable status summary."""
    progress = compute_progress(plan.steps)
    lines = [
        f"Plan: {plan.metadata.title} ({plan.plan_id})",
        f"Type: {plan.plan_type}",
        f"Progress: {progress.completed}/{progress.total} steps ({progress.percent_complete}%)",
    ]

    if progress.skipped:
        lines.append(f"Skipped: {progress.skipped} steps")
    if progress.blocked:
        blocked = [s for s in plan.steps if s.state is StepStatus.BLOCKED]
        for step in blocked:
            lines.append(f"Blocked: {step.id} - {step.status.block_reason}")

    if plan.is_complete():
        lines.append("Status: COMPLETE")
        return "\n".join(lines)

    next_step = EligibilityChecker(plan, config).next_step()
    if next_step:
        lines.append(f"Next: {next_step.id} - {next_step.title}")
    elif progress.in_progress:
        lines.append("Status: IN PROGRESS - No other steps can start yet")
    else:
        lines.append("Status: BLOCKED - No available steps")
    return "\n".join(lines)
