"""
Phase Detection
===============

Grouping keys for phase-level progress: the step kind, a phase declared on
the step itself, or a phase guessed from the step's title and description.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .enums import StepKind
from .models import Step

SETUP_KEYWORDS = (
    "setup",
    "set up",
    "init",
    "install",
    "configure",
    "create directory",
    "scaffold",
    "boilerplate",
    "prepare",
    "environment",
)
TEST_KEYWORDS = (
    "test",
    "spec",
    "pytest",
    "e2e",
    "integration",
    "coverage",
)
DEPLOY_KEYWORDS = (
    "deploy",
    "build",
    "publish",
    "release",
    "docker",
    "kubernetes",
    "ci/cd",
    "pipeline",
)
DOC_KEYWORDS = (
    "documentation",
    "readme",
    "docs",
    "docstring",
    "changelog",
    "api doc",
)

KIND_PHASES: dict[str, str] = {
    StepKind.CREATE_FILE.value: "implementation",
    StepKind.EDIT_FILE.value: "implementation",
    StepKind.DELETE_FILE.value: "cleanup",
    StepKind.RUN_COMMAND.value: "execution",
    StepKind.TEST.value: "test",
    StepKind.REVIEW.value: "review",
    StepKind.DOCUMENTATION.value: "documentation",
}

PHASE_NAMES: dict[str, str] = {
    "setup": "Setup",
    "implementation": "Implementation",
    "test": "Tests",
    "review": "Review",
    "documentation": "Documentation",
    "execution": "Execution",
    "deploy": "Deployment",
    "cleanup": "Cleanup",
    "other": "Other",
}


def by_kind(step: Step) -> str:
    return step.kind


def detect_phase(step: Step) -> str:
    """Guess a step's phase from its text, falling back to its kind."""
    text = f"{step.title} {step.description}".lower()

    if any(kw in text for kw in SETUP_KEYWORDS):
        return "setup"
    if any(kw in text for kw in TEST_KEYWORDS):
        return "test"
    if any(kw in text for kw in DEPLOY_KEYWORDS):
        return "deploy"
    if any(kw in text for kw in DOC_KEYWORDS):
        return "documentation"
    return KIND_PHASES.get(step.kind, "other")


def by_declared_phase(step: Step) -> str:
    """Phase named on the step (``"phase": "..."``), else the detected one."""
    declared = (step.model_extra or {}).get("phase")
    if isinstance(declared, str) and declared.strip():
        return declared.strip()
    return detect_phase(step)


@dataclass
class PhaseGroup:
    """A run of consecutive steps sharing a phase."""

    phase: str
    name: str
    step_indexes: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"phase": self.phase, "name": self.name, "stepIndexes": self.step_indexes}


def group_consecutive_phases(steps: Sequence[Step]) -> list[PhaseGroup]:
    """Group consecutive steps of the same detected phase."""
    groups: list[PhaseGroup] = []
    for index, step in enumerate(steps):
        phase = detect_phase(step)
        if groups and groups[-1].phase == phase:
            groups[-1].step_indexes.append(index)
        else:
            groups.append(
                PhaseGroup(phase=phase, name=PHASE_NAMES.get(phase, phase), step_indexes=[index])
            )
    return groups
