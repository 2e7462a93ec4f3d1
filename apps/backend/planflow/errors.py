"""
Planflow Errors
===============

Error kinds reported in validation and transition results, and the
exceptions callers can raise from them.

Validation and transition problems are returned as data so they can be shown
to a user directly. The exceptions exist for callers that prefer raising
(``ValidationResult.raise_for_errors()``, ``TransitionResult.raise_for_error()``)
and for contract violations such as building a graph over unvalidated input.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a validation or transition problem."""

    STRUCTURAL = "structural"
    REFERENTIAL = "referential"
    SELF_DEPENDENCY = "self_dependency"
    CYCLIC_DEPENDENCY = "cyclic_dependency"
    INVALID_TRANSITION = "invalid_transition"
    INELIGIBLE_START = "ineligible_start"


class WarningKind(str, Enum):
    """Category of a non-blocking validation finding."""

    EMPTY_PLAN = "empty_plan"
    ORPHAN_STEP = "orphan_step"
    MISSING_VALIDATION_CRITERIA = "missing_validation_criteria"


class PlanflowError(Exception):
    """Base class for all planflow errors."""

    kind: ErrorKind | None = None


class StructuralError(PlanflowError):
    """Document shape, type or enum mismatch."""

    kind = ErrorKind.STRUCTURAL

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class ReferentialError(PlanflowError):
    """Duplicate step ID or reference to a step that does not exist."""

    kind = ErrorKind.REFERENTIAL

    def __init__(self, message: str, step_id: str | None = None):
        super().__init__(message)
        self.step_id = step_id


class SelfDependencyError(ReferentialError):
    """A step lists itself in dependsOn."""

    kind = ErrorKind.SELF_DEPENDENCY


class CyclicDependencyError(PlanflowError):
    """Dependency cycle between steps."""

    kind = ErrorKind.CYCLIC_DEPENDENCY

    def __init__(self, cycle: list[str] | None = None, message: str | None = None):
        self.cycle = list(cycle or [])
        if message is None:
            message = "Cyclic dependency detected"
            if self.cycle:
                message += ": " + " -> ".join(self.cycle)
        super().__init__(message)


class InvalidTransitionError(PlanflowError):
    """Requested status change is not in the transition table."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, message: str, step_id: str | None = None):
        super().__init__(message)
        self.step_id = step_id


class IneligibleStartError(PlanflowError):
    """Start requested while dependencies are unsatisfied."""

    kind = ErrorKind.INELIGIBLE_START

    def __init__(
        self,
        message: str,
        step_id: str | None = None,
        missing_dependencies: list[str] | None = None,
    ):
        super().__init__(message)
        self.step_id = step_id
        self.missing_dependencies = list(missing_dependencies or [])


class GraphConstructionError(PlanflowError):
    """DependencyGraph built over input that was not validated first."""


class StepNotFoundError(PlanflowError):
    """Step ID is not part of the plan."""

    def __init__(self, step_id: str):
        super().__init__(f"Step {step_id!r} not found")
        self.step_id = step_id


class PlanNotFoundError(PlanflowError):
    """Plan ID is not present in the store."""

    def __init__(self, plan_id: str):
        super().__init__(f"Plan with ID {plan_id} not found")
        self.plan_id = plan_id

