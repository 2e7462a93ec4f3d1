"""
Plan Editing
============

Structural edits to a plan: adding, removing and updating steps, and
updating the plan's metadata and details block.

Every edit rebuilds the raw document and runs it through ``validate_plan``
again, so an edited plan holds the same invariants as a freshly loaded one.
A successful edit returns a new snapshot with ``revision + 1`` and an
``updatedAt`` that never moves backwards; a refused edit returns the
validation errors and no plan.

Step statuses are not edited here. They change through the status engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .config import DEFAULT_CONFIG, PlanflowConfig
from .errors import ErrorKind, StepNotFoundError
from .models import Plan
from .validation import ValidationIssue, ValidationResult, validate_plan

logger = logging.getLogger(__name__)

REMOVE_MODES = ("strict", "cascade")

EDITABLE_METADATA = ("title", "description", "author", "tags")
EDITABLE_DETAILS = ("objective", "scope", "constraints", "assumptions", "successCriteria")

# Keys update_step refuses: identity is fixed, status goes through StatusEngine
_FIXED_STEP_KEYS = ("id", "status")


@dataclass
class EditResult:
    """Outcome of a structural edit."""

    validation: ValidationResult
    # New snapshot, set only when the edit was accepted
    plan: Plan | None = None

    @property
    def ok(self) -> bool:
        return self.plan is not None

    def to_dict(self) -> dict:
        result = {"ok": self.ok, **self.validation.to_dict()}
        if self.plan is not None:
            result["plan"] = self.plan.to_dict()
        return result


def _refuse(path: str, message: str, **details) -> EditResult:
    issue = ValidationIssue(
        kind=ErrorKind.STRUCTURAL, path=path, message=message, details=details
    )
    return EditResult(validation=ValidationResult.from_issues([issue]))


class PlanEditor:
    """Applies structural edits to plan snapshots."""

    def __init__(self, config: PlanflowConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def _revalidate(
        self, plan: Plan, document: dict, action: str, now: datetime | None
    ) -> EditResult:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        updated_at = max(now, plan.metadata.updated_at)

        document["metadata"]["revision"] = plan.metadata.revision + 1
        document["metadata"]["updatedAt"] = updated_at.isoformat()

        result = validate_plan(document, self.config)
        if not result.is_valid:
            logger.warning(
                f"Rejected {action} on plan {plan.plan_id}: {len(result.errors)} error(s)"
            )
            return EditResult(validation=result)

        logger.info(
            f"Plan {plan.plan_id}: applied {action} (revision {result.plan.metadata.revision})"
        )
        return EditResult(validation=result, plan=result.plan)

    def _index_of(self, plan: Plan, step_id: str) -> int:
        for index, step in enumerate(plan.steps):
            if step.id == step_id:
                return index
        raise StepNotFoundError(step_id)

    def add_step(
        self, plan: Plan, step: dict[str, Any], now: datetime | None = None
    ) -> EditResult:
        """Append a raw step to the plan.

        Duplicate IDs, unknown dependencies and new cycles are reported by the
        semantic pass like any other document error.
        """
        document = plan.to_dict()
        document["steps"].append(dict(step))
        return self._revalidate(plan, document, f"add step {step.get('id')!r}", now)

    def remove_step(
        self,
        plan: Plan,
        step_id: str,
        mode: str = "strict",
        now: datetime | None = None,
    ) -> EditResult:
        """Remove a step.

        In ``strict`` mode a step that other steps depend on is refused, with
        one error per referencing dependsOn entry. In ``cascade`` mode those
        references are dropped along with the step.

        Raises:
            StepNotFoundError: if the step is not part of the plan
            ValueError: if mode is not "strict" or "cascade"
        """
        if mode not in REMOVE_MODES:
            raise ValueError(f"mode must be one of {REMOVE_MODES}, got {mode!r}")
        self._index_of(plan, step_id)

        references = [
            (index, dep_index, step.id)
            for index, step in enumerate(plan.steps)
            for dep_index, dep in enumerate(step.depends_on)
            if dep == step_id
        ]
        if references and mode == "strict":
            errors = [
                ValidationIssue(
                    kind=ErrorKind.REFERENTIAL,
                    path=f"steps[{index}].dependsOn[{dep_index}]",
                    message=f'Cannot remove step "{step_id}": step "{dependent}" depends on it',
                    details={"stepId": dependent, "removedId": step_id},
                )
                for index, dep_index, dependent in references
            ]
            logger.warning(
                f"Rejected removal of {step_id} from plan {plan.plan_id}: "
                f"{len(errors)} reference(s)"
            )
            return EditResult(validation=ValidationResult.from_issues(errors))

        document = plan.to_dict()
        steps = []
        for raw in document["steps"]:
            if raw["id"] == step_id:
                continue
            raw["dependsOn"] = [d for d in raw.get("dependsOn", []) if d != step_id]
            steps.append(raw)
        document["steps"] = steps
        return self._revalidate(plan, document, f"remove step {step_id!r} ({mode})", now)

    def update_step(
        self,
        plan: Plan,
        step_id: str,
        updates: dict[str, Any],
        now: datetime | None = None,
    ) -> EditResult:
        """Replace fields of one step with the given document-shaped values.

        Keys are the camelCase document keys (``dependsOn``, ``validation``...).
        ``id`` and ``status`` cannot be updated here.

        Raises:
            StepNotFoundError: if the step is not part of the plan
        """
        index = self._index_of(plan, step_id)
        for key in _FIXED_STEP_KEYS:
            if key in updates:
                return _refuse(
                    f"steps[{index}].{key}",
                    f"Step field '{key}' cannot be changed by an update",
                    stepId=step_id,
                )

        document = plan.to_dict()
        document["steps"][index].update(updates)
        return self._revalidate(plan, document, f"update step {step_id!r}", now)

    def update_metadata(
        self,
        plan: Plan,
        metadata: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> EditResult:
        """Update the metadata block and the plan details block.

        Only the descriptive fields are editable: title, description, author
        and tags in metadata, and everything in the details block.
        """
        metadata = metadata or {}
        details = details or {}
        for section, values, editable in (
            ("metadata", metadata, EDITABLE_METADATA),
            ("plan", details, EDITABLE_DETAILS),
        ):
            for key in values:
                if key not in editable:
                    return _refuse(f"{section}.{key}", f"Field '{key}' cannot be edited")

        document = plan.to_dict()
        document["metadata"].update(metadata)
        document["plan"].update(details)
        return self._revalidate(plan, document, "update metadata", now)


def add_step(
    plan: Plan,
    step: dict[str, Any],
    config: PlanflowConfig | None = None,
    now: datetime | None = None,
) -> EditResult:
    """Add a raw step to a plan snapshot."""
    return PlanEditor(config).add_step(plan, step, now=now)


def remove_step(
    plan: Plan,
    step_id: str,
    mode: str = "strict",
    config: PlanflowConfig | None = None,
    now: datetime | None = None,
) -> EditResult:
    """Remove a step from a plan snapshot ("strict" or "cascade")."""
    return PlanEditor(config).remove_step(plan, step_id, mode=mode, now=now)


def update_step(
    plan: Plan,
    step_id: str,
    updates: dict[str, Any],
    config: PlanflowConfig | None = None,
    now: datetime | None = None,
) -> EditResult:
    """Update one step of a plan snapshot."""
    return PlanEditor(config).update_step(plan, step_id, updates, now=now)


def update_metadata(
    plan: Plan,
    metadata: dict[str, Any] | None = None,
    details: dict[str, Any] | None = None,
    config: PlanflowConfig | None = None,
    now: datetime | None = None,
) -> EditResult:
    """Update a plan snapshot's metadata and details."""
    return PlanEditor(config).update_metadata(plan, metadata, details, now=now)
