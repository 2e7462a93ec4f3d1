"""
Status Engine
=============

State machine for step statuses.

Transitions are a pure function of the current status record, the request
and a context (clock, eligibility, accepted vocabulary):

    pending     -> in-progress   only if canStart allows it; sets startedAt
    pending     -> skipped       sets startedAt and completedAt
    in-progress -> done          sets completedAt
    in-progress -> blocked       requires a blockReason
    in-progress -> skipped       sets completedAt
    blocked     -> in-progress   clears blockReason
    blocked     -> pending       clears blockReason and startedAt

Anything else is an invalid transition. ``done`` and ``skipped`` are left only
through ``reopen``, an explicit action separate from status writes.

The engine checks a transition against a snapshot; serialising concurrent
writers is the job of whatever applies the result to the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .config import DEFAULT_CONFIG, PlanflowConfig
from .eligibility import EligibilityChecker, EligibilityResult
from .enums import STATUS_ALIASES, TERMINAL_STATUSES, StepStatus
from .errors import (
    ErrorKind,
    IneligibleStartError,
    InvalidTransitionError,
    PlanflowError,
    StepNotFoundError,
)
from .models import Plan, StepState

logger = logging.getLogger(__name__)

TRANSITIONS: dict[StepStatus, frozenset[StepStatus]] = {
    StepStatus.PENDING: frozenset({StepStatus.IN_PROGRESS, StepStatus.SKIPPED}),
    StepStatus.IN_PROGRESS: frozenset(
        {StepStatus.DONE, StepStatus.BLOCKED, StepStatus.SKIPPED}
    ),
    StepStatus.BLOCKED: frozenset({StepStatus.IN_PROGRESS, StepStatus.PENDING}),
    StepStatus.DONE: frozenset(),
    StepStatus.SKIPPED: frozenset(),
}


_STATUS_VALUES = {s.value for s in StepStatus}


def _coerce_status(value: Any) -> Any:
    """Return the StepStatus a value names, or the value unchanged."""
    if isinstance(value, StepStatus) or not isinstance(value, str):
        return value
    normalized = value.strip().lower()
    normalized = STATUS_ALIASES.get(normalized, normalized)
    if normalized in _STATUS_VALUES:
        return StepStatus(normalized)
    return value


@dataclass(frozen=True)
class TransitionRequest:
    """A requested status change for one step.

    ``target`` is a StepStatus when the requested value names one. Anything
    else (an unknown name, a missing status) is kept as given and refused by
    ``transition`` with an invalid-transition result.
    """

    target: StepStatus | Any
    notes: str | None = None
    block_reason: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "target", _coerce_status(self.target))

    @classmethod
    def from_dict(cls, data: dict) -> TransitionRequest:
        return cls(
            target=data.get("status"),
            notes=data.get("notes"),
            block_reason=data.get("blockReason"),
        )


@dataclass(frozen=True)
class TransitionContext:
    """Everything a transition may depend on besides the status itself."""

    now: datetime
    # Required when starting a pending step
    eligibility: EligibilityResult | None = None
    allowed_statuses: tuple[str, ...] = field(
        default_factory=lambda: tuple(s.value for s in StepStatus)
    )


@dataclass(frozen=True)
class TransitionError:
    kind: ErrorKind
    message: str
    missing_dependencies: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = {"kind": self.kind.value, "message": self.message}
        if self.missing_dependencies:
            result["missingDependencies"] = list(self.missing_dependencies)
        return result


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a transition: the new status record, or why it was refused."""

    step_id: str
    previous: StepStatus
    state: StepState
    error: TransitionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result = {
            "ok": self.ok,
            "stepId": self.step_id,
            "from": self.previous.value,
            "to": self.state.state,
            "status": self.state.to_dict(),
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result

    def raise_for_error(self) -> None:
        if self.error is None:
            return
        if self.error.kind is ErrorKind.INELIGIBLE_START:
            raise IneligibleStartError(
                self.error.message,
                step_id=self.step_id,
                missing_dependencies=self.error.missing_dependencies,
            )
        if self.error.kind is ErrorKind.INVALID_TRANSITION:
            raise InvalidTransitionError(self.error.message, step_id=self.step_id)
        raise PlanflowError(self.error.message)


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())


def _reject(
    step_id: str,
    current: StepState,
    message: str,
    kind: ErrorKind = ErrorKind.INVALID_TRANSITION,
    missing: list[str] | None = None,
) -> TransitionResult:
    return TransitionResult(
        step_id=step_id,
        previous=current.status,
        state=current,
        error=TransitionError(kind=kind, message=message, missing_dependencies=missing or []),
    )


def transition(
    current: StepState,
    request: TransitionRequest,
    context: TransitionContext,
    step_id: str = "",
) -> TransitionResult:
    """Apply one status change to a status record, without side effects."""
    source = current.status
    label = f"step {step_id!r}" if step_id else "step"

    target = request.target
    if target is None:
        return _reject(step_id, current, "A target status is required")
    if not isinstance(target, StepStatus):
        return _reject(step_id, current, f"Unknown status '{target}'")

    if target.value not in context.allowed_statuses:
        return _reject(step_id, current, f"Status '{target.value}' is not enabled")

    if target not in TRANSITIONS[source]:
        return _reject(
            step_id,
            current,
            f"Cannot move {label} from '{source.value}' to '{target.value}'",
        )

    if target is StepStatus.BLOCKED:
        if not _has_text(request.block_reason):
            return _reject(step_id, current, "A blockReason is required to block a step")
    elif request.block_reason is not None:
        if source is StepStatus.BLOCKED:
            message = "blockReason must be cleared when unblocking a step"
        else:
            message = "blockReason is only accepted when blocking a step"
        return _reject(step_id, current, message)

    if source is StepStatus.PENDING and target is StepStatus.IN_PROGRESS:
        if context.eligibility is None:
            raise ValueError("An eligibility result is required to start a pending step")
        if not context.eligibility.allowed:
            return _reject(
                step_id,
                current,
                context.eligibility.reason or f"{label} cannot start yet",
                kind=ErrorKind.INELIGIBLE_START,
                missing=list(context.eligibility.missing_dependencies),
            )

    now = context.now
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if current.started_at is not None and now < current.started_at:
        now = current.started_at
    notes = request.notes if request.notes is not None else current.notes

    if target is StepStatus.PENDING:
        new_state = StepState(state=target.value, notes=notes)
    elif target is StepStatus.IN_PROGRESS:
        new_state = StepState(
            state=target.value, started_at=current.started_at or now, notes=notes
        )
    elif target is StepStatus.BLOCKED:
        new_state = StepState(
            state=target.value,
            started_at=current.started_at or now,
            notes=notes,
            block_reason=request.block_reason.strip(),
        )
    else:
        # done or skipped
        new_state = StepState(
            state=target.value,
            started_at=current.started_at or now,
            completed_at=now,
            notes=notes,
        )

    return TransitionResult(step_id=step_id, previous=source, state=new_state)


def reopen(current: StepState, step_id: str = "", notes: str | None = None) -> TransitionResult:
    """Send a finished (done or skipped) step back to pending.

    This is the only way out of a terminal status; timestamps are cleared.
    """
    if current.status not in TERMINAL_STATUSES:
        return _reject(
            step_id,
            current,
            f"Only done or skipped steps can be reopened, not '{current.state}'",
        )
    new_state = StepState(
        state=StepStatus.PENDING.value,
        notes=notes if notes is not None else current.notes,
    )
    return TransitionResult(step_id=step_id, previous=current.status, state=new_state)


class StatusEngine:
    """Applies transitions to plan snapshots."""

    def __init__(self, config: PlanflowConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def _now(self, plan: Plan, now: datetime | None) -> datetime:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        # Keep updatedAt monotonic even if the clock goes backwards
        return max(now, plan.metadata.updated_at)

    def check(
        self,
        plan: Plan,
        step_id: str,
        request: TransitionRequest,
        now: datetime | None = None,
    ) -> TransitionResult:
        """Check a transition against a plan snapshot without applying it."""
        step = plan.get_step(step_id)
        if step is None:
            raise StepNotFoundError(step_id)

        eligibility = None
        if step.state is StepStatus.PENDING and request.target is StepStatus.IN_PROGRESS:
            eligibility = EligibilityChecker(plan, self.config).can_start(step_id)

        context = TransitionContext(
            now=self._now(plan, now),
            eligibility=eligibility,
            allowed_statuses=self.config.statuses,
        )
        return transition(step.status, request, context, step_id=step_id)

    def apply(
        self,
        plan: Plan,
        step_id: str,
        request: TransitionRequest,
        now: datetime | None = None,
    ) -> tuple[Plan, TransitionResult]:
        """Apply a transition, returning the new snapshot and the result.

        A refused transition returns the original plan unchanged.
        """
        now = self._now(plan, now)
        result = self.check(plan, step_id, request, now=now)
        if not result.ok:
            logger.warning(f"Rejected transition for {step_id}: {result.error.message}")
            return plan, result

        logger.info(
            f"Step {step_id}: {result.previous.value} -> {result.state.state} "
            f"(plan {plan.plan_id} revision {plan.metadata.revision + 1})"
        )
        return plan.with_step_state(step_id, result.state, now), result

    def reopen(
        self,
        plan: Plan,
        step_id: str,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> tuple[Plan, TransitionResult]:
        """Reopen a done or skipped step as an explicit action."""
        step = plan.get_step(step_id)
        if step is None:
            raise StepNotFoundError(step_id)

        result = reopen(step.status, step_id=step_id, notes=notes)
        if not result.ok:
            logger.warning(f"Rejected reopen for {step_id}: {result.error.message}")
            return plan, result

        logger.info(f"Step {step_id} reopened (plan {plan.plan_id})")
        return plan.with_step_state(step_id, result.state, self._now(plan, now)), result


def apply_transition(
    plan: Plan,
    step_id: str,
    request: TransitionRequest,
    config: PlanflowConfig | None = None,
    now: datetime | None = None,
) -> tuple[Plan, TransitionResult]:
    """Apply a status transition to a plan snapshot."""
    return StatusEngine(config).apply(plan, step_id, request, now=now)
