"""
Plan Document Models
====================

Pydantic models for plan documents: Plan, its metadata and details block,
Steps, their status record and the tagged action variants.

Enum-like fields (plan type, step kind, status) are checked against the
``PlanflowConfig`` passed in the validation context, so that one process can
validate plans under several configurations:

    plan = Plan.model_validate(document, context={"config": config})

Models are frozen snapshots. Changing a step's status produces a new Plan
(see ``Plan.with_step_state``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .config import DEFAULT_CONFIG, PlanflowConfig
from .enums import (
    STARTED_STATUSES,
    STATUS_ALIASES,
    TERMINAL_STATUSES,
    StepStatus,
)


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Timestamp = Annotated[datetime, AfterValidator(_as_utc)]


def _config_from(info: ValidationInfo) -> PlanflowConfig:
    context = info.context or {}
    return context.get("config") or DEFAULT_CONFIG


def step_count_message(max_steps: int, count: int) -> str:
    return f"at most {max_steps} steps allowed, got {count}"


def _one_of(value: str, allowed: tuple[str, ...]) -> str:
    if value not in allowed:
        raise ValueError(
            f"'{value}' is not one of: {', '.join(repr(a) for a in allowed)}"
        )
    return value


class PlanflowModel(BaseModel):
    """Base model: camelCase aliases on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# Actions
# =============================================================================


class ActionBase(PlanflowModel):
    description: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)


class CreateFileAction(ActionBase):
    type: Literal["create_file"]
    file_path: str | None = None
    content: str | None = None


class EditFileAction(ActionBase):
    type: Literal["edit_file"]
    file_path: str | None = None
    before: str | None = None
    after: str | None = None


class DeleteFileAction(ActionBase):
    type: Literal["delete_file"]
    file_path: str = Field(min_length=1)
    reason: str | None = None


class RunCommandAction(ActionBase):
    type: Literal["run_command"]
    command: str | None = None
    working_directory: str | None = None
    expected_output: str | None = None


class RunTestsAction(ActionBase):
    type: Literal["test"]
    test_command: str | None = None
    test_files: list[str] = Field(default_factory=list)


class ReviewAction(ActionBase):
    type: Literal["review"]
    checklist_items: list[str] = Field(default_factory=list)
    reviewers: list[str] = Field(default_factory=list)


class DocumentationAction(ActionBase):
    type: Literal["documentation"]
    sections: list[str] = Field(default_factory=list)
    file_path: str | None = None


class CustomAction(ActionBase):
    type: Literal["custom"]
    description: str = Field(min_length=1)


Action = Annotated[
    Union[
        CreateFileAction,
        EditFileAction,
        DeleteFileAction,
        RunCommandAction,
        RunTestsAction,
        ReviewAction,
        DocumentationAction,
        CustomAction,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Steps
# =============================================================================


class ValidationCriteria(PlanflowModel):
    """How to tell a step is finished."""

    criteria: list[str] = Field(default_factory=list)
    automated_tests: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.criteria and not self.automated_tests


class StepState(PlanflowModel):
    """Status of a step plus its tracking fields."""

    state: str = StepStatus.PENDING.value
    started_at: Timestamp | None = None
    completed_at: Timestamp | None = None
    notes: str | None = None
    block_reason: str | None = None

    @field_validator("state", mode="before")
    @classmethod
    def _normalize_state(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return STATUS_ALIASES.get(value, value)
        return value

    @field_validator("state")
    @classmethod
    def _check_state(cls, value: str, info: ValidationInfo) -> str:
        return _one_of(value, _config_from(info).statuses)

    @model_validator(mode="after")
    def _check_tracking_fields(self) -> StepState:
        status = StepStatus(self.state)

        if status in TERMINAL_STATUSES and self.completed_at is None:
            raise ValueError(f"completedAt is required when status is '{status.value}'")
        if status not in TERMINAL_STATUSES and self.completed_at is not None:
            raise ValueError(f"completedAt must not be set when status is '{status.value}'")

        if status in STARTED_STATUSES and self.started_at is None:
            raise ValueError(f"startedAt is required when status is '{status.value}'")
        if status not in STARTED_STATUSES and self.started_at is not None:
            raise ValueError(f"startedAt must not be set when status is '{status.value}'")

        has_reason = bool(self.block_reason and self.block_reason.strip())
        if status is StepStatus.BLOCKED and not has_reason:
            raise ValueError("blockReason is required when status is 'blocked'")
        if status is not StepStatus.BLOCKED and self.block_reason is not None:
            raise ValueError("blockReason is only allowed when status is 'blocked'")

        if (
            self.started_at is not None
            and self.completed_at is not None
            and self.completed_at < self.started_at
        ):
            raise ValueError("completedAt must not be earlier than startedAt")
        return self

    @property
    def status(self) -> StepStatus:
        return StepStatus(self.state)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class Step(PlanflowModel):
    """A single unit of work within a plan."""

    # Unknown keys (comments, reviewStatus, diagram, ...) are kept as-is
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str
    kind: str
    depends_on: list[str] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    validation: ValidationCriteria | None = None
    status: StepState = Field(default_factory=StepState)

    @field_validator("kind")
    @classmethod
    def _check_kind(cls, value: str, info: ValidationInfo) -> str:
        return _one_of(value, _config_from(info).step_kinds)

    @field_validator("depends_on")
    @classmethod
    def _check_depends_on(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        for dep in value:
            if not dep:
                raise ValueError("dependency IDs must not be empty")
            if dep in seen:
                raise ValueError(f"duplicate dependency '{dep}'")
            seen.add(dep)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _expand_bare_status(cls, value: Any) -> Any:
        # "status": "done" is shorthand for {"state": "done"}
        if value is None:
            return {}
        if isinstance(value, str):
            return {"state": value}
        return value

    @property
    def state(self) -> StepStatus:
        return self.status.status

    @property
    def has_validation_criteria(self) -> bool:
        return self.validation is not None and not self.validation.is_empty()

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# =============================================================================
# Plan
# =============================================================================


class PlanMetadata(PlanflowModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    author: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: Timestamp
    updated_at: Timestamp
    revision: int = Field(default=0, ge=0)

    @field_validator("author")
    @classmethod
    def _check_author(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("author cannot be empty if provided")
        return value

    @field_validator("updated_at")
    @classmethod
    def _check_updated_after_created(cls, value: datetime, info: ValidationInfo) -> datetime:
        created_at = info.data.get("created_at")
        if created_at is not None and value < created_at:
            raise ValueError("updatedAt must not be earlier than createdAt")
        return value


class PlanDetails(PlanflowModel):
    """Objective, scope and constraints of a plan."""

    objective: str = Field(min_length=1)
    scope: str = ""
    constraints: list[str] = Field(default_factory=list)
    assumptions: list[str] = Field(default_factory=list)
    success_criteria: list[str] = Field(default_factory=list)


class Plan(PlanflowModel):
    """Complete plan document."""

    model_config = ConfigDict(extra="allow")

    plan_id: str = Field(min_length=1)
    schema_version: str
    plan_type: str
    metadata: PlanMetadata
    details: PlanDetails = Field(alias="plan")
    steps: list[Step]

    @field_validator("schema_version")
    @classmethod
    def _check_schema_version(cls, value: str, info: ValidationInfo) -> str:
        return _one_of(value, _config_from(info).supported_schema_versions)

    @field_validator("plan_type")
    @classmethod
    def _check_plan_type(cls, value: str, info: ValidationInfo) -> str:
        return _one_of(value, _config_from(info).plan_types)

    @field_validator("steps")
    @classmethod
    def _check_step_count(cls, value: list[Step], info: ValidationInfo) -> list[Step]:
        max_steps = _config_from(info).max_steps
        if len(value) > max_steps:
            raise ValueError(step_count_message(max_steps, len(value)))
        return value

    @classmethod
    def from_dict(cls, data: Any, config: PlanflowConfig | None = None) -> Plan:
        """Create Plan from a raw document. Raises pydantic.ValidationError."""
        return cls.model_validate(data, context={"config": config or DEFAULT_CONFIG})

    def to_dict(self) -> dict:
        """Convert to the JSON document shape."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

    @property
    def step_ids(self) -> list[str]:
        return [s.id for s in self.steps]

    def get_step(self, step_id: str) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def status_map(self) -> dict[str, StepStatus]:
        """Current status of every step, keyed by step ID."""
        return {s.id: s.state for s in self.steps}

    def is_complete(self) -> bool:
        """Check if every step reached a terminal status."""
        return bool(self.steps) and all(s.status.is_terminal for s in self.steps)

    def with_step_state(self, step_id: str, state: StepState, now: datetime) -> Plan:
        """Return a new snapshot with one step's status replaced.

        Bumps ``metadata.revision`` and moves ``metadata.updatedAt`` forward.
        """
        steps = [
            s.model_copy(update={"status": state}) if s.id == step_id else s
            for s in self.steps
        ]
        updated_at = max(_as_utc(now), self.metadata.updated_at)
        metadata = self.metadata.model_copy(
            update={"revision": self.metadata.revision + 1, "updated_at": updated_at}
        )
        return self.model_copy(update={"steps": steps, "metadata": metadata})
