#!/usr/bin/env python3
"""
Enumerations for Plan Tracking
==============================

Defines all enum types used in plan documents: plan types, step kinds,
step statuses and action types.
"""

from enum import Enum


class PlanType(str, Enum):
    """Kinds of plans a document can describe."""

    FEATURE = "feature"
    REFACTOR = "refactor"
    MIGRATION = "migration"
    BUGFIX = "bugfix"
    OPTIMIZATION = "optimization"
    DOCUMENTATION = "documentation"


class StepKind(str, Enum):
    """What a step does."""

    CREATE_FILE = "create_file"
    EDIT_FILE = "edit_file"
    DELETE_FILE = "delete_file"
    RUN_COMMAND = "run_command"
    TEST = "test"
    REVIEW = "review"
    DOCUMENTATION = "documentation"
    CUSTOM = "custom"


class StepStatus(str, Enum):
    """Status of a step."""

    PENDING = "pending"  # Not started
    IN_PROGRESS = "in-progress"  # Currently being worked on
    DONE = "done"  # Completed successfully
    BLOCKED = "blocked"  # Stopped, see blockReason
    SKIPPED = "skipped"  # Deliberately bypassed


class ActionType(str, Enum):
    """Tag of an action inside a step."""

    CREATE_FILE = "create_file"
    EDIT_FILE = "edit_file"
    DELETE_FILE = "delete_file"
    RUN_COMMAND = "run_command"
    TEST = "test"
    REVIEW = "review"
    DOCUMENTATION = "documentation"
    CUSTOM = "custom"


# Statuses that need no further work
TERMINAL_STATUSES = frozenset({StepStatus.DONE, StepStatus.SKIPPED})

# Statuses that carry a startedAt timestamp
STARTED_STATUSES = frozenset(
    {
        StepStatus.IN_PROGRESS,
        StepStatus.DONE,
        StepStatus.BLOCKED,
        StepStatus.SKIPPED,
    }
)

# Spellings seen in older documents
STATUS_ALIASES: dict[str, str] = {
    "in_progress": StepStatus.IN_PROGRESS.value,
    "inprogress": StepStatus.IN_PROGRESS.value,
    "completed": StepStatus.DONE.value,
    "complete": StepStatus.DONE.value,
    "not_started": StepStatus.PENDING.value,
    "todo": StepStatus.PENDING.value,
}
