"""
Schema Validator
================

Validates a raw plan document against the structural schema: required
fields, primitive types, enum membership and bounds. Cross-step
relationships are left to the semantic validator.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ...config import DEFAULT_CONFIG, PlanflowConfig
from ...enums import ActionType
from ...errors import ErrorKind
from ...models import Plan, step_count_message
from ..models import ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

_ACTION_TAGS = {t.value for t in ActionType}


def format_loc(loc: tuple[int | str, ...]) -> str:
    """Render a pydantic error location as a path like ``steps[3].kind``."""
    parts: list[str] = []
    for i, segment in enumerate(loc):
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
            continue
        # Discriminated unions add the tag as an extra segment: actions[0].delete_file.filePath
        if (
            segment in _ACTION_TAGS
            and i >= 2
            and isinstance(loc[i - 1], int)
            and loc[i - 2] == "actions"
        ):
            continue
        parts.append(f".{segment}" if parts else segment)
    return "".join(parts) or "root"


def _message_for(error: dict[str, Any], path: str) -> str:
    if error["type"] == "missing":
        return f"Missing required field '{path}'"
    message = error["msg"]
    # Messages from our own field validators
    if message.startswith("Value error, "):
        message = message[len("Value error, ") :]
    return message


class SchemaValidator:
    """Validates plan documents against the structural schema."""

    def __init__(self, config: PlanflowConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def _check_step_count(self, document: Any) -> ValidationIssue | None:
        """Check the step limit on the raw list.

        Pydantic skips the model's own limit check when any step fails, so the
        bound is checked here before parsing.
        """
        if not isinstance(document, dict):
            return None
        steps = document.get("steps")
        if not isinstance(steps, list) or len(steps) <= self.config.max_steps:
            return None
        return ValidationIssue(
            kind=ErrorKind.STRUCTURAL,
            path="steps",
            message=step_count_message(self.config.max_steps, len(steps)),
            details={"type": "value_error"},
        )

    def validate(self, document: Any) -> ValidationResult:
        """Check a raw document and return every structural violation.

        On success the parsed ``Plan`` is attached to the result.
        """
        count_issue = self._check_step_count(document)
        try:
            plan = Plan.from_dict(document, self.config)
        except ValidationError as e:
            errors = [count_issue] if count_issue else []
            for error in e.errors(include_url=False):
                path = format_loc(tuple(error["loc"]))
                if count_issue and path == "steps" and error["type"] == "value_error":
                    # Already reported by the pre-parse check
                    continue
                errors.append(
                    ValidationIssue(
                        kind=ErrorKind.STRUCTURAL,
                        path=path,
                        message=_message_for(error, path),
                        details={"type": error["type"]},
                    )
                )
            logger.debug(f"Schema validation failed with {len(errors)} error(s)")
            return ValidationResult.from_issues(errors)

        logger.debug(f"Schema validation passed for plan {plan.plan_id}")
        return ValidationResult.from_issues([], plan=plan)


def validate_schema(document: Any, config: PlanflowConfig | None = None) -> ValidationResult:
    """Validate a raw plan document's structure."""
    return SchemaValidator(config).validate(document)
