"""
Validation Models
=================

Data models for validation results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..errors import (
    CyclicDependencyError,
    ErrorKind,
    PlanflowError,
    ReferentialError,
    SelfDependencyError,
    StructuralError,
    WarningKind,
)

if TYPE_CHECKING:
    from ..models import Plan


@dataclass
class ValidationIssue:
    """One validation error or warning, located by a document path."""

    kind: ErrorKind | WarningKind
    path: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        result = {
            "kind": self.kind.value,
            "path": self.path,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def to_exception(self) -> PlanflowError:
        """Build the exception matching this issue's kind."""
        step_id = self.details.get("stepId")
        if self.kind is ErrorKind.STRUCTURAL:
            return StructuralError(self.message, path=self.path)
        if self.kind is ErrorKind.SELF_DEPENDENCY:
            return SelfDependencyError(self.message, step_id=step_id)
        if self.kind is ErrorKind.REFERENTIAL:
            return ReferentialError(self.message, step_id=step_id)
        if self.kind is ErrorKind.CYCLIC_DEPENDENCY:
            return CyclicDependencyError(self.details.get("cycle"), message=self.message)
        return PlanflowError(self.message)

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass
class ValidationResult:
    """Result of a validation pass."""

    is_valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    # Parsed plan, set by the schema pass when the document is well-formed
    plan: Plan | None = None

    @classmethod
    def from_issues(
        cls,
        errors: list[ValidationIssue],
        warnings: list[ValidationIssue] | None = None,
        plan: Plan | None = None,
    ) -> ValidationResult:
        return cls(
            is_valid=not errors,
            errors=list(errors),
            warnings=list(warnings or []),
            plan=plan,
        )

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Combine two results; the later pass's parsed plan wins."""
        return ValidationResult.from_issues(
            self.errors + other.errors,
            self.warnings + other.warnings,
            plan=other.plan or self.plan,
        )

    def error_kinds(self) -> set[ErrorKind]:
        return {e.kind for e in self.errors}

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }

    def raise_for_errors(self) -> None:
        """Raise the exception for the first error, if any."""
        if self.errors:
            raise self.errors[0].to_exception()

    def format_errors(self) -> str:
        """Format errors as a numbered list for display."""
        if not self.errors:
            return "No errors"
        return "\n".join(f"{i}. {err}" for i, err in enumerate(self.errors, 1))
