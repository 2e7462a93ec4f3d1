"""
Plan Validation Package
=======================

Validation of plan documents: a structural schema pass and a semantic pass
over step references.
"""

from .models import ValidationIssue, ValidationResult
from .plan_validator import PlanValidator, validate_plan
from .schemas import get_plan_format
from .validators import (
    SchemaValidator,
    SemanticValidator,
    find_cycles,
    validate_schema,
    validate_semantics,
)

__all__ = [
    "PlanValidator",
    "SchemaValidator",
    "SemanticValidator",
    "ValidationIssue",
    "ValidationResult",
    "find_cycles",
    "get_plan_format",
    "validate_plan",
    "validate_schema",
    "validate_semantics",
]
