"""
Plan Validator
==============

Runs the schema pass and, when it passes, the semantic pass over a raw plan
document.
"""

from __future__ import annotations

import logging
from typing import Any

from ..config import DEFAULT_CONFIG, PlanflowConfig
from .models import ValidationResult
from .validators import SchemaValidator, SemanticValidator

logger = logging.getLogger(__name__)


class PlanValidator:
    """Validates plan documents end to end."""

    def __init__(self, config: PlanflowConfig | None = None):
        self.config = config or DEFAULT_CONFIG
        self.schema_validator = SchemaValidator(self.config)
        self.semantic_validator = SemanticValidator()

    def validate(self, document: Any) -> ValidationResult:
        """Validate structure, then cross-references.

        Semantic checks assume a well-typed document, so they are skipped
        entirely when the schema pass reports errors.
        """
        structural = self.schema_validator.validate(document)
        if not structural.is_valid:
            logger.debug("Skipping semantic validation after structural errors")
            return structural

        semantic = self.semantic_validator.validate(structural.plan)
        return structural.merge(semantic)


def validate_plan(document: Any, config: PlanflowConfig | None = None) -> ValidationResult:
    """Validate a raw plan document (schema, then semantics)."""
    return PlanValidator(config).validate(document)
