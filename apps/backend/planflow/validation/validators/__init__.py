"""
Validators
==========

Individual validation passes for plan documents.
"""

from .schema_validator import SchemaValidator, validate_schema
from .semantic_validator import SemanticValidator, find_cycles, validate_semantics

__all__ = [
    "SchemaValidator",
    "SemanticValidator",
    "find_cycles",
    "validate_schema",
    "validate_semantics",
]
