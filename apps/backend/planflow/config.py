"""
Planflow Configuration
======================

Recognised options for validating and viewing plans.

A ``PlanflowConfig`` value is passed explicitly to every validator, graph
helper and view so that several configurations can live in one process.

Environment Variables:
    PLANFLOW_MAX_STEPS: Maximum number of steps in a plan (default: 200)
    PLANFLOW_PLAN_TYPES: Comma-separated list of accepted plan types
    PLANFLOW_STEP_KINDS: Comma-separated list of accepted step kinds
    PLANFLOW_STATUSES: Comma-separated list of accepted step statuses
    PLANFLOW_SKIPPED_SATISFIES_DEPENDENCIES: Let skipped steps unlock dependents
    PLANFLOW_HORIZONTAL_SPACING: Layout spacing between steps of a level (default: 300)
    PLANFLOW_VERTICAL_SPACING: Layout spacing between levels (default: 150)
    PLANFLOW_SCHEMA_VERSIONS: Comma-separated list of accepted schema versions
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from .enums import PlanType, StepKind, StepStatus

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULT_MAX_STEPS = 200
DEFAULT_HORIZONTAL_SPACING = 300
DEFAULT_VERTICAL_SPACING = 150
DEFAULT_SCHEMA_VERSIONS = ("1.0.0", "1.1.0")

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off"}


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    logger.warning(f"Invalid {name}={raw!r}, using default {default}")
    return default


def _env_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "")
    values = _split_csv(raw)
    return values or default


@dataclass(frozen=True)
class PlanflowConfig:
    """Options recognised by validators, eligibility checks and layout."""

    max_steps: int = DEFAULT_MAX_STEPS
    plan_types: tuple[str, ...] = field(
        default_factory=lambda: tuple(t.value for t in PlanType)
    )
    step_kinds: tuple[str, ...] = field(
        default_factory=lambda: tuple(k.value for k in StepKind)
    )
    statuses: tuple[str, ...] = field(
        default_factory=lambda: tuple(s.value for s in StepStatus)
    )
    skipped_satisfies_dependencies: bool = False
    horizontal_spacing: int = DEFAULT_HORIZONTAL_SPACING
    vertical_spacing: int = DEFAULT_VERTICAL_SPACING
    supported_schema_versions: tuple[str, ...] = DEFAULT_SCHEMA_VERSIONS

    @classmethod
    def from_env(cls) -> PlanflowConfig:
        """Create config from environment variables."""
        defaults = cls()
        return cls(
            max_steps=_env_int("PLANFLOW_MAX_STEPS", defaults.max_steps),
            plan_types=_env_csv("PLANFLOW_PLAN_TYPES", defaults.plan_types),
            step_kinds=_env_csv("PLANFLOW_STEP_KINDS", defaults.step_kinds),
            statuses=_env_csv("PLANFLOW_STATUSES", defaults.statuses),
            skipped_satisfies_dependencies=_env_bool(
                "PLANFLOW_SKIPPED_SATISFIES_DEPENDENCIES",
                defaults.skipped_satisfies_dependencies,
            ),
            horizontal_spacing=_env_int(
                "PLANFLOW_HORIZONTAL_SPACING", defaults.horizontal_spacing
            ),
            vertical_spacing=_env_int(
                "PLANFLOW_VERTICAL_SPACING", defaults.vertical_spacing
            ),
            supported_schema_versions=_env_csv(
                "PLANFLOW_SCHEMA_VERSIONS", defaults.supported_schema_versions
            ),
        )

    def is_valid(self) -> bool:
        return not self.get_validation_errors()

    def get_validation_errors(self) -> list[str]:
        """Get list of validation errors for current configuration."""
        errors = []

        if self.max_steps <= 0:
            errors.append(f"max_steps must be positive, got {self.max_steps}")

        for name, values, known in (
            ("plan_types", self.plan_types, {t.value for t in PlanType}),
            ("step_kinds", self.step_kinds, {k.value for k in StepKind}),
            ("statuses", self.statuses, {s.value for s in StepStatus}),
        ):
            if not values:
                errors.append(f"{name} must not be empty")
                continue
            unknown = sorted(set(values) - known)
            if unknown:
                errors.append(f"{name} contains unknown values: {', '.join(unknown)}")

        if self.statuses and StepStatus.PENDING.value not in self.statuses:
            errors.append("statuses must include 'pending'")

        if self.horizontal_spacing <= 0:
            errors.append("horizontal_spacing must be positive")
        if self.vertical_spacing <= 0:
            errors.append("vertical_spacing must be positive")
        if not self.supported_schema_versions:
            errors.append("supported_schema_versions must not be empty")

        return errors


DEFAULT_CONFIG = PlanflowConfig()
