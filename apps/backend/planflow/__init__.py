#!/usr/bin/env python3
"""
Planflow Package
================

Execution tracking for structured plans: a set of steps with typed
dependencies, each carrying a status.

The flow for a raw plan document:

    result = validate_plan(document, config)   # schema, then semantics
    graph = DependencyGraph.from_plan(result.plan)
    EligibilityChecker(result.plan, config).can_start("step-2")
    StatusEngine(config).apply(result.plan, "step-2", TransitionRequest(StepStatus.IN_PROGRESS))
    compute_progress(result.plan.steps)
    derive_layout(graph, config)

Package Structure:
- enums.py: PlanType, StepKind, StepStatus, ActionType
- config.py: PlanflowConfig, the options injected into every component
- errors.py: error kinds and exceptions
- models.py: pydantic models for plan documents
- validation/: schema and semantic validators
- graph.py: DependencyGraph (levels, dependents, ancestors, descendants)
- eligibility.py: canStart and navigation
- status_engine.py: status transitions
- editing.py: structural edits (add, remove and update steps; metadata)
- progress.py / phases.py: plan and phase progress
- layout.py: layered layout for graph viewers
- store.py: load/save interface and JSON file store
"""

from .config import DEFAULT_CONFIG, PlanflowConfig
from .editing import (
    EditResult,
    PlanEditor,
    add_step,
    remove_step,
    update_metadata,
    update_step,
)
from .eligibility import EligibilityChecker, EligibilityResult, can_start
from .enums import ActionType, PlanType, StepKind, StepStatus
from .errors import (
    CyclicDependencyError,
    ErrorKind,
    GraphConstructionError,
    IneligibleStartError,
    InvalidTransitionError,
    PlanflowError,
    PlanNotFoundError,
    ReferentialError,
    SelfDependencyError,
    StepNotFoundError,
    StructuralError,
    WarningKind,
)
from .graph import DependencyGraph
from .layout import Layout, LayoutEdge, LayoutNode, derive_layout
from .models import Plan, PlanDetails, PlanMetadata, Step, StepState, ValidationCriteria
from .phases import by_declared_phase, by_kind, detect_phase, group_consecutive_phases
from .progress import (
    PhaseProgress,
    ProgressReport,
    compute_phase_progress,
    compute_progress,
    plan_status,
    status_summary,
)
from .status_engine import (
    TRANSITIONS,
    StatusEngine,
    TransitionContext,
    TransitionRequest,
    TransitionResult,
    apply_transition,
    reopen,
    transition,
)
from .store import JsonFilePlanStore, PlanStore
from .validation import (
    ValidationIssue,
    ValidationResult,
    get_plan_format,
    validate_plan,
    validate_schema,
    validate_semantics,
)

__all__ = [
    # Config
    "DEFAULT_CONFIG",
    "PlanflowConfig",
    # Enums
    "ActionType",
    "PlanType",
    "StepKind",
    "StepStatus",
    # Errors
    "CyclicDependencyError",
    "ErrorKind",
    "GraphConstructionError",
    "IneligibleStartError",
    "InvalidTransitionError",
    "PlanNotFoundError",
    "PlanflowError",
    "ReferentialError",
    "SelfDependencyError",
    "StepNotFoundError",
    "StructuralError",
    "WarningKind",
    # Models
    "Plan",
    "PlanDetails",
    "PlanMetadata",
    "Step",
    "StepState",
    "ValidationCriteria",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    "get_plan_format",
    "validate_plan",
    "validate_schema",
    "validate_semantics",
    # Graph and views
    "DependencyGraph",
    "EligibilityChecker",
    "EligibilityResult",
    "can_start",
    "Layout",
    "LayoutEdge",
    "LayoutNode",
    "derive_layout",
    "PhaseProgress",
    "ProgressReport",
    "compute_phase_progress",
    "compute_progress",
    "plan_status",
    "status_summary",
    "by_declared_phase",
    "by_kind",
    "detect_phase",
    "group_consecutive_phases",
    # Status engine
    "TRANSITIONS",
    "StatusEngine",
    "TransitionContext",
    "TransitionRequest",
    "TransitionResult",
    "apply_transition",
    "reopen",
    "transition",
    # Editing
    "EditResult",
    "PlanEditor",
    "add_step",
    "remove_step",
    "update_metadata",
    "update_step",
    # Store
    "JsonFilePlanStore",
    "PlanStore",
]
