"""
Plan Document Schema
====================

JSON Schema of the plan document, for clients that author plans.
"""

from __future__ import annotations

from ..config import DEFAULT_CONFIG, PlanflowConfig
from ..models import Plan

PLAN_SCHEMA_ID = "https://planflow.dev/schemas/plan.json"


def get_plan_format(config: PlanflowConfig | None = None) -> dict:
    """Return the JSON Schema for plan documents.

    Enum-like fields are plain strings in the models (their vocabulary is
    configurable), so the configured values are written into the schema here.
    """
    config = config or DEFAULT_CONFIG
    schema = Plan.model_json_schema(by_alias=True)
    schema["$id"] = PLAN_SCHEMA_ID

    properties = schema["properties"]
    properties["schemaVersion"]["enum"] = list(config.supported_schema_versions)
    properties["planType"]["enum"] = list(config.plan_types)
    properties["steps"]["maxItems"] = config.max_steps

    definitions = schema.get("$defs", {})
    if "Step" in definitions:
        definitions["Step"]["properties"]["kind"]["enum"] = list(config.step_kinds)
    if "StepState" in definitions:
        definitions["StepState"]["properties"]["state"]["enum"] = list(config.statuses)
    return schema
