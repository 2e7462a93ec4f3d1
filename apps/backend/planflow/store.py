"""
Plan Store
==========

Narrow load/save interface to wherever plans are persisted, plus a JSON
file implementation (one ``<planId>.json`` per plan).

The store does not serialise concurrent writers. Whatever applies status
transitions must hold a per-plan lock around load, transition and save.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from .config import DEFAULT_CONFIG, PlanflowConfig
from .errors import PlanNotFoundError
from .models import Plan
from .validation import validate_schema

logger = logging.getLogger(__name__)


class PlanStore(Protocol):
    """Where plans live between requests."""

    def load(self, plan_id: str) -> Plan: ...

    def save(self, plan: Plan) -> None: ...


def write_json_atomic(path: Path, data: Any, indent: int = 2) -> None:
    """Write JSON to a temp file next to ``path``, then rename it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_plan_file(path: Path, config: PlanflowConfig | None = None) -> Plan:
    """Load and structurally validate a plan document from a JSON file.

    Raises:
        StructuralError: if the document does not match the schema
    """
    with open(path, encoding="utf-8") as f:
        document = json.load(f)
    result = validate_schema(document, config)
    result.raise_for_errors()
    return result.plan


class JsonFilePlanStore:
    """Plans stored as JSON files in one directory."""

    def __init__(self, directory: Path | str, config: PlanflowConfig | None = None):
        self.directory = Path(directory)
        self.config = config or DEFAULT_CONFIG

    def path_for(self, plan_id: str) -> Path:
        if not plan_id or "/" in plan_id or "\\" in plan_id or plan_id.startswith("."):
            raise ValueError(f"Invalid plan ID for file storage: {plan_id!r}")
        return self.directory / f"{plan_id}.json"

    def exists(self, plan_id: str) -> bool:
        return self.path_for(plan_id).exists()

    def load(self, plan_id: str) -> Plan:
        path = self.path_for(plan_id)
        if not path.exists():
            raise PlanNotFoundError(plan_id)
        return load_plan_file(path, self.config)

    def save(self, plan: Plan) -> None:
        path = self.path_for(plan.plan_id)
        write_json_atomic(path, plan.to_dict())
        logger.info(f"Saved plan {plan.plan_id} (revision {plan.metadata.revision}) to {path}")

    def list_ids(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
