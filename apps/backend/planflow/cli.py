#!/usr/bin/env python3
"""
Planflow CLI
============

Command-line access to plan validation, progress, layout and status changes.

Usage:
    planflow validate plan.json
    planflow progress plan.json --group-by kind
    planflow layout plan.json
    planflow can-start plan.json step-2
    planflow next plan.json
    planflow transition plan.json step-2 in-progress --notes "Picked up"
    planflow format

Output is JSON on stdout. The exit code is 1 when validation fails or a
transition is rejected.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import PlanflowConfig
from .eligibility import EligibilityChecker
from .enums import StepStatus
from .errors import PlanflowError
from .graph import DependencyGraph
from .layout import derive_layout
from .models import Plan
from .phases import by_declared_phase, by_kind, group_consecutive_phases
from .progress import compute_phase_progress, compute_progress, plan_status, status_summary
from .status_engine import StatusEngine, TransitionRequest
from .store import write_json_atomic
from .validation import get_plan_format, validate_plan

logger = logging.getLogger(__name__)

GROUPINGS = {"kind": by_kind, "phase": by_declared_phase}


def setup_logging(verbose: bool = False) -> None:
    level_name = "DEBUG" if verbose else os.environ.get("PLANFLOW_LOG_LEVEL", "WARNING")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _emit(data: dict) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _load_valid_plan(path: Path, config: PlanflowConfig) -> Plan | None:
    """Validate a plan file; print the validation result and return None on failure."""
    with open(path, encoding="utf-8") as f:
        document = json.load(f)
    result = validate_plan(document, config)
    if not result.is_valid:
        _emit(result.to_dict())
        return None
    return result.plan


def cmd_validate(args: argparse.Namespace, config: PlanflowConfig) -> int:
    with open(args.file, encoding="utf-8") as f:
        document = json.load(f)
    result = validate_plan(document, config)
    _emit(result.to_dict())
    return 0 if result.is_valid else 1


def cmd_progress(args: argparse.Namespace, config: PlanflowConfig) -> int:
    plan = _load_valid_plan(args.file, config)
    if plan is None:
        return 1

    progress = compute_progress(plan.steps)
    output = {**progress.to_dict(), "status": plan_status(progress)}
    if args.group_by:
        output["groups"] = [
            g.to_dict() for g in compute_phase_progress(plan.steps, GROUPINGS[args.group_by])
        ]
    if args.summary:
        output["summary"] = status_summary(plan, config)
        output["phases"] = [g.to_dict() for g in group_consecutive_phases(plan.steps)]
    _emit(output)
    return 0


def cmd_layout(args: argparse.Namespace, config: PlanflowConfig) -> int:
    plan = _load_valid_plan(args.file, config)
    if plan is None:
        return 1
    _emit(derive_layout(DependencyGraph.from_plan(plan), config).to_dict())
    return 0


def cmd_can_start(args: argparse.Namespace, config: PlanflowConfig) -> int:
    plan = _load_valid_plan(args.file, config)
    if plan is None:
        return 1
    result = EligibilityChecker(plan, config).can_start(args.step_id)
    _emit(result.to_dict())
    return 0


def cmd_next(args: argparse.Namespace, config: PlanflowConfig) -> int:
    plan = _load_valid_plan(args.file, config)
    if plan is None:
        return 1
    checker = EligibilityChecker(plan, config)
    step = checker.next_step()
    _emit(
        {
            "next": step.to_dict() if step else None,
            "available": [s.id for s in checker.available_steps()],
            "waitingOnDependencies": [s.id for s in checker.waiting_on_dependencies()],
        }
    )
    return 0


def cmd_transition(args: argparse.Namespace, config: PlanflowConfig) -> int:
    plan = _load_valid_plan(args.file, config)
    if plan is None:
        return 1

    request = TransitionRequest(
        target=StepStatus(args.status),
        notes=args.notes,
        block_reason=args.block_reason,
    )
    new_plan, result = StatusEngine(config).apply(plan, args.step_id, request)
    _emit(result.to_dict())
    if not result.ok:
        return 1

    write_json_atomic(args.file, new_plan.to_dict())
    return 0


def cmd_format(args: argparse.Namespace, config: PlanflowConfig) -> int:
    _emit(get_plan_format(config))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="planflow",
        description="Validate plans and track step progress",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Environment file with PLANFLOW_* settings (default: ./.env)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a plan document")
    validate.add_argument("file", type=Path)
    validate.set_defaults(func=cmd_validate)

    progress = subparsers.add_parser("progress", help="Show plan progress")
    progress.add_argument("file", type=Path)
    progress.add_argument("--group-by", choices=sorted(GROUPINGS), default=None)
    progress.add_argument("--summary", action="store_true", help="Include a text summary")
    progress.set_defaults(func=cmd_progress)

    layout = subparsers.add_parser("layout", help="Derive graph layout")
    layout.add_argument("file", type=Path)
    layout.set_defaults(func=cmd_layout)

    can_start = subparsers.add_parser("can-start", help="Check if a step can start")
    can_start.add_argument("file", type=Path)
    can_start.add_argument("step_id")
    can_start.set_defaults(func=cmd_can_start)

    next_step = subparsers.add_parser("next", help="Show the next step to work on")
    next_step.add_argument("file", type=Path)
    next_step.set_defaults(func=cmd_next)

    transition = subparsers.add_parser("transition", help="Change a step's status")
    transition.add_argument("file", type=Path)
    transition.add_argument("step_id")
    transition.add_argument("status", choices=[s.value for s in StepStatus])
    transition.add_argument("--notes", default=None)
    transition.add_argument("--block-reason", default=None)
    transition.set_defaults(func=cmd_transition)

    fmt = subparsers.add_parser("format", help="Print the plan JSON Schema")
    fmt.set_defaults(func=cmd_format)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.env_file.exists():
        load_dotenv(args.env_file)
    setup_logging(args.verbose)

    config = PlanflowConfig.from_env()
    config_errors = config.get_validation_errors()
    if config_errors:
        for error in config_errors:
            print(f"Config error: {error}", file=sys.stderr)
        return 2

    logger.debug(f"Running planflow {args.command}")
    try:
        return args.func(args, config)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except PlanflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
