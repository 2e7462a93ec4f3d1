"""
Semantic Validator
==================

Validates cross-references between the steps of a structurally valid plan.

Checks, in order:
1. Duplicate step IDs (one error per duplicate)
2. Dangling dependsOn references (one error per missing ID)
3. Dependency cycles (one error per group of interlocking cycles, carrying a
   full closed path)
4. Self-dependencies (reported separately from cycles)

Warnings flag empty plans, orphan steps and test/review steps without
validation criteria.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from ...errors import ErrorKind, WarningKind
from ...enums import StepKind
from ...models import Plan, Step
from ..models import ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

# DFS node colours
_UNVISITED, _IN_PROGRESS, _FINISHED = 0, 1, 2

_CRITERIA_KINDS = {StepKind.TEST.value, StepKind.REVIEW.value}


def build_adjacency(steps: Sequence[Step]) -> dict[str, list[str]]:
    """Map each step ID to the IDs it depends on.

    Only edges between known steps are kept, self-edges are dropped, and the
    first declaration of a duplicated ID wins.
    """
    known = {s.id for s in steps}
    adjacency: dict[str, list[str]] = {}
    for step in steps:
        if step.id in adjacency:
            continue
        adjacency[step.id] = [d for d in step.depends_on if d in known and d != step.id]
    return adjacency


def _known_edges(adjacency: Mapping[str, Iterable[str]]) -> dict[str, list[str]]:
    # Nodes that are not keys have no outgoing edges and cannot be on a cycle
    return {node: [d for d in deps if d in adjacency] for node, deps in adjacency.items()}


def _components(edges: dict[str, list[str]]) -> dict[str, int]:
    """Number the strongly connected components (iterative Kosaraju)."""
    finish_order: list[str] = []
    visited: set[str] = set()
    for root in edges:
        if root in visited:
            continue
        visited.add(root)
        stack = [(root, iter(edges[root]))]
        while stack:
            node, deps = stack[-1]
            for dep in deps:
                if dep not in visited:
                    visited.add(dep)
                    stack.append((dep, iter(edges[dep])))
                    break
            else:
                finish_order.append(node)
                stack.pop()

    reverse: dict[str, list[str]] = {node: [] for node in edges}
    for node, deps in edges.items():
        for dep in deps:
            reverse[dep].append(node)

    component: dict[str, int] = {}
    number = -1
    for root in reversed(finish_order):
        if root in component:
            continue
        number += 1
        component[root] = number
        pending = [root]
        while pending:
            node = pending.pop()
            for other in reverse[node]:
                if other not in component:
                    component[other] = number
                    pending.append(other)
    return component


def find_cycles(adjacency: Mapping[str, Iterable[str]]) -> list[list[str]]:
    """Find dependency cycles with a three-colour depth-first traversal.

    Every edge into a node still on the DFS path closes a cycle. Cycles that
    share steps belong to one strongly connected group and are reported once,
    as the longest closed path found for that group (``["A", "C", "B", "A"]``).
    Scanning continues after the first hit so independent cycles are all
    reported, in discovery order.

    IDs named in a dependency list but missing from the keys are ignored.
    """
    edges = _known_edges(adjacency)
    component = _components(edges)
    color = {node: _UNVISITED for node in edges}
    longest: dict[int, list[str]] = {}

    for root in edges:
        if color[root] != _UNVISITED:
            continue
        path = [root]
        color[root] = _IN_PROGRESS
        stack = [iter(edges[root])]

        while stack:
            node = path[-1]
            for dep in stack[-1]:
                if color[dep] == _IN_PROGRESS:
                    cycle = path[path.index(dep) :] + [dep]
                    group = component[dep]
                    if group not in longest or len(cycle) > len(longest[group]):
                        longest[group] = cycle
                elif color[dep] == _UNVISITED:
                    color[dep] = _IN_PROGRESS
                    path.append(dep)
                    stack.append(iter(edges[dep]))
                    break
            else:
                color[node] = _FINISHED
                path.pop()
                stack.pop()

    # dicts keep first-insertion order, so groups come out in discovery order
    return list(longest.values())


class SemanticValidator:
    """Validates references and dependency structure between steps."""

    def validate(self, plan: Plan | Sequence[Step]) -> ValidationResult:
        steps = list(plan.steps if isinstance(plan, Plan) else plan)

        errors: list[ValidationIssue] = []
        errors.extend(self._check_duplicate_ids(steps))
        errors.extend(self._check_dangling_references(steps))
        errors.extend(self._check_cycles(steps))
        errors.extend(self._check_self_dependencies(steps))

        warnings = self._collect_warnings(steps)

        logger.debug(
            f"Semantic validation: {len(errors)} error(s), {len(warnings)} warning(s)"
        )
        return ValidationResult.from_issues(
            errors, warnings, plan=plan if isinstance(plan, Plan) else None
        )

    def _check_duplicate_ids(self, steps: list[Step]) -> list[ValidationIssue]:
        errors = []
        first_index: dict[str, int] = {}
        for index, step in enumerate(steps):
            if step.id in first_index:
                errors.append(
                    ValidationIssue(
                        kind=ErrorKind.REFERENTIAL,
                        path=f"steps[{index}].id",
                        message=f"Duplicate step ID: {step.id}",
                        details={"stepId": step.id, "firstIndex": first_index[step.id]},
                    )
                )
            else:
                first_index[step.id] = index
        return errors

    def _check_dangling_references(self, steps: list[Step]) -> list[ValidationIssue]:
        errors = []
        known = {s.id for s in steps}
        for index, step in enumerate(steps):
            for dep_index, dep in enumerate(step.depends_on):
                if dep not in known:
                    errors.append(
                        ValidationIssue(
                            kind=ErrorKind.REFERENTIAL,
                            path=f"steps[{index}].dependsOn[{dep_index}]",
                            message=f'Step "{step.id}" depends on non-existent step "{dep}"',
                            details={"stepId": step.id, "missingId": dep},
                        )
                    )
        return errors

    def _check_cycles(self, steps: list[Step]) -> list[ValidationIssue]:
        index_of: dict[str, int] = {}
        for index, step in enumerate(steps):
            index_of.setdefault(step.id, index)

        errors = []
        for cycle in find_cycles(build_adjacency(steps)):
            errors.append(
                ValidationIssue(
                    kind=ErrorKind.CYCLIC_DEPENDENCY,
                    path=f"steps[{index_of[cycle[0]]}].dependsOn",
                    message="Cyclic dependency detected: " + " -> ".join(cycle),
                    details={"cycle": cycle},
                )
            )
        return errors

    def _check_self_dependencies(self, steps: list[Step]) -> list[ValidationIssue]:
        errors = []
        for index, step in enumerate(steps):
            for dep_index, dep in enumerate(step.depends_on):
                if dep == step.id:
                    errors.append(
                        ValidationIssue(
                            kind=ErrorKind.SELF_DEPENDENCY,
                            path=f"steps[{index}].dependsOn[{dep_index}]",
                            message=f'Step "{step.id}" depends on itself',
                            details={"stepId": step.id},
                        )
                    )
        return errors

    def _collect_warnings(self, steps: list[Step]) -> list[ValidationIssue]:
        warnings = []
        if not steps:
            warnings.append(
                ValidationIssue(
                    kind=WarningKind.EMPTY_PLAN,
                    path="steps",
                    message="Plan has no steps",
                )
            )
            return warnings

        has_dependents: set[str] = set()
        for deps in build_adjacency(steps).values():
            has_dependents.update(deps)

        for index, step in enumerate(steps):
            real_deps = [d for d in step.depends_on if d != step.id]
            if len(steps) > 1 and not real_deps and step.id not in has_dependents:
                warnings.append(
                    ValidationIssue(
                        kind=WarningKind.ORPHAN_STEP,
                        path=f"steps[{index}]",
                        message=f'Step "{step.id}" has no dependencies and no dependents',
                        details={"stepId": step.id},
                    )
                )
            if step.kind in _CRITERIA_KINDS and not step.has_validation_criteria:
                warnings.append(
                    ValidationIssue(
                        kind=WarningKind.MISSING_VALIDATION_CRITERIA,
                        path=f"steps[{index}].validation",
                        message=f'{step.kind.capitalize()} step "{step.id}" has no validation criteria',
                        details={"stepId": step.id},
                    )
                )
        return warnings


def validate_semantics(plan: Plan | Sequence[Step]) -> ValidationResult:
    """Validate cross-step references of a structurally valid plan."""
    return SemanticValidator().validate(plan)
