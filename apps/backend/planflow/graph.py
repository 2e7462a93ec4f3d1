"""
Dependency Graph
================

In-memory dependency graph over the steps of a validated plan.

Edges are kept as adjacency maps keyed by step ID, never as object
references between steps. Construction refuses duplicate IDs, dangling
references, self-dependencies and cycles: callers validate first (see
``planflow.validation.validate_plan``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

from .errors import GraphConstructionError, StepNotFoundError
from .models import Plan, Step
from .validation.validators.semantic_validator import build_adjacency, find_cycles

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Steps and their dependency edges, with level and reachability queries."""

    def __init__(self, steps: Sequence[Step]):
        self._steps: dict[str, Step] = {}
        for step in steps:
            if step.id in self._steps:
                raise GraphConstructionError(f"Duplicate step ID: {step.id}")
            self._steps[step.id] = step

        for step in steps:
            for dep in step.depends_on:
                if dep == step.id:
                    raise GraphConstructionError(f'Step "{step.id}" depends on itself')
                if dep not in self._steps:
                    raise GraphConstructionError(
                        f'Step "{step.id}" depends on non-existent step "{dep}"'
                    )

        self._dependencies: dict[str, tuple[str, ...]] = {
            step_id: tuple(deps) for step_id, deps in build_adjacency(steps).items()
        }
        cycles = find_cycles(self._dependencies)
        if cycles:
            raise GraphConstructionError(
                "Cyclic dependency detected: " + " -> ".join(cycles[0])
            )

        self._index = {step_id: i for i, step_id in enumerate(self._steps)}
        dependents: dict[str, list[str]] = {step_id: [] for step_id in self._steps}
        for step_id, deps in self._dependencies.items():
            for dep in deps:
                dependents[dep].append(step_id)
        self._dependents = {k: tuple(v) for k, v in dependents.items()}
        self._levels: dict[str, int] = {}

        logger.debug(
            f"Built dependency graph: {len(self._steps)} steps, {len(self.edges())} edges"
        )

    @classmethod
    def from_plan(cls, plan: Plan) -> DependencyGraph:
        return cls(plan.steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[str]:
        return iter(self._steps)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._steps

    def _require(self, step_id: str) -> None:
        if step_id not in self._steps:
            raise StepNotFoundError(step_id)

    @property
    def step_ids(self) -> tuple[str, ...]:
        """Step IDs in declaration order."""
        return tuple(self._steps)

    def step(self, step_id: str) -> Step:
        self._require(step_id)
        return self._steps[step_id]

    def index(self, step_id: str) -> int:
        """Declaration index of a step in the plan."""
        self._require(step_id)
        return self._index[step_id]

    def dependencies(self, step_id: str) -> tuple[str, ...]:
        """Direct dependencies, in dependsOn order."""
        self._require(step_id)
        return self._dependencies[step_id]

    def dependents(self, step_id: str) -> frozenset[str]:
        """Steps that list ``step_id`` in their dependsOn."""
        self._require(step_id)
        return frozenset(self._dependents[step_id])

    def ordered_dependents(self, step_id: str) -> tuple[str, ...]:
        """Direct dependents in declaration order."""
        self._require(step_id)
        return self._dependents[step_id]

    def level(self, step_id: str) -> int:
        """Depth of a step: 0 without dependencies, else 1 + deepest dependency."""
        self._require(step_id)
        if step_id in self._levels:
            return self._levels[step_id]

        # Memoised DFS without recursion; terminates because the graph is acyclic
        stack = [step_id]
        while stack:
            current = stack[-1]
            if current in self._levels:
                stack.pop()
                continue
            pending = [d for d in self._dependencies[current] if d not in self._levels]
            if pending:
                stack.extend(pending)
                continue
            deps = self._dependencies[current]
            self._levels[current] = 1 + max(self._levels[d] for d in deps) if deps else 0
            stack.pop()
        return self._levels[step_id]

    def levels(self) -> list[list[str]]:
        """Step IDs grouped by level, each group in declaration order."""
        grouped: list[list[str]] = []
        for step_id in self._steps:
            level = self.level(step_id)
            while len(grouped) <= level:
                grouped.append([])
            grouped[level].append(step_id)
        return grouped

    def _closure(self, step_id: str, neighbours: dict[str, tuple[str, ...]]) -> frozenset[str]:
        self._require(step_id)
        seen: set[str] = set()
        stack = list(neighbours[step_id])
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(neighbours[current])
        return frozenset(seen)

    def ancestors(self, step_id: str) -> frozenset[str]:
        """Every step ``step_id`` depends on, directly or transitively."""
        return self._closure(step_id, self._dependencies)

    def descendants(self, step_id: str) -> frozenset[str]:
        """Every step that depends on ``step_id``, directly or transitively."""
        return self._closure(step_id, self._dependents)

    def roots(self) -> list[str]:
        """Steps without dependencies."""
        return [s for s in self._steps if not self._dependencies[s]]

    def leaves(self) -> list[str]:
        """Steps nothing depends on."""
        return [s for s in self._steps if not self._dependents[s]]

    def edges(self) -> list[tuple[str, str]]:
        """(dependency, dependent) pairs, ordered by dependent then dependsOn."""
        return [
            (dep, step_id)
            for step_id in self._steps
            for dep in self._dependencies[step_id]
        ]

    def topological_order(self) -> list[str]:
        """Execution order: by level, ties broken by declaration order."""
        return sorted(self._steps, key=lambda s: (self.level(s), self._index[s]))
