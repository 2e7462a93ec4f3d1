"""
Layout Deriver
==============

Layered positions for drawing the dependency graph.

Each level from ``DependencyGraph.level`` is a row at
``y = level * vertical_spacing``; steps in a row are centred around x = 0
with ``horizontal_spacing`` between them, in declaration order. Status only
feeds presentation hints (colour, animated edges), never positions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from .config import DEFAULT_CONFIG, PlanflowConfig
from .enums import StepStatus
from .graph import DependencyGraph

logger = logging.getLogger(__name__)

STATUS_COLORS: dict[StepStatus, str] = {
    StepStatus.DONE: "#22c55e",
    StepStatus.IN_PROGRESS: "#3b82f6",
    StepStatus.BLOCKED: "#ef4444",
    StepStatus.SKIPPED: "#a1a1aa",
    StepStatus.PENDING: "#6b7280",
}


@dataclass(frozen=True)
class LayoutNode:
    id: str
    x: float
    y: float
    level: int
    label: str
    kind: str
    status: StepStatus
    color: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": {"x": self.x, "y": self.y},
            "level": self.level,
            "label": self.label,
            "kind": self.kind,
            "status": self.status.value,
            "color": self.color,
        }


def edge_id(source: str, target: str) -> str:
    """Edge ID ``source-target``, unique for every pair.

    Backslashes and hyphens inside step IDs are backslash-escaped, so the
    only bare hyphen is the separator: ("a", "b-c") gives ``a-b\\-c`` and
    ("a-b", "c") gives ``a\\-b-c``.
    """

    def escape(step_id: str) -> str:
        return step_id.replace("\\", "\\\\").replace("-", "\\-")

    return f"{escape(source)}-{escape(target)}"


@dataclass(frozen=True)
class LayoutEdge:
    id: str
    source: str
    target: str
    animated: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "animated": self.animated,
        }


@dataclass(frozen=True)
class Layout:
    nodes: list[LayoutNode] = field(default_factory=list)
    edges: list[LayoutEdge] = field(default_factory=list)

    def node(self, step_id: str) -> LayoutNode | None:
        return next((n for n in self.nodes if n.id == step_id), None)

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


def derive_layout(
    graph: DependencyGraph,
    config: PlanflowConfig | None = None,
    statuses: Mapping[str, StepStatus] | None = None,
) -> Layout:
    """Compute node positions and edges for a dependency graph.

    ``statuses`` overrides the statuses recorded on the graph's steps; it only
    changes colours and edge animation.
    """
    config = config or DEFAULT_CONFIG
    statuses = statuses or {}

    def status_of(step_id: str) -> StepStatus:
        return StepStatus(statuses.get(step_id, graph.step(step_id).state))

    positions: dict[str, tuple[float, float]] = {}
    for level, row in enumerate(graph.levels()):
        width = len(row)
        for position, step_id in enumerate(row):
            offset = position - (width - 1) / 2
            positions[step_id] = (
                offset * config.horizontal_spacing,
                level * config.vertical_spacing,
            )

    nodes = []
    for step_id in graph:
        step = graph.step(step_id)
        status = status_of(step_id)
        x, y = positions[step_id]
        nodes.append(
            LayoutNode(
                id=step_id,
                x=x,
                y=y,
                level=graph.level(step_id),
                label=step.title,
                kind=step.kind,
                status=status,
                color=STATUS_COLORS[status],
            )
        )

    edges = [
        LayoutEdge(
            id=edge_id(source, target),
            source=source,
            target=target,
            animated=status_of(target) is StepStatus.IN_PROGRESS,
        )
        for source, target in graph.edges()
    ]

    logger.debug(f"Derived layout: {len(nodes)} nodes, {len(edges)} edges")
    return Layout(nodes=nodes, edges=edges)
