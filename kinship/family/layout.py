from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from kinship.family.engine import KinshipGraph, Person, RelationshipEdge

logger = logging.getLogger("kinship.family.layout")

HORIZONTAL_SPACING = 280.0
VERTICAL_SPACING = 200.0


@dataclass
class NodePosition:
    level: int
    x: float
    y: float


@dataclass
class LayoutEdge:
    source: str
    target: str
    kind: str  # parent, parent2, friend, partner, married
    is_primary: bool = True


@dataclass
class TreeLayout:
    positions: dict[str, NodePosition] = field(default_factory=dict)
    edges: list[LayoutEdge] = field(default_factory=list)

    def level_members(self, level: int) -> list[str]:
        return [pid for pid, pos in self.positions.items() if pos.level == level]


def assign_levels(graph: KinshipGraph) -> dict[str, int]:
    """Generation depth per person: roots at 0, children one below their parent_id."""
    levels: dict[str, int] = {}
    queue = deque((root.id, 0) for root in graph.roots())
    while queue:
        pid, level = queue.popleft()
        if pid in levels:
            continue
        levels[pid] = level
        queue.extend((child, level + 1) for child in graph.children_of(pid))
    return levels


def layout(
    people: Iterable[Person],
    edges: Iterable[RelationshipEdge] = (),
    horizontal_spacing: float = HORIZONTAL_SPACING,
    vertical_spacing: float = VERTICAL_SPACING,
) -> TreeLayout:
    """
    Level-based tree layout.

    Each level is centered on x=0 and ordered by input order, so the layout is
    only as stable as the caller's ordering of ``people``.
    """
    graph = KinshipGraph(people, edges)
    levels = assign_levels(graph)

    by_level: dict[int, list[str]] = {}
    for p in graph.people:
        if p.id in levels:
            by_level.setdefault(levels[p.id], []).append(p.id)

    result = TreeLayout()
    for level in sorted(by_level):
        ids = by_level[level]
        total_width = (len(ids) - 1) * horizontal_spacing
        start_x = -total_width / 2
        for index, pid in enumerate(ids):
            result.positions[pid] = NodePosition(
                level=level,
                x=start_x + index * horizontal_spacing,
                y=level * vertical_spacing,
            )

    for p in graph.people:
        if p.parent_id:
            result.edges.append(LayoutEdge(source=p.parent_id, target=p.id, kind="parent"))
        if p.parent2_id:
            result.edges.append(LayoutEdge(source=p.parent2_id, target=p.id, kind="parent2"))
    for e in graph.edges:
        result.edges.append(
            LayoutEdge(source=e.owner_id, target=e.related_id, kind=e.kind, is_primary=e.is_primary)
        )

    logger.debug("Laid out %d people over %d levels", len(result.positions), len(by_level))
    return result
