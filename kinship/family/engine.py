"""Kinship graph: pure Python model of people, parent links and relationship edges.

Takes a snapshot of people + relationship edges and answers lineage questions
(ancestor chains, generation distance, lowest common ancestor) that the
labeler and validator build on.

No DB and no I/O; pure functions on in-memory data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

import networkx as nx

from kinship.family.errors import GraphCycleError

logger = logging.getLogger("kinship.family.engine")

FRIEND = "friend"
PARTNER = "partner"
MARRIED = "married"

EDGE_KINDS = (FRIEND, PARTNER, MARRIED)
ROMANTIC_KINDS = frozenset({PARTNER, MARRIED})


@dataclass
class Person:
    id: str
    first_name: str = ""
    last_name: str = ""
    birth_date: date | None = None
    parent_id: str | None = None
    parent2_id: str | None = None
    # Deprecated single special-relationship link, kept as migration source.
    legacy_friend_id: str | None = None
    legacy_relationship_type: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def parent_ids(self) -> tuple[str, ...]:
        return tuple(pid for pid in (self.parent_id, self.parent2_id) if pid)


@dataclass
class RelationshipEdge:
    """An undirected friend/partner/married pairing stored as owner -> related."""
    id: str
    owner_id: str
    related_id: str
    kind: str
    is_primary: bool = False
    created_at: datetime | None = None

    @property
    def is_romantic(self) -> bool:
        return self.kind in ROMANTIC_KINDS

    def touches(self, person_id: str) -> bool:
        return self.owner_id == person_id or self.related_id == person_id

    def other(self, person_id: str) -> str:
        return self.related_id if self.owner_id == person_id else self.owner_id

    def connects(self, a: str, b: str) -> bool:
        return {self.owner_id, self.related_id} == {a, b}


class KinshipGraph:
    """In-memory kinship graph over one snapshot.

    Lineage queries walk the ``parent_id`` slot only: one chain per person, so
    generation distance to an ancestor is always well defined.
    """

    def __init__(
        self,
        people: Iterable[Person],
        edges: Iterable[RelationshipEdge] = (),
        check_cycles: bool = False,
    ):
        self._order: list[Person] = list(people)
        self._people = {p.id: p for p in self._order}
        self._edges: list[RelationshipEdge] = list(edges)

        # parent_id -> children in input order (first parent slot only)
        self._children: dict[str, list[str]] = {}
        for p in self._order:
            if p.parent_id:
                self._children.setdefault(p.parent_id, []).append(p.id)

        if check_cycles:
            cycle = find_parent_cycle(self._order)
            if cycle:
                raise GraphCycleError(cycle)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def people(self) -> list[Person]:
        return list(self._order)

    @property
    def edges(self) -> list[RelationshipEdge]:
        return list(self._edges)

    def get(self, pid: str | None) -> Person | None:
        if pid is None:
            return None
        return self._people.get(pid)

    def __contains__(self, pid: object) -> bool:
        return pid in self._people

    def __len__(self) -> int:
        return len(self._order)

    def children_of(self, pid: str) -> list[str]:
        return list(self._children.get(pid, []))

    def roots(self) -> list[Person]:
        return [p for p in self._order if not p.parent_id]

    def siblings_of(self, pid: str) -> list[Person]:
        """Everyone sharing at least one parent slot value with ``pid``."""
        person = self.get(pid)
        if person is None or not person.parent_ids:
            return []
        mine = set(person.parent_ids)
        return [
            p for p in self._order
            if p.id != pid and mine.intersection(p.parent_ids)
        ]

    def edges_touching(self, pid: str) -> list[RelationshipEdge]:
        return [e for e in self._edges if e.touches(pid)]

    # ------------------------------------------------------------------
    # Resolver
    # ------------------------------------------------------------------

    def ancestors_of(self, person: Person) -> list[Person]:
        """Follow ``parent_id`` upward, nearest ancestor first."""
        ancestors: list[Person] = []
        current = person
        while current.parent_id:
            parent = self._people.get(current.parent_id)
            if parent is None:
                break
            ancestors.append(parent)
            current = parent
        return ancestors

    def distance_to_ancestor(self, descendant: Person, ancestor: Person) -> int | None:
        """Parent hops from ``descendant`` up to ``ancestor``; None when not on the chain."""
        distance = 0
        current = descendant
        while current.id != ancestor.id:
            parent = self._people.get(current.parent_id) if current.parent_id else None
            if parent is None:
                return None
            distance += 1
            current = parent
        return distance

    def lowest_common_ancestor(self, a: Person, b: Person) -> Person | None:
        b_ids = {p.id for p in self.ancestors_of(b)}
        for ancestor in self.ancestors_of(a):
            if ancestor.id in b_ids:
                return ancestor
        return None

    def is_ancestor_of(self, ancestor: Person, person: Person) -> bool:
        return any(a.id == ancestor.id for a in self.ancestors_of(person))


# ---------------------------------------------------------------------------
# Snapshot validation
# ---------------------------------------------------------------------------

def find_parent_cycle(people: Iterable[Person]) -> list[str] | None:
    """Return the ids of the first parent-link cycle found, walking both slots."""
    people = list(people)
    by_id = {p.id: p for p in people}
    parent_graph = nx.DiGraph()
    parent_graph.add_nodes_from(by_id)
    parent_graph.add_edges_from(
        (pid, p.id) for p in people for pid in p.parent_ids if pid in by_id
    )
    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
    except nx.NetworkXNoCycle:
        return None
    return [edge[0] for edge in cycle]


def validate_snapshot(people: Iterable[Person], edges: Iterable[RelationshipEdge] = ()) -> list[str]:
    """
    Check a snapshot for data the engine trusts but does not enforce:
    - Cycles in parent links
    - A person listed as their own parent, or the same parent in both slots
    - References to people missing from the snapshot
    - Children born before a parent
    - More than one romantic edge for a person

    Returns a list of warning messages.
    """
    people = list(people)
    edges = list(edges)
    by_id = {p.id: p for p in people}
    warnings: list[str] = []

    cycle = find_parent_cycle(people)
    if cycle:
        warnings.append(f"Cycle detected in parent-child relationships: {cycle}")

    for p in people:
        if p.id in p.parent_ids:
            warnings.append(f"{p.full_name or p.id} is listed as their own parent")
        if p.parent_id and p.parent_id == p.parent2_id:
            warnings.append(f"{p.full_name or p.id} has the same person in both parent slots")
        for pid in p.parent_ids:
            parent = by_id.get(pid)
            if parent is None:
                warnings.append(f"{p.full_name or p.id} references missing parent {pid}")
            elif p.birth_date and parent.birth_date and p.birth_date < parent.birth_date:
                warnings.append(
                    f"Impossible: {p.full_name or p.id} born before parent {parent.full_name or parent.id}"
                )

    romantic_count: dict[str, int] = {}
    for e in edges:
        for pid in (e.owner_id, e.related_id):
            if pid not in by_id:
                warnings.append(f"Relationship {e.id} references missing person {pid}")
        if e.is_romantic:
            for pid in {e.owner_id, e.related_id}:
                romantic_count[pid] = romantic_count.get(pid, 0) + 1

    for pid, count in romantic_count.items():
        if count > 1:
            warnings.append(f"{pid} has {count} romantic relationships")

    if warnings:
        logger.debug("Snapshot validation produced %d warnings", len(warnings))
    return warnings
