"""Relationship exclusivity: checks proposed friend/partner/married edges.

A person holds at most one romantic (partner/married) edge across the whole
edge set. Friend edges are unlimited. Everything here classifies a proposal
against a snapshot; persisting the edge is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from kinship.family.engine import EDGE_KINDS, ROMANTIC_KINDS, KinshipGraph, Person, RelationshipEdge
from kinship.family.errors import ExclusivityViolation, InvalidRelationshipKind

logger = logging.getLogger("kinship.family.exclusivity")

MIN_ROMANTIC_AGE = 16


@dataclass
class ProposedEdge:
    owner_id: str
    related_id: str
    kind: str
    is_primary: bool


def age_on(birth_date: date, today: date) -> int:
    """Whole years between ``birth_date`` and ``today``."""
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def romantic_person_ids(edges: Iterable[RelationshipEdge]) -> set[str]:
    """Everyone already on either end of a partner/married edge."""
    ids: set[str] = set()
    for e in edges:
        if e.is_romantic:
            ids.add(e.owner_id)
            ids.add(e.related_id)
    return ids


def propose_edge(
    owner_id: str,
    related_id: str,
    kind: str,
    edges: Iterable[RelationshipEdge],
    people: Iterable[Person] = (),
) -> ProposedEdge:
    """Classify a new edge from ``owner_id`` to ``related_id``.

    Only the related side is checked for an existing romantic edge; callers
    validate the owner side themselves before creating the edge.
    """
    if kind not in EDGE_KINDS:
        raise InvalidRelationshipKind(kind)

    existing = [e for e in edges if e.touches(related_id)]
    is_primary = not any(e.is_primary for e in existing)

    if kind in ROMANTIC_KINDS and any(e.is_romantic for e in existing):
        raise ExclusivityViolation("This person is already in a romantic relationship", related_id)

    logger.debug("Proposed %s edge %s -> %s (primary=%s)", kind, owner_id, related_id, is_primary)
    return ProposedEdge(owner_id=owner_id, related_id=related_id, kind=kind, is_primary=is_primary)


def eligible_romantic_candidates(
    owner_id: str,
    people: Iterable[Person],
    edges: Iterable[RelationshipEdge] = (),
    today: date | None = None,
    min_age: int = MIN_ROMANTIC_AGE,
) -> list[Person]:
    """People ``owner_id`` may pick as a partner, in input order.

    Excludes the owner, anyone under ``min_age`` or without a birth date, the
    owner's parents and siblings, and anyone already romantically connected.
    """
    graph = KinshipGraph(people, edges)
    today = today or _utc_today()

    excluded = {owner_id}
    owner = graph.get(owner_id)
    if owner is not None:
        excluded.update(owner.parent_ids)
        excluded.update(s.id for s in graph.siblings_of(owner_id))
    excluded |= romantic_person_ids(graph.edges)

    return [
        p for p in graph.people
        if p.id not in excluded
        and p.birth_date is not None
        and age_on(p.birth_date, today) >= min_age
    ]
