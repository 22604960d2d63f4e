"""Legacy relationship migration.

Older person records carry a single ``legacy_friend_id`` /
``legacy_relationship_type`` pair. Migration copies that pair into a
RelationshipEdge once; afterwards the legacy fields are inert history.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone

from kinship.family.engine import Person, RelationshipEdge
from kinship.family.errors import ExclusivityViolation, InvalidRelationshipKind
from kinship.family.exclusivity import propose_edge

logger = logging.getLogger("kinship.family.migration")


def _has_equivalent(person: Person, edges: Iterable[RelationshipEdge]) -> bool:
    return any(
        e.kind == person.legacy_relationship_type
        and e.connects(person.id, person.legacy_friend_id)
        for e in edges
    )


def migrate_legacy_edge(
    person: Person,
    edges: Iterable[RelationshipEdge],
    people: Iterable[Person] = (),
    now: datetime | None = None,
) -> RelationshipEdge | None:
    """Build the edge for ``person``'s legacy link, or None when there is nothing to do.

    Raises ExclusivityViolation when the legacy link is romantic and the
    other person already has a romantic edge.
    """
    if not person.legacy_friend_id or not person.legacy_relationship_type:
        return None

    edges = list(edges)
    if _has_equivalent(person, edges):
        logger.debug("Legacy link for %s already migrated", person.id)
        return None

    proposal = propose_edge(
        person.id, person.legacy_friend_id, person.legacy_relationship_type, edges, people
    )
    edge = RelationshipEdge(
        id=str(uuid.uuid4()),
        owner_id=person.id,
        related_id=person.legacy_friend_id,
        kind=proposal.kind,
        is_primary=proposal.is_primary,
        created_at=now or datetime.now(timezone.utc),
    )
    logger.info("Migrated legacy %s link %s -> %s", edge.kind, edge.owner_id, edge.related_id)
    return edge


def migrate_all(
    people: Iterable[Person],
    edges: Iterable[RelationshipEdge],
    now: datetime | None = None,
) -> list[RelationshipEdge]:
    """Migrate every legacy link in the snapshot; returns only the new edges."""
    people = list(people)
    current = list(edges)
    created: list[RelationshipEdge] = []

    for person in people:
        try:
            edge = migrate_legacy_edge(person, current, people, now=now)
        except (ExclusivityViolation, InvalidRelationshipKind) as exc:
            logger.warning("Skipping legacy link for %s: %s", person.id, exc)
            continue
        if edge is not None:
            current.append(edge)
            created.append(edge)

    return created
