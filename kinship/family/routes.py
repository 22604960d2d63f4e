"""Kinship API endpoints.

Every endpoint takes the full people + edges snapshot in the request body and
returns a computed result; nothing is stored.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from kinship.config import KinshipConfig
from kinship.family.engine import Person, RelationshipEdge, find_parent_cycle, validate_snapshot
from kinship.family.errors import ExclusivityViolation, GraphCycleError, InvalidRelationshipKind
from kinship.family.exclusivity import eligible_romantic_candidates, propose_edge, romantic_person_ids
from kinship.family.labels import label_of, labels_from
from kinship.family.layout import layout
from kinship.family.migration import migrate_all, migrate_legacy_edge
from kinship.family.models import (
    CandidatesIn,
    LabelIn,
    LabelOut,
    LabelsIn,
    LabelsOut,
    LayoutEdgeOut,
    LayoutOut,
    MigrateIn,
    MigrateOut,
    NodePositionOut,
    PersonOut,
    ProposeEdgeIn,
    ProposeEdgeOut,
    RelationshipEdgeOut,
    SnapshotIn,
    UnavailableOut,
    ValidateOut,
)

logger = logging.getLogger("kinship.family.routes")

router = APIRouter(prefix="/api/v1/kinship", tags=["kinship"])


@lru_cache
def get_config() -> KinshipConfig:
    return KinshipConfig()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _person_out(p: Person) -> PersonOut:
    return PersonOut(
        id=p.id,
        first_name=p.first_name,
        last_name=p.last_name,
        birth_date=p.birth_date,
        parent_id=p.parent_id,
        parent2_id=p.parent2_id,
    )


def _edge_out(e: RelationshipEdge) -> RelationshipEdgeOut:
    return RelationshipEdgeOut(
        id=e.id,
        owner_id=e.owner_id,
        related_id=e.related_id,
        kind=e.kind,
        is_primary=e.is_primary,
        created_at=e.created_at,
    )


def _acyclic_people(body: SnapshotIn) -> list[Person]:
    """Engine people for the snapshot; 422 when parent links form a cycle."""
    people = body.engine_people()
    cycle = find_parent_cycle(people)
    if cycle:
        exc = GraphCycleError(cycle)
        logger.info("Rejected cyclic snapshot: %s", exc)
        raise HTTPException(422, str(exc))
    return people


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

@router.post("/label")
async def relationship_label(body: LabelIn) -> LabelOut:
    """Label one person from another's point of view."""
    people = _acyclic_people(body)
    label = label_of(body.from_id, body.to_id, people, body.engine_edges())
    return LabelOut(from_id=body.from_id, to_id=body.to_id, label=label)


@router.post("/labels")
async def relationship_labels(body: LabelsIn) -> LabelsOut:
    """Label everyone in the snapshot from one viewpoint."""
    people = _acyclic_people(body)
    return LabelsOut(from_id=body.from_id, labels=labels_from(body.from_id, people, body.engine_edges()))


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

@router.post("/layout")
async def tree_layout(body: SnapshotIn, config: KinshipConfig = Depends(get_config)) -> LayoutOut:
    """Generation levels and x/y positions for a full-tree render."""
    people = _acyclic_people(body)
    result = layout(
        people,
        body.engine_edges(),
        horizontal_spacing=config.horizontal_spacing,
        vertical_spacing=config.vertical_spacing,
    )
    return LayoutOut(
        positions={
            pid: NodePositionOut(level=pos.level, x=pos.x, y=pos.y)
            for pid, pos in result.positions.items()
        },
        edges=[
            LayoutEdgeOut(source=e.source, target=e.target, kind=e.kind, is_primary=e.is_primary)
            for e in result.edges
        ],
    )


# ---------------------------------------------------------------------------
# Relationship proposals
# ---------------------------------------------------------------------------

@router.post("/edges/propose")
async def propose_relationship(body: ProposeEdgeIn) -> ProposeEdgeOut:
    """Check a new friend/partner/married edge before the host stores it."""
    try:
        proposal = propose_edge(
            body.owner_id, body.related_id, body.kind, body.engine_edges(), body.engine_people()
        )
    except InvalidRelationshipKind as exc:
        raise HTTPException(400, str(exc))
    except ExclusivityViolation as exc:
        logger.info("Rejected %s edge %s -> %s: %s", body.kind, body.owner_id, body.related_id, exc)
        raise HTTPException(400, exc.reason)
    return ProposeEdgeOut(
        owner_id=proposal.owner_id,
        related_id=proposal.related_id,
        kind=proposal.kind,
        is_primary=proposal.is_primary,
    )


@router.post("/candidates")
async def romantic_candidates(
    body: CandidatesIn, config: KinshipConfig = Depends(get_config)
) -> list[PersonOut]:
    """People the owner may choose as a partner."""
    people = _acyclic_people(body)
    candidates = eligible_romantic_candidates(
        body.owner_id, people, body.engine_edges(), today=body.today, min_age=config.min_romantic_age
    )
    return [_person_out(p) for p in candidates]


@router.post("/unavailable")
async def unavailable_people(body: SnapshotIn) -> UnavailableOut:
    """Ids of everyone already in a romantic relationship."""
    return UnavailableOut(unavailable_ids=sorted(romantic_person_ids(body.engine_edges())))


# ---------------------------------------------------------------------------
# Migration / validation
# ---------------------------------------------------------------------------

@router.post("/migrate")
async def migrate_legacy(body: MigrateIn) -> MigrateOut:
    """Turn legacy single-link fields into relationship edges."""
    people = body.engine_people()
    edges = body.engine_edges()

    if body.person_id is None:
        return MigrateOut(created=[_edge_out(e) for e in migrate_all(people, edges)])

    person = next((p for p in people if p.id == body.person_id), None)
    if person is None:
        raise HTTPException(404, "Person not found")
    try:
        edge = migrate_legacy_edge(person, edges, people)
    except (ExclusivityViolation, InvalidRelationshipKind) as exc:
        raise HTTPException(400, str(exc))
    return MigrateOut(created=[_edge_out(edge)] if edge else [])


@router.post("/validate")
async def validate(body: SnapshotIn) -> ValidateOut:
    """Report data problems the engine would otherwise trust blindly."""
    return ValidateOut(warnings=validate_snapshot(body.engine_people(), body.engine_edges()))
