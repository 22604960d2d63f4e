"""Pydantic models for the kinship API."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel

from kinship.family.engine import Person, RelationshipEdge


# ---------------------------------------------------------------------------
# Snapshot records
# ---------------------------------------------------------------------------

class PersonIn(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    birth_date: date | None = None
    parent_id: str | None = None
    parent2_id: str | None = None
    legacy_friend_id: str | None = None
    legacy_relationship_type: str | None = None

    def to_engine(self) -> Person:
        return Person(**self.model_dump())


class PersonOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    birth_date: date | None = None
    parent_id: str | None = None
    parent2_id: str | None = None


class RelationshipEdgeIn(BaseModel):
    id: str
    owner_id: str
    related_id: str
    kind: str  # friend, partner, married
    is_primary: bool = False
    created_at: datetime | None = None

    def to_engine(self) -> RelationshipEdge:
        return RelationshipEdge(**self.model_dump())


class RelationshipEdgeOut(BaseModel):
    id: str
    owner_id: str
    related_id: str
    kind: str
    is_primary: bool
    created_at: datetime | None = None


class SnapshotIn(BaseModel):
    people: list[PersonIn] = []
    edges: list[RelationshipEdgeIn] = []

    def engine_people(self) -> list[Person]:
        return [p.to_engine() for p in self.people]

    def engine_edges(self) -> list[RelationshipEdge]:
        return [e.to_engine() for e in self.edges]


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

class LabelIn(SnapshotIn):
    from_id: str
    to_id: str


class LabelOut(BaseModel):
    from_id: str
    to_id: str
    label: str


class LabelsIn(SnapshotIn):
    from_id: str


class LabelsOut(BaseModel):
    from_id: str
    labels: dict[str, str]


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

class NodePositionOut(BaseModel):
    level: int
    x: float
    y: float


class LayoutEdgeOut(BaseModel):
    source: str
    target: str
    kind: str
    is_primary: bool


class LayoutOut(BaseModel):
    positions: dict[str, NodePositionOut]
    edges: list[LayoutEdgeOut]


# ---------------------------------------------------------------------------
# Relationship proposals
# ---------------------------------------------------------------------------

class ProposeEdgeIn(SnapshotIn):
    owner_id: str
    related_id: str
    kind: str


class ProposeEdgeOut(BaseModel):
    owner_id: str
    related_id: str
    kind: str
    is_primary: bool


class CandidatesIn(SnapshotIn):
    owner_id: str
    today: date | None = None


class UnavailableOut(BaseModel):
    unavailable_ids: list[str]


# ---------------------------------------------------------------------------
# Migration / validation
# ---------------------------------------------------------------------------

class MigrateIn(SnapshotIn):
    person_id: str | None = None


class MigrateOut(BaseModel):
    created: list[RelationshipEdgeOut]


class ValidateOut(BaseModel):
    warnings: list[str]
