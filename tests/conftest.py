"""Shared fixtures for the kinship-engine test suite."""
from dataclasses import asdict
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

from kinship.family.engine import Person, RelationshipEdge


TODAY = date(2026, 6, 1)


def make_edge(eid, owner, related, kind, is_primary=False):
    return RelationshipEdge(
        id=eid,
        owner_id=owner,
        related_id=related,
        kind=kind,
        is_primary=is_primary,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


# ── Family fixtures ──

@pytest.fixture
def family():
    """Three generations under Alice, plus an unrelated root (Zed).

    alice ─┬─ bob ── dave ── frank
           └─ carol ── erin ── ian
    """
    people = [
        Person("alice", "Alice", "Root", date(1940, 3, 10)),
        Person("bob", "Bob", "Root", date(1965, 7, 2), parent_id="alice"),
        Person("carol", "Carol", "Root", date(1968, 1, 20), parent_id="alice"),
        Person("dave", "Dave", "Root", date(1990, 5, 5), parent_id="bob"),
        Person("erin", "Erin", "Root", date(1992, 9, 9), parent_id="carol"),
        Person("frank", "Frank", "Root", date(2015, 11, 30), parent_id="dave"),
        Person("ian", "Ian", "Root", date(2018, 2, 14), parent_id="erin"),
        Person("zed", "Zed", "Stranger", date(1970, 4, 4)),
    ]
    return {p.id: p for p in people}


@pytest.fixture
def people(family):
    return list(family.values())


@pytest.fixture
def deep_chain():
    """Two six-generation lines descending from one founder."""
    people = [Person("root", "Founder")]
    for branch in ("a", "b"):
        parent = "root"
        for depth in range(1, 7):
            pid = f"{branch}{depth}"
            people.append(Person(pid, pid.upper(), parent_id=parent))
            parent = pid
    return people


# ── Serialization ──

def _jsonable(record):
    data = asdict(record)
    for key, value in data.items():
        if isinstance(value, (date, datetime)):
            data[key] = value.isoformat()
    return data


@pytest.fixture
def snapshot():
    """Build a request body from engine records."""
    def build(people, edges=(), **extra):
        body = {
            "people": [_jsonable(p) for p in people],
            "edges": [_jsonable(e) for e in edges],
        }
        body.update(extra)
        return body
    return build


# ── FastAPI app fixtures ──

@pytest.fixture
def client():
    from kinship.app import app

    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
