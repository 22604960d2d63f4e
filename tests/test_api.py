"""Tests for the kinship HTTP API (kinship/family/routes.py, kinship/app.py)."""
import pytest

from conftest import TODAY, make_edge
from kinship.app import RequestStats
from kinship.config import KinshipConfig
from kinship.family.engine import Person
from kinship.family.routes import get_config


class TestLabelEndpoints:
    def test_label(self, client, snapshot, people):
        resp = client.post("/api/v1/kinship/label", json=snapshot(people, from_id="dave", to_id="erin"))
        assert resp.status_code == 200
        assert resp.json() == {"from_id": "dave", "to_id": "erin", "label": "Cousin"}

    def test_label_unknown_person(self, client, snapshot, people):
        resp = client.post("/api/v1/kinship/label", json=snapshot(people, from_id="dave", to_id="ghost"))
        assert resp.json()["label"] == "Unknown"

    def test_label_friend_edge(self, client, snapshot, people):
        body = snapshot(people, [make_edge("e1", "zed", "bob", "friend")], from_id="bob", to_id="zed")
        assert client.post("/api/v1/kinship/label", json=body).json()["label"] == "Friend"

    def test_labels(self, client, snapshot, people):
        resp = client.post("/api/v1/kinship/labels", json=snapshot(people, from_id="alice"))
        labels = resp.json()["labels"]
        assert labels["alice"] == "Self"
        assert labels["frank"] == "Great Grandchild"

    def test_cyclic_snapshot_rejected(self, client, snapshot):
        people = [Person("a", parent_id="b"), Person("b", parent_id="a")]
        resp = client.post("/api/v1/kinship/label", json=snapshot(people, from_id="a", to_id="b"))
        assert resp.status_code == 422
        assert "Cycle detected" in resp.json()["detail"]

    def test_missing_field(self, client, snapshot, people):
        resp = client.post("/api/v1/kinship/label", json=snapshot(people, from_id="a"))
        assert resp.status_code == 422


class TestLayoutEndpoint:
    def test_layout(self, client, snapshot):
        people = [Person("alice"), Person("bob", parent_id="alice"), Person("carol", parent_id="alice")]
        data = client.post("/api/v1/kinship/layout", json=snapshot(people)).json()
        assert data["positions"]["alice"] == {"level": 0, "x": 0.0, "y": 0.0}
        assert data["positions"]["bob"] == {"level": 1, "x": -140.0, "y": 200.0}
        assert data["positions"]["carol"] == {"level": 1, "x": 140.0, "y": 200.0}
        assert {(e["source"], e["target"]) for e in data["edges"]} == {("alice", "bob"), ("alice", "carol")}

    def test_layout_uses_configured_spacing(self, client, snapshot, monkeypatch):
        monkeypatch.setenv("KS_HORIZONTAL_SPACING", "100")
        monkeypatch.setenv("KS_VERTICAL_SPACING", "10")
        client.app.dependency_overrides[get_config] = KinshipConfig
        people = [Person("a"), Person("b", parent_id="a"), Person("c", parent_id="a")]
        data = client.post("/api/v1/kinship/layout", json=snapshot(people)).json()
        assert data["positions"]["b"] == {"level": 1, "x": -50.0, "y": 10.0}

    def test_layout_long_chain(self, client, snapshot):
        people = [Person("p0")] + [Person(f"p{i}", parent_id=f"p{i - 1}") for i in range(1, 1200)]
        resp = client.post("/api/v1/kinship/layout", json=snapshot(people))
        assert resp.status_code == 200
        assert resp.json()["positions"]["p1199"]["level"] == 1199


class TestProposeEndpoint:
    def test_married_rejected_then_friend_accepted(self, client, snapshot, people):
        edges = [make_edge("e1", "erin", "zed", "partner", is_primary=True)]
        body = snapshot(people, edges, owner_id="dave", related_id="zed", kind="married")
        resp = client.post("/api/v1/kinship/edges/propose", json=body)
        assert resp.status_code == 400
        assert "already in a romantic relationship" in resp.json()["detail"]

        body["kind"] = "friend"
        resp = client.post("/api/v1/kinship/edges/propose", json=body)
        assert resp.status_code == 200
        assert resp.json() == {"owner_id": "dave", "related_id": "zed", "kind": "friend", "is_primary": False}

    def test_invalid_kind(self, client, snapshot, people):
        body = snapshot(people, owner_id="dave", related_id="zed", kind="cousin")
        resp = client.post("/api/v1/kinship/edges/propose", json=body)
        assert resp.status_code == 400
        assert "Invalid relationship type" in resp.json()["detail"]


class TestCandidateEndpoints:
    def test_candidates(self, client, snapshot, people):
        edges = [make_edge("e1", "zed", "carol", "married")]
        body = snapshot(people, edges, owner_id="dave", today=TODAY.isoformat())
        ids = [p["id"] for p in client.post("/api/v1/kinship/candidates", json=body).json()]
        # bob is a parent, frank and ian are minors, zed and carol are taken
        assert ids == ["alice", "erin"]

    def test_unavailable(self, client, snapshot, people):
        edges = [make_edge("e1", "zed", "carol", "married"), make_edge("e2", "bob", "erin", "friend")]
        data = client.post("/api/v1/kinship/unavailable", json=snapshot(people, edges)).json()
        assert data == {"unavailable_ids": ["carol", "zed"]}


class TestMigrateEndpoint:
    def test_migrate_all(self, client, snapshot):
        people = [
            Person("a", legacy_friend_id="b", legacy_relationship_type="partner"),
            Person("b", legacy_friend_id="a", legacy_relationship_type="partner"),
        ]
        created = client.post("/api/v1/kinship/migrate", json=snapshot(people)).json()["created"]
        assert len(created) == 1
        assert created[0]["kind"] == "partner"
        assert created[0]["is_primary"] is True

    def test_migrate_one(self, client, snapshot):
        people = [Person("a", legacy_friend_id="b", legacy_relationship_type="friend"), Person("b")]
        created = client.post("/api/v1/kinship/migrate", json=snapshot(people, person_id="a")).json()["created"]
        assert [(e["owner_id"], e["related_id"]) for e in created] == [("a", "b")]

    def test_migrate_one_already_done(self, client, snapshot):
        people = [Person("a", legacy_friend_id="b", legacy_relationship_type="friend"), Person("b")]
        edges = [make_edge("e1", "a", "b", "friend")]
        resp = client.post("/api/v1/kinship/migrate", json=snapshot(people, edges, person_id="a"))
        assert resp.json() == {"created": []}

    def test_migrate_one_conflict(self, client, snapshot):
        people = [Person("a", legacy_friend_id="b", legacy_relationship_type="married"), Person("b"), Person("c")]
        edges = [make_edge("e1", "b", "c", "partner")]
        resp = client.post("/api/v1/kinship/migrate", json=snapshot(people, edges, person_id="a"))
        assert resp.status_code == 400

    def test_migrate_unknown_person(self, client, snapshot):
        resp = client.post("/api/v1/kinship/migrate", json=snapshot([Person("a")], person_id="ghost"))
        assert resp.status_code == 404


class TestValidateEndpoint:
    def test_clean(self, client, snapshot, people):
        assert client.post("/api/v1/kinship/validate", json=snapshot(people)).json() == {"warnings": []}

    def test_cycle_reported_not_rejected(self, client, snapshot):
        people = [Person("a", parent_id="b"), Person("b", parent_id="a")]
        resp = client.post("/api/v1/kinship/validate", json=snapshot(people))
        assert resp.status_code == 200
        assert any("Cycle detected" in w for w in resp.json()["warnings"])


class TestServiceEndpoints:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["config"]["min_romantic_age"] == 16

    def test_metrics(self, client):
        client.get("/health")
        keys = {m["key"] for m in client.get("/metrics").json()["metrics"]}
        assert {"uptime", "rps", "rejected", "endpoints", "memory_rss", "cpu_percent"} <= keys

    def test_metrics_count_rejected_kinship_calls(self, client, snapshot, people):
        edges = [make_edge("e1", "erin", "zed", "married")]
        body = snapshot(people, edges, owner_id="dave", related_id="zed", kind="partner")
        assert client.post("/api/v1/kinship/edges/propose", json=body).status_code == 400
        metrics = {m["key"]: m["value"] for m in client.get("/metrics").json()["metrics"]}
        assert metrics["rejected"] >= 1
        assert metrics["endpoints"]["/edges/propose"] >= 1
        assert "/health" not in metrics["endpoints"]


class TestRequestStats:
    def test_counts_by_endpoint_and_rejections(self):
        stats = RequestStats(window=60.0)
        stats.record("/api/v1/kinship/label", 200)
        stats.record("/api/v1/kinship/label", 422)
        stats.record("/api/v1/kinship/edges/propose", 400)
        stats.record("/health", 200)
        assert stats.by_endpoint() == {"/label": 2, "/edges/propose": 1}
        assert stats.rejected() == 2
        assert stats.rate() == pytest.approx(4 / 60)

    def test_events_expire_after_window(self, monkeypatch):
        now = [100.0]
        monkeypatch.setattr("kinship.app.time.monotonic", lambda: now[0])
        stats = RequestStats(window=60.0)
        stats.record("/api/v1/kinship/label", 200)
        assert stats.by_endpoint() == {"/label": 1}
        now[0] = 200.0
        assert stats.by_endpoint() == {}
        assert stats.rate() == 0.0

    def test_sample_keeps_history(self):
        stats = RequestStats(window=60.0)
        stats.record("/health", 200)
        assert stats.sample() == [round(1 / 60, 2)]
        assert len(stats.sample()) == 2
