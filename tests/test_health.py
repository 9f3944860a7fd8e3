"""Tests for the root and health endpoints."""


class TestHealth:

    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "ReqForge API"

    def test_health_counts_projects(self, client):
        client.post("/api/projects", json={"title": "One"})
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["db"] == "ok"
        assert body["project_count"] == 1
        assert body["generation"] == "unconfigured"
