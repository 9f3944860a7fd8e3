"""Tests for the version and patch endpoints."""

from tests.conftest import generation_failure, make_project


def _project_with_version(client, content="Hello world"):
    project_id = client.post("/api/projects", json=make_project()).json()["id"]
    resp = client.post(f"/api/projects/{project_id}/versions", json={"content": content})
    assert resp.status_code == 201
    return project_id


class TestVersions:

    def test_append_and_list(self, client):
        project_id = _project_with_version(client)
        client.post(f"/api/projects/{project_id}/versions", json={"content": "Second"})
        versions = client.get(f"/api/projects/{project_id}/versions").json()
        assert [v["number"] for v in versions] == [2, 1]
        assert "content" not in versions[0]

    def test_current_and_by_number(self, client):
        project_id = _project_with_version(client)
        current = client.get(f"/api/projects/{project_id}/versions/current").json()
        assert current["current_version"] == 1
        assert current["version"]["content"] == "Hello world"
        assert client.get(f"/api/projects/{project_id}/versions/1").json()["author"] == "human"

    def test_unknown_version(self, client):
        project_id = _project_with_version(client)
        resp = client.get(f"/api/projects/{project_id}/versions/4")
        assert resp.status_code == 404
        assert resp.json()["error"] == "VERSION_NOT_FOUND"

    def test_select_moves_pointer(self, client):
        project_id = _project_with_version(client)
        client.post(f"/api/projects/{project_id}/versions", json={"content": "Second"})
        resp = client.post(f"/api/projects/{project_id}/versions/select", json={"number": 1})
        assert resp.status_code == 200
        body = resp.json()
        assert (body["head_version"], body["current_version"]) == (2, 1)
        assert client.get(f"/api/projects/{project_id}").json()["current_version"] == 1

    def test_stale_expected_head(self, client):
        project_id = _project_with_version(client)
        resp = client.post(
            f"/api/projects/{project_id}/versions",
            json={"content": "x", "expected_head": 0},
        )
        assert resp.status_code == 409


class TestPatches:

    def test_suggest_then_apply(self, client, suggestion_adapter):
        project_id = _project_with_version(client)
        resp = client.post(
            f"/api/projects/{project_id}/patches/suggest",
            json={"selection_start": 6, "selection_end": 11, "instruction": "Replace with Earth"},
        )
        assert resp.status_code == 200
        suggestion = resp.json()
        assert suggestion["selected_text"] == "world"
        assert suggestion["suggestion_text"] == "Earth"
        assert suggestion["based_on_version"] == 1
        # Suggesting writes nothing
        assert client.get(f"/api/projects/{project_id}").json()["head_version"] == 1

        resp = client.post(f"/api/projects/{project_id}/patches/apply", json={
            "selected_text": suggestion["selected_text"],
            "replacement_text": suggestion["suggestion_text"],
            "selection_start": suggestion["selection_start"],
            "instruction": suggestion["instruction"],
            "expected_head": 1,
        })
        assert resp.status_code == 201
        body = resp.json()
        assert body["version"]["number"] == 2
        assert body["version"]["content"] == "Hello Earth"
        assert (body["version"]["changed_start"], body["version"]["changed_end"]) == (6, 11)
        assert body["warning_count"] == 0

    def test_ambiguous_apply_warns(self, client):
        project_id = _project_with_version(client, "foo bar foo")
        resp = client.post(f"/api/projects/{project_id}/patches/apply", json={
            "selected_text": "foo", "replacement_text": "baz", "selection_start": 8,
        })
        assert resp.status_code == 201
        body = resp.json()
        assert body["version"]["content"] == "foo bar baz"
        assert body["ambiguous_match"] == {"selected_text": "foo", "occurrences": 2, "applied_at": 8}
        assert body["warning_count"] == 1

    def test_out_of_range_selection(self, client):
        project_id = _project_with_version(client)
        resp = client.post(
            f"/api/projects/{project_id}/patches/suggest",
            json={"selection_start": 6, "selection_end": 40, "instruction": "x"},
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "OUT_OF_RANGE_SELECTION"

    def test_generation_failure_leaves_chain(self, client, suggestion_adapter):
        suggestion_adapter.error = generation_failure()
        project_id = _project_with_version(client)
        resp = client.post(
            f"/api/projects/{project_id}/patches/suggest",
            json={"selection_start": 0, "selection_end": 5, "instruction": "Shout"},
        )
        assert resp.status_code == 502
        assert resp.json()["error"] == "GENERATION_FAILED"
        assert client.get(f"/api/projects/{project_id}").json()["head_version"] == 1

    def test_stale_selection_conflicts(self, client):
        project_id = _project_with_version(client)
        resp = client.post(f"/api/projects/{project_id}/patches/apply", json={
            "selected_text": "world", "replacement_text": "Earth", "selection_start": 0,
        })
        assert resp.status_code == 409

    def test_apply_after_undo(self, client):
        project_id = _project_with_version(client)
        client.post(f"/api/projects/{project_id}/patches/apply", json={
            "selected_text": "world", "replacement_text": "Earth", "selection_start": 6,
        })
        client.post(f"/api/projects/{project_id}/versions/select", json={"number": 1})
        resp = client.post(f"/api/projects/{project_id}/patches/apply", json={
            "selected_text": "world", "replacement_text": "there", "selection_start": 6,
        })
        assert resp.json()["version"]["number"] == 3
        assert resp.json()["version"]["content"] == "Hello there"
