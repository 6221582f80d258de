"""
Tests for the HTTP API.

Uses the TestClient from conftest: SQLite in-memory database, scripted
pipeline, temporary upload/output/preview directories.
"""

from pathlib import Path

import pytest

from conftest import PNG_BYTES, failed_response
from screendoc.ai.prompts.stage_prompts import ANALYST_ROLE, VALIDATOR_ROLE
from screendoc.routers.history import resolve_download


class FakeListener:
    async def close(self) -> None:
        pass


def _submit(client, app_name="Acme Viewer", filename="acme.png", content=PNG_BYTES, **form):
    return client.post(
        "/api/process",
        files={"screenshot": (filename, content, "image/png")},
        data={"app_name": app_name, "description": "desktop tool", **form},
    )


@pytest.fixture
def entry(client):
    response = _submit(client)
    assert response.status_code == 200
    return response.json()["entry"]


@pytest.fixture
def fake_previews(services, monkeypatch):
    async def fake_launch(app, port):
        return FakeListener()

    monkeypatch.setattr(services.previews, "_launch", fake_launch)
    return services.previews


# ---------------------------------------------------------------------------
# HEALTH
# ---------------------------------------------------------------------------

def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "healthy"
    assert isinstance(body["apiKeyConfigured"], bool)


# ---------------------------------------------------------------------------
# PROCESS
# ---------------------------------------------------------------------------

class TestProcess:

    def test_success_creates_history_entry(self, client, services):
        response = _submit(client, vendor="Acme Corp", links="https://acme.example")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Documentation generated successfully"
        entry = body["entry"]
        assert entry["app_name"] == "Acme Viewer"
        assert entry["vendor"] == "Acme Corp"
        assert entry["original_filename"] == "acme.png"
        assert entry["output_filename"].startswith("acme-viewer-guide-")
        assert entry["metadata"]["status"] == "completed"
        assert entry["validation"]["overall_score"] == 92
        assert entry["cost_estimate"] > 0
        assert Path(entry["output_path"]).is_file()

    def test_upload_removed_after_job(self, client, services):
        _submit(client)

        assert services.diagnostics.attempted("remove_upload")
        assert list(services.upload_dir.iterdir()) == []

    def test_missing_file(self, client):
        response = client.post("/api/process", data={"app_name": "Acme"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "No file uploaded"}

    def test_missing_app_name(self, client):
        response = _submit(client, app_name="  ")

        assert response.status_code == 400
        assert response.json()["error"] == "App name is required"

    def test_unsupported_extension(self, client, provider, services):
        response = _submit(client, filename="notes.txt")

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert provider.calls == []
        assert services.diagnostics.attempted("remove_upload")

    def test_needs_review_returns_422(self, client, provider):
        provider.responses[VALIDATOR_ROLE] = '{"validation_passed": false, "critical_issues": ["Tooltips overlap"]}'

        response = _submit(client)

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert "manual review" in body["error"]
        assert body["details"]["critical_issues"] == ["Tooltips overlap"]
        assert client.get("/api/history").json()["history"] == []

    def test_stage_failure_returns_500(self, client, provider):
        provider.responses[ANALYST_ROLE] = failed_response("Rate limit exceeded")

        response = _submit(client)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["details"]["status"] == "failed"
        assert body["details"]["metadata"]["failed_stage"] == "analysis"

    def test_progress_events_reach_watcher(self, client):
        with client.websocket_connect("/ws/jobs/job-42") as websocket:
            connected = websocket.receive_json()
            assert connected["message"] == "Progress feed connected"
            assert connected["metadata"] == {"job_id": "job-42"}

            assert _submit(client, job_id="job-42").status_code == 200

            events = []
            while True:
                event = websocket.receive_json()
                events.append(event)
                if event["kind"] == "complete" and event["stage"] == "server":
                    break

        assert events[0]["kind"] == "start"
        assert events[0]["stage"] == "server"
        assert {"analysis", "content", "build", "validation"} <= {e["stage"] for e in events}


# ---------------------------------------------------------------------------
# HISTORY / DOWNLOAD
# ---------------------------------------------------------------------------

class TestHistory:

    def test_empty(self, client):
        response = client.get("/api/history")

        assert response.status_code == 200
        assert response.json() == {"success": True, "history": []}

    def test_lists_entries(self, client, entry):
        history = client.get("/api/history").json()["history"]

        assert [e["id"] for e in history] == [entry["id"]]

    def test_delete_removes_package(self, client, entry, services):
        response = client.delete(f"/api/history/{entry['id']}")

        assert response.status_code == 200
        assert response.json()["history"] == []
        assert not Path(entry["output_path"]).exists()
        assert services.diagnostics.attempted("remove_output", entry["output_path"])

    def test_delete_stops_preview(self, client, entry, fake_previews):
        client.post(f"/api/serve/{entry['id']}")

        client.delete(f"/api/history/{entry['id']}")

        assert fake_previews.list_servers() == []

    def test_delete_unknown_is_ignored(self, client, entry):
        response = client.delete("/api/history/missing")

        assert response.status_code == 200
        assert len(response.json()["history"]) == 1

    def test_download(self, client, entry):
        response = client.get(f"/api/download/{entry['output_filename']}")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert response.content[:2] == b"PK"

    def test_download_missing(self, client):
        response = client.get("/api/download/nothing.zip")

        assert response.status_code == 404
        assert response.json()["error"] == "File not found"

    def test_resolve_download_stays_in_output_dir(self, tmp_path):
        root = tmp_path / "output"
        root.mkdir()
        (root / "a.zip").write_bytes(b"PK")
        (tmp_path / "secret.zip").write_bytes(b"PK")

        assert resolve_download(root, "a.zip") == (root / "a.zip").resolve()
        assert resolve_download(root, "../secret.zip") is None
        assert resolve_download(root, "..") is None
        assert resolve_download(root, "") is None


# ---------------------------------------------------------------------------
# PREVIEW SERVERS
# ---------------------------------------------------------------------------

class TestPreview:

    def test_serve_stop_cycle(self, client, entry, fake_previews):
        response = client.post(f"/api/serve/{entry['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["serving"] is True
        assert body["url"].endswith(f":{body['port']}")

        servers = client.get("/api/servers").json()["servers"]
        assert servers == {entry["id"]: {"port": body["port"], "url": body["url"]}}

        stopped = client.post(f"/api/stop/{entry['id']}")
        assert stopped.status_code == 200
        assert stopped.json() == {"success": True, "serving": False}
        assert client.get("/api/servers").json()["servers"] == {}

    def test_serve_is_idempotent(self, client, entry, fake_previews):
        first = client.post(f"/api/serve/{entry['id']}").json()
        second = client.post(f"/api/serve/{entry['id']}").json()

        assert first["port"] == second["port"]

    def test_serve_unknown_entry(self, client):
        response = client.post("/api/serve/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Entry not found"

    def test_serve_missing_artifact(self, client, entry):
        Path(entry["output_path"]).unlink()

        response = client.post(f"/api/serve/{entry['id']}")

        assert response.status_code == 404
        assert response.json()["error"] == "Artifact file not found"

    def test_serve_corrupt_artifact(self, client, entry, fake_previews):
        Path(entry["output_path"]).write_bytes(b"not a zip")

        response = client.post(f"/api/serve/{entry['id']}")

        assert response.status_code == 500
        assert response.json()["success"] is False

    def test_stop_unknown(self, client):
        response = client.post("/api/stop/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Server not found or already stopped"
