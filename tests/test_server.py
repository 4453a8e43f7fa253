"""Tests for api.server."""

from urllib.parse import quote

import httpx
import pytest
from fastapi.testclient import TestClient

import api.server
import core.config
from core.config import Config
from core.scheduler_client import SchedulerClient


@pytest.fixture
def client(monkeypatch):
    """Test client with default config, independent of any config.yaml."""
    monkeypatch.setattr(core.config, "_config", Config())
    with TestClient(api.server.app) as c:
        yield c


def use_scheduler(monkeypatch, handler) -> None:
    """Point the server at a scheduler backed by `handler`."""
    monkeypatch.setattr(
        api.server,
        "scheduler",
        SchedulerClient(base_url="http://scheduler.test", transport=httpx.MockTransport(handler)),
    )


# ── HTTP ───────────────────────────────────────────────

def test_describe(client):
    """The description comes back with the expression it describes."""
    resp = client.get("/api/describe", params={"expression": "*/15 * * * *"})
    assert resp.status_code == 200
    assert resp.json() == {"expression": "*/15 * * * *", "description": "runs every 15 minutes"}


def test_describe_locale(client):
    """A locale query parameter selects the phrase table."""
    resp = client.get("/api/describe", params={"expression": "@daily", "locale": "zh"})
    assert resp.json()["description"] == "每天执行一次"


def test_describe_empty(client):
    """A missing expression describes as empty text."""
    resp = client.get("/api/describe")
    assert resp.json()["description"] == ""


def test_validate(client):
    """Validation results are returned as JSON."""
    resp = client.post("/api/validate", json={"expression": "0 9 * *"})
    assert resp.json() == {"is_valid": False, "message": "expression must have exactly 5 fields"}


def test_validate_command(client):
    """Commands are checked against the configured denylist."""
    resp = client.post("/api/validate-command", json={"command": "mkfs /dev/sdb"})
    assert resp.json()["is_valid"] is False


def test_next_runs(client, monkeypatch):
    """Run previews are proxied from the scheduler."""
    use_scheduler(monkeypatch, lambda request: httpx.Response(200, json={"runs": ["a", "b"]}))
    resp = client.get("/api/next-runs", params={"expression": "0 9 * * *", "count": 2})
    assert resp.status_code == 200
    assert resp.json() == {"runs": ["a", "b"]}


def test_next_runs_invalid_expression(client):
    """Invalid expressions are refused with 422 before any request."""
    resp = client.get("/api/next-runs", params={"expression": ""})
    assert resp.status_code == 422
    assert resp.json()["error"] == "expression must not be empty"


def test_next_runs_scheduler_failure(client, monkeypatch):
    """Scheduler errors surface as 502 with their text."""
    use_scheduler(monkeypatch, lambda request: httpx.Response(500, text="boom"))
    resp = client.get("/api/next-runs", params={"expression": "0 9 * * *"})
    assert resp.status_code == 502
    assert resp.json() == {"error": "boom"}


def test_create_job(client, monkeypatch):
    """Valid jobs are handed to the scheduler."""
    use_scheduler(monkeypatch, lambda request: httpx.Response(201, json={"id": "job-7"}))
    resp = client.post(
        "/api/jobs", json={"schedule": "0 3 * * *", "command": "backup.sh", "name": "nightly"}
    )
    assert resp.status_code == 200
    assert resp.json() == {"job": {"id": "job-7"}}


def test_create_job_rejects_dangerous_command(client):
    """Blocked commands are refused with 422."""
    resp = client.post("/api/jobs", json={"schedule": "0 3 * * *", "command": "rm -rf /"})
    assert resp.status_code == 422
    assert "dangerous" in resp.json()["error"]


# ── Editor WebSocket ───────────────────────────────────

def test_editor_session(client):
    """Edits over the socket should round-trip through the editor state."""
    url = "/ws/editor?expression=" + quote("* 9 * * 1-5")
    with client.websocket_connect(url) as ws:
        state = ws.receive_json()["metadata"]
        assert state["mode"] == "structured"
        assert state["fields"] == ["*", "9", "*", "*", "1-5"]

        ws.send_json({"type": "toggle_mode"})
        state = ws.receive_json()["metadata"]
        assert state["mode"] == "raw"
        assert state["canonical"] == "* 9 * * 1-5"

        ws.send_json({"type": "edit_raw", "text": "*/10 * * * *"})
        state = ws.receive_json()["metadata"]
        assert state["canonical"] == "*/10 * * * *"
        assert state["description"] == "runs every 10 minutes"
        assert state["fields"] == ["*", "9", "*", "*", "1-5"]

        ws.send_json({"type": "toggle_mode"})
        state = ws.receive_json()["metadata"]
        assert state["mode"] == "structured"

        ws.send_json({"type": "edit_field", "index": 0, "value": "0"})
        state = ws.receive_json()["metadata"]
        assert state["canonical"] == "0 9 * * 1-5"


def test_editor_errors_keep_session_open(client):
    """Bad messages produce errors without closing the socket."""
    with client.websocket_connect("/ws/editor") as ws:
        ws.receive_json()

        ws.send_text("not json")
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "edit_raw", "text": "x"})
        msg = ws.receive_json()
        assert msg["type"] == "error"
        assert "raw mode" in msg["content"]

        ws.send_json({"type": "launch"})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "get_state"})
        assert ws.receive_json()["type"] == "state"


def test_editor_config_switches_locale(client):
    """A locale setting changes this session's descriptions."""
    with client.websocket_connect("/ws/editor?expression=" + quote("@daily")) as ws:
        assert ws.receive_json()["metadata"]["description"] == "runs once a day"

        ws.send_json({"type": "config", "config": {"description": {"locale": "zh"}}})
        assert ws.receive_json()["type"] == "status"
        assert ws.receive_json()["metadata"]["description"] == "每天执行一次"


def test_editor_locale_is_per_session(client):
    """Changing the locale in one session leaves other sessions and HTTP alone."""
    url = "/ws/editor?expression=" + quote("@daily")
    with client.websocket_connect(url) as first, client.websocket_connect(url) as second:
        first.receive_json()
        second.receive_json()

        first.send_json({"type": "config", "config": {"description": {"locale": "zh"}}})
        assert first.receive_json()["type"] == "status"
        assert first.receive_json()["metadata"]["description"] == "每天执行一次"

        second.send_json({"type": "get_state"})
        assert second.receive_json()["metadata"]["description"] == "runs once a day"

    assert core.config.get_config().description.locale == "en"
    resp = client.get("/api/describe", params={"expression": "@daily"})
    assert resp.json()["description"] == "runs once a day"

    with client.websocket_connect(url) as third:
        assert third.receive_json()["metadata"]["description"] == "runs once a day"


@pytest.mark.parametrize(
    "updates",
    [
        {"safety": {"blocked_commands": []}},
        {"scheduler": {"base_url": "http://elsewhere.test"}},
        {"server": {"port": 1}},
        {"description": {"locale": "zh", "extra": 1}},
        {"description": "zh"},
    ],
)
def test_editor_config_refuses_other_settings(client, updates):
    """Only the description locale can be set from the editor."""
    with client.websocket_connect("/ws/editor?expression=" + quote("@daily")) as ws:
        ws.receive_json()

        ws.send_json({"type": "config", "config": updates})
        msg = ws.receive_json()
        assert msg["type"] == "error"
        assert "cannot be changed" in msg["content"]
        assert ws.receive_json()["metadata"]["description"] == "runs once a day"

    config = core.config.get_config()
    assert config.safety.blocked_commands == ["rm -rf", "mkfs", "> /", "dd"]
    assert config.scheduler.base_url == "http://127.0.0.1:8766"
    assert config.server.port == 8765


def test_denylist_survives_editor_settings(client):
    """A settings message cannot clear the denylist used by the HTTP checks."""
    with client.websocket_connect("/ws/editor") as ws:
        ws.receive_json()
        ws.send_json({"type": "config", "config": {"safety": {"blocked_commands": []}}})
        assert ws.receive_json()["type"] == "error"
        ws.receive_json()

    resp = client.post("/api/validate-command", json={"command": "rm -rf /"})
    assert resp.json()["is_valid"] is False


@pytest.mark.parametrize("locale", [5, None, ["zh"], "fr"])
def test_editor_config_rejects_bad_locale(client, locale):
    """Locales that are not known codes are refused and the session keeps working."""
    with client.websocket_connect("/ws/editor?expression=" + quote("@daily")) as ws:
        ws.receive_json()

        ws.send_json({"type": "config", "config": {"description": {"locale": locale}}})
        first = ws.receive_json()
        if locale is None:
            assert first["type"] == "status"
        else:
            assert first["type"] == "error"
        assert ws.receive_json()["metadata"]["description"] == "runs once a day"

        ws.send_json({"type": "get_state"})
        assert ws.receive_json()["type"] == "state"


# ── Job management ─────────────────────────────────────

def test_list_jobs(client, monkeypatch):
    """The job list is proxied from the scheduler."""
    jobs = [{"id": "job-1", "schedule": "0 3 * * *", "command": "backup.sh"}]
    use_scheduler(monkeypatch, lambda request: httpx.Response(200, json=jobs))
    resp = client.get("/api/jobs")
    assert resp.status_code == 200
    assert resp.json() == {"jobs": jobs}


def test_update_job(client, monkeypatch):
    """Edited jobs are validated and sent to the job's path."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        return httpx.Response(200, json={"id": "job-1", "schedule": "0 4 * * *"})

    use_scheduler(monkeypatch, handler)
    resp = client.put("/api/jobs/job-1", json={"schedule": "0 4 * * *", "command": "backup.sh"})
    assert resp.status_code == 200
    assert resp.json() == {"job": {"id": "job-1", "schedule": "0 4 * * *"}}
    assert seen == {"method": "PUT", "path": "/jobs/job-1"}


@pytest.mark.parametrize(
    "body",
    [
        {"schedule": "0 4 * *", "command": "backup.sh"},
        {"schedule": "0 4 * * *", "command": "dd if=/dev/zero of=/dev/sda"},
    ],
)
def test_update_job_rejects_invalid(client, monkeypatch, body):
    """Edits are held to the same checks as new jobs."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request should not be sent")

    use_scheduler(monkeypatch, handler)
    resp = client.put("/api/jobs/job-1", json=body)
    assert resp.status_code == 422


def test_toggle_job(client, monkeypatch):
    """Toggling forwards the active flag."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["content"] = request.content
        return httpx.Response(200, json={"id": "job-1", "is_active": False})

    use_scheduler(monkeypatch, handler)
    resp = client.post("/api/jobs/job-1/toggle", json={"is_active": False})
    assert resp.status_code == 200
    assert resp.json() == {"job": {"id": "job-1", "is_active": False}}
    assert seen["method"] == "PATCH"
    assert b"false" in seen["content"]


def test_delete_job(client, monkeypatch):
    """Deleting reports the removed id."""
    use_scheduler(monkeypatch, lambda request: httpx.Response(204))
    resp = client.delete("/api/jobs/job-1")
    assert resp.status_code == 200
    assert resp.json() == {"deleted": "job-1"}


def test_delete_missing_job(client, monkeypatch):
    """Scheduler errors on delete surface as 502."""
    use_scheduler(monkeypatch, lambda request: httpx.Response(404, text="job not found"))
    resp = client.delete("/api/jobs/nope")
    assert resp.status_code == 502
    assert resp.json() == {"error": "job not found"}


def test_job_history(client, monkeypatch):
    """A job's run history is proxied from the scheduler."""
    history = [{"run_at": "2026-10-16T03:00:00", "status": "success"}]
    use_scheduler(monkeypatch, lambda request: httpx.Response(200, json=history))
    resp = client.get("/api/jobs/job-1/history")
    assert resp.status_code == 200
    assert resp.json() == {"history": history}
