"""sync-rsync-ctl client tests"""

import json

import httpx
import pytest
from typer.testing import CliRunner

from syncrsync import client as client_module
from syncrsync.client import SyncRsyncClient, app


def handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/api/status":
        return httpx.Response(200, json={"indicator": {"text": "Rsync: prod - $(check)", "color": None}})
    if path == "/api/sites":
        return httpx.Response(
            200,
            json={"sites": [{"index": 0, "label": "prod", "description": "h:/r/", "selected": True}], "selected": 0},
        )
    if path == "/api/sites/select":
        index = json.loads(request.content)["index"]
        text = "Rsync: No Site - $(info)" if index is None else "Rsync: prod - $(info)"
        return httpx.Response(200, json={"indicator": {"text": text}})
    if path.startswith("/api/commands/"):
        name = path.rsplit("/", 1)[-1]
        if name == "sync-up":
            state = "failed" if request.url.params.get("choice") == "9" else "succeeded"
            return httpx.Response(200, json={"name": name, "result": {"state": state}})
        if name == "kill-sync":
            return httpx.Response(200, json={"name": name, "result": False})
        return httpx.Response(404, json={"detail": f"Unknown command: {name}"})
    if path == "/api/editor":
        body = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "message": "Event processed", "outcomes": [body["event"]]})
    return httpx.Response(404)


def mock_client(base_url=None) -> SyncRsyncClient:
    return SyncRsyncClient(base_url or "http://testserver", transport=httpx.MockTransport(handler))


@pytest.fixture
def client():
    with mock_client() as client:
        yield client


@pytest.fixture
def invoke(monkeypatch):
    monkeypatch.setattr(client_module, "SyncRsyncClient", mock_client)
    runner = CliRunner()

    def _invoke(*argv):
        return runner.invoke(app, list(argv))

    return _invoke


class TestClientApi:
    def test_status(self, client):
        assert client.status()["indicator"]["text"] == "Rsync: prod - $(check)"

    def test_command_passes_choice(self, client):
        assert client.command("sync-up", choice=9) == {"state": "failed"}

    def test_unknown_command_raises(self, client):
        with pytest.raises(httpx.HTTPStatusError):
            client.command("nope")

    def test_editor_event(self, client):
        assert client.editor_event("save", "a.py")["outcomes"] == ["save"]


class TestCli:
    def test_run_success_exit_code(self, invoke):
        result = invoke("run", "sync-up")
        assert result.exit_code == 0
        assert "succeeded" in result.output

    def test_run_failure_exit_code(self, invoke):
        assert invoke("run", "sync-up", "--choice", "9").exit_code == 1

    def test_run_plain_result(self, invoke):
        result = invoke("run", "kill-sync")
        assert result.exit_code == 0
        assert "False" in result.output

    def test_unknown_command_exits_1(self, invoke):
        assert invoke("run", "nope").exit_code == 1

    def test_status(self, invoke):
        assert "Rsync: prod - $(check)" in invoke("status").output

    def test_sites_listing(self, invoke):
        assert "* 0: prod  h:/r/" in invoke("sites").output

    def test_select_none(self, invoke):
        assert "No Site" in invoke("select", "none").output

    def test_save_event(self, invoke):
        result = invoke("save", "src/a.py")
        assert result.exit_code == 0
        assert "save" in result.output
