"""Editor trigger and HTTP receiver tests"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from syncrsync.session import SessionState, SyncDirection, SyncOutcome
from syncrsync.settings.models import Config
from syncrsync.triggers import EditorEventReceiver, EditorTriggerSource

WORKSPACE = Path("/work/project")


@pytest.fixture
def commands():
    commands = MagicMock()
    commands.has_selection = True
    commands.sync_up = AsyncMock(return_value=SyncOutcome(SessionState.SUCCEEDED))
    commands.sync_file = AsyncMock(return_value=SyncOutcome(SessionState.SUCCEEDED))
    return commands


async def started(commands, **toggles) -> EditorTriggerSource:
    source = EditorTriggerSource(commands, WORKSPACE, Config(**toggles))
    await source.start()
    return source


class TestEditorTrigger:
    async def test_save_full_sync(self, commands):
        source = await started(commands, on_file_save=True)

        await source.on_save("/work/project/src/a.py")

        commands.sync_up.assert_awaited_once_with(source="editor")
        commands.sync_file.assert_not_awaited()

    async def test_save_full_sync_requires_selection(self, commands):
        commands.has_selection = False
        source = await started(commands, on_file_save=True)

        assert await source.on_save("/work/project/a.py") == []
        commands.sync_up.assert_not_awaited()

    async def test_save_individual(self, commands):
        source = await started(commands, on_file_save_individual=True)

        await source.on_save("/work/project/src/a.py")

        commands.sync_file.assert_awaited_once_with("src/a.py", SyncDirection.UP, source="editor")

    async def test_open_individual(self, commands):
        source = await started(commands, on_file_load_individual=True)

        await source.on_open("/work/project/README.md")

        commands.sync_file.assert_awaited_once_with("README.md", SyncDirection.DOWN, source="editor")

    async def test_toggles_off(self, commands):
        source = await started(commands)

        assert await source.on_save("/work/project/a.py") == []
        assert await source.on_open("/work/project/a.py") == []

    async def test_stopped_source_ignores_events(self, commands):
        source = await started(commands, on_file_save_individual=True)
        await source.stop()

        assert await source.on_save("/work/project/a.py") == []

    async def test_unknown_event(self, commands):
        source = await started(commands)
        with pytest.raises(ValueError):
            await source.handle_event("close", "a.py")

    def test_relative_path(self, commands):
        source = EditorTriggerSource(commands, WORKSPACE, Config())
        assert source.relative_path("/work/project/src/a.py") == "src/a.py"
        assert source.relative_path("src/a.py") == "src/a.py"
        assert source.relative_path("/elsewhere/a.py") == "/elsewhere/a.py"


class TestEditorReceiver:
    @pytest.fixture
    def client(self, commands):
        source = EditorTriggerSource(commands, WORKSPACE, Config(on_file_save_individual=True))
        source._running = True
        app = FastAPI()
        EditorEventReceiver(source).setup_routes(app)
        return TestClient(app)

    def test_save_event(self, client, commands):
        response = client.post("/api/editor", json={"event": "save", "path": "/work/project/a.py"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Event processed", "outcomes": ["succeeded"]}
        commands.sync_file.assert_awaited_once()

    def test_rejected_sync_reported_as_ignored(self, client, commands):
        commands.sync_file.return_value = None
        response = client.post("/api/editor", json={"event": "save", "path": "a.py"})
        assert response.json()["outcomes"] == ["ignored"]

    def test_unknown_event(self, client):
        response = client.post("/api/editor", json={"event": "close", "path": "a.py"})
        assert response.json()["success"] is False

    def test_status(self, client):
        assert client.get("/api/editor/status").json() == {"running": True}
