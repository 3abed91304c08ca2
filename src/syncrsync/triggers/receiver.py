"""HTTP editor event receiver"""

from typing import TYPE_CHECKING

from pydantic import BaseModel

from ..telemetry import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

    from .editor import EditorTriggerSource

logger = get_logger(__name__)


class EditorEventRequest(BaseModel):
    """Editor event request body"""

    event: str  # "save" | "open"
    path: str  # absolute or workspace-relative file path


class EditorEventResponse(BaseModel):
    """Editor event response"""

    success: bool
    message: str
    outcomes: list[str] = []


class EditorEventReceiver:
    """Provides the `/api/editor` endpoint for editor plugins and scripts."""

    def __init__(self, source: "EditorTriggerSource"):
        self.source = source

    def setup_routes(self, app: "FastAPI") -> None:
        @app.post("/api/editor", response_model=EditorEventResponse)
        async def receive_editor_event(request: EditorEventRequest):
            logger.debug(f"[EditorReceiver] Received {request.event}: {request.path}")

            try:
                outcomes = await self.source.handle_event(request.event, request.path)
            except ValueError as e:
                logger.warning(f"[EditorReceiver] {e}")
                return EditorEventResponse(success=False, message=str(e))

            states = [outcome.state.value if outcome else "ignored" for outcome in outcomes]
            return EditorEventResponse(success=True, message="Event processed", outcomes=states)

        @app.get("/api/editor/status")
        async def editor_status():
            return {"running": self.source.running}
