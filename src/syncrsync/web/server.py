"""Web server - HTTP command surface and WebSocket status feed"""

import asyncio
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from ..commands import site_items, site_key
from ..errors import ConfigurationError
from ..runtime import RuntimeComponents
from ..settings.models import Config
from ..status import IndicatorState
from ..telemetry import get_logger, metrics
from .handlers import MessageHandler, index_picker, serialize_result
from .notify import WebNotifier

logger = get_logger(__name__)


class SelectSiteRequest(BaseModel):
    """Site selection request body; index None disconnects"""

    index: int | None = None


class WebServer:
    """FastAPI host around one runtime.

    Broadcast message types: ``status``, ``output``, ``visibility``,
    ``notification``.
    """

    def __init__(self, components: RuntimeComponents):
        self.app = FastAPI(title="Sync-Rsync")
        self.components = components
        self.clients: list[WebSocket] = []
        self._pending: set[asyncio.Task] = set()

        templates_dir = Path(__file__).parent.parent / "templates"
        self.templates = Jinja2Templates(directory=str(templates_dir))

        self._handler = MessageHandler(commands=components.commands, broadcast=self.broadcast)

        self._setup_routes()
        components.receiver.setup_routes(self.app)

        components.presenter.add_listener(self._on_indicator)
        components.output.add_listener(self._on_output)
        if isinstance(components.notifier, WebNotifier):
            components.notifier.add_listener(self._on_notification)

    # === Snapshots ===

    def status_dict(self) -> dict[str, Any]:
        components = self.components
        site = components.selector.current()
        return {
            "type": "status",
            "indicator": components.presenter.state.to_dict(),
            "session": components.session.state.value,
            "busy": components.session.is_busy,
            "selected": site.label if site else None,
            "outputVisible": components.output.visible,
        }

    def sites_dict(self, config: Config) -> dict[str, Any]:
        current = self.components.selector.current()
        selected = None
        sites = []
        for index, item in enumerate(site_items(config.sites)):
            is_selected = current is not None and site_key(item.site) == site_key(current)
            if is_selected:
                selected = index
            sites.append({"index": index, **item.to_dict(), "selected": is_selected})
        return {"sites": sites, "selected": selected}

    def _load_config(self) -> Config:
        try:
            return self.components.config_provider()
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=e.user_message) from e

    # === Routes ===

    def _setup_routes(self):
        @self.app.get("/", response_class=HTMLResponse)
        async def index(request: Request):
            return self.templates.TemplateResponse(request, "index.html", {"workspace": str(self.components.workspace)})

        @self.app.get("/api/status")
        async def get_status():
            return self.status_dict()

        @self.app.get("/api/output")
        async def get_output():
            output = self.components.output
            return {"name": output.name, "text": output.text, "visible": output.visible}

        @self.app.get("/api/sites")
        async def get_sites():
            return self.sites_dict(self._load_config())

        @self.app.post("/api/sites/select")
        async def select_site(body: SelectSiteRequest):
            selector = self.components.selector
            if body.index is None:
                selector.deselect()
                return self.status_dict()

            config = self._load_config()
            if not 0 <= body.index < len(config.sites):
                raise HTTPException(status_code=404, detail=f"No site at index {body.index}")
            selector.select(config.sites[body.index])
            return self.status_dict()

        @self.app.post("/api/commands/{name}")
        async def run_command(name: str, choice: int | None = None):
            try:
                result = await self.components.commands.dispatch(name, index_picker(choice))
            except KeyError as e:
                raise HTTPException(status_code=404, detail=f"Unknown command: {name}") from e
            return {"name": name, "result": serialize_result(result)}

        @self.app.get("/api/notifications")
        async def get_notifications():
            notifier = self.components.notifier
            recent = list(notifier.recent) if isinstance(notifier, WebNotifier) else []
            return {"notifications": [{"level": level, "message": message} for level, message in recent]}

        @self.app.get("/api/metrics")
        async def get_metrics():
            return {"counters": metrics.get_all_counters(), "gauges": metrics.get_all_gauges()}

        @self.app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket):
            await websocket.accept()
            self.clients.append(websocket)
            try:
                await websocket.send_json(self.status_dict())
                await websocket.send_json({"type": "output", "text": self.components.output.text, "replay": True})
                while True:
                    data = await websocket.receive_text()
                    await self._handler.handle(websocket, data)
            except WebSocketDisconnect:
                pass
            finally:
                if websocket in self.clients:
                    self.clients.remove(websocket)

    # === Broadcast ===

    async def broadcast(self, data: dict):
        """Send a message to every connected client, dropping dead ones."""
        for client in list(self.clients):
            try:
                await client.send_json(data)
            except Exception as e:
                logger.debug(f"[WebServer] Dropping client: {e}")
                if client in self.clients:
                    self.clients.remove(client)

    def _fire(self, data: dict) -> None:
        if not self.clients:
            return
        try:
            task = asyncio.get_running_loop().create_task(self.broadcast(data))
        except RuntimeError:
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_indicator(self, state: IndicatorState) -> None:
        self._fire(self.status_dict())

    def _on_output(self, kind: str, payload: Any) -> None:
        if kind == "append":
            self._fire({"type": "output", "text": payload})
        elif kind == "visibility":
            self._fire({"type": "visibility", "visible": payload})

    def _on_notification(self, level: str, message: str) -> None:
        self._fire({"type": "notification", "level": level, "message": message})
