"""WebSocket message handler"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket

from ..commands import PickItem, SitePicker, SyncCommands
from ..session.types import SyncOutcome
from ..settings.models import Site
from ..telemetry import get_logger

logger = get_logger(__name__)


def index_picker(choice: int | None) -> SitePicker:
    """Picker answering with the item at ``choice`` (None or out of range dismisses)."""

    async def pick(items: list[PickItem], placeholder: str) -> PickItem | None:
        if choice is None or not 0 <= choice < len(items):
            return None
        return items[choice]

    return pick


def serialize_result(result: Any) -> Any:
    """JSON-friendly form of a command's return value."""
    if isinstance(result, SyncOutcome):
        return {"state": result.state.value, "message": result.message, "skipped": result.skipped}
    if isinstance(result, Site):
        return {"label": result.label, "remotePath": result.remote_path}
    return result


@dataclass
class MessageHandler:
    """Handles JSON messages sent by WebSocket clients.

    | action | fields | effect |
    |--------|--------|--------|
    | command | name, choice? | run a command, reply with command_result |
    | show-output / hide-output | - | toggle output visibility |
    """

    commands: SyncCommands
    broadcast: Callable[[dict], Awaitable[None]]
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False, repr=False)

    async def handle(self, websocket: WebSocket, data: str) -> None:
        try:
            msg = json.loads(data)
        except json.JSONDecodeError:
            logger.debug(f"[WebHandler] Ignored non-JSON message: {data[:40]}")
            return
        if not isinstance(msg, dict):
            return

        action = msg.get("action")
        if action == "command":
            # a sync can run for minutes; keep the receive loop free for kill-sync
            task = asyncio.create_task(self._handle_command(websocket, msg))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif action == "show-output":
            self.commands.show_output()
        elif action == "hide-output":
            self.commands.hide_output()

    async def _handle_command(self, websocket: WebSocket, msg: dict) -> None:
        name = msg.get("name", "")
        try:
            result = await self.commands.dispatch(name, index_picker(msg.get("choice")))
        except KeyError:
            await websocket.send_json({"type": "command_result", "name": name, "success": False})
            return
        await websocket.send_json(
            {"type": "command_result", "name": name, "success": True, "result": serialize_result(result)}
        )
