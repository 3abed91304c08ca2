"""Output channel - append-only transcript of every sync

The runner streams raw subprocess output here; the web host replays the
buffer to new clients and forwards new chunks through listeners. Visibility
(show/hide) is state only; the host decides what showing means.
"""

import asyncio
import inspect
from collections import deque
from collections.abc import Callable
from typing import Any

from rich.console import Console

from .config import OUTPUT_CHANNEL_NAME, OUTPUT_MAX_CHUNKS
from .telemetry import get_logger

logger = get_logger(__name__)

# listener(kind, payload): kind is "append" (payload = text) or "visibility" (payload = bool)
OutputListener = Callable[[str, Any], Any]


class OutputChannel:
    """Append-only text sink with listeners."""

    def __init__(self, name: str = OUTPUT_CHANNEL_NAME, max_chunks: int = OUTPUT_MAX_CHUNKS):
        self.name = name
        self._chunks: deque[str] = deque(maxlen=max_chunks)
        self._listeners: list[OutputListener] = []
        self._visible = False

    # === Writing ===

    def append(self, text: str) -> None:
        if not text:
            return
        self._chunks.append(text)
        self._notify("append", text)

    def append_line(self, text: str = "") -> None:
        self.append(text + "\n")

    # === Visibility ===

    @property
    def visible(self) -> bool:
        return self._visible

    def show(self) -> None:
        if not self._visible:
            self._visible = True
            self._notify("visibility", True)

    def hide(self) -> None:
        if self._visible:
            self._visible = False
            self._notify("visibility", False)

    # === Reading ===

    @property
    def text(self) -> str:
        """Everything still in the buffer."""
        return "".join(self._chunks)

    def clear(self) -> None:
        self._chunks.clear()

    # === Listeners ===

    def add_listener(self, listener: OutputListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: OutputListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, kind: str, payload: Any) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(kind, payload)
                # async listeners are fire-and-forget on the running loop
                if inspect.iscoroutine(result):
                    _schedule(result)
            except Exception as e:
                logger.error(f"[Output] Listener failed: {e}")


def _schedule(coro) -> None:
    try:
        asyncio.get_running_loop().create_task(coro)
    except RuntimeError:
        coro.close()
        logger.debug("[Output] No running loop, async listener dropped")


class ConsoleMirror:
    """Echo channel output to the terminal the service was started from."""

    def __init__(self, console: Console | None = None):
        self._console = console or Console(highlight=False)

    def __call__(self, kind: str, payload: Any) -> None:
        if kind == "append":
            self._console.print(payload, end="", markup=False)
