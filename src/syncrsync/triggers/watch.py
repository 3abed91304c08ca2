"""Watch trigger - debounced up sync on file changes

Responsibilities:
- watch the workspace with a watchdog observer (its own thread)
- hand change events to the event loop with call_soon_threadsafe
- keep only paths matching the configured globs, skipping dot-paths
- debounce: one up sync WATCH_DEBOUNCE_SECONDS after the last change
"""

import asyncio
import re
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import pathspec
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..config import METRICS_ENABLED, WATCH_DEBOUNCE_SECONDS
from ..telemetry import get_logger, metrics
from .base import TriggerSource

if TYPE_CHECKING:
    from ..commands import SyncCommands

logger = get_logger(__name__)

_DOT_PATH = re.compile(r"(^|[/\\])\.")


class _ChangeHandler(FileSystemEventHandler):
    """watchdog handler; runs on the observer thread."""

    def __init__(self, source: "WatchTriggerSource", loop: asyncio.AbstractEventLoop):
        super().__init__()
        self._source = source
        self._loop = loop

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # atomic saves write a temp file and rename it over the target
        if not event.is_directory:
            self._forward(event.dest_path)

    def _forward(self, path: str | bytes) -> None:
        if isinstance(path, bytes):
            path = path.decode(errors="replace")
        self._loop.call_soon_threadsafe(self._source.notify_change, path)


class WatchTriggerSource(TriggerSource):
    """Debounced file-watch trigger.

    Usage:
        source = WatchTriggerSource(commands, workspace, ["src/**/*.py"])
        await source.start()
        ...
        await source.stop()
    """

    source_name = "watch"

    def __init__(
        self,
        commands: "SyncCommands",
        workspace: Path,
        globs: Sequence[str],
        debounce: float | None = None,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        """
        Args:
            commands: Command surface to trigger
            workspace: Watched root; globs are matched relative to it
            globs: gitignore-style patterns selecting watched files
            debounce: Quiet period in seconds (WATCH_DEBOUNCE_SECONDS by default)
            observer_factory: watchdog observer constructor
        """
        super().__init__(commands)
        self._workspace = workspace
        self._globs = list(globs)
        self._spec = pathspec.GitIgnoreSpec.from_lines(self._globs)
        self._debounce = WATCH_DEBOUNCE_SECONDS if debounce is None else debounce
        self._observer_factory = observer_factory
        self._observer: Observer | None = None
        self._debounce_task: asyncio.Task | None = None
        self._sync_tasks: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self._globs)

    @property
    def pending(self) -> bool:
        """A debounced sync is waiting to fire."""
        return self._debounce_task is not None and not self._debounce_task.done()

    async def start(self) -> None:
        if not self.enabled:
            logger.info("[WatchTrigger] No watch globs configured, not watching")
            return

        loop = asyncio.get_running_loop()
        self._observer = self._observer_factory()
        self._observer.schedule(_ChangeHandler(self, loop), str(self._workspace), recursive=True)
        self._observer.start()
        logger.info(f"[WatchTrigger] Watching {self._workspace} for {self._globs}")

    async def stop(self) -> None:
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
            try:
                await self._debounce_task
            except asyncio.CancelledError:
                pass
        self._debounce_task = None

        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join)
            self._observer = None
        logger.info("[WatchTrigger] Stopped")

    def matches(self, path: str) -> bool:
        """Whether a changed path should trigger a sync."""
        try:
            relative = Path(path).resolve().relative_to(self._workspace.resolve()).as_posix()
        except ValueError:
            relative = Path(path).as_posix()
        if _DOT_PATH.search(relative):
            return False
        return self._spec.match_file(relative)

    def notify_change(self, path: str) -> None:
        """Record a change (event loop thread) and restart the debounce window."""
        if not self.matches(path):
            return
        logger.debug(f"[WatchTrigger] Changed: {path}")

        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounced_sync())

    async def _debounced_sync(self) -> None:
        try:
            await asyncio.sleep(self._debounce)
        except asyncio.CancelledError:
            # superseded by a newer change, or stopped
            return

        # detach so a change during the sync cannot cancel it
        self._debounce_task = None
        task = asyncio.current_task()
        if task is not None:
            self._sync_tasks.add(task)
        try:
            if METRICS_ENABLED:
                metrics.inc("trigger.fired", {"source": self.source_name})
            await self.commands.sync_up(source=self.source_name)
        finally:
            self._sync_tasks.discard(task)
