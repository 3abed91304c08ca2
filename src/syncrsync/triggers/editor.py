"""Editor trigger - save/open notifications

| event | toggle | action |
|-------|--------|--------|
| save | on_file_save | full up sync (only with a selected site) |
| save | on_file_save_individual | single-file up sync |
| open | on_file_load_individual | single-file down sync |
"""

from pathlib import Path
from typing import TYPE_CHECKING

from ..config import METRICS_ENABLED
from ..session.types import SyncDirection, SyncOutcome
from ..telemetry import get_logger, metrics
from .base import TriggerSource

if TYPE_CHECKING:
    from ..commands import SyncCommands
    from ..settings.models import Config

logger = get_logger(__name__)

EDITOR_EVENTS = ("save", "open")


class EditorTriggerSource(TriggerSource):
    """Editor event source; toggles come from the Config snapshot given at start."""

    source_name = "editor"

    def __init__(self, commands: "SyncCommands", workspace: Path, config: "Config"):
        super().__init__(commands)
        self._workspace = workspace
        self._config = config
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True
        logger.info(
            f"[EditorTrigger] Started (save={self._config.on_file_save}, "
            f"save_individual={self._config.on_file_save_individual}, "
            f"load_individual={self._config.on_file_load_individual})"
        )

    async def stop(self) -> None:
        self._running = False

    def relative_path(self, path: str) -> str:
        """Workspace-relative POSIX path; paths outside the workspace pass through."""
        candidate = Path(path)
        if not candidate.is_absolute():
            return candidate.as_posix()
        try:
            return candidate.relative_to(self._workspace).as_posix()
        except ValueError:
            return candidate.as_posix()

    async def handle_event(self, event: str, path: str) -> list[SyncOutcome | None]:
        """Dispatch a raw editor event.

        Raises:
            ValueError: unknown event name
        """
        if event == "save":
            return await self.on_save(path)
        if event == "open":
            return await self.on_open(path)
        raise ValueError(f"Unknown editor event: {event}")

    async def on_save(self, path: str) -> list[SyncOutcome | None]:
        if not self._running:
            return []
        outcomes: list[SyncOutcome | None] = []

        if self._config.on_file_save and self.commands.has_selection:
            self._count()
            outcomes.append(await self.commands.sync_up(source=self.source_name))

        if self._config.on_file_save_individual:
            self._count()
            outcomes.append(
                await self.commands.sync_file(self.relative_path(path), SyncDirection.UP, source=self.source_name)
            )
        return outcomes

    async def on_open(self, path: str) -> list[SyncOutcome | None]:
        if not self._running or not self._config.on_file_load_individual:
            return []
        self._count()
        outcome = await self.commands.sync_file(self.relative_path(path), SyncDirection.DOWN, source=self.source_name)
        return [outcome]

    def _count(self) -> None:
        if METRICS_ENABLED:
            metrics.inc("trigger.fired", {"source": self.source_name})
