"""Trigger source base class"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..commands import SyncCommands


class TriggerSource(ABC):
    """Turns an external event stream into sync requests.

    Every source issues requests through SyncCommands, so the busy guard and
    direction policy apply exactly as for manual commands.
    """

    source_name: str  # "watch", "editor"

    def __init__(self, commands: "SyncCommands"):
        self.commands = commands

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass
