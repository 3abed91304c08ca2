"""Session data types

- SyncDirection / SyncMode / SyncRequest: what a trigger asks for
- SessionState: lifecycle of the single sync slot
- SessionEventKind / SessionEvent: transition output consumed by presentation
- CommandResult: one subprocess outcome
- SyncOutcome: terminal result of one session
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..settings.models import Config, Site


class SyncDirection(Enum):
    UP = "up"
    DOWN = "down"

    @property
    def is_down(self) -> bool:
        return self is SyncDirection.DOWN


class SyncMode(Enum):
    FULL = "full"
    DRY_RUN = "dry_run"
    SINGLE_FILE = "single_file"


@dataclass(frozen=True)
class SyncRequest:
    """Transient request built per trigger.

    Attributes:
        direction: up (local→remote) or down (remote→local)
        mode: full sync, dry run, or single file
        path: workspace-relative file path (single-file mode only)
        source: trigger that produced it ("command", "watch", "editor")
    """

    direction: SyncDirection
    mode: SyncMode = SyncMode.FULL
    path: str | None = None
    source: str = "command"

    def __post_init__(self):
        if (self.mode is SyncMode.SINGLE_FILE) != (self.path is not None):
            raise ValueError("path is required for, and only for, single-file requests")

    @property
    def dry_run(self) -> bool:
        return self.mode is SyncMode.DRY_RUN

    @property
    def single_file(self) -> bool:
        return self.mode is SyncMode.SINGLE_FILE

    @classmethod
    def full(cls, direction: SyncDirection, dry_run: bool = False, source: str = "command") -> "SyncRequest":
        return cls(direction, SyncMode.DRY_RUN if dry_run else SyncMode.FULL, source=source)

    @classmethod
    def file(cls, direction: SyncDirection, path: str, source: str = "editor") -> "SyncRequest":
        return cls(direction, SyncMode.SINGLE_FILE, path=path, source=source)


class SessionState(Enum):
    """Sync slot lifecycle

    IDLE → RUNNING → {SUCCEEDED, FAILED, KILLED} → IDLE
    """

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    KILLED = "killed"

    @property
    def is_terminal(self) -> bool:
        return self in {SessionState.SUCCEEDED, SessionState.FAILED, SessionState.KILLED}


class SessionEventKind(Enum):
    STARTED = "started"
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    KILLED = "killed"
    RESET = "reset"


@dataclass
class SessionEvent:
    """Emitted on every state transition.

    ``site`` and ``config`` are the snapshot the session runs with, so the
    presentation layer never re-reads settings mid-session.
    """

    kind: SessionEventKind
    from_state: SessionState
    to_state: SessionState
    request: SyncRequest | None = None
    site: "Site | None" = None
    config: "Config | None" = None
    message: str = ""
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())

    def format_log(self) -> str:
        ts = datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S.%f")[:-3]
        direction = self.request.direction.value if self.request else "-"
        return (
            f"[SessionEvent] {ts} | {self.kind.value:9} | {direction:4} | "
            f"{self.from_state.value} → {self.to_state.value}"
        )


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one subprocess."""

    success: bool
    code: int


@dataclass(frozen=True)
class SyncOutcome:
    """Terminal result of one session."""

    state: SessionState
    message: str = ""
    skipped: bool = False

    @property
    def success(self) -> bool:
        return self.state is SessionState.SUCCEEDED
