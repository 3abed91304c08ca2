"""SyncSession - the single sync slot

Responsibilities:
- hold state / kill flag / the snapshot of the running request
- apply transitions from the rule table and emit SessionEvents
- reject a start unless IDLE (at most one sync, hence one subprocess)
- always return to IDLE after a terminal state
"""

from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..config import METRICS_ENABLED
from ..telemetry import get_logger, metrics
from .transitions import next_state, terminal_event
from .types import (
    SessionEvent,
    SessionEventKind,
    SessionState,
    SyncOutcome,
    SyncRequest,
)

if TYPE_CHECKING:
    from ..settings.models import Config, Site

logger = get_logger(__name__)

SessionListener = Callable[[SessionEvent], None]

HISTORY_MAX_LENGTH = 50


class SyncSession:
    """Mutable run-state of the process-wide sync slot.

    Attributes:
        state: current SessionState
        kill_requested: set by ``request_kill`` while running; reset on start
        request / site / config: snapshot of the running sync
        last_outcome: terminal result of the previous sync
    """

    def __init__(self):
        self._state = SessionState.IDLE
        self._kill_requested = False
        self._request: SyncRequest | None = None
        self._site: "Site | None" = None
        self._config: "Config | None" = None
        self._listeners: list[SessionListener] = []
        self._history: deque[SessionEvent] = deque(maxlen=HISTORY_MAX_LENGTH)
        self.last_outcome: SyncOutcome | None = None

    # === Properties ===

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state is not SessionState.IDLE

    @property
    def kill_requested(self) -> bool:
        return self._kill_requested

    @property
    def request(self) -> SyncRequest | None:
        return self._request

    @property
    def site(self) -> "Site | None":
        return self._site

    @property
    def history(self) -> list[SessionEvent]:
        return list(self._history)

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    # === Lifecycle ===

    def try_begin(self, request: SyncRequest, site: "Site", config: "Config") -> bool:
        """IDLE → RUNNING.

        Returns:
            False (and no state change) if a sync is already running
        """
        if self._state is not SessionState.IDLE:
            logger.debug(f"[Session] Rejected {request.direction.value} request: {self._state.value}")
            return False

        self._kill_requested = False
        self._request = request
        self._site = site
        self._config = config
        self._apply(SessionEventKind.STARTED)
        if METRICS_ENABLED:
            metrics.inc("sync.started", {"source": request.source})
            metrics.gauge("session.busy", 1)
        return True

    def request_kill(self) -> bool:
        """Mark the running session killed. No-op when idle."""
        if self._state is not SessionState.RUNNING:
            return False
        self._kill_requested = True
        logger.info("[Session] Kill requested")
        return True

    def finish(self, success: bool, message: str = "", skipped: bool = False) -> SyncOutcome:
        """RUNNING → terminal → IDLE.

        A kill request overrides ``success``.
        """
        kind = terminal_event(success, self._kill_requested, skipped)
        event = self._apply(kind, message)
        outcome = SyncOutcome(
            state=event.to_state,
            message=message,
            skipped=kind is SessionEventKind.SKIPPED,
        )
        if METRICS_ENABLED:
            metrics.inc("sync.finished", {"state": outcome.state.value})
            metrics.gauge("session.busy", 0)

        self._apply(SessionEventKind.RESET)
        self._request = None
        self._site = None
        self._config = None
        self.last_outcome = outcome
        return outcome

    # === Internal ===

    def _apply(self, kind: SessionEventKind, message: str = "") -> SessionEvent:
        target = next_state(self._state, kind)
        if target is None:
            raise RuntimeError(f"invalid session transition: {self._state.value} --{kind.value}-->")

        event = SessionEvent(
            kind=kind,
            from_state=self._state,
            to_state=target,
            request=self._request,
            site=self._site,
            config=self._config,
            message=message,
        )
        self._state = target
        self._history.append(event)
        logger.debug(event.format_log())

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"[Session] Listener failed on {kind.value}: {e}")
        return event
