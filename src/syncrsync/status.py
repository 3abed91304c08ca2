"""Status presentation

Maps SessionEvents and selection changes to the status indicator, output
visibility and completion notifications. The core never touches any of this
directly.

| event | glyph | color | command |
|-------|-------|-------|---------|
| selection change | $(info) | - | show-site-menu |
| started | $(sync) | mediumseagreen | kill-sync |
| succeeded / skipped | $(check) | - | show-site-menu |
| failed / killed | $(alert) | red | show-site-menu |
"""

from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .config import STATUS_ERROR_COLOR, STATUS_PREFIX, STATUS_RUNNING_COLOR
from .session.types import SessionEvent, SessionEventKind
from .telemetry import get_logger

if TYPE_CHECKING:
    from .notifier import Notifier
    from .output import OutputChannel
    from .selector import ActiveSiteSelector
    from .settings.models import Site

logger = get_logger(__name__)


class StatusGlyph(Enum):
    INFO = "$(info)"
    SYNC = "$(sync)"
    CHECK = "$(check)"
    ALERT = "$(alert)"


@dataclass(frozen=True)
class IndicatorState:
    text: str
    glyph: str
    color: str | None
    command: str

    def to_dict(self) -> dict:
        return asdict(self)


IndicatorListener = Callable[[IndicatorState], None]


class StatusPresenter:
    """Keeps the indicator in step with the session and the selector."""

    def __init__(
        self,
        selector: "ActiveSiteSelector",
        output: "OutputChannel",
        notifier: "Notifier",
    ):
        self._selector = selector
        self._output = output
        self._notifier = notifier
        self._listeners: list[IndicatorListener] = []
        self._state = IndicatorState(
            text=f"{STATUS_PREFIX}: {StatusGlyph.INFO.value}",
            glyph=StatusGlyph.INFO.value,
            color=None,
            command="show-site-menu",
        )

    @property
    def state(self) -> IndicatorState:
        return self._state

    def add_listener(self, listener: IndicatorListener) -> None:
        self._listeners.append(listener)

    def status_text(self, glyph: StatusGlyph) -> str:
        return f"{STATUS_PREFIX}: {self._selector.display_name} - {glyph.value}"

    # === Inputs ===

    def on_selection_changed(self, site: "Site | None") -> None:
        self._set(StatusGlyph.INFO, color=None, command="show-site-menu")
        if site is None:
            self._output.append_line("Disconnected from site")
        else:
            self._output.append_line(f"Connected to site: {site.label}")

    def on_session_event(self, event: SessionEvent) -> None:
        kind = event.kind
        config = event.config

        if kind is SessionEventKind.STARTED:
            self._set(StatusGlyph.SYNC, color=STATUS_RUNNING_COLOR, command="kill-sync")
            return

        if kind in (SessionEventKind.SUCCEEDED, SessionEventKind.SKIPPED):
            if config and config.auto_hide_output:
                self._output.hide()
            self._set(StatusGlyph.CHECK, color=None, command="show-site-menu")
            if config and config.notification:
                single = event.request is not None and event.request.single_file
                self._notifier.info("File Sync Completed" if single else "Sync Completed")
            return

        if kind in (SessionEventKind.FAILED, SessionEventKind.KILLED):
            if config and config.auto_show_output_on_error:
                self._output.show()
            self._set(StatusGlyph.ALERT, color=STATUS_ERROR_COLOR, command="show-site-menu")
            return

        # RESET: the command affordance is already back to the site menu

    # === Internal ===

    def _set(self, glyph: StatusGlyph, color: str | None, command: str) -> None:
        self._state = IndicatorState(
            text=self.status_text(glyph),
            glyph=glyph.value,
            color=color,
            command=command,
        )
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"[Status] Listener failed: {e}")
