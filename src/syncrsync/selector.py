"""Active site selector

Holds zero or one selected Site by reference. Only explicit user selection
or disconnection changes it; syncs read ``current()`` at trigger time.
"""

from collections.abc import Callable

from .settings.models import Site
from .telemetry import get_logger

logger = get_logger(__name__)

SelectionListener = Callable[[Site | None], None]


class ActiveSiteSelector:
    def __init__(self, site: Site | None = None):
        self._site = site
        self._listeners: list[SelectionListener] = []

    def current(self) -> Site | None:
        return self._site

    @property
    def has_selection(self) -> bool:
        return self._site is not None

    @property
    def display_name(self) -> str:
        """Name, else remote path, else "No Site"."""
        return self._site.display_name if self._site else "No Site"

    def select(self, site: Site) -> None:
        self._site = site
        logger.info(f"[Selector] Selected {site.label}")
        self._notify()

    def deselect(self) -> None:
        if self._site is None:
            return
        logger.info(f"[Selector] Deselected {self._site.label}")
        self._site = None
        self._notify()

    def adopt(self, site: Site) -> None:
        """Replace the selection with a reloaded copy of the same site, silently."""
        if self._site is not None:
            self._site = site

    def add_listener(self, listener: SelectionListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._site)
            except Exception as e:
                logger.error(f"[Selector] Listener failed: {e}")
