"""Command surface

The logical commands the host exposes. Each one is parameterless apart from
the picker the host supplies, reads the current settings and selection at
invocation time, and completes its own state transition even on failure.

| command | action |
|---------|--------|
| sync-up / sync-down | full sync of the selected site |
| compare-up / compare-down | dry run of the selected site |
| sync-up-single / sync-down-single | pick a site (several configured) and sync it |
| kill-sync | kill the running sync |
| show-output | show the output channel |
| show-site-menu | select a site or disconnect |
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .errors import ConfigurationError
from .session.types import SyncDirection, SyncOutcome, SyncRequest
from .telemetry import get_logger

if TYPE_CHECKING:
    from .notifier import Notifier
    from .output import OutputChannel
    from .selector import ActiveSiteSelector
    from .session.manager import SyncManager
    from .settings.models import Config, Site

logger = get_logger(__name__)

NO_SITE_SELECTED = "No site selected. Please select a site first."
NO_SITES_CONFIGURED = "No sites configured"
SYNC_IN_PROGRESS = "Sync already in progress"


@dataclass(frozen=True)
class PickItem:
    """One picker entry; ``site`` None is the Disconnect entry."""

    label: str
    description: str
    site: "Site | None"

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "description": self.description, "disconnect": self.site is None}


# picker(items, placeholder) -> chosen item or None (dismissed)
SitePicker = Callable[[list[PickItem], str], Awaitable[PickItem | None]]


async def _dismiss(items: list[PickItem], placeholder: str) -> PickItem | None:
    logger.info(f"[Commands] No picker available for '{placeholder}'")
    return None


def site_items(sites: "tuple[Site, ...]") -> list[PickItem]:
    return [PickItem(label=site.label, description=site.remote_path or "", site=site) for site in sites]


def site_key(site: "Site") -> tuple[str | None, str | None]:
    """Identity of a site across settings reloads."""
    return site.name, site.remote_path


class SyncCommands:
    """Command handlers bound to one runtime."""

    def __init__(
        self,
        manager: "SyncManager",
        selector: "ActiveSiteSelector",
        config_provider: Callable[[], "Config"],
        output: "OutputChannel",
        notifier: "Notifier",
    ):
        self._manager = manager
        self._selector = selector
        self._config_provider = config_provider
        self._output = output
        self._notifier = notifier

    @property
    def has_selection(self) -> bool:
        return self._selector.has_selection

    # === Full-site syncs ===

    async def sync_up(self, source: str = "command") -> SyncOutcome | None:
        return await self._sync_selected(SyncRequest.full(SyncDirection.UP, source=source))

    async def sync_down(self, source: str = "command") -> SyncOutcome | None:
        return await self._sync_selected(SyncRequest.full(SyncDirection.DOWN, source=source))

    async def compare_up(self, source: str = "command") -> SyncOutcome | None:
        return await self._sync_selected(SyncRequest.full(SyncDirection.UP, dry_run=True, source=source))

    async def compare_down(self, source: str = "command") -> SyncOutcome | None:
        return await self._sync_selected(SyncRequest.full(SyncDirection.DOWN, dry_run=True, source=source))

    async def sync_file(self, relative_path: str, direction: SyncDirection, source: str = "editor") -> SyncOutcome | None:
        """Single-file sync of a workspace-relative path on the selected site."""
        return await self._sync_selected(SyncRequest.file(direction, relative_path, source=source))

    # === Picker syncs ===

    async def sync_up_single(self, picker: SitePicker | None = None) -> SyncOutcome | None:
        return await self._sync_single(SyncDirection.UP, picker or _dismiss)

    async def sync_down_single(self, picker: SitePicker | None = None) -> SyncOutcome | None:
        return await self._sync_single(SyncDirection.DOWN, picker or _dismiss)

    # === Control ===

    def kill_sync(self) -> bool:
        return self._manager.kill()

    def show_output(self) -> None:
        self._output.show()

    def hide_output(self) -> None:
        self._output.hide()

    async def show_site_menu(self, picker: SitePicker | None = None) -> "Site | None":
        """Select a site, or disconnect from the current one.

        Returns:
            The selected site afterwards (None when disconnected or no change)
        """
        config = self._load_config()
        if config is None:
            return self._selector.current()
        if not config.sites:
            self._notifier.error(NO_SITES_CONFIGURED)
            return self._selector.current()

        items = site_items(config.sites)
        if self._selector.has_selection:
            items.insert(0, PickItem(label="$(close) Disconnect", description="Disconnect from current site", site=None))

        chosen = await (picker or _dismiss)(items, "Select a site or disconnect")
        if chosen is None:
            return self._selector.current()
        if chosen.site is None:
            self._selector.deselect()
        else:
            self._selector.select(chosen.site)
        return self._selector.current()

    # === Dispatch ===

    async def dispatch(self, name: str, picker: SitePicker | None = None) -> Any:
        """Run a command by its surface name.

        Raises:
            KeyError: unknown command
        """
        handlers: dict[str, Callable[[], Any]] = {
            "sync-up": self.sync_up,
            "sync-down": self.sync_down,
            "sync-up-context": self.sync_up,
            "sync-down-context": self.sync_down,
            "compare-up": self.compare_up,
            "compare-down": self.compare_down,
            "sync-up-single": lambda: self.sync_up_single(picker),
            "sync-down-single": lambda: self.sync_down_single(picker),
            "kill-sync": self.kill_sync,
            "show-output": self.show_output,
            "show-site-menu": lambda: self.show_site_menu(picker),
        }
        handler = handlers[name]
        logger.debug(f"[Commands] {name}")
        result = handler()
        if hasattr(result, "__await__"):
            result = await result
        return result

    # === Internal ===

    async def _sync_selected(self, request: SyncRequest) -> SyncOutcome | None:
        if not self._selector.has_selection:
            self._notifier.error(NO_SITE_SELECTED)
            return None
        config = self._load_config()
        if config is None:
            return None

        site = self._readopt(config)
        return await self._run(site, config, request)

    async def _sync_single(self, direction: SyncDirection, picker: SitePicker) -> SyncOutcome | None:
        config = self._load_config()
        if config is None:
            return None
        if not config.sites:
            self._notifier.error(NO_SITES_CONFIGURED)
            return None
        if len(config.sites) == 1:
            return await self._sync_selected(SyncRequest.full(direction))

        chosen = await picker(site_items(config.sites), "Select a site to sync")
        if chosen is None or chosen.site is None:
            return None
        return await self._run(chosen.site, config, SyncRequest.full(direction))

    async def _run(self, site: "Site", config: "Config", request: SyncRequest) -> SyncOutcome | None:
        if request.single_file:
            outcome = await self._manager.sync_file(site, config, request)
        else:
            outcome = await self._manager.sync_site(site, config, request)
        if outcome is None and request.source == "command":
            self._notifier.info(SYNC_IN_PROGRESS)
        return outcome

    def _load_config(self) -> "Config | None":
        try:
            return self._config_provider()
        except ConfigurationError as e:
            self._notifier.error(e.user_message)
            return None

    def _readopt(self, config: "Config") -> "Site":
        """Swap the selected site for its freshly loaded counterpart.

        Runs before the session starts, so a running sync keeps its snapshot.
        """
        current = self._selector.current()
        match = next((site for site in config.sites if site_key(site) == site_key(current)), None)
        if match is None and current.name:
            # remote path edited; the name still identifies the site
            match = next((site for site in config.sites if site.name == current.name), None)
        if match is None or match is current:
            return current
        self._selector.adopt(match)
        return match
