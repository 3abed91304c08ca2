"""Bootstrap - central construction of the runtime components

Responsibilities:
- create the output channel, runner, session, manager, selector
- wire session events and selection changes to the status presenter
- create the trigger sources from the settings snapshot taken at startup
- return RuntimeComponents to the caller

Not responsible for:
- start/stop lifecycle of the sources (the caller manages it)
- the web host (independent of the sync core)

Nothing here is a process-wide singleton: every call builds an independent
runtime, so several workspaces (or tests) can coexist in one process.
"""

from dataclasses import dataclass, field
from pathlib import Path

from ..commands import SyncCommands
from ..errors import ConfigurationError
from ..notifier import LogNotifier, Notifier
from ..output import OutputChannel
from ..runner import ProcessRunner
from ..selector import ActiveSiteSelector
from ..session import SyncSession
from ..session.manager import SyncManager
from ..settings import Config, ConfigProvider
from ..status import StatusPresenter
from ..telemetry import get_logger
from ..triggers import EditorEventReceiver, EditorTriggerSource, TriggerSource, WatchTriggerSource

logger = get_logger(__name__)


@dataclass
class RuntimeComponents:
    """Runtime components returned by bootstrap"""

    workspace: Path
    config_provider: ConfigProvider
    notifier: Notifier
    output: OutputChannel
    runner: ProcessRunner
    session: SyncSession
    manager: SyncManager
    selector: ActiveSiteSelector
    presenter: StatusPresenter
    commands: SyncCommands
    watch_source: WatchTriggerSource
    editor_source: EditorTriggerSource
    receiver: EditorEventReceiver
    sources: list[TriggerSource] = field(default_factory=list)

    async def start_sources(self) -> None:
        for source in self.sources:
            await source.start()
        logger.info("[Bootstrap] All sources started")

    async def stop_sources(self) -> None:
        for source in self.sources:
            await source.stop()
        logger.info("[Bootstrap] All sources stopped")

    async def shutdown(self) -> None:
        """Stop triggers and kill a sync that is still running."""
        await self.stop_sources()
        if self.session.is_busy:
            self.commands.kill_sync()


def _startup_config(provider: ConfigProvider, notifier: Notifier) -> Config:
    try:
        return provider()
    except ConfigurationError as e:
        notifier.error(e.user_message)
        logger.warning(f"[Bootstrap] Settings unreadable, triggers use defaults: {e}")
        return Config()


def bootstrap(
    workspace: Path,
    settings_path: Path | None = None,
    notifier: Notifier | None = None,
    platform: str | None = None,
) -> RuntimeComponents:
    """Build the runtime components.

    Args:
        workspace: Workspace root (default local path, watch root)
        settings_path: Explicit settings file (searched under workspace otherwise)
        notifier: User-visible message sink (LogNotifier by default)
        platform: Override of sys.platform for spawn planning

    Returns:
        RuntimeComponents with everything constructed and wired
    """
    workspace = workspace.resolve()
    notifier = notifier or LogNotifier()

    # 1. Settings and output
    config_provider = ConfigProvider(workspace, settings_path)
    output = OutputChannel()

    # 2. Core
    runner = ProcessRunner(output, platform=platform)
    session = SyncSession()
    manager = SyncManager(runner, output, session=session, notifier=notifier)
    selector = ActiveSiteSelector()

    # 3. Presentation
    presenter = StatusPresenter(selector, output, notifier)
    session.add_listener(presenter.on_session_event)
    selector.add_listener(presenter.on_selection_changed)

    # 4. Commands
    commands = SyncCommands(manager, selector, config_provider, output, notifier)

    # 5. Trigger sources (toggles and globs come from this snapshot)
    config = _startup_config(config_provider, notifier)
    watch_source = WatchTriggerSource(commands, workspace, config.watch_globs)
    editor_source = EditorTriggerSource(commands, workspace, config)
    receiver = EditorEventReceiver(editor_source)

    output.append_line("Sync-Rsync started")
    logger.info(f"[Bootstrap] Components created for {workspace}")

    return RuntimeComponents(
        workspace=workspace,
        config_provider=config_provider,
        notifier=notifier,
        output=output,
        runner=runner,
        session=session,
        manager=manager,
        selector=selector,
        presenter=presenter,
        commands=commands,
        watch_source=watch_source,
        editor_source=editor_source,
        receiver=receiver,
        sources=[watch_source, editor_source],
    )
