"""SyncManager - sync orchestration

Entry points:
- sync_site: full-site sync (pre-hook → transfer → post-hooks)
- sync_file: single-file transfer, no hooks
- kill: stop the running sync

Every entry goes through the SyncSession busy guard; a request arriving while
another sync runs returns None without spawning anything. Failures are
recovered here and reported through the notifier; nothing raises to the
caller.
"""

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING

from ..config import METRICS_ENABLED
from ..errors import ConfigurationError, HookFailure, SyncError, TransferFailure
from ..notifier import LogNotifier, Notifier
from ..rsync import build_file_args, build_site_args
from ..telemetry import get_logger, metrics
from .sequencer import HookSequencer, HookStage
from .state_machine import SyncSession
from .types import CommandResult, SyncOutcome, SyncRequest

if TYPE_CHECKING:
    from ..output import OutputChannel
    from ..runner import ProcessRunner
    from ..settings.models import Config, Site

logger = get_logger(__name__)

AFTER_SYNC_DEPRECATION = "afterSync will be deprecated use postSyncUp"


def _timestamp() -> str:
    return datetime.now().astimezone().strftime("%a %b %d %Y %H:%M:%S GMT%z")


class SyncManager:
    """Drives one sync at a time through the session slot.

    Usage:
        manager = SyncManager(runner, output, notifier=notifier)
        outcome = await manager.sync_site(site, config, SyncRequest.full(SyncDirection.UP))
    """

    def __init__(
        self,
        runner: "ProcessRunner",
        output: "OutputChannel",
        session: SyncSession | None = None,
        notifier: Notifier | None = None,
    ):
        self._runner = runner
        self._output = output
        self._session = session or SyncSession()
        self._notifier = notifier or LogNotifier()

    @property
    def session(self) -> SyncSession:
        return self._session

    @property
    def is_busy(self) -> bool:
        return self._session.is_busy

    # === Entry points ===

    async def sync_site(self, site: "Site", config: "Config", request: SyncRequest) -> SyncOutcome | None:
        """Full-site sync (or dry run) of ``site``.

        Returns:
            SyncOutcome, or None if rejected because a sync is running
        """
        if request.single_file:
            raise ValueError("sync_site does not take single-file requests")
        return await self._guarded(site, config, request, self._run_site)

    async def sync_file(self, site: "Site", config: "Config", request: SyncRequest) -> SyncOutcome | None:
        """Single-file transfer of ``request.path`` between the site roots.

        Returns:
            SyncOutcome, or None if rejected because a sync is running
        """
        if not request.single_file:
            raise ValueError("sync_file takes single-file requests only")
        return await self._guarded(site, config, request, self._run_file)

    def kill(self) -> bool:
        """Kill the running sync.

        Flags the session first so the terminal state is KILLED even if the
        process exits 0, then terminates the live subprocess.

        Returns:
            True if a sync was running
        """
        if not self._session.request_kill():
            return False
        self._runner.kill()
        return True

    # === Session boundary ===

    async def _guarded(self, site, config, request, body) -> SyncOutcome | None:
        if not self._session.try_begin(request, site, config):
            logger.info(f"[SyncManager] Busy, ignored {request.source} request ({request.direction.value})")
            if METRICS_ENABLED:
                metrics.inc("trigger.ignored", {"source": request.source})
            return None

        try:
            skipped = await body(site, config, request)
        except SyncError as e:
            return self._finish_failed(e)
        except asyncio.CancelledError:
            self._session.request_kill()
            self._runner.kill()
            self._session.finish(False, "cancelled")
            raise
        except Exception as e:
            logger.exception(f"[SyncManager] Unexpected error: {e}")
            self._output.append_line(f"ERROR > {e}")
            return self._session.finish(False, str(e))

        return self._session.finish(True, skipped=skipped)

    def _finish_failed(self, error: SyncError) -> SyncOutcome:
        if self._session.kill_requested:
            # a killed transfer reports a failure code; that is not a TransferFailure
            logger.info(f"[SyncManager] Killed ({error})")
        else:
            self._notifier.error(error.user_message)
        return self._session.finish(False, error.user_message)

    # === Bodies (return True when skipped by direction policy) ===

    async def _run_site(self, site: "Site", config: "Config", request: SyncRequest) -> bool:
        if self._direction_blocked(site, request):
            return True
        self._check_paths(site)

        down = request.direction.is_down
        args = build_site_args(
            site,
            request.direction,
            dry_run=request.dry_run,
            show_progress=config.show_progress,
        )
        sequencer = HookSequencer(
            self._runner,
            site.executable_shell,
            use_wsl=config.use_wsl,
            auto_show_output=config.auto_show_output,
            should_continue=lambda: not self._session.kill_requested,
            on_stage_finished=self._on_hook_finished,
        )

        pre = HookStage("preSyncDown", site.pre_sync_down) if down else HookStage("preSyncUp", site.pre_sync_up)
        result = await sequencer.run([pre])
        if result.failed_tag:
            raise HookFailure(result.failed_tag, result.code)
        if self._session.kill_requested:
            logger.info("[SyncManager] Killed before transfer")
            return False

        transfer = await self._transfer(site, config, args, request.dry_run)
        if not transfer.success:
            raise TransferFailure(transfer.code)

        if down:
            post = [HookStage("postSyncDown", site.post_sync_down)]
        else:
            post = [
                HookStage("postSyncUp", site.post_sync_up),
                HookStage("afterSync", site.after_sync),
            ]
        result = await sequencer.run(post)
        if result.failed_tag:
            raise HookFailure(result.failed_tag, result.code)
        return False

    async def _run_file(self, site: "Site", config: "Config", request: SyncRequest) -> bool:
        if self._direction_blocked(site, request):
            return True
        self._check_paths(site)

        args = build_file_args(
            site,
            request.direction,
            request.path,
            show_progress=config.show_progress,
        )
        transfer = await self._transfer(site, config, args, dry_run=False)
        if not transfer.success:
            raise TransferFailure(transfer.code)
        return False

    # === Helpers ===

    def _direction_blocked(self, site: "Site", request: SyncRequest) -> bool:
        if request.direction.is_down and site.up_only:
            self._output.append_line(f"\n{site.remote_path or 'Unknown'} is upOnly")
            return True
        if not request.direction.is_down and site.down_only:
            self._output.append_line(f"\n{site.remote_path or 'Unknown'} is downOnly")
            return True
        return False

    def _check_paths(self, site: "Site") -> None:
        if not site.local_path:
            raise ConfigurationError("Sync-Rsync: you must have a folder open or configured local")
        if not site.remote_path:
            raise ConfigurationError("Sync-Rsync: you must configure a remote")

    async def _transfer(self, site: "Site", config: "Config", args: list[str], dry_run: bool) -> CommandResult:
        self._output.append_line(f"\n{_timestamp()} {'comparing' if dry_run else 'syncing'}")
        return await self._runner.run(
            site.executable,
            args,
            site.executable_shell,
            use_wsl=config.use_wsl,
            auto_show_output=config.auto_show_output,
        )

    def _on_hook_finished(self, stage: HookStage, result: CommandResult) -> None:
        if stage.tag == "afterSync":
            self._notifier.info(AFTER_SYNC_DEPRECATION)
