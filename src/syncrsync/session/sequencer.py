"""Hook sequencer - ordered command stages, first failure stops

A stage is a tag plus an optional command vector (command name + args).
Absent stages count as success; a stage is never started once the
continuation check says stop (kill requested).
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..telemetry import get_logger

if TYPE_CHECKING:
    from ..runner import ProcessRunner
    from .types import CommandResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class HookStage:
    tag: str
    command: Sequence[str] | None = None

    @property
    def present(self) -> bool:
        return bool(self.command)


@dataclass(frozen=True)
class SequenceResult:
    """Result of running a stage list.

    Attributes:
        success: every present stage succeeded
        failed_tag: tag of the failing stage
        code: exit code of the failing stage (0 on success)
        stopped: the continuation check halted the sequence
        ran: tags of the stages that were executed, in order
    """

    success: bool
    failed_tag: str | None = None
    code: int = 0
    stopped: bool = False
    ran: tuple[str, ...] = ()


class HookSequencer:
    """Runs hook stages through a ProcessRunner."""

    def __init__(
        self,
        runner: "ProcessRunner",
        shell: str | None = None,
        *,
        use_wsl: bool = False,
        auto_show_output: bool = False,
        should_continue: Callable[[], bool] | None = None,
        on_stage_finished: Callable[[HookStage, "CommandResult"], None] | None = None,
    ):
        """
        Args:
            runner: Process runner shared with the transfer
            shell: Site ``executableShell`` wrapper
            use_wsl: WSL passthrough on Windows
            auto_show_output: Forwarded to the runner
            should_continue: Checked before each stage; False stops the sequence
            on_stage_finished: Called after every executed stage, success or not
        """
        self._runner = runner
        self._shell = shell
        self._use_wsl = use_wsl
        self._auto_show_output = auto_show_output
        self._should_continue = should_continue or (lambda: True)
        self._on_stage_finished = on_stage_finished

    async def run(self, stages: Sequence[HookStage]) -> SequenceResult:
        ran: list[str] = []
        for stage in stages:
            if not stage.present:
                continue
            if not self._should_continue():
                logger.info(f"[Hooks] Stopped before {stage.tag}")
                return SequenceResult(success=False, stopped=True, ran=tuple(ran))

            command, *args = stage.command
            ran.append(stage.tag)
            result = await self._runner.run(
                command,
                args,
                self._shell,
                use_wsl=self._use_wsl,
                auto_show_output=self._auto_show_output,
            )
            if self._on_stage_finished:
                self._on_stage_finished(stage, result)
            if not result.success:
                logger.info(f"[Hooks] {stage.tag} returned {result.code}")
                return SequenceResult(
                    success=False,
                    failed_tag=stage.tag,
                    code=result.code,
                    ran=tuple(ran),
                )
        return SequenceResult(success=True, ran=tuple(ran))
