"""Process runner - spawns one external command at a time

Responsibilities:
- pick the spawn form for the platform (direct, ``<shell> -c``, WSL passthrough)
- stream stdout/stderr to the output channel as chunks arrive
- resolve exactly once with a CommandResult; spawn and stream errors become
  ``CommandResult(False, 1)`` plus an ``ERROR >`` line, never an exception
- own the single live process handle and terminate it on ``kill()``
"""

import asyncio
import codecs
import contextlib
import shlex
import sys
from collections.abc import Sequence
from dataclasses import dataclass

from .config import METRICS_ENABLED, STREAM_READ_SIZE
from .output import OutputChannel
from .session.types import CommandResult
from .telemetry import format_command_log, get_logger, metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class SpawnPlan:
    """How a command will be started.

    Attributes:
        argv: exec-style argument vector (``use_shell`` False)
        command_line: shell command line for ``cmd.exe`` (``use_shell`` True)
    """

    use_shell: bool
    argv: tuple[str, ...] = ()
    command_line: str = ""


def plan_spawn(
    command: str,
    args: Sequence[str],
    shell: str | None = None,
    *,
    use_wsl: bool = False,
    platform: str | None = None,
) -> SpawnPlan:
    """Decide how to start ``command args`` on a platform.

    - Windows + shell override: ``<shell> -c '<command> <args>'`` through cmd.exe
    - Windows + WSL: ``wsl <command> <args>``
    - otherwise: direct exec, wrapped as ``<shell> -c <quoted line>`` when a
      shell override is given
    """
    platform = platform or sys.platform
    if platform == "win32" and shell:
        inner = " ".join([command, *args])
        return SpawnPlan(use_shell=True, command_line=f"{shell} -c '{inner}'")
    if platform == "win32" and use_wsl:
        return SpawnPlan(use_shell=False, argv=("wsl", command, *args))
    if shell:
        return SpawnPlan(use_shell=False, argv=(shell, "-c", shlex.join([command, *args])))
    return SpawnPlan(use_shell=False, argv=(command, *args))


class ProcessRunner:
    """Runs external commands, one live process at most.

    Usage:
        runner = ProcessRunner(output)
        result = await runner.run("rsync", ["-av", "src/", "host:/dst/"])
        runner.kill()  # from another callback while run() is pending
    """

    def __init__(self, output: OutputChannel, platform: str | None = None):
        self._output = output
        self._platform = platform or sys.platform
        self._process: asyncio.subprocess.Process | None = None
        self._kill_sent = False

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    async def run(
        self,
        command: str,
        args: Sequence[str] = (),
        shell: str | None = None,
        *,
        use_wsl: bool = False,
        auto_show_output: bool = False,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            command: Executable name
            args: Arguments
            shell: Optional wrapper shell (site ``executableShell``)
            use_wsl: Route through ``wsl`` on Windows
            auto_show_output: Show the output channel before spawning

        Returns:
            CommandResult; code 1 for spawn/stream errors and signal deaths
        """
        args = list(args)
        if self.is_running:
            logger.error(f"[Runner] Refusing to spawn while pid {self.pid} is live")
            return CommandResult(success=False, code=1)

        self._output.append_line(f"> {command} {' '.join(args)}")
        if auto_show_output:
            self._output.show()

        plan = plan_spawn(command, args, shell, use_wsl=use_wsl, platform=self._platform)
        logger.debug(f"[Runner] Spawning: {format_command_log(command, args)}")

        try:
            process = await self._spawn(plan)
        except (OSError, ValueError) as e:
            return self._fail(e, spawn=True)

        self._process = process
        self._kill_sent = False
        try:
            await asyncio.gather(
                self._pump(process.stdout),
                self._pump(process.stderr),
            )
            returncode = await process.wait()
        except asyncio.CancelledError:
            # the caller is going away; the child must not outlive the handle
            logger.info(f"[Runner] Cancelled, killing pid {process.pid}")
            await self._reap(process)
            raise
        except (OSError, ValueError) as e:
            await self._reap(process)
            return self._fail(e, spawn=False)
        finally:
            self._process = None

        # negative return codes are signal deaths
        code = returncode if returncode >= 0 else 1
        logger.debug(f"[Runner] {command} exited with {returncode}")
        return CommandResult(success=code == 0, code=code)

    def kill(self) -> bool:
        """Terminate the live process, if any.

        Idempotent; the pending ``run()`` resolves from the process exit.

        Returns:
            True if a termination signal was sent by this call
        """
        process = self._process
        if process is None or process.returncode is not None or self._kill_sent:
            return False
        try:
            process.terminate()
        except ProcessLookupError:
            return False
        self._kill_sent = True
        logger.info(f"[Runner] Sent terminate to pid {process.pid}")
        if METRICS_ENABLED:
            metrics.inc("runner.killed")
        return True

    async def _spawn(self, plan: SpawnPlan) -> asyncio.subprocess.Process:
        if plan.use_shell:
            return await asyncio.create_subprocess_shell(
                plan.command_line,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        return await asyncio.create_subprocess_exec(
            *plan.argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

    async def _pump(self, stream: asyncio.StreamReader | None) -> None:
        """Forward one pipe to the output channel until EOF."""
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(STREAM_READ_SIZE)
            if not chunk:
                break
            self._output.append(decoder.decode(chunk))
        self._output.append(decoder.decode(b"", final=True))

    async def _reap(self, process: asyncio.subprocess.Process) -> None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()

    def _fail(self, error: Exception, spawn: bool) -> CommandResult:
        self._output.append(f"ERROR > {error}")
        if spawn:
            logger.warning(f"[Runner] Spawn failed: {error}")
            if METRICS_ENABLED:
                metrics.inc("runner.spawn_errors")
        else:
            logger.error(f"[Runner] Stream error: {error}")
        return CommandResult(success=False, code=1)
