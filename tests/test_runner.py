"""ProcessRunner tests (real /bin/sh subprocesses)"""

import asyncio
import os
import sys

import pytest

from syncrsync.runner import ProcessRunner, plan_spawn
from syncrsync.telemetry import metrics

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh")


@pytest.fixture
def runner(output):
    return ProcessRunner(output)


class TestPlanSpawn:
    """Spawn form per platform"""

    def test_direct_exec(self):
        plan = plan_spawn("rsync", ["-av", "/a", "/b"], platform="linux")
        assert plan.use_shell is False
        assert plan.argv == ("rsync", "-av", "/a", "/b")

    def test_posix_shell_override_quotes_args(self):
        plan = plan_spawn("rsync", ["--rsh=ssh -p 22", "/a"], "bash", platform="linux")
        assert plan.argv == ("bash", "-c", "rsync '--rsh=ssh -p 22' /a")

    def test_windows_shell_override(self):
        plan = plan_spawn("rsync", ["-av", "/a"], "bash", platform="win32")
        assert plan.use_shell is True
        assert plan.command_line == "bash -c 'rsync -av /a'"

    def test_windows_wsl(self):
        plan = plan_spawn("rsync", ["-av"], use_wsl=True, platform="win32")
        assert plan.argv == ("wsl", "rsync", "-av")

    def test_shell_override_wins_over_wsl(self):
        plan = plan_spawn("rsync", [], "bash", use_wsl=True, platform="win32")
        assert plan.use_shell is True

    def test_wsl_ignored_off_windows(self):
        plan = plan_spawn("rsync", ["-av"], use_wsl=True, platform="darwin")
        assert plan.argv == ("rsync", "-av")


class TestRun:
    """Running commands"""

    async def test_success_streams_output(self, runner, output):
        result = await runner.run("sh", ["-c", "echo hello; echo oops 1>&2"])

        assert result.success is True
        assert result.code == 0
        assert "> sh -c echo hello; echo oops 1>&2\n" in output.text
        assert "hello\n" in output.text
        assert "oops\n" in output.text

    async def test_nonzero_exit(self, runner):
        result = await runner.run("sh", ["-c", "exit 23"])

        assert result.success is False
        assert result.code == 23

    async def test_spawn_error_normalized(self, runner, output):
        result = await runner.run("definitely-not-a-command-xyz", ["arg"])

        assert result.success is False
        assert result.code == 1
        assert "ERROR >" in output.text
        assert metrics.get_counter("runner.spawn_errors") == 1

    async def test_shell_wrapper(self, runner, output):
        result = await runner.run("echo", ["wrapped"], "sh")

        assert result.success is True
        assert "wrapped\n" in output.text

    async def test_auto_show_output(self, runner, output):
        await runner.run("true", [], auto_show_output=True)
        assert output.visible is True

    async def test_handle_released_after_run(self, runner):
        await runner.run("true")
        assert runner.is_running is False
        assert runner.pid is None


class TestKill:
    """Killing the live process"""

    async def test_kill_running_process(self, runner):
        task = asyncio.create_task(runner.run("sh", ["-c", "exec sleep 5"]))
        for _ in range(100):
            if runner.is_running:
                break
            await asyncio.sleep(0.01)

        assert runner.kill() is True
        result = await asyncio.wait_for(task, timeout=5)

        # terminated by signal -> code 1
        assert result.success is False
        assert result.code == 1
        assert metrics.get_counter("runner.killed") == 1

    async def test_kill_is_idempotent(self, runner):
        task = asyncio.create_task(runner.run("sh", ["-c", "exec sleep 5"]))
        for _ in range(100):
            if runner.is_running:
                break
            await asyncio.sleep(0.01)

        assert runner.kill() is True
        assert runner.kill() is False
        await asyncio.wait_for(task, timeout=5)
        assert metrics.get_counter("runner.killed") == 1

    async def test_cancel_reaps_process(self, runner):
        task = asyncio.create_task(runner.run("sh", ["-c", "exec sleep 30"]))
        for _ in range(100):
            if runner.is_running:
                break
            await asyncio.sleep(0.01)
        pid = runner.pid

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert runner.is_running is False
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    def test_kill_without_process(self, runner):
        assert runner.kill() is False
