"""Pytest configuration and shared fakes"""

import asyncio
from collections.abc import Sequence

import pytest

from syncrsync.notifier import RecordingNotifier
from syncrsync.output import OutputChannel
from syncrsync.session.types import CommandResult
from syncrsync.settings.models import Config, Site
from syncrsync.telemetry import metrics


class FakeRunner:
    """Stands in for ProcessRunner; records argv and returns scripted codes.

    Attributes:
        calls: [command, *args] per run
        codes: command name -> exit code (0 when absent)
        gate: when set, runs of ``gated`` wait on it (released by kill)
    """

    def __init__(self, codes: dict[str, int] | None = None, gated: str | None = None):
        self.calls: list[list[str]] = []
        self.codes = codes or {}
        self.gated = gated
        self.gate = asyncio.Event() if gated else None
        self.started = asyncio.Event()
        self.kill_count = 0
        self.options: list[dict] = []

    async def run(
        self,
        command: str,
        args: Sequence[str] = (),
        shell: str | None = None,
        *,
        use_wsl: bool = False,
        auto_show_output: bool = False,
    ) -> CommandResult:
        self.calls.append([command, *args])
        self.options.append({"shell": shell, "use_wsl": use_wsl, "auto_show_output": auto_show_output})
        if self.gate is not None and command == self.gated:
            self.started.set()
            await self.gate.wait()
        code = self.codes.get(command, 0)
        return CommandResult(success=code == 0, code=code)

    def kill(self) -> bool:
        self.kill_count += 1
        if self.gate is not None:
            self.gate.set()
        return True

    @property
    def commands(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics around every test"""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def output():
    return OutputChannel()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def site():
    return Site(name="web", local_path="/a", remote_path="/b", exclude=())


@pytest.fixture
def config(site):
    return Config(sites=(site,), show_progress=False)
