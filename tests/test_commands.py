"""Command surface tests"""

import asyncio

import pytest
from conftest import FakeRunner

from syncrsync.commands import NO_SITE_SELECTED, NO_SITES_CONFIGURED, SYNC_IN_PROGRESS, SyncCommands
from syncrsync.errors import SettingsError
from syncrsync.selector import ActiveSiteSelector
from syncrsync.session import SessionState, SyncDirection
from syncrsync.session.manager import SyncManager
from syncrsync.settings.models import Config, Site

PROD = Site(name="prod", local_path="/a", remote_path="/b", exclude=())
STAGING = Site(name="staging", local_path="/a", remote_path="/c", exclude=())


class Env:
    """Commands wired to a fake runner and a mutable config."""

    def __init__(self, output, notifier, sites=(PROD,), runner=None):
        self.runner = runner or FakeRunner()
        self.config = Config(sites=sites, show_progress=False)
        self.selector = ActiveSiteSelector()
        self.manager = SyncManager(self.runner, output, notifier=notifier)
        self.commands = SyncCommands(self.manager, self.selector, lambda: self.config, output, notifier)


def picker_choosing(index):
    seen = {}

    async def pick(items, placeholder):
        seen["items"] = items
        seen["placeholder"] = placeholder
        return items[index] if index is not None else None

    pick.seen = seen
    return pick


@pytest.fixture
def env(output, notifier):
    return Env(output, notifier)


class TestSelectedSiteCommands:
    async def test_no_site_selected(self, env, notifier):
        assert await env.commands.sync_up() is None

        assert notifier.of_level("error") == [NO_SITE_SELECTED]
        assert env.runner.calls == []

    async def test_deselect_then_sync_up(self, env, notifier):
        env.selector.select(PROD)
        env.selector.deselect()

        assert await env.commands.sync_up() is None
        assert notifier.of_level("error") == [NO_SITE_SELECTED]
        assert env.runner.calls == []

    async def test_sync_up_and_down(self, env):
        env.selector.select(PROD)

        up = await env.commands.sync_up()
        down = await env.commands.sync_down()

        assert up.state is SessionState.SUCCEEDED
        assert down.state is SessionState.SUCCEEDED
        assert env.runner.calls[0][-2:] == ["/a", "/b"]
        assert env.runner.calls[1][-2:] == ["/b", "/a"]

    async def test_compare_is_dry_run(self, env):
        env.selector.select(PROD)
        await env.commands.compare_down()
        assert env.runner.calls[0][1] == "-n"

    async def test_sync_file(self, env):
        env.selector.select(PROD)
        await env.commands.sync_file("src/x.txt", SyncDirection.DOWN)
        assert env.runner.calls[0][-2:] == ["/b/src/x.txt", "/a/src/x.txt"]

    async def test_reloaded_site_is_adopted(self, env):
        env.selector.select(PROD)
        env.config = Config(sites=(PROD.model_copy(update={"flags": "av"}),), show_progress=False)

        await env.commands.sync_up()

        assert env.runner.calls[0][1] == "-av"
        assert env.selector.current().flags == "av"

    async def test_site_with_edited_remote_is_adopted_by_name(self, env):
        env.selector.select(PROD)
        env.config = Config(sites=(PROD.model_copy(update={"remote_path": "/moved"}),), show_progress=False)

        await env.commands.sync_up()

        assert env.runner.calls[0][-1] == "/moved"
        assert env.selector.current().remote_path == "/moved"

    async def test_selection_change_only_affects_next_sync(self, output, notifier):
        env = Env(output, notifier, sites=(PROD, STAGING), runner=FakeRunner(gated="rsync"))
        env.selector.select(PROD)
        first = asyncio.create_task(env.commands.sync_up())
        await env.runner.started.wait()

        env.selector.select(STAGING)
        env.runner.gate.set()
        await first
        env.runner.gate = None
        await env.commands.sync_up()

        assert env.runner.calls[0][-1] == "/b"
        assert env.runner.calls[1][-1] == "/c"

    async def test_busy_command_reports_in_progress(self, output, notifier):
        env = Env(output, notifier, runner=FakeRunner(gated="rsync"))
        env.selector.select(PROD)
        first = asyncio.create_task(env.commands.sync_up())
        await env.runner.started.wait()

        assert await env.commands.sync_down() is None
        assert notifier.of_level("info") == [SYNC_IN_PROGRESS]

        env.runner.gate.set()
        await first

    async def test_busy_watch_trigger_is_silent(self, output, notifier):
        env = Env(output, notifier, runner=FakeRunner(gated="rsync"))
        env.selector.select(PROD)
        first = asyncio.create_task(env.commands.sync_up())
        await env.runner.started.wait()

        assert await env.commands.sync_up(source="watch") is None
        assert notifier.messages == []

        env.runner.gate.set()
        await first

    async def test_settings_error_is_reported(self, env, notifier):
        env.selector.select(PROD)

        def broken():
            raise SettingsError("sync-rsync: invalid settings")

        env.commands._config_provider = broken
        assert await env.commands.sync_up() is None
        assert notifier.of_level("error") == ["sync-rsync: invalid settings"]


class TestSingleSiteCommands:
    async def test_no_sites(self, output, notifier):
        env = Env(output, notifier, sites=())
        assert await env.commands.sync_up_single(picker_choosing(0)) is None
        assert notifier.of_level("error") == [NO_SITES_CONFIGURED]

    async def test_one_site_uses_selection(self, env, notifier):
        picker = picker_choosing(0)
        await env.commands.sync_up_single(picker)

        # one site: no picker, and the selected-site rules apply
        assert picker.seen == {}
        assert notifier.of_level("error") == [NO_SITE_SELECTED]

    async def test_several_sites_use_picker(self, output, notifier):
        env = Env(output, notifier, sites=(PROD, STAGING))
        picker = picker_choosing(1)

        outcome = await env.commands.sync_down_single(picker)

        assert outcome.state is SessionState.SUCCEEDED
        assert [item.label for item in picker.seen["items"]] == ["prod", "staging"]
        assert env.runner.calls[0][-2:] == ["/c", "/a"]
        assert env.selector.current() is None

    async def test_dismissed_picker(self, output, notifier):
        env = Env(output, notifier, sites=(PROD, STAGING))
        assert await env.commands.sync_up_single(picker_choosing(None)) is None
        assert env.runner.calls == []


class TestSiteMenu:
    async def test_select_site(self, output, notifier):
        env = Env(output, notifier, sites=(PROD, STAGING))
        site = await env.commands.show_site_menu(picker_choosing(1))

        assert site is STAGING
        assert env.selector.current() is STAGING

    async def test_disconnect_entry_when_selected(self, output, notifier):
        env = Env(output, notifier, sites=(PROD, STAGING))
        env.selector.select(PROD)
        picker = picker_choosing(0)

        site = await env.commands.show_site_menu(picker)

        assert picker.seen["items"][0].label == "$(close) Disconnect"
        assert picker.seen["items"][0].site is None
        assert site is None
        assert env.selector.current() is None

    async def test_no_disconnect_entry_without_selection(self, env):
        picker = picker_choosing(None)
        await env.commands.show_site_menu(picker)
        assert [item.label for item in picker.seen["items"]] == ["prod"]

    async def test_no_sites(self, output, notifier):
        env = Env(output, notifier, sites=())
        await env.commands.show_site_menu(picker_choosing(0))
        assert notifier.of_level("error") == [NO_SITES_CONFIGURED]

    async def test_unnamed_site_label(self, output, notifier):
        env = Env(output, notifier, sites=(Site(remote_path="h:/x/"), Site()))
        picker = picker_choosing(None)
        await env.commands.show_site_menu(picker)
        assert [item.label for item in picker.seen["items"]] == ["h:/x/", "Unknown Site"]


class TestDispatch:
    async def test_known_commands(self, env, output):
        env.selector.select(PROD)

        outcome = await env.commands.dispatch("sync-up-context")
        env.commands.show_output()

        assert outcome.state is SessionState.SUCCEEDED
        assert output.visible is True
        assert await env.commands.dispatch("kill-sync") is False

    async def test_unknown_command(self, env):
        with pytest.raises(KeyError):
            await env.commands.dispatch("sync-sideways")
