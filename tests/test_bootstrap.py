"""Runtime bootstrap tests"""

import json

from syncrsync.notifier import RecordingNotifier
from syncrsync.runtime import bootstrap
from syncrsync.settings.models import Site


class TestBootstrap:
    def test_components_wired(self, tmp_path):
        components = bootstrap(tmp_path, notifier=RecordingNotifier())

        assert components.workspace == tmp_path.resolve()
        assert components.manager.session is components.session
        assert components.sources == [components.watch_source, components.editor_source]
        assert "Sync-Rsync started\n" in components.output.text

    def test_selection_reaches_presenter(self, tmp_path):
        components = bootstrap(tmp_path, notifier=RecordingNotifier())

        components.selector.select(Site(name="prod"))

        assert components.presenter.state.text == "Rsync: prod - $(info)"

    def test_independent_runtimes(self, tmp_path):
        first = bootstrap(tmp_path, notifier=RecordingNotifier())
        second = bootstrap(tmp_path, notifier=RecordingNotifier())
        assert first.session is not second.session

    def test_watch_globs_from_settings(self, tmp_path):
        settings = {"sync-rsync.watchGlobs": ["*.py"], "sync-rsync.onFileSave": True}
        (tmp_path / "sync-rsync.json").write_text(json.dumps(settings), encoding="utf-8")

        components = bootstrap(tmp_path, notifier=RecordingNotifier())

        assert components.watch_source.enabled is True

    def test_bad_settings_fall_back_to_defaults(self, tmp_path):
        (tmp_path / "sync-rsync.json").write_text("[1, 2]", encoding="utf-8")
        notifier = RecordingNotifier()

        components = bootstrap(tmp_path, notifier=notifier)

        assert components.watch_source.enabled is False
        assert len(notifier.of_level("error")) == 1

    async def test_start_and_shutdown_without_globs(self, tmp_path):
        components = bootstrap(tmp_path, notifier=RecordingNotifier())

        await components.start_sources()
        assert components.editor_source.running is True

        await components.shutdown()
        assert components.editor_source.running is False
