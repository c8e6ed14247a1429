"""
Tests for plugin discovery, loading, installation and state
"""

import json

import pytest

from lms.core.localization.i18n_manager import I18nManager
from lms.core.plugin.contracts import BlockInterface, ModuleInterface, ThemeInterface
from lms.core.plugin.manager import PluginManager
from lms.utils.exceptions import PluginError

HELLO_BLOCK = '''
from lms.core.plugin.base import AbstractBlock


class HelloBlock(AbstractBlock):

    def get_content(self, config=None, context=None):
        return {"text": "hello"}


plugin_class = HelloBlock
'''


def write_plugin(directory, component="block_hello", requires=2024010100, source=HELLO_BLOCK):
    directory.mkdir(parents=True)
    (directory / "version.json").write_text(json.dumps({
        "component": component,
        "version": 2024020100,
        "release": "0.1",
        "requires": requires,
    }), encoding="utf-8")
    (directory / "plugin.py").write_text(source, encoding="utf-8")
    lang = directory / "lang"
    lang.mkdir()
    (lang / "en.json").write_text(json.dumps({"pluginname": "Hello"}), encoding="utf-8")
    return directory


@pytest.fixture
def empty_manager(tmp_path, db):
    """Manager over an empty plugin directory"""
    plugins_path = tmp_path / "installed"
    return PluginManager(
        plugins_path=plugins_path,
        state_file=tmp_path / "state" / "plugins.json",
        i18n=I18nManager(plugins_path=plugins_path),
        db_factory=lambda: db,
    )


class TestDiscovery:

    def test_bundled_plugins_are_available(self, plugin_manager):
        available = {(p["type"], p["name"]) for p in plugin_manager.get_available_plugins()}

        assert {("block", "navigation"), ("mod", "quiz"), ("theme", "boost")} <= available

    def test_filter_by_type(self, plugin_manager):
        themes = plugin_manager.get_available_plugins("theme")

        assert [p["name"] for p in themes] == ["boost"]
        assert themes[0]["info"]["component"] == "theme_boost"

    def test_unknown_type(self, plugin_manager):
        with pytest.raises(PluginError):
            plugin_manager.get_available_plugins("filter")

    def test_bundled_plugins_enabled_without_state_file(self, plugin_manager):
        assert plugin_manager.is_plugin_enabled("block", "navigation")
        assert plugin_manager.is_plugin_enabled("mod", "quiz")
        assert plugin_manager.is_plugin_enabled("theme", "boost")

    def test_directories_without_metadata_are_skipped(self, empty_manager):
        (empty_manager.plugins_path / "block" / "broken").mkdir()

        assert empty_manager.get_available_plugins() == []

    def test_plugin_info(self, plugin_manager):
        info = plugin_manager.get_plugin_info("mod", "quiz")

        assert info["component"] == "mod_quiz"
        assert info["version"] == 2024012400
        assert info["dependencies"] == {"core": 2024011500}

    def test_missing_plugin_info(self, plugin_manager):
        with pytest.raises(PluginError) as exc:
            plugin_manager.get_plugin_info("block", "doesnotexist")
        assert exc.value.status_code == 404

    def test_invalid_plugin_name(self, plugin_manager):
        with pytest.raises(PluginError):
            plugin_manager.get_plugin_path("block", "../mod")


class TestLoading:

    def test_load_plugins_returns_keys(self, plugin_manager):
        loaded = plugin_manager.load_plugins()

        assert set(loaded) == {"block/navigation", "mod/quiz", "theme/boost"}
        assert plugin_manager.is_plugin_loaded("mod", "quiz")

    def test_loaded_plugins_implement_their_interface(self, plugin_manager):
        assert isinstance(plugin_manager.load_plugin("block", "navigation"), BlockInterface)
        assert isinstance(plugin_manager.load_plugin("mod", "quiz"), ModuleInterface)
        assert isinstance(plugin_manager.load_plugin("theme", "boost"), ThemeInterface)

    def test_load_is_idempotent(self, plugin_manager):
        first = plugin_manager.load_plugin("mod", "quiz")

        assert plugin_manager.load_plugin("mod", "quiz") is first
        assert plugin_manager.get_plugin("mod", "quiz") is first

    def test_missing_plugin_file(self, plugin_manager):
        with pytest.raises(PluginError) as exc:
            plugin_manager.load_plugin("block", "doesnotexist")
        assert exc.value.status_code == 404

    def test_wrong_interface_is_rejected(self, empty_manager):
        write_plugin(empty_manager.plugins_path / "mod" / "hello", component="mod_hello")

        with pytest.raises(PluginError) as exc:
            empty_manager.load_plugin("mod", "hello")
        assert "ModuleInterface" in exc.value.message

    def test_failed_plugins_are_skipped(self, empty_manager):
        write_plugin(empty_manager.plugins_path / "block" / "hello")
        write_plugin(empty_manager.plugins_path / "block" / "broken", source="plugin_class = None\n")

        assert empty_manager.load_plugins() == ["block/hello"]

    def test_disabled_plugin_is_not_served(self, plugin_manager):
        plugin_manager.disable_plugin("mod", "quiz")

        with pytest.raises(PluginError) as exc:
            plugin_manager.get_enabled_plugin("mod", "quiz")
        assert exc.value.status_code == 404


class TestState:

    def test_disable_persists(self, plugin_manager, i18n, db):
        plugin_manager.load_plugin("block", "navigation")
        plugin_manager.disable_plugin("block", "navigation")

        assert not plugin_manager.is_plugin_loaded("block", "navigation")

        reloaded = PluginManager(
            plugins_path=plugin_manager.plugins_path,
            state_file=plugin_manager.state_file,
            i18n=i18n,
            db_factory=lambda: db,
        )
        assert not reloaded.is_plugin_enabled("block", "navigation")
        assert reloaded.is_plugin_enabled("mod", "quiz")

    def test_enable_again(self, plugin_manager):
        plugin_manager.disable_plugin("theme", "boost")
        plugin_manager.enable_plugin("theme", "boost")
        plugin_manager.enable_plugin("theme", "boost")

        enabled = plugin_manager.get_enabled_plugins("theme")
        assert enabled == [{"type": "theme", "name": "boost"}]

    def test_enable_unknown_plugin(self, plugin_manager):
        with pytest.raises(PluginError):
            plugin_manager.enable_plugin("block", "doesnotexist")

    def test_legacy_state_file(self, tmp_path, i18n):
        state_file = tmp_path / "legacy.json"
        state_file.write_text(json.dumps([{"type": "mod", "name": "quiz"}]), encoding="utf-8")

        manager = PluginManager(state_file=state_file, i18n=i18n)

        assert manager.get_enabled_plugins() == [{"type": "mod", "name": "quiz"}]
        assert manager.get_plugin_settings("mod", "quiz") == {}

    def test_system_status(self, plugin_manager):
        plugin_manager.disable_plugin("theme", "boost")
        plugin_manager.load_plugin("mod", "quiz")

        status = plugin_manager.get_system_status()

        assert status["lms_version"] == plugin_manager.lms_version
        assert status["total_plugins"] == 3
        assert status["enabled_plugins"] == 2
        assert status["loaded_plugins"] == ["mod/quiz"]
        assert status["by_type"]["theme"] == {"available": 1, "enabled": 0}


class TestSettings:

    def test_defaults_come_from_schema(self, plugin_manager):
        block = plugin_manager.load_plugin("block", "navigation")

        assert block.get_settings()["max_sections"] == 10

    def test_update_settings(self, plugin_manager):
        block = plugin_manager.load_plugin("block", "navigation")

        assert block.update_settings({"max_sections": 5, "show_site_nav": False})
        assert plugin_manager.get_plugin_settings("block", "navigation")["max_sections"] == 5
        assert block.get_settings()["show_site_nav"] is False

    @pytest.mark.parametrize("values", [
        {"max_sections": 100},
        {"max_sections": 0},
        {"max_sections": "ten"},
        {"show_sections": "yes"},
        {"unknown": 1},
    ])
    def test_invalid_settings(self, plugin_manager, values):
        block = plugin_manager.load_plugin("block", "navigation")

        with pytest.raises(PluginError) as exc:
            block.update_settings(values)
        assert exc.value.status_code == 422

    def test_select_settings(self, plugin_manager):
        quiz = plugin_manager.load_plugin("mod", "quiz")

        quiz.update_settings({"attempts": 3})
        with pytest.raises(PluginError):
            quiz.update_settings({"attempts": 7})

        assert quiz.get_settings()["attempts"] == 3


class TestInstall:

    def test_install_from_directory(self, empty_manager, tmp_path):
        source = write_plugin(tmp_path / "downloads" / "hello")

        info = empty_manager.install_plugin(source, "block", "hello")

        assert info["component"] == "block_hello"
        assert empty_manager.is_plugin_enabled("block", "hello")
        assert empty_manager.get_installed_version("block", "hello") == "2024020100"
        assert (empty_manager.plugins_path / "block" / "hello" / "plugin.py").is_file()

        block = empty_manager.get_enabled_plugin("block", "hello")
        assert block.get_title() == "Hello"
        assert block.get_content() == {"text": "hello"}

    def test_existing_target(self, plugin_manager, tmp_path):
        source = write_plugin(tmp_path / "downloads" / "navigation")

        with pytest.raises(PluginError) as exc:
            plugin_manager.install_plugin(source, "block", "navigation")
        assert exc.value.status_code == 409

    def test_missing_source(self, empty_manager, tmp_path):
        with pytest.raises(PluginError) as exc:
            empty_manager.install_plugin(tmp_path / "nowhere", "block", "hello")
        assert exc.value.status_code == 404

    def test_invalid_structure_is_removed(self, empty_manager, tmp_path):
        source = tmp_path / "downloads" / "hello"
        source.mkdir(parents=True)
        (source / "plugin.py").write_text(HELLO_BLOCK, encoding="utf-8")

        with pytest.raises(PluginError) as exc:
            empty_manager.install_plugin(source, "block", "hello")

        assert exc.value.message == "Invalid plugin structure"
        assert not (empty_manager.plugins_path / "block" / "hello").exists()

    def test_incompatible_plugin_is_removed(self, empty_manager, tmp_path):
        source = write_plugin(tmp_path / "downloads" / "hello", requires=2099010100)

        with pytest.raises(PluginError):
            empty_manager.install_plugin(source, "block", "hello")

        assert not (empty_manager.plugins_path / "block" / "hello").exists()
        assert not empty_manager.is_plugin_loaded("block", "hello")

    def test_invalid_name(self, empty_manager, tmp_path):
        source = write_plugin(tmp_path / "downloads" / "hello")

        with pytest.raises(PluginError):
            empty_manager.install_plugin(source, "block", "Hello-World")

    def test_unknown_type(self, empty_manager, tmp_path):
        source = write_plugin(tmp_path / "downloads" / "hello")

        with pytest.raises(PluginError):
            empty_manager.install_plugin(source, "filter", "hello")
