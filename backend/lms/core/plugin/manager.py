"""
Plugin Manager
Discovers, enables and loads Moodle-style plugins (mods, blocks, themes)
"""

import importlib.util
import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from lms.config import settings
from lms.core.localization.i18n_manager import I18nManager, i18n_manager
from lms.core.plugin.contracts import BlockInterface, ModuleInterface, PluginInterface, ThemeInterface
from lms.utils.cache import TTLCache
from lms.utils.exceptions import PluginError

logger = logging.getLogger(__name__)

PLUGIN_TYPES = {
    "mod": ModuleInterface,
    "block": BlockInterface,
    "theme": ThemeInterface,
}

PLUGIN_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class PluginManager:
    """
    Handles loading and management of plugins.

    Layout: ``<plugins_path>/<type>/<name>/`` containing ``version.json``
    (component metadata), ``plugin.py`` (exposing ``plugin_class``) and an
    optional ``lang/`` directory. Enabled plugins, per-plugin settings and
    installed versions are persisted in a JSON state file.
    """

    def __init__(
        self,
        plugins_path: Optional[Path] = None,
        state_file: Optional[Path] = None,
        i18n: Optional[I18nManager] = None,
        db_factory: Optional[Callable[[], Any]] = None,
        lms_version: Optional[int] = None,
        cache_ttl: Optional[int] = None,
    ):
        self.plugins_path = Path(plugins_path or settings.PLUGINS_PATH)
        self.state_file = Path(state_file or settings.PLUGIN_STATE_FILE)
        self.i18n = i18n or I18nManager(plugins_path=self.plugins_path)
        self.lms_version = lms_version if lms_version is not None else settings.LMS_VERSION
        self.cache = TTLCache(cache_ttl if cache_ttl is not None else settings.PLUGIN_CACHE_TTL)
        self.loaded_plugins: Dict[str, PluginInterface] = {}
        self._db_factory = db_factory
        self._state: Optional[Dict[str, Any]] = None
        self.ensure_plugin_directories()

    @property
    def db(self):
        if self._db_factory is None:
            raise PluginError("No database configured for plugins", 500)
        return self._db_factory()

    # ============ Loading ============

    def load_plugins(self) -> List[str]:
        """Load every enabled plugin; failures are logged and skipped"""
        loaded = []
        for plugin in self.get_enabled_plugins():
            try:
                self.load_plugin(plugin["type"], plugin["name"])
                loaded.append(f"{plugin['type']}/{plugin['name']}")
            except Exception as e:
                logger.error(f"Failed to load plugin {plugin['type']}/{plugin['name']}: {str(e)}")
        return loaded

    def load_plugin(self, plugin_type: str, name: str) -> PluginInterface:
        """Load (or return the already loaded) plugin instance"""
        self._check_type(plugin_type)
        key = f"{plugin_type}/{name}"

        if key in self.loaded_plugins:
            return self.loaded_plugins[key]

        plugin_path = self.get_plugin_path(plugin_type, name)
        plugin_file = plugin_path / "plugin.py"

        if not plugin_file.is_file():
            raise PluginError(f"Plugin {key} not found", 404)

        module = self._import_plugin_module(plugin_type, name, plugin_file)
        plugin_class = getattr(module, "plugin_class", None)

        if plugin_class is None:
            raise PluginError(f"Plugin {key} does not define plugin_class")

        plugin = plugin_class(plugin_path, self)
        interface = PLUGIN_TYPES[plugin_type]

        if not isinstance(plugin, interface):
            raise PluginError(f"Plugin must implement {interface.__name__}")

        plugin.init()

        self.loaded_plugins[key] = plugin
        logger.info(f"Loaded plugin {key} version {plugin.get_version()}")

        return plugin

    def get_plugin(self, plugin_type: str, name: str) -> Optional[PluginInterface]:
        return self.loaded_plugins.get(f"{plugin_type}/{name}")

    def get_enabled_plugin(self, plugin_type: str, name: str) -> PluginInterface:
        """Load a plugin, refusing disabled ones"""
        if not self.is_plugin_enabled(plugin_type, name):
            raise PluginError(f"Plugin {plugin_type}/{name} is not enabled", 404)
        return self.load_plugin(plugin_type, name)

    def get_plugin_info(self, plugin_type: str, name: str) -> Dict[str, Any]:
        """Read plugin metadata from its version.json"""
        self._check_type(plugin_type)

        def read() -> Dict[str, Any]:
            version_file = self.get_plugin_path(plugin_type, name) / "version.json"

            if not version_file.is_file():
                raise PluginError(f"Plugin version file not found: {version_file}", 404)

            try:
                with version_file.open(encoding="utf-8") as handle:
                    data = json.load(handle)
            except json.JSONDecodeError as e:
                raise PluginError(f"Invalid version file for {plugin_type}/{name}: {str(e)}")

            return {
                "component": data.get("component", f"{plugin_type}_{name}"),
                "version": data.get("version", 0),
                "release": data.get("release", ""),
                "maturity": data.get("maturity", ""),
                "dependencies": data.get("dependencies", {}),
                "requires": data.get("requires"),
            }

        return self.cache.remember(f"plugin.info.{plugin_type}.{name}", read)

    # ============ Installation and state ============

    def install_plugin(self, source_path: Path, plugin_type: str, name: str) -> Dict[str, Any]:
        """Copy a plugin directory into place, install and enable it"""
        self._check_type(plugin_type)

        if not PLUGIN_NAME_PATTERN.match(name):
            raise PluginError(f"Invalid plugin name: {name}")

        source_path = Path(source_path)
        target_path = self.get_plugin_path(plugin_type, name)

        if target_path.exists():
            raise PluginError(f"Plugin {plugin_type}/{name} already exists", 409)

        if not source_path.is_dir():
            raise PluginError(f"Plugin source not found: {source_path}", 404)

        shutil.copytree(source_path, target_path)

        if not self.validate_plugin_structure(plugin_type, name):
            shutil.rmtree(target_path)
            raise PluginError("Invalid plugin structure")

        try:
            plugin = self.load_plugin(plugin_type, name)
            plugin.install()
        except Exception:
            self.loaded_plugins.pop(f"{plugin_type}/{name}", None)
            self.cache.forget(f"plugin.info.{plugin_type}.{name}")
            shutil.rmtree(target_path)
            raise

        self.enable_plugin(plugin_type, name)
        logger.info(f"Installed plugin {plugin_type}/{name}")

        return self.get_plugin_info(plugin_type, name)

    def validate_plugin_structure(self, plugin_type: str, name: str) -> bool:
        plugin_path = self.get_plugin_path(plugin_type, name)
        return all((plugin_path / required).is_file() for required in ("version.json", "plugin.py"))

    def enable_plugin(self, plugin_type: str, name: str) -> None:
        self.get_plugin_info(plugin_type, name)

        if not self.is_plugin_enabled(plugin_type, name):
            state = self._get_state()
            state["enabled"].append({"type": plugin_type, "name": name})
            self._save_state(state)

    def disable_plugin(self, plugin_type: str, name: str) -> None:
        state = self._get_state()
        state["enabled"] = [
            plugin for plugin in state["enabled"]
            if not (plugin["type"] == plugin_type and plugin["name"] == name)
        ]
        self._save_state(state)

        self.loaded_plugins.pop(f"{plugin_type}/{name}", None)
        self.cache.forget(f"plugin.info.{plugin_type}.{name}")

    def is_plugin_enabled(self, plugin_type: str, name: str) -> bool:
        return any(
            plugin["type"] == plugin_type and plugin["name"] == name
            for plugin in self._get_state()["enabled"]
        )

    def is_plugin_loaded(self, plugin_type: str, name: str) -> bool:
        return f"{plugin_type}/{name}" in self.loaded_plugins

    def get_enabled_plugins(self, plugin_type: Optional[str] = None) -> List[Dict[str, str]]:
        return [
            dict(plugin) for plugin in self._get_state()["enabled"]
            if plugin_type is None or plugin["type"] == plugin_type
        ]

    def get_available_plugins(self, plugin_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """All plugins on disk with valid metadata"""
        plugins = []
        types = [plugin_type] if plugin_type else list(PLUGIN_TYPES)

        for current_type in types:
            self._check_type(current_type)
            type_path = self.plugins_path / current_type

            if not type_path.is_dir():
                continue

            for plugin_dir in sorted(p for p in type_path.iterdir() if p.is_dir()):
                name = plugin_dir.name
                try:
                    info = self.get_plugin_info(current_type, name)
                except PluginError as e:
                    logger.debug(f"Skipping invalid plugin {current_type}/{name}: {e.message}")
                    continue

                plugins.append({
                    "type": current_type,
                    "name": name,
                    "info": info,
                    "path": str(plugin_dir),
                    "enabled": self.is_plugin_enabled(current_type, name),
                    "loaded": self.is_plugin_loaded(current_type, name),
                })

        return plugins

    def get_plugin_settings(self, plugin_type: str, name: str) -> Dict[str, Any]:
        return dict(self._get_state()["settings"].get(f"{plugin_type}/{name}", {}))

    def save_plugin_settings(self, plugin_type: str, name: str, values: Optional[Dict[str, Any]]) -> None:
        state = self._get_state()
        key = f"{plugin_type}/{name}"
        if values is None:
            state["settings"].pop(key, None)
        else:
            state["settings"][key] = values
        self._save_state(state)

    def get_installed_version(self, plugin_type: str, name: str) -> Optional[str]:
        return self._get_state()["installed"].get(f"{plugin_type}/{name}")

    def set_installed_version(self, plugin_type: str, name: str, version: Optional[str]) -> None:
        state = self._get_state()
        key = f"{plugin_type}/{name}"
        if version is None:
            state["installed"].pop(key, None)
        else:
            state["installed"][key] = version
        self._save_state(state)

    def get_system_status(self) -> Dict[str, Any]:
        available = self.get_available_plugins()
        by_type = {
            plugin_type: {
                "available": sum(1 for p in available if p["type"] == plugin_type),
                "enabled": sum(1 for p in available if p["type"] == plugin_type and p["enabled"]),
            }
            for plugin_type in PLUGIN_TYPES
        }

        return {
            "lms_version": self.lms_version,
            "total_plugins": len(available),
            "enabled_plugins": sum(1 for p in available if p["enabled"]),
            "loaded_plugins": sorted(self.loaded_plugins),
            "by_type": by_type,
        }

    def clear_cache(self) -> None:
        self.cache.clear()
        self.i18n.clear_cache()
        logger.info("Plugin caches cleared")

    def get_plugin_path(self, plugin_type: str, name: str) -> Path:
        if not PLUGIN_NAME_PATTERN.match(name):
            raise PluginError(f"Invalid plugin name: {name}")
        return self.plugins_path / plugin_type / name

    def ensure_plugin_directories(self) -> None:
        for plugin_type in PLUGIN_TYPES:
            (self.plugins_path / plugin_type).mkdir(parents=True, exist_ok=True)

    # ============ Internals ============

    @staticmethod
    def _check_type(plugin_type: str) -> None:
        if plugin_type not in PLUGIN_TYPES:
            raise PluginError(f"Unknown plugin type: {plugin_type}")

    @staticmethod
    def _import_plugin_module(plugin_type: str, name: str, plugin_file: Path):
        spec = importlib.util.spec_from_file_location(f"lms_plugin_{plugin_type}_{name}", plugin_file)
        if spec is None or spec.loader is None:
            raise PluginError(f"Cannot import plugin {plugin_type}/{name}")

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except (ImportError, SyntaxError) as e:
            raise PluginError(f"Failed to import plugin {plugin_type}/{name}: {str(e)}")
        return module

    def _get_state(self) -> Dict[str, Any]:
        if self._state is None:
            if self.state_file.is_file():
                with self.state_file.open(encoding="utf-8") as handle:
                    data = json.load(handle)
                # Older state files only hold the enabled list
                if isinstance(data, list):
                    data = {"enabled": data}
            else:
                data = {"enabled": self._discover_bundled()}

            data.setdefault("enabled", [])
            data.setdefault("settings", {})
            data.setdefault("installed", {})
            self._state = data

        return self._state

    def _save_state(self, state: Dict[str, Any]) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        with self.state_file.open("w", encoding="utf-8") as handle:
            json.dump(state, handle, indent=2, sort_keys=True)
        self._state = state

    def _discover_bundled(self) -> List[Dict[str, str]]:
        """Every plugin found on disk, used when no state file exists yet"""
        found = []
        for plugin_type in PLUGIN_TYPES:
            type_path = self.plugins_path / plugin_type
            if not type_path.is_dir():
                continue
            for plugin_dir in sorted(p for p in type_path.iterdir() if p.is_dir()):
                if (plugin_dir / "version.json").is_file():
                    found.append({"type": plugin_type, "name": plugin_dir.name})
        return found


# Singleton instance
def _plugin_db():
    from lms.core.supabase_client import get_supabase_client
    return get_supabase_client()


plugin_manager = PluginManager(i18n=i18n_manager, db_factory=_plugin_db)
