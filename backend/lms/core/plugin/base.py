"""
Base classes shared by bundled and third-party plugins
"""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from lms.core.plugin.contracts import BlockInterface, PluginInterface
from lms.utils.exceptions import PluginError

if TYPE_CHECKING:
    from lms.core.plugin.manager import PluginManager

logger = logging.getLogger(__name__)


class AbstractPlugin(PluginInterface):
    """
    Common plugin plumbing.

    Reads the plugin's ``version.json``, checks compatibility with the running
    LMS version, validates settings against ``get_config_schema()`` and gives
    access to the plugin's language strings.
    """

    def __init__(self, plugin_path: Path, manager: "PluginManager"):
        self.plugin_path = Path(plugin_path)
        self.manager = manager
        self.plugin_type = self.plugin_path.parent.name
        self.plugin_name = self.plugin_path.name
        self.info: Dict[str, Any] = {}
        self.initialized = False

    def init(self) -> None:
        if self.initialized:
            return

        self.info = self.manager.get_plugin_info(self.plugin_type, self.plugin_name)
        self.init_plugin()
        self.initialized = True

    def init_plugin(self) -> None:
        """Hook for plugin specific initialization"""

    @property
    def component(self) -> str:
        return self.info.get("component") or f"{self.plugin_type}_{self.plugin_name}"

    @property
    def db(self):
        return self.manager.db

    def get_name(self) -> str:
        return self.plugin_name

    def get_version(self) -> str:
        return str(self.info.get("version", "0"))

    def get_type(self) -> str:
        return self.plugin_type

    def get_dependencies(self) -> Dict[str, int]:
        return dict(self.info.get("dependencies") or {})

    # ============ Lifecycle ============

    def install(self) -> bool:
        if not self.is_compatible():
            raise PluginError(f"Plugin {self.component} requires a newer LMS version")

        self.on_install()
        self.manager.set_installed_version(self.plugin_type, self.plugin_name, self.get_version())
        self.log(f"Installed version {self.get_version()}")
        return True

    def uninstall(self) -> bool:
        self.on_uninstall()
        self.manager.set_installed_version(self.plugin_type, self.plugin_name, None)
        self.manager.save_plugin_settings(self.plugin_type, self.plugin_name, None)
        self.log("Uninstalled")
        return True

    def upgrade(self, old_version: Optional[str] = None) -> bool:
        old_version = old_version or self.manager.get_installed_version(self.plugin_type, self.plugin_name)
        new_version = self.get_version()

        if old_version is not None and int(old_version) >= int(new_version):
            return False

        self.on_upgrade(old_version, new_version)
        self.manager.set_installed_version(self.plugin_type, self.plugin_name, new_version)
        self.log(f"Upgraded from {old_version} to {new_version}")
        return True

    def on_install(self) -> None:
        """Hook run once when the plugin is installed"""

    def on_uninstall(self) -> None:
        """Hook run when the plugin is removed"""

    def on_upgrade(self, old_version: Optional[str], new_version: str) -> None:
        """Hook run when a newer plugin version replaces an installed one"""

    def is_compatible(self) -> bool:
        requires = self.info.get("requires")
        return requires is None or int(requires) <= self.manager.lms_version

    # ============ Settings ============

    def get_config_schema(self) -> Dict[str, Dict[str, Any]]:
        return {}

    def get_settings(self) -> Dict[str, Any]:
        values = {name: field.get("default") for name, field in self.get_config_schema().items()}
        values.update(self.manager.get_plugin_settings(self.plugin_type, self.plugin_name))
        return values

    def update_settings(self, settings: Dict[str, Any]) -> bool:
        schema = self.get_config_schema()
        cleaned = self.get_settings()

        for name, value in settings.items():
            if name not in schema:
                raise PluginError(f"Unknown setting '{name}' for {self.component}", 422)
            cleaned[name] = self.validate_setting(name, schema[name], value)

        self.manager.save_plugin_settings(self.plugin_type, self.plugin_name, cleaned)
        return True

    @staticmethod
    def validate_setting(name: str, field: Dict[str, Any], value: Any) -> Any:
        field_type = field.get("type", "text")

        if field_type == "checkbox":
            if not isinstance(value, bool):
                raise PluginError(f"Setting '{name}' must be a boolean", 422)
            return value

        if field_type == "number":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise PluginError(f"Setting '{name}' must be a number", 422)
            if "min" in field and value < field["min"]:
                raise PluginError(f"Setting '{name}' must be at least {field['min']}", 422)
            if "max" in field and value > field["max"]:
                raise PluginError(f"Setting '{name}' must be at most {field['max']}", 422)
            return value

        if field_type == "select":
            if value not in field.get("options", []):
                raise PluginError(f"Setting '{name}' must be one of {field.get('options', [])}", 422)
            return value

        if not isinstance(value, str):
            raise PluginError(f"Setting '{name}' must be a string", 422)
        return value

    # ============ Helpers ============

    def get_string(self, key: str, params: Optional[Dict[str, Any]] = None, locale: Optional[str] = None) -> str:
        return self.manager.i18n.translate_plugin(self.plugin_type, self.plugin_name, key, params, locale)

    def get_plugin_path(self) -> Path:
        return self.plugin_path

    def get_asset_url(self, path: str = "") -> str:
        url = f"/plugins/{self.plugin_type}/{self.plugin_name}"
        return f"{url}/{path.lstrip('/')}" if path else url

    def read_json(self, relative_path: str) -> Dict[str, Any]:
        with (self.plugin_path / relative_path).open(encoding="utf-8") as handle:
            return json.load(handle)

    def log(self, message: str, level: int = logging.INFO) -> None:
        logger.log(level, f"[{self.component}] {message}")


class AbstractBlock(AbstractPlugin, BlockInterface):
    """Defaults for blocks; concrete blocks override what differs"""

    def __init__(self, plugin_path: Path, manager: "PluginManager"):
        super().__init__(plugin_path, manager)
        self.config: Dict[str, Any] = {}

    def get_title(self, locale: Optional[str] = None) -> str:
        return self.get_string("pluginname", locale=locale)

    def get_description(self) -> str:
        return self.get_string("description")

    def get_api_data(self, config: Optional[Dict[str, Any]] = None,
                     context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.get_content(config, context)

    def get_react_component(self) -> Optional[str]:
        return None

    def has_config(self) -> bool:
        return bool(self.get_config_schema())

    def get_config(self) -> Dict[str, Any]:
        return {**self.get_settings(), **self.config}

    def set_config(self, config: Dict[str, Any]) -> None:
        self.config = dict(config or {})

    def get_supported_page_types(self) -> List[str]:
        return ["*"]

    def get_supported_regions(self) -> List[str]:
        return ["side-pre", "side-post"]

    def get_default_region(self) -> str:
        return self.get_supported_regions()[0]

    def get_default_weight(self) -> int:
        return 0

    def supports_multiple_instances(self) -> bool:
        return True

    def should_show(self, page_type: str, context: Dict[str, Any]) -> bool:
        return True

    def supports_page_type(self, page_type: str) -> bool:
        page_types = self.get_supported_page_types()
        return "*" in page_types or page_type in page_types

    def resolve_config(self, config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Instance config layered over plugin settings and schema defaults"""
        return {**self.get_settings(), **(config or {})}

    def validate_config(self, config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Check instance config against the config schema; unknown keys are rejected"""
        schema = self.get_config_schema()
        cleaned = {}

        for name, value in (config or {}).items():
            if name not in schema:
                raise PluginError(f"Unknown setting '{name}' for {self.component}", 422)
            cleaned[name] = self.validate_setting(name, schema[name], value)

        return cleaned
