"""
Plugin contracts for Moodle-style plugins (activity modules, blocks, themes)
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class PluginInterface(ABC):
    """Base contract for every plugin"""

    @abstractmethod
    def init(self) -> None:
        """Initialize the plugin after it has been loaded"""

    @abstractmethod
    def get_name(self) -> str:
        ...

    @abstractmethod
    def get_version(self) -> str:
        ...

    @abstractmethod
    def get_type(self) -> str:
        ...

    @abstractmethod
    def get_dependencies(self) -> Dict[str, int]:
        """Component name -> minimum required version"""

    @abstractmethod
    def install(self) -> bool:
        ...

    @abstractmethod
    def uninstall(self) -> bool:
        ...

    @abstractmethod
    def upgrade(self, old_version: Optional[str] = None) -> bool:
        ...

    @abstractmethod
    def is_compatible(self) -> bool:
        """Check if the plugin supports the running LMS version"""

    @abstractmethod
    def get_config_schema(self) -> Dict[str, Dict[str, Any]]:
        ...

    @abstractmethod
    def get_settings(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def update_settings(self, settings: Dict[str, Any]) -> bool:
        ...


class BlockInterface(PluginInterface):
    """Contract for blocks displayed in page regions"""

    @abstractmethod
    def get_title(self, locale: Optional[str] = None) -> str:
        ...

    @abstractmethod
    def get_description(self) -> str:
        ...

    @abstractmethod
    def get_content(self, config: Optional[Dict[str, Any]] = None,
                    context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...

    @abstractmethod
    def get_api_data(self, config: Optional[Dict[str, Any]] = None,
                     context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Block data for the React front-end"""

    @abstractmethod
    def get_react_component(self) -> Optional[str]:
        ...

    @abstractmethod
    def has_config(self) -> bool:
        ...

    @abstractmethod
    def get_config(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def set_config(self, config: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def get_supported_page_types(self) -> List[str]:
        """Page types the block may be added to; ``*`` means all"""

    @abstractmethod
    def get_supported_regions(self) -> List[str]:
        ...

    @abstractmethod
    def get_default_region(self) -> str:
        ...

    @abstractmethod
    def get_default_weight(self) -> int:
        ...

    @abstractmethod
    def supports_multiple_instances(self) -> bool:
        ...

    @abstractmethod
    def should_show(self, page_type: str, context: Dict[str, Any]) -> bool:
        ...


class ModuleInterface(PluginInterface):
    """Contract for course activity modules (mods)"""

    @abstractmethod
    def get_description(self) -> str:
        ...

    @abstractmethod
    def get_icon(self) -> str:
        ...

    @abstractmethod
    def get_supported_features(self) -> Dict[str, bool]:
        ...

    @abstractmethod
    def get_capabilities(self) -> Dict[str, Dict[str, Any]]:
        ...

    @abstractmethod
    def add_instance(self, data: Dict[str, Any]) -> str:
        """Create an instance in a course and return its id"""

    @abstractmethod
    def update_instance(self, instance_id: str, data: Dict[str, Any]) -> bool:
        ...

    @abstractmethod
    def delete_instance(self, instance_id: str) -> bool:
        ...

    @abstractmethod
    def get_instance(self, instance_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_grading_info(self, instance_id: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def update_grades(self, instance_id: str, grades: Dict[str, float]) -> bool:
        """Store grades keyed by user id"""

    @abstractmethod
    def get_completion_state(self, instance_id: str, user_id: str) -> int:
        """1 when the user completed the activity, else 0"""

    @abstractmethod
    def get_navigation_items(self, instance_id: str) -> Dict[str, str]:
        ...

    @abstractmethod
    def search(self, query: str, course_id: Optional[str] = None) -> List[Dict[str, Any]]:
        ...


class ThemeInterface(PluginInterface):
    """Contract for themes"""

    @abstractmethod
    def get_layouts(self) -> Dict[str, Dict[str, Any]]:
        ...

    @abstractmethod
    def get_colors(self) -> Dict[str, str]:
        ...

    @abstractmethod
    def get_fonts(self) -> Dict[str, str]:
        ...

    @abstractmethod
    def get_breakpoints(self) -> Dict[str, int]:
        ...

    @abstractmethod
    def get_regions(self) -> List[str]:
        ...

    @abstractmethod
    def get_parent(self) -> Optional[str]:
        ...

    @abstractmethod
    def supports_dark_mode(self) -> bool:
        ...

    @abstractmethod
    def supports_rtl(self) -> bool:
        ...

    @abstractmethod
    def get_react_theme_data(self) -> Dict[str, Any]:
        ...
