"""
Boost theme
"""

from typing import Any, Dict, List, Optional

from lms.core.plugin.base import AbstractPlugin
from lms.core.plugin.contracts import ThemeInterface

SIDE_REGIONS = ["side-pre", "side-post"]

DRAWER_LAYOUTS = (
    "base", "standard", "course", "coursecategory", "incourse",
    "frontpage", "admin", "mydashboard", "mypublic", "report",
)


class BoostTheme(AbstractPlugin, ThemeInterface):

    def get_layouts(self) -> Dict[str, Dict[str, Any]]:
        layouts: Dict[str, Dict[str, Any]] = {
            name: {"component": "DrawersLayout", "regions": list(SIDE_REGIONS), "default_region": "side-pre"}
            for name in DRAWER_LAYOUTS
        }
        layouts.update({
            "secure": {"component": "SecureLayout", "regions": list(SIDE_REGIONS), "default_region": "side-pre"},
            "login": {"component": "LoginLayout", "regions": [], "options": {"langmenu": True}},
            "popup": {"component": "PopupLayout", "regions": [], "options": {"nofooter": True, "nonavbar": True}},
            "embedded": {"component": "EmbeddedLayout", "regions": []},
            "maintenance": {"component": "MaintenanceLayout", "regions": []},
            "print": {"component": "PrintLayout", "regions": [], "options": {"nofooter": True, "nonavbar": False}},
            "redirect": {"component": "RedirectLayout", "regions": []},
        })
        return layouts

    def get_colors(self) -> Dict[str, str]:
        colors = {
            "primary": "#0f6cbf",
            "secondary": "#ced4da",
            "success": "#357a32",
            "info": "#008196",
            "warning": "#f0ad4e",
            "danger": "#ca3120",
            "light": "#f8f9fa",
            "dark": "#1d2125",
        }
        brand = self.get_settings().get("brandcolor")
        if brand:
            colors["primary"] = brand
        return colors

    def get_fonts(self) -> Dict[str, str]:
        return {
            "base": '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif',
            "monospace": 'SFMono-Regular, Menlo, Monaco, Consolas, "Liberation Mono", "Courier New", monospace',
            "size_base": "0.9375rem",
        }

    def get_breakpoints(self) -> Dict[str, int]:
        return {"xs": 0, "sm": 576, "md": 768, "lg": 992, "xl": 1200, "xxl": 1400}

    def get_regions(self) -> List[str]:
        return list(SIDE_REGIONS)

    def get_parent(self) -> Optional[str]:
        return None

    def supports_dark_mode(self) -> bool:
        return bool(self.get_settings().get("darkmode"))

    def supports_rtl(self) -> bool:
        return True

    def get_config_schema(self) -> Dict[str, Dict[str, Any]]:
        return {
            "brandcolor": {"type": "text", "label": self.get_string("brandcolor"), "default": ""},
            "darkmode": {"type": "checkbox", "label": self.get_string("darkmode"), "default": False},
        }

    def get_react_theme_data(self) -> Dict[str, Any]:
        return {
            "name": self.get_name(),
            "parent": self.get_parent(),
            "layouts": self.get_layouts(),
            "colors": self.get_colors(),
            "fonts": self.get_fonts(),
            "breakpoints": self.get_breakpoints(),
            "regions": self.get_regions(),
            "dark_mode": self.supports_dark_mode(),
            "rtl": self.supports_rtl(),
        }


plugin_class = BoostTheme
