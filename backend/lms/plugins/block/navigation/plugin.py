"""
Navigation block: site links, course links and course sections
"""

from typing import Any, Dict, List, Optional

from lms.core.plugin.base import AbstractBlock
from lms.core.supabase_client import first_row

HIDDEN_PAGES = {"login", "register"}


class NavigationBlock(AbstractBlock):

    def get_content(self, config: Optional[Dict[str, Any]] = None,
                    context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        config = self.resolve_config(config)
        context = context or {}
        locale = context.get("locale")
        course_id = context.get("course_id")

        navigation: Dict[str, List[Dict[str, str]]] = {}

        if config["show_site_nav"]:
            navigation["site"] = [
                self._link("dashboard", "/dashboard", locale),
                self._link("courses", "/courses", locale),
                self._link("users", "/users", locale),
            ]

        if course_id:
            course = first_row(
                self.db.table("courses").select("id").eq("id", course_id).limit(1).execute()
            )

            if course:
                if config["show_course_nav"]:
                    navigation["course"] = [
                        self._link("course_home", f"/courses/{course_id}", locale),
                        self._link("participants", f"/courses/{course_id}/participants", locale),
                        self._link("grades", f"/courses/{course_id}/grades", locale),
                        self._link("files", f"/courses/{course_id}/files", locale),
                    ]

                if config["show_sections"]:
                    navigation["sections"] = self._get_sections(course_id, config["max_sections"], locale)

        return navigation

    def get_api_data(self, config: Optional[Dict[str, Any]] = None,
                     context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        config = self.resolve_config(config)
        locale = (context or {}).get("locale")

        return {
            "navigation": self.get_content(config, context),
            "headings": {
                "site": self.get_string("site", locale=locale),
                "course": self.get_string("course", locale=locale),
                "sections": self.get_string("course_content", locale=locale),
            },
            "config": config,
        }

    def get_react_component(self) -> Optional[str]:
        return "NavigationBlock"

    def get_config_schema(self) -> Dict[str, Dict[str, Any]]:
        return {
            "show_site_nav": {
                "type": "checkbox",
                "label": self.get_string("show_site_nav"),
                "default": True,
            },
            "show_course_nav": {
                "type": "checkbox",
                "label": self.get_string("show_course_nav"),
                "default": True,
            },
            "show_sections": {
                "type": "checkbox",
                "label": self.get_string("show_sections"),
                "default": True,
            },
            "max_sections": {
                "type": "number",
                "label": self.get_string("max_sections"),
                "default": 10,
                "min": 1,
                "max": 50,
            },
        }

    def get_supported_regions(self) -> List[str]:
        return ["side-pre", "side-post", "content"]

    def supports_multiple_instances(self) -> bool:
        return False

    def should_show(self, page_type: str, context: Dict[str, Any]) -> bool:
        return page_type not in HIDDEN_PAGES

    def _get_sections(self, course_id: str, limit: int, locale: Optional[str]) -> List[Dict[str, str]]:
        result = self.db.table("course_sections").select("id, name, position").eq(
            "course_id", course_id
        ).eq("is_visible", True).order("position").execute()

        sections = []
        for section in result.data or []:
            # Section 0 is the general section
            if section["position"] <= 0:
                continue

            sections.append({
                "key": f"section-{section['id']}",
                "label": section.get("name") or self.get_string(
                    "topic", {"number": section["position"]}, locale
                ),
                "url": f"/courses/{course_id}/sections/{section['id']}",
            })

            if len(sections) >= limit:
                break

        return sections

    def _link(self, key: str, url: str, locale: Optional[str]) -> Dict[str, str]:
        return {"key": key, "label": self.get_string(key, locale=locale), "url": url}


plugin_class = NavigationBlock
