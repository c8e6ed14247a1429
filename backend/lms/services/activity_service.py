"""
Activity Service
Course activities: the course_activities record plus the instance kept by
its activity module plugin
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from lms.core.plugin.manager import PluginManager
from lms.core.supabase_client import first_row
from lms.utils.exceptions import AppError, NotFoundError, PluginError

logger = logging.getLogger(__name__)

RECORD_FIELDS = ("section_id", "visible")


class ActivityService:

    def __init__(self, db, plugins: PluginManager):
        self.db = db
        self.plugins = plugins

    def get_module(self, name: str):
        try:
            return self.plugins.get_enabled_plugin("mod", name)
        except PluginError:
            raise NotFoundError(f"Activity module {name} is not available")

    # ============ Records ============

    def create_activity(self, course_id: str, module_name: str, name: str,
                        section_id: Optional[str] = None, settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        module = self.get_module(module_name)
        instance_id = module.add_instance({**(settings or {}), "course_id": course_id, "name": name})

        activity = first_row(self.db.table("course_activities").insert({
            "course_id": course_id,
            "section_id": section_id,
            "module": module_name,
            "instance_id": instance_id,
            "visible": True,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }).execute())

        if not activity:
            raise AppError("Failed to record activity")

        logger.info(f"Added {module_name} activity {activity['id']} to course {course_id}")
        return activity

    def get_activity(self, course_id: str, activity_id: str, include_hidden: bool = False) -> Dict[str, Any]:
        activity = first_row(
            self.db.table("course_activities").select("*").eq("id", activity_id).eq(
                "course_id", course_id
            ).limit(1).execute()
        )

        if not activity or (not include_hidden and not activity.get("visible", True)):
            raise NotFoundError("Activity not found")
        return activity

    def list_activities(self, course_id: str, include_hidden: bool = False) -> List[Dict[str, Any]]:
        """Course activities in creation order; activities of disabled modules are left out"""
        query = self.db.table("course_activities").select("*").eq("course_id", course_id)
        if not include_hidden:
            query = query.eq("visible", True)

        activities = []
        for activity in query.order("created_at").execute().data or []:
            try:
                activities.append(self.describe(activity))
            except NotFoundError:
                logger.warning(f"Skipping activity {activity['id']}: module {activity['module']} is not available")

        return activities

    def describe(self, activity: Dict[str, Any]) -> Dict[str, Any]:
        """Activity record with the module instance, navigation and grading info"""
        module = self.get_module(activity["module"])
        instance = module.get_instance(activity["instance_id"]) or {}
        grading = None
        if module.get_supported_features().get("grade"):
            grading = module.get_grading_info(activity["instance_id"])

        return {
            **activity,
            "name": instance.get("name"),
            "instance": instance,
            "navigation": module.get_navigation_items(activity["instance_id"]),
            "grading": grading,
        }

    def update_activity(self, activity: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        module = self.get_module(activity["module"])

        instance_fields = dict(data.get("settings") or {})
        if data.get("name") is not None:
            instance_fields["name"] = data["name"]
        if instance_fields:
            module.update_instance(activity["instance_id"], instance_fields)

        record_fields = {field: data[field] for field in RECORD_FIELDS if data.get(field) is not None}
        if record_fields:
            updated = first_row(
                self.db.table("course_activities").update(record_fields).eq("id", activity["id"]).execute()
            )
            activity = updated or {**activity, **record_fields}

        return self.describe(activity)

    def delete_activity(self, activity: Dict[str, Any]) -> None:
        try:
            module = self.get_module(activity["module"])
        except NotFoundError:
            logger.warning(f"Deleting activity {activity['id']} without its {activity['module']} instance")
        else:
            module.delete_instance(activity["instance_id"])

        self.db.table("activity_completion").delete().eq("activity_id", activity["id"]).execute()
        self.db.table("course_activities").delete().eq("id", activity["id"]).execute()
        logger.info(f"Deleted activity {activity['id']} from course {activity['course_id']}")

    # ============ Completion and grades ============

    def get_completion(self, activity: Dict[str, Any], user_id: str) -> Dict[str, Any]:
        """Stored completion, or the module's own view of it when nothing is stored"""
        record = first_row(
            self.db.table("activity_completion").select("*").eq("activity_id", activity["id"]).eq(
                "user_id", user_id
            ).limit(1).execute()
        )

        if record:
            state = record.get("completion_state") or 0
            viewed = bool(record.get("viewed"))
            timemodified = record.get("timemodified") or 0
        else:
            state = self.get_module(activity["module"]).get_completion_state(activity["instance_id"], user_id)
            viewed = False
            timemodified = 0

        return {
            "activity_id": activity["id"],
            "completed": bool(state),
            "completion_state": state,
            "viewed": viewed,
            "timemodified": timemodified,
        }

    def update_completion(self, activity: Dict[str, Any], user_id: str, completion_state: int) -> Dict[str, Any]:
        self.db.table("activity_completion").upsert({
            "activity_id": activity["id"],
            "user_id": user_id,
            "completion_state": completion_state,
            "viewed": True,
            "timemodified": int(time.time()),
        }, on_conflict="activity_id,user_id").execute()

        return self.get_completion(activity, user_id)

    def update_grades(self, activity: Dict[str, Any], grades: Dict[str, float]) -> Dict[str, Any]:
        module = self.get_module(activity["module"])
        if not module.get_supported_features().get("grade"):
            raise PluginError(f"Activity module {activity['module']} does not support grading")

        module.update_grades(activity["instance_id"], grades)
        return module.get_grading_info(activity["instance_id"])

    def search(self, course_id: str, query: str) -> List[Dict[str, Any]]:
        results = []
        for plugin in self.plugins.get_enabled_plugins("mod"):
            try:
                module = self.plugins.load_plugin("mod", plugin["name"])
            except Exception as e:
                logger.error(f"Failed to load module {plugin['name']}: {str(e)}")
                continue

            for item in module.search(query, course_id):
                results.append({"module": plugin["name"], **item})

        return results
