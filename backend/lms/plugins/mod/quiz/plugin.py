"""
Quiz activity module
"""

import time
from typing import Any, Dict, List, Optional

from lms.core.plugin.base import AbstractPlugin
from lms.core.plugin.contracts import ModuleInterface
from lms.core.supabase_client import first_row
from lms.utils.exceptions import PluginError

# Moodle's defaults for a new quiz
QUIZ_DEFAULTS = {
    "intro": "",
    "introformat": 1,
    "timeopen": 0,
    "timeclose": 0,
    "timelimit": 0,
    "overduehandling": "autosubmit",
    "graceperiod": 0,
    "preferredbehaviour": "deferredfeedback",
    "canredoquestions": 0,
    "attempts": 0,
    "attemptonlast": 0,
    "grademethod": 1,
    "decimalpoints": 2,
    "questiondecimalpoints": -1,
    "reviewattempt": 0,
    "reviewcorrectness": 0,
    "reviewmarks": 0,
    "reviewspecificfeedback": 0,
    "reviewgeneralfeedback": 0,
    "reviewrightanswer": 0,
    "reviewoverallfeedback": 0,
    "questionsperpage": 1,
    "navmethod": "free",
    "shuffleanswers": 1,
    "sumgrades": 0,
    "grade": 100,
}

UPDATABLE_FIELDS = (
    "name", "intro", "introformat", "timeopen", "timeclose",
    "timelimit", "attempts", "grademethod", "grade",
)

PASS_RATIO = 0.6


class QuizModule(AbstractPlugin, ModuleInterface):

    def get_description(self) -> str:
        return self.get_string("description")

    def get_icon(self) -> str:
        return "fa-question-circle"

    def get_supported_features(self) -> Dict[str, bool]:
        return {
            "groups": True,
            "groupings": True,
            "idnumber": True,
            "intro": True,
            "completion": True,
            "grade": True,
            "gradebook": True,
            "backup": True,
            "restore": True,
            "plagiarism": False,
            "outcomes": True,
        }

    def get_capabilities(self) -> Dict[str, Dict[str, Any]]:
        return {
            "mod/quiz:view": {
                "captype": "read",
                "contextlevel": "module",
                "archetypes": {"student": "allow", "teacher": "allow"},
            },
            "mod/quiz:attempt": {
                "captype": "write",
                "contextlevel": "module",
                "archetypes": {"student": "allow"},
            },
            "mod/quiz:manage": {
                "captype": "write",
                "contextlevel": "module",
                "archetypes": {"teacher": "allow"},
            },
            "mod/quiz:grade": {
                "captype": "write",
                "contextlevel": "module",
                "archetypes": {"teacher": "allow"},
            },
        }

    def get_config_schema(self) -> Dict[str, Dict[str, Any]]:
        return {
            "timelimit": {
                "type": "number",
                "label": self.get_string("timelimit"),
                "default": 0,
                "min": 0,
            },
            "attempts": {
                "type": "select",
                "label": self.get_string("attempts"),
                "options": [0, 1, 2, 3],
                "default": 0,
            },
            "grademethod": {
                "type": "select",
                "label": self.get_string("grademethod"),
                "options": [1, 2, 3, 4],
                "default": 1,
            },
        }

    # ============ Instances ============

    def add_instance(self, data: Dict[str, Any]) -> str:
        if not data.get("course_id") or not data.get("name"):
            raise PluginError("A quiz needs a course_id and a name", 422)

        now = int(time.time())
        defaults = {**QUIZ_DEFAULTS, **self._site_defaults()}
        quiz = {field: data.get(field, default) for field, default in defaults.items()}
        quiz.update({
            "course_id": data["course_id"],
            "name": data["name"],
            "timecreated": now,
            "timemodified": now,
        })

        created = first_row(self.db.table("quiz").insert(quiz).execute())
        if not created:
            raise PluginError("Failed to create quiz", 500)

        self.log(f"Created quiz {created['id']} in course {data['course_id']}")
        return str(created["id"])

    def update_instance(self, instance_id: str, data: Dict[str, Any]) -> bool:
        update = {field: data[field] for field in UPDATABLE_FIELDS if field in data}
        update["timemodified"] = int(time.time())

        result = self.db.table("quiz").update(update).eq("id", instance_id).execute()
        return bool(result.data)

    def delete_instance(self, instance_id: str) -> bool:
        if not self.get_instance(instance_id):
            return False

        self.db.table("quiz_attempts").delete().eq("quiz_id", instance_id).execute()
        self.db.table("quiz_grades").delete().eq("quiz_id", instance_id).execute()
        self.db.table("quiz").delete().eq("id", instance_id).execute()
        return True

    def get_instance(self, instance_id: str) -> Optional[Dict[str, Any]]:
        return first_row(self.db.table("quiz").select("*").eq("id", instance_id).limit(1).execute())

    # ============ Grading and completion ============

    def get_grading_info(self, instance_id: str) -> Dict[str, Any]:
        quiz = self.get_instance(instance_id) or {}
        grade_max = quiz.get("grade") or QUIZ_DEFAULTS["grade"]

        return {
            "grade_type": "point",
            "grade_max": grade_max,
            "grade_min": 0,
            "grade_pass": round(grade_max * PASS_RATIO, 5),
        }

    def update_grades(self, instance_id: str, grades: Dict[str, float]) -> bool:
        now = int(time.time())
        rows = [
            {"quiz_id": instance_id, "user_id": user_id, "grade": grade, "timemodified": now}
            for user_id, grade in grades.items()
        ]

        if rows:
            self.db.table("quiz_grades").upsert(rows, on_conflict="quiz_id,user_id").execute()
        return True

    def get_completion_state(self, instance_id: str, user_id: str) -> int:
        result = self.db.table("quiz_attempts").select("id").eq("quiz_id", instance_id).eq(
            "user_id", user_id
        ).eq("state", "finished").limit(1).execute()
        return 1 if result.data else 0

    # ============ Navigation and search ============

    def get_navigation_items(self, instance_id: str) -> Dict[str, str]:
        return {
            "view": self.get_string("view"),
            "attempt": self.get_string("attempt"),
            "results": self.get_string("results"),
        }

    def search(self, query: str, course_id: Optional[str] = None) -> List[Dict[str, Any]]:
        db_query = self.db.table("quiz").select("id, name, intro, course_id").ilike("name", f"%{query}%")
        if course_id:
            db_query = db_query.eq("course_id", course_id)

        return [
            {
                "title": quiz["name"],
                "url": f"/mod/quiz/view/{quiz['id']}",
                "content": quiz.get("intro") or "",
            }
            for quiz in db_query.execute().data or []
        ]

    def _site_defaults(self) -> Dict[str, Any]:
        """Admin settings override the built-in defaults for new quizzes"""
        return {key: value for key, value in self.get_settings().items() if value is not None}


plugin_class = QuizModule
