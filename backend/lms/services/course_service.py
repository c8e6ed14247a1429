"""
Course Service
Course lookups shared by the course, enrollment and dashboard endpoints
"""
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional
from lms.core.supabase_client import first_row
from lms.schemas.user import full_name


class CourseService:
    """
    Read helpers over the courses, course_teachers, course_sections and
    enrollments tables
    """

    def __init__(self, db):
        self.db = db

    def get_course(self, course_id: str) -> Optional[Dict[str, Any]]:
        return first_row(self.db.table("courses").select("*").eq("id", course_id).limit(1).execute())

    def get_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        return first_row(
            self.db.table("course_categories").select("id, name").eq("id", category_id).limit(1).execute()
        )

    def code_exists(self, code: str) -> bool:
        return bool(self.db.table("courses").select("id").eq("code", code).limit(1).execute().data)

    # ============ Enrollment counts ============

    def enrollment_counts(self, course_ids: Iterable[str]) -> Dict[str, int]:
        """Active enrollments per course"""
        course_ids = list(course_ids)
        if not course_ids:
            return {}

        result = self.db.table("enrollments").select("course_id").in_(
            "course_id", course_ids
        ).eq("status", "active").execute()

        return dict(Counter(row["course_id"] for row in result.data or []))

    def active_enrollment_count(self, course_id: str) -> int:
        result = self.db.table("enrollments").select("id", count="exact").eq(
            "course_id", course_id
        ).eq("status", "active").execute()

        if result.count is not None:
            return result.count
        return len(result.data or [])

    def with_summary(self, courses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Attach enrollment_count and category{id, name} to each course"""
        counts = self.enrollment_counts(course["id"] for course in courses)

        category_ids = list({course["category_id"] for course in courses if course.get("category_id")})
        categories = {}
        if category_ids:
            result = self.db.table("course_categories").select("id, name").in_("id", category_ids).execute()
            categories = {row["id"]: row for row in result.data or []}

        for course in courses:
            course["enrollment_count"] = counts.get(course["id"], 0)
            course["category"] = categories.get(course.get("category_id"))

        return courses

    # ============ Teachers and sections ============

    def get_teachers(self, course_id: str) -> List[Dict[str, Any]]:
        links = self.db.table("course_teachers").select("user_id, role").eq("course_id", course_id).execute().data or []
        if not links:
            return []

        users = self.db.table("users").select("id, first_name, last_name, email").in_(
            "id", [link["user_id"] for link in links]
        ).execute().data or []
        users_by_id = {user["id"]: user for user in users}

        return [
            {
                "id": link["user_id"],
                "full_name": full_name(users_by_id.get(link["user_id"], {})),
                "email": users_by_id.get(link["user_id"], {}).get("email"),
                "role": link["role"],
            }
            for link in links
        ]

    def get_sections(self, course_id: str) -> List[Dict[str, Any]]:
        result = self.db.table("course_sections").select("id, name, summary, position").eq(
            "course_id", course_id
        ).eq("is_visible", True).order("position").execute()
        return result.data or []

    def teacher_role(self, course_id: str, user_id: str) -> Optional[str]:
        link = first_row(
            self.db.table("course_teachers").select("role").eq("course_id", course_id).eq(
                "user_id", user_id
            ).limit(1).execute()
        )
        return link["role"] if link else None

    def is_teacher(self, course_id: str, user_id: str) -> bool:
        return self.teacher_role(course_id, user_id) is not None

    def can_manage(self, course_id: str, user: Dict[str, Any]) -> bool:
        """Admins and the course's teachers may edit a course"""
        return user.get("role") == "admin" or self.is_teacher(course_id, user["id"])

    def get_active_enrollment(self, course_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return first_row(
            self.db.table("enrollments").select("*").eq("course_id", course_id).eq(
                "user_id", user_id
            ).eq("status", "active").limit(1).execute()
        )
