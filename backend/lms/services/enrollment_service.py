"""
Enrollment Service
Enrolment rules: enabled flag, one active enrolment per user and course,
and the max_students cap
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List
from lms.core.supabase_client import first_row
from lms.services.course_service import CourseService
from lms.utils.exceptions import AppError, BadRequestError, NotFoundError

logger = logging.getLogger(__name__)


class EnrollmentService:

    def __init__(self, db):
        self.db = db
        self.courses = CourseService(db)

    def enroll(self, user_id: str, course_id: str) -> Dict[str, Any]:
        course = self.courses.get_course(course_id)
        if not course:
            raise NotFoundError("Course not found")

        if not course.get("enrollment_enabled"):
            raise BadRequestError("Enrollment is not enabled for this course")

        if self.courses.get_active_enrollment(course_id, user_id):
            raise BadRequestError("Already enrolled in this course")

        max_students = course.get("max_students") or 0
        if max_students > 0 and self.courses.active_enrollment_count(course_id) >= max_students:
            raise BadRequestError("Course is full")

        enrollment = first_row(self.db.table("enrollments").insert({
            "user_id": user_id,
            "course_id": course_id,
            "status": "active",
            "progress": 0,
            "enrolled_at": datetime.now(timezone.utc).isoformat(),
        }).execute())

        if not enrollment:
            raise AppError("Failed to create enrollment")

        logger.info(f"User {user_id} enrolled in course {course_id}")
        return enrollment

    def unenroll(self, user_id: str, course_id: str) -> None:
        enrollment = self.courses.get_active_enrollment(course_id, user_id)
        if not enrollment:
            raise NotFoundError("Not enrolled in this course")

        self.db.table("enrollments").update({"status": "unenrolled"}).eq("id", enrollment["id"]).execute()
        logger.info(f"User {user_id} unenrolled from course {course_id}")

    def my_enrollments(self, user_id: str) -> List[Dict[str, Any]]:
        """Active enrolments, newest first, with course summary and category"""
        enrollments = self.db.table("enrollments").select("*").eq("user_id", user_id).eq(
            "status", "active"
        ).order("enrolled_at", desc=True).execute().data or []

        if not enrollments:
            return []

        courses = self.db.table("courses").select(
            "id, full_name, short_name, code, summary, thumbnail_image, category_id"
        ).in_("id", [row["course_id"] for row in enrollments]).execute().data or []
        courses_by_id = {course["id"]: course for course in self.courses.with_summary(courses)}

        for enrollment in enrollments:
            enrollment["course"] = courses_by_id.get(enrollment["course_id"])

        return enrollments

    def get_user_stats(self, user_id: str) -> Dict[str, int]:
        enrollments = self.db.table("enrollments").select("status").eq("user_id", user_id).execute().data or []
        teaching = self.db.table("course_teachers").select("id", count="exact").eq("user_id", user_id).execute()

        return {
            "enrolled_courses": sum(1 for row in enrollments if row["status"] == "active"),
            "completed_courses": sum(1 for row in enrollments if row["status"] == "completed"),
            "teaching_courses": teaching.count if teaching.count is not None else len(teaching.data or []),
        }
