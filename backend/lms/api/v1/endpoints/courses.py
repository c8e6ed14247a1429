from fastapi import APIRouter, HTTPException, status, Depends, Query, Response
from datetime import datetime, timezone
from typing import Optional
import logging
from lms.schemas.course import (
    CourseCreate, CourseUpdate, CourseResponse,
    CourseDetailResponse, CourseListResponse
)
from lms.dependencies import (
    get_current_user, get_current_teacher, get_optional_user,
    get_pagination_params
)
from lms.core.supabase_client import get_db, first_row, ilike_any
from lms.services.course_service import CourseService

router = APIRouter()
logger = logging.getLogger(__name__)

SEARCH_COLUMNS = ("full_name", "short_name", "description")


@router.get("/", response_model=CourseListResponse)
async def list_courses(
    pagination: dict = Depends(get_pagination_params),
    category: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=255),
    db=Depends(get_db)
):
    """List visible courses with pagination and filters"""
    try:
        query = db.table("courses").select("*", count="exact").eq("is_visible", True)

        # Apply filters
        if category:
            query = query.eq("category_id", category)

        if search:
            query = query.or_(ilike_any(SEARCH_COLUMNS, search))

        # Apply pagination
        offset = pagination["offset"]
        query = query.order("created_at", desc=True).range(offset, offset + pagination["limit"] - 1)

        result = query.execute()
        courses = CourseService(db).with_summary(result.data or [])

        return {
            "courses": courses,
            "pagination": {
                "page": pagination["page"],
                "limit": pagination["limit"],
                "total": result.count if result.count is not None else len(courses)
            }
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch courses: {str(e)}"
        )


@router.get("/{course_id}", response_model=CourseDetailResponse)
async def get_course(
    course_id: str,
    current_user: Optional[dict] = Depends(get_optional_user),
    db=Depends(get_db)
):
    """Get course details with teachers and sections"""
    try:
        service = CourseService(db)
        course = service.get_course(course_id)

        if not course:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Course not found"
            )

        is_teacher = bool(current_user) and service.is_teacher(course_id, current_user["id"])
        is_admin = bool(current_user) and current_user.get("role") == "admin"

        # Hidden courses are only shown to their teachers and admins
        if not course.get("is_visible") and not (is_teacher or is_admin):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Course not found"
            )

        course = service.with_summary([course])[0]
        course["teachers"] = service.get_teachers(course_id)
        course["sections"] = service.get_sections(course_id)
        course["is_teacher"] = is_teacher
        course["is_enrolled"] = bool(current_user) and service.get_active_enrollment(
            course_id, current_user["id"]
        ) is not None

        return course

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch course: {str(e)}"
        )


@router.post("/", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    course_data: CourseCreate,
    current_user: dict = Depends(get_current_teacher),
    db=Depends(get_db)
):
    """Create a new course (Teacher/Admin only)"""
    try:
        service = CourseService(db)

        if service.code_exists(course_data.code):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Course code already exists"
            )

        if not service.get_category(course_data.category_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found"
            )

        now = datetime.now(timezone.utc).isoformat()
        course_dict = course_data.model_dump(mode="json")
        course_dict.update({
            "created_by": current_user["id"],
            "created_at": now,
            "updated_at": now
        })

        course = first_row(db.table("courses").insert(course_dict).execute())
        if not course:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create course"
            )

        # The creator manages the course
        db.table("course_teachers").insert({
            "course_id": course["id"],
            "user_id": current_user["id"],
            "role": "manager"
        }).execute()

        logger.info(f"Course {course['code']} created by {current_user['id']}")

        return service.with_summary([course])[0]

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create course: {str(e)}"
        )


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: str,
    course_data: CourseUpdate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """Update course (course teachers or Admin)"""
    try:
        service = CourseService(db)
        course = service.get_course(course_id)

        if not course:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Course not found"
            )

        if not service.can_manage(course_id, current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to update this course"
            )

        update_data = course_data.model_dump(mode="json", exclude_unset=True)

        if "category_id" in update_data and not service.get_category(update_data["category_id"]):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found"
            )

        start = _parse_datetime(course_data.start_date or course.get("start_date"))
        end = _parse_datetime(course_data.end_date or course.get("end_date"))
        if start and end and end <= start:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="The end date must be after the start date"
            )

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = db.table("courses").update(update_data).eq("id", course_id).execute()

        return service.with_summary([first_row(result) or {**course, **update_data}])[0]

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update course: {str(e)}"
        )


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: str,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """Delete course (course managers or Admin)"""
    try:
        service = CourseService(db)

        if not service.get_course(course_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Course not found"
            )

        if current_user.get("role") != "admin" and service.teacher_role(course_id, current_user["id"]) != "manager":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to delete this course"
            )

        db.table("courses").delete().eq("id", course_id).execute()
        logger.info(f"Course {course_id} deleted by {current_user['id']}")

        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete course: {str(e)}"
        )




def _parse_datetime(value) -> Optional[datetime]:
    if not value:
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
