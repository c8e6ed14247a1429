from fastapi import APIRouter, HTTPException, status, Depends, Query, Response
from typing import List, Optional
import logging
from lms.schemas.course import (
    ActivityCreate, ActivityResponse, ActivityUpdate,
    ActivityDetailResponse, ActivityListResponse, ActivitySearchResult,
    CompletionUpdate, CompletionResponse, GradesUpdate
)
from lms.dependencies import get_current_user, get_optional_user, get_plugin_manager
from lms.core.plugin.manager import PluginManager
from lms.core.supabase_client import get_db
from lms.services.activity_service import ActivityService
from lms.services.course_service import CourseService
from lms.utils.exceptions import AppError

router = APIRouter()
logger = logging.getLogger(__name__)


def _course_or_404(service: CourseService, course_id: str) -> dict:
    course = service.get_course(course_id)
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found"
        )
    return course


def _require_manager(service: CourseService, course_id: str, user: dict, action: str) -> None:
    if not service.can_manage(course_id, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to {action} activities in this course"
        )


@router.get("/{course_id}/activities", response_model=ActivityListResponse)
async def list_activities(
    course_id: str,
    current_user: Optional[dict] = Depends(get_optional_user),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    """Activities of a course; hidden ones only for its teachers and admins"""
    try:
        courses = CourseService(db)
        _course_or_404(courses, course_id)
        include_hidden = bool(current_user) and courses.can_manage(course_id, current_user)

        return {"activities": ActivityService(db, plugins).list_activities(course_id, include_hidden)}

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch activities: {str(e)}"
        )


@router.post("/{course_id}/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def add_activity(
    course_id: str,
    activity: ActivityCreate,
    current_user: dict = Depends(get_current_user),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    """Add an activity module instance (quiz, ...) to a course"""
    try:
        courses = CourseService(db)
        _course_or_404(courses, course_id)
        _require_manager(courses, course_id, current_user, "add")

        return ActivityService(db, plugins).create_activity(
            course_id, activity.module, activity.name, activity.section_id, activity.settings
        )

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to add activity: {str(e)}"
        )


@router.get("/{course_id}/activities/search", response_model=List[ActivitySearchResult])
async def search_activities(
    course_id: str,
    q: str = Query(..., min_length=1, max_length=255),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    """Search the activities of every enabled module in a course"""
    try:
        _course_or_404(CourseService(db), course_id)
        return ActivityService(db, plugins).search(course_id, q)

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to search activities: {str(e)}"
        )


@router.get("/{course_id}/activities/{activity_id}", response_model=ActivityDetailResponse)
async def get_activity(
    course_id: str,
    activity_id: str,
    current_user: Optional[dict] = Depends(get_optional_user),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    try:
        courses = CourseService(db)
        _course_or_404(courses, course_id)
        include_hidden = bool(current_user) and courses.can_manage(course_id, current_user)

        service = ActivityService(db, plugins)
        return service.describe(service.get_activity(course_id, activity_id, include_hidden))

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch activity: {str(e)}"
        )


@router.put("/{course_id}/activities/{activity_id}", response_model=ActivityDetailResponse)
async def update_activity(
    course_id: str,
    activity_id: str,
    update: ActivityUpdate,
    current_user: dict = Depends(get_current_user),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    """Update the module instance and the activity's section or visibility"""
    try:
        courses = CourseService(db)
        _course_or_404(courses, course_id)
        _require_manager(courses, course_id, current_user, "update")

        service = ActivityService(db, plugins)
        activity = service.get_activity(course_id, activity_id, include_hidden=True)
        return service.update_activity(activity, update.model_dump(exclude_unset=True))

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update activity: {str(e)}"
        )


@router.delete("/{course_id}/activities/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(
    course_id: str,
    activity_id: str,
    current_user: dict = Depends(get_current_user),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    """Delete an activity together with its module instance"""
    try:
        courses = CourseService(db)
        _course_or_404(courses, course_id)
        _require_manager(courses, course_id, current_user, "delete")

        service = ActivityService(db, plugins)
        service.delete_activity(service.get_activity(course_id, activity_id, include_hidden=True))
        logger.info(f"Activity {activity_id} deleted by {current_user['id']}")

        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete activity: {str(e)}"
        )


@router.get("/{course_id}/activities/{activity_id}/completion", response_model=CompletionResponse)
async def get_completion(
    course_id: str,
    activity_id: str,
    current_user: dict = Depends(get_current_user),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    """Completion status of an activity for the current user"""
    try:
        service = ActivityService(db, plugins)
        activity = service.get_activity(course_id, activity_id)
        return service.get_completion(activity, current_user["id"])

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch completion: {str(e)}"
        )


@router.post("/{course_id}/activities/{activity_id}/completion", response_model=CompletionResponse)
async def update_completion(
    course_id: str,
    activity_id: str,
    completion: CompletionUpdate,
    current_user: dict = Depends(get_current_user),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    """Record completion of an activity by an enrolled user"""
    try:
        courses = CourseService(db)
        if not courses.get_active_enrollment(course_id, current_user["id"]):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enrolled in this course"
            )

        service = ActivityService(db, plugins)
        activity = service.get_activity(course_id, activity_id)
        return service.update_completion(activity, current_user["id"], completion.completion_state)

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update completion: {str(e)}"
        )


@router.put("/{course_id}/activities/{activity_id}/grades")
async def update_grades(
    course_id: str,
    activity_id: str,
    update: GradesUpdate,
    current_user: dict = Depends(get_current_user),
    plugins: PluginManager = Depends(get_plugin_manager),
    db=Depends(get_db)
):
    """Store user grades for a graded activity"""
    try:
        courses = CourseService(db)
        _course_or_404(courses, course_id)
        _require_manager(courses, course_id, current_user, "grade")

        service = ActivityService(db, plugins)
        activity = service.get_activity(course_id, activity_id, include_hidden=True)
        return {"grading": service.update_grades(activity, update.grades)}

    except (HTTPException, AppError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update grades: {str(e)}"
        )
