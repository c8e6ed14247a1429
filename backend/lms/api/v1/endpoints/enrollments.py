from fastapi import APIRouter, HTTPException, status, Depends
from lms.schemas.enrollment import EnrollResponse, MyEnrollmentsResponse
from lms.schemas.auth import MessageResponse
from lms.dependencies import get_current_user
from lms.core.supabase_client import get_db
from lms.services.enrollment_service import EnrollmentService
from lms.utils.exceptions import AppError

router = APIRouter()


@router.post("/courses/{course_id}/enroll", response_model=EnrollResponse)
async def enroll_in_course(
    course_id: str,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """Enroll the current user in a course"""
    try:
        enrollment = EnrollmentService(db).enroll(current_user["id"], course_id)

        return {
            "message": "Successfully enrolled in course",
            "enrollment": {
                "id": enrollment["id"],
                "status": enrollment["status"],
                "enrolled_at": enrollment.get("enrolled_at")
            }
        }

    except AppError:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to enroll: {str(e)}"
        )


@router.delete("/courses/{course_id}/enroll", response_model=MessageResponse)
async def unenroll_from_course(
    course_id: str,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """Unenroll the current user from a course"""
    try:
        EnrollmentService(db).unenroll(current_user["id"], course_id)
        return {"message": "Successfully unenrolled from course"}

    except AppError:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to unenroll: {str(e)}"
        )


@router.get("/my-enrollments", response_model=MyEnrollmentsResponse)
async def get_my_enrollments(
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """Get the current user's active enrollments"""
    try:
        return {"enrollments": EnrollmentService(db).my_enrollments(current_user["id"])}

    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch enrollments: {str(e)}"
        )
