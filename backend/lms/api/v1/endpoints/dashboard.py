from fastapi import APIRouter, HTTPException, status, Depends
from lms.schemas.dashboard import DashboardResponse
from lms.schemas.user import full_name
from lms.dependencies import get_current_user
from lms.core.supabase_client import get_db
from lms.services.enrollment_service import EnrollmentService

router = APIRouter()


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """Summary statistics for the current user"""
    try:
        return {
            "user": {
                "id": current_user["id"],
                "full_name": full_name(current_user),
                "email": current_user["email"]
            },
            "stats": EnrollmentService(db).get_user_stats(current_user["id"])
        }

    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load dashboard: {str(e)}"
        )
