from fastapi import APIRouter, HTTPException, status, Depends
from datetime import datetime, timezone
from lms.schemas.user import UserResponse, ProfileUpdate, to_user_response
from lms.dependencies import get_current_user
from lms.core.supabase_client import get_db, first_row

router = APIRouter()


@router.get("/", response_model=UserResponse)
async def get_profile(current_user: dict = Depends(get_current_user)):
    """Get current user profile"""
    return to_user_response(current_user)


@router.put("/", response_model=UserResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """Update current user profile"""
    try:
        update_dict = profile_data.model_dump(exclude_unset=True)

        if not update_dict:
            return to_user_response(current_user)

        update_dict["updated_at"] = datetime.now(timezone.utc).isoformat()

        result = db.table("users").update(update_dict).eq("id", current_user["id"]).execute()

        return to_user_response(first_row(result) or {**current_user, **update_dict})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update profile: {str(e)}"
        )
