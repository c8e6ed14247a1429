from fastapi import APIRouter, HTTPException, status, Depends
from datetime import datetime, timezone
import logging
from lms.schemas.auth import (
    RegisterRequest, LoginRequest, TokenResponse, RegisterResponse,
    RefreshTokenRequest, MessageResponse, UserRole
)
from lms.schemas.user import UserResponse, full_name, to_user_response
from lms.core.security import (
    verify_password, get_password_hash,
    create_access_token, create_refresh_token,
    decode_token
)
from lms.core.supabase_client import get_db, first_row
from lms.dependencies import get_current_user

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_response(user: dict) -> TokenResponse:
    access_token = create_access_token({"sub": user["id"], "role": user["role"]})
    refresh_token = create_refresh_token({"sub": user["id"]})

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user={
            "id": user["id"],
            "username": user["username"],
            "email": user["email"],
            "full_name": full_name(user),
            "role": user["role"]
        }
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: RegisterRequest, db=Depends(get_db)):
    """Register a new student account"""
    try:
        # Check if user already exists
        existing = db.table("users").select("id").eq("username", user_data.username).execute()
        if existing.data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already taken"
            )

        existing = db.table("users").select("id").eq("email", user_data.email).execute()
        if existing.data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        now = datetime.now(timezone.utc).isoformat()
        user_profile = {
            "username": user_data.username,
            "email": user_data.email,
            "password_hash": get_password_hash(user_data.password),
            "first_name": user_data.first_name,
            "last_name": user_data.last_name,
            "phone": user_data.phone,
            "city": user_data.city,
            "country": user_data.country,
            "language": "en",
            "role": UserRole.STUDENT.value,
            "is_active": True,
            "email_verified": False,
            "created_at": now,
            "updated_at": now
        }

        user = first_row(db.table("users").insert(user_profile).execute())
        if not user:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create user"
            )

        logger.info(f"Registered user {user['username']}")

        return RegisterResponse(
            message="User registered successfully",
            user={
                "id": user["id"],
                "username": user["username"],
                "email": user["email"],
                "full_name": full_name(user)
            }
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Registration failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Registration failed: {str(e)}"
        )


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db=Depends(get_db)):
    """Login with username or email and password"""
    try:
        # Usernames may contain "@", so try both columns
        user = None
        for field in ("username", "email"):
            user = first_row(
                db.table("users").select("*").eq(field, credentials.login).eq("is_active", True).limit(1).execute()
            )
            if user:
                break

        if not user or not verify_password(credentials.password, user.get("password_hash") or ""):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials"
            )

        db.table("users").update({
            "last_login": datetime.now(timezone.utc).isoformat()
        }).eq("id", user["id"]).execute()

        return _token_response(user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Login failed: {str(e)}"
        )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(token_data: RefreshTokenRequest, db=Depends(get_db)):
    """Refresh access token using refresh token"""
    payload = decode_token(token_data.refresh_token)

    if not payload or payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
        )

    try:
        user = first_row(db.table("users").select("*").eq("id", payload.get("sub")).limit(1).execute())

        if not user or not user.get("is_active"):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )

        return _token_response(user)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Token refresh failed: {str(e)}"
        )


@router.post("/logout", response_model=MessageResponse)
async def logout(current_user: dict = Depends(get_current_user)):
    """Logout current user (tokens are stateless; the client drops them)"""
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: dict = Depends(get_current_user)):
    """Get current user information"""
    return to_user_response(current_user)
