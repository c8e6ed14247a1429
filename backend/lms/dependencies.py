from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from lms.core.block.manager import BlockManager
from lms.core.localization.i18n_manager import I18nManager, i18n_manager
from lms.core.plugin.manager import PluginManager, plugin_manager
from lms.core.security import decode_token
from lms.core.supabase_client import get_db, first_row
from lms.schemas.auth import UserRole

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _user_from_token(token: str, db) -> dict:
    payload = decode_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    # Fetch user from database
    try:
        user = first_row(db.table("users").select("*").eq("id", user_id).limit(1).execute())
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database error: {str(e)}"
        )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.get("is_active"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db=Depends(get_db),
) -> dict:
    """Get current authenticated user from JWT token"""
    return _user_from_token(credentials.credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db=Depends(get_db),
) -> Optional[dict]:
    """Authenticated user when a bearer token is sent, otherwise None"""
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, db)


async def get_locale_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db=Depends(get_db),
) -> Optional[dict]:
    """User for locale resolution; a token that fails authentication counts as anonymous"""
    if credentials is None:
        return None
    try:
        return _user_from_token(credentials.credentials, db)
    except HTTPException as e:
        if e.status_code not in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            raise
        return None


async def get_current_teacher(
    current_user: dict = Depends(get_current_user)
) -> dict:
    """Require teacher or admin role"""
    if current_user.get("role") not in [UserRole.TEACHER.value, UserRole.ADMIN.value]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher access required"
        )
    return current_user


async def get_current_admin(
    current_user: dict = Depends(get_current_user)
) -> dict:
    """Require admin role"""
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def get_pagination_params(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict:
    """Get pagination parameters"""
    return {
        "page": page,
        "limit": limit,
        "offset": (page - 1) * limit,
    }


def get_i18n() -> I18nManager:
    return i18n_manager


def get_plugin_manager() -> PluginManager:
    return plugin_manager


def get_block_manager(
    db=Depends(get_db),
    plugins: PluginManager = Depends(get_plugin_manager),
) -> BlockManager:
    return BlockManager(db, plugins)


async def get_locale(
    request: Request,
    lang: Optional[str] = Query(None, max_length=10),
    user: Optional[dict] = Depends(get_locale_user),
    i18n: I18nManager = Depends(get_i18n),
) -> str:
    """
    Resolve the locale for this request.

    Order: ``?lang=``, the Accept-Language header, the user's language,
    then the default locale. The shared manager's current locale is not
    touched.
    """
    return i18n.match_locale([
        lang,
        request.headers.get("accept-language"),
        user.get("language") if user else None,
    ])
