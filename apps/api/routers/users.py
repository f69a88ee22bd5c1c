"""
Account router: registration, sessions, profile media, channel pages and history.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from routers.auth_scope import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    AuthContext,
    get_auth_context,
    get_optional_auth_context,
    viewer_id_of,
)
from routers.responses import api_response
from services.asset_host import LocalAssetHost, get_asset_host
from services.projections import UserRecord
from services.uploads import discard_staged, stage_upload
from services.users import (
    change_password_service,
    get_channel_profile_service,
    get_user_or_404,
    get_watch_history_service,
    login_user_service,
    logout_user_service,
    refresh_session_service,
    register_user_service,
    replace_user_image_service,
    update_account_service,
)

router = APIRouter()


class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class UpdateAccountRequest(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None


def _set_session_cookies(response: JSONResponse, session: Dict[str, Any]) -> None:
    options = {"httponly": True, "secure": bool(settings.SECURE_COOKIES), "samesite": "lax"}
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        session["access_token"],
        max_age=int(settings.ACCESS_TOKEN_EXPIRATION_HOURS) * 3600,
        **options,
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        session["refresh_token"],
        max_age=int(settings.REFRESH_TOKEN_EXPIRATION_DAYS) * 86400,
        **options,
    )


def _session_payload(session: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "user": session["user"],
        "access_token": session["access_token"],
        "refresh_token": session["refresh_token"],
        "access_token_expires_at": session["access_token_expires_at"],
    }


@router.post("/register")
async def register_user(
    username: str = Form(default=""),
    email: str = Form(default=""),
    full_name: str = Form(default=""),
    password: str = Form(default=""),
    avatar: Optional[UploadFile] = File(default=None),
    cover_image: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db),
    asset_host: LocalAssetHost = Depends(get_asset_host),
):
    """Create an account. The avatar is required; the cover image is optional."""
    avatar_path = None
    cover_path = None
    try:
        avatar_path = await stage_upload(avatar, "image", "avatar")
        if cover_image is not None and (cover_image.filename or "").strip():
            cover_path = await stage_upload(cover_image, "image", "cover_image")
        user = await register_user_service(
            db=db,
            asset_host=asset_host,
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_path,
        )
    finally:
        discard_staged(avatar_path, cover_path)
    return api_response(user, "User registered successfully", status_code=201)


@router.post("/login")
async def login_user(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    session = await login_user_service(
        db=db,
        username=request.username,
        email=request.email,
        password=request.password,
    )
    response = api_response(_session_payload(session), "User logged in successfully")
    _set_session_cookies(response, session)
    return response


@router.post("/logout")
async def logout_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await logout_user_service(db=db, user_id=auth.user_id)
    response = api_response({}, "User logged out")
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)
    return response


@router.post("/refresh-token")
async def refresh_access_token(
    http_request: Request,
    request: Optional[RefreshTokenRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """Rotate the session using the refresh token from the cookie or the body."""
    token = http_request.cookies.get(REFRESH_TOKEN_COOKIE) or (request.refresh_token if request else None)
    session = await refresh_session_service(db=db, refresh_token=token)
    response = api_response(_session_payload(session), "Access token refreshed")
    _set_session_cookies(response, session)
    return response


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await change_password_service(
        db=db,
        user_id=auth.user_id,
        old_password=request.old_password,
        new_password=request.new_password,
    )
    return api_response({}, "Password changed successfully")


@router.get("/current-user")
async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_or_404(db, auth.user_id)
    return api_response(UserRecord.model_validate(user), "Current user fetched successfully")


@router.patch("/update-account")
async def update_account(
    request: UpdateAccountRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    user = await update_account_service(
        db=db,
        user_id=auth.user_id,
        full_name=request.full_name,
        email=request.email,
    )
    return api_response(user, "Account details updated successfully")


async def _replace_image(
    upload: Optional[UploadFile],
    field: str,
    auth: AuthContext,
    db: AsyncSession,
    asset_host: LocalAssetHost,
) -> UserRecord:
    staged = None
    try:
        staged = await stage_upload(upload, "image", field)
        return await replace_user_image_service(
            db=db,
            asset_host=asset_host,
            user_id=auth.user_id,
            image_path=staged,
            field=field,
        )
    finally:
        discard_staged(staged)


@router.patch("/avatar")
async def update_avatar(
    avatar: Optional[UploadFile] = File(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    asset_host: LocalAssetHost = Depends(get_asset_host),
):
    user = await _replace_image(avatar, "avatar", auth, db, asset_host)
    return api_response(user, "Avatar updated successfully")


@router.patch("/cover-image")
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    asset_host: LocalAssetHost = Depends(get_asset_host),
):
    user = await _replace_image(cover_image, "cover_image", auth, db, asset_host)
    return api_response(user, "Cover image updated successfully")


@router.get("/c/{username}")
async def get_channel_profile(
    username: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    profile = await get_channel_profile_service(db=db, username=username, viewer_id=viewer_id_of(auth))
    return api_response(profile, "User channel fetched successfully")


@router.get("/history")
async def get_watch_history(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    history = await get_watch_history_service(db=db, user_id=auth.user_id)
    return api_response(history, "Watch history fetched successfully")
