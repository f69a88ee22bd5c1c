"""Account, session and channel-profile services."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.user import User
from services.asset_host import LocalAssetHost, delete_assets_quietly
from services.crypto import decrypt_token, encrypt_token
from services.errors import ConflictError, InvalidArgumentError, NotFoundError, UnauthorizedError
from services.identity import (
    ensure_email,
    ensure_username,
    normalize_email,
    normalize_text,
    normalize_username,
    require_text,
)
from services.passwords import hash_password, verify_password
from services.projections import ChannelProfile, UserRecord, VideoFeedItem
from services.queries import channel_profile_statement, fetch_all, fetch_one, watch_history_statement
from services.session_token import REFRESH_TOKEN_TYPE, create_access_token, create_refresh_token, decode_token

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _ensure_password(value: Any, field: str = "password") -> str:
    password = str(value or "")
    if not password.strip():
        raise InvalidArgumentError(f"{field} is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidArgumentError(f"{field} must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def ensure_user_exists(db: AsyncSession, user_id: str, message: str = "User not found") -> None:
    result = await db.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError(message)


async def _issue_session(db: AsyncSession, user: User) -> Dict[str, Any]:
    access = create_access_token(user.id, user.email, user.username)
    refresh = create_refresh_token(user.id)
    user.refresh_token_encrypted = encrypt_token(refresh["token"])
    await db.commit()
    await db.refresh(user)
    return {
        "user": UserRecord.model_validate(user),
        "access_token": access["token"],
        "access_token_expires_at": access["expires_at"],
        "refresh_token": refresh["token"],
        "refresh_token_expires_at": refresh["expires_at"],
    }


async def register_user_service(
    *,
    db: AsyncSession,
    asset_host: LocalAssetHost,
    username: Any,
    email: Any,
    full_name: Any,
    password: Any,
    avatar_path: Optional[Path],
    cover_image_path: Optional[Path] = None,
) -> UserRecord:
    clean_username = ensure_username(username)
    clean_email = ensure_email(email)
    clean_full_name = require_text(full_name, "full_name")
    clean_password = _ensure_password(password)

    existing = await db.execute(
        select(User.id).where(or_(User.username == clean_username, User.email == clean_email))
    )
    if existing.first() is not None:
        raise ConflictError("User with email or username already exists")
    if avatar_path is None:
        raise InvalidArgumentError("avatar file is required")

    avatar = await asset_host.upload(str(avatar_path), "image")
    cover = await asset_host.upload(str(cover_image_path), "image") if cover_image_path else None

    user = User(
        username=clean_username,
        email=clean_email,
        full_name=clean_full_name,
        password_hash=hash_password(clean_password),
        avatar_url=avatar.url,
        avatar_asset_id=avatar.asset_id,
        cover_image_url=cover.url if cover else None,
        cover_image_asset_id=cover.asset_id if cover else None,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        await delete_assets_quietly(
            asset_host,
            (avatar.asset_id, "image"),
            (cover.asset_id if cover else None, "image"),
        )
        raise ConflictError("User with email or username already exists") from exc

    logger.info("user_registered user=%s username=%s", user.id, user.username)
    return UserRecord.model_validate(user)


async def login_user_service(
    *,
    db: AsyncSession,
    username: Any = None,
    email: Any = None,
    password: Any = None,
) -> Dict[str, Any]:
    clean_username = normalize_username(username)
    clean_email = normalize_email(email)
    if not clean_username and not clean_email:
        raise InvalidArgumentError("username or email is required")
    if not str(password or ""):
        raise InvalidArgumentError("password is required")

    criteria = []
    if clean_username:
        criteria.append(User.username == clean_username)
    if clean_email:
        criteria.append(User.email == clean_email)
    result = await db.execute(select(User).where(or_(*criteria)).limit(1))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User does not exist")
    if not verify_password(str(password), user.password_hash):
        raise UnauthorizedError("Invalid user credentials")

    session = await _issue_session(db, user)
    logger.info("user_logged_in user=%s", user.id)
    return session


async def logout_user_service(*, db: AsyncSession, user_id: str) -> None:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        return
    user.refresh_token_encrypted = None
    await db.commit()
    logger.info("user_logged_out user=%s", user_id)


async def refresh_session_service(*, db: AsyncSession, refresh_token: Optional[str]) -> Dict[str, Any]:
    token = normalize_text(refresh_token)
    if not token:
        raise UnauthorizedError("Unauthorized request")
    try:
        payload = decode_token(token, REFRESH_TOKEN_TYPE)
    except ValueError as exc:
        raise UnauthorizedError(str(exc)) from exc

    result = await db.execute(select(User).where(User.id == str(payload.get("sub"))))
    user = result.scalar_one_or_none()
    if not user:
        raise UnauthorizedError("Invalid refresh token")

    stored = decrypt_token(user.refresh_token_encrypted) if user.refresh_token_encrypted else None
    if stored != token:
        raise UnauthorizedError("Refresh token is expired or used")

    return await _issue_session(db, user)


async def change_password_service(
    *,
    db: AsyncSession,
    user_id: str,
    old_password: Any,
    new_password: Any,
) -> None:
    user = await get_user_or_404(db, user_id)
    if not verify_password(str(old_password or ""), user.password_hash):
        raise InvalidArgumentError("Invalid old password")
    user.password_hash = hash_password(_ensure_password(new_password, "new_password"))
    await db.commit()
    logger.info("user_password_changed user=%s", user_id)


async def update_account_service(
    *,
    db: AsyncSession,
    user_id: str,
    full_name: Any = None,
    email: Any = None,
) -> UserRecord:
    clean_full_name = normalize_text(full_name)
    has_email = bool(normalize_text(email))
    if not clean_full_name and not has_email:
        raise InvalidArgumentError("full_name or email is required")

    user = await get_user_or_404(db, user_id)
    if has_email:
        clean_email = ensure_email(email)
        if clean_email != user.email:
            taken = await db.execute(select(User.id).where(User.email == clean_email, User.id != user_id))
            if taken.first() is not None:
                raise ConflictError("Email is already in use")
            user.email = clean_email
    if clean_full_name:
        user.full_name = clean_full_name

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("Email is already in use") from exc
    await db.refresh(user)
    return UserRecord.model_validate(user)


async def replace_user_image_service(
    *,
    db: AsyncSession,
    asset_host: LocalAssetHost,
    user_id: str,
    image_path: Path,
    field: str,
) -> UserRecord:
    """Swap the avatar or cover image; the previous asset is deleted after commit."""
    if field not in ("avatar", "cover_image"):
        raise ValueError(f"Unsupported image field: {field}")
    user = await get_user_or_404(db, user_id)
    previous_asset_id = getattr(user, f"{field}_asset_id")

    image = await asset_host.upload(str(image_path), "image")
    setattr(user, f"{field}_url", image.url)
    setattr(user, f"{field}_asset_id", image.asset_id)
    await db.commit()
    await db.refresh(user)

    if previous_asset_id:
        await delete_assets_quietly(asset_host, (previous_asset_id, "image"))
    logger.info("user_image_updated user=%s field=%s", user_id, field)
    return UserRecord.model_validate(user)


async def get_channel_profile_service(
    *,
    db: AsyncSession,
    username: Any,
    viewer_id: Optional[str],
) -> ChannelProfile:
    clean_username = normalize_username(username)
    if not clean_username:
        raise InvalidArgumentError("username is missing")
    profile = await fetch_one(db, channel_profile_statement(clean_username, viewer_id), ChannelProfile)
    if profile is None:
        raise NotFoundError("channel does not exist")
    return profile


async def get_watch_history_service(*, db: AsyncSession, user_id: str) -> List[VideoFeedItem]:
    return await fetch_all(db, watch_history_statement(user_id), VideoFeedItem)
