"""
Like router: toggles per subject kind and the viewer's liked videos.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.responses import api_response
from services.likes import list_liked_videos_service, toggle_like_service

router = APIRouter()


@router.post("/toggle/v/{video_id}")
async def toggle_video_like(
    video_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    result = await toggle_like_service(db=db, auth_user_id=auth.user_id, subject="video", subject_id=video_id)
    return api_response(result, "Video like toggled successfully")


@router.post("/toggle/c/{comment_id}")
async def toggle_comment_like(
    comment_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    result = await toggle_like_service(db=db, auth_user_id=auth.user_id, subject="comment", subject_id=comment_id)
    return api_response(result, "Comment like toggled successfully")


@router.post("/toggle/t/{tweet_id}")
async def toggle_tweet_like(
    tweet_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    result = await toggle_like_service(db=db, auth_user_id=auth.user_id, subject="tweet", subject_id=tweet_id)
    return api_response(result, "Tweet like toggled successfully")


@router.get("/videos")
async def list_liked_videos(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    videos = await list_liked_videos_service(db=db, auth_user_id=auth.user_id)
    return api_response(videos, "Liked videos fetched successfully")
