"""
Channel dashboard router for the authenticated owner.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.responses import api_response
from services.dashboard import get_channel_stats_service, get_channel_videos_service

router = APIRouter()


@router.get("/stats")
async def get_channel_stats(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    stats = await get_channel_stats_service(db=db, auth_user_id=auth.user_id)
    return api_response(stats, "Channel stats fetched successfully")


@router.get("/videos")
async def get_channel_videos(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    videos = await get_channel_videos_service(db=db, auth_user_id=auth.user_id)
    return api_response(videos, "Channel videos fetched successfully")
