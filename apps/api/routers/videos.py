"""
Video router: public feed, detail, and owner-only publishing operations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_optional_auth_context, viewer_id_of
from routers.responses import api_response
from services.asset_host import LocalAssetHost, get_asset_host
from services.pagination import parse_page_params
from services.uploads import discard_staged, stage_upload
from services.videos import (
    delete_video_service,
    get_video_detail_service,
    list_videos_service,
    publish_video_service,
    toggle_publish_status_service,
    update_video_service,
)

router = APIRouter()


@router.get("/")
async def list_videos(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    query: Optional[str] = Query(default=None),
    sort_by: Optional[str] = Query(default=None),
    sort_type: Optional[str] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    """Paginated feed of published videos with optional search and owner filter."""
    params = parse_page_params(page, limit)
    videos = await list_videos_service(
        db=db,
        params=params,
        query=query,
        user_id=user_id,
        sort_by=sort_by,
        sort_type=sort_type,
    )
    return api_response(videos, "Videos fetched successfully")


@router.post("/")
async def publish_video(
    title: str = Form(default=""),
    description: str = Form(default=""),
    video_file: Optional[UploadFile] = File(default=None),
    thumbnail: Optional[UploadFile] = File(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    asset_host: LocalAssetHost = Depends(get_asset_host),
):
    video_path = None
    thumbnail_path = None
    try:
        video_path = await stage_upload(video_file, "video", "video_file")
        thumbnail_path = await stage_upload(thumbnail, "image", "thumbnail")
        video = await publish_video_service(
            db=db,
            asset_host=asset_host,
            owner_id=auth.user_id,
            title=title,
            description=description,
            video_path=video_path,
            thumbnail_path=thumbnail_path,
        )
    finally:
        discard_staged(video_path, thumbnail_path)
    return api_response(video, "Video uploaded successfully", status_code=201)


@router.get("/{video_id}")
async def get_video(
    video_id: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    video = await get_video_detail_service(db=db, video_id=video_id, viewer_id=viewer_id_of(auth))
    return api_response(video, "Video fetched successfully")


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    thumbnail: Optional[UploadFile] = File(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    asset_host: LocalAssetHost = Depends(get_asset_host),
):
    thumbnail_path = None
    try:
        if thumbnail is not None and (thumbnail.filename or "").strip():
            thumbnail_path = await stage_upload(thumbnail, "image", "thumbnail")
        video = await update_video_service(
            db=db,
            asset_host=asset_host,
            auth_user_id=auth.user_id,
            video_id=video_id,
            title=title,
            description=description,
            thumbnail_path=thumbnail_path,
        )
    finally:
        discard_staged(thumbnail_path)
    return api_response(video, "Video updated successfully")


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    asset_host: LocalAssetHost = Depends(get_asset_host),
):
    await delete_video_service(db=db, asset_host=asset_host, auth_user_id=auth.user_id, video_id=video_id)
    return api_response({}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
async def toggle_publish_status(
    video_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    video = await toggle_publish_status_service(db=db, auth_user_id=auth.user_id, video_id=video_id)
    return api_response(video, "Publish status toggled successfully")
