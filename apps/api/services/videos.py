"""Video publishing, feed and detail services."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.comment import Comment
from models.like import Like
from models.playlist import PlaylistVideo
from models.video import Video
from models.watch_history import WatchHistoryEntry
from services.asset_host import LocalAssetHost, delete_assets_quietly
from services.errors import InvalidArgumentError, NotFoundError
from services.identity import (
    ensure_entity_id,
    ensure_optional_entity_id,
    ensure_owner,
    normalize_text,
    require_text,
)
from services.pagination import Page, PageParams, paginate
from services.projections import VideoDetail, VideoFeedItem, VideoRecord
from services.queries import fetch_one, video_detail_statement, video_feed_statement

logger = logging.getLogger(__name__)


async def get_video_or_404(db: AsyncSession, video_id: Any) -> Video:
    clean_id = ensure_entity_id(video_id, "video_id")
    result = await db.execute(select(Video).where(Video.id == clean_id))
    video = result.scalar_one_or_none()
    if not video:
        raise NotFoundError("Video not found")
    return video


async def list_videos_service(
    *,
    db: AsyncSession,
    params: PageParams,
    query: Optional[str] = None,
    user_id: Any = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
) -> Page[VideoFeedItem]:
    owner_id = ensure_optional_entity_id(user_id, "user_id")
    statement = video_feed_statement(
        search=normalize_text(query) or None,
        owner_id=owner_id,
        sort_by=sort_by,
        sort_type=sort_type,
    )
    return await paginate(db, statement, params, VideoFeedItem)


async def publish_video_service(
    *,
    db: AsyncSession,
    asset_host: LocalAssetHost,
    owner_id: str,
    title: Any,
    description: Any,
    video_path: Path,
    thumbnail_path: Path,
) -> VideoRecord:
    """Upload both binaries and store the video unpublished."""
    clean_title = require_text(title, "title")
    clean_description = require_text(description, "description")

    video_asset = await asset_host.upload(str(video_path), "video")
    try:
        thumbnail_asset = await asset_host.upload(str(thumbnail_path), "image")
    except Exception:
        await delete_assets_quietly(asset_host, (video_asset.asset_id, "video"))
        raise

    video = Video(
        owner_id=owner_id,
        title=clean_title,
        description=clean_description,
        video_file_url=video_asset.url,
        video_file_asset_id=video_asset.asset_id,
        thumbnail_url=thumbnail_asset.url,
        thumbnail_asset_id=thumbnail_asset.asset_id,
        duration=float(video_asset.duration or 0.0),
        views=0,
        is_published=False,
    )
    db.add(video)
    await db.commit()
    logger.info("video_published owner=%s video=%s duration=%s", owner_id, video.id, video.duration)
    return VideoRecord.model_validate(video)


async def _record_watch(db: AsyncSession, viewer_id: str, video_id: str) -> None:
    existing = await db.execute(
        select(WatchHistoryEntry.id).where(
            WatchHistoryEntry.user_id == viewer_id,
            WatchHistoryEntry.video_id == video_id,
        )
    )
    if existing.first() is not None:
        return
    db.add(WatchHistoryEntry(user_id=viewer_id, video_id=video_id))
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent fetch by the same viewer inserted the entry first.
        await db.rollback()


async def get_video_detail_service(
    *,
    db: AsyncSession,
    video_id: Any,
    viewer_id: Optional[str],
) -> VideoDetail:
    """Load a video for display, counting the view and recording watch history."""
    clean_id = ensure_entity_id(video_id, "video_id")
    probe = await db.execute(select(Video.owner_id, Video.is_published).where(Video.id == clean_id))
    row = probe.first()
    if row is None or (not row.is_published and row.owner_id != viewer_id):
        raise NotFoundError("Video not found")

    await db.execute(
        update(Video)
        .where(Video.id == clean_id)
        .values(views=Video.views + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    if viewer_id:
        await _record_watch(db, viewer_id, clean_id)

    detail = await fetch_one(db, video_detail_statement(clean_id, viewer_id), VideoDetail)
    if detail is None:
        raise NotFoundError("Video not found")
    return detail


async def update_video_service(
    *,
    db: AsyncSession,
    asset_host: LocalAssetHost,
    auth_user_id: str,
    video_id: Any,
    title: Any = None,
    description: Any = None,
    thumbnail_path: Optional[Path] = None,
) -> VideoRecord:
    clean_title = normalize_text(title)
    clean_description = normalize_text(description)
    if not clean_title and not clean_description and thumbnail_path is None:
        raise InvalidArgumentError("Provide title, description or thumbnail to update")

    video = await get_video_or_404(db, video_id)
    ensure_owner(auth_user_id, video.owner_id, "update this video")

    previous_thumbnail = None
    if thumbnail_path is not None:
        thumbnail = await asset_host.upload(str(thumbnail_path), "image")
        previous_thumbnail = video.thumbnail_asset_id
        video.thumbnail_url = thumbnail.url
        video.thumbnail_asset_id = thumbnail.asset_id
    if clean_title:
        video.title = clean_title
    if clean_description:
        video.description = clean_description

    await db.commit()
    await db.refresh(video)
    if previous_thumbnail:
        await delete_assets_quietly(asset_host, (previous_thumbnail, "image"))
    logger.info("video_updated owner=%s video=%s", auth_user_id, video.id)
    return VideoRecord.model_validate(video)


async def delete_video_service(
    *,
    db: AsyncSession,
    asset_host: LocalAssetHost,
    auth_user_id: str,
    video_id: Any,
) -> None:
    """Delete a video with its comments, likes, memberships and history, then its assets."""
    video = await get_video_or_404(db, video_id)
    ensure_owner(auth_user_id, video.owner_id, "delete this video")
    assets = ((video.video_file_asset_id, "video"), (video.thumbnail_asset_id, "image"))
    deleted_id = video.id

    comment_ids = select(Comment.id).where(Comment.video_id == video.id)
    await db.execute(
        delete(Like)
        .where(or_(Like.video_id == video.id, Like.comment_id.in_(comment_ids)))
        .execution_options(synchronize_session=False)
    )
    await db.execute(delete(Comment).where(Comment.video_id == video.id).execution_options(synchronize_session=False))
    await db.execute(
        delete(PlaylistVideo).where(PlaylistVideo.video_id == video.id).execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(WatchHistoryEntry)
        .where(WatchHistoryEntry.video_id == video.id)
        .execution_options(synchronize_session=False)
    )
    await db.delete(video)
    await db.commit()

    await delete_assets_quietly(asset_host, *assets)
    logger.info("video_deleted owner=%s video=%s", auth_user_id, deleted_id)


async def toggle_publish_status_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    video_id: Any,
) -> VideoRecord:
    video = await get_video_or_404(db, video_id)
    ensure_owner(auth_user_id, video.owner_id, "change the publish status of this video")
    video.is_published = not bool(video.is_published)
    await db.commit()
    await db.refresh(video)
    logger.info("video_publish_toggled video=%s is_published=%s", video.id, video.is_published)
    return VideoRecord.model_validate(video)
