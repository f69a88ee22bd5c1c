"""Playlist services."""

from __future__ import annotations

import logging
from typing import Any, List

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import utcnow
from models.playlist import Playlist, PlaylistVideo
from models.video import Video
from services.errors import InvalidArgumentError, NotFoundError
from services.identity import ensure_entity_id, ensure_owner, normalize_text, require_text
from services.projections import PlaylistDetail, PlaylistRecord, PlaylistSummary
from services.queries import fetch_all, fetch_playlist_detail, user_playlists_statement
from services.users import ensure_user_exists

logger = logging.getLogger(__name__)


async def _get_playlist_or_404(db: AsyncSession, playlist_id: Any) -> Playlist:
    clean_id = ensure_entity_id(playlist_id, "playlist_id")
    result = await db.execute(select(Playlist).where(Playlist.id == clean_id))
    playlist = result.scalar_one_or_none()
    if not playlist:
        raise NotFoundError("Playlist not found")
    return playlist


async def _playlist_record(db: AsyncSession, playlist: Playlist) -> PlaylistRecord:
    result = await db.execute(
        select(PlaylistVideo.video_id)
        .where(PlaylistVideo.playlist_id == playlist.id)
        .order_by(PlaylistVideo.position.asc(), PlaylistVideo.added_at.asc())
    )
    return PlaylistRecord(
        id=playlist.id,
        owner_id=playlist.owner_id,
        name=playlist.name,
        description=playlist.description,
        video_ids=[row[0] for row in result.all()],
        created_at=playlist.created_at,
        updated_at=playlist.updated_at,
    )


async def create_playlist_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    name: Any,
    description: Any,
) -> PlaylistRecord:
    playlist = Playlist(
        owner_id=auth_user_id,
        name=require_text(name, "name"),
        description=require_text(description, "description"),
    )
    db.add(playlist)
    await db.commit()
    logger.info("playlist_created playlist=%s user=%s", playlist.id, auth_user_id)
    return PlaylistRecord(
        id=playlist.id,
        owner_id=playlist.owner_id,
        name=playlist.name,
        description=playlist.description,
        video_ids=[],
        created_at=playlist.created_at,
        updated_at=playlist.updated_at,
    )


async def get_playlist_service(*, db: AsyncSession, playlist_id: Any) -> PlaylistDetail:
    clean_id = ensure_entity_id(playlist_id, "playlist_id")
    detail = await fetch_playlist_detail(db, clean_id)
    if detail is None:
        raise NotFoundError("Playlist not found")
    return detail


async def list_user_playlists_service(*, db: AsyncSession, user_id: Any) -> List[PlaylistSummary]:
    clean_id = ensure_entity_id(user_id, "user_id")
    await ensure_user_exists(db, clean_id)
    return await fetch_all(db, user_playlists_statement(clean_id), PlaylistSummary)


async def update_playlist_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    playlist_id: Any,
    name: Any = None,
    description: Any = None,
) -> PlaylistRecord:
    clean_name = normalize_text(name)
    clean_description = normalize_text(description)
    if not clean_name and not clean_description:
        raise InvalidArgumentError("name or description is required")

    playlist = await _get_playlist_or_404(db, playlist_id)
    ensure_owner(auth_user_id, playlist.owner_id, "update this playlist")
    if clean_name:
        playlist.name = clean_name
    if clean_description:
        playlist.description = clean_description
    await db.commit()
    await db.refresh(playlist)
    logger.info("playlist_updated playlist=%s", playlist.id)
    return await _playlist_record(db, playlist)


async def delete_playlist_service(*, db: AsyncSession, auth_user_id: str, playlist_id: Any) -> None:
    playlist = await _get_playlist_or_404(db, playlist_id)
    ensure_owner(auth_user_id, playlist.owner_id, "delete this playlist")
    deleted_id = playlist.id
    await db.execute(
        delete(PlaylistVideo).where(PlaylistVideo.playlist_id == deleted_id).execution_options(synchronize_session=False)
    )
    await db.delete(playlist)
    await db.commit()
    logger.info("playlist_deleted playlist=%s", deleted_id)


async def add_video_to_playlist_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    playlist_id: Any,
    video_id: Any,
) -> PlaylistRecord:
    """Append a video to the playlist; adding a present video is a no-op."""
    clean_video_id = ensure_entity_id(video_id, "video_id")
    playlist = await _get_playlist_or_404(db, playlist_id)
    exists = await db.execute(select(Video.id).where(Video.id == clean_video_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError("Video not found")
    ensure_owner(auth_user_id, playlist.owner_id, "add videos to this playlist")

    present = await db.execute(
        select(PlaylistVideo.id).where(
            PlaylistVideo.playlist_id == playlist.id,
            PlaylistVideo.video_id == clean_video_id,
        )
    )
    if present.first() is None:
        last_position = await db.execute(
            select(func.max(PlaylistVideo.position)).where(PlaylistVideo.playlist_id == playlist.id)
        )
        current = last_position.scalar()
        db.add(
            PlaylistVideo(
                playlist_id=playlist.id,
                video_id=clean_video_id,
                position=0 if current is None else int(current) + 1,
            )
        )
        playlist.updated_at = utcnow()
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
        else:
            logger.info("playlist_video_added playlist=%s video=%s", playlist.id, clean_video_id)

    await db.refresh(playlist)
    return await _playlist_record(db, playlist)


async def remove_video_from_playlist_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    playlist_id: Any,
    video_id: Any,
) -> PlaylistRecord:
    clean_video_id = ensure_entity_id(video_id, "video_id")
    playlist = await _get_playlist_or_404(db, playlist_id)
    ensure_owner(auth_user_id, playlist.owner_id, "remove videos from this playlist")

    result = await db.execute(
        delete(PlaylistVideo)
        .where(PlaylistVideo.playlist_id == playlist.id, PlaylistVideo.video_id == clean_video_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        playlist.updated_at = utcnow()
    await db.commit()
    await db.refresh(playlist)
    logger.info("playlist_video_removed playlist=%s video=%s removed=%s", playlist.id, clean_video_id, result.rowcount)
    return await _playlist_record(db, playlist)
