"""Comment services."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.comment import Comment
from models.like import Like
from models.video import Video
from services.errors import NotFoundError
from services.identity import ensure_entity_id, ensure_owner, require_text
from services.pagination import Page, PageParams, paginate
from services.projections import CommentItem, CommentRecord
from services.queries import comment_feed_statement

logger = logging.getLogger(__name__)


async def _get_comment_or_404(db: AsyncSession, comment_id: Any) -> Comment:
    clean_id = ensure_entity_id(comment_id, "comment_id")
    result = await db.execute(select(Comment).where(Comment.id == clean_id))
    comment = result.scalar_one_or_none()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


async def list_video_comments_service(
    *,
    db: AsyncSession,
    video_id: Any,
    params: PageParams,
    viewer_id: Optional[str],
) -> Page[CommentItem]:
    # Unknown videos read as an empty page rather than a 404.
    clean_id = ensure_entity_id(video_id, "video_id")
    return await paginate(db, comment_feed_statement(clean_id, viewer_id), params, CommentItem)


async def add_comment_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    video_id: Any,
    content: Any,
) -> CommentRecord:
    clean_id = ensure_entity_id(video_id, "video_id")
    clean_content = require_text(content, "content")
    exists = await db.execute(select(Video.id).where(Video.id == clean_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError("Video not found")

    comment = Comment(video_id=clean_id, owner_id=auth_user_id, content=clean_content)
    db.add(comment)
    await db.commit()
    logger.info("comment_added video=%s comment=%s user=%s", clean_id, comment.id, auth_user_id)
    return CommentRecord.model_validate(comment)


async def update_comment_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    comment_id: Any,
    content: Any,
) -> CommentRecord:
    clean_content = require_text(content, "content")
    comment = await _get_comment_or_404(db, comment_id)
    ensure_owner(auth_user_id, comment.owner_id, "edit this comment")
    comment.content = clean_content
    await db.commit()
    await db.refresh(comment)
    logger.info("comment_updated comment=%s", comment.id)
    return CommentRecord.model_validate(comment)


async def delete_comment_service(*, db: AsyncSession, auth_user_id: str, comment_id: Any) -> None:
    comment = await _get_comment_or_404(db, comment_id)
    ensure_owner(auth_user_id, comment.owner_id, "delete this comment")
    deleted_id = comment.id
    await db.execute(delete(Like).where(Like.comment_id == deleted_id).execution_options(synchronize_session=False))
    await db.delete(comment)
    await db.commit()
    logger.info("comment_deleted comment=%s", deleted_id)
