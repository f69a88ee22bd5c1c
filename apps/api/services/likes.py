"""Like toggles for videos, comments and tweets."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.comment import Comment
from models.like import Like
from models.tweet import Tweet
from models.video import Video
from services.errors import NotFoundError
from services.identity import ensure_entity_id
from services.projections import VideoFeedItem
from services.queries import fetch_all, liked_videos_statement

logger = logging.getLogger(__name__)

LIKE_SUBJECTS = {
    "video": ("video_id", Video),
    "comment": ("comment_id", Comment),
    "tweet": ("tweet_id", Tweet),
}


async def toggle_like_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    subject: str,
    subject_id: Any,
) -> Dict[str, Any]:
    """Like the subject, or unlike it when the viewer already does.

    The insert races against the per-subject unique constraint; losing the
    race means the like exists, so it is removed instead.
    """
    field, model = LIKE_SUBJECTS[subject]
    clean_id = ensure_entity_id(subject_id, field)

    exists = await db.execute(select(model.id).where(model.id == clean_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError(f"{subject.capitalize()} not found")

    db.add(Like(liked_by_id=auth_user_id, **{field: clean_id}))
    try:
        await db.commit()
        is_liked = True
    except IntegrityError:
        await db.rollback()
        await db.execute(
            delete(Like)
            .where(getattr(Like, field) == clean_id, Like.liked_by_id == auth_user_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        is_liked = False

    count = await db.execute(select(func.count(Like.id)).where(getattr(Like, field) == clean_id))
    likes_count = int(count.scalar() or 0)
    logger.info(
        "like_toggled subject=%s id=%s user=%s is_liked=%s likes=%s",
        subject,
        clean_id,
        auth_user_id,
        is_liked,
        likes_count,
    )
    return {"is_liked": is_liked, "likes_count": likes_count}


async def list_liked_videos_service(*, db: AsyncSession, auth_user_id: str) -> List[VideoFeedItem]:
    return await fetch_all(db, liked_videos_statement(auth_user_id), VideoFeedItem)
