"""Tweet services."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.like import Like
from models.tweet import Tweet
from services.errors import NotFoundError
from services.identity import ensure_entity_id, ensure_owner, require_text
from services.projections import TweetItem, TweetRecord
from services.queries import fetch_all, tweet_feed_statement
from services.users import ensure_user_exists

logger = logging.getLogger(__name__)


async def _get_tweet_or_404(db: AsyncSession, tweet_id: Any) -> Tweet:
    clean_id = ensure_entity_id(tweet_id, "tweet_id")
    result = await db.execute(select(Tweet).where(Tweet.id == clean_id))
    tweet = result.scalar_one_or_none()
    if not tweet:
        raise NotFoundError("Tweet not found")
    return tweet


async def create_tweet_service(*, db: AsyncSession, auth_user_id: str, content: Any) -> TweetRecord:
    tweet = Tweet(owner_id=auth_user_id, content=require_text(content, "content"))
    db.add(tweet)
    await db.commit()
    logger.info("tweet_created tweet=%s user=%s", tweet.id, auth_user_id)
    return TweetRecord.model_validate(tweet)


async def list_user_tweets_service(
    *,
    db: AsyncSession,
    user_id: Any,
    viewer_id: Optional[str],
) -> List[TweetItem]:
    clean_id = ensure_entity_id(user_id, "user_id")
    await ensure_user_exists(db, clean_id)
    return await fetch_all(db, tweet_feed_statement(clean_id, viewer_id), TweetItem)


async def update_tweet_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    tweet_id: Any,
    content: Any,
) -> TweetRecord:
    clean_content = require_text(content, "content")
    tweet = await _get_tweet_or_404(db, tweet_id)
    ensure_owner(auth_user_id, tweet.owner_id, "edit this tweet")
    tweet.content = clean_content
    await db.commit()
    await db.refresh(tweet)
    logger.info("tweet_updated tweet=%s", tweet.id)
    return TweetRecord.model_validate(tweet)


async def delete_tweet_service(*, db: AsyncSession, auth_user_id: str, tweet_id: Any) -> None:
    tweet = await _get_tweet_or_404(db, tweet_id)
    ensure_owner(auth_user_id, tweet.owner_id, "delete this tweet")
    deleted_id = tweet.id
    await db.execute(delete(Like).where(Like.tweet_id == deleted_id).execution_options(synchronize_session=False))
    await db.delete(tweet)
    await db.commit()
    logger.info("tweet_deleted tweet=%s", deleted_id)
