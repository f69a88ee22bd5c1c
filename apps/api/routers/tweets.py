"""
Tweet router.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_optional_auth_context, viewer_id_of
from routers.responses import api_response
from services.tweets import (
    create_tweet_service,
    delete_tweet_service,
    list_user_tweets_service,
    update_tweet_service,
)

router = APIRouter()


class TweetContentRequest(BaseModel):
    content: Optional[str] = None


@router.post("/")
async def create_tweet(
    request: TweetContentRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    tweet = await create_tweet_service(db=db, auth_user_id=auth.user_id, content=request.content)
    return api_response(tweet, "Tweet created successfully", status_code=201)


@router.get("/user/{user_id}")
async def list_user_tweets(
    user_id: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    tweets = await list_user_tweets_service(db=db, user_id=user_id, viewer_id=viewer_id_of(auth))
    return api_response(tweets, "Tweets fetched successfully")


@router.patch("/{tweet_id}")
async def update_tweet(
    tweet_id: str,
    request: TweetContentRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    tweet = await update_tweet_service(db=db, auth_user_id=auth.user_id, tweet_id=tweet_id, content=request.content)
    return api_response(tweet, "Tweet updated successfully")


@router.delete("/{tweet_id}")
async def delete_tweet(
    tweet_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await delete_tweet_service(db=db, auth_user_id=auth.user_id, tweet_id=tweet_id)
    return api_response({}, "Tweet deleted successfully")
