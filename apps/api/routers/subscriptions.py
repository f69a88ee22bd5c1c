"""
Subscription router.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.responses import api_response
from services.subscriptions import (
    list_channel_subscribers_service,
    list_subscribed_channels_service,
    toggle_subscription_service,
)

router = APIRouter()


@router.post("/c/{channel_id}")
async def toggle_subscription(
    channel_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    result = await toggle_subscription_service(db=db, auth_user_id=auth.user_id, channel_id=channel_id)
    message = "Subscribed successfully" if result["is_subscribed"] else "Unsubscribed successfully"
    return api_response(result, message)


@router.get("/c/{channel_id}")
async def list_channel_subscribers(channel_id: str, db: AsyncSession = Depends(get_db)):
    subscribers = await list_channel_subscribers_service(db=db, channel_id=channel_id)
    return api_response(subscribers, "Subscribers fetched successfully")


@router.get("/u/{subscriber_id}")
async def list_subscribed_channels(subscriber_id: str, db: AsyncSession = Depends(get_db)):
    channels = await list_subscribed_channels_service(db=db, subscriber_id=subscriber_id)
    return api_response(channels, "Subscribed channels fetched successfully")
