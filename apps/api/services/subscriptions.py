"""Channel subscription services."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.subscription import Subscription
from services.errors import InvalidArgumentError
from services.identity import ensure_entity_id
from services.projections import SubscribedChannelItem, SubscriberItem
from services.queries import (
    channel_subscriber_total_statement,
    channel_subscribers_statement,
    fetch_all,
    subscribed_channels_statement,
)
from services.users import ensure_user_exists

logger = logging.getLogger(__name__)


async def toggle_subscription_service(
    *,
    db: AsyncSession,
    auth_user_id: str,
    channel_id: Any,
) -> Dict[str, Any]:
    clean_id = ensure_entity_id(channel_id, "channel_id")
    if clean_id == auth_user_id:
        raise InvalidArgumentError("You cannot subscribe to your own channel")
    await ensure_user_exists(db, clean_id, "Channel not found")

    db.add(Subscription(subscriber_id=auth_user_id, channel_id=clean_id))
    try:
        await db.commit()
        is_subscribed = True
    except IntegrityError:
        await db.rollback()
        await db.execute(
            delete(Subscription)
            .where(Subscription.subscriber_id == auth_user_id, Subscription.channel_id == clean_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        is_subscribed = False

    total = (await db.execute(channel_subscriber_total_statement(clean_id))).scalar()
    subscribers_count = int(total or 0)
    logger.info(
        "subscription_toggled channel=%s subscriber=%s is_subscribed=%s subscribers=%s",
        clean_id,
        auth_user_id,
        is_subscribed,
        subscribers_count,
    )
    return {"is_subscribed": is_subscribed, "subscribers_count": subscribers_count}


async def list_channel_subscribers_service(*, db: AsyncSession, channel_id: Any) -> List[SubscriberItem]:
    clean_id = ensure_entity_id(channel_id, "channel_id")
    await ensure_user_exists(db, clean_id, "Channel not found")
    return await fetch_all(db, channel_subscribers_statement(clean_id), SubscriberItem)


async def list_subscribed_channels_service(*, db: AsyncSession, subscriber_id: Any) -> List[SubscribedChannelItem]:
    clean_id = ensure_entity_id(subscriber_id, "subscriber_id")
    await ensure_user_exists(db, clean_id, "Subscriber not found")
    return await fetch_all(db, subscribed_channels_statement(clean_id), SubscribedChannelItem)
