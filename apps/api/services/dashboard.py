"""Channel dashboard services."""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from services.projections import ChannelStats, ChannelVideoItem
from services.queries import channel_videos_statement, fetch_all, fetch_channel_stats


async def get_channel_stats_service(*, db: AsyncSession, auth_user_id: str) -> ChannelStats:
    return await fetch_channel_stats(db, auth_user_id)


async def get_channel_videos_service(*, db: AsyncSession, auth_user_id: str) -> List[ChannelVideoItem]:
    """Every video of the channel, unpublished ones included."""
    return await fetch_all(db, channel_videos_statement(auth_user_id), ChannelVideoItem)
