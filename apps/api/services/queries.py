"""
Read-side query builders.

Every builder returns an unexecuted ``select()`` that fetches one use case in
a single round trip: a filter on the base table, joins to related tables,
derived counts and viewer-relative flags as correlated subqueries, a
deterministic sort, and an explicit column list matching an output schema
in ``services.projections``.

Viewer-relative flags render as the SQL literal ``false`` when there is no
authenticated viewer.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import and_, false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlalchemy.sql import ColumnElement, Select

from models.like import Like
from models.playlist import Playlist, PlaylistVideo
from models.subscription import Subscription
from models.tweet import Tweet
from models.user import User
from models.comment import Comment
from models.video import Video
from models.watch_history import WatchHistoryEntry
from services.errors import InvalidArgumentError
from services.projections import (
    ChannelStats,
    PlaylistDetail,
    PlaylistVideoItem,
    nest_row,
)

T = TypeVar("T", bound=BaseModel)

VIDEO_SORT_COLUMNS = {
    "created_at": Video.created_at,
    "views": Video.views,
    "duration": Video.duration,
    "title": Video.title,
}
SORT_KEY_ALIASES = {"createdAt": "created_at"}
SORT_DIRECTIONS = {"asc": False, "desc": True}


# Column groups

def owner_columns(user: Any = User, prefix: str = "owner") -> List[ColumnElement]:
    return [
        user.id.label(f"{prefix}__id"),
        user.username.label(f"{prefix}__username"),
        user.full_name.label(f"{prefix}__full_name"),
        user.avatar_url.label(f"{prefix}__avatar_url"),
    ]


def video_card_columns(video: Any = Video, prefix: str = "") -> List[ColumnElement]:
    fields = ("id", "title", "description", "video_file_url", "thumbnail_url", "duration", "views", "created_at")
    if not prefix:
        return [getattr(video, field) for field in fields]
    return [getattr(video, field).label(f"{prefix}__{field}") for field in fields]


# Derived fields

def likes_count(subject_field: str, subject_id: Any, label: str = "likes_count") -> ColumnElement:
    like = aliased(Like)
    return (
        select(func.count(like.id))
        .where(getattr(like, subject_field) == subject_id)
        .scalar_subquery()
        .label(label)
    )


def viewer_has_liked(
    subject_field: str,
    subject_id: Any,
    viewer_id: Optional[str],
    label: str = "is_liked",
) -> ColumnElement:
    if not viewer_id:
        return false().label(label)
    like = aliased(Like)
    return (
        select(like.id)
        .where(getattr(like, subject_field) == subject_id, like.liked_by_id == viewer_id)
        .exists()
        .label(label)
    )


def subscribers_count(channel_id: Any, label: str = "subscribers_count") -> ColumnElement:
    subscription = aliased(Subscription)
    return (
        select(func.count(subscription.id))
        .where(subscription.channel_id == channel_id)
        .scalar_subquery()
        .label(label)
    )


def subscriptions_count(subscriber_id: Any, label: str = "channels_subscribed_to_count") -> ColumnElement:
    subscription = aliased(Subscription)
    return (
        select(func.count(subscription.id))
        .where(subscription.subscriber_id == subscriber_id)
        .scalar_subquery()
        .label(label)
    )


def viewer_is_subscribed(channel_id: Any, viewer_id: Optional[str], label: str = "is_subscribed") -> ColumnElement:
    if not viewer_id:
        return false().label(label)
    subscription = aliased(Subscription)
    return (
        select(subscription.id)
        .where(subscription.channel_id == channel_id, subscription.subscriber_id == viewer_id)
        .exists()
        .label(label)
    )


# Filters and sorting

def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_terms(query: Optional[str]) -> List[str]:
    return [term for term in str(query or "").split() if term]


def resolve_video_sort(sort_by: Optional[str], sort_type: Optional[str]) -> Tuple[ColumnElement, bool]:
    """Return the sort column and whether it is descending."""
    key = str(sort_by or "created_at").strip()
    key = SORT_KEY_ALIASES.get(key, key)
    if key not in VIDEO_SORT_COLUMNS:
        allowed = ", ".join(sorted(VIDEO_SORT_COLUMNS))
        raise InvalidArgumentError(f"sort_by must be one of: {allowed}")

    direction = str(sort_type or "desc").strip().lower()
    if direction not in SORT_DIRECTIONS:
        raise InvalidArgumentError("sort_type must be 'asc' or 'desc'")
    return VIDEO_SORT_COLUMNS[key], SORT_DIRECTIONS[direction]


# Use-case statements

def video_feed_statement(
    *,
    search: Optional[str] = None,
    owner_id: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
) -> Select:
    statement = (
        select(*video_card_columns(), *owner_columns())
        .select_from(Video)
        .join(User, User.id == Video.owner_id)
    )
    for term in search_terms(search):
        pattern = _like_pattern(term)
        statement = statement.where(
            or_(
                Video.title.ilike(pattern, escape="\\"),
                Video.description.ilike(pattern, escape="\\"),
            )
        )
    if owner_id:
        statement = statement.where(Video.owner_id == owner_id)
    statement = statement.where(Video.is_published.is_(True))

    column, descending = resolve_video_sort(sort_by, sort_type)
    if descending:
        return statement.order_by(column.desc(), Video.id.desc())
    return statement.order_by(column.asc(), Video.id.asc())


def video_detail_statement(video_id: str, viewer_id: Optional[str]) -> Select:
    return (
        select(
            *video_card_columns(),
            Video.is_published,
            likes_count("video_id", Video.id),
            viewer_has_liked("video_id", Video.id, viewer_id),
            *owner_columns(),
            subscribers_count(User.id, label="owner__subscribers_count"),
            viewer_is_subscribed(User.id, viewer_id, label="owner__is_subscribed"),
        )
        .select_from(Video)
        .join(User, User.id == Video.owner_id)
        .where(Video.id == video_id)
    )


def comment_feed_statement(video_id: str, viewer_id: Optional[str]) -> Select:
    return (
        select(
            Comment.id,
            Comment.content,
            Comment.created_at,
            Comment.updated_at,
            likes_count("comment_id", Comment.id),
            viewer_has_liked("comment_id", Comment.id, viewer_id),
            *owner_columns(),
        )
        .select_from(Comment)
        .join(User, User.id == Comment.owner_id)
        .where(Comment.video_id == video_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )


def tweet_feed_statement(owner_id: str, viewer_id: Optional[str]) -> Select:
    return (
        select(
            Tweet.id,
            Tweet.content,
            Tweet.created_at,
            Tweet.updated_at,
            likes_count("tweet_id", Tweet.id),
            viewer_has_liked("tweet_id", Tweet.id, viewer_id),
            *owner_columns(),
        )
        .select_from(Tweet)
        .join(User, User.id == Tweet.owner_id)
        .where(Tweet.owner_id == owner_id)
        .order_by(Tweet.created_at.desc(), Tweet.id.desc())
    )


def channel_subscriber_total_statement(channel_id: str) -> Select:
    return select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)


def channel_video_totals_statement(owner_id: str) -> Select:
    per_video = (
        select(
            Video.id.label("video_id"),
            Video.views.label("views"),
            likes_count("video_id", Video.id, label="likes"),
        )
        .where(Video.owner_id == owner_id)
        .subquery("channel_videos")
    )
    return select(
        func.coalesce(func.sum(per_video.c.views), 0).label("total_views"),
        func.count(per_video.c.video_id).label("total_videos"),
        func.coalesce(func.sum(per_video.c.likes), 0).label("total_likes"),
    )


def channel_videos_statement(owner_id: str) -> Select:
    return (
        select(
            Video.id,
            Video.title,
            Video.description,
            Video.video_file_url,
            Video.thumbnail_url,
            Video.is_published,
            Video.views,
            likes_count("video_id", Video.id),
            Video.created_at,
        )
        .where(Video.owner_id == owner_id)
        .order_by(Video.created_at.desc(), Video.id.desc())
    )


def _published_members(playlist_id: Any) -> Tuple[Any, Any]:
    member = aliased(PlaylistVideo)
    video = aliased(Video)
    base = (
        select(func.count(video.id))
        .select_from(member)
        .join(video, video.id == member.video_id)
        .where(member.playlist_id == playlist_id, video.is_published.is_(True))
    )
    total_views = base.with_only_columns(func.coalesce(func.sum(video.views), 0))
    return base.scalar_subquery(), total_views.scalar_subquery()


def playlist_detail_statement(playlist_id: str) -> Select:
    """Playlist header plus one row per published member, in playlist order.

    Members are outer-joined so a playlist with no surviving videos still
    yields its header row (with ``video__id`` NULL).
    """
    members = (
        select(
            PlaylistVideo.playlist_id,
            PlaylistVideo.position,
            PlaylistVideo.added_at,
            *video_card_columns(prefix="video"),
        )
        .select_from(PlaylistVideo)
        .join(Video, Video.id == PlaylistVideo.video_id)
        .where(Video.is_published.is_(True))
        .subquery("members")
    )
    member_columns = [
        members.c[f"video__{field}"]
        for field in ("id", "title", "description", "video_file_url", "thumbnail_url", "duration", "views", "created_at")
    ]
    return (
        select(
            Playlist.id,
            Playlist.name,
            Playlist.description,
            Playlist.created_at,
            Playlist.updated_at,
            *owner_columns(),
            *member_columns,
        )
        .select_from(Playlist)
        .join(User, User.id == Playlist.owner_id)
        .outerjoin(members, members.c.playlist_id == Playlist.id)
        .where(Playlist.id == playlist_id)
        .order_by(members.c.position.asc(), members.c.added_at.asc())
    )


def user_playlists_statement(owner_id: str) -> Select:
    total_videos, total_views = _published_members(Playlist.id)
    return (
        select(
            Playlist.id,
            Playlist.name,
            Playlist.description,
            total_videos.label("total_videos"),
            total_views.label("total_views"),
            Playlist.updated_at,
        )
        .where(Playlist.owner_id == owner_id)
        .order_by(Playlist.updated_at.desc(), Playlist.id.desc())
    )


def channel_subscribers_statement(channel_id: str) -> Select:
    """One record per subscriber, with whether the channel subscribes back."""
    back = aliased(Subscription)
    subscribed_back = (
        select(back.id)
        .where(back.subscriber_id == channel_id, back.channel_id == User.id)
        .correlate(User)
        .exists()
        .label("subscribed_to_subscriber")
    )
    return (
        select(
            User.id,
            User.username,
            User.full_name,
            User.avatar_url,
            subscribers_count(User.id),
            subscribed_back,
        )
        .select_from(Subscription)
        .join(User, User.id == Subscription.subscriber_id)
        .where(Subscription.channel_id == channel_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
    )


def subscribed_channels_statement(subscriber_id: str) -> Select:
    """One record per subscribed channel, with its latest published video."""
    followed = select(Subscription.channel_id).where(Subscription.subscriber_id == subscriber_id)
    ranked = (
        select(
            Video.owner_id,
            *video_card_columns(),
            func.row_number()
            .over(partition_by=Video.owner_id, order_by=(Video.created_at.desc(), Video.id.desc()))
            .label("rank"),
        )
        .where(Video.is_published.is_(True), Video.owner_id.in_(followed))
        .subquery("ranked_videos")
    )
    latest_columns = [
        ranked.c[field].label(f"latest_video__{field}")
        for field in ("id", "title", "description", "video_file_url", "thumbnail_url", "duration", "views", "created_at")
    ]
    return (
        select(
            User.id,
            User.username,
            User.full_name,
            User.avatar_url,
            *latest_columns,
        )
        .select_from(Subscription)
        .join(User, User.id == Subscription.channel_id)
        .outerjoin(ranked, and_(ranked.c.owner_id == User.id, ranked.c.rank == 1))
        .where(Subscription.subscriber_id == subscriber_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
    )


def liked_videos_statement(viewer_id: str) -> Select:
    return (
        select(*video_card_columns(), *owner_columns())
        .select_from(Like)
        .join(Video, Video.id == Like.video_id)
        .join(User, User.id == Video.owner_id)
        .where(Like.liked_by_id == viewer_id, Video.is_published.is_(True))
        .order_by(Like.created_at.desc(), Like.id.desc())
    )


def watch_history_statement(user_id: str) -> Select:
    return (
        select(*video_card_columns(), *owner_columns())
        .select_from(WatchHistoryEntry)
        .join(Video, Video.id == WatchHistoryEntry.video_id)
        .join(User, User.id == Video.owner_id)
        .where(WatchHistoryEntry.user_id == user_id)
        .order_by(WatchHistoryEntry.added_at.desc(), WatchHistoryEntry.id.desc())
    )


def channel_profile_statement(username: str, viewer_id: Optional[str]) -> Select:
    return select(
        User.id,
        User.username,
        User.full_name,
        User.avatar_url,
        User.cover_image_url,
        subscribers_count(User.id),
        subscriptions_count(User.id),
        viewer_is_subscribed(User.id, viewer_id),
    ).where(User.username == username)


# Execution

async def fetch_one(db: AsyncSession, statement: Select, model: Type[T]) -> Optional[T]:
    row = (await db.execute(statement)).first()
    if row is None:
        return None
    return model.model_validate(nest_row(row._mapping))


async def fetch_all(db: AsyncSession, statement: Select, model: Type[T]) -> List[T]:
    rows = (await db.execute(statement)).all()
    return [model.model_validate(nest_row(row._mapping)) for row in rows]


async def fetch_channel_stats(db: AsyncSession, channel_id: str) -> ChannelStats:
    """Two independent aggregates: subscribers, and totals over the channel's videos."""
    total_subscribers = (await db.execute(channel_subscriber_total_statement(channel_id))).scalar()
    totals = (await db.execute(channel_video_totals_statement(channel_id))).first()
    values: Dict[str, Any] = dict(totals._mapping) if totals is not None else {}
    return ChannelStats(
        total_subscribers=int(total_subscribers or 0),
        total_likes=int(values.get("total_likes") or 0),
        total_views=int(values.get("total_views") or 0),
        total_videos=int(values.get("total_videos") or 0),
    )


def fold_playlist_rows(rows: Sequence[Any]) -> Optional[PlaylistDetail]:
    if not rows:
        return None
    header = nest_row(rows[0]._mapping)
    videos = []
    for row in rows:
        member = nest_row(row._mapping).get("video")
        if member is not None:
            videos.append(PlaylistVideoItem.model_validate(member))
    header.pop("video", None)
    header["videos"] = videos
    header["total_videos"] = len(videos)
    header["total_views"] = sum(int(video.views or 0) for video in videos)
    return PlaylistDetail.model_validate(header)


async def fetch_playlist_detail(db: AsyncSession, playlist_id: str) -> Optional[PlaylistDetail]:
    rows = (await db.execute(playlist_detail_statement(playlist_id))).all()
    return fold_playlist_rows(rows)
