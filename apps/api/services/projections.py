"""
Output schemas for every read and write use case.

Each model is the complete allowlist of fields a use case may emit. Query
builders select labelled columns whose names match these fields; nested
objects are encoded with a double-underscore prefix (``owner__username``)
and folded back by :func:`nest_row`.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict


NESTED_SEPARATOR = "__"


def nest_row(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    """Fold ``prefix__field`` columns into sub-dicts.

    A nested object whose ``id`` is NULL came from an outer join with no
    match and collapses to ``None``.
    """
    row: Dict[str, Any] = {}
    for key, value in mapping.items():
        head, sep, tail = key.partition(NESTED_SEPARATOR)
        if sep:
            row.setdefault(head, {})[tail] = value
        else:
            row[key] = value
    for key, value in list(row.items()):
        if isinstance(value, dict) and "id" in value and value["id"] is None:
            row[key] = None
    return row


class OwnerSummary(BaseModel):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class ChannelOwner(OwnerSummary):
    subscribers_count: int = 0
    is_subscribed: bool = False


class VideoFeedItem(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    video_file_url: str
    thumbnail_url: str
    duration: float = 0.0
    views: int = 0
    created_at: Optional[datetime] = None
    owner: OwnerSummary


class VideoDetail(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    video_file_url: str
    thumbnail_url: str
    duration: float = 0.0
    views: int = 0
    is_published: bool
    created_at: Optional[datetime] = None
    likes_count: int = 0
    is_liked: bool = False
    owner: ChannelOwner


class CommentItem(BaseModel):
    id: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    likes_count: int = 0
    is_liked: bool = False
    owner: OwnerSummary


class TweetItem(BaseModel):
    id: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    likes_count: int = 0
    is_liked: bool = False
    owner: OwnerSummary


class ChannelStats(BaseModel):
    total_subscribers: int = 0
    total_likes: int = 0
    total_views: int = 0
    total_videos: int = 0


class ChannelVideoItem(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    video_file_url: str
    thumbnail_url: str
    is_published: bool
    views: int = 0
    likes_count: int = 0
    created_at: Optional[datetime] = None


class PlaylistVideoItem(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    video_file_url: str
    thumbnail_url: str
    duration: float = 0.0
    views: int = 0
    created_at: Optional[datetime] = None


class PlaylistDetail(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    total_videos: int = 0
    total_views: int = 0
    owner: OwnerSummary
    videos: List[PlaylistVideoItem] = []


class PlaylistSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    total_videos: int = 0
    total_views: int = 0
    updated_at: Optional[datetime] = None


class SubscriberItem(BaseModel):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    subscribers_count: int = 0
    subscribed_to_subscriber: bool = False


class LatestVideo(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    video_file_url: str
    thumbnail_url: str
    duration: float = 0.0
    views: int = 0
    created_at: Optional[datetime] = None


class SubscribedChannelItem(BaseModel):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    latest_video: Optional[LatestVideo] = None


class ChannelProfile(BaseModel):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False


# Write-path records, built from ORM rows.

class UserRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VideoRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    video_file_url: str
    thumbnail_url: str
    duration: float = 0.0
    views: int = 0
    is_published: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    video_id: str
    owner_id: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TweetRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlaylistRecord(BaseModel):
    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    video_ids: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
