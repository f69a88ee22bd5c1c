"""Video model for uploaded videos."""

from sqlalchemy import Boolean, Column, String, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.sql import func
import uuid

from database import Base, utcnow


class Video(Base):
    """Video uploaded by a channel owner."""

    __tablename__ = "videos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    video_file_url = Column(String, nullable=False)
    video_file_asset_id = Column(String, nullable=False)
    thumbnail_url = Column(String, nullable=False)
    thumbnail_asset_id = Column(String, nullable=False)
    duration = Column(Float, nullable=False, default=0.0)
    views = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
