"""User model."""

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
import uuid

from database import Base, utcnow


class User(Base):
    """Registered account; also acts as a channel."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    avatar_url = Column(String, nullable=True)
    avatar_asset_id = Column(String, nullable=True)
    cover_image_url = Column(String, nullable=True)
    cover_image_asset_id = Column(String, nullable=True)
    refresh_token_encrypted = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
