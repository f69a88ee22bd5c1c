from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import services.asset_host as asset_host_module
from config import settings
from database import Base, get_db
from main import app
from models.comment import Comment
from models.like import Like
from models.playlist import Playlist, PlaylistVideo
from models.subscription import Subscription
from models.tweet import Tweet
from models.user import User
from models.video import Video
from services.asset_host import LocalAssetHost, get_asset_host
from services.passwords import hash_password
from services.session_token import create_access_token

TEST_PASSWORD = "correct-horse-battery"
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)['token']}"}


class Seeder:
    """Inserts rows directly so tests can set up state without the HTTP surface."""

    def __init__(self, session_maker):
        self.session_maker = session_maker
        self._tick = 0

    def _next_time(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(minutes=self._tick)

    async def _add(self, row):
        async with self.session_maker() as session:
            session.add(row)
            await session.commit()
            return row

    async def user(self, username: str, email: Optional[str] = None) -> User:
        return await self._add(
            User(
                username=username,
                email=email or f"{username}@example.com",
                full_name=username.title(),
                password_hash=hash_password(TEST_PASSWORD),
                avatar_url=f"http://test/media/image/{username}.png",
                avatar_asset_id=f"image/{username}.png",
            )
        )

    async def video(
        self,
        owner: User,
        title: str = "Video",
        description: str = "A video",
        published: bool = True,
        views: int = 0,
        duration: float = 10.0,
    ) -> Video:
        return await self._add(
            Video(
                owner_id=owner.id,
                title=title,
                description=description,
                video_file_url="http://test/media/video/file.mp4",
                video_file_asset_id="video/file.mp4",
                thumbnail_url="http://test/media/image/thumb.png",
                thumbnail_asset_id="image/thumb.png",
                duration=duration,
                views=views,
                is_published=published,
                created_at=self._next_time(),
            )
        )

    async def comment(self, video: Video, owner: User, content: str = "Nice video") -> Comment:
        return await self._add(
            Comment(video_id=video.id, owner_id=owner.id, content=content, created_at=self._next_time())
        )

    async def tweet(self, owner: User, content: str = "Hello") -> Tweet:
        return await self._add(Tweet(owner_id=owner.id, content=content, created_at=self._next_time()))

    async def subscription(self, subscriber: User, channel: User) -> Subscription:
        return await self._add(
            Subscription(subscriber_id=subscriber.id, channel_id=channel.id, created_at=self._next_time())
        )

    async def like(self, user: User, **subject) -> Like:
        return await self._add(Like(liked_by_id=user.id, created_at=self._next_time(), **subject))

    async def playlist(self, owner: User, name: str = "Favorites", videos=()) -> Playlist:
        playlist = await self._add(Playlist(owner_id=owner.id, name=name, description="Saved videos"))
        for position, video in enumerate(videos):
            await self._add(PlaylistVideo(playlist_id=playlist.id, video_id=video.id, position=position))
        return playlist


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "vidtube.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


@pytest.fixture
def seed(session_maker):
    return Seeder(session_maker)


@pytest.fixture
def asset_host(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_TEMP_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(asset_host_module, "get_media_duration_seconds", lambda path: 42.5)
    return LocalAssetHost(root=str(tmp_path / "media"), base_url="http://test/media")


@pytest_asyncio.fixture
async def client(session_maker, asset_host):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_asset_host] = lambda: asset_host
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_asset_host, None)


@pytest.fixture
def auth_headers():
    return bearer


@pytest.fixture
def seed_password():
    return TEST_PASSWORD
