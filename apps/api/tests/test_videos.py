from pathlib import Path

import pytest
from sqlalchemy import func, select

from models.comment import Comment
from models.like import Like
from models.playlist import PlaylistVideo
from models.video import Video
from models.watch_history import WatchHistoryEntry


@pytest.mark.asyncio
async def test_video_detail_counts_views_and_records_history_once(client, seed, auth_headers):
    owner = await seed.user("creator")
    viewer = await seed.user("viewer")
    video = await seed.video(owner, title="Launch day", views=7)

    first = await client.get(f"/api/v1/videos/{video.id}", headers=auth_headers(viewer.id))
    assert first.status_code == 200
    assert first.json()["data"]["views"] == 8

    second = await client.get(f"/api/v1/videos/{video.id}", headers=auth_headers(viewer.id))
    assert second.json()["data"]["views"] == 9

    history = await client.get("/api/v1/users/history", headers=auth_headers(viewer.id))
    assert history.status_code == 200
    items = history.json()["data"]
    assert [item["id"] for item in items] == [video.id]
    assert items[0]["owner"]["username"] == "creator"


@pytest.mark.asyncio
async def test_anonymous_video_detail_has_false_viewer_flags(client, seed):
    owner = await seed.user("creator")
    fan = await seed.user("fan")
    video = await seed.video(owner)
    await seed.like(fan, video_id=video.id)
    await seed.subscription(fan, owner)

    resp = await client.get(f"/api/v1/videos/{video.id}")
    assert resp.status_code == 200
    detail = resp.json()["data"]
    assert detail["is_liked"] is False
    assert detail["likes_count"] == 1
    assert detail["owner"]["is_subscribed"] is False
    assert detail["owner"]["subscribers_count"] == 1
    assert "password_hash" not in detail["owner"]
    assert "email" not in detail["owner"]


@pytest.mark.asyncio
async def test_video_detail_reflects_viewer_flags(client, seed, auth_headers):
    owner = await seed.user("creator")
    fan = await seed.user("fan")
    video = await seed.video(owner)
    await seed.like(fan, video_id=video.id)
    await seed.subscription(fan, owner)

    detail = (await client.get(f"/api/v1/videos/{video.id}", headers=auth_headers(fan.id))).json()["data"]
    assert detail["is_liked"] is True
    assert detail["owner"]["is_subscribed"] is True


@pytest.mark.asyncio
async def test_unpublished_video_is_visible_only_to_owner(client, seed, auth_headers):
    owner = await seed.user("creator")
    other = await seed.user("other")
    draft = await seed.video(owner, published=False)

    assert (await client.get(f"/api/v1/videos/{draft.id}")).status_code == 404
    assert (await client.get(f"/api/v1/videos/{draft.id}", headers=auth_headers(other.id))).status_code == 404
    own = await client.get(f"/api/v1/videos/{draft.id}", headers=auth_headers(owner.id))
    assert own.status_code == 200
    assert own.json()["data"]["is_published"] is False


@pytest.mark.asyncio
async def test_video_detail_rejects_malformed_and_unknown_ids(client):
    malformed = await client.get("/api/v1/videos/not-a-uuid")
    assert malformed.status_code == 400
    assert malformed.json()["message"] == "Invalid video_id"

    unknown = await client.get("/api/v1/videos/00000000-0000-4000-8000-000000000000")
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_feed_excludes_unpublished_and_supports_search_and_sort(client, seed):
    owner = await seed.user("creator")
    other = await seed.user("other")
    await seed.video(owner, title="Python tips", description="Async tricks", views=5, duration=30)
    await seed.video(owner, title="Cooking pasta", description="Quick dinner", views=50, duration=10)
    await seed.video(other, title="Python secrets", description="Hidden draft", published=False)

    feed = (await client.get("/api/v1/videos/")).json()["data"]
    assert feed["total_count"] == 2

    search = (await client.get("/api/v1/videos/?query=python%20async")).json()["data"]
    assert [item["title"] for item in search["items"]] == ["Python tips"]

    by_views = (await client.get("/api/v1/videos/?sort_by=views&sort_type=asc")).json()["data"]
    assert [item["views"] for item in by_views["items"]] == [5, 50]

    by_owner = (await client.get(f"/api/v1/videos/?user_id={other.id}")).json()["data"]
    assert by_owner["items"] == []

    bad_sort = await client.get("/api/v1/videos/?sort_by=password_hash")
    assert bad_sort.status_code == 400


@pytest.mark.asyncio
async def test_publish_video_uploads_assets_unpublished(client, seed, auth_headers, asset_host):
    owner = await seed.user("creator")

    resp = await client.post(
        "/api/v1/videos/",
        data={"title": "First upload", "description": "Hello world"},
        files={
            "video_file": ("clip.mp4", b"not-really-a-video", "video/mp4"),
            "thumbnail": ("thumb.png", b"not-really-a-png", "image/png"),
        },
        headers=auth_headers(owner.id),
    )
    assert resp.status_code == 201
    video = resp.json()["data"]
    assert video["is_published"] is False
    assert video["views"] == 0
    assert video["duration"] == 42.5
    assert video["owner_id"] == owner.id
    assert video["video_file_url"].startswith("http://test/media/video/")
    assert video["thumbnail_url"].startswith("http://test/media/image/")

    stored = video["video_file_url"].replace("http://test/media/", "")
    assert (Path(asset_host.root) / stored).is_file()

    feed = (await client.get("/api/v1/videos/")).json()["data"]
    assert feed["total_count"] == 0


@pytest.mark.asyncio
async def test_publish_video_requires_both_files_and_auth(client, seed, auth_headers):
    owner = await seed.user("creator")

    unauthenticated = await client.post("/api/v1/videos/", data={"title": "x", "description": "y"})
    assert unauthenticated.status_code == 401

    missing_thumbnail = await client.post(
        "/api/v1/videos/",
        data={"title": "x", "description": "y"},
        files={"video_file": ("clip.mp4", b"bytes", "video/mp4")},
        headers=auth_headers(owner.id),
    )
    assert missing_thumbnail.status_code == 400
    assert missing_thumbnail.json()["message"] == "thumbnail file is required"


@pytest.mark.asyncio
async def test_update_video_is_owner_only(client, seed, auth_headers):
    owner = await seed.user("creator")
    other = await seed.user("other")
    video = await seed.video(owner, title="Old title")

    forbidden = await client.patch(
        f"/api/v1/videos/{video.id}",
        data={"title": "Hijacked"},
        headers=auth_headers(other.id),
    )
    assert forbidden.status_code == 403

    updated = await client.patch(
        f"/api/v1/videos/{video.id}",
        data={"title": "New title"},
        files={"thumbnail": ("new.png", b"png-bytes", "image/png")},
        headers=auth_headers(owner.id),
    )
    assert updated.status_code == 200
    data = updated.json()["data"]
    assert data["title"] == "New title"
    assert data["description"] == "A video"
    assert data["thumbnail_url"].startswith("http://test/media/image/")


@pytest.mark.asyncio
async def test_toggle_publish_status(client, seed, auth_headers):
    owner = await seed.user("creator")
    draft = await seed.video(owner, published=False)

    resp = await client.patch(f"/api/v1/videos/toggle/publish/{draft.id}", headers=auth_headers(owner.id))
    assert resp.status_code == 200
    assert resp.json()["data"]["is_published"] is True

    feed = (await client.get("/api/v1/videos/")).json()["data"]
    assert [item["id"] for item in feed["items"]] == [draft.id]


@pytest.mark.asyncio
async def test_delete_video_removes_comments_likes_and_memberships(client, seed, session_maker, auth_headers):
    owner = await seed.user("creator")
    fan = await seed.user("fan")
    video = await seed.video(owner)
    comment = await seed.comment(video, fan)
    await seed.like(fan, video_id=video.id)
    await seed.like(owner, comment_id=comment.id)
    await seed.playlist(fan, videos=[video])
    await client.get(f"/api/v1/videos/{video.id}", headers=auth_headers(fan.id))

    forbidden = await client.delete(f"/api/v1/videos/{video.id}", headers=auth_headers(fan.id))
    assert forbidden.status_code == 403

    resp = await client.delete(f"/api/v1/videos/{video.id}", headers=auth_headers(owner.id))
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    comments = await client.get(f"/api/v1/comments/{video.id}")
    assert comments.status_code == 200
    page = comments.json()["data"]
    assert page["items"] == []
    assert page["total_count"] == 0

    async with session_maker() as session:
        for model in (Video, Comment, Like, PlaylistVideo, WatchHistoryEntry):
            remaining = await session.execute(select(func.count()).select_from(model))
            assert remaining.scalar() == 0
