import pytest


@pytest.mark.asyncio
async def test_playlist_lifecycle(client, seed, auth_headers):
    owner = await seed.user("curator")
    creator = await seed.user("creator")
    first = await seed.video(creator, title="First", views=3)
    second = await seed.video(creator, title="Second", views=4)

    created = await client.post(
        "/api/v1/playlist/",
        json={"name": "Watch later", "description": "Queue"},
        headers=auth_headers(owner.id),
    )
    assert created.status_code == 201
    playlist = created.json()["data"]
    assert playlist["video_ids"] == []
    playlist_id = playlist["id"]

    for video in (second, first, second):
        resp = await client.patch(
            f"/api/v1/playlist/add/{video.id}/{playlist_id}",
            headers=auth_headers(owner.id),
        )
        assert resp.status_code == 200
    assert resp.json()["data"]["video_ids"] == [second.id, first.id]

    detail = (await client.get(f"/api/v1/playlist/{playlist_id}")).json()["data"]
    assert [video["title"] for video in detail["videos"]] == ["Second", "First"]
    assert detail["total_videos"] == 2
    assert detail["total_views"] == 7
    assert detail["owner"]["username"] == "curator"

    removed = await client.patch(
        f"/api/v1/playlist/remove/{second.id}/{playlist_id}",
        headers=auth_headers(owner.id),
    )
    assert removed.json()["data"]["video_ids"] == [first.id]

    renamed = await client.patch(
        f"/api/v1/playlist/{playlist_id}",
        json={"name": "Later"},
        headers=auth_headers(owner.id),
    )
    assert renamed.json()["data"]["name"] == "Later"
    assert renamed.json()["data"]["description"] == "Queue"

    deleted = await client.delete(f"/api/v1/playlist/{playlist_id}", headers=auth_headers(owner.id))
    assert deleted.status_code == 200
    assert (await client.get(f"/api/v1/playlist/{playlist_id}")).status_code == 404


@pytest.mark.asyncio
async def test_playlist_detail_skips_unpublished_members(client, seed):
    owner = await seed.user("curator")
    public = await seed.video(owner, title="Public", views=10)
    draft = await seed.video(owner, title="Draft", views=99, published=False)
    playlist = await seed.playlist(owner, videos=[draft, public])

    detail = (await client.get(f"/api/v1/playlist/{playlist.id}")).json()["data"]
    assert [video["title"] for video in detail["videos"]] == ["Public"]
    assert detail["total_views"] == 10


@pytest.mark.asyncio
async def test_empty_playlist_detail_still_has_owner(client, seed):
    owner = await seed.user("curator")
    playlist = await seed.playlist(owner)

    detail = (await client.get(f"/api/v1/playlist/{playlist.id}")).json()["data"]
    assert detail["videos"] == []
    assert detail["total_videos"] == 0
    assert detail["owner"]["id"] == owner.id


@pytest.mark.asyncio
async def test_playlist_mutations_are_owner_only(client, seed, auth_headers):
    owner = await seed.user("curator")
    intruder = await seed.user("intruder")
    video = await seed.video(owner)
    playlist = await seed.playlist(owner)

    add = await client.patch(f"/api/v1/playlist/add/{video.id}/{playlist.id}", headers=auth_headers(intruder.id))
    assert add.status_code == 403
    rename = await client.patch(
        f"/api/v1/playlist/{playlist.id}",
        json={"name": "Mine now"},
        headers=auth_headers(intruder.id),
    )
    assert rename.status_code == 403
    delete = await client.delete(f"/api/v1/playlist/{playlist.id}", headers=auth_headers(intruder.id))
    assert delete.status_code == 403

    missing_video = await client.patch(
        f"/api/v1/playlist/add/00000000-0000-4000-8000-000000000000/{playlist.id}",
        headers=auth_headers(owner.id),
    )
    assert missing_video.status_code == 404


@pytest.mark.asyncio
async def test_user_playlists_total_only_published_members(client, seed):
    owner = await seed.user("curator")
    public = await seed.video(owner, views=6)
    draft = await seed.video(owner, views=60, published=False)
    await seed.playlist(owner, name="Mixed", videos=[public, draft])

    resp = await client.get(f"/api/v1/playlist/user/{owner.id}")
    assert resp.status_code == 200
    playlists = resp.json()["data"]
    assert len(playlists) == 1
    assert playlists[0]["name"] == "Mixed"
    assert playlists[0]["total_videos"] == 1
    assert playlists[0]["total_views"] == 6


@pytest.mark.asyncio
async def test_create_playlist_requires_name(client, seed, auth_headers):
    owner = await seed.user("curator")
    resp = await client.post("/api/v1/playlist/", json={"description": "no name"}, headers=auth_headers(owner.id))
    assert resp.status_code == 400
    assert resp.json()["message"] == "name is required"
