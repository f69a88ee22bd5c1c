import pytest


@pytest.mark.asyncio
async def test_like_then_unlike_restores_state(client, seed, auth_headers):
    owner = await seed.user("creator")
    fan = await seed.user("fan")
    video = await seed.video(owner)

    liked = await client.post(f"/api/v1/likes/toggle/v/{video.id}", headers=auth_headers(fan.id))
    assert liked.status_code == 200
    assert liked.json()["data"] == {"is_liked": True, "likes_count": 1}

    detail = (await client.get(f"/api/v1/videos/{video.id}", headers=auth_headers(fan.id))).json()["data"]
    assert detail["is_liked"] is True
    assert detail["likes_count"] == 1

    unliked = await client.post(f"/api/v1/likes/toggle/v/{video.id}", headers=auth_headers(fan.id))
    assert unliked.json()["data"] == {"is_liked": False, "likes_count": 0}

    detail = (await client.get(f"/api/v1/videos/{video.id}", headers=auth_headers(fan.id))).json()["data"]
    assert detail["is_liked"] is False
    assert detail["likes_count"] == 0


@pytest.mark.asyncio
async def test_comment_and_tweet_likes_are_independent(client, seed, auth_headers):
    owner = await seed.user("creator")
    fan = await seed.user("fan")
    video = await seed.video(owner)
    comment = await seed.comment(video, owner)
    tweet = await seed.tweet(owner)

    await client.post(f"/api/v1/likes/toggle/v/{video.id}", headers=auth_headers(fan.id))
    comment_like = await client.post(f"/api/v1/likes/toggle/c/{comment.id}", headers=auth_headers(fan.id))
    tweet_like = await client.post(f"/api/v1/likes/toggle/t/{tweet.id}", headers=auth_headers(fan.id))
    assert comment_like.json()["data"] == {"is_liked": True, "likes_count": 1}
    assert tweet_like.json()["data"] == {"is_liked": True, "likes_count": 1}

    comments = (await client.get(f"/api/v1/comments/{video.id}", headers=auth_headers(fan.id))).json()["data"]
    assert comments["items"][0]["likes_count"] == 1
    assert comments["items"][0]["is_liked"] is True


@pytest.mark.asyncio
async def test_like_toggle_validates_subject(client, seed, auth_headers):
    fan = await seed.user("fan")

    malformed = await client.post("/api/v1/likes/toggle/c/xyz", headers=auth_headers(fan.id))
    assert malformed.status_code == 400

    missing = await client.post(
        "/api/v1/likes/toggle/t/00000000-0000-4000-8000-000000000000",
        headers=auth_headers(fan.id),
    )
    assert missing.status_code == 404

    anonymous = await client.post("/api/v1/likes/toggle/v/00000000-0000-4000-8000-000000000000")
    assert anonymous.status_code == 401


@pytest.mark.asyncio
async def test_liked_videos_lists_published_videos_most_recent_first(client, seed, auth_headers):
    owner = await seed.user("creator")
    fan = await seed.user("fan")
    older = await seed.video(owner, title="Older")
    newer = await seed.video(owner, title="Newer")
    hidden = await seed.video(owner, title="Hidden", published=False)
    await seed.like(fan, video_id=older.id)
    await seed.like(fan, video_id=hidden.id)
    await seed.like(fan, video_id=newer.id)

    resp = await client.get("/api/v1/likes/videos", headers=auth_headers(fan.id))
    assert resp.status_code == 200
    assert [item["title"] for item in resp.json()["data"]] == ["Newer", "Older"]


@pytest.mark.asyncio
async def test_subscriber_count_matches_subscription_rows(client, seed, auth_headers):
    channel = await seed.user("channel")
    first = await seed.user("first")
    second = await seed.user("second")
    video = await seed.video(channel)

    for subscriber in (first, second):
        resp = await client.post(f"/api/v1/subscriptions/c/{channel.id}", headers=auth_headers(subscriber.id))
        assert resp.json()["data"]["is_subscribed"] is True

    detail = (await client.get(f"/api/v1/videos/{video.id}")).json()["data"]
    assert detail["owner"]["subscribers_count"] == 2

    unsubscribed = await client.post(f"/api/v1/subscriptions/c/{channel.id}", headers=auth_headers(first.id))
    assert unsubscribed.json()["data"] == {"is_subscribed": False, "subscribers_count": 1}
    assert unsubscribed.json()["message"] == "Unsubscribed successfully"


@pytest.mark.asyncio
async def test_subscription_rejects_self_and_unknown_channels(client, seed, auth_headers):
    user = await seed.user("loner")

    own = await client.post(f"/api/v1/subscriptions/c/{user.id}", headers=auth_headers(user.id))
    assert own.status_code == 400

    unknown = await client.post(
        "/api/v1/subscriptions/c/00000000-0000-4000-8000-000000000000",
        headers=auth_headers(user.id),
    )
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_channel_subscribers_include_subscribe_back_flag(client, seed):
    channel = await seed.user("channel")
    mutual = await seed.user("mutual")
    follower = await seed.user("follower")
    await seed.subscription(follower, channel)
    await seed.subscription(mutual, channel)
    await seed.subscription(channel, mutual)

    resp = await client.get(f"/api/v1/subscriptions/c/{channel.id}")
    assert resp.status_code == 200
    subscribers = {item["username"]: item for item in resp.json()["data"]}
    assert set(subscribers) == {"mutual", "follower"}
    assert subscribers["mutual"]["subscribed_to_subscriber"] is True
    assert subscribers["mutual"]["subscribers_count"] == 1
    assert subscribers["follower"]["subscribed_to_subscriber"] is False
    assert subscribers["follower"]["subscribers_count"] == 0


@pytest.mark.asyncio
async def test_subscribed_channels_carry_latest_published_video(client, seed):
    fan = await seed.user("fan")
    busy = await seed.user("busy")
    quiet = await seed.user("quiet")
    await seed.video(busy, title="First")
    await seed.video(busy, title="Second")
    await seed.video(busy, title="Draft", published=False)
    await seed.subscription(fan, busy)
    await seed.subscription(fan, quiet)

    resp = await client.get(f"/api/v1/subscriptions/u/{fan.id}")
    assert resp.status_code == 200
    channels = {item["username"]: item for item in resp.json()["data"]}
    assert channels["busy"]["latest_video"]["title"] == "Second"
    assert channels["quiet"]["latest_video"] is None


@pytest.mark.asyncio
async def test_user_keyed_lists_distinguish_unknown_users_from_empty_ones(client, seed):
    missing_id = "00000000-0000-4000-8000-000000000000"
    for path in (
        f"/api/v1/subscriptions/c/{missing_id}",
        f"/api/v1/subscriptions/u/{missing_id}",
        f"/api/v1/playlist/user/{missing_id}",
    ):
        resp = await client.get(path)
        assert resp.status_code == 404, path
        assert resp.json()["success"] is False

    loner = await seed.user("loner")
    for path in (
        f"/api/v1/subscriptions/c/{loner.id}",
        f"/api/v1/subscriptions/u/{loner.id}",
        f"/api/v1/playlist/user/{loner.id}",
    ):
        resp = await client.get(path)
        assert resp.status_code == 200, path
        assert resp.json()["data"] == []
