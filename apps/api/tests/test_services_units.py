from datetime import datetime

import pytest

from services.asset_host import LocalAssetHost, delete_assets_quietly
from services.crypto import decrypt_token, encrypt_token
from services.errors import ForbiddenError, InvalidArgumentError
from services.identity import (
    ensure_email,
    ensure_entity_id,
    ensure_optional_entity_id,
    ensure_owner,
    ensure_username,
)
from services.projections import nest_row
from services.queries import resolve_video_sort, search_terms
from services.session_token import REFRESH_TOKEN_TYPE, create_access_token, create_refresh_token, decode_token


def test_entity_ids_are_canonicalized_or_rejected():
    raw = "  3F2504E0-4F89-41D3-9A0C-0305E82C3301 "
    assert ensure_entity_id(raw, "video_id") == "3f2504e0-4f89-41d3-9a0c-0305e82c3301"
    assert ensure_optional_entity_id("", "user_id") is None
    with pytest.raises(InvalidArgumentError, match="Invalid video_id"):
        ensure_entity_id("abc", "video_id")
    with pytest.raises(InvalidArgumentError):
        ensure_entity_id(None, "video_id")


def test_account_identity_normalization():
    assert ensure_username(" @Some.User ") == "some.user"
    assert ensure_email(" Person@Example.COM ") == "person@example.com"
    with pytest.raises(InvalidArgumentError):
        ensure_username("a")
    with pytest.raises(InvalidArgumentError):
        ensure_email("not-an-email")


def test_ensure_owner():
    ensure_owner("u1", "u1", "edit this")
    with pytest.raises(ForbiddenError) as exc:
        ensure_owner("u1", "u2", "edit this")
    assert exc.value.status_code == 403


def test_nest_row_folds_prefixes_and_collapses_missing_joins():
    row = nest_row(
        {
            "id": "c1",
            "owner__id": "u1",
            "owner__username": "alice",
            "latest_video__id": None,
            "latest_video__title": None,
        }
    )
    assert row == {"id": "c1", "owner": {"id": "u1", "username": "alice"}, "latest_video": None}


def test_video_sort_resolution():
    column, descending = resolve_video_sort("createdAt", None)
    assert column.key == "created_at"
    assert descending is True
    assert resolve_video_sort("views", "ASC")[1] is False
    with pytest.raises(InvalidArgumentError):
        resolve_video_sort("views", "sideways")
    assert search_terms("  cats   and dogs ") == ["cats", "and", "dogs"]


def test_tokens_are_typed():
    access = create_access_token("user-1", "a@example.com", "alice")
    refresh = create_refresh_token("user-1")
    assert decode_token(access["token"])["username"] == "alice"
    assert decode_token(refresh["token"], REFRESH_TOKEN_TYPE)["sub"] == "user-1"
    with pytest.raises(ValueError):
        decode_token(refresh["token"])
    assert refresh["expires_at"] > int(datetime.now().timestamp())


def test_refresh_token_encryption_round_trip():
    encrypted = encrypt_token("refresh-value")
    assert encrypted != "refresh-value"
    assert decrypt_token(encrypted) == "refresh-value"
    assert decrypt_token("garbage") is None


@pytest.mark.asyncio
async def test_local_asset_host_upload_and_delete(tmp_path, monkeypatch):
    import services.asset_host as asset_host_module

    monkeypatch.setattr(asset_host_module, "get_media_duration_seconds", lambda path: 3.25)
    host = LocalAssetHost(root=str(tmp_path / "media"), base_url="http://cdn.test/media/")
    source = tmp_path / "clip.MP4"
    source.write_bytes(b"video-bytes")

    asset = await host.upload(str(source), "video")
    assert asset.asset_id.startswith("video/")
    assert asset.asset_id.endswith(".mp4")
    assert asset.url == f"http://cdn.test/media/{asset.asset_id}"
    assert asset.duration == 3.25
    assert not source.exists()
    assert (tmp_path / "media" / asset.asset_id).read_bytes() == b"video-bytes"

    assert await host.delete(asset.asset_id, "video") is True
    assert await host.delete(asset.asset_id, "video") is False
    with pytest.raises(ValueError):
        await host.delete("../outside.txt", "image")

    # Cleanup failures are logged, never raised.
    await delete_assets_quietly(host, ("../outside.txt", "image"), (None, "image"))


@pytest.mark.asyncio
async def test_local_asset_host_rejects_unknown_kind(tmp_path):
    host = LocalAssetHost(root=str(tmp_path / "media"))
    source = tmp_path / "a.bin"
    source.write_bytes(b"x")
    with pytest.raises(ValueError):
        await host.upload(str(source), "audio")


def test_refresh_token_sealed_with_another_key_is_rejected(monkeypatch):
    import services.crypto as crypto_module

    sealed = encrypt_token("refresh-value")
    monkeypatch.setattr(crypto_module.settings, "ENCRYPTION_KEY", "a-completely-different-secret")
    assert decrypt_token(sealed) is None


def test_entry_point_serves_on_configured_host_and_port(monkeypatch):
    import runpy

    import uvicorn
    from config import settings

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(settings, "API_HOST", "127.0.0.1")
    monkeypatch.setattr(settings, "API_PORT", 9123)

    runpy.run_module("main", run_name="__main__")

    assert calls == [("main:app", {"host": "127.0.0.1", "port": 9123})]
