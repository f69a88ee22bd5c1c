"""
Media asset host: stores uploaded binaries and hands back public URLs.

Entities keep the returned ``(url, asset_id)`` pairs verbatim; nothing else in
the application touches stored media directly.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import ffmpeg
from starlette.concurrency import run_in_threadpool

from config import settings

logger = logging.getLogger(__name__)

ASSET_KINDS = {"image", "video"}


@dataclass(frozen=True)
class UploadedAsset:
    url: str
    asset_id: str
    duration: Optional[float] = None


def get_media_duration_seconds(media_path: str) -> float:
    """
    Probe media metadata and return its duration in seconds.
    """
    try:
        probe = ffmpeg.probe(media_path)
        fmt = probe.get("format", {})
        duration = float(fmt.get("duration", 0.0) or 0.0)
        if duration <= 0:
            streams = probe.get("streams", [])
            for stream in streams:
                if stream.get("codec_type") == "video":
                    duration = float(stream.get("duration", 0.0) or 0.0)
                    if duration > 0:
                        break
        return max(0.0, round(duration, 3))
    except Exception as e:
        logger.warning(f"Could not probe media duration for {media_path}: {e}")
        return 0.0


class LocalAssetHost:
    """Asset host backed by a local directory served under ``MEDIA_BASE_URL``."""

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.MEDIA_ROOT)
        self.base_url = (base_url or settings.MEDIA_BASE_URL).rstrip("/")

    def _path_for(self, asset_id: str) -> Path:
        candidate = (self.root / asset_id).resolve()
        if self.root.resolve() not in candidate.parents:
            raise ValueError(f"Asset id escapes media root: {asset_id}")
        return candidate

    def _store(self, local_path: Path, kind: str) -> UploadedAsset:
        suffix = local_path.suffix.lower()
        asset_id = f"{kind}/{uuid.uuid4().hex}{suffix}"
        destination = self._path_for(asset_id)
        destination.parent.mkdir(parents=True, exist_ok=True)

        duration = get_media_duration_seconds(str(local_path)) if kind == "video" else None
        shutil.move(str(local_path), destination)
        return UploadedAsset(url=f"{self.base_url}/{asset_id}", asset_id=asset_id, duration=duration)

    async def upload(self, local_path: str, kind: str = "image") -> UploadedAsset:
        """Move a local file into the media root; the local copy is consumed."""
        if kind not in ASSET_KINDS:
            raise ValueError(f"Unsupported asset kind: {kind}")
        path = Path(local_path)
        if not path.is_file():
            raise FileNotFoundError(f"Upload source missing: {local_path}")
        asset = await run_in_threadpool(self._store, path, kind)
        logger.info("asset_uploaded kind=%s asset=%s", kind, asset.asset_id)
        return asset

    async def delete(self, asset_id: Optional[str], kind: str = "image") -> bool:
        """Remove a stored asset. Returns False when there was nothing to delete."""
        if not asset_id:
            return False
        path = self._path_for(asset_id)
        if not path.exists():
            logger.warning("Asset %s (%s) already missing from media root", asset_id, kind)
            return False
        await run_in_threadpool(path.unlink)
        logger.info("asset_deleted kind=%s asset=%s", kind, asset_id)
        return True


async def delete_assets_quietly(asset_host: LocalAssetHost, *assets: tuple) -> None:
    """Best-effort removal of replaced or orphaned assets after a committed change."""
    for asset_id, kind in assets:
        try:
            await asset_host.delete(asset_id, kind)
        except Exception as exc:
            logger.warning("Could not delete asset %s (%s): %s", asset_id, kind, exc)


def get_asset_host() -> LocalAssetHost:
    """FastAPI dependency; override in tests."""
    return LocalAssetHost()
