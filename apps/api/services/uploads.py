"""Staging of multipart uploads on local disk before they reach the asset host."""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from config import settings
from services.errors import ApiError, InvalidArgumentError

logger = logging.getLogger(__name__)

ALLOWED_VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".webm", ".avi", ".mkv"}
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
ALLOWED_MIME_PREFIXES = {"video": "video/", "image": "image/"}


def _sanitize_filename(filename: str, fallback: str) -> str:
    base = os.path.basename(filename or fallback)
    safe = "".join(ch if ch.isalnum() or ch in ("-", "_", ".") else "_" for ch in base)
    return safe or fallback


def _max_bytes(kind: str) -> int:
    megabytes = settings.MAX_VIDEO_UPLOAD_MB if kind == "video" else settings.MAX_IMAGE_UPLOAD_MB
    return max(int(megabytes), 1) * 1024 * 1024


async def stage_upload(file: Optional[UploadFile], kind: str, field: str) -> Path:
    """Write an uploaded file to the temp directory and return its path."""
    if file is None or not (file.filename or "").strip():
        raise InvalidArgumentError(f"{field} file is required")

    fallback = "upload.mp4" if kind == "video" else "upload.jpg"
    original_filename = _sanitize_filename(file.filename or fallback, fallback)
    suffix = Path(original_filename).suffix.lower()
    content_type = (file.content_type or "").lower()
    allowed_extensions = ALLOWED_VIDEO_EXTENSIONS if kind == "video" else ALLOWED_IMAGE_EXTENSIONS

    if suffix not in allowed_extensions and not content_type.startswith(ALLOWED_MIME_PREFIXES[kind]):
        raise InvalidArgumentError(f"Unsupported file type for {field}. Upload a {kind} file.")

    temp_dir = Path(settings.UPLOAD_TEMP_DIR)
    temp_dir.mkdir(parents=True, exist_ok=True)
    destination = temp_dir / f"{uuid.uuid4().hex}_{original_filename}"
    max_bytes = _max_bytes(kind)

    total_size = 0
    try:
        with destination.open("wb") as out:
            while True:
                chunk = await file.read(1024 * 1024)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > max_bytes:
                    out.close()
                    destination.unlink(missing_ok=True)
                    raise ApiError(
                        f"{field} is too large. Max upload size is {max_bytes // (1024 * 1024)}MB.",
                        status_code=413,
                    )
                out.write(chunk)
    finally:
        await file.close()

    if total_size == 0:
        destination.unlink(missing_ok=True)
        raise InvalidArgumentError(f"{field} file is empty")
    return destination


def discard_staged(*paths: Optional[Path]) -> None:
    """Remove staged files the asset host did not consume."""
    for path in paths:
        if path is None:
            continue
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not cleanup staged upload %s: %s", path, exc)
