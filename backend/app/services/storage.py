"""Local uploads directory for class videos.

Files are written under ``settings.UPLOAD_DIR`` and exposed by the static
mount at ``settings.UPLOAD_URL_PREFIX``. Records store the public URL path.
"""
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

import aiofiles
from starlette.datastructures import UploadFile
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

from app.core.config import settings

logger = logging.getLogger(__name__)

# ─── Constants ───

VIDEO_EXTENSIONS = {".mp4", ".webm", ".mov", ".m4v", ".ogg", ".ogv", ".mkv", ".avi"}
CHUNK_SIZE = 1024 * 1024


class VideoUploadError(Exception):
    """Rejected upload. ``status_code`` is the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _url_for(filename: str) -> str:
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{filename}"


def _is_video(upload: UploadFile) -> bool:
    content_type = (upload.content_type or "").lower()
    suffix = PurePosixPath(upload.filename or "").suffix.lower()
    return content_type.startswith("video/") or suffix in VIDEO_EXTENSIONS


# ─── Core operations ───

async def save_video(upload: UploadFile) -> str:
    """Write an uploaded video to the uploads directory. Returns its URL path."""
    if not _is_video(upload):
        raise VideoUploadError(
            f"Unsupported file type '{upload.content_type or upload.filename}'. Upload a video file."
        )

    suffix = PurePosixPath(upload.filename or "").suffix.lower() or ".mp4"
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    filename = f"{stamp}-{uuid.uuid4().hex}{suffix}"
    target = upload_dir() / filename

    max_bytes = settings.MAX_VIDEO_SIZE_MB * 1024 * 1024
    written = 0
    async with aiofiles.open(target, "wb") as out:
        while chunk := await upload.read(CHUNK_SIZE):
            written += len(chunk)
            if written > max_bytes:
                break
            await out.write(chunk)

    if written == 0 or written > max_bytes:
        target.unlink(missing_ok=True)
        if written == 0:
            raise VideoUploadError("Uploaded video is empty.")
        raise VideoUploadError(
            f"Video exceeds {settings.MAX_VIDEO_SIZE_MB} MB limit.", status_code=413
        )

    logger.info("Stored video %s (%d bytes)", filename, written)
    return _url_for(filename)


def delete_video(url: str | None) -> bool:
    """Remove a file previously returned by ``save_video``.

    URLs that do not point into the uploads directory (external links) are
    left alone. Returns True when a file was removed.
    """
    prefix = settings.UPLOAD_URL_PREFIX.rstrip("/") + "/"
    if not url or not url.startswith(prefix):
        return False

    name = PurePosixPath(url[len(prefix):]).name
    if not name:
        return False
    path = Path(settings.UPLOAD_DIR) / name
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Video already missing: %s", path)
        return False
    logger.info("Deleted video %s", path)
    return True


# ─── Static serving ───

class UploadStaticFiles(StaticFiles):
    """StaticFiles with the cross-origin headers video players need."""

    async def get_response(self, path: str, scope: Scope) -> Response:
        response = await super().get_response(path, scope)
        if path.lower().endswith(".mp4"):
            response.headers["Content-Type"] = "video/mp4"
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"
        response.headers["Cross-Origin-Embedder-Policy"] = "credentialless"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        return response
