"""
Local file storage for chat attachments.

Uploads are streamed into ``settings.UPLOAD_DIR`` under a random name and
served back by the static mount at ``settings.UPLOAD_URL_PREFIX``.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from mentorhub.config import settings
from mentorhub.utils.errors import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StoredFile:
    url: str
    name: str
    size: int
    content_type: str
    path: str


def _upload_root() -> Path:
    root = Path(settings.UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root


def _public_url(stored_name: str) -> str:
    prefix = settings.UPLOAD_URL_PREFIX.rstrip("/")
    url = f"{prefix}/{stored_name}"
    if settings.PUBLIC_BASE_URL:
        url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}{url}"
    return url


def store_upload(upload: Optional[UploadFile]) -> StoredFile:
    """Persist an upload and return where it can be fetched from."""
    if upload is None or not upload.filename:
        raise ValidationError("No file uploaded")

    original_name = Path(upload.filename).name
    suffix = Path(original_name).suffix.lower()
    stored_name = f"{uuid.uuid4().hex}{suffix}"
    target = _upload_root() / stored_name

    size = 0
    with target.open("wb") as out:
        while True:
            chunk = upload.file.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > settings.MAX_UPLOAD_BYTES:
                out.close()
                target.unlink(missing_ok=True)
                raise ValidationError(
                    f"File exceeds the {settings.MAX_UPLOAD_BYTES} byte upload limit"
                )
            out.write(chunk)

    if size == 0:
        target.unlink(missing_ok=True)
        raise ValidationError("Uploaded file is empty")

    content_type = upload.content_type or "application/octet-stream"
    logger.info("Stored upload %s as %s (%s bytes, %s)", original_name, stored_name, size, content_type)
    return StoredFile(
        url=_public_url(stored_name),
        name=original_name,
        size=size,
        content_type=content_type,
        path=str(target),
    )


def discard_upload(stored: StoredFile) -> None:
    """Remove a stored upload that no message ended up referencing."""
    Path(stored.path).unlink(missing_ok=True)
    logger.info("Discarded orphaned upload %s", stored.path)
