import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import ExternalServiceError, UploadRejected
from app.core.metrics import S3_UPLOADS, S3_UPLOAD_DURATION
from app.core.s3_client import upload_file

logger = logging.getLogger(__name__)

# content type -> extension used when the filename carries none
ALLOWED_CONTENT_TYPES = {
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

_KEY_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class StoredUpload:
    url: str
    filename: str
    content_type: str
    size: int


def file_extension(filename: Optional[str], content_type: str) -> str:
    if filename and "." in filename:
        extension = filename.rsplit(".", 1)[-1].strip().lower()
        if extension and extension.isalnum():
            return extension
    return ALLOWED_CONTENT_TYPES.get(content_type, "bin")


def generate_file_key(extension: str, now: Optional[float] = None) -> str:
    timestamp = int((now if now is not None else time.time()) * 1000)
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(7))
    return f"uploads/{timestamp}-{suffix}.{extension}"


def validate_upload(content_type: Optional[str], size: int) -> None:
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise UploadRejected(
            "File type not allowed. Only videos (mp4, webm, mov) and images (jpg, png, gif, webp) are accepted"
        )
    if size > settings.UPLOAD_MAX_BYTES:
        max_mb = settings.UPLOAD_MAX_BYTES // (1024 * 1024)
        raise UploadRejected(f"File is too large. Maximum {max_mb}MB.")


async def store_upload(file: Optional[UploadFile]) -> StoredUpload:
    """Validate a creative asset and push it to object storage."""
    if file is None:
        S3_UPLOADS.labels(status="rejected").inc()
        raise UploadRejected("No file was sent")

    content = await file.read(settings.UPLOAD_MAX_BYTES + 1)
    try:
        validate_upload(file.content_type, len(content))
    except UploadRejected:
        S3_UPLOADS.labels(status="rejected").inc()
        raise

    file_key = generate_file_key(file_extension(file.filename, file.content_type))

    start_time = time.time()
    try:
        url = upload_file(content, file_key, file.content_type)
    except ExternalServiceError:
        S3_UPLOADS.labels(status="error").inc()
        raise
    finally:
        S3_UPLOAD_DURATION.observe(time.time() - start_time)

    S3_UPLOADS.labels(status="success").inc()
    return StoredUpload(
        url=url,
        filename=file_key.rsplit("/", 1)[-1],
        content_type=file.content_type,
        size=len(content),
    )
