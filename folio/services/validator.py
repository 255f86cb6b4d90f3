"""Upload validation: MIME allow-list and size ceiling, checked before any I/O."""

from dataclasses import dataclass
from typing import Optional

from folio.config import settings

# MIME type -> stored file extension
IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}

INVALID_TYPE_MESSAGE = "Invalid file type. Please upload JPEG, PNG, or WebP."
EMPTY_FILE_MESSAGE = "No file provided"


def too_large_message(max_bytes: int) -> str:
    return f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."


@dataclass(frozen=True)
class UploadCheck:
    ok: bool
    reason: Optional[str] = None
    kind: Optional[str] = None  # 'type' | 'size' | 'empty'


def validate_upload(
    content_type: str | None,
    size: int,
    allowed_types: list[str] | None = None,
    max_bytes: int | None = None,
) -> UploadCheck:
    """Check an upload's declared type and byte size.

    Type is checked first, so a disallowed type is reported as such even when
    the file is also over the ceiling. A file exactly at the ceiling passes.
    """
    allowed = allowed_types if allowed_types is not None else settings.allowed_mime_types
    ceiling = max_bytes if max_bytes is not None else settings.max_upload_bytes

    if (content_type or "").lower() not in allowed:
        return UploadCheck(ok=False, reason=INVALID_TYPE_MESSAGE, kind="type")
    if size <= 0:
        return UploadCheck(ok=False, reason=EMPTY_FILE_MESSAGE, kind="empty")
    if size > ceiling:
        return UploadCheck(ok=False, reason=too_large_message(ceiling), kind="size")
    return UploadCheck(ok=True)
