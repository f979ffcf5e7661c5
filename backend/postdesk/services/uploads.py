"""Featured image storage on the local upload directory."""

import logging
import os
import uuid
import magic
from pathlib import Path
from typing import Optional
from postdesk.core.config import settings
from postdesk.core.errors import ValidationError

logger = logging.getLogger(__name__)

UNSUPPORTED_TYPE = (
    "File type not supported. Please upload an image file (JPEG, PNG, GIF, WEBP)"
)

# Stored files are named after the type found in their bytes
EXTENSIONS_BY_TYPE = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def upload_dir() -> Path:
    """The upload directory, created on first use."""
    path = Path(settings.UPLOAD_ROOT)
    path.mkdir(parents=True, exist_ok=True)
    return path


def too_large_message() -> str:
    return f"File too large (maximum {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB)"


def store_image(content: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
    """
    Validate and save an uploaded image under a generated unique name.

    The declared content type is only a first filter. The stored type and
    extension come from the file's magic bytes; the client filename is
    never used on disk.

    Returns:
        Public URL of the stored file

    Raises:
        ValidationError: Missing file, unsupported type or oversized content
    """
    content_type = (content_type or "").lower()
    if content_type not in settings.ALLOWED_IMAGE_TYPES:
        raise ValidationError(UNSUPPORTED_TYPE)

    if not content:
        raise ValidationError("No file uploaded")

    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(too_large_message())

    # Validate actual file type using magic bytes
    mime_type = magic.from_buffer(content, mime=True)
    if mime_type not in settings.ALLOWED_IMAGE_TYPES or mime_type not in EXTENSIONS_BY_TYPE:
        logger.warning(
            f"Invalid file type '{mime_type}' (magic bytes) for upload '{filename}' "
            f"declared as '{content_type}'"
        )
        raise ValidationError(UNSUPPORTED_TYPE)

    if mime_type != content_type:
        logger.info(f"Upload '{filename}' declared as {content_type}, detected {mime_type}")

    unique_name = f"{uuid.uuid4()}.{EXTENSIONS_BY_TYPE[mime_type]}"
    filepath = upload_dir() / unique_name
    with open(filepath, "wb") as f:
        f.write(content)

    logger.info(f"Stored upload {unique_name} ({len(content)} bytes, type: {mime_type})")
    return f"{settings.UPLOAD_URL_PREFIX}/{unique_name}"


def local_upload_path(file_url: Optional[str]) -> Optional[Path]:
    """Map an upload URL back to its file; None for anything not stored here."""
    prefix = settings.UPLOAD_URL_PREFIX.rstrip("/") + "/"
    if not file_url or not file_url.startswith(prefix):
        return None
    name = os.path.basename(file_url[len(prefix):])
    if not name:
        return None
    return Path(settings.UPLOAD_ROOT) / name


def delete_upload(file_url: Optional[str]) -> bool:
    """
    Remove a stored upload. Returns True when a file was deleted.

    Filesystem errors are logged and reported as False; callers run this
    after their transaction has committed.
    """
    path = local_upload_path(file_url)
    if path is None:
        return False
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Could not delete upload {path.name}: {e}")
        return False
    logger.info(f"Deleted orphaned upload {path.name}")
    return True
