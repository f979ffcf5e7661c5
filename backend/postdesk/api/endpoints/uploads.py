from fastapi import APIRouter, Depends, File, Request, UploadFile
from typing import Optional
import logging
from postdesk.core.auth import get_current_user
from postdesk.core.config import settings
from postdesk.core.errors import ValidationError
from postdesk.core.logging_config import log_security_event, get_client_ip
from postdesk.models.user import User
from postdesk.services.uploads import store_image, too_large_message

router = APIRouter()
logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


async def read_capped(file: UploadFile) -> bytes:
    """Read an upload in chunks, refusing it once it passes MAX_UPLOAD_SIZE."""
    content = b""
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            return content
        content += chunk
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(too_large_message())


@router.post("/upload")
async def upload_image(
    request: Request,
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
):
    """
    Store an image for use as a post's featured image.

    Accepts JPEG, PNG, GIF and WEBP up to the configured size limit.
    """
    if file is None:
        raise ValidationError("No file uploaded")

    size = 0
    try:
        content = await read_capped(file)
        size = len(content)
        file_url = store_image(content, file.filename, file.content_type)
    except ValidationError as e:
        log_security_event(
            event_type="upload.rejected",
            message=f"Upload rejected: {e.message}",
            level=logging.WARNING,
            user_id=str(current_user.id),
            ip_address=get_client_ip(request),
            request_method="POST",
            request_path="/api/upload",
            event_category="content",
            content_type=file.content_type,
            size=size,
        )
        raise

    return {"success": True, "file_url": file_url}
