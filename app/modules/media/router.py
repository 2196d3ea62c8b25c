from typing import Any
import logging
import re

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from app.core.errors import AuthorizationError, ValidationError
from app.core.responses import ok
from app.deps import get_current_user, get_media_service
from app.modules.media.service import MediaService
from app.modules.user_management.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

FOLDER_PATTERN = re.compile(r"^[A-Za-z0-9_-]+(/[A-Za-z0-9_-]+)*$")

def _validate_folder(folder: str) -> str:
    folder = folder.strip("/") or "status_images"
    if not FOLDER_PATTERN.match(folder):
        raise ValidationError("Invalid folder name")
    return folder

@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form("status_images"),
    media: MediaService = Depends(get_media_service),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Compress and upload an image into the caller's own subfolder.
    Folders containing "profile" use the profile-picture profile.
    """
    data = await file.read()
    logger.info(f"User {current_user.id} uploading image '{file.filename}' to folder '{folder}'")
    result = await media.upload_image(data, f"{_validate_folder(folder)}/{current_user.id}")
    return ok("Image uploaded successfully", {"url": result.url, "blur_hash": result.blur_hash})

@router.delete("")
async def delete_image(
    url: str = Query(...),
    media: MediaService = Depends(get_media_service),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Delete an image the caller uploaded, by its public URL"""
    folders = media.object_path(url).split("/")[:-1]
    if current_user.id not in folders:
        logger.warning(f"User {current_user.id} tried to delete an image they do not own: {url}")
        raise AuthorizationError("You can only delete images you uploaded")

    await media.delete(url)
    return ok("Image deleted successfully")
