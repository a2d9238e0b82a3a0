import logging
import os
import uuid
from typing import Optional

from fastapi import UploadFile

from dayplanner.config import APP_URL, STORAGE_DIR

logger = logging.getLogger(__name__)

PROFILE_IMAGE_DIR = "profile_images"
MAX_IMAGE_BYTES = 2 * 1024 * 1024  # 2MB

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
}
ALLOWED_EXTENSIONS = {"jpeg", "jpg", "png", "gif"}

IMAGE_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"\xff\xd8\xff", "jpg"),
    (b"GIF87a", "gif"),
    (b"GIF89a", "gif"),
)


class InvalidImage(Exception):
    pass


def _extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def read_profile_image(upload: UploadFile) -> bytes:
    """Returns the image bytes or raises InvalidImage with a user facing message."""
    content_type = (upload.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES or _extension(upload.filename) not in ALLOWED_EXTENSIONS:
        raise InvalidImage("The image must be a file of type: jpeg, png, jpg, gif.")
    data = upload.file.read(MAX_IMAGE_BYTES + 1)
    if len(data) > MAX_IMAGE_BYTES:
        raise InvalidImage("The image may not be greater than 2048 kilobytes.")
    if not data:
        raise InvalidImage("The image failed to upload.")
    if sniff_image_type(data) is None:
        raise InvalidImage("The image field must be an image.")
    return data


def sniff_image_type(data: bytes) -> Optional[str]:
    """Identifies the image format from its leading bytes, not from client headers."""
    for signature, kind in IMAGE_SIGNATURES:
        if data.startswith(signature):
            return kind
    return None


def store_profile_image(data: bytes, filename: str) -> str:
    """Writes the image under STORAGE_DIR and returns its relative path."""
    ext = _extension(filename)
    if ext == "jpeg":
        ext = "jpg"
    relative_path = f"{PROFILE_IMAGE_DIR}/{uuid.uuid4().hex}.{ext}"
    full_path = os.path.join(STORAGE_DIR, relative_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    with open(full_path, "wb") as f:
        f.write(data)
    return relative_path


def delete_profile_image(relative_path: Optional[str]) -> None:
    if not relative_path:
        return
    full_path = os.path.join(STORAGE_DIR, relative_path)
    if os.path.isfile(full_path):
        os.remove(full_path)


def public_url(relative_path: str) -> str:
    return f"{APP_URL}/storage/{relative_path}"
