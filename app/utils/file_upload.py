"""
File Upload Utility - store user-supplied files and return their public URL.

Supported kinds:
- image    (.jpg, .jpeg, .png, .webp, .gif)  avatars, cover images, company logos
- document (.pdf, .doc, .docx)               resumes

Files are written under settings.upload_dir with a random name and served
by the StaticFiles mount in app.main.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.core.config import get_settings
from app.core.errors import DependencyError, ValidationError

logger = logging.getLogger(__name__)

MB = 1024 * 1024

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.gif'}
DOCUMENT_EXTENSIONS = {'.pdf', '.doc', '.docx'}

UPLOAD_RULES = {
    "image": (IMAGE_EXTENSIONS, 2 * MB),
    "document": (DOCUMENT_EXTENSIONS, 5 * MB),
}


@dataclass(frozen=True)
class StoredFile:
    url: str
    original_name: str
    path: Path


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def save_upload(file: UploadFile, kind: str, folder: str) -> StoredFile:
    """
    Validate and store an uploaded file.

    Args:
        file: FastAPI UploadFile
        kind: "image" or "document"
        folder: sub-directory, e.g. "avatars", "resumes"

    Raises:
        ValidationError on bad name / type / size, DependencyError if it cannot be written
    """
    allowed, max_bytes = UPLOAD_RULES[kind]

    if not file.filename:
        raise ValidationError("No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in allowed:
        raise ValidationError(
            f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(allowed))}"
        )

    content = await file.read()
    if not content:
        raise ValidationError("Uploaded file is empty")
    if len(content) > max_bytes:
        raise ValidationError(f"File too large. Maximum size: {max_bytes // MB}MB")

    settings = get_settings()
    target_dir = Path(settings.upload_dir) / folder
    filename = f"{uuid.uuid4().hex}{ext}"
    path = target_dir / filename
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    except OSError as e:
        logger.error("Could not store upload %s: %s", path, e)
        raise DependencyError("Error while uploading file") from e

    url = f"{settings.upload_url_prefix.rstrip('/')}/{folder}/{filename}"
    return StoredFile(url=url, original_name=file.filename, path=path)


async def save_optional_upload(file: Optional[UploadFile], kind: str, folder: str) -> Optional[StoredFile]:
    """Same as save_upload, but an absent (or empty multipart) field gives None."""
    if file is None or not file.filename:
        return None
    return await save_upload(file, kind, folder)


def remove_upload(stored: Optional[StoredFile]) -> None:
    """Delete a stored file after a failed multi-step operation."""
    if stored is None:
        return
    try:
        stored.path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove upload %s: %s", stored.path, e)
