"""
File Upload Utility - validate uploaded files and stage them on disk.

Upload kinds:
- resume: PDF / Word documents, max 5MB
- image: profile pictures and startup logos, max 2MB

The staged temp file is handed to UploadService, which removes it after
the media host has answered.
"""

import os
import tempfile
from typing import Tuple

from fastapi import UploadFile

from app.core.errors import InvalidInput

MB = 1024 * 1024

UPLOAD_RULES = {
    "resume": {"extensions": {".pdf", ".doc", ".docx"}, "max_mb": 5},
    "image": {"extensions": {".png", ".jpg", ".jpeg", ".webp"}, "max_mb": 2},
}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def save_upload_to_temp(file: UploadFile, kind: str) -> Tuple[str, str]:
    """
    Validate an uploaded file and write it to a temp file.

    Args:
        file: FastAPI UploadFile
        kind: "resume" or "image"

    Returns:
        Tuple of (temp_file_path, mime_type)

    Raises:
        InvalidInput on missing file, bad extension, empty or oversized content
    """
    rules = UPLOAD_RULES[kind]

    if file is None or not file.filename:
        raise InvalidInput("No file provided")

    ext = get_file_extension(file.filename)
    if ext not in rules["extensions"]:
        allowed = ", ".join(sorted(rules["extensions"]))
        raise InvalidInput(f"Unsupported file type '{ext}'. Allowed: {allowed}")

    content = await file.read()

    if not content:
        raise InvalidInput("Uploaded file is empty")

    if len(content) > rules["max_mb"] * MB:
        raise InvalidInput(f"File too large. Maximum size: {rules['max_mb']}MB")

    fd, path = tempfile.mkstemp(suffix=ext, prefix=f"{kind}-")
    with os.fdopen(fd, "wb") as handle:
        handle.write(content)

    return path, file.content_type or "application/octet-stream"
