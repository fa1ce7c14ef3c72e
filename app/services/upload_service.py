"""
Upload Service - hands files to the media host (Cloudinary) and returns
the durable URL.

Credentials are passed per call instead of through cloudinary.config(),
so the SDK holds no global state and tests can swap the uploader.

Anything other than a response carrying secure_url is a failure.
"""

import os
from typing import Callable

import cloudinary.uploader
import structlog
from cloudinary.exceptions import Error as CloudinaryError

from app.core.config import get_settings
from app.core.errors import InternalError

logger = structlog.get_logger(__name__)


class UploadService:
    """Thin wrapper over the Cloudinary SDK. One instance per request is fine."""

    def __init__(self, uploader: Callable[..., dict] = None):
        self.settings = get_settings()
        self._uploader = uploader or cloudinary.uploader.upload

    def upload(self, local_path: str, mime_type: str) -> str:
        """
        Upload a staged file and return its secure URL.

        The local file is removed whatever the outcome.

        Raises:
            InternalError: host not configured, unreachable, or no secure_url
        """
        try:
            return self._upload(local_path, mime_type)
        finally:
            try:
                os.remove(local_path)
            except FileNotFoundError:
                pass

    def _upload(self, local_path: str, mime_type: str) -> str:
        if not self.settings.cloudinary_configured:
            logger.error("upload_not_configured")
            raise InternalError("File upload failed")

        try:
            result = self._uploader(
                local_path,
                resource_type="auto",
                cloud_name=self.settings.cloudinary_cloud_name,
                api_key=self.settings.cloudinary_api_key,
                api_secret=self.settings.cloudinary_api_secret,
                timeout=self.settings.upload_timeout_seconds,
            )
        except (CloudinaryError, OSError) as e:
            logger.error("upload_request_failed", mime_type=mime_type, error=str(e))
            raise InternalError("File upload failed")

        url = result.get("secure_url") if isinstance(result, dict) else None
        if not url:
            logger.error("upload_missing_url", mime_type=mime_type)
            raise InternalError("File upload failed")

        logger.info("file_uploaded", url=url, mime_type=mime_type)
        return url


def get_upload_service() -> UploadService:
    return UploadService()
