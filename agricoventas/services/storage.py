# agricoventas/services/storage.py
"""
Local media storage for uploaded images and certificate documents.

Files live under MEDIA_ROOT/<folder>/ and are served by the StaticFiles
mount at MEDIA_URL_PREFIX; the returned URL is what records persist.
"""
import logging
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlparse

import aiofiles
from fastapi import UploadFile

from agricoventas.core.config import Settings, get_settings
from agricoventas.core.exceptions import UploadValidationError

logger = logging.getLogger(__name__)

IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
DOCUMENT_TYPES = IMAGE_TYPES | {"application/pdf"}

PROFILE_FOLDER = "profiles"
PRODUCT_FOLDER = "products"
CERTIFICATION_FOLDER = "certifications"


def _sanitize_filename(filename: Optional[str]) -> str:
    name = Path(filename or "upload").name
    sanitized = re.sub(r"[^A-Za-z0-9._-]", "_", name)
    return sanitized or "upload"


class MediaStorage:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.root = Path(self.settings.MEDIA_ROOT).expanduser()
        self.url_prefix = self.settings.MEDIA_URL_PREFIX.rstrip("/")

    def public_url(self, folder: str, filename: str) -> str:
        return f"{self.settings.MEDIA_BASE_URL.rstrip('/')}{self.url_prefix}/{folder}/{filename}"

    async def save(self, upload: UploadFile, folder: str, allowed_types: Iterable[str] = IMAGE_TYPES) -> str:
        """
        Validate and store an uploaded file.

        Args:
            upload: The multipart file
            folder: Sub-directory under the media root
            allowed_types: Accepted MIME types

        Returns:
            Public URL of the stored file

        Raises:
            UploadValidationError: Wrong MIME type, empty or too large
        """
        allowed = set(allowed_types)
        if upload.content_type not in allowed:
            raise UploadValidationError(
                f"Unsupported file type: {upload.content_type}",
                details={"allowedTypes": sorted(allowed)},
            )

        max_size = self.settings.MAX_UPLOAD_SIZE
        content = await upload.read(max_size + 1)
        if len(content) > max_size:
            raise UploadValidationError(
                f"File too large. Maximum size is {max_size // (1024 * 1024)}MB",
                details={"maxSize": max_size},
            )
        if not content:
            raise UploadValidationError("Uploaded file is empty")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{timestamp}_{uuid.uuid4().hex[:8]}_{_sanitize_filename(upload.filename)}"
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(target_dir / filename, "wb") as out_file:
            await out_file.write(content)

        logger.info(f"Stored upload {filename} ({len(content)} bytes) in {folder}")
        return self.public_url(folder, filename)

    def path_for_url(self, url: Optional[str]) -> Optional[Path]:
        if not url:
            return None
        path = urlparse(url).path
        if not path.startswith(f"{self.url_prefix}/"):
            return None
        relative = path[len(self.url_prefix) + 1:]
        candidate = (self.root / relative).resolve()
        if self.root.resolve() not in candidate.parents:
            return None
        return candidate

    def delete(self, url: Optional[str]) -> bool:
        """Remove a previously stored file; failures are logged, never raised."""
        try:
            path = self.path_for_url(url)
            if path is None:
                return False
            path.unlink(missing_ok=True)
            return True
        except Exception as e:
            logger.warning(f"Failed to delete media file {url}: {e}")
            return False


def get_storage() -> MediaStorage:
    return MediaStorage()
