"""
Object storage client for question images.

Talks to a Supabase-style storage REST API:
    POST {base}/storage/v1/object/{bucket}/{path}          upload
    GET  {base}/storage/v1/object/public/{bucket}/{path}   public read
"""

from datetime import datetime
from typing import Optional
import logging
import mimetypes
import uuid

import httpx

from examdesk.exams.config import (
    STORAGE_URL, STORAGE_BUCKET, STORAGE_API_KEY, STORAGE_TIMEOUT_SECONDS
)
from examdesk.exams.errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp", "image/svg+xml"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024


class ObjectStore:
    def __init__(
        self,
        base_url: str = STORAGE_URL,
        bucket: str = STORAGE_BUCKET,
        api_key: str = STORAGE_API_KEY,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=STORAGE_TIMEOUT_SECONDS)

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    async def upload(self, data: bytes, content_type: str, prefix: str = "questions") -> str:
        """Store bytes and return the public URL."""
        if not data:
            raise ValidationError("Image is empty")
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"Unsupported image type: {content_type}")
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationError("Image exceeds 5 MB limit")

        ext = mimetypes.guess_extension(content_type) or ""
        stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
        path = f"{prefix}/{stamp}_{uuid.uuid4().hex[:8]}{ext}"

        try:
            response = await self._client.post(
                f"{self.base_url}/storage/v1/object/{self.bucket}/{path}",
                content=data,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "apikey": self.api_key,
                    "Content-Type": content_type,
                    "x-upsert": "false",
                    "cache-control": "3600",
                },
            )
        except httpx.HTTPError as e:
            logger.error("Image upload failed: %s", e)
            raise PersistenceError("Failed to upload image") from e

        if response.status_code >= 300:
            logger.error("Image upload rejected (%s): %s", response.status_code, response.text)
            raise PersistenceError("Failed to upload image")

        return self.public_url(path)

    async def close(self):
        await self._client.aclose()
