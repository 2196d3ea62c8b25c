import uuid
import logging
from datetime import datetime
from typing import Optional

import httpx

from .errors import UploadError, ValidationError

logger = logging.getLogger(__name__)


def build_object_path(folder: str, prefix: str, extension: str) -> str:
    """Bucket-relative path like status_images/image_20240101120000_1a2b3c4d.jpg"""
    timestamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
    return f"{folder.strip('/')}/{prefix}_{timestamp}_{uuid.uuid4().hex[:8]}.{extension}"


class StorageClient:
    """Uploads and deletes objects through the Supabase storage HTTP API"""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        public_base_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.object_url = f"{self.base_url}/storage/v1/object"
        self.public_base_url = (public_base_url or self.object_url).rstrip("/")
        self.bucket = bucket
        self.service_key = service_key
        self.client = client or httpx.AsyncClient(timeout=timeout)

        if not base_url or not service_key:
            logger.warning("Object storage not properly configured - uploads will fail")
        logger.info(f"Storage client ready for bucket '{self.bucket}'")

    @property
    def _headers(self) -> dict:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/public/{self.bucket}/{path}"

    def path_from_url(self, url: str) -> str:
        """Reverse public_url(); raises ValidationError for foreign URLs"""
        marker = f"/public/{self.bucket}/"
        if not url or marker not in url:
            raise ValidationError("URL does not point to this storage bucket")
        path = url.rsplit(marker, 1)[1].split("?", 1)[0]
        if not path:
            raise ValidationError("URL does not contain an object path")
        return path

    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        """Upload bytes to the bucket and return the public URL"""
        endpoint = f"{self.object_url}/{self.bucket}/{path}"
        headers = {**self._headers, "Content-Type": content_type}
        logger.info(f"[UPLOAD] Uploading {len(data)} bytes to '{path}' ({content_type})")

        try:
            response = await self.client.put(endpoint, content=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"[UPLOAD] Transport error uploading '{path}': {e}")
            raise UploadError(f"Failed to upload media: {e}") from e

        if not response.is_success:
            logger.error(f"[UPLOAD] Storage rejected '{path}': {response.status_code} {response.text}")
            raise UploadError(f"Storage rejected upload with status {response.status_code}")

        url = self.public_url(path)
        logger.info(f"[UPLOAD] Stored object at {url}")
        return url

    async def delete(self, url: str) -> None:
        """Delete the object behind a public URL"""
        path = self.path_from_url(url)
        endpoint = f"{self.object_url}/{self.bucket}/{path}"
        logger.info(f"Deleting object '{path}' from bucket '{self.bucket}'")

        try:
            response = await self.client.delete(endpoint, headers=self._headers)
        except httpx.HTTPError as e:
            logger.error(f"Transport error deleting '{path}': {e}")
            raise UploadError(f"Failed to delete media: {e}") from e

        if not response.is_success:
            logger.error(f"Storage refused delete of '{path}': {response.status_code}")
            raise UploadError(f"Storage rejected delete with status {response.status_code}")

    async def close(self) -> None:
        await self.client.aclose()
