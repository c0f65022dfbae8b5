import asyncio
import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import aiofiles
import boto3
from botocore.exceptions import ClientError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from jevah.config import settings
from jevah.errors import BadRequestError

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/ogg": "ogv",
    "video/avi": "avi",
    "video/x-msvideo": "avi",
    "video/quicktime": "mov",
    "video/mov": "mov",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/ogg": "ogg",
    "audio/aac": "aac",
    "audio/flac": "flac",
    "application/pdf": "pdf",
    "application/epub+zip": "epub",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def extension_for(mime_type: str) -> str:
    ext = MIME_EXTENSIONS.get((mime_type or "").lower())
    if not ext:
        raise BadRequestError(f"Unsupported MIME type: {mime_type}")
    return ext


def build_object_key(folder: str, mime_type: str) -> str:
    stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
    return f"{folder.strip('/')}/{stamp}-{uuid.uuid4().hex}.{extension_for(mime_type)}"


class S3Storage:
    """
    S3-compatible object storage (Cloudflare R2 in production).

    boto3 is blocking, every call runs in the thread pool.
    """

    def __init__(self):
        self.client = boto3.client(
            "s3",
            endpoint_url=settings.STORAGE_ENDPOINT_URL,
            region_name=settings.STORAGE_REGION,
            aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID,
            aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
        )
        self.bucket = settings.STORAGE_BUCKET

    async def upload(self, data: bytes, folder: str, mime_type: str) -> Dict[str, str]:
        key = build_object_key(folder, mime_type)
        await asyncio.to_thread(self._upload_sync, key, data, mime_type)
        url = await asyncio.to_thread(self._presign_sync, key)
        logger.info(f"Object uploaded: bucket={self.bucket} key={key}")
        return {"url": url, "objectKey": key}

    async def delete(self, object_key: str) -> None:
        await asyncio.to_thread(self._delete_sync, object_key)
        logger.info(f"Object deleted: bucket={self.bucket} key={object_key}")

    async def presigned_url(self, object_key: str) -> str:
        return await asyncio.to_thread(self._presign_sync, object_key)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ClientError),
    )
    def _upload_sync(self, key: str, data: bytes, mime_type: str):
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=mime_type)

    def _delete_sync(self, key: str):
        self.client.delete_object(Bucket=self.bucket, Key=key)

    def _presign_sync(self, key: str) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=settings.STORAGE_URL_EXPIRES,
        )


class LocalStorage:
    """Writes objects under the static upload directory (development)."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.LOCAL_UPLOAD_DIR)

    async def upload(self, data: bytes, folder: str, mime_type: str) -> Dict[str, str]:
        key = build_object_key(folder, mime_type)
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as buffer:
            await buffer.write(data)
        logger.info(f"Object stored locally: {path}")
        return {"url": f"{settings.API_URL}/static/upload/{key}", "objectKey": key}

    async def delete(self, object_key: str) -> None:
        path = self.root / object_key
        if path.exists():
            os.remove(path)

    async def presigned_url(self, object_key: str) -> str:
        return f"{settings.API_URL}/static/upload/{object_key}"


_storage = None


def get_storage():
    """FastAPI dependency returning the configured storage backend."""
    global _storage
    if _storage is None:
        _storage = S3Storage() if settings.storage_enabled else LocalStorage()
    return _storage
