"""
Object storage (S3 / MinIO) for profile avatars.

Objects are written to ``<user_id>/<unix_ms>.<ext>`` in the public
avatars bucket; the returned URL is stored on the profile.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from insurtrack.core.config import settings
from insurtrack.core.errors import StorageError
from insurtrack.core.logging import get_logger

logger = get_logger(__name__)


def avatar_key(user_id: uuid.UUID, extension: str) -> str:
    return f"{user_id}/{int(time.time() * 1000)}.{extension}"


class AvatarStore(Protocol):
    async def upload(self, key: str, data: bytes, content_type: str) -> str: ...


class S3AvatarStore:
    """boto3-backed store; blocking calls run in a worker thread."""

    def __init__(
        self,
        *,
        endpoint_url: str,
        public_url: str,
        bucket: str,
        access_key: str,
        secret_key: str,
        region: str,
    ):
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    def public_url_for(self, key: str) -> str:
        return f"{self.public_url}/{self.bucket}/{key}"

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Upload ``data`` and return its public URL."""
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Avatar upload failed", key=key, error=str(exc))
            raise StorageError("Failed to upload avatar", details={"key": key}) from exc

        logger.info("Avatar uploaded", key=key, size=len(data))
        return self.public_url_for(key)


def get_avatar_store() -> AvatarStore:
    """Default store built from settings; overridden in tests."""
    return S3AvatarStore(
        endpoint_url=settings.STORAGE_ENDPOINT,
        public_url=settings.STORAGE_PUBLIC_URL,
        bucket=settings.STORAGE_BUCKET_NAME,
        access_key=settings.STORAGE_ACCESS_KEY,
        secret_key=settings.STORAGE_SECRET_KEY,
        region=settings.STORAGE_REGION,
    )
