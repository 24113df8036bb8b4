"""S3 storage for certification documents.

All boto3 calls are wrapped with ``asyncio.to_thread()`` to avoid blocking.
"""

from __future__ import annotations

import asyncio
import hashlib
import re
from dataclasses import dataclass

import boto3
import structlog

from supplyvault.config import Settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str
    size: int
    sha256: str


class AttachmentStore:
    """Upload document bytes under content-addressed keys."""

    def __init__(self, settings: Settings) -> None:
        self._bucket = settings.s3_bucket
        self._region = settings.s3_region
        self._endpoint_url = settings.s3_endpoint_url
        self._prefix = settings.s3_ingest_prefix.strip("/")
        self._client = None  # type: ignore[assignment]

    async def start(self) -> None:
        """Create the boto3 S3 client."""
        kwargs: dict = {"region_name": self._region}
        if self._endpoint_url:
            kwargs["endpoint_url"] = self._endpoint_url
        self._client = await asyncio.to_thread(boto3.client, "s3", **kwargs)
        logger.info("attachment_store_started", bucket=self._bucket)

    async def stop(self) -> None:
        """Clean up the boto3 client."""
        self._client = None
        logger.info("attachment_store_stopped")

    def key_for(self, digest: str, file_name: str) -> str:
        """Key format: ``{prefix}/{sha256[:16]}_{sanitized file name}``."""
        return f"{self._prefix}/{digest[:16]}_{_sanitize_filename(file_name)}"

    def url_for(self, key: str) -> str:
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    async def put(self, file_name: str, payload: bytes, content_type: str) -> StoredObject:
        """Store *payload* and return where it went.

        Identical content under the same name always lands on the same key.
        """
        assert self._client is not None, "S3 client not started"
        digest = hashlib.sha256(payload).hexdigest()
        key = self.key_for(digest, file_name)

        await asyncio.to_thread(
            self._client.put_object,
            Bucket=self._bucket,
            Key=key,
            Body=payload,
            ContentType=content_type,
        )
        logger.debug("attachment_uploaded", key=key, size=len(payload), sha256=digest)
        return StoredObject(key=key, url=self.url_for(key), size=len(payload), sha256=digest)


def _sanitize_filename(name: str) -> str:
    """Remove characters unsafe for S3 keys."""
    return re.sub(r"[^\w.\-]", "_", name)
