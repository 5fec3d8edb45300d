import asyncio
import logging
import mimetypes
from pathlib import PurePosixPath
from typing import Any, Optional

import backoff
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from hlsink.storage.base import ResourceType, StorageContext

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".m4s": "video/iso.segment",
    ".mp4": "video/mp4",
    ".ts": "video/MP2T",
    ".aac": "audio/aac",
}

_S3_ERRORS = (BotoCoreError, ClientError)


def get_content_type(name: str) -> str:
    """Get the HTTP content type for a stored resource."""
    extension = PurePosixPath(name).suffix.lower()
    if extension in _CONTENT_TYPES:
        return _CONTENT_TYPES[extension]
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


class S3Storage:
    """Stores resources as objects under a key prefix in one S3 bucket.

    boto3 calls are blocking, so each one runs in a worker thread.
    Manifests are uploaded with ``Cache-Control: no-cache`` because players
    re-fetch them while the presentation is live.
    """

    def __init__(
        self,
        bucket_name: str,
        prefix: str = "",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        region_name: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        self.bucket_name = bucket_name
        self.prefix = prefix.strip("/")
        self.s3_client = client or boto3.client(
            "s3",
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
            region_name=region_name,
        )

    def key_for(self, name: str) -> str:
        return f"{self.prefix}/{name}" if self.prefix else name

    @backoff.on_exception(backoff.expo, _S3_ERRORS, max_tries=3, max_time=30)
    async def store(self, name: str, content: bytes, context: StorageContext) -> None:
        extra = {}
        if context.resource_type == ResourceType.MANIFEST:
            extra["CacheControl"] = "no-cache"

        await asyncio.to_thread(
            self.s3_client.put_object,
            Bucket=self.bucket_name,
            Key=self.key_for(name),
            Body=content,
            ContentType=get_content_type(name),
            **extra,
        )
        logger.debug(f"Uploaded s3://{self.bucket_name}/{self.key_for(name)}")

    @backoff.on_exception(backoff.expo, _S3_ERRORS, max_tries=3, max_time=30)
    async def remove(self, name: str, context: StorageContext) -> None:
        # delete_object succeeds for keys that do not exist
        await asyncio.to_thread(
            self.s3_client.delete_object,
            Bucket=self.bucket_name,
            Key=self.key_for(name),
        )
        logger.debug(f"Deleted s3://{self.bucket_name}/{self.key_for(name)}")
