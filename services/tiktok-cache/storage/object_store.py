"""
Key-addressed blob storage for cached metadata and media.

`ObjectStore` is the capability the cache layers depend on; `S3ObjectStore`
backs it with boto3 against AWS S3 or any S3 compatible endpoint (MinIO).
boto3 is blocking, so every call runs in a worker thread.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from common_py.logging_config import configure_logging
from services.exceptions import ObjectNotFoundError, ObjectStoreError

logger = configure_logging("tiktok-cache:object_store")

NOT_FOUND_CODES = {"404", "NotFound", "NoSuchKey"}


class ObjectStore(ABC):
    """Existence check, get and put by key."""

    @abstractmethod
    async def head_exists(self, key: str) -> bool:
        """True if present, False if the store reports not found; raises ObjectStoreError otherwise."""

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Object body; raises ObjectNotFoundError or ObjectStoreError."""

    @abstractmethod
    async def put(self, key: str, body: bytes, content_type: str) -> None:
        """Store body under key; raises ObjectStoreError."""


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in NOT_FOUND_CODES


class S3ObjectStore(ObjectStore):
    """ObjectStore over a single S3 bucket."""

    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-1",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        timeout: float = 15.0,
        client=None,
    ):
        self.bucket_name = bucket_name
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            endpoint_url=endpoint_url or None,
            config=BotoConfig(connect_timeout=timeout, read_timeout=timeout),
        )

    async def head_exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise ObjectStoreError(f"failed to HEAD object: {e}", key=key, operation="head") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"failed to HEAD object: {e}", key=key, operation="head") from e

    async def get(self, key: str) -> bytes:
        def _read() -> bytes:
            obj = self._client.get_object(Bucket=self.bucket_name, Key=key)
            body = obj["Body"]
            try:
                return body.read()
            finally:
                body.close()

        try:
            return await asyncio.to_thread(_read)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(key, operation="get") from e
            raise ObjectStoreError(f"failed to GET object: {e}", key=key, operation="get") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"failed to GET object: {e}", key=key, operation="get") from e

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise ObjectStoreError(f"failed to PUT object: {e}", key=key, operation="put") from e
        logger.debug("Stored object", key=key, content_type=content_type, size=len(body))
