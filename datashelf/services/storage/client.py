"""Thin async wrapper around the boto3 S3 client."""
import asyncio
import logging
from typing import Any, Callable, Optional, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from datashelf.exceptions import ObjectNotFoundError, UpstreamError
from datashelf.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


def make_s3_client() -> Any:
    """Build an S3 client from settings."""
    client_kwargs: dict[str, Any] = {
        "config": Config(signature_version="s3v4", retries={"max_attempts": 3, "mode": "standard"}),
        "region_name": settings.s3_region,
    }
    # Custom endpoint for non-AWS providers
    if settings.s3_endpoint_url:
        client_kwargs["endpoint_url"] = settings.s3_endpoint_url
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
        client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    return boto3.client("s3", **client_kwargs)


class ObjectStorage:
    """Object store operations used by datashelf."""

    def __init__(self, client: Optional[Any] = None) -> None:
        self._client = client if client is not None else make_s3_client()

    async def _run(self, func: Callable[[], T]) -> T:
        # boto3 is sync
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    async def presigned_post(
        self,
        bucket: str,
        key: str,
        conditions: list[Any],
        expires_in: int,
    ) -> dict[str, Any]:
        """Presign a direct POST upload of `key` into `bucket`."""
        try:
            return await self._run(
                lambda: self._client.generate_presigned_post(
                    Bucket=bucket,
                    Key=key,
                    Conditions=list(conditions),
                    ExpiresIn=expires_in,
                )
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"Could not presign upload of {bucket}/{key}: {e}") from e

    async def presigned_get(self, bucket: str, key: str, expires_in: int) -> str:
        """Presign a direct download of `key`."""
        try:
            return await self._run(
                lambda: self._client.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": bucket, "Key": key},
                    ExpiresIn=expires_in,
                )
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"Could not presign download of {bucket}/{key}: {e}") from e

    async def head_object(self, bucket: str, key: str) -> dict[str, Any]:
        """Fetch object metadata, raises ObjectNotFoundError if it is missing."""
        try:
            head = await self._run(lambda: self._client.head_object(Bucket=bucket, Key=key))
        except ClientError as e:
            if str(e.response.get("Error", {}).get("Code")) in MISSING_OBJECT_CODES:
                raise ObjectNotFoundError(f"Object {bucket}/{key} not found") from e
            raise UpstreamError(f"Could not read {bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise UpstreamError(f"Could not read {bucket}/{key}: {e}") from e
        head.pop("ResponseMetadata", None)
        return head

    async def delete_prefix(self, bucket: str, prefix: str) -> list[str]:
        """Delete every object under `prefix`, returns the deleted keys."""
        try:
            return await self._run(lambda: self._delete_prefix(bucket, prefix))
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"Could not delete {bucket}/{prefix}: {e}") from e

    def _delete_prefix(self, bucket: str, prefix: str) -> list[str]:
        deleted: list[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            keys = [obj["Key"] for obj in page.get("Contents", [])]
            if not keys:
                continue
            response = self._client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
            )
            errors = response.get("Errors", [])
            if errors:
                raise UpstreamError(f"Could not delete {len(errors)} objects under {bucket}/{prefix}")
            deleted.extend(keys)
        logger.info("Deleted %s objects under %s/%s", len(deleted), bucket, prefix)
        return deleted
