"""
Scoped, time-limited capabilities against the object store.

Clients upload dataset files straight to the object store with a presigned
POST. The application never sees the file bytes, it only hands out a
capability bound to one bucket, one key, a content-type family and an expiry.
Capabilities are not persisted and are never revoked; an unused one simply
expires.
"""
import datetime
import enum
import logging
import uuid
from typing import Any, Optional, Union

from pydantic import BaseModel

from datashelf.exceptions import IssuerError, UpstreamError
from datashelf.services.storage.client import ObjectStorage
from datashelf.settings import settings

logger = logging.getLogger(__name__)

PRIMARY_SLOT = 0


class UploadFlow(str, enum.Enum):
    """Upload flows, each scoped to its own bucket and expiry window."""

    INITIAL = "initial"
    APPEND = "append"
    PREVIEW = "preview"

    @property
    def bucket(self) -> str:
        """Bucket the flow writes into."""
        return {
            UploadFlow.INITIAL: settings.upload_bucket,
            UploadFlow.APPEND: settings.append_bucket,
            UploadFlow.PREVIEW: settings.preview_bucket,
        }[self]

    @property
    def ttl(self) -> int:
        """Seconds a capability of this flow stays usable."""
        return {
            UploadFlow.INITIAL: settings.upload_url_ttl,
            UploadFlow.APPEND: settings.append_url_ttl,
            UploadFlow.PREVIEW: settings.preview_url_ttl,
        }[self]


def storage_key(dataset_id: Union[uuid.UUID, str], slot: int = PRIMARY_SLOT) -> str:
    """Key of the object in `slot` of a dataset, e.g. `<id>/0`."""
    if slot < 0:
        raise ValueError(f"Slot must not be negative, got {slot}")
    return f"{dataset_id}/{slot}"


def primary_object_key(dataset_id: Union[uuid.UUID, str]) -> str:
    """Key of the processed dataset's primary object in the datasets bucket."""
    return f"{dataset_id}/columns/{PRIMARY_SLOT}"


class Capability(BaseModel):
    """A presigned, short-lived grant for one direct storage operation."""

    url: str
    fields: dict[str, Any] = {}
    bucket: str
    storage_key: str
    expires_in: int
    expires_at: datetime.datetime


class CapabilityIssuer:
    """Issues upload and download capabilities."""

    def __init__(self, storage: ObjectStorage) -> None:
        self.storage = storage

    async def issue(
        self,
        storage_key: str,
        content_type_prefix: str,
        ttl_seconds: int,
        bucket: str,
    ) -> Capability:
        """
        Issue an upload capability.

        :param storage_key: exact key the upload must land on.
        :param content_type_prefix: MIME family the upload must declare.
        :param ttl_seconds: expiry window, passed through to the store unmodified.
        :param bucket: bucket the capability is scoped to.
        :raises IssuerError: if the store refuses to presign.
        :return: the capability.
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl must be positive, got {ttl_seconds}")
        issued_at = datetime.datetime.now(datetime.timezone.utc)
        conditions = [["starts-with", "$Content-Type", content_type_prefix]]
        try:
            signed = await self.storage.presigned_post(
                bucket=bucket,
                key=storage_key,
                conditions=conditions,
                expires_in=ttl_seconds,
            )
        except UpstreamError as e:
            logger.error("Capability for %s/%s refused: %s", bucket, storage_key, e)
            raise IssuerError("Upload error") from e
        logger.info("Issued upload capability for %s/%s (ttl %ss)", bucket, storage_key, ttl_seconds)
        return Capability(
            url=signed["url"],
            fields=signed.get("fields", {}),
            bucket=bucket,
            storage_key=storage_key,
            expires_in=ttl_seconds,
            expires_at=issued_at + datetime.timedelta(seconds=ttl_seconds),
        )

    async def issue_upload(
        self,
        flow: UploadFlow,
        dataset_id: Union[uuid.UUID, str],
        slot: Optional[int] = PRIMARY_SLOT,
    ) -> Capability:
        """Issue the upload capability of a flow, keyed on the dataset and slot."""
        key = str(dataset_id) if slot is None else storage_key(dataset_id, slot)
        return await self.issue(
            storage_key=key,
            content_type_prefix=settings.upload_content_type_prefix,
            ttl_seconds=flow.ttl,
            bucket=flow.bucket,
        )

    async def issue_read(self, storage_key: str, ttl_seconds: int, bucket: str) -> Capability:
        """Issue a download capability for an existing object."""
        issued_at = datetime.datetime.now(datetime.timezone.utc)
        try:
            url = await self.storage.presigned_get(bucket=bucket, key=storage_key, expires_in=ttl_seconds)
        except UpstreamError as e:
            logger.error("Read capability for %s/%s refused: %s", bucket, storage_key, e)
            raise IssuerError("Download error") from e
        return Capability(
            url=url,
            bucket=bucket,
            storage_key=storage_key,
            expires_in=ttl_seconds,
            expires_at=issued_at + datetime.timedelta(seconds=ttl_seconds),
        )
