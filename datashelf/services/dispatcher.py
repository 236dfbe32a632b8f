"""
Client for the downstream dataset processing service.

Notifications are delivered at most once: nothing is retried or queued. Callers
that must not fail on a lost notification use `notify_quietly`, which only logs.
"""
import logging
import uuid
from typing import Any, Optional, Union

import httpx

from datashelf.exceptions import DispatchError
from datashelf.settings import settings

logger = logging.getLogger(__name__)

PROCESS_DATASET_PATH = "/datasets/process_dataset"
DUPLICATE_DATASET_PATH = "/datasets/jobs/duplicateDataset"


class ProcessingDispatcher:
    """Posts jobs to the processing service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or settings.processing_service_url
        self.timeout = timeout if timeout is not None else settings.processing_timeout
        self._transport = transport

    async def post(self, path: str, payload: dict[str, Any]) -> None:
        """
        Post a job to the processing service.

        :param path: endpoint of the processing service.
        :param payload: JSON body.
        :raises DispatchError: on transport errors and non 2xx answers.
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(path, json=payload)
                response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DispatchError(f"Dispatch to {path} failed: {e}") from e

    async def notify_quietly(self, path: str, payload: dict[str, Any]) -> bool:
        """Fire-and-forget variant of `post`, failures are logged and dropped."""
        try:
            await self.post(path, payload)
        except DispatchError as e:
            logger.error("error in processing dataset: %s", e)
            return False
        return True

    async def process_dataset(self, key: str, user_id: str) -> bool:
        """Ask the processing service to ingest an uploaded object."""
        return await self.notify_quietly(PROCESS_DATASET_PATH, {"key": key, "userId": user_id})

    async def duplicate_dataset(
        self,
        old_dataset_id: Union[uuid.UUID, str],
        new_dataset_id: Union[uuid.UUID, str],
    ) -> None:
        """Start a duplication job, raises DispatchError if it was not accepted."""
        await self.post(
            DUPLICATE_DATASET_PATH,
            {"oldDatasetId": str(old_dataset_id), "newDatasetId": str(new_dataset_id)},
        )
