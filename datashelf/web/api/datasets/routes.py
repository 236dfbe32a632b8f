"""Routes for datasets API."""
import logging
import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from datashelf.db.models.datasets import TITLE_MAX_LENGTH
from datashelf.db.repository import DatasetRepository
from datashelf.exceptions import DatasetNotFoundError, DispatchError, ForbiddenError, UpstreamError
from datashelf.services.dispatcher import ProcessingDispatcher
from datashelf.services.policy import check_patch_fields, merge_visibility
from datashelf.services.storage import CapabilityIssuer, ObjectStorage, UploadFlow, primary_object_key
from datashelf.settings import settings
from datashelf.web.api.datasets.dependencies import (
    DeletableDataset,
    ExtendableDataset,
    ReadableDataset,
    UpdatableDataset,
)
from datashelf.web.api.datasets.dto import (
    CapabilityResponse,
    CreateUploadUrlIn,
    DatasetPatchIn,
    DatasetResponse,
    DatasetWithHeadResponse,
    DuplicateDatasetIn,
    PreviewUrlResponse,
    ProcessDatasetIn,
    UploadUrlResponse,
)
from datashelf.web.api.utils import get_caller_id, get_dispatcher, get_issuer, get_repository, get_storage

logger = logging.getLogger(__name__)

api_router = APIRouter()

CallerId = Annotated[str, Depends(get_caller_id)]
Repository = Annotated[DatasetRepository, Depends(get_repository)]
Issuer = Annotated[CapabilityIssuer, Depends(get_issuer)]
Storage = Annotated[ObjectStorage, Depends(get_storage)]
Dispatcher = Annotated[ProcessingDispatcher, Depends(get_dispatcher)]

VISIBILITY_FIELDS = ("is_public", "editors", "viewers")
COPY_SUFFIX = " (copy)"


def copy_title(title: Optional[str]) -> str:
    """Title of a duplicate, cut so the suffix still fits the column."""
    base = (title or "")[: TITLE_MAX_LENGTH - len(COPY_SUFFIX)]
    return f"{base}{COPY_SUFFIX}".lstrip()


@api_router.get("/", tags=["datasets"], summary="Get all datasets owned by the caller")
@api_router.get("", include_in_schema=False)
async def list_datasets(caller_id: CallerId, repository: Repository) -> list[DatasetResponse]:
    """Get all datasets the caller created."""
    datasets = await repository.list_by_owner(caller_id)
    return [DatasetResponse.from_model(dataset) for dataset in datasets]


@api_router.post("/make_dataset_upload_url", tags=["datasets"], summary="Create a dataset and its upload url")
async def make_dataset_upload_url(
    body: CreateUploadUrlIn,
    caller_id: CallerId,
    repository: Repository,
    issuer: Issuer,
) -> UploadUrlResponse:
    """
    Create a pending dataset and return a capability to upload its file.

    The record is only persisted once the capability was issued, a refused
    capability leaves no dataset behind.
    """
    dataset_id = uuid.uuid4()
    capability = await issuer.issue_upload(UploadFlow.INITIAL, dataset_id)
    dataset = await repository.create(owner_id=caller_id, title=body.title, dataset_id=dataset_id)
    return UploadUrlResponse(**capability.model_dump(), dataset_id=dataset.id)


@api_router.post(
    "/make_dataset_append_url/{dataset_id}",
    tags=["datasets"],
    summary="Get an upload url to append to a dataset",
)
async def make_dataset_append_url(dataset: ExtendableDataset, issuer: Issuer) -> CapabilityResponse:
    """Return a short-lived capability to upload rows to append to a dataset."""
    capability = await issuer.issue_upload(UploadFlow.APPEND, dataset.id)
    return CapabilityResponse.from_capability(capability)


@api_router.post("/make_dataset_preview_url", tags=["datasets"], summary="Get an upload url for a preview")
async def make_dataset_preview_url(issuer: Issuer) -> PreviewUrlResponse:
    """Return a short-lived capability to upload a preview under a fresh id."""
    preview_id = str(uuid.uuid4())
    capability = await issuer.issue_upload(UploadFlow.PREVIEW, preview_id, slot=None)
    return PreviewUrlResponse(**capability.model_dump(), id=preview_id)


@api_router.post("/process_dataset", tags=["datasets"], summary="Process an uploaded dataset")
async def process_dataset(
    body: ProcessDatasetIn,
    caller_id: CallerId,
    dispatcher: Dispatcher,
    background_tasks: BackgroundTasks,
) -> None:
    """
    Ask the processing service to ingest an uploaded object.

    Answers before the processing service is reached. Delivery is best
    effort: a failed notification is logged and not retried.
    """
    background_tasks.add_task(dispatcher.process_dataset, body.key, caller_id)


@api_router.get("/{dataset_id}", tags=["datasets"], summary="Get a dataset")
async def fetch_dataset(dataset: ReadableDataset, storage: Storage) -> DatasetWithHeadResponse:
    """Get a dataset and the metadata of its primary object."""
    head = await storage.head_object(settings.datasets_bucket, primary_object_key(dataset.id))
    return DatasetWithHeadResponse(dataset=DatasetResponse.from_model(dataset), head=head)


@api_router.get("/{dataset_id}/download_url", tags=["datasets"], summary="Get a download url for a dataset")
async def make_dataset_download_url(dataset: ReadableDataset, issuer: Issuer) -> CapabilityResponse:
    """Return a short-lived capability to download the dataset's primary object."""
    capability = await issuer.issue_read(
        storage_key=primary_object_key(dataset.id),
        ttl_seconds=settings.download_url_ttl,
        bucket=settings.datasets_bucket,
    )
    return CapabilityResponse.from_capability(capability)


@api_router.patch("/{dataset_id}", tags=["datasets"], summary="Update a dataset")
async def update_dataset(
    dataset: UpdatableDataset,
    body: DatasetPatchIn,
    caller_id: CallerId,
    repository: Repository,
) -> DatasetResponse:
    """Update the title or the visibility of a dataset."""
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")
    nulls = sorted(field for field, value in changes.items() if value is None)
    if nulls:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Fields may not be null: {nulls}")

    visibility = dataset.visibility_settings
    refused = check_patch_fields(visibility, caller_id, changes)
    if refused:
        raise ForbiddenError(f"Not allowed to change {', '.join(refused)}")

    fields = {}
    if "title" in changes:
        fields["title"] = changes["title"]
    if any(field in changes for field in VISIBILITY_FIELDS):
        fields["visibility"] = merge_visibility(visibility, changes)

    updated = await repository.update_by_id(dataset.id, fields)
    if updated is None:
        raise DatasetNotFoundError(f"Dataset {dataset.id} not found")
    return DatasetResponse.from_model(updated)


@api_router.delete("/{dataset_id}", tags=["datasets"], summary="Delete a dataset")
async def delete_dataset(dataset: DeletableDataset, repository: Repository, storage: Storage) -> None:
    """
    Delete a dataset and its objects.

    Metadata goes first. If the object store fails afterwards the objects
    are left behind, the error is logged with their prefix and reported
    to the caller; the metadata delete is not rolled back.
    """
    await repository.delete_by_id(dataset.id)
    prefix = f"{dataset.id}/"
    try:
        await storage.delete_prefix(settings.datasets_bucket, prefix)
    except UpstreamError as e:
        logger.error(
            "Dataset %s deleted but objects under %s/%s are orphaned: %s",
            dataset.id,
            settings.datasets_bucket,
            prefix,
            e,
        )
        raise


@api_router.post(
    "/duplicate/{dataset_id}",
    tags=["datasets"],
    summary="Duplicate a dataset",
    deprecated=True,
)
async def duplicate_dataset(
    dataset: ExtendableDataset,
    caller_id: CallerId,
    repository: Repository,
    dispatcher: Dispatcher,
    body: Optional[DuplicateDatasetIn] = None,
) -> DatasetResponse:
    """
    Duplicate a dataset.

    The copy stays in processing until the duplication job reports back
    through the internal processing_complete callback.
    """
    title = body.new_title if body is not None and body.new_title else copy_title(dataset.title)
    new_dataset = await repository.create(owner_id=caller_id, title=title, is_processing=True)
    try:
        await dispatcher.duplicate_dataset(dataset.id, new_dataset.id)
    except DispatchError as e:
        logger.error("Duplication of %s failed, removing %s: %s", dataset.id, new_dataset.id, e)
        await repository.delete_by_id(new_dataset.id)
        raise
    return DatasetResponse.from_model(new_dataset)
