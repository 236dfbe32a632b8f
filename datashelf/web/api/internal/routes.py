"""Routes called back by internal services."""
from typing import Annotated

from fastapi import APIRouter, Depends

from datashelf.db.repository import DatasetRepository
from datashelf.exceptions import DatasetNotFoundError
from datashelf.web.api.datasets.dto import DatasetResponse
from datashelf.web.api.utils import get_repository, require_service

api_router = APIRouter(dependencies=[Depends(require_service)])


@api_router.post(
    "/datasets/{dataset_id}/processing_complete",
    tags=["internal"],
    summary="Mark a dataset as processed",
)
async def processing_complete(
    dataset_id: str,
    repository: Annotated[DatasetRepository, Depends(get_repository)],
) -> DatasetResponse:
    """Called by the processing service once a job on a dataset finished."""
    dataset = await repository.update_by_id(dataset_id, {"is_processing": False})
    if dataset is None:
        raise DatasetNotFoundError(f"Dataset {dataset_id} not found")
    return DatasetResponse.from_model(dataset)
