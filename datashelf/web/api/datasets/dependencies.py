from typing import Annotated, Any, Callable, Coroutine

from fastapi import Depends, Request

from datashelf.db.models.datasets import Dataset
from datashelf.db.repository import DatasetRepository
from datashelf.services.gateway import authorize
from datashelf.services.policy import Operation
from datashelf.web.api.utils import get_caller_id, get_repository


def authorized(operation: Operation) -> Callable[..., Coroutine[Any, Any, Dataset]]:
    """
    Dependency factory running the access gateway for a dataset route.

    The dataset is attached to `request.state.dataset` so handlers
    do not load it a second time.
    """

    async def dependency(
        dataset_id: str,
        request: Request,
        caller_id: Annotated[str, Depends(get_caller_id)],
        repository: Annotated[DatasetRepository, Depends(get_repository)],
    ) -> Dataset:
        dataset = await authorize(repository, dataset_id, caller_id, operation)
        request.state.dataset = dataset
        return dataset

    return dependency


ReadableDataset = Annotated[Dataset, Depends(authorized(Operation.READ))]
UpdatableDataset = Annotated[Dataset, Depends(authorized(Operation.UPDATE))]
DeletableDataset = Annotated[Dataset, Depends(authorized(Operation.DELETE))]
ExtendableDataset = Annotated[Dataset, Depends(authorized(Operation.CREATE_SUBRESOURCE))]
