"""Access gateway: every dataset-scoped request is authorized here first."""
import logging
import uuid
from typing import Union

from datashelf.db.models.datasets import Dataset
from datashelf.db.repository import DatasetRepository
from datashelf.exceptions import DatasetNotFoundError, ForbiddenError
from datashelf.services.policy import Operation, Verdict, decide

logger = logging.getLogger(__name__)


async def authorize(
    repository: DatasetRepository,
    dataset_id: Union[uuid.UUID, str],
    caller_id: str,
    operation: Union[Operation, str],
) -> Dataset:
    """
    Load a dataset and check the caller may perform `operation` on it.

    A missing dataset is reported as not found before the policy runs,
    a denial as forbidden. The two never mix.

    :raises DatasetNotFoundError: if the id does not resolve.
    :raises ForbiddenError: if the policy denies the operation.
    :return: the dataset record.
    """
    dataset = await repository.find_by_id(dataset_id)
    if dataset is None:
        logger.debug("Dataset %s not found", dataset_id)
        raise DatasetNotFoundError(f"Dataset {dataset_id} not found")

    action = operation.value if isinstance(operation, Operation) else operation
    verdict = decide(dataset.visibility_settings, caller_id, operation)
    if verdict is Verdict.DENY:
        logger.info("Denied %s on dataset %s for %s", action, dataset_id, caller_id)
        raise ForbiddenError(f"Not allowed to {action} dataset {dataset_id}")
    return dataset
