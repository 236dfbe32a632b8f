"""Keyed CRUD access to dataset metadata records."""
import datetime
import logging
import uuid
from typing import Any, Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from datashelf.db.config import session_maker
from datashelf.db.models.datasets import Dataset
from datashelf.services.policy import Visibility

logger = logging.getLogger(__name__)

DatasetId = Union[uuid.UUID, str]


def parse_dataset_id(dataset_id: DatasetId) -> Optional[uuid.UUID]:
    """Parse an id coming from a path, None if it is not a valid id."""
    if isinstance(dataset_id, uuid.UUID):
        return dataset_id
    try:
        return uuid.UUID(str(dataset_id))
    except ValueError:
        return None


class DatasetRepository:
    """
    CRUD interface over dataset records.

    Every call runs in its own session. Updates are shallow merges and there
    is no version token: concurrent updates of the same record are
    last-write-wins.
    """

    def __init__(self, sessions: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._sessions = sessions or session_maker

    async def create(
        self,
        owner_id: str,
        title: Optional[str],
        visibility: Optional[Visibility] = None,
        is_processing: bool = False,
        dataset_id: Optional[uuid.UUID] = None,
    ) -> Dataset:
        """Create a dataset record owned by `owner_id`."""
        if visibility is None:
            visibility = Visibility(owner=owner_id)
        dataset = Dataset(
            id=dataset_id or uuid.uuid4(),
            owner_id=owner_id,
            title=title,
            visibility=visibility.model_dump(),
            is_processing=is_processing,
        )
        async with self._sessions() as session:
            session.add(dataset)
            await session.commit()
        logger.info("Created dataset %s for %s", dataset.id, owner_id)
        return dataset

    async def find_by_id(self, dataset_id: DatasetId) -> Optional[Dataset]:
        """Find a dataset, None if the id does not resolve."""
        parsed = parse_dataset_id(dataset_id)
        if parsed is None:
            return None
        async with self._sessions() as session:
            return await session.get(Dataset, parsed)

    async def update_by_id(self, dataset_id: DatasetId, fields: dict[str, Any]) -> Optional[Dataset]:
        """Merge `fields` into the stored record, None if it does not exist."""
        parsed = parse_dataset_id(dataset_id)
        if parsed is None:
            return None
        if isinstance(fields.get("visibility"), Visibility):
            fields = {**fields, "visibility": fields["visibility"].model_dump()}
        async with self._sessions() as session:
            dataset = await session.get(Dataset, parsed)
            if dataset is None:
                return None
            for name, value in fields.items():
                setattr(dataset, name, value)
            dataset.modified = datetime.datetime.now()
            await session.commit()
        return dataset

    async def delete_by_id(self, dataset_id: DatasetId) -> bool:
        """Delete a dataset record, returns False if nothing was deleted."""
        parsed = parse_dataset_id(dataset_id)
        if parsed is None:
            return False
        async with self._sessions() as session:
            result = await session.execute(delete(Dataset).where(Dataset.id == parsed))
            await session.commit()
        return result.rowcount > 0

    async def list_by_owner(self, owner_id: str) -> list[Dataset]:
        """List datasets created by `owner_id`."""
        query = select(Dataset).where(Dataset.owner_id == owner_id).order_by(Dataset.created)
        async with self._sessions() as session:
            result = await session.scalars(query)
            return list(result.all())
