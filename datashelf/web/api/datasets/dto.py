import datetime
import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from datashelf.db.models.datasets import TITLE_MAX_LENGTH, Dataset
from datashelf.services.storage import Capability


class CamelModel(BaseModel):
    """Base for request and response bodies, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VisibilityResponse(CamelModel):
    """Visibility record"""

    owner: str
    editors: list[str]
    viewers: list[str]
    is_public: bool


class DatasetResponse(CamelModel):
    """Dataset response"""

    id: uuid.UUID
    owner_id: str
    title: Optional[str] = None
    visibility: VisibilityResponse
    is_processing: bool = False
    created: datetime.datetime
    modified: datetime.datetime

    @classmethod
    def from_model(cls, dataset: Dataset) -> "DatasetResponse":
        """Build the response from a stored dataset."""
        visibility = dataset.visibility_settings
        return cls(
            id=dataset.id,
            owner_id=dataset.owner_id,
            title=dataset.title,
            visibility=VisibilityResponse(**visibility.model_dump()),
            is_processing=dataset.is_processing,
            created=dataset.created,
            modified=dataset.modified,
        )


class DatasetWithHeadResponse(CamelModel):
    """Dataset with the metadata of its primary storage object"""

    dataset: DatasetResponse
    head: dict[str, Any]


class CreateUploadUrlIn(CamelModel):
    """Body of the upload url request"""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)


class CapabilityResponse(CamelModel):
    """Presigned upload or download capability"""

    url: str
    fields: dict[str, Any] = {}
    bucket: str
    storage_key: str
    expires_in: int
    expires_at: datetime.datetime

    @classmethod
    def from_capability(cls, capability: Capability) -> "CapabilityResponse":
        return cls(**capability.model_dump())


class UploadUrlResponse(CapabilityResponse):
    """Capability for the initial upload of a new dataset"""

    dataset_id: uuid.UUID


class PreviewUrlResponse(CapabilityResponse):
    """Capability for a preview upload, keyed on a fresh id"""

    id: str


class ProcessDatasetIn(CamelModel):
    """Body of the process request"""

    key: str = Field(min_length=1)


class DatasetPatchIn(CamelModel):
    """Fields of a dataset a caller may change"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    is_public: Optional[bool] = None
    editors: Optional[list[str]] = None
    viewers: Optional[list[str]] = None


class DuplicateDatasetIn(CamelModel):
    """Body of the duplicate request"""

    new_title: Optional[str] = Field(default=None, max_length=TITLE_MAX_LENGTH)
