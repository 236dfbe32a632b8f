import datetime
import uuid
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from datashelf.db.base import Base
from datashelf.services.policy import Visibility

TITLE_MAX_LENGTH = 500


class Dataset(Base):
    """Metadata record of a tabular dataset."""

    __tablename__ = "datasets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str] = mapped_column(String(200), index=True)
    title: Mapped[Optional[str]] = mapped_column(String(TITLE_MAX_LENGTH), nullable=True)
    # {"owner": str, "editors": [str], "viewers": [str], "is_public": bool}
    visibility: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    is_processing: Mapped[bool] = mapped_column(Boolean, default=False)
    created: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now)
    modified: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now)

    @property
    def visibility_settings(self) -> Visibility:
        """Visibility record as used by the policy engine."""
        return Visibility.model_validate(self.visibility)
