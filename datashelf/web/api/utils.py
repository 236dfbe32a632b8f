from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from datashelf.db.repository import DatasetRepository
from datashelf.services.dispatcher import ProcessingDispatcher
from datashelf.services.storage import CapabilityIssuer, ObjectStorage


def get_caller_id(request: Request) -> str:
    """Identity resolved by the auth middleware."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid authorization code.")
    return user_id


def require_service(request: Request) -> str:
    """Only lets through calls authenticated with the service api key."""
    if not getattr(request.state, "is_service", False):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Service credentials required.")
    return get_caller_id(request)


def get_repository() -> DatasetRepository:
    """Dataset repository dependency."""
    return DatasetRepository()


@lru_cache
def get_storage() -> ObjectStorage:
    """Shared object storage client."""
    return ObjectStorage()


def get_issuer(storage: Annotated[ObjectStorage, Depends(get_storage)]) -> CapabilityIssuer:
    """Capability issuer over the given storage."""
    return CapabilityIssuer(storage)


def get_dispatcher() -> ProcessingDispatcher:
    """Processing service client."""
    return ProcessingDispatcher()
