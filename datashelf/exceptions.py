"""Errors raised by datashelf services."""
from fastapi import status


class DatashelfError(Exception):
    """Base error, carries the HTTP status it maps onto."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class DatasetNotFoundError(DatashelfError):
    """Raised when a dataset id does not resolve."""

    status_code = status.HTTP_404_NOT_FOUND


class ObjectNotFoundError(DatashelfError):
    """Raised when a storage object does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(DatashelfError):
    """Raised when the caller lacks the relationship an operation requires."""

    status_code = status.HTTP_403_FORBIDDEN


class UpstreamError(DatashelfError):
    """Raised when the object store fails."""

    pass


class IssuerError(UpstreamError):
    """Raised when the object store refuses to issue a capability."""

    pass


class DispatchError(DatashelfError):
    """Raised when the processing service could not be notified."""

    pass
