"""Translation of storage errors into HTTP responses."""

from fastapi import HTTPException, status

from hotel_pos.domain.exceptions import (
    BackendUnavailableError,
    EntityNotFoundError,
    InvalidCollectionError,
    InvalidPayloadError,
    StorageError,
    WrongKeyTypeError,
)


def http_error(exc: StorageError) -> HTTPException:
    if isinstance(exc, BackendUnavailableError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, EntityNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (InvalidPayloadError, InvalidCollectionError)):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, WrongKeyTypeError):
        # Legacy index encoding; an index rebuild fixes it.
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))
