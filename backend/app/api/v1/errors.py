from __future__ import annotations

from fastapi import HTTPException, status

from app.core.errors import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)


def to_http_exception(err: ServiceError, *, operation: str) -> HTTPException:
    """Translate a service error into the HTTP error returned to the client."""
    if isinstance(err, InvalidArgumentError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err))
    if isinstance(err, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err))
    if isinstance(err, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(err))
    if isinstance(err, InternalError):
        logger.error("Internal error during %s", operation, extra={"error": str(err)})
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(err))
    logger.error("Unexpected service error during %s", operation, extra={"error": str(err)})
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
