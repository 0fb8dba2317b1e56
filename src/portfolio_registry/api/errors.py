"""Translation of service errors into HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException, status

from portfolio_registry.services.errors import (
    ConflictError,
    NotFoundError,
    PortfolioRegistryError,
    StorageError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[PortfolioRegistryError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(exc: PortfolioRegistryError) -> HTTPException:
    """Return the HTTPException matching a service error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
