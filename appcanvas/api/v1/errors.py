"""
Translation of service-layer exceptions into HTTP errors.
"""
from fastapi import HTTPException, status

from appcanvas.services.persistence import (
    AccessDeniedError,
    AppNotFoundError,
    PersistenceError,
    RecordNotFoundError,
    VersionConflictError,
)


def http_error(exc: PersistenceError) -> HTTPException:
    """Map a persistence exception to an HTTPException with an {error, message} detail"""
    if isinstance(exc, AppNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "app_not_found", "message": str(exc)},
        )
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "record_not_found", "message": str(exc)},
        )
    if isinstance(exc, AccessDeniedError):
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "access_denied", "message": str(exc)},
        )
    if isinstance(exc, VersionConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "version_conflict",
                "message": str(exc),
                "currentVersion": exc.current_version,
            },
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "persistence_error", "message": str(exc)},
    )
