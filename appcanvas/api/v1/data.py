"""
REST API endpoints for per-app data records (form submissions, table rows).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from appcanvas.config import settings
from appcanvas.core.security import CurrentUser, get_current_user, get_optional_user
from appcanvas.models.schemas import (
    MessageResponse,
    RecordCreate,
    RecordListResponse,
    RecordResponse,
    RecordUpdate,
)
from appcanvas.services.data_service import DataService, get_data_service
from appcanvas.services.persistence import PersistenceError
from appcanvas.utils.logging import get_logger, log_context
from .errors import http_error

router = APIRouter()
logger = get_logger(__name__)


@router.post(
    "/data/{app_id}",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Data"],
    summary="Store a record in one of the caller's apps",
)
async def create_record(
    app_id: str,
    payload: RecordCreate,
    user: CurrentUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> RecordResponse:
    with log_context(user_id=user.id, app_id=app_id):
        try:
            record = await service.create_record(user, app_id, payload.collection, payload.data)
        except PersistenceError as e:
            logger.warning("api.data.create.failed", message=str(e))
            raise http_error(e)

        logger.info(
            "api.data.create.completed",
            extra={"record_id": record.id, "collection": record.collection}
        )
        return RecordResponse(message="Data created successfully", data=record)


@router.get(
    "/data/{app_id}",
    response_model=RecordListResponse,
    tags=["Data"],
    summary="List an app's records",
    description="Newest first. Open for published apps, owner-only otherwise."
)
async def list_records(
    app_id: str,
    collection: Optional[str] = Query(None, description="Restrict to one collection"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.data_page_size_default, ge=1, le=settings.data_page_size_max),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service: DataService = Depends(get_data_service),
) -> RecordListResponse:
    with log_context(user_id=user.id if user else None, app_id=app_id):
        try:
            records, pagination = await service.list_records(user, app_id, collection, page, limit)
        except PersistenceError as e:
            logger.warning("api.data.list.failed", message=str(e))
            raise http_error(e)

        logger.debug(
            "api.data.list.completed",
            extra={"collection": collection, "page": page, "total": pagination.total}
        )
        return RecordListResponse(data=records, pagination=pagination)


@router.put(
    "/data/{app_id}/{record_id}",
    response_model=RecordResponse,
    tags=["Data"],
    summary="Replace a record's payload",
)
async def update_record(
    app_id: str,
    record_id: str,
    payload: RecordUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> RecordResponse:
    with log_context(user_id=user.id, app_id=app_id):
        try:
            record = await service.update_record(user, app_id, record_id, payload.data)
        except PersistenceError as e:
            logger.warning("api.data.update.failed", message=str(e), extra={"record_id": record_id})
            raise http_error(e)

        return RecordResponse(message="Data updated successfully", data=record)


@router.delete(
    "/data/{app_id}/{record_id}",
    response_model=MessageResponse,
    tags=["Data"],
    summary="Delete a record",
)
async def delete_record(
    app_id: str,
    record_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> MessageResponse:
    with log_context(user_id=user.id, app_id=app_id):
        try:
            await service.delete_record(user, app_id, record_id)
        except PersistenceError as e:
            logger.warning("api.data.delete.failed", message=str(e), extra={"record_id": record_id})
            raise http_error(e)

        logger.info("api.data.delete.completed", extra={"record_id": record_id})
        return MessageResponse(message="Data deleted successfully")
