"""
Generic per-app data records.
"""
import math
import uuid
from typing import Any, List, Optional, Tuple

from fastapi import Depends
from loguru import logger

from appcanvas.core.security import CurrentUser
from appcanvas.models.schemas import AppDataRecord, Pagination, RecordMetadata
from appcanvas.models.schemas.apps import utcnow
from .persistence import (
    AccessDeniedError,
    AppNotFoundError,
    AppRepository,
    RecordNotFoundError,
    RecordRepository,
    get_app_repository,
    get_record_repository,
)


def _display_name(user: CurrentUser) -> str:
    return user.name or user.email or user.id


class DataService:
    """
    Reads are open on public apps and owner-only otherwise; every write
    requires ownership.
    """

    def __init__(self, apps: AppRepository, records: RecordRepository):
        self.apps = apps
        self.records = records

    async def create_record(
        self,
        user: CurrentUser,
        app_id: str,
        collection: str,
        data: Any,
    ) -> AppDataRecord:
        app = await self.apps.get(app_id)
        if app is None or not app.is_owned_by(user.id):
            raise AppNotFoundError("App not found")

        record = AppDataRecord(
            id=uuid.uuid4().hex,
            app_id=app_id,
            user_id=user.id,
            collection=collection,
            data=data,
            metadata=RecordMetadata(
                created_by=_display_name(user),
                updated_by=_display_name(user),
            ),
        )
        await self.records.insert(record)
        logger.debug(f"Created record {record.id} in {app_id}/{collection}")
        return record

    async def list_records(
        self,
        user: Optional[CurrentUser],
        app_id: str,
        collection: Optional[str],
        page: int,
        limit: int,
    ) -> Tuple[List[AppDataRecord], Pagination]:
        app = await self.apps.get(app_id)
        if app is None:
            raise AppNotFoundError("App not found")
        if not app.is_public and not app.is_owned_by(user.id if user else None):
            raise AccessDeniedError("Access denied")

        total = await self.records.count(app_id, collection)
        records = await self.records.list(app_id, collection, (page - 1) * limit, limit)
        pagination = Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        )
        return records, pagination

    async def _owned_record(self, user: CurrentUser, app_id: str, record_id: str) -> AppDataRecord:
        record = await self.records.get(app_id, record_id)
        if record is None or record.user_id != user.id:
            raise RecordNotFoundError("Data record not found")
        return record

    async def update_record(
        self,
        user: CurrentUser,
        app_id: str,
        record_id: str,
        data: Any,
    ) -> AppDataRecord:
        record = await self._owned_record(user, app_id, record_id)
        updated = record.model_copy(update={
            "data": data,
            "metadata": record.metadata.model_copy(update={
                "updated_by": _display_name(user),
                "version": record.metadata.version + 1,
            }),
            "updated_at": utcnow(),
        })
        await self.records.save(updated)
        return updated

    async def delete_record(self, user: CurrentUser, app_id: str, record_id: str) -> None:
        await self._owned_record(user, app_id, record_id)
        await self.records.delete(app_id, record_id)
        logger.debug(f"Deleted record {record_id} from {app_id}")


def get_data_service(
    apps: AppRepository = Depends(get_app_repository),
    records: RecordRepository = Depends(get_record_repository),
) -> DataService:
    return DataService(apps, records)
