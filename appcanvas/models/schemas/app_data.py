"""
App data record models for the generic per-app data store.
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, field_validator

from .core import CamelModel
from .apps import utcnow


class RecordMetadata(CamelModel):
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    version: int = Field(1, ge=1)


class AppDataRecord(CamelModel):
    """One JSON payload stored under an app and a collection name"""
    id: str
    app_id: str
    user_id: str
    collection: str
    data: Any
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


def _require_payload(v: Any) -> Any:
    if v is None:
        raise ValueError("data is required")
    return v


class RecordCreate(CamelModel):
    collection: str = Field(..., min_length=1)
    data: Any

    _check_data = field_validator('data')(_require_payload)


class RecordUpdate(CamelModel):
    data: Any

    _check_data = field_validator('data')(_require_payload)


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class RecordResponse(CamelModel):
    message: Optional[str] = None
    data: AppDataRecord


class RecordListResponse(CamelModel):
    data: List[AppDataRecord]
    pagination: Pagination
