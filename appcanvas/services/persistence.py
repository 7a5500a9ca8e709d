"""
App and Data Record Persistence Layer
=====================================

Version-safe storage for app documents and their data records.

Supports multiple backends:
- In-memory (development and tests)
- PostgreSQL (JSONB documents)

Design Principles:
- Whole-document writes
- Version-safe updates (compare-and-swap on the stored version)
- Pluggable backends
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from loguru import logger

from appcanvas.config import settings
from appcanvas.core.database import db_manager
from appcanvas.models.schemas import AppDataRecord, AppRecord


# ============================================================================
# EXCEPTIONS
# ============================================================================

class PersistenceError(Exception):
    """Base exception for persistence errors"""
    pass


class AppNotFoundError(PersistenceError):
    """Raised when an app doesn't exist or isn't visible to the caller"""
    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a data record doesn't exist or isn't owned by the caller"""
    pass


class AccessDeniedError(PersistenceError):
    """Raised when the caller may not read an existing resource"""
    pass


class VersionConflictError(PersistenceError):
    """Raised when version mismatch detected (optimistic locking)"""

    def __init__(self, message: str, current_version: Optional[int] = None):
        super().__init__(message)
        self.current_version = current_version


# ============================================================================
# REPOSITORY INTERFACES
# ============================================================================

class AppRepository(Protocol):
    """Interface that all app storage backends must implement"""

    async def insert(self, app: AppRecord) -> None:
        ...

    async def get(self, app_id: str) -> Optional[AppRecord]:
        ...

    async def get_by_slug(self, slug: str) -> Optional[AppRecord]:
        ...

    async def list_by_owner(self, user_id: str) -> List[AppRecord]:
        """Owner's apps, most recently updated first"""
        ...

    async def save(self, app: AppRecord, expected_version: Optional[int] = None) -> bool:
        """
        Overwrite a stored app. With ``expected_version`` the write only
        happens if the stored version still matches; returns False otherwise.
        """
        ...

    async def record_view(self, app_id: str, viewed_at: datetime) -> Optional[AppRecord]:
        """Atomically bump ``analytics.views`` and set ``lastViewed``"""
        ...

    async def delete(self, app_id: str) -> bool:
        ...


class RecordRepository(Protocol):
    """Interface that all data record storage backends must implement"""

    async def insert(self, record: AppDataRecord) -> None:
        ...

    async def get(self, app_id: str, record_id: str) -> Optional[AppDataRecord]:
        ...

    async def list(
        self,
        app_id: str,
        collection: Optional[str],
        offset: int,
        limit: int,
    ) -> List[AppDataRecord]:
        """Records newest first"""
        ...

    async def count(self, app_id: str, collection: Optional[str]) -> int:
        ...

    async def save(self, record: AppDataRecord) -> None:
        ...

    async def delete(self, app_id: str, record_id: str) -> bool:
        ...

    async def delete_for_app(self, app_id: str) -> int:
        ...


# ============================================================================
# IN-MEMORY BACKEND
# ============================================================================

class MemoryAppRepository:
    """Dict-backed app storage. Stored and returned models are copies."""

    def __init__(self):
        self._apps: Dict[str, AppRecord] = {}
        self._lock = asyncio.Lock()

    async def insert(self, app: AppRecord) -> None:
        async with self._lock:
            if app.id in self._apps:
                raise PersistenceError(f"App already exists: {app.id}")
            if any(existing.slug == app.slug for existing in self._apps.values()):
                raise PersistenceError(f"Slug already in use: {app.slug}")
            self._apps[app.id] = app.model_copy(deep=True)

    async def get(self, app_id: str) -> Optional[AppRecord]:
        async with self._lock:
            app = self._apps.get(app_id)
            return app.model_copy(deep=True) if app else None

    async def get_by_slug(self, slug: str) -> Optional[AppRecord]:
        async with self._lock:
            for app in self._apps.values():
                if app.slug == slug:
                    return app.model_copy(deep=True)
            return None

    async def list_by_owner(self, user_id: str) -> List[AppRecord]:
        async with self._lock:
            owned = [app for app in self._apps.values() if app.user_id == user_id]
            owned.sort(key=lambda app: app.updated_at, reverse=True)
            return [app.model_copy(deep=True) for app in owned]

    async def save(self, app: AppRecord, expected_version: Optional[int] = None) -> bool:
        async with self._lock:
            current = self._apps.get(app.id)
            if current is None:
                return False
            if expected_version is not None and current.version != expected_version:
                return False
            self._apps[app.id] = app.model_copy(deep=True)
            return True

    async def record_view(self, app_id: str, viewed_at: datetime) -> Optional[AppRecord]:
        async with self._lock:
            app = self._apps.get(app_id)
            if app is None:
                return None
            analytics = app.analytics.model_copy(update={
                "views": app.analytics.views + 1,
                "last_viewed": viewed_at,
            })
            app = app.model_copy(update={"analytics": analytics})
            self._apps[app_id] = app
            return app.model_copy(deep=True)

    async def delete(self, app_id: str) -> bool:
        async with self._lock:
            return self._apps.pop(app_id, None) is not None


class MemoryRecordRepository:
    """List-backed record storage kept in insertion order."""

    def __init__(self):
        self._records: List[AppDataRecord] = []
        self._lock = asyncio.Lock()

    def _matching(self, app_id: str, collection: Optional[str]) -> List[AppDataRecord]:
        matching = [
            r for r in reversed(self._records)
            if r.app_id == app_id and (not collection or r.collection == collection)
        ]
        # Stable sort keeps later inserts first on equal timestamps
        return sorted(matching, key=lambda r: r.created_at, reverse=True)

    async def insert(self, record: AppDataRecord) -> None:
        async with self._lock:
            self._records.append(record.model_copy(deep=True))

    async def get(self, app_id: str, record_id: str) -> Optional[AppDataRecord]:
        async with self._lock:
            for record in self._records:
                if record.id == record_id and record.app_id == app_id:
                    return record.model_copy(deep=True)
            return None

    async def list(
        self,
        app_id: str,
        collection: Optional[str],
        offset: int,
        limit: int,
    ) -> List[AppDataRecord]:
        async with self._lock:
            page = self._matching(app_id, collection)[offset:offset + limit]
            return [r.model_copy(deep=True) for r in page]

    async def count(self, app_id: str, collection: Optional[str]) -> int:
        async with self._lock:
            return len(self._matching(app_id, collection))

    async def save(self, record: AppDataRecord) -> None:
        async with self._lock:
            for index, existing in enumerate(self._records):
                if existing.id == record.id:
                    self._records[index] = record.model_copy(deep=True)
                    return
            raise RecordNotFoundError(f"Data record not found: {record.id}")

    async def delete(self, app_id: str, record_id: str) -> bool:
        async with self._lock:
            before = len(self._records)
            self._records = [
                r for r in self._records
                if not (r.id == record_id and r.app_id == app_id)
            ]
            return len(self._records) < before

    async def delete_for_app(self, app_id: str) -> int:
        async with self._lock:
            before = len(self._records)
            self._records = [r for r in self._records if r.app_id != app_id]
            return before - len(self._records)


# ============================================================================
# DATABASE BACKEND (PostgreSQL)
# ============================================================================

class PostgresAppRepository:
    """
    PostgreSQL app storage. The full app is kept in ``document``; id, owner,
    slug, visibility, version and timestamps are mirrored into columns for
    lookups and the version check.
    """

    def __init__(self, db_manager):
        self.db = db_manager

    @staticmethod
    def _row_to_app(row: Optional[Dict[str, Any]]) -> Optional[AppRecord]:
        if not row:
            return None
        return AppRecord.model_validate(row["document"])

    async def insert(self, app: AppRecord) -> None:
        query = """
            INSERT INTO apps (id, user_id, slug, is_public, version, document, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7, $8)
        """
        await self.db.execute(
            query,
            app.id,
            app.user_id,
            app.slug,
            app.is_public,
            app.version,
            app.to_wire(),
            app.created_at,
            app.updated_at,
        )
        logger.debug(f"Inserted app: {app.id}")

    async def get(self, app_id: str) -> Optional[AppRecord]:
        row = await self.db.fetch_one("SELECT document FROM apps WHERE id = $1", app_id)
        return self._row_to_app(row)

    async def get_by_slug(self, slug: str) -> Optional[AppRecord]:
        row = await self.db.fetch_one("SELECT document FROM apps WHERE slug = $1", slug)
        return self._row_to_app(row)

    async def list_by_owner(self, user_id: str) -> List[AppRecord]:
        rows = await self.db.fetch_all(
            "SELECT document FROM apps WHERE user_id = $1 ORDER BY updated_at DESC",
            user_id,
        )
        return [self._row_to_app(row) for row in rows]

    async def save(self, app: AppRecord, expected_version: Optional[int] = None) -> bool:
        query = """
            UPDATE apps
            SET document = $2::jsonb,
                is_public = $3,
                version = $4,
                updated_at = $5
            WHERE id = $1
              AND ($6::integer IS NULL OR version = $6::integer)
        """
        updated = await self.db.execute(
            query,
            app.id,
            app.to_wire(),
            app.is_public,
            app.version,
            app.updated_at,
            expected_version,
        )
        return updated == 1

    async def record_view(self, app_id: str, viewed_at: datetime) -> Optional[AppRecord]:
        query = """
            UPDATE apps
            SET document = jsonb_set(
                jsonb_set(
                    document,
                    '{analytics,views}',
                    to_jsonb(COALESCE((document #>> '{analytics,views}')::integer, 0) + 1)
                ),
                '{analytics,lastViewed}',
                to_jsonb($2::text)
            )
            WHERE id = $1
            RETURNING document
        """
        row = await self.db.fetch_one(query, app_id, viewed_at.isoformat())
        return self._row_to_app(row)

    async def delete(self, app_id: str) -> bool:
        return await self.db.execute("DELETE FROM apps WHERE id = $1", app_id) == 1


class PostgresRecordRepository:
    """PostgreSQL data record storage"""

    def __init__(self, db_manager):
        self.db = db_manager

    @staticmethod
    def _row_to_record(row: Optional[Dict[str, Any]]) -> Optional[AppDataRecord]:
        if not row:
            return None
        return AppDataRecord.model_validate(row["document"])

    async def insert(self, record: AppDataRecord) -> None:
        query = """
            INSERT INTO app_data (id, app_id, user_id, collection, document, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7)
        """
        await self.db.execute(
            query,
            record.id,
            record.app_id,
            record.user_id,
            record.collection,
            record.to_wire(),
            record.created_at,
            record.updated_at,
        )

    async def get(self, app_id: str, record_id: str) -> Optional[AppDataRecord]:
        row = await self.db.fetch_one(
            "SELECT document FROM app_data WHERE id = $1 AND app_id = $2",
            record_id,
            app_id,
        )
        return self._row_to_record(row)

    async def list(
        self,
        app_id: str,
        collection: Optional[str],
        offset: int,
        limit: int,
    ) -> List[AppDataRecord]:
        query = """
            SELECT document FROM app_data
            WHERE app_id = $1 AND ($2::text IS NULL OR collection = $2::text)
            ORDER BY created_at DESC, id DESC
            OFFSET $3 LIMIT $4
        """
        rows = await self.db.fetch_all(query, app_id, collection or None, offset, limit)
        return [self._row_to_record(row) for row in rows]

    async def count(self, app_id: str, collection: Optional[str]) -> int:
        query = """
            SELECT COUNT(*) FROM app_data
            WHERE app_id = $1 AND ($2::text IS NULL OR collection = $2::text)
        """
        return await self.db.fetch_val(query, app_id, collection or None)

    async def save(self, record: AppDataRecord) -> None:
        updated = await self.db.execute(
            "UPDATE app_data SET document = $2::jsonb, updated_at = $3 WHERE id = $1",
            record.id,
            record.to_wire(),
            record.updated_at,
        )
        if updated != 1:
            raise RecordNotFoundError(f"Data record not found: {record.id}")

    async def delete(self, app_id: str, record_id: str) -> bool:
        deleted = await self.db.execute(
            "DELETE FROM app_data WHERE id = $1 AND app_id = $2",
            record_id,
            app_id,
        )
        return deleted == 1

    async def delete_for_app(self, app_id: str) -> int:
        return await self.db.execute("DELETE FROM app_data WHERE app_id = $1", app_id)


# ============================================================================
# BACKEND SELECTION
# ============================================================================

_memory_apps: Optional[MemoryAppRepository] = None
_memory_records: Optional[MemoryRecordRepository] = None


def get_app_repository() -> AppRepository:
    """App repository for the configured storage backend"""
    global _memory_apps
    if settings.storage_backend == "postgres":
        return PostgresAppRepository(db_manager)
    if _memory_apps is None:
        _memory_apps = MemoryAppRepository()
    return _memory_apps


def get_record_repository() -> RecordRepository:
    """Record repository for the configured storage backend"""
    global _memory_records
    if settings.storage_backend == "postgres":
        return PostgresRecordRepository(db_manager)
    if _memory_records is None:
        _memory_records = MemoryRecordRepository()
    return _memory_records
