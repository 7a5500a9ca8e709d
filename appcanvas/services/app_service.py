"""
App document service: ownership, slugs, versioning and publication.
"""
import time
import uuid
from typing import Callable, List, Optional

from fastapi import Depends
from loguru import logger

from appcanvas.core.security import CurrentUser
from appcanvas.models.schemas import (
    AppCreate,
    AppRecord,
    AppUpdate,
    default_layout,
    generate_slug,
)
from appcanvas.models.schemas.apps import utcnow
from .persistence import (
    AppNotFoundError,
    AppRepository,
    RecordRepository,
    VersionConflictError,
    get_app_repository,
    get_record_repository,
)


# Retries when a write loses a race and the caller sent no expected version
MAX_SAVE_ATTEMPTS = 3


class AppService:
    """Owner-scoped operations on app documents"""

    def __init__(self, apps: AppRepository, records: RecordRepository):
        self.apps = apps
        self.records = records

    async def _unique_slug(self, name: str) -> str:
        millis = int(time.time() * 1000)
        slug = generate_slug(name, millis)
        while await self.apps.get_by_slug(slug) is not None:
            millis += 1
            slug = generate_slug(name, millis)
        return slug

    async def create_app(self, user: CurrentUser, payload: AppCreate) -> AppRecord:
        layout = default_layout()
        if payload.layout is not None:
            layout.update(payload.layout)

        app = AppRecord(
            id=uuid.uuid4().hex,
            user_id=user.id,
            name=payload.name,
            description=payload.description,
            type=payload.type,
            slug=await self._unique_slug(payload.name),
            custom_url=payload.custom_url,
            layout=layout,
            **({"settings": payload.settings} if payload.settings else {}),
        )
        await self.apps.insert(app)
        logger.info(f"Created app {app.id} ({app.slug}) for user {user.id}")
        return app

    async def list_apps(self, user: CurrentUser) -> List[AppRecord]:
        apps = await self.apps.list_by_owner(user.id)
        return [app.summary() for app in apps]

    async def get_app(self, user: CurrentUser, app_id: str) -> AppRecord:
        app = await self.apps.get(app_id)
        if app is None or not app.is_owned_by(user.id):
            raise AppNotFoundError("App not found")
        return app

    async def _write(
        self,
        user: CurrentUser,
        app_id: str,
        mutate: Callable[[AppRecord], AppRecord],
        expected_version: Optional[int] = None,
    ) -> AppRecord:
        """
        Read-modify-write guarded by the stored version. A caller-supplied
        ``expected_version`` turns any mismatch into a conflict; otherwise a
        lost race is retried against the fresh copy.
        """
        for _ in range(MAX_SAVE_ATTEMPTS):
            current = await self.get_app(user, app_id)
            if expected_version is not None and current.version != expected_version:
                raise VersionConflictError(
                    f"App was modified (expected version {expected_version}, "
                    f"current version {current.version})",
                    current_version=current.version,
                )

            updated = mutate(current)
            if await self.apps.save(updated, expected_version=current.version):
                return updated

            if expected_version is not None:
                latest = await self.apps.get(app_id)
                raise VersionConflictError(
                    f"App was modified (expected version {expected_version})",
                    current_version=latest.version if latest else None,
                )
            logger.debug(f"Concurrent write on app {app_id}, retrying")

        raise VersionConflictError("App is being modified concurrently, try again")

    async def update_app(self, user: CurrentUser, app_id: str, update: AppUpdate) -> AppRecord:
        changes = update.changes()

        def apply(current: AppRecord) -> AppRecord:
            return current.model_copy(update={
                **changes,
                "version": current.version + 1,
                "updated_at": utcnow(),
            })

        app = await self._write(user, app_id, apply, expected_version=update.expected_version)
        logger.info(f"Updated app {app_id} to version {app.version} ({', '.join(sorted(changes)) or 'no fields'})")
        return app

    async def set_visibility(self, user: CurrentUser, app_id: str, is_public: bool) -> AppRecord:
        def apply(current: AppRecord) -> AppRecord:
            return current.model_copy(update={"is_public": is_public, "updated_at": utcnow()})

        app = await self._write(user, app_id, apply)
        logger.info(f"App {app_id} {'published' if is_public else 'unpublished'}")
        return app

    async def delete_app(self, user: CurrentUser, app_id: str) -> None:
        await self.get_app(user, app_id)
        removed = await self.records.delete_for_app(app_id)
        await self.apps.delete(app_id)
        logger.info(f"Deleted app {app_id} and {removed} data records")

    async def get_public_app(self, slug: str) -> AppRecord:
        """Published app by slug; counts the view when analytics are on."""
        app = await self.apps.get_by_slug(slug)
        if app is None or not app.is_public:
            raise AppNotFoundError("App not found or not public")

        if app.settings.collect_analytics:
            viewed = await self.apps.record_view(app.id, utcnow())
            if viewed is not None:
                app = viewed
        return app


def get_app_service(
    apps: AppRepository = Depends(get_app_repository),
    records: RecordRepository = Depends(get_record_repository),
) -> AppService:
    return AppService(apps, records)
