"""
REST API endpoints for app documents.

Owners create, edit, publish and delete their apps; anyone can open a
published app by slug.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status

from appcanvas.core.security import CurrentUser, get_current_user, get_optional_user
from appcanvas.models.schemas import (
    AppCreate,
    AppListResponse,
    AppResponse,
    AppUpdate,
    MessageResponse,
    VisibilityUpdate,
)
from appcanvas.services.app_service import AppService, get_app_service
from appcanvas.services.persistence import PersistenceError
from appcanvas.utils.logging import get_logger, log_context
from .errors import http_error

router = APIRouter()
logger = get_logger(__name__)


@router.get(
    "/apps",
    response_model=AppListResponse,
    tags=["Apps"],
    summary="List the caller's apps",
    description="Most recently updated first; component data bags are omitted."
)
async def list_apps(
    user: CurrentUser = Depends(get_current_user),
    service: AppService = Depends(get_app_service),
) -> AppListResponse:
    with log_context(user_id=user.id):
        apps = await service.list_apps(user)
        logger.info("api.apps.list.completed", extra={"count": len(apps)})
        return AppListResponse(apps=apps)


@router.get(
    "/apps/{app_id}",
    response_model=AppResponse,
    tags=["Apps"],
    summary="Get one of the caller's apps",
)
async def get_app(
    app_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: AppService = Depends(get_app_service),
) -> AppResponse:
    with log_context(user_id=user.id, app_id=app_id):
        try:
            app = await service.get_app(user, app_id)
        except PersistenceError as e:
            logger.warning("api.apps.get.failed", message=str(e))
            raise http_error(e)
        return AppResponse(app=app)


@router.post(
    "/apps",
    response_model=AppResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Apps"],
    summary="Create an app",
    description="Starts from the default layout; the slug is derived from the name."
)
async def create_app(
    payload: AppCreate,
    user: CurrentUser = Depends(get_current_user),
    service: AppService = Depends(get_app_service),
) -> AppResponse:
    with log_context(user_id=user.id):
        app = await service.create_app(user, payload)
        logger.info("api.apps.create.completed", extra={"app_id": app.id, "slug": app.slug})
        return AppResponse(message="App created successfully", app=app)


@router.put(
    "/apps/{app_id}",
    response_model=AppResponse,
    tags=["Apps"],
    summary="Update an app",
    description=(
        "Overwrites the given fields and increments the version. "
        "Send expectedVersion to get a 409 instead of overwriting newer changes."
    )
)
async def update_app(
    app_id: str,
    payload: AppUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: AppService = Depends(get_app_service),
) -> AppResponse:
    with log_context(user_id=user.id, app_id=app_id):
        try:
            app = await service.update_app(user, app_id, payload)
        except PersistenceError as e:
            logger.warning("api.apps.update.failed", message=str(e))
            raise http_error(e)

        logger.info("api.apps.update.completed", extra={"version": app.version})
        return AppResponse(message="App updated successfully", app=app)


@router.delete(
    "/apps/{app_id}",
    response_model=MessageResponse,
    tags=["Apps"],
    summary="Delete an app and its data records",
)
async def delete_app(
    app_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: AppService = Depends(get_app_service),
) -> MessageResponse:
    with log_context(user_id=user.id, app_id=app_id):
        try:
            await service.delete_app(user, app_id)
        except PersistenceError as e:
            logger.warning("api.apps.delete.failed", message=str(e))
            raise http_error(e)

        logger.info("api.apps.delete.completed")
        return MessageResponse(message="App deleted successfully")


@router.patch(
    "/apps/{app_id}/visibility",
    response_model=AppResponse,
    tags=["Apps"],
    summary="Publish or unpublish an app",
)
async def set_visibility(
    app_id: str,
    payload: VisibilityUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: AppService = Depends(get_app_service),
) -> AppResponse:
    with log_context(user_id=user.id, app_id=app_id):
        try:
            app = await service.set_visibility(user, app_id, payload.is_public)
        except PersistenceError as e:
            logger.warning("api.apps.visibility.failed", message=str(e))
            raise http_error(e)

        action = "published" if app.is_public else "unpublished"
        logger.info(f"api.apps.visibility.{action}")
        return AppResponse(message=f"App {action} successfully", app=app)


@router.get(
    "/apps/{slug}/public",
    response_model=AppResponse,
    tags=["Apps"],
    summary="Open a published app",
    description="No authentication required. Counts a view when the app collects analytics."
)
async def get_public_app(
    slug: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service: AppService = Depends(get_app_service),
) -> AppResponse:
    with log_context(user_id=user.id if user else None):
        try:
            app = await service.get_public_app(slug)
        except PersistenceError as e:
            logger.info("api.apps.public.not_found", extra={"slug": slug})
            raise http_error(e)
        return AppResponse(app=app)
