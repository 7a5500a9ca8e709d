"""Pytest configuration and fixtures."""

import os

# Settings are read once at import time
os.environ["APPCANVAS_STORAGE_BACKEND"] = "memory"
os.environ["APPCANVAS_REDIS_ENABLED"] = "false"
os.environ["APPCANVAS_LLM_ENABLED"] = "false"
os.environ["APPCANVAS_LLM_API_KEY"] = ""
os.environ["APPCANVAS_LOG_LEVEL"] = "WARNING"
os.environ["APPCANVAS_JWT_SECRET_KEY"] = "test-secret-key-for-appcanvas-tests"

import pytest
from fastapi.testclient import TestClient

from appcanvas.core.security import CurrentUser, create_access_token
from appcanvas.editor import DocumentStore
from appcanvas.main import app
from appcanvas.models.schemas import Component, LayoutDocument, Position, WidgetType
from appcanvas.services.app_service import AppService
from appcanvas.services.data_service import DataService
from appcanvas.services.persistence import (
    MemoryAppRepository,
    MemoryRecordRepository,
    get_app_repository,
    get_record_repository,
)


API = "/api/v1"


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def alice():
    return CurrentUser(id="user-alice", name="Alice", email="alice@example.com")


@pytest.fixture
def bob():
    return CurrentUser(id="user-bob", name="Bob", email="bob@example.com")


def bearer(user: CurrentUser) -> dict:
    token = create_access_token(user.id, name=user.name, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers(alice):
    return bearer(alice)


@pytest.fixture
def bob_headers(bob):
    return bearer(bob)


# ============================================================================
# Storage and services
# ============================================================================

@pytest.fixture
def app_repo():
    return MemoryAppRepository()


@pytest.fixture
def record_repo():
    return MemoryRecordRepository()


@pytest.fixture
def app_service(app_repo, record_repo):
    return AppService(app_repo, record_repo)


@pytest.fixture
def data_service(app_repo, record_repo):
    return DataService(app_repo, record_repo)


@pytest.fixture
def client(app_repo, record_repo):
    """API client over fresh in-memory repositories"""
    app.dependency_overrides[get_app_repository] = lambda: app_repo
    app.dependency_overrides[get_record_repository] = lambda: record_repo
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============================================================================
# Documents
# ============================================================================

def make_component(component_id: str, x: int = 0, y: int = 0, width: int = 200, height: int = 100,
                   component_type: WidgetType = WidgetType.TEXT, **props) -> Component:
    return Component(
        id=component_id,
        type=component_type,
        position=Position(x=x, y=y, width=width, height=height),
        props=props,
    )


@pytest.fixture
def two_component_doc():
    return LayoutDocument(components=[
        make_component("text-1", 0, 0),
        make_component("button-1", 300, 40, component_type=WidgetType.BUTTON),
    ])


@pytest.fixture
def store(two_component_doc):
    return DocumentStore(two_component_doc)
