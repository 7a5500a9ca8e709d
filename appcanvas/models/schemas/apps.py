"""
App document models.
"""
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .core import CamelModel
from .layout import LayoutDocument, default_layout


class AppType(str, Enum):
    TODO = "todo"
    CRM = "crm"
    BUDGET = "budget"
    PROJECT = "project"
    EVENT = "event"
    CUSTOM = "custom"


class AppSettings(CamelModel):
    allow_comments: bool = False
    require_auth: bool = False
    collect_analytics: bool = True


class AppAnalytics(CamelModel):
    views: int = Field(0, ge=0)
    unique_visitors: int = Field(0, ge=0)
    last_viewed: Optional[datetime] = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


_NON_SLUG_CHARS = re.compile(r'[^a-z0-9]')
_DASH_RUNS = re.compile(r'-+')


def generate_slug(name: str, epoch_millis: int) -> str:
    """
    Derive a public slug from an app name.

    Lowercase, every non ``[a-z0-9]`` character becomes ``-``, runs of dashes
    collapse, edges are trimmed, then the last six digits of the creation
    time are appended.
    """
    base = _DASH_RUNS.sub('-', _NON_SLUG_CHARS.sub('-', name.lower())).strip('-')
    return f"{base or 'app'}-{str(epoch_millis)[-6:]}"


class AppRecord(CamelModel):
    """Stored app: metadata plus its layout document"""
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    type: AppType = AppType.CUSTOM
    slug: str
    is_public: bool = False
    custom_url: Optional[str] = None
    layout: Dict[str, Any] = Field(default_factory=default_layout)
    settings: AppSettings = Field(default_factory=AppSettings)
    analytics: AppAnalytics = Field(default_factory=AppAnalytics)
    version: int = Field(1, ge=1)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.user_id == user_id

    def summary(self) -> "AppRecord":
        """Copy without per-component ``data`` bags, for list views"""
        layout = dict(self.layout)
        components = layout.get("components")
        if isinstance(components, list):
            layout["components"] = [
                {k: v for k, v in component.items() if k != "data"}
                if isinstance(component, dict) else component
                for component in components
            ]
        return self.model_copy(update={"layout": layout})


def _check_layout(v: Any) -> Any:
    """Accept only layouts the editor can open; the stored dict is kept as sent"""
    if v is not None:
        try:
            LayoutDocument.from_wire(v)
        except ValidationError as e:
            raise ValueError(
                f"Layout is not a valid document ({e.error_count()} errors, first at "
                f"{'.'.join(str(p) for p in e.errors()[0]['loc'])})"
            ) from e
    return v


def _strip_name(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        if not v:
            raise ValueError("App name is required")
    return v


class AppCreate(CamelModel):
    name: str
    description: Optional[str] = None
    type: AppType = AppType.CUSTOM
    layout: Optional[Dict[str, Any]] = None
    settings: Optional[AppSettings] = None
    custom_url: Optional[str] = None

    _normalize_name = field_validator('name', mode='before')(_strip_name)
    _validate_layout = field_validator('layout')(_check_layout)

    @field_validator('description', mode='before')
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class AppUpdate(CamelModel):
    """
    Whole-field app update. Server-owned fields (id, owner, slug, version,
    analytics, timestamps) are ignored if a client echoes them back.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[AppType] = None
    layout: Optional[Dict[str, Any]] = None
    settings: Optional[AppSettings] = None
    custom_url: Optional[str] = None
    is_public: Optional[bool] = None
    expected_version: Optional[int] = Field(
        default=None,
        description="Reject the update with 409 unless the stored version matches"
    )

    _normalize_name = field_validator('name', mode='before')(_strip_name)
    _validate_layout = field_validator('layout')(_check_layout)

    def changes(self) -> Dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "expected_version" and getattr(self, name) is not None
        }


class VisibilityUpdate(CamelModel):
    is_public: bool


class AppResponse(CamelModel):
    message: Optional[str] = None
    app: AppRecord


class AppListResponse(CamelModel):
    apps: List[AppRecord]


class MessageResponse(CamelModel):
    message: str
