"""
AI assistant request and response models.
"""
from typing import Any, List, Optional

from pydantic import Field, field_validator

from .core import CamelModel, Position, WidgetType
from .components import Component
from .layout import LayoutDocument


class WidgetSuggestion(CamelModel):
    type: WidgetType
    name: str
    description: str = ""


class AppTemplate(CamelModel):
    name: str
    description: str = ""
    layout: LayoutDocument = Field(default_factory=LayoutDocument)


class LayoutSuggestion(CamelModel):
    """Advice item; plain strings are accepted as a recommendation"""
    issue: Optional[str] = None
    recommendation: str

    @classmethod
    def coerce(cls, value: Any) -> "LayoutSuggestion":
        if isinstance(value, str):
            return cls(recommendation=value)
        return cls.model_validate(value)


class LayoutImprovement(CamelModel):
    """Proposed new position for an existing component"""
    id: str
    type: Optional[WidgetType] = None
    position: Position


class OptimizedLayout(CamelModel):
    suggestions: List[LayoutSuggestion] = Field(default_factory=list)
    improvements: List[LayoutImprovement] = Field(default_factory=list)

    @field_validator('suggestions', mode='before')
    @classmethod
    def coerce_suggestions(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [LayoutSuggestion.coerce(item) for item in v]
        return v


class SuggestWidgetsRequest(CamelModel):
    app_type: str = "custom"
    description: str = ""


class GenerateTemplateRequest(CamelModel):
    app_type: str = "custom"
    description: str = ""


class OptimizeLayoutRequest(CamelModel):
    components: List[Component] = Field(default_factory=list)


class SuggestWidgetsResponse(CamelModel):
    suggestions: List[WidgetSuggestion]


class GenerateTemplateResponse(CamelModel):
    template: Optional[AppTemplate] = None


class OptimizeLayoutResponse(CamelModel):
    optimized_layout: OptimizedLayout
