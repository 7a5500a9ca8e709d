"""
Core type definitions and constants.
"""
from enum import Enum
from typing import Dict, Type
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
import re


class CamelModel(BaseModel):
    """Base model speaking the camelCase wire format of the editor"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Serialize with wire aliases into plain JSON types"""
        return self.model_dump(by_alias=True, mode="json")


class WidgetType(str, Enum):
    """Widget types that can be placed on a canvas"""
    TEXT = "text"
    BUTTON = "button"
    FORM = "form"
    TABLE = "table"
    CHART = "chart"
    CALENDAR = "calendar"
    KANBAN = "kanban"
    FILE_UPLOAD = "fileUpload"
    TIMER = "timer"
    COUNTER = "counter"
    # Client-only extensions
    IMAGE = "image"
    VIDEO = "video"
    MAP = "map"
    RATING = "rating"


_HEX_COLOR = re.compile(r'^#([A-Fa-f0-9]{3}|[A-Fa-f0-9]{6}|[A-Fa-f0-9]{8})$')
_FUNC_COLOR = re.compile(r'^(rgb|rgba|hsl|hsla)\(\s*[-\d.%\s,/]+\)$')
_NAMED_COLOR = re.compile(r'^[a-zA-Z]+$')


def is_valid_color(value: str) -> bool:
    """Accept hex, rgb()/hsl() functional and named CSS colors"""
    value = value.strip()
    return bool(
        _HEX_COLOR.match(value)
        or _FUNC_COLOR.match(value)
        or _NAMED_COLOR.match(value)
    )


class Position(CamelModel):
    """Component box on the canvas, in pixels"""
    x: int = Field(0, ge=0, description="Left edge")
    y: int = Field(0, ge=0, description="Top edge")
    width: int = Field(200, ge=0)
    height: int = Field(100, ge=0)


class Theme(CamelModel):
    """Layout color scheme"""
    primary_color: str = "#3B82F6"
    secondary_color: str = "#10B981"
    accent_color: str = "#F97316"
    background_color: str = "#FFFFFF"
    text_color: str = "#1F2937"
    dark_mode: bool = False

    @field_validator(
        'primary_color', 'secondary_color', 'accent_color',
        'background_color', 'text_color'
    )
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not is_valid_color(v):
            raise ValueError(f"Invalid color: {v}")
        return v


# Widget props schema per widget type
COMPONENT_PROPERTY_SCHEMAS: Dict[str, Type[BaseModel]] = {}


def register_component_schema(component_type: WidgetType, schema_class: Type[BaseModel]):
    """Register a widget props schema"""
    COMPONENT_PROPERTY_SCHEMAS[component_type.value] = schema_class
