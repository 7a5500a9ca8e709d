"""Centralized widget registry.

This module is the single source of truth for palette entries and the default
props, styling and dimensions a freshly placed widget starts with.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, List, Optional, Tuple, TypedDict

from appcanvas.config import settings
from .core import COMPONENT_PROPERTY_SCHEMAS, WidgetType
from . import components  # noqa: F401  registers the props variants


class ComponentDefinition(TypedDict):
    """Palette entry for a widget type."""

    type: str
    name: str
    category: str
    description: str


COMPONENT_DEFINITIONS: Dict[str, ComponentDefinition] = {
    "text": {
        "type": "text",
        "name": "Text Block",
        "category": "Content",
        "description": "Rich text with formatting options",
    },
    "button": {
        "type": "button",
        "name": "Button",
        "category": "Interactive",
        "description": "Clickable button with custom actions",
    },
    "form": {
        "type": "form",
        "name": "Form",
        "category": "Input",
        "description": "Dynamic form with validation",
    },
    "table": {
        "type": "table",
        "name": "Data Table",
        "category": "Data",
        "description": "Sortable and filterable table",
    },
    "chart": {
        "type": "chart",
        "name": "Chart",
        "category": "Visualization",
        "description": "Various chart types",
    },
    "calendar": {
        "type": "calendar",
        "name": "Calendar",
        "category": "Scheduling",
        "description": "Event calendar with management",
    },
    "kanban": {
        "type": "kanban",
        "name": "Kanban Board",
        "category": "Organization",
        "description": "Task board with drag-and-drop",
    },
    "fileUpload": {
        "type": "fileUpload",
        "name": "File Upload",
        "category": "Input",
        "description": "File upload with preview",
    },
    "timer": {
        "type": "timer",
        "name": "Timer",
        "category": "Utility",
        "description": "Countdown and stopwatch",
    },
    "counter": {
        "type": "counter",
        "name": "Counter",
        "category": "Utility",
        "description": "Increment/decrement counter",
    },
    "image": {
        "type": "image",
        "name": "Image",
        "category": "Media",
        "description": "Image with caption and styling",
    },
    "video": {
        "type": "video",
        "name": "Video",
        "category": "Media",
        "description": "Video player with controls",
    },
    "map": {
        "type": "map",
        "name": "Map",
        "category": "Location",
        "description": "Interactive map component",
    },
    "rating": {
        "type": "rating",
        "name": "Rating",
        "category": "Interactive",
        "description": "Star rating component",
    },
}

DEFAULT_STYLING: Dict[str, Any] = {
    "backgroundColor": "#ffffff",
    "borderRadius": "8px",
    "padding": "16px",
    "border": "1px solid #e5e7eb",
    "boxShadow": "0 1px 3px rgba(0, 0, 0, 0.1)",
}

# Size of a widget placed from an AI suggestion
SUGGESTED_WIDGET_DIMENSIONS: Tuple[int, int] = (300, 200)


def normalize_component_type(component_type: Any) -> Optional[str]:
    """Return the wire value of a known widget type, else None."""
    if isinstance(component_type, WidgetType):
        return component_type.value
    if isinstance(component_type, str) and component_type in COMPONENT_DEFINITIONS:
        return component_type
    return None


def get_component_definition(component_type: Any) -> Optional[ComponentDefinition]:
    canonical = normalize_component_type(component_type)
    if not canonical:
        return None
    return deepcopy(COMPONENT_DEFINITIONS[canonical])


def get_available_components() -> List[str]:
    return list(COMPONENT_DEFINITIONS.keys())


def get_categories() -> List[str]:
    """Palette categories in first-seen order."""
    seen: List[str] = []
    for definition in COMPONENT_DEFINITIONS.values():
        if definition["category"] not in seen:
            seen.append(definition["category"])
    return seen


def default_props_for(component_type: Any) -> Dict[str, Any]:
    """Default props of a widget type; unknown types get ``{}``."""
    canonical = normalize_component_type(component_type)
    schema_class = COMPONENT_PROPERTY_SCHEMAS.get(canonical) if canonical else None
    if schema_class is None:
        return {}
    return schema_class().model_dump(by_alias=True, exclude_none=True, mode="json")


def default_styling_for(component_type: Any) -> Dict[str, Any]:
    """Default styling of a widget type; unknown types get ``{}``."""
    if not normalize_component_type(component_type):
        return {}
    return deepcopy(DEFAULT_STYLING)


def get_component_default_dimensions(component_type: Any = None) -> Tuple[int, int]:
    """Size of a widget dropped from the palette."""
    return settings.canvas_drop_width, settings.canvas_drop_height


def export_component_catalog() -> Dict[str, Any]:
    width, height = get_component_default_dimensions()
    return {
        "components": [
            {
                **deepcopy(definition),
                "defaultProps": default_props_for(component_type),
                "defaultStyling": default_styling_for(component_type),
                "defaultSize": {"width": width, "height": height},
            }
            for component_type, definition in COMPONENT_DEFINITIONS.items()
        ],
        "categories": get_categories(),
        "gridSize": settings.canvas_grid_size,
    }
