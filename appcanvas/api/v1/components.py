"""Component catalog API endpoints."""
from fastapi import APIRouter, HTTPException, status
from typing import Any, Dict

from appcanvas.models.schemas.component_catalog import (
    default_props_for,
    default_styling_for,
    export_component_catalog,
    get_component_definition,
    get_component_default_dimensions,
)

router = APIRouter()


@router.get(
    "/components",
    tags=["Components"],
    summary="Get the widget palette",
    description="Every widget type with its label, category, default props, styling and drop size."
)
async def get_component_catalog() -> Dict[str, Any]:
    return export_component_catalog()


@router.get(
    "/components/{component_type}",
    tags=["Components"],
    summary="Get one widget type's defaults",
)
async def get_component(component_type: str) -> Dict[str, Any]:
    definition = get_component_definition(component_type)
    if definition is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "unknown_component", "message": f"Unknown component type '{component_type}'"}
        )

    width, height = get_component_default_dimensions()
    return {
        **definition,
        "defaultProps": default_props_for(definition["type"]),
        "defaultStyling": default_styling_for(definition["type"]),
        "defaultSize": {"width": width, "height": height},
    }
