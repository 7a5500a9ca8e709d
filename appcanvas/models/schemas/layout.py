"""
Layout document model.
"""
from typing import List, Dict, Any, Optional
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .core import CamelModel, Theme
from .components import Component


DEFAULT_GRID_SIZE = 10


class LayoutDocument(CamelModel):
    """
    The full editable state of one app's canvas.

    Component order is insertion order and doubles as the default paint
    order. Unknown top-level keys are kept so documents round-trip.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    components: List[Component] = Field(default_factory=list)
    grid_size: int = Field(DEFAULT_GRID_SIZE, gt=0)
    theme: Theme = Field(default_factory=Theme)

    def get_component(self, component_id: str) -> Optional[Component]:
        for component in self.components:
            if component.id == component_id:
                return component
        return None

    def component_ids(self) -> List[str]:
        return [component.id for component in self.components]

    @classmethod
    def from_wire(cls, data: Optional[Dict[str, Any]]) -> "LayoutDocument":
        """Parse a stored layout; a missing layout is an empty document."""
        return cls.model_validate(data or {})


def default_layout() -> Dict[str, Any]:
    """Wire form of the layout a new app starts with."""
    return LayoutDocument().to_wire()
