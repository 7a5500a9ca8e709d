"""
Layout document mutations and the editor's document store.

The module-level functions are pure: each takes a ``LayoutDocument`` and
returns a new one, leaving the input untouched. ``DocumentStore`` holds the
current document together with the selection and preview flag, and is the
object a canvas or editor session is given to work against.
"""
import time
import uuid
from typing import List, Optional, Union

from loguru import logger

from appcanvas.config import settings
from appcanvas.models.schemas import (
    Component,
    ComponentUpdate,
    LayoutDocument,
    Position,
    WidgetType,
    default_props_for,
    default_styling_for,
)


SELECTED_Z_INDEX = 10
DEFAULT_Z_INDEX = 1


class DuplicateComponentError(ValueError):
    """Raised when a component id is already present in the document"""

    def __init__(self, component_id: str):
        super().__init__(f"Component id already in use: {component_id}")
        self.component_id = component_id


def now_millis() -> int:
    return int(time.time() * 1000)


def new_component_id(
    component_type: Union[WidgetType, str],
    existing: Optional[List[str]] = None,
    with_suffix: bool = False,
) -> str:
    """
    Generate a component id not present in ``existing``.

    Palette drops use ``{type}-{millis}``; generated widgets (templates and
    AI suggestions) add a 9 character random suffix.
    """
    type_name = component_type.value if isinstance(component_type, WidgetType) else component_type
    taken = set(existing or ())
    millis = now_millis()
    while True:
        candidate = f"{type_name}-{millis}"
        if with_suffix:
            candidate = f"{candidate}-{uuid.uuid4().hex[:9]}"
        if candidate not in taken:
            return candidate
        millis += 1


def create_component(
    component_type: Union[WidgetType, str],
    position: Position,
    existing: Optional[List[str]] = None,
    with_suffix: bool = False,
) -> Component:
    """Build a component of ``component_type`` with its default props and styling."""
    widget_type = WidgetType(component_type)
    return Component(
        id=new_component_id(widget_type, existing, with_suffix=with_suffix),
        type=widget_type,
        position=position,
        props=default_props_for(widget_type),
        styling=default_styling_for(widget_type),
        data={},
        events=[],
    )


def add_component(document: LayoutDocument, component: Component) -> LayoutDocument:
    """Append ``component``; its id must not already be in the document."""
    if document.get_component(component.id) is not None:
        raise DuplicateComponentError(component.id)
    return document.model_copy(update={"components": [*document.components, component]})


def update_component(
    document: LayoutDocument,
    component_id: str,
    update: Union[ComponentUpdate, dict],
) -> LayoutDocument:
    """
    Replace the top-level fields given in ``update`` on one component.

    Nested keys are not merged. An unknown id leaves the document unchanged.
    """
    if not isinstance(update, ComponentUpdate):
        update = ComponentUpdate.model_validate(update)
    changes = update.changes()

    if document.get_component(component_id) is None:
        logger.debug(f"update_component: unknown id {component_id}")
        return document

    components = [
        component.model_copy(update=changes) if component.id == component_id else component
        for component in document.components
    ]
    return document.model_copy(update={"components": components})


def remove_component(document: LayoutDocument, component_id: str) -> LayoutDocument:
    """Drop the component with ``component_id``; missing ids are a no-op."""
    components = [c for c in document.components if c.id != component_id]
    if len(components) == len(document.components):
        return document
    return document.model_copy(update={"components": components})


def duplicate_component(document: LayoutDocument, component_id: str) -> LayoutDocument:
    """
    Append a copy of a component with a fresh ``{id}-copy-{millis}`` id,
    offset by the duplicate offset on both axes. Unknown ids are a no-op.
    """
    original = document.get_component(component_id)
    if original is None:
        return document

    taken = set(document.component_ids())
    millis = now_millis()
    while f"{component_id}-copy-{millis}" in taken:
        millis += 1

    offset = settings.canvas_duplicate_offset
    copy = original.model_copy(
        deep=True,
        update={
            "id": f"{component_id}-copy-{millis}",
            "position": original.position.model_copy(update={
                "x": original.position.x + offset,
                "y": original.position.y + offset,
            }),
        },
    )
    return add_component(document, copy)


class DocumentStore:
    """
    Current layout document plus editor selection and preview flag.

    Selection is kept beside the document, never on a component. Every
    mutation swaps in a new document built by the pure functions above.
    """

    def __init__(
        self,
        document: Optional[LayoutDocument] = None,
        preview_mode: bool = False,
    ):
        self.document = document or LayoutDocument()
        self.selected_id: Optional[str] = None
        self.preview_mode = preview_mode

    @property
    def grid_size(self) -> int:
        return self.document.grid_size

    @property
    def components(self) -> List[Component]:
        return self.document.components

    @property
    def selected_component(self) -> Optional[Component]:
        if self.selected_id is None:
            return None
        return self.document.get_component(self.selected_id)

    def set_document(self, document: LayoutDocument) -> None:
        self.document = document
        if self.selected_id and document.get_component(self.selected_id) is None:
            self.selected_id = None

    def get_component(self, component_id: str) -> Optional[Component]:
        return self.document.get_component(component_id)

    def add_component(self, component: Component) -> Component:
        self.document = add_component(self.document, component)
        return component

    def update_component(self, component_id: str, update: Union[ComponentUpdate, dict]) -> None:
        self.document = update_component(self.document, component_id, update)

    def remove_component(self, component_id: str) -> None:
        self.document = remove_component(self.document, component_id)
        if self.selected_id == component_id:
            self.selected_id = None

    def duplicate_component(self, component_id: str) -> Optional[Component]:
        """Duplicate and return the copy, or None for an unknown id."""
        before = len(self.document.components)
        self.document = duplicate_component(self.document, component_id)
        if len(self.document.components) == before:
            return None
        return self.document.components[-1]

    def set_selected(self, component_id: Optional[str]) -> None:
        self.selected_id = component_id

    def clear_selection(self) -> None:
        self.selected_id = None

    def toggle_preview_mode(self) -> bool:
        self.preview_mode = not self.preview_mode
        self.selected_id = None
        return self.preview_mode

    def z_index_for(self, component_id: str) -> int:
        return SELECTED_Z_INDEX if component_id == self.selected_id else DEFAULT_Z_INDEX

    def render_order(self) -> List[Component]:
        """Paint order: insertion order with the selected component last."""
        ordered = [c for c in self.document.components if c.id != self.selected_id]
        selected = self.selected_component
        if selected is not None:
            ordered.append(selected)
        return ordered
