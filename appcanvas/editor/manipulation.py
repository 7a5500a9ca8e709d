"""
Direct manipulation of components on the canvas: drag, resize, select and
drop from the palette. Positions and sizes snap to the document grid.

The geometry helpers are pure. ``CanvasSession`` keeps the gesture state
between pointer events and writes results into a ``DocumentStore``; the host
attaches its global pointer listeners while ``is_active`` is true.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from loguru import logger

from appcanvas.config import settings
from appcanvas.models.schemas import Component, Position, WidgetType
from .document import DocumentStore, create_component


def snap_to_grid(value: float, grid_size: int) -> int:
    """Round to the nearest multiple of ``grid_size``, halves rounding up."""
    return int(math.floor(value / grid_size + 0.5) * grid_size)


class ResizeHandle(str, Enum):
    N = "n"
    S = "s"
    E = "e"
    W = "w"
    NE = "ne"
    NW = "nw"
    SE = "se"
    SW = "sw"


@dataclass(frozen=True)
class DragState:
    component_id: str
    start_x: float
    start_y: float
    initial: Position


@dataclass(frozen=True)
class ResizeState:
    component_id: str
    handle: ResizeHandle
    start_x: float
    start_y: float
    initial: Position


def compute_drag_position(initial: Position, dx: float, dy: float, grid_size: int) -> Position:
    """Move by the pointer delta, snapped and kept inside the canvas."""
    return initial.model_copy(update={
        "x": max(0, snap_to_grid(initial.x + dx, grid_size)),
        "y": max(0, snap_to_grid(initial.y + dy, grid_size)),
    })


def compute_resize(
    initial: Position,
    handle: Union[ResizeHandle, str],
    dx: float,
    dy: float,
    grid_size: int,
    min_width: Optional[int] = None,
    min_height: Optional[int] = None,
) -> Position:
    """
    Resize from ``handle`` by the pointer delta.

    East and south edges grow with the delta, west and north edges grow
    against it. Sizes snap and never drop below the minimums. When a west or
    north edge moves, the opposite edge stays where it was; if that would
    push the box past the canvas origin, it is pinned at 0 instead.
    """
    handle = ResizeHandle(handle)
    min_width = settings.canvas_min_width if min_width is None else min_width
    min_height = settings.canvas_min_height if min_height is None else min_height

    x, y = initial.x, initial.y
    width, height = initial.width, initial.height

    if "e" in handle.value:
        width = max(min_width, snap_to_grid(initial.width + dx, grid_size))
    elif "w" in handle.value:
        width = max(min_width, snap_to_grid(initial.width - dx, grid_size))
        right = initial.x + initial.width
        x = right - width
        if x < 0:
            x = 0
            width = max(min_width, right)

    if "s" in handle.value:
        height = max(min_height, snap_to_grid(initial.height + dy, grid_size))
    elif "n" in handle.value:
        height = max(min_height, snap_to_grid(initial.height - dy, grid_size))
        bottom = initial.y + initial.height
        y = bottom - height
        if y < 0:
            y = 0
            height = max(min_height, bottom)

    return Position(x=x, y=y, width=width, height=height)


class CanvasSession:
    """Pointer gesture state machine for one canvas."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.drag: Optional[DragState] = None
        self.resize: Optional[ResizeState] = None

    @property
    def is_active(self) -> bool:
        """True while a drag or resize is in progress."""
        return self.drag is not None or self.resize is not None

    def pointer_down(self, component_id: str, pointer_x: float, pointer_y: float) -> bool:
        """Start dragging a component; also selects it."""
        if self.store.preview_mode:
            return False
        component = self.store.get_component(component_id)
        if component is None:
            return False

        self.store.set_selected(component_id)
        self.resize = None
        self.drag = DragState(
            component_id=component_id,
            start_x=pointer_x,
            start_y=pointer_y,
            initial=component.position,
        )
        return True

    def handle_down(
        self,
        component_id: str,
        handle: Union[ResizeHandle, str],
        pointer_x: float,
        pointer_y: float,
    ) -> bool:
        """Start resizing; handles exist only on the selected component."""
        if self.store.preview_mode or component_id != self.store.selected_id:
            return False
        component = self.store.get_component(component_id)
        if component is None:
            return False

        self.drag = None
        self.resize = ResizeState(
            component_id=component_id,
            handle=ResizeHandle(handle),
            start_x=pointer_x,
            start_y=pointer_y,
            initial=component.position,
        )
        return True

    def pointer_move(self, pointer_x: float, pointer_y: float) -> Optional[Position]:
        """Apply the current gesture; returns the new position, if any."""
        grid_size = self.store.grid_size

        if self.drag is not None:
            position = compute_drag_position(
                self.drag.initial,
                pointer_x - self.drag.start_x,
                pointer_y - self.drag.start_y,
                grid_size,
            )
            self.store.update_component(self.drag.component_id, {"position": position})
            return position

        if self.resize is not None:
            position = compute_resize(
                self.resize.initial,
                self.resize.handle,
                pointer_x - self.resize.start_x,
                pointer_y - self.resize.start_y,
                grid_size,
            )
            self.store.update_component(self.resize.component_id, {"position": position})
            return position

        return None

    def pointer_up(self) -> None:
        self.drag = None
        self.resize = None

    def click_component(self, component_id: str) -> None:
        if not self.store.preview_mode:
            self.store.set_selected(component_id)

    def click_canvas(self) -> None:
        self.store.clear_selection()

    def drop_widget(
        self,
        component_type: Union[WidgetType, str],
        drop_x: float,
        drop_y: float,
    ) -> Optional[Component]:
        """Place a new palette widget at the drop point and select it."""
        if self.store.preview_mode:
            return None

        grid_size = self.store.grid_size
        component = create_component(
            component_type,
            Position(
                x=max(0, snap_to_grid(drop_x, grid_size)),
                y=max(0, snap_to_grid(drop_y, grid_size)),
                width=settings.canvas_drop_width,
                height=settings.canvas_drop_height,
            ),
            existing=self.store.document.component_ids(),
        )
        self.store.add_component(component)
        self.store.set_selected(component.id)
        logger.debug(f"Dropped {component.type.value} as {component.id}")
        return component
