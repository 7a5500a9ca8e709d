"""Tests for canvas drag, resize, snapping and palette drops."""

import pytest
from hypothesis import given, strategies as st

from appcanvas.editor import (
    CanvasSession,
    DocumentStore,
    ResizeHandle,
    compute_drag_position,
    compute_resize,
    snap_to_grid,
)
from appcanvas.models.schemas import LayoutDocument, Position, WidgetType, default_props_for

from conftest import make_component


# ============================================================================
# snap_to_grid
# ============================================================================

def test_snap_rounds_to_nearest_multiple():
    assert snap_to_grid(33, 20) == 40
    assert snap_to_grid(7, 20) == 0
    assert snap_to_grid(24, 10) == 20
    assert snap_to_grid(26, 10) == 30


def test_snap_rounds_halves_up():
    assert snap_to_grid(5, 10) == 10
    assert snap_to_grid(15, 10) == 20
    assert snap_to_grid(-5, 10) == 0


@given(st.floats(min_value=-10_000, max_value=10_000, allow_nan=False), st.integers(min_value=1, max_value=100))
def test_snap_is_multiple_within_half_grid(value, grid):
    snapped = snap_to_grid(value, grid)
    assert snapped % grid == 0
    assert abs(snapped - value) <= grid / 2 + 1e-6


@given(st.integers(min_value=-1000, max_value=1000), st.integers(min_value=1, max_value=50))
def test_snap_is_idempotent(value, grid):
    once = snap_to_grid(value, grid)
    assert snap_to_grid(once, grid) == once


# ============================================================================
# compute_drag_position
# ============================================================================

def test_drag_snaps_delta():
    moved = compute_drag_position(Position(x=0, y=0, width=200, height=100), 33, 7, 20)
    assert (moved.x, moved.y) == (40, 0)
    assert (moved.width, moved.height) == (200, 100)


def test_drag_clamps_to_canvas_origin():
    moved = compute_drag_position(Position(x=40, y=40, width=200, height=100), -500, -90, 10)
    assert (moved.x, moved.y) == (0, 0)


@given(
    st.integers(min_value=0, max_value=2000),
    st.integers(min_value=0, max_value=2000),
    st.floats(min_value=-3000, max_value=3000, allow_nan=False),
    st.floats(min_value=-3000, max_value=3000, allow_nan=False),
    st.sampled_from([5, 10, 20, 25]),
)
def test_drag_never_leaves_canvas_or_grid(x, y, dx, dy, grid):
    moved = compute_drag_position(Position(x=x, y=y, width=200, height=100), dx, dy, grid)
    assert moved.x >= 0 and moved.y >= 0
    assert moved.x % grid == 0 and moved.y % grid == 0


# ============================================================================
# compute_resize
# ============================================================================

def test_resize_south_east_respects_minimum_height():
    resized = compute_resize(Position(x=0, y=0, width=200, height=100), "se", 150, -200, 20)
    assert (resized.width, resized.height) == (360, 60)
    assert (resized.x, resized.y) == (0, 0)


def test_resize_enforces_minimum_width():
    resized = compute_resize(Position(x=0, y=0, width=200, height=100), ResizeHandle.E, -500, 0, 10)
    assert resized.width == 100


def test_resize_west_keeps_right_edge_fixed():
    initial = Position(x=100, y=50, width=200, height=100)
    resized = compute_resize(initial, ResizeHandle.W, 40, 0, 10)
    assert resized.width == 160
    assert resized.x == 140
    assert resized.x + resized.width == initial.x + initial.width


def test_resize_north_keeps_bottom_edge_fixed():
    initial = Position(x=0, y=200, width=200, height=100)
    resized = compute_resize(initial, ResizeHandle.N, 0, -50, 10)
    assert resized.height == 150
    assert resized.y == 150
    assert resized.y + resized.height == 300


def test_resize_west_past_origin_pins_at_zero():
    initial = Position(x=20, y=0, width=200, height=100)
    resized = compute_resize(initial, ResizeHandle.W, -100, 0, 10)
    assert resized.x == 0
    assert resized.width == 220


def test_resize_north_west_moves_both_edges():
    initial = Position(x=100, y=100, width=200, height=200)
    resized = compute_resize(initial, ResizeHandle.NW, -30, -30, 10)
    assert (resized.x, resized.y) == (70, 70)
    assert (resized.width, resized.height) == (230, 230)


def test_resize_custom_minimums():
    resized = compute_resize(
        Position(x=0, y=0, width=200, height=100), "se", -1000, -1000, 10,
        min_width=40, min_height=30,
    )
    assert (resized.width, resized.height) == (40, 30)


@given(
    st.integers(min_value=0, max_value=1000),
    st.integers(min_value=0, max_value=1000),
    st.integers(min_value=100, max_value=800),
    st.integers(min_value=60, max_value=800),
    st.sampled_from(list(ResizeHandle)),
    st.floats(min_value=-2000, max_value=2000, allow_nan=False),
    st.floats(min_value=-2000, max_value=2000, allow_nan=False),
)
def test_resize_invariants(x, y, width, height, handle, dx, dy):
    initial = Position(x=x, y=y, width=width, height=height)
    resized = compute_resize(initial, handle, dx, dy, 10)

    assert resized.width >= 100 and resized.height >= 60
    assert resized.x >= 0 and resized.y >= 0

    if "w" in handle.value and resized.x > 0:
        assert resized.x + resized.width == x + width
    if "n" in handle.value and resized.y > 0:
        assert resized.y + resized.height == y + height
    if "w" not in handle.value:
        assert resized.x == x
    if "n" not in handle.value:
        assert resized.y == y


# ============================================================================
# CanvasSession
# ============================================================================

def test_pointer_down_selects_and_drag_updates_document(store):
    session = CanvasSession(store)

    assert session.pointer_down("text-1", 10, 10)
    assert store.selected_id == "text-1"
    assert session.is_active

    position = session.pointer_move(43, 17)
    assert (position.x, position.y) == (30, 10)
    assert store.get_component("text-1").position == position

    session.pointer_up()
    assert not session.is_active
    assert session.pointer_move(500, 500) is None


def test_drag_is_relative_to_gesture_start(store):
    session = CanvasSession(store)
    session.pointer_down("button-1", 100, 100)

    session.pointer_move(150, 100)
    session.pointer_move(120, 100)

    assert store.get_component("button-1").position.x == 320


def test_resize_requires_selected_component(store):
    session = CanvasSession(store)
    assert not session.handle_down("text-1", "se", 0, 0)

    session.click_component("text-1")
    assert session.handle_down("text-1", "se", 0, 0)

    session.pointer_move(100, 50)
    resized = store.get_component("text-1").position
    assert (resized.width, resized.height) == (300, 150)


def test_unknown_component_does_not_start_gesture(store):
    session = CanvasSession(store)
    assert not session.pointer_down("missing", 0, 0)
    assert not session.is_active


def test_click_canvas_clears_selection(store):
    session = CanvasSession(store)
    session.click_component("button-1")
    session.click_canvas()
    assert store.selected_id is None


def test_preview_mode_blocks_editing(store):
    store.toggle_preview_mode()
    session = CanvasSession(store)

    assert not session.pointer_down("text-1", 0, 0)
    session.click_component("text-1")
    assert store.selected_id is None
    assert session.drop_widget(WidgetType.CHART, 100, 100) is None
    assert len(store.components) == 2


def test_drop_widget_snaps_and_selects():
    store = DocumentStore(LayoutDocument(grid_size=20))
    session = CanvasSession(store)

    component = session.drop_widget("chart", 133, 47)

    assert component.type == WidgetType.CHART
    assert component.id.startswith("chart-")
    assert (component.position.x, component.position.y) == (140, 40)
    assert (component.position.width, component.position.height) == (200, 100)
    assert component.props == default_props_for(WidgetType.CHART)
    assert store.selected_id == component.id


def test_drop_widget_clamps_negative_drop_point():
    session = CanvasSession(DocumentStore())
    component = session.drop_widget(WidgetType.TEXT, -40, -3)
    assert (component.position.x, component.position.y) == (0, 0)


def test_consecutive_drops_get_distinct_ids():
    store = DocumentStore()
    session = CanvasSession(store)

    first = session.drop_widget(WidgetType.BUTTON, 0, 0)
    second = session.drop_widget(WidgetType.BUTTON, 0, 0)

    assert first.id != second.id
    assert store.document.component_ids() == [first.id, second.id]


def test_drag_after_component_removed_is_ignored():
    store = DocumentStore(LayoutDocument(components=[make_component("text-1")]))
    session = CanvasSession(store)
    session.pointer_down("text-1", 0, 0)

    store.remove_component("text-1")
    session.pointer_move(50, 50)

    assert store.components == []


@pytest.mark.parametrize("handle", ["x", "north"])
def test_invalid_handle_rejected(handle):
    with pytest.raises(ValueError):
        compute_resize(Position(), handle, 0, 0, 10)
