"""Tests for layout document operations and the document store."""

import pytest
from hypothesis import given, strategies as st

from appcanvas.editor import (
    DocumentStore,
    DuplicateComponentError,
    add_component,
    create_component,
    duplicate_component,
    new_component_id,
    remove_component,
    update_component,
)
from appcanvas.editor.document import DEFAULT_Z_INDEX, SELECTED_Z_INDEX
from appcanvas.models.schemas import (
    ComponentUpdate,
    LayoutDocument,
    Position,
    WidgetType,
    default_props_for,
    default_styling_for,
)

from conftest import make_component


# ============================================================================
# Pure document functions
# ============================================================================

def test_add_component_appends_without_mutating_input(two_component_doc):
    added = add_component(two_component_doc, make_component("chart-1", component_type=WidgetType.CHART))

    assert added.component_ids() == ["text-1", "button-1", "chart-1"]
    assert two_component_doc.component_ids() == ["text-1", "button-1"]


def test_add_component_rejects_duplicate_id(two_component_doc):
    with pytest.raises(DuplicateComponentError) as exc_info:
        add_component(two_component_doc, make_component("text-1"))
    assert exc_info.value.component_id == "text-1"


def test_update_component_replaces_top_level_fields(two_component_doc):
    doc = add_component(two_component_doc, make_component("text-2", content="Hello", fontSize="large"))

    updated = update_component(doc, "text-2", {"props": {"content": "Bye"}})

    assert updated.get_component("text-2").props == {"content": "Bye"}
    assert doc.get_component("text-2").props == {"content": "Hello", "fontSize": "large"}


def test_update_component_accepts_model_and_keeps_other_fields(two_component_doc):
    update = ComponentUpdate(position=Position(x=50, y=60, width=220, height=120))
    updated = update_component(two_component_doc, "button-1", update)

    button = updated.get_component("button-1")
    assert button.position == Position(x=50, y=60, width=220, height=120)
    assert button.type == WidgetType.BUTTON
    assert updated.get_component("text-1") == two_component_doc.get_component("text-1")


def test_update_unknown_component_is_noop(two_component_doc):
    assert update_component(two_component_doc, "missing", {"styling": {"color": "red"}}) is two_component_doc


def test_update_rejects_identity_changes(two_component_doc):
    with pytest.raises(ValueError):
        update_component(two_component_doc, "text-1", {"id": "renamed"})


def test_remove_component(two_component_doc):
    removed = remove_component(two_component_doc, "text-1")
    assert removed.component_ids() == ["button-1"]
    assert remove_component(removed, "text-1") is removed


def test_duplicate_component_offsets_and_copies_deeply():
    original = make_component("form-1", 100, 200, component_type=WidgetType.FORM, fields=[{"name": "a"}])
    doc = LayoutDocument(components=[original])

    duplicated = duplicate_component(doc, "form-1")

    assert len(duplicated.components) == 2
    copy = duplicated.components[-1]
    assert copy.id.startswith("form-1-copy-")
    assert (copy.position.x, copy.position.y) == (120, 220)
    assert (copy.position.width, copy.position.height) == (200, 100)
    assert copy.props == original.props

    copy.props["fields"].append({"name": "b"})
    assert duplicated.get_component("form-1").props["fields"] == [{"name": "a"}]


def test_duplicate_unknown_component_is_noop(two_component_doc):
    assert duplicate_component(two_component_doc, "missing") is two_component_doc


@given(st.lists(st.sampled_from(["text-1", "button-1"]), max_size=6))
def test_repeated_duplicates_keep_ids_unique(targets):
    doc = LayoutDocument(components=[make_component("text-1"), make_component("button-1")])
    for target in targets:
        doc = duplicate_component(doc, target)

    ids = doc.component_ids()
    assert len(ids) == len(set(ids)) == 2 + len(targets)


# ============================================================================
# Component factories
# ============================================================================

def test_new_component_id_skips_taken_ids(monkeypatch):
    monkeypatch.setattr("appcanvas.editor.document.now_millis", lambda: 1000)

    assert new_component_id(WidgetType.TEXT) == "text-1000"
    assert new_component_id("text", ["text-1000", "text-1001"]) == "text-1002"


def test_new_component_id_with_suffix():
    component_id = new_component_id(WidgetType.TABLE, with_suffix=True)
    prefix, millis, suffix = component_id.split("-")
    assert prefix == "table"
    assert millis.isdigit()
    assert len(suffix) == 9


def test_create_component_uses_type_defaults():
    component = create_component("counter", Position(x=10, y=10, width=200, height=100))

    assert component.type == WidgetType.COUNTER
    assert component.props == default_props_for(WidgetType.COUNTER)
    assert component.styling == default_styling_for(WidgetType.COUNTER)
    assert component.data == {}
    assert component.events == []


def test_create_component_rejects_unknown_type():
    with pytest.raises(ValueError):
        create_component("spreadsheet", Position())


# ============================================================================
# DocumentStore
# ============================================================================

def test_store_selection_and_z_index(store):
    store.set_selected("button-1")

    assert store.selected_component.id == "button-1"
    assert store.z_index_for("button-1") == SELECTED_Z_INDEX
    assert store.z_index_for("text-1") == DEFAULT_Z_INDEX
    assert [c.id for c in store.render_order()] == ["text-1", "button-1"]

    store.set_selected("text-1")
    assert [c.id for c in store.render_order()] == ["button-1", "text-1"]


def test_store_render_order_without_selection(store):
    assert [c.id for c in store.render_order()] == ["text-1", "button-1"]


def test_removing_selected_component_clears_selection(store):
    store.set_selected("text-1")
    store.remove_component("text-1")

    assert store.selected_id is None
    assert store.document.component_ids() == ["button-1"]


def test_set_document_drops_stale_selection(store):
    store.set_selected("text-1")
    store.set_document(LayoutDocument(components=[make_component("button-1")]))
    assert store.selected_id is None

    store.set_selected("button-1")
    store.set_document(LayoutDocument(components=[make_component("button-1")]))
    assert store.selected_id == "button-1"


def test_store_duplicate_returns_copy(store):
    copy = store.duplicate_component("button-1")
    assert copy is not None
    assert copy.id in store.document.component_ids()
    assert store.duplicate_component("missing") is None


def test_toggle_preview_clears_selection(store):
    store.set_selected("text-1")

    assert store.toggle_preview_mode() is True
    assert store.selected_id is None
    assert store.toggle_preview_mode() is False


def test_store_update_is_visible_through_store(store):
    store.update_component("text-1", {"styling": {"color": "#111111"}})
    assert store.get_component("text-1").styling == {"color": "#111111"}


def test_grid_size_comes_from_document():
    assert DocumentStore().grid_size == 10
    assert DocumentStore(LayoutDocument(grid_size=25)).grid_size == 25
