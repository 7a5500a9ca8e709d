"""Tests for wire models and the component catalog."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from appcanvas.models.schemas import (
    AppCreate,
    AppRecord,
    AppUpdate,
    Component,
    LayoutDocument,
    OptimizedLayout,
    RecordCreate,
    Theme,
    WidgetType,
    default_layout,
    default_props_for,
    default_styling_for,
    export_component_catalog,
    generate_slug,
    get_component_definition,
)
from appcanvas.models.schemas.components import ChartProps, FormProps


# ============================================================================
# Layout document
# ============================================================================

def test_default_layout_wire_shape():
    layout = default_layout()

    assert layout["components"] == []
    assert layout["gridSize"] == 10
    assert layout["theme"]["primaryColor"] == "#3B82F6"
    assert layout["theme"]["darkMode"] is False


def test_from_wire_handles_missing_layout():
    assert LayoutDocument.from_wire(None).components == []
    assert LayoutDocument.from_wire({}).grid_size == 10


def test_layout_round_trip_keeps_unknown_keys():
    wire = {
        "components": [{
            "id": "text-1",
            "type": "text",
            "position": {"x": 10, "y": 20, "width": 200, "height": 100},
            "props": {"content": "Hi"},
            "customFlag": True,
        }],
        "gridSize": 20,
        "pageTitle": "Home",
    }

    doc = LayoutDocument.from_wire(wire)
    out = doc.to_wire()

    assert doc.grid_size == 20
    assert out["pageTitle"] == "Home"
    assert out["components"][0]["customFlag"] is True
    assert out["components"][0]["position"] == {"x": 10, "y": 20, "width": 200, "height": 100}


@pytest.mark.parametrize("grid_size", [0, -10])
def test_grid_size_must_be_positive(grid_size):
    with pytest.raises(ValidationError):
        LayoutDocument(grid_size=grid_size)


def test_negative_position_rejected():
    with pytest.raises(ValidationError):
        Component(id="text-1", type="text", position={"x": -1, "y": 0, "width": 10, "height": 10})


def test_unknown_widget_type_rejected():
    with pytest.raises(ValidationError):
        Component(id="x-1", type="spreadsheet")


@pytest.mark.parametrize("color", ["#fff", "#1F2937", "#11223344", "rgb(0, 0, 0)", "hsl(200, 50%, 40%)", "teal"])
def test_theme_accepts_css_colors(color):
    assert Theme(primary_color=color).primary_color == color


@pytest.mark.parametrize("color", ["#12", "12345", "rgb(", "not a color!"])
def test_theme_rejects_bad_colors(color):
    with pytest.raises(ValidationError):
        Theme(primary_color=color)


def test_linked_collection_resolution():
    form = Component(id="form-1", type="form", props={"linkedTable": "tasks", "linkedCollection": "other"})
    table = Component(id="table-1", type="table", props={"linkedCollection": "tasks"})
    bare = Component(id="form-2", type="form")

    assert form.linked_collection() == "tasks"
    assert table.linked_collection() == "tasks"
    assert bare.linked_collection() == "form-2"


def test_typed_props_parses_variant():
    chart = Component(id="chart-1", type="chart", props={"type": "line", "data": [{"name": "A", "value": 3}]})
    props = chart.typed_props()

    assert isinstance(props, ChartProps)
    assert props.chart_type == "line"
    assert props.data[0].value == 3


# ============================================================================
# Component catalog
# ============================================================================

def test_catalog_covers_every_widget_type():
    catalog = export_component_catalog()
    types = {entry["type"] for entry in catalog["components"]}

    assert types == {t.value for t in WidgetType}
    assert catalog["gridSize"] == 10
    assert "Content" in catalog["categories"]
    for entry in catalog["components"]:
        assert entry["defaultSize"] == {"width": 200, "height": 100}


def test_default_props_for_text():
    assert default_props_for("text") == {"content": "Sample text", "fontSize": "medium", "textAlign": "left"}


def test_default_props_for_form_have_fields():
    props = default_props_for(WidgetType.FORM)
    assert props["title"] == "New Form"
    assert all("name" in field and "type" in field for field in props["fields"])
    FormProps.model_validate(props)


def test_default_props_are_fresh_copies():
    first = default_props_for("kanban")
    first["columns"].append("Archived")
    assert "Archived" not in default_props_for("kanban")["columns"]


def test_unknown_type_has_empty_defaults():
    assert default_props_for("spreadsheet") == {}
    assert default_styling_for("spreadsheet") == {}
    assert get_component_definition("spreadsheet") is None


def test_component_definition_labels():
    assert get_component_definition("fileUpload")["name"] == "File Upload"
    assert get_component_definition(WidgetType.TABLE)["category"] == "Data"


# ============================================================================
# Apps
# ============================================================================

@pytest.mark.parametrize("name, expected", [
    ("My Todo App", "my-todo-app-456789"),
    ("  CRM -- 2024!! ", "crm-2024-456789"),
    ("Ünïcode", "n-code-456789"),
    ("!!!", "app-456789"),
])
def test_generate_slug(name, expected):
    assert generate_slug(name, 1700000456789) == expected


def test_app_create_requires_name():
    with pytest.raises(ValidationError):
        AppCreate(name="   ")
    assert AppCreate(name="  Tasks ").name == "Tasks"


def test_app_update_changes_exclude_expected_version():
    update = AppUpdate.model_validate({"name": "New", "expectedVersion": 3, "version": 99, "slug": "hack"})

    assert update.expected_version == 3
    assert update.changes() == {"name": "New"}


def test_app_summary_strips_component_data():
    app = AppRecord(
        id="a1", user_id="u1", name="App", slug="app-1",
        layout={"components": [{"id": "t", "type": "table", "data": [1, 2, 3]}], "gridSize": 10},
    )
    summary = app.summary()

    assert "data" not in summary.layout["components"][0]
    assert app.layout["components"][0]["data"] == [1, 2, 3]


def test_app_record_wire_aliases():
    app = AppRecord(id="a1", user_id="u1", name="App", slug="app-1",
                    created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    wire = app.to_wire()

    assert wire["userId"] == "u1"
    assert wire["isPublic"] is False
    assert wire["settings"]["collectAnalytics"] is True
    assert wire["analytics"] == {"views": 0, "uniqueVisitors": 0, "lastViewed": None}
    assert wire["createdAt"].startswith("2024-01-01")


# ============================================================================
# Data and AI payloads
# ============================================================================

def test_record_create_requires_data():
    with pytest.raises(ValidationError):
        RecordCreate(collection="tasks", data=None)
    with pytest.raises(ValidationError):
        RecordCreate(collection="", data={"a": 1})


def test_optimized_layout_coerces_string_suggestions():
    optimized = OptimizedLayout.model_validate({
        "suggestions": ["Group related widgets", {"issue": "Overlap", "recommendation": "Move the chart"}],
        "improvements": [{"id": "chart-1", "position": {"x": 0, "y": 0, "width": 300, "height": 200}}],
    })

    assert optimized.suggestions[0].recommendation == "Group related widgets"
    assert optimized.suggestions[1].issue == "Overlap"
    assert optimized.improvements[0].id == "chart-1"
