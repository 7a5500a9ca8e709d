"""
Widget props schemas and the placed component model.

Each widget type has its own props model whose defaults are the values a
freshly dropped widget starts with. ``Component.props`` stays a plain dict on
the wire so documents round-trip untouched; ``Component.typed_props`` parses
it into the matching variant.
"""
from typing import List, Dict, Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .core import (
    CamelModel,
    Position,
    WidgetType,
    COMPONENT_PROPERTY_SCHEMAS,
    register_component_schema,
)


class WidgetProps(BaseModel):
    """Common base for widget props; unknown keys are kept"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    title: Optional[str] = None


class TextProps(WidgetProps):
    content: str = "Sample text"
    font_size: str = "medium"
    text_align: str = "left"


class ButtonProps(WidgetProps):
    text: str = "Click me"
    variant: str = "primary"
    size: str = "medium"


class FormField(BaseModel):
    """Single input of a form widget"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    field_type: str = Field("text", alias="type")
    label: str = ""
    required: bool = False
    options: Optional[List[str]] = None


class FormProps(WidgetProps):
    title: Optional[str] = "New Form"
    fields: List[FormField] = Field(
        default_factory=lambda: [FormField(name="name", type="text", label="Name", required=True)]
    )
    linked_table: Optional[str] = Field(
        default=None,
        description="Collection submissions are written to (defaults to the form id)"
    )


class TableProps(WidgetProps):
    title: Optional[str] = "Data Table"
    columns: List[str] = Field(default_factory=lambda: ["Name", "Value"])
    sortable: bool = True
    filterable: bool = True
    linked_collection: Optional[str] = Field(
        default=None,
        description="Collection rows are read from (defaults to the table id)"
    )


class ChartPoint(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    value: Union[int, float]


class ChartProps(WidgetProps):
    title: Optional[str] = "Chart"
    chart_type: str = Field("bar", alias="type")
    data: List[ChartPoint] = Field(
        default_factory=lambda: [
            ChartPoint(name="A", value=10),
            ChartPoint(name="B", value=20),
            ChartPoint(name="C", value=15),
        ]
    )


class CalendarProps(WidgetProps):
    title: Optional[str] = "Calendar"
    view_type: str = "month"


class KanbanProps(WidgetProps):
    title: Optional[str] = "Kanban Board"
    columns: List[str] = Field(default_factory=lambda: ["To Do", "In Progress", "Done"])


class FileUploadProps(WidgetProps):
    title: Optional[str] = "File Upload"
    accept: str = "*/*"
    max_size: int = Field(10, description="Maximum file size in MB")
    multiple: bool = False


class TimerProps(WidgetProps):
    title: Optional[str] = "Timer"
    timer_type: str = Field("countdown", alias="type")
    duration: int = Field(300, description="Seconds")


class CounterProps(WidgetProps):
    title: Optional[str] = "Counter"
    initial_value: int = 0
    step: int = 1


class ImageProps(WidgetProps):
    title: Optional[str] = "Image"
    src: str = ""
    alt: str = "Image"
    caption: str = ""


class VideoProps(WidgetProps):
    title: Optional[str] = "Video"
    src: str = ""
    controls: bool = True
    autoplay: bool = False


class MapProps(WidgetProps):
    title: Optional[str] = "Map"
    latitude: float = 0
    longitude: float = 0
    zoom: int = 10


class RatingProps(WidgetProps):
    title: Optional[str] = "Rating"
    max_stars: int = 5
    current_rating: int = 0


register_component_schema(WidgetType.TEXT, TextProps)
register_component_schema(WidgetType.BUTTON, ButtonProps)
register_component_schema(WidgetType.FORM, FormProps)
register_component_schema(WidgetType.TABLE, TableProps)
register_component_schema(WidgetType.CHART, ChartProps)
register_component_schema(WidgetType.CALENDAR, CalendarProps)
register_component_schema(WidgetType.KANBAN, KanbanProps)
register_component_schema(WidgetType.FILE_UPLOAD, FileUploadProps)
register_component_schema(WidgetType.TIMER, TimerProps)
register_component_schema(WidgetType.COUNTER, CounterProps)
register_component_schema(WidgetType.IMAGE, ImageProps)
register_component_schema(WidgetType.VIDEO, VideoProps)
register_component_schema(WidgetType.MAP, MapProps)
register_component_schema(WidgetType.RATING, RatingProps)


class ComponentEvent(CamelModel):
    """Event binding on a component (reserved for behaviours)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    trigger: Optional[str] = None
    action: Optional[str] = None
    target: Optional[str] = None
    params: Optional[Any] = None


class Component(CamelModel):
    """One placed widget instance"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1, description="Unique within a layout")
    type: WidgetType
    position: Position = Field(default_factory=Position)
    props: Dict[str, Any] = Field(default_factory=dict)
    styling: Dict[str, Any] = Field(default_factory=dict)
    data: Any = Field(default_factory=dict)
    events: List[ComponentEvent] = Field(default_factory=list)

    def typed_props(self) -> WidgetProps:
        """Parse ``props`` into the variant registered for this widget type"""
        schema_class = COMPONENT_PROPERTY_SCHEMAS.get(self.type.value, WidgetProps)
        return schema_class.model_validate(self.props)

    def linked_collection(self) -> str:
        """Data collection this widget reads from or writes to"""
        return (
            self.props.get("linkedTable")
            or self.props.get("linkedCollection")
            or self.id
        )


class ComponentUpdate(CamelModel):
    """
    Partial component update.

    Fields that are present replace the component's field wholesale; nested
    keys are never merged. ``id`` and ``type`` cannot be changed.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    position: Optional[Position] = None
    props: Optional[Dict[str, Any]] = None
    styling: Optional[Dict[str, Any]] = None
    data: Optional[Any] = None
    events: Optional[List[ComponentEvent]] = None

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly provided with a non-null value"""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }
