"""
Unified schema system for the app builder.

This module provides the layout document model, app and data record models,
AI assistant payloads and the widget catalog.
"""

from .core import (
    CamelModel,
    WidgetType,
    Position,
    Theme,
    COMPONENT_PROPERTY_SCHEMAS,
    is_valid_color,
)

from .components import (
    WidgetProps,
    TextProps,
    ButtonProps,
    FormField,
    FormProps,
    TableProps,
    ChartProps,
    CalendarProps,
    KanbanProps,
    FileUploadProps,
    TimerProps,
    CounterProps,
    ImageProps,
    VideoProps,
    MapProps,
    RatingProps,
    Component,
    ComponentEvent,
    ComponentUpdate,
)

from .component_catalog import (
    COMPONENT_DEFINITIONS,
    DEFAULT_STYLING,
    SUGGESTED_WIDGET_DIMENSIONS,
    default_props_for,
    default_styling_for,
    export_component_catalog,
    get_available_components,
    get_component_default_dimensions,
    get_component_definition,
    normalize_component_type,
)

from .layout import (
    DEFAULT_GRID_SIZE,
    LayoutDocument,
    default_layout,
)

from .apps import (
    AppType,
    AppSettings,
    AppAnalytics,
    AppRecord,
    AppCreate,
    AppUpdate,
    VisibilityUpdate,
    AppResponse,
    AppListResponse,
    MessageResponse,
    generate_slug,
)

from .app_data import (
    RecordMetadata,
    AppDataRecord,
    RecordCreate,
    RecordUpdate,
    Pagination,
    RecordResponse,
    RecordListResponse,
)

from .ai import (
    WidgetSuggestion,
    AppTemplate,
    LayoutSuggestion,
    LayoutImprovement,
    OptimizedLayout,
    SuggestWidgetsRequest,
    GenerateTemplateRequest,
    OptimizeLayoutRequest,
    SuggestWidgetsResponse,
    GenerateTemplateResponse,
    OptimizeLayoutResponse,
)

__all__ = [
    'CamelModel',
    'WidgetType',
    'Position',
    'Theme',
    'COMPONENT_PROPERTY_SCHEMAS',
    'is_valid_color',
    'WidgetProps',
    'TextProps',
    'ButtonProps',
    'FormField',
    'FormProps',
    'TableProps',
    'ChartProps',
    'CalendarProps',
    'KanbanProps',
    'FileUploadProps',
    'TimerProps',
    'CounterProps',
    'ImageProps',
    'VideoProps',
    'MapProps',
    'RatingProps',
    'Component',
    'ComponentEvent',
    'ComponentUpdate',
    'COMPONENT_DEFINITIONS',
    'DEFAULT_STYLING',
    'SUGGESTED_WIDGET_DIMENSIONS',
    'default_props_for',
    'default_styling_for',
    'export_component_catalog',
    'get_available_components',
    'get_component_default_dimensions',
    'get_component_definition',
    'normalize_component_type',
    'DEFAULT_GRID_SIZE',
    'LayoutDocument',
    'default_layout',
    'AppType',
    'AppSettings',
    'AppAnalytics',
    'AppRecord',
    'AppCreate',
    'AppUpdate',
    'VisibilityUpdate',
    'AppResponse',
    'AppListResponse',
    'MessageResponse',
    'generate_slug',
    'RecordMetadata',
    'AppDataRecord',
    'RecordCreate',
    'RecordUpdate',
    'Pagination',
    'RecordResponse',
    'RecordListResponse',
    'WidgetSuggestion',
    'AppTemplate',
    'LayoutSuggestion',
    'LayoutImprovement',
    'OptimizedLayout',
    'SuggestWidgetsRequest',
    'GenerateTemplateRequest',
    'OptimizeLayoutRequest',
    'SuggestWidgetsResponse',
    'GenerateTemplateResponse',
    'OptimizeLayoutResponse',
]
