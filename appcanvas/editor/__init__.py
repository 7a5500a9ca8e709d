"""
Editor core: layout document operations, canvas gestures, API client and
editor session.
"""

from .document import (
    DocumentStore,
    DuplicateComponentError,
    add_component,
    create_component,
    duplicate_component,
    new_component_id,
    remove_component,
    update_component,
)
from .manipulation import (
    CanvasSession,
    DragState,
    ResizeHandle,
    ResizeState,
    compute_drag_position,
    compute_resize,
    snap_to_grid,
)
from .client import (
    AccessDeniedError,
    AuthenticationError,
    BuilderAPIError,
    BuilderClient,
    MalformedDocumentError,
    NetworkError,
    NotFoundError,
    VersionConflictError,
)
from .session import EditorSession, SaveStatus

__all__ = [
    'DocumentStore',
    'DuplicateComponentError',
    'add_component',
    'create_component',
    'duplicate_component',
    'new_component_id',
    'remove_component',
    'update_component',
    'CanvasSession',
    'DragState',
    'ResizeHandle',
    'ResizeState',
    'compute_drag_position',
    'compute_resize',
    'snap_to_grid',
    'AccessDeniedError',
    'AuthenticationError',
    'BuilderAPIError',
    'BuilderClient',
    'MalformedDocumentError',
    'NetworkError',
    'NotFoundError',
    'VersionConflictError',
    'EditorSession',
    'SaveStatus',
]
