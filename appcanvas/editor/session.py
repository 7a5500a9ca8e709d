"""
Editor session: binds a document store to one app on the builder API.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from appcanvas.models.schemas import (
    AppRecord,
    AppTemplate,
    Component,
    LayoutDocument,
    LayoutSuggestion,
    Position,
    SUGGESTED_WIDGET_DIMENSIONS,
    WidgetSuggestion,
    WidgetType,
)
from .client import AuthenticationError, BuilderAPIError, BuilderClient, MalformedDocumentError
from .document import DocumentStore, create_component, new_component_id


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class EditorSession:
    """
    Loads an app into a ``DocumentStore`` and pushes the whole layout back
    on save.

    With ``optimistic_locking`` the save carries the version the document
    was loaded at, and a concurrent edit surfaces as a save error instead of
    being overwritten.
    """

    def __init__(
        self,
        client: BuilderClient,
        store: Optional[DocumentStore] = None,
        optimistic_locking: bool = False,
    ):
        self.client = client
        self.store = store or DocumentStore()
        self.optimistic_locking = optimistic_locking
        self.app: Optional[AppRecord] = None
        self.save_status = SaveStatus.IDLE
        self.last_error: Optional[str] = None

    def _require_app(self) -> AppRecord:
        if self.app is None:
            raise RuntimeError("No active app")
        return self.app

    def _parse_layout(self, app: AppRecord) -> LayoutDocument:
        try:
            return LayoutDocument.from_wire(app.layout)
        except ValidationError as e:
            self.last_error = f"App {app.id} has an unreadable layout ({e.error_count()} errors)"
            logger.error(f"{self.last_error}: {e}")
            raise MalformedDocumentError(self.last_error, error="malformed_layout") from e

    async def load(self, app_id: str) -> AppRecord:
        """
        Fetch ``app_id`` and make its layout the current document. A layout
        that does not parse raises ``MalformedDocumentError`` and leaves the
        current document and app untouched.
        """
        app = await self.client.get_app(app_id)
        document = self._parse_layout(app)
        self.app = app
        self.store.set_document(document)
        self.store.clear_selection()
        self.store.preview_mode = False
        self.save_status = SaveStatus.IDLE
        self.last_error = None
        logger.info(f"Loaded app {app_id} (version {app.version}, {len(self.store.components)} components)")
        return app

    async def save(self) -> Optional[AppRecord]:
        """
        Persist the current document. Returns the updated app, or None when
        the save failed; ``save_status`` and ``last_error`` describe why.
        Authentication failures are raised.
        """
        app = self._require_app()
        payload: Dict[str, Any] = {"layout": self.store.document.to_wire()}
        if self.optimistic_locking:
            payload["expectedVersion"] = app.version

        self.save_status = SaveStatus.SAVING
        try:
            updated = await self.client.update_app(app.id, payload)
        except AuthenticationError as e:
            self.save_status = SaveStatus.ERROR
            self.last_error = e.message
            raise
        except BuilderAPIError as e:
            self.save_status = SaveStatus.ERROR
            self.last_error = e.message
            logger.warning(f"Save failed for app {app.id}: {e.message}")
            return None

        self.app = updated
        self.save_status = SaveStatus.SAVED
        self.last_error = None
        logger.debug(f"Saved app {app.id} at version {updated.version}")
        return updated

    async def open_preview(self, slug: str) -> DocumentStore:
        """Fetch a published app into a read-only preview store."""
        app = await self.client.get_public_app(slug)
        return DocumentStore(self._parse_layout(app), preview_mode=True)

    def apply_template(self, template: AppTemplate) -> List[Component]:
        """Add every template component under a freshly generated id."""
        added = []
        for component in template.layout.components:
            fresh = component.model_copy(
                deep=True,
                update={
                    "id": new_component_id(
                        component.type,
                        self.store.document.component_ids(),
                        with_suffix=True,
                    )
                },
            )
            added.append(self.store.add_component(fresh))
        return added

    def add_suggested_widget(self, suggestion: WidgetSuggestion) -> Component:
        width, height = SUGGESTED_WIDGET_DIMENSIONS
        component = create_component(
            suggestion.type,
            Position(x=0, y=0, width=width, height=height),
            existing=self.store.document.component_ids(),
            with_suffix=True,
        )
        return self.store.add_component(component)

    async def optimize_layout(self) -> List[LayoutSuggestion]:
        """
        Ask for layout advice and apply any proposed positions to components
        that are still on the canvas.
        """
        optimized = await self.client.optimize_layout(self.store.components)
        if optimized is None:
            return []

        for improvement in optimized.improvements:
            if self.store.get_component(improvement.id) is not None:
                self.store.update_component(improvement.id, {"position": improvement.position})
        return optimized.suggestions

    async def submit_form_data(self, form_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Store one form submission in the form's linked collection."""
        app = self._require_app()
        form = self.store.get_component(form_id)
        if form is None:
            raise ValueError(f"Form component not found: {form_id}")

        payload = {
            **values,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "formId": form_id,
        }
        record = await self.client.create_record(app.id, form.linked_collection(), payload)
        return record.to_wire()

    async def fetch_component_data(self, component_id: str) -> Any:
        """
        Records for a widget: tables get every payload (newest first), other
        widgets the newest payload or None.
        """
        component = self.store.get_component(component_id)
        is_table = component is not None and component.type == WidgetType.TABLE
        empty: Any = [] if is_table else None

        if self.app is None or component is None:
            return empty

        try:
            result = await self.client.list_records(self.app.id, collection=component.linked_collection())
        except AuthenticationError:
            raise
        except BuilderAPIError as e:
            logger.warning(f"Could not fetch data for {component_id}: {e.message}")
            return empty

        payloads = [record.data for record in result.data]
        if is_table:
            return payloads
        return payloads[0] if payloads else None
