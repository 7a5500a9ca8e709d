"""
appcanvas/llm/heuristic_provider.py
Rule-based fallback provider serving canned builder suggestions
"""
import logging
import json
from typing import List, Optional, Dict, Any
from datetime import datetime

from .base import BaseLLMProvider, LLMResponse, LLMMessage, LLMProvider
from .prompt_manager import PromptType


logger = logging.getLogger(__name__)


WIDGET_SUGGESTIONS: Dict[str, List[Dict[str, str]]] = {
    "todo": [
        {"type": "form", "name": "Task Creator", "description": "Form to add new tasks"},
        {"type": "table", "name": "Task List", "description": "Table displaying all tasks"},
        {"type": "chart", "name": "Progress Chart", "description": "Visual progress tracking"},
        {"type": "timer", "name": "Focus Timer", "description": "Pomodoro timer for tasks"},
    ],
    "crm": [
        {"type": "form", "name": "Contact Form", "description": "Add new contacts"},
        {"type": "table", "name": "Contact List", "description": "Display all contacts"},
        {"type": "chart", "name": "Sales Pipeline", "description": "Visual sales tracking"},
        {"type": "calendar", "name": "Meeting Scheduler", "description": "Schedule meetings"},
    ],
}

DEFAULT_SUGGESTIONS: List[Dict[str, str]] = [
    {"type": "text", "name": "Text Block", "description": "Add informational text"},
    {"type": "button", "name": "Action Button", "description": "Interactive button"},
    {"type": "form", "name": "Data Form", "description": "Collect user input"},
]

TEMPLATES: Dict[str, Dict[str, Any]] = {
    "todo": {
        "name": "Task Management App",
        "description": "Complete task management solution",
        "layout": {
            "components": [
                {
                    "id": "task-form",
                    "type": "form",
                    "position": {"x": 0, "y": 0, "width": 400, "height": 200},
                    "props": {
                        "title": "Add New Task",
                        "fields": [
                            {"name": "title", "type": "text", "label": "Task Title", "required": True},
                            {"name": "description", "type": "textarea", "label": "Description"},
                            {"name": "priority", "type": "select", "label": "Priority",
                             "options": ["Low", "Medium", "High"]},
                            {"name": "dueDate", "type": "date", "label": "Due Date"},
                        ],
                    },
                },
                {
                    "id": "task-list",
                    "type": "table",
                    "position": {"x": 420, "y": 0, "width": 600, "height": 400},
                    "props": {
                        "title": "My Tasks",
                        "columns": ["Title", "Priority", "Due Date", "Status"],
                        "sortable": True,
                        "filterable": True,
                    },
                },
            ]
        },
    },
}

DEFAULT_TEMPLATE: Dict[str, Any] = {
    "name": "Custom App",
    "description": "Custom application template",
    "layout": {
        "components": [
            {
                "id": "welcome-text",
                "type": "text",
                "position": {"x": 0, "y": 0, "width": 400, "height": 100},
                "props": {
                    "content": "Welcome to your custom app!",
                    "fontSize": "large",
                    "textAlign": "center",
                },
            }
        ]
    },
}

LAYOUT_SUGGESTIONS: List[str] = [
    "Consider grouping related widgets closer together",
    "Add more spacing between form elements",
    "Use consistent widget sizes for better visual hierarchy",
]


class HeuristicProvider(BaseLLMProvider):
    """
    Answers every builder prompt from fixed tables. The task is taken from
    the ``task`` keyword when the caller passes one, otherwise from
    keywords in the system prompt.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.provider_name = LLMProvider.HEURISTIC
        logger.info("Heuristic provider initialized")

    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        variables: Dict[str, Any] = kwargs.get("variables") or {}
        task = kwargs.get("task") or self._detect_task(messages)

        logger.info(f"Heuristic fallback triggered for task: {task}")

        if task == PromptType.WIDGET_SUGGESTIONS:
            payload = {"suggestions": self._suggest_widgets(variables.get("app_type"))}
        elif task == PromptType.APP_TEMPLATE:
            payload = {"template": self._template(variables.get("app_type"))}
        else:
            payload = {"optimizedLayout": self._optimize(variables.get("components") or [])}

        content = json.dumps(payload)
        return LLMResponse(
            content=content,
            provider=self.provider_name,
            tokens_used=len(content.split()),
            finish_reason="heuristic_complete",
            model="heuristic-v1",
            metadata={
                "task": PromptType(task).value,
                "generated_at": datetime.now().isoformat(),
            }
        )

    def _detect_task(self, messages: List[LLMMessage]) -> PromptType:
        system_message = next(
            (msg.content for msg in messages if msg.role == "system"),
            ""
        ).lower()

        if "improvements" in system_message:
            return PromptType.LAYOUT_OPTIMIZATION
        if "template" in system_message or "starter" in system_message:
            return PromptType.APP_TEMPLATE
        return PromptType.WIDGET_SUGGESTIONS

    def _suggest_widgets(self, app_type: Optional[str]) -> List[Dict[str, str]]:
        return [dict(s) for s in WIDGET_SUGGESTIONS.get(app_type or "", DEFAULT_SUGGESTIONS)]

    def _template(self, app_type: Optional[str]) -> Dict[str, Any]:
        # Round-trip through JSON so callers never share the module tables
        return json.loads(json.dumps(TEMPLATES.get(app_type or "", DEFAULT_TEMPLATE)))

    def _optimize(self, components: List[Dict[str, Any]]) -> Dict[str, Any]:
        improvements = []
        for comp in components:
            position = dict(comp.get("position") or {})
            position["x"] = max(0, position.get("x", 0))
            position["y"] = max(0, position.get("y", 0))
            improvements.append({"id": comp.get("id"), "type": comp.get("type"), "position": position})

        return {"suggestions": list(LAYOUT_SUGGESTIONS), "improvements": improvements}

    async def health_check(self) -> bool:
        return True
