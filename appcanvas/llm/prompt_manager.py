"""
appcanvas/llm/prompt_manager.py
Fixed prompt templates for the builder's AI assistant
"""
import logging
from string import Template
from typing import Dict, List, Any, Optional
from enum import Enum

from appcanvas.models.schemas import WidgetType
from .base import LLMMessage


logger = logging.getLogger(__name__)


class PromptType(str, Enum):
    """Types of prompts"""
    WIDGET_SUGGESTIONS = "widget_suggestions"
    APP_TEMPLATE = "app_template"
    LAYOUT_OPTIMIZATION = "layout_optimization"


_JSON_ONLY = "Respond with a single JSON object and nothing else. No markdown, no commentary."


class PromptManager:
    """
    Prompt templates use ``$name`` placeholders so the JSON examples
    inside them need no brace escaping.
    """

    def __init__(self):
        self.widget_types = ", ".join(t.value for t in WidgetType)
        self.templates: Dict[PromptType, str] = {
            PromptType.WIDGET_SUGGESTIONS: self._widget_suggestions(),
            PromptType.APP_TEMPLATE: self._app_template(),
            PromptType.LAYOUT_OPTIMIZATION: self._layout_optimization(),
        }
        logger.info(f"PromptManager initialized with {len(self.templates)} templates")

    def get_prompt(self, prompt_type: PromptType, variables: Optional[Dict[str, Any]] = None) -> str:
        """Template with ``variables`` substituted; unknown placeholders are left as-is"""
        if prompt_type not in self.templates:
            raise ValueError(f"Prompt type {prompt_type} not found")

        values = {"widget_types": self.widget_types}
        values.update({k: v for k, v in (variables or {}).items() if isinstance(v, (str, int, float))})
        return Template(self.templates[prompt_type]).safe_substitute(values)

    def build_messages(
        self,
        prompt_type: PromptType,
        user_input: str,
        variables: Optional[Dict[str, Any]] = None,
        system_override: Optional[str] = None,
        examples: Optional[List[Dict[str, str]]] = None
    ) -> List[LLMMessage]:
        """
        Build complete message list for LLM with optional examples

        Args:
            prompt_type: Type of prompt
            user_input: User's input/request
            variables: Variables for template
            system_override: Override system prompt
            examples: List of example conversations

        Returns:
            List of LLMMessage objects
        """
        system_prompt = system_override or self.get_prompt(prompt_type, variables)

        messages = [LLMMessage(role="system", content=system_prompt)]

        if examples:
            for example in examples:
                if "user" in example:
                    messages.append(LLMMessage(role="user", content=example["user"]))
                if "assistant" in example:
                    messages.append(LLMMessage(role="assistant", content=example["assistant"]))

        messages.append(LLMMessage(role="user", content=user_input))
        return messages

    def get_available_types(self) -> List[str]:
        return [t.value for t in self.templates]

    def _widget_suggestions(self) -> str:
        return f"""You help users assemble apps in a drag-and-drop builder.
Suggest 3 to 6 widgets for a "$app_type" app.
Allowed widget types: $widget_types.

Output format:
{{"suggestions": [{{"type": "form", "name": "Task Creator", "description": "Form to add new tasks"}}]}}

{_JSON_ONLY}"""

    def _app_template(self) -> str:
        return f"""You design starter layouts for a drag-and-drop app builder.
Create a template for a "$app_type" app on a $grid_size px grid.
Allowed widget types: $widget_types.
Positions are integers in pixels; x and y are >= 0.

Output format:
{{"template": {{"name": "Task Management App", "description": "...",
  "layout": {{"components": [{{"id": "task-form", "type": "form",
    "position": {{"x": 0, "y": 0, "width": 400, "height": 200}},
    "props": {{"title": "Add New Task"}}}}]}}}}}}

{_JSON_ONLY}"""

    def _layout_optimization(self) -> str:
        return f"""You review layouts built in a drag-and-drop app builder.
The user sends the current components as JSON. Suggest readability and
spacing improvements and propose new positions for existing component ids only.

Output format:
{{"optimizedLayout": {{"suggestions": ["Add more spacing between form elements"],
  "improvements": [{{"id": "task-form", "position": {{"x": 0, "y": 0, "width": 400, "height": 200}}}}]}}}}

{_JSON_ONLY}"""
