"""
AI assistant: widget suggestions, starter templates and layout review.

Every answer from the model is validated into the response models; output
of the wrong shape degrades to an empty result instead of an error.
"""
import json
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from appcanvas.config import settings
from appcanvas.llm import LLMOrchestrator, PromptManager, PromptType
from appcanvas.models.schemas import (
    AppTemplate,
    Component,
    LayoutImprovement,
    LayoutSuggestion,
    OptimizedLayout,
    WidgetSuggestion,
)


def _unwrap(payload: Any, key: str) -> Any:
    """``{key: value}`` envelopes are optional in model output"""
    if isinstance(payload, dict) and key in payload:
        return payload[key]
    return payload


class AIAssistant:

    def __init__(self, orchestrator: LLMOrchestrator, prompt_manager: PromptManager):
        self.orchestrator = orchestrator
        self.prompt_manager = prompt_manager

    async def _ask(self, task: PromptType, user_input: str, variables: Dict[str, Any]) -> Any:
        messages = self.prompt_manager.build_messages(task, user_input, variables)
        response = await self.orchestrator.generate(
            messages,
            temperature=settings.llm_temperature,
            task=task,
            variables=variables,
        )
        if not response.is_valid_json:
            logger.warning(f"AI {task.value} returned non-JSON output from {response.provider.value}")
            return None
        return response.extracted_json

    async def suggest_widgets(self, app_type: str, description: str = "") -> List[WidgetSuggestion]:
        payload = _unwrap(
            await self._ask(
                PromptType.WIDGET_SUGGESTIONS,
                f"App type: {app_type}\nDescription: {description}",
                {"app_type": app_type, "description": description},
            ),
            "suggestions",
        )
        if not isinstance(payload, list):
            logger.warning("AI widget suggestions missing or not a list")
            return []

        suggestions = []
        for item in payload:
            try:
                suggestions.append(WidgetSuggestion.model_validate(item))
            except ValidationError as e:
                logger.debug(f"Dropping malformed widget suggestion {item!r}: {e.error_count()} errors")
        return suggestions

    async def generate_template(self, app_type: str, description: str = "") -> Optional[AppTemplate]:
        payload = _unwrap(
            await self._ask(
                PromptType.APP_TEMPLATE,
                f"App type: {app_type}\nDescription: {description}",
                {"app_type": app_type, "description": description, "grid_size": settings.canvas_grid_size},
            ),
            "template",
        )
        if not isinstance(payload, dict):
            logger.warning("AI template missing or not an object")
            return None

        try:
            return AppTemplate.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"AI template rejected: {e.error_count()} validation errors")
            return None

    async def optimize_layout(self, components: List[Component]) -> OptimizedLayout:
        wire = [c.to_wire() for c in components]
        payload = _unwrap(
            await self._ask(
                PromptType.LAYOUT_OPTIMIZATION,
                json.dumps({"components": wire}),
                {"components": wire},
            ),
            "optimizedLayout",
        )
        if not isinstance(payload, dict):
            logger.warning("AI layout optimization missing or not an object")
            return OptimizedLayout()

        known_ids = {c.id for c in components}
        result = OptimizedLayout()

        raw_suggestions = payload.get("suggestions")
        if isinstance(raw_suggestions, list):
            for item in raw_suggestions:
                try:
                    result.suggestions.append(LayoutSuggestion.coerce(item))
                except ValidationError:
                    logger.debug(f"Dropping malformed layout suggestion {item!r}")

        raw_improvements = payload.get("improvements")
        if isinstance(raw_improvements, list):
            for item in raw_improvements:
                if not isinstance(item, dict) or not isinstance(item.get("id"), str) or item["id"] not in known_ids:
                    continue
                try:
                    position = item.get("position")
                    if isinstance(position, dict):
                        position = {
                            **position,
                            "x": max(0, position.get("x", 0)),
                            "y": max(0, position.get("y", 0)),
                        }
                    result.improvements.append(LayoutImprovement.model_validate({**item, "position": position}))
                except (ValidationError, TypeError):
                    logger.debug(f"Dropping malformed layout improvement for {item.get('id')}")

        return result


_assistant: Optional[AIAssistant] = None


def get_ai_assistant() -> AIAssistant:
    """Process-wide assistant; the orchestrator keeps cache and failure state"""
    global _assistant
    if _assistant is None:
        _assistant = AIAssistant(LLMOrchestrator(settings.llm_config), PromptManager())
    return _assistant
