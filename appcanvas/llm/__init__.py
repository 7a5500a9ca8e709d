"""
Language model access for the builder assistant: an OpenAI-compatible
provider, a heuristic fallback and the orchestrator that picks between them.
"""
from .base import BaseLLMProvider, LLMMessage, LLMProvider, LLMResponse, parse_json_payload
from .heuristic_provider import HeuristicProvider
from .openai_provider import LLMProviderError, OpenAIProvider
from .orchestrator import FailureTracker, LLMOrchestrator, ResponseCache
from .prompt_manager import PromptManager, PromptType

__all__ = [
    "BaseLLMProvider",
    "FailureTracker",
    "HeuristicProvider",
    "LLMMessage",
    "LLMOrchestrator",
    "LLMProvider",
    "LLMProviderError",
    "LLMResponse",
    "OpenAIProvider",
    "PromptManager",
    "PromptType",
    "ResponseCache",
    "parse_json_payload",
]
