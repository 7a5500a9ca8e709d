"""
Provider contract shared by the OpenAI-compatible client and the heuristic
fallback. Builder prompts always ask for JSON, so every response carries the
parsed payload (object or array) when one can be found in the text.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Union, Iterator
from dataclasses import dataclass, field
from enum import Enum
import json
import re


JSONPayload = Union[Dict[str, Any], List[Any]]

_FENCE = re.compile(r'```(?:json)?\s*(.*?)\s*```', re.DOTALL)
_ROLES = frozenset({"system", "user", "assistant"})


class LLMProvider(str, Enum):
    OPENAI = "openai"
    HEURISTIC = "heuristic"


def _json_candidates(text: str) -> Iterator[str]:
    """Whole text, fenced blocks, then the widest {...} and [...] spans"""
    yield text
    yield from _FENCE.findall(text)
    for opener, closer in ('{', '}'), ('[', ']'):
        start, end = text.find(opener), text.rfind(closer)
        if start != -1 and end > start:
            yield text[start:end + 1]


def parse_json_payload(text: str) -> Optional[JSONPayload]:
    """First candidate that decodes to an object or array, else None"""
    for candidate in _json_candidates(text.strip()):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, (dict, list)):
            return parsed
    return None


@dataclass
class LLMResponse:
    content: str
    provider: LLMProvider
    tokens_used: Optional[int] = None
    finish_reason: Optional[str] = None
    model: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    extracted_json: Optional[JSONPayload] = field(default=None, init=False)

    def __post_init__(self):
        self.extracted_json = parse_json_payload(self.content)

    @property
    def is_valid_json(self) -> bool:
        return self.extracted_json is not None


@dataclass
class LLMMessage:
    role: str
    content: str

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class BaseLLMProvider(ABC):
    """
    A source of chat completions.

    Subclasses set ``provider_name`` and implement ``generate`` and
    ``health_check``. Keyword arguments beyond the common ones are
    provider-specific and ignored by providers that do not use them
    (``json_response``, ``task``, ``variables``).
    """

    provider_name: Optional[LLMProvider] = None

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.request_timeout = config.get("request_timeout", 30.0)
        self.max_tokens_default = config.get("max_tokens_default", 2048)

    @abstractmethod
    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...

    @staticmethod
    def format_messages(messages: List[LLMMessage]) -> List[Dict[str, str]]:
        return [message.as_dict() for message in messages]

    @staticmethod
    def validate_messages(messages: List[LLMMessage]) -> bool:
        """Non-empty, known roles, string contents"""
        return bool(messages) and all(
            message.role in _ROLES and isinstance(message.content, str)
            for message in messages
        )
