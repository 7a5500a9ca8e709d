"""
appcanvas/llm/orchestrator.py
Routes assistant prompts to the configured model, with a heuristic fallback
"""
import hashlib
import logging
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import datetime, timedelta

from .base import BaseLLMProvider, LLMResponse, LLMMessage, LLMProvider
from .openai_provider import OpenAIProvider
from .heuristic_provider import HeuristicProvider


logger = logging.getLogger(__name__)


class ResponseCache:
    """
    In-process TTL cache of primary responses keyed by prompt. Expired
    entries are swept on every write, and past ``max_entries`` the oldest
    entry is evicted.
    """

    def __init__(self, ttl_seconds: int, max_entries: int = 256, clock: Callable[[], datetime] = datetime.now):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: Dict[str, Tuple[LLMResponse, datetime]] = {}

    @staticmethod
    def key_for(messages: List[LLMMessage], temperature: float, max_tokens: Optional[int]) -> str:
        raw = json.dumps(
            {
                "messages": [[m.role, m.content] for m in messages],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            sort_keys=True,
        )
        return hashlib.md5(raw.encode()).hexdigest()

    def get(self, key: str) -> Optional[LLMResponse]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        response, stored_at = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        return response

    def put(self, key: str, response: LLMResponse) -> None:
        now = self._clock()
        self._entries = {
            k: entry for k, entry in self._entries.items()
            if k != key and now - entry[1] < self.ttl
        }
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (response, now)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class FailureTracker:
    """
    Counts primary failures; once ``threshold`` is reached the primary is
    bypassed until ``window`` has passed since the last failure.
    """
    threshold: int
    window: timedelta
    count: int = 0
    last_failure: Optional[datetime] = None
    tripped: bool = False

    def record(self) -> bool:
        """Register a failure; True if this one tripped the breaker"""
        self.count += 1
        self.last_failure = datetime.now()
        if self.count >= self.threshold and not self.tripped:
            self.tripped = True
            return True
        return False

    def expire(self) -> bool:
        """Clear state whose window has passed; True if anything was cleared"""
        if self.last_failure is None or datetime.now() - self.last_failure <= self.window:
            return False
        self.clear()
        return True

    def clear(self) -> None:
        self.count = 0
        self.last_failure = None
        self.tripped = False


class LLMOrchestrator:
    """
    Sends builder prompts to the OpenAI-compatible provider when one is
    configured and healthy. Disabled, failing or non-JSON primaries are
    answered by ``HeuristicProvider`` from its fixed tables; if that fails too
    an emergency JSON error document is returned so callers never see an
    exception.
    """

    def __init__(self, config: Dict[str, Any], primary_provider: Optional[BaseLLMProvider] = None):
        self.config = config
        self.primary_provider = primary_provider or self._build_primary(config)
        self.primary_available = self.primary_provider is not None
        self.fallback_provider = HeuristicProvider(config)

        self.failures = FailureTracker(
            threshold=config.get("failure_threshold", 3),
            window=timedelta(minutes=config.get("failure_window_minutes", 5)),
        )
        self.cache = ResponseCache(
            config.get("cache_ttl_seconds", 300),
            max_entries=config.get("cache_max_entries", 256),
        )
        self.stats = {"total_requests": 0, "primary_success": 0, "fallback_success": 0}

        logger.info(
            f"LLM orchestrator ready (primary: "
            f"{'enabled' if self.primary_available else 'disabled, heuristic only'})"
        )

    @staticmethod
    def _build_primary(config: Dict[str, Any]) -> Optional[BaseLLMProvider]:
        if not config.get("enabled", False):
            return None
        try:
            return OpenAIProvider(config)
        except ValueError as e:
            logger.warning(f"OpenAI-compatible provider not configured: {e}")
            return None

    @property
    def failure_count(self) -> int:
        return self.failures.count

    @property
    def force_fallback(self) -> bool:
        return not self.primary_available or self.failures.tripped

    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        force_provider: Optional[LLMProvider] = None,
        validate_json: bool = True,
        **kwargs
    ) -> LLMResponse:
        """
        Answer ``messages`` with the primary provider if it may be used,
        otherwise with the heuristic provider.

        Args:
            messages: Conversation to send
            temperature: Sampling temperature
            max_tokens: Completion budget
            force_provider: ``LLMProvider.HEURISTIC`` skips the primary
            validate_json: Treat a primary answer without JSON as a failure
            **kwargs: ``task`` and ``variables`` let the heuristic provider
                answer without parsing the prompt
        """
        self.stats["total_requests"] += 1
        started = datetime.now()

        if self.failures.expire():
            logger.info("Primary failure window elapsed, primary provider re-enabled")

        if not self.force_fallback and force_provider != LLMProvider.HEURISTIC:
            response = await self._try_primary(messages, temperature, max_tokens, validate_json)
            if response is not None:
                elapsed = (datetime.now() - started).total_seconds()
                logger.info(f"Primary answered in {elapsed:.2f}s (tokens={response.tokens_used})")
                return response

        return await self._fallback(messages, temperature, max_tokens, started, **kwargs)

    async def _try_primary(
        self,
        messages: List[LLMMessage],
        temperature: float,
        max_tokens: Optional[int],
        validate_json: bool,
    ) -> Optional[LLMResponse]:
        key = ResponseCache.key_for(messages, temperature, max_tokens)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Prompt cache hit {key[:8]}")
            return cached

        try:
            response = await self.primary_provider.generate(
                messages, temperature, max_tokens, json_response=validate_json
            )
            if validate_json and not response.is_valid_json:
                raise ValueError("response contained no JSON document")
        except Exception as e:
            logger.warning(f"Primary provider failed: {e}")
            if self.failures.record():
                logger.error(
                    f"{self.failures.threshold} consecutive primary failures, "
                    f"using heuristic answers for {self.failures.window}"
                )
            return None

        self.failures.clear()
        self.stats["primary_success"] += 1
        self.cache.put(key, response)
        return response

    async def _fallback(
        self,
        messages: List[LLMMessage],
        temperature: float,
        max_tokens: Optional[int],
        started: datetime,
        **kwargs
    ) -> LLMResponse:
        try:
            response = await self.fallback_provider.generate(messages, temperature, max_tokens, **kwargs)
        except Exception as e:
            logger.error(f"Heuristic provider failed: {e}")
            return self._emergency_response(e)

        self.stats["fallback_success"] += 1
        elapsed = (datetime.now() - started).total_seconds()
        logger.info(f"Heuristic provider answered in {elapsed:.2f}s")
        return response

    @staticmethod
    def _emergency_response(error: Exception) -> LLMResponse:
        return LLMResponse(
            content=json.dumps({
                "error": "assistant_unavailable",
                "message": "No provider could answer the request",
                "timestamp": datetime.now().isoformat(),
                "emergency": True,
            }),
            provider=LLMProvider.HEURISTIC,
            tokens_used=0,
            finish_reason="emergency_fallback",
            model="emergency",
            metadata={"error": str(error)},
        )

    async def health_check(self) -> Dict[str, Any]:
        return {
            "primary": await self.primary_provider.health_check() if self.primary_provider else False,
            "heuristic": await self.fallback_provider.health_check(),
            "force_fallback": self.force_fallback,
            "primary_available": self.primary_available,
        }

    def get_status(self) -> Dict[str, Any]:
        return {
            **self.stats,
            "failure_count": self.failures.count,
            "force_fallback": self.force_fallback,
            "primary_available": self.primary_available,
            "cache_size": len(self.cache),
            "last_failure": self.failures.last_failure.isoformat() if self.failures.last_failure else None,
            "primary_stats": getattr(self.primary_provider, "get_stats", dict)(),
        }

    def reset(self):
        """Forget recorded failures and re-enable the primary provider"""
        logger.info("Orchestrator failure state reset")
        self.failures.clear()
