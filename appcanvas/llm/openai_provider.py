"""
Chat completions against any OpenAI-compatible endpoint (OpenAI, Groq,
Ollama, vLLM...). Retries live here rather than in the SDK so every attempt
is counted and logged.
"""
import asyncio
import logging
import time
from typing import List, Optional, Dict, Any

from openai import AsyncOpenAI, APIStatusError, APITimeoutError, RateLimitError, AuthenticationError

from .base import BaseLLMProvider, LLMResponse, LLMMessage, LLMProvider

logger = logging.getLogger(__name__)

COMPLETIONS_SUFFIX = "/chat/completions"


class LLMProviderError(Exception):
    """Raised once every attempt at a completion has failed"""


def sdk_base_url(api_url: str) -> str:
    """The SDK wants the API root; accept a full completions URL as well"""
    url = api_url.rstrip("/")
    if url.endswith(COMPLETIONS_SUFFIX):
        url = url[: -len(COMPLETIONS_SUFFIX)]
    return url


class OpenAIProvider(BaseLLMProvider):

    provider_name = LLMProvider.OPENAI

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        if not config.get("api_key"):
            raise ValueError("LLM API key (APPCANVAS_LLM_API_KEY) is required")

        self.model = config.get("model", "gpt-4o-mini")
        self.attempts = max(1, config.get("max_retries", 2))
        self.backoff = config.get("retry_delay", 1.0)
        self.counters = {"requests": 0, "succeeded": 0, "failed_attempts": 0}

        base_url = sdk_base_url(config.get("api_url", "https://api.openai.com/v1"))
        self._client = AsyncOpenAI(
            api_key=config["api_key"],
            base_url=base_url,
            timeout=self.request_timeout,
            max_retries=0,
        )
        logger.info(f"OpenAI-compatible provider ready: {self.model} @ {base_url}")

    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs,
    ) -> LLMResponse:
        if not self.validate_messages(messages):
            raise ValueError("Messages must be non-empty with system/user/assistant roles")

        self.counters["requests"] += 1
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": self.format_messages(messages),
            "temperature": min(max(temperature, 0.0), 2.0),
            "max_tokens": max_tokens or self.max_tokens_default,
        }
        if kwargs.get("json_response"):
            request["response_format"] = {"type": "json_object"}

        last_error: Optional[Exception] = None
        for attempt in range(1, self.attempts + 1):
            try:
                response = await self._complete(request, attempt)
            except AuthenticationError as e:
                self.counters["failed_attempts"] += 1
                raise LLMProviderError("LLM endpoint rejected the API key") from e
            except (RateLimitError, APITimeoutError, APIStatusError) as e:
                self.counters["failed_attempts"] += 1
                last_error = e
                if not self._retryable(e):
                    logger.error(f"LLM request refused ({type(e).__name__}): {e}")
                    break
                logger.warning(f"LLM attempt {attempt}/{self.attempts} failed: {type(e).__name__}")
                if attempt < self.attempts:
                    await asyncio.sleep(self._delay(e, attempt))
            else:
                self.counters["succeeded"] += 1
                return response

        raise LLMProviderError(f"No completion after {self.attempts} attempt(s): {last_error}")

    @staticmethod
    def _retryable(error: Exception) -> bool:
        if isinstance(error, (RateLimitError, APITimeoutError)):
            return True
        return isinstance(error, APIStatusError) and error.status_code >= 500

    def _delay(self, error: Exception, attempt: int) -> float:
        if isinstance(error, RateLimitError):
            return self.backoff * 2
        return self.backoff * 2 ** (attempt - 1)

    async def _complete(self, request: Dict[str, Any], attempt: int) -> LLMResponse:
        started = time.perf_counter()
        completion = await self._client.chat.completions.create(**request)
        elapsed = time.perf_counter() - started

        choice = completion.choices[0]
        total_tokens = completion.usage.total_tokens if completion.usage else None
        response = LLMResponse(
            content=choice.message.content or "",
            provider=self.provider_name,
            tokens_used=total_tokens,
            finish_reason=choice.finish_reason,
            model=completion.model,
            metadata={"attempt": attempt, "elapsed_seconds": round(elapsed, 3), "id": completion.id},
        )
        logger.info(
            f"LLM completion #{attempt} in {elapsed:.2f}s "
            f"(tokens={total_tokens}, json={response.is_valid_json})"
        )
        return response

    async def health_check(self) -> bool:
        try:
            await self._client.models.list()
        except Exception as e:
            logger.warning(f"LLM endpoint unreachable: {e}")
            return False
        return True

    def get_stats(self) -> Dict[str, Any]:
        return {"provider": self.provider_name.value, "model": self.model, **self.counters}
