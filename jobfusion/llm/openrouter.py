"""OpenRouter chat-completions provider."""

import logging
import time
from typing import Optional, TypeVar

import httpx
from pydantic import BaseModel

from jobfusion.constants import LLM_TIMEOUT
from .base import HTTPLLMProvider, transient_retry
from .prompts import SYSTEM_PROMPT

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)

API_URL = "https://openrouter.ai/api/v1/chat/completions"

# Field extraction answers are short
MODEL_CONFIGS = {
    "openai/gpt-4o-mini": {"temperature": 0.0, "max_tokens": 1024},
    "anthropic/claude-3-haiku": {"temperature": 0.0, "max_tokens": 500},
}
DEFAULT_CONFIG = {"temperature": 0.0, "max_tokens": 1024}

# Body-level errors worth another attempt
TRANSIENT_ERROR_PATTERNS = (
    "provider returned error",
    "rate limit",
    "overloaded",
    "capacity",
    "temporarily unavailable",
    "service unavailable",
    "internal server error",
    "502", "503", "504",
)

# Models accepting response_format json_schema
STRUCTURED_OUTPUT_MODELS = frozenset({
    "openai/gpt-4o",
    "openai/gpt-4o-mini",
    "openai/gpt-4o-2024-08-06",
    "openai/gpt-4o-mini-2024-07-18",
})

# USD per 1M tokens, used when the response carries no cost
MODEL_PRICES = {
    "openai/gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "openai/gpt-4o": {"input": 2.50, "output": 10.00},
    "anthropic/claude-3-haiku": {"input": 0.25, "output": 1.25},
}
DEFAULT_PRICE = {"input": 0.50, "output": 1.50}


class OpenRouterRetryableError(Exception):
    """Transient OpenRouter failure: 5xx, rate limit or lost connection."""


def is_transient(message: str) -> bool:
    lowered = message.lower()
    return any(pattern in lowered for pattern in TRANSIENT_ERROR_PATTERNS)


def estimate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    prices = MODEL_PRICES.get(model, DEFAULT_PRICE)
    return (prompt_tokens * prices["input"] + completion_tokens * prices["output"]) / 1_000_000


class OpenRouterProvider(HTTPLLMProvider):
    """Any OpenRouter-hosted model through the OpenAI-compatible API."""

    name = "OpenRouter"

    def __init__(
        self,
        api_key: str,
        model: str = "openai/gpt-4o-mini",
        timeout: float = LLM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("OpenRouter API key is required (set OPENROUTER_API_KEY)")
        super().__init__(
            model,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "X-Title": "jobfusion",
            },
        )
        self.config = MODEL_CONFIGS.get(model, DEFAULT_CONFIG)

    def build_payload(
        self,
        prompt: str,
        system: Optional[str] = None,
        response_format: Optional[dict] = None,
    ) -> dict:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system or SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            **self.config,
        }
        if response_format:
            payload["response_format"] = response_format
        return payload

    def response_format_for(self, schema: type[BaseModel]) -> dict:
        """json_schema where the model supports it, plain JSON mode otherwise."""
        if self.model not in STRUCTURED_OUTPUT_MODELS:
            logger.debug(f"{self.model} has no json_schema support, using json_object")
            return {"type": "json_object"}
        return {
            "type": "json_schema",
            "json_schema": {
                "name": schema.__name__,
                "strict": False,
                "schema": schema.model_json_schema(),
            },
        }

    async def send(self, payload: dict) -> str:
        """
        POST one chat completion and return the message text.

        Raises:
            OpenRouterRetryableError: Transient failure, retried by the callers
            RuntimeError: Permanent failure (auth, bad request, bad model)
        """
        start = time.perf_counter()
        try:
            response = await self.client.post(API_URL, json=payload)
        except httpx.ConnectError as e:
            raise OpenRouterRetryableError(f"Connection error: {e}") from e
        except httpx.ReadTimeout as e:
            raise OpenRouterRetryableError(f"Timeout: {e}") from e

        if response.status_code >= 400:
            message = f"HTTP {response.status_code}: {response.text[:500]}"
            if response.status_code >= 500:
                raise OpenRouterRetryableError(message)
            raise RuntimeError(f"OpenRouter API error: {message}")

        data = response.json()
        error = data.get("error")
        if error:
            message = error.get("message", "Unknown error")
            detail = f"[{error['code']}] {message}" if error.get("code") else message
            if is_transient(message):
                raise OpenRouterRetryableError(detail)
            raise RuntimeError(f"OpenRouter API error: {detail}")

        self._record_usage(data.get("usage") or {}, time.perf_counter() - start)

        choices = data.get("choices") or [{}]
        return (choices[0].get("message") or {}).get("content") or ""

    def _record_usage(self, usage: dict, seconds: float) -> None:
        prompt_tokens = usage.get("prompt_tokens", 0)
        completion_tokens = usage.get("completion_tokens", 0)
        cost = usage.get("total_cost") or estimate_cost(self.model, prompt_tokens, completion_tokens)

        self.usage_stats.record(prompt_tokens, completion_tokens, seconds, cost)
        logger.debug(
            f"OpenRouter {self.model}: {prompt_tokens}+{completion_tokens} tokens "
            f"in {seconds:.2f}s (${cost:.5f})"
        )

    @transient_retry(OpenRouterRetryableError)
    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        return await self.send(self.build_payload(prompt, system))

    @transient_retry(OpenRouterRetryableError)
    async def complete_json(self, prompt: str, system: Optional[str] = None) -> dict | list:
        content = await self.send(self.build_payload(prompt, system, {"type": "json_object"}))
        return self.parse_json_content(content)

    @transient_retry(OpenRouterRetryableError)
    async def complete_structured(
        self,
        prompt: str,
        schema: type[T],
        system: Optional[str] = None
    ) -> T:
        content = await self.send(self.build_payload(prompt, system, self.response_format_for(schema)))
        if not content:
            return schema()
        return schema.model_validate_json(content)
