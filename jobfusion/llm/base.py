"""LLM provider interface and the shared HTTP provider plumbing."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional, TypeVar

import httpx
from pydantic import BaseModel
from rich.console import Console
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from jobfusion.constants import LLM_TIMEOUT, MAX_LLM_RETRIES
from .json_utils import extract_json
from .usage import LLMUsageStats

logger = logging.getLogger(__name__)
console = Console(stderr=True)

T = TypeVar("T", bound=BaseModel)


class BaseLLMProvider(ABC):
    """
    Text-in, text-out language model.

    Subclasses implement ``complete``; JSON and schema-validated variants
    fall back to parsing its text unless a provider has a native mode.
    """

    name: str = "LLM"

    @abstractmethod
    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        """Answer ``prompt``; ``system`` replaces the default system prompt."""
        pass

    async def complete_json(self, prompt: str, system: Optional[str] = None) -> dict | list:
        """Answer as JSON, recovered from the text answer."""
        return extract_json(await self.complete(prompt, system))

    async def complete_structured(
        self,
        prompt: str,
        schema: type[T],
        system: Optional[str] = None
    ) -> T:
        """
        Answer as an instance of ``schema``.

        Args:
            prompt: User prompt
            schema: Pydantic model the answer must satisfy
            system: System prompt (optional)

        Returns:
            Validated ``schema`` instance; an empty one if the model did not
            answer with a JSON object
        """
        response = await self.complete_json(prompt, system)
        if isinstance(response, dict):
            return schema.model_validate(response)
        return schema()

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class HTTPLLMProvider(BaseLLMProvider):
    """Provider behind an HTTP API, sharing one httpx client per instance."""

    def __init__(
        self,
        model: str,
        timeout: float = LLM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[dict] = None,
    ):
        """
        Args:
            model: Model name sent with every request
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
            headers: Headers sent with every request
        """
        self.model = model
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport, headers=headers)
        self.usage_stats = LLMUsageStats()

    def parse_json_content(self, content: str) -> dict | list:
        """Parse a JSON-mode answer, salvaging JSON from malformed output."""
        if not content:
            return {}
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"{self.name} returned invalid JSON despite JSON mode: {e}")
            logger.debug(f"Raw content (first 500 chars): {content[:500]}")
            return extract_json(content)

    def get_usage_summary(self) -> str:
        return self.usage_stats.summary(self.name)

    async def close(self):
        if self.usage_stats.calls:
            logger.info(self.get_usage_summary())
        await self.client.aclose()


def _log_retry(retry_state) -> None:
    provider = retry_state.args[0]
    error = retry_state.outcome.exception()
    wait = retry_state.next_action.sleep if retry_state.next_action else 0

    message = (
        f"{provider.name} request failed (attempt {retry_state.attempt_number}/{MAX_LLM_RETRIES}): "
        f"{error}. Retrying in {wait:.1f}s..."
    )
    logger.warning(message)
    console.print(f"[bold red]{message}[/bold red]")


def transient_retry(error_type: type[Exception]):
    """Retry policy for provider calls: exponential backoff on ``error_type`` only."""
    return retry(
        stop=stop_after_attempt(MAX_LLM_RETRIES),
        wait=wait_exponential(multiplier=2, min=2, max=16),
        retry=retry_if_exception_type(error_type),
        before_sleep=_log_retry,
        reraise=True,
    )
