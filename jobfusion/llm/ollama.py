"""Local Ollama provider."""

import logging
import time
from typing import Optional

import httpx

from jobfusion.constants import LLM_TIMEOUT
from .base import HTTPLLMProvider, transient_retry
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class OllamaRetryableError(Exception):
    """Ollama timed out or answered with a server error."""


class OllamaProvider(HTTPLLMProvider):
    """Model served by ``ollama serve`` through /api/generate."""

    name = "Ollama"

    def __init__(
        self,
        model: str = "llama3.1:8b",
        base_url: str = "http://localhost:11434",
        timeout: float = LLM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(model, timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")

    def build_payload(self, prompt: str, system: Optional[str] = None, json_format: bool = False) -> dict:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "system": system or SYSTEM_PROMPT,
            "stream": False,
            "options": {"temperature": 0.0},
        }
        if json_format:
            payload["format"] = "json"
        return payload

    async def generate(self, payload: dict) -> str:
        """Run one generation; connection failures are not retried."""
        start = time.perf_counter()
        try:
            response = await self.client.post(f"{self.base_url}/api/generate", json=payload)
        except httpx.ConnectError as e:
            raise RuntimeError(
                f"Cannot connect to Ollama at {self.base_url}. Is `ollama serve` running?"
            ) from e
        except httpx.ReadTimeout as e:
            raise OllamaRetryableError(f"Timeout: {e}") from e

        if response.status_code >= 500:
            raise OllamaRetryableError(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise RuntimeError(f"Ollama API error: HTTP {response.status_code}: {response.text[:200]}")

        data = response.json()
        if data.get("error"):
            raise RuntimeError(f"Ollama API error: {data['error']}")

        seconds = time.perf_counter() - start
        self.usage_stats.record(data.get("prompt_eval_count", 0), data.get("eval_count", 0), seconds)
        logger.debug(f"Ollama {self.model}: answered in {seconds:.2f}s")
        return data.get("response", "")

    @transient_retry(OllamaRetryableError)
    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        return await self.generate(self.build_payload(prompt, system))

    @transient_retry(OllamaRetryableError)
    async def complete_json(self, prompt: str, system: Optional[str] = None) -> dict | list:
        content = await self.generate(self.build_payload(prompt, system, json_format=True))
        return self.parse_json_content(content)
