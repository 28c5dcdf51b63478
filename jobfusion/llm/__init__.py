"""LLM providers and the LLM field extractor."""

from jobfusion.config import settings
from .base import BaseLLMProvider, HTTPLLMProvider
from .field_extraction import LLMFieldExtractor, create_llm_extractor
from .json_utils import extract_json
from .ollama import OllamaProvider, OllamaRetryableError
from .openrouter import OpenRouterProvider, OpenRouterRetryableError
from .usage import LLMUsageStats


def get_llm_provider(provider: str = "openrouter", **kwargs) -> BaseLLMProvider:
    """
    Factory for LLM providers.

    Args:
        provider: Provider name (openrouter, ollama)
        **kwargs: Extra provider arguments

    Returns:
        LLM provider instance
    """
    kwargs.setdefault("timeout", settings.llm_timeout)
    match provider.lower():
        case "ollama":
            if "base_url" not in kwargs:
                kwargs["base_url"] = settings.ollama_url
            return OllamaProvider(**kwargs)
        case "openrouter":
            # Use the API key from settings unless given explicitly
            if "api_key" not in kwargs:
                kwargs["api_key"] = settings.openrouter_api_key
            return OpenRouterProvider(**kwargs)
        case _:
            raise ValueError(f"Unknown LLM provider: {provider}")


__all__ = [
    "BaseLLMProvider",
    "HTTPLLMProvider",
    "LLMFieldExtractor",
    "LLMUsageStats",
    "OllamaProvider",
    "OllamaRetryableError",
    "OpenRouterProvider",
    "OpenRouterRetryableError",
    "create_llm_extractor",
    "extract_json",
    "get_llm_provider",
]
