"""Job field extraction with an LLM, used as the pipeline's fallback stage."""

import logging
import re
from typing import Any, Optional, TYPE_CHECKING

from jobfusion.config import settings
from jobfusion.constants import LLM_MAX_VALUE_LENGTH, LLM_MIN_TEXT_LENGTH, MAX_LLM_TEXT_LENGTH
from jobfusion.models import ExtractedFieldsSchema, ExtractionResult, FieldMap
from .json_utils import extract_json
from .prompts import CURRENT_VALUES_CONTEXT, EXTRACT_FIELDS_PROMPT

if TYPE_CHECKING:
    from .base import BaseLLMProvider

logger = logging.getLogger(__name__)

# Output key -> accepted response keys, canonical first
RESPONSE_KEYS = {
    "position": ("position", "title"),
    "company": ("company", "organization"),
    "location": ("location",),
    "salary": ("salary", "compensation"),
}

SURROUNDING_QUOTES = re.compile(r'^["\']|["\']$')
WHITESPACE = re.compile(r'\s+')


def clean_value(value: str) -> str:
    """Strip surrounding quotes, collapse whitespace, limit length."""
    if not value:
        return ""
    value = SURROUNDING_QUOTES.sub("", value)
    value = WHITESPACE.sub(" ", value).strip()
    return value[:LLM_MAX_VALUE_LENGTH]


def build_prompt(text: str, current_result: Optional[ExtractionResult] = None) -> str:
    """Extraction prompt, with current best values as context when there are any."""
    context = ""
    if current_result is not None:
        known = [
            f"- {key}: {current_result[key].value}"
            for key in RESPONSE_KEYS
            if current_result[key].value
        ]
        if known:
            context = CURRENT_VALUES_CONTEXT.format(values="\n".join(known) + "\n")
    return EXTRACT_FIELDS_PROMPT.format(text=text, context=context)


class LLMFieldExtractor:
    """
    LLM extractor callable for ExtractionPipeline.

    ``await extractor(text, current_result)`` returns a FieldMap with
    position, company, location and salary, or None when the text is too
    short or the model found neither position nor company.
    """

    def __init__(self, provider: "BaseLLMProvider"):
        self.provider = provider

    async def __call__(
        self, text: str, current_result: Optional[ExtractionResult] = None
    ) -> Optional[FieldMap]:
        if not text or len(text) < LLM_MIN_TEXT_LENGTH:
            logger.debug(f"Text too short for LLM extraction ({len(text or '')} chars)")
            return None

        prompt = build_prompt(text[:MAX_LLM_TEXT_LENGTH], current_result)

        # Try structured output first (guaranteed schema)
        try:
            structured = await self.provider.complete_structured(prompt, ExtractedFieldsSchema)
            return self.parse_response(structured.model_dump(exclude_none=True))
        except Exception as e:
            logger.warning(f"Structured extraction failed: {e}, falling back to JSON mode")

        response = await self.provider.complete_json(prompt)
        return self.parse_response(response)

    def parse_response(self, response: Any) -> Optional[FieldMap]:
        """Accept a parsed dict or raw response text."""
        if not response:
            return None
        if isinstance(response, str):
            response = extract_json(response)
        if not isinstance(response, dict):
            logger.debug(f"Unexpected LLM response type: {type(response).__name__}")
            return None
        return self.validate_response(response)

    def validate_response(self, data: dict) -> Optional[FieldMap]:
        """Map synonyms onto canonical keys and clean values."""
        result: FieldMap = {}
        for key, accepted in RESPONSE_KEYS.items():
            result[key] = ""
            for name in accepted:
                value = data.get(name)
                if value and isinstance(value, str):
                    result[key] = clean_value(value)
                    break

        if result["position"] or result["company"]:
            return result
        return None

    async def close(self):
        await self.provider.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_llm_extractor(
    provider: Optional[str] = None, model: Optional[str] = None, **kwargs
) -> LLMFieldExtractor:
    """
    Build an LLM extractor from settings.

    Args:
        provider: Provider name (default: settings.llm_provider)
        model: Model name (default: settings.llm_model)
        **kwargs: Extra provider arguments

    Returns:
        LLMFieldExtractor owning a new provider; close it when done
    """
    from . import get_llm_provider

    llm = get_llm_provider(provider or settings.llm_provider, model=model or settings.llm_model, **kwargs)
    return LLMFieldExtractor(llm)
