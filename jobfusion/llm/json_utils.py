"""JSON utilities for LLM responses."""

import json
import logging
import re

logger = logging.getLogger(__name__)

CODE_BLOCK_PATTERN = re.compile(r'```(?:json)?\s*([\s\S]*?)\s*```')


def _balanced_object(response: str) -> str | None:
    """First ``{...}`` span with balanced braces, or None."""
    start = response.find('{')
    if start == -1:
        return None

    depth = 0
    for i, char in enumerate(response[start:], start):
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return response[start:i + 1]
    return None


def extract_json(response: str) -> list | dict:
    """
    Extract JSON from an LLM response.

    Handles various formats:
    - JSON in markdown code blocks
    - Raw JSON response
    - JSON object embedded in text

    Args:
        response: LLM response text

    Returns:
        Parsed JSON, or an empty dict on failure. A fenced or bare answer
        that is valid JSON is returned as parsed, whatever its type.
    """
    if not response or not response.strip():
        return {}

    block = CODE_BLOCK_PATTERN.search(response)
    if block:
        try:
            return json.loads(block.group(1))
        except json.JSONDecodeError:
            pass

    try:
        return json.loads(response.strip())
    except json.JSONDecodeError as e:
        logger.debug(f"Direct JSON parse failed: {e}")

    candidate = _balanced_object(response)
    if candidate:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            pass

    return {}
