"""Extraction sources and their reliability weights."""

from enum import Enum

from jobfusion.constants import UNKNOWN_SOURCE_WEIGHT


class ExtractionSource(str, Enum):
    """Identifier of the heuristic that produced a candidate."""
    JSON_LD = "json-ld"              # schema.org JobPosting - highest confidence
    APP_DATA = "app-data"            # Embedded application state
    ARIA_LABELS = "aria-labels"      # Accessibility attributes
    META_TAGS = "meta-tags"          # Open Graph / job meta tags
    CSS_SELECTORS = "css-selectors"  # Heuristic class names
    PROXIMITY = "proximity"          # Label/value proximity in the DOM
    TITLE_PARSE = "title-parse"      # Document title splitting
    READABILITY = "readability"      # Main content heuristics
    ML_NER = "ml-ner"                # Named-entity model over page text
    REGEX = "regex"                  # Raw text patterns
    LLM = "llm"                      # LLM extraction - fallback


# Base reliability by source
SOURCE_WEIGHTS = {
    ExtractionSource.JSON_LD.value: 1.0,
    ExtractionSource.APP_DATA.value: 0.95,
    ExtractionSource.ARIA_LABELS.value: 0.85,
    ExtractionSource.META_TAGS.value: 0.80,
    ExtractionSource.CSS_SELECTORS.value: 0.70,
    ExtractionSource.PROXIMITY.value: 0.55,
    ExtractionSource.TITLE_PARSE.value: 0.50,
    ExtractionSource.READABILITY.value: 0.45,
    ExtractionSource.ML_NER.value: 0.70,
    ExtractionSource.REGEX.value: 0.40,
    ExtractionSource.LLM.value: 0.90,
}


def source_weight(source: str) -> float:
    """Weight for a source name, falling back for unknown sources."""
    return SOURCE_WEIGHTS.get(source, UNKNOWN_SOURCE_WEIGHT)
