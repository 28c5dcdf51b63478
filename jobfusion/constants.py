"""Global constants for the extraction engine.

Centralizes calibration values shared by the scorer, merger and pipeline.
"""

# =============================================================================
# Confidence
# =============================================================================

UNKNOWN_SOURCE_WEIGHT = 0.3  # Weight for sources missing from the weight table
MAX_CONFIDENCE = 1.0

TOO_LONG_MULTIPLIER = 0.3
GOOD_LENGTH_MULTIPLIER = 1.1
ALL_CAPS_MULTIPLIER = 0.7
ALL_LOWER_MULTIPLIER = 0.8
PATTERN_MATCH_MULTIPLIER = 1.15
SPECIAL_CHARS_MULTIPLIER = 0.6
SPECIAL_CHARS_MAX_RATIO = 0.2  # Share of unusual characters tolerated
CASE_PENALTY_MIN_LENGTH = 3  # Case penalties apply only to longer values


# =============================================================================
# Cross validation
# =============================================================================

UNANIMOUS_BOOST_PER_CANDIDATE = 0.1
MAX_UNANIMOUS_BOOST = 0.3  # All values identical
AGREEMENT_BOOST_PER_SOURCE = 0.08
MAX_AGREEMENT_BOOST = 0.2  # Largest group of similar values
SIMILARITY_MAX_LENGTH = 30  # Edit distance only compares short strings
SIMILARITY_MAX_DISTANCE_RATIO = 0.3


# =============================================================================
# Merging
# =============================================================================

MAX_ALTERNATES = 2

# Weights for the overall score (jobDescription does not contribute)
FIELD_WEIGHTS = {
    "position": 0.35,
    "company": 0.35,
    "location": 0.15,
    "salary": 0.15,
}
MISSING_ESSENTIALS_MULTIPLIER = 0.7  # Applied when position or company is empty

ML_CONFIDENCE = 0.70
ML_SELECTOR = "ml-extraction"

LLM_CONFIDENCE = 0.90
LLM_REPLACE_BELOW = 0.3  # Fields under this confidence are overwritten by the LLM
LLM_AGREEMENT_MULTIPLIER = 1.15


# =============================================================================
# Pipeline
# =============================================================================

LLM_FALLBACK_THRESHOLD = 0.6
MIN_PAGE_TEXT_LENGTH = 100  # ML and LLM are skipped for thinner pages
MAX_LLM_TEXT_LENGTH = 8_000  # Characters of page text sent to the LLM
EXTERNAL_EXTRACTOR_TIMEOUT = 30.0  # Seconds for ML/LLM calls


# =============================================================================
# LLM
# =============================================================================

LLM_MIN_TEXT_LENGTH = 50  # The LLM extractor refuses shorter inputs
LLM_MAX_VALUE_LENGTH = 200
LLM_TIMEOUT = 30.0  # HTTP timeout for provider requests (seconds)
MAX_LLM_RETRIES = 3


# =============================================================================
# Confidence levels
# =============================================================================

CONFIDENCE_LEVELS = [
    (0.9, "very-high"),
    (0.75, "high"),
    (0.6, "medium"),
    (0.4, "low"),
]
LOWEST_CONFIDENCE_LEVEL = "very-low"
