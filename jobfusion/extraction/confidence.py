"""Confidence scoring and cross-source agreement."""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from rapidfuzz.distance import Levenshtein

from jobfusion.constants import (
    AGREEMENT_BOOST_PER_SOURCE,
    ALL_CAPS_MULTIPLIER,
    ALL_LOWER_MULTIPLIER,
    CASE_PENALTY_MIN_LENGTH,
    CONFIDENCE_LEVELS,
    FIELD_WEIGHTS,
    GOOD_LENGTH_MULTIPLIER,
    LOWEST_CONFIDENCE_LEVEL,
    MAX_AGREEMENT_BOOST,
    MAX_CONFIDENCE,
    MAX_UNANIMOUS_BOOST,
    MISSING_ESSENTIALS_MULTIPLIER,
    PATTERN_MATCH_MULTIPLIER,
    SIMILARITY_MAX_DISTANCE_RATIO,
    SIMILARITY_MAX_LENGTH,
    SPECIAL_CHARS_MAX_RATIO,
    SPECIAL_CHARS_MULTIPLIER,
    TOO_LONG_MULTIPLIER,
    UNANIMOUS_BOOST_PER_CANDIDATE,
)
from jobfusion.models import Candidate, Field, FieldResult
from .sources import source_weight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldQualityProfile:
    """Shape of a plausible value for one field."""
    min_length: int
    max_length: int
    good_length: tuple[int, int]
    penalize_all_caps: bool = False
    penalize_all_lower: bool = False
    expected_pattern: Optional[re.Pattern] = None


FIELD_PROFILES = {
    Field.POSITION: FieldQualityProfile(
        min_length=3,
        max_length=150,
        good_length=(5, 80),
        penalize_all_caps=True,
        penalize_all_lower=True,
        expected_pattern=re.compile(r'^[A-Z][a-zA-Z0-9\s\-/&,.()+]+$'),
    ),
    Field.COMPANY: FieldQualityProfile(
        min_length=2,
        max_length=100,
        good_length=(2, 50),
        penalize_all_lower=True,
        expected_pattern=re.compile(r'^[A-Z0-9][a-zA-Z0-9\s\-&.,()]+$'),
    ),
    Field.LOCATION: FieldQualityProfile(
        min_length=2,
        max_length=150,
        good_length=(3, 80),
        penalize_all_caps=True,
        penalize_all_lower=True,
    ),
    Field.SALARY: FieldQualityProfile(
        min_length=3,
        max_length=100,
        good_length=(5, 50),
        expected_pattern=re.compile(r'[$£€]\s*[\d,]+|[\d,]+\s*(k|K|per|annually)'),
    ),
    Field.JOB_DESCRIPTION: FieldQualityProfile(
        min_length=50,
        max_length=50_000,
        good_length=(100, 20_000),
    ),
}

MARKUP_PATTERN = re.compile(r'<[^>]+>|javascript:|onclick', re.IGNORECASE)
UNUSUAL_CHAR_PATTERN = re.compile(r'[^a-zA-Z0-9\s\-&.,()/+$£€]')
_WHITESPACE = re.compile(r'\s+')


def has_markup(value: str) -> bool:
    return bool(MARKUP_PATTERN.search(value))


class ConfidenceScorer:
    """Scores a candidate from its source weight and the shape of its value."""

    def __init__(self, profiles: Optional[Mapping[Field, FieldQualityProfile]] = None):
        self.profiles = dict(profiles or FIELD_PROFILES)

    def score(self, candidate: Candidate, field: Field | str) -> float:
        """
        Score a candidate value for a field.

        Args:
            candidate: Candidate to score
            field: Field the candidate was proposed for

        Returns:
            Confidence in [0, 1]
        """
        value = (candidate.value or "").strip()
        if not value:
            return 0.0

        profile = self.profiles[Field.coerce(field)]
        confidence = source_weight(candidate.source)
        length = len(value)

        if length < profile.min_length:
            return 0.0
        if length > profile.max_length:
            confidence *= TOO_LONG_MULTIPLIER

        good_min, good_max = profile.good_length
        if good_min <= length <= good_max:
            confidence *= GOOD_LENGTH_MULTIPLIER

        if profile.penalize_all_caps and length > CASE_PENALTY_MIN_LENGTH and value == value.upper():
            confidence *= ALL_CAPS_MULTIPLIER
        if profile.penalize_all_lower and length > CASE_PENALTY_MIN_LENGTH and value == value.lower():
            confidence *= ALL_LOWER_MULTIPLIER

        if profile.expected_pattern and profile.expected_pattern.search(value):
            confidence *= PATTERN_MATCH_MULTIPLIER

        unusual = len(UNUSUAL_CHAR_PATTERN.findall(value))
        if unusual / length > SPECIAL_CHARS_MAX_RATIO:
            confidence *= SPECIAL_CHARS_MULTIPLIER

        if has_markup(value):
            return 0.0

        return min(MAX_CONFIDENCE, confidence)

    def confidence_for(self, candidate: Candidate, field: Field | str) -> float:
        """Confidence supplied by the strategy if any, else the computed score.

        Markup always scores zero, whoever produced the value.
        """
        if candidate.confidence > 0:
            if has_markup(candidate.value):
                return 0.0
            return min(MAX_CONFIDENCE, candidate.confidence)
        return self.score(candidate, field)


def normalize_value(value: Optional[str]) -> str:
    """Lower-case, trim and collapse whitespace for comparisons."""
    return _WHITESPACE.sub(" ", (value or "").lower().strip())


def are_similar(a: str, b: str) -> bool:
    """Equal, one contains the other, or close by edit distance when short."""
    if a == b:
        return True
    if a in b or b in a:
        return True
    if len(a) < SIMILARITY_MAX_LENGTH and len(b) < SIMILARITY_MAX_LENGTH:
        distance = Levenshtein.distance(a, b)
        return distance / max(len(a), len(b)) < SIMILARITY_MAX_DISTANCE_RATIO
    return False


class CrossValidator:
    """Boosts a field's winner when several sources agree on its value."""

    def boost(self, candidates: Iterable[Candidate]) -> float:
        """
        Agreement multiplier for a field's scored candidates.

        Unanimous values earn the full boost. Otherwise values are grouped
        greedily (each joins the first group whose first value it resembles)
        and the largest group sets the boost.

        Returns:
            Multiplier in [1.0, 1.0 + MAX_UNANIMOUS_BOOST]
        """
        values = [normalize_value(c.value) for c in candidates]
        if len(values) < 2:
            return 1.0

        if len(set(values)) == 1:
            return 1.0 + min(MAX_UNANIMOUS_BOOST, len(values) * UNANIMOUS_BOOST_PER_CANDIDATE)

        groups: list[list[str]] = []
        for value in values:
            for group in groups:
                if are_similar(value, group[0]):
                    group.append(value)
                    break
            else:
                groups.append([value])

        largest = max(len(group) for group in groups)
        if largest >= 2:
            return 1.0 + min(MAX_AGREEMENT_BOOST, (largest - 1) * AGREEMENT_BOOST_PER_SOURCE)
        return 1.0


def calculate_overall_confidence(fields: Mapping[Field, FieldResult]) -> float:
    """Weighted mean over scored fields, penalized when essentials are missing."""
    total = 0.0
    weight_sum = 0.0
    for name, weight in FIELD_WEIGHTS.items():
        result = fields.get(Field(name))
        if result and result.confidence > 0:
            total += result.confidence * weight
            weight_sum += weight

    if weight_sum == 0:
        return 0.0

    overall = total / weight_sum
    position = fields.get(Field.POSITION)
    company = fields.get(Field.COMPANY)
    if not (position and position.value) or not (company and company.value):
        overall *= MISSING_ESSENTIALS_MULTIPLIER
    return overall


def get_confidence_level(confidence: float) -> str:
    """Human-readable bucket for a confidence value."""
    for threshold, level in CONFIDENCE_LEVELS:
        if confidence >= threshold:
            return level
    return LOWEST_CONFIDENCE_LEVEL
