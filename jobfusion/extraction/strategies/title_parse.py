"""Document title parsing: "Position at Company", "Position | Company | City"."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from jobfusion.models import Field
from jobfusion.source import PageSource
from ..sources import ExtractionSource
from .base import BaseExtractionStrategy, StrategyResult

logger = logging.getLogger(__name__)

TITLE_SEPARATORS = [" | ", " - ", " – ", " — ", " :: ", " : ", " at ", " @ ", " · ", " / ", " • "]

# Site suffixes dropped before parsing ("Engineer - Careers")
COMMON_SUFFIXES = [
    "careers", "jobs", "career", "job", "hiring", "work with us", "join us",
    "join our team", "we're hiring", "apply now", "job application", "employment",
    "vacancy", "openings", "opportunities", "linkedin", "glassdoor", "indeed",
    "monster", "ziprecruiter", "angellist", "wellfound",
]
SUFFIX_PATTERNS = [
    re.compile(rf'\s*[|\-–—]\s*{re.escape(suffix)}\s*$', re.IGNORECASE) for suffix in COMMON_SUFFIXES
]

JOB_TITLE_INDICATORS = [
    re.compile(r'\b(engineer|developer|designer|manager|director|analyst|specialist|coordinator|lead|senior|junior|intern|consultant)\b', re.IGNORECASE),
    re.compile(r'\b(remote|hybrid|full[- ]?time|part[- ]?time|contract)\b', re.IGNORECASE),
    re.compile(r'\b(job|position|role|opening|opportunity|career)\b', re.IGNORECASE),
]

POSITION_KEYWORDS = [
    re.compile(kw, re.IGNORECASE) for kw in (
        "engineer", "developer", "designer", "manager", "director", "analyst",
        "specialist", "lead", "senior", "junior", "architect", "consultant",
        "coordinator", "administrator",
    )
]
COMPANY_NEGATIVE_KEYWORDS = [
    re.compile(kw, re.IGNORECASE) for kw in ("engineer", "developer", "manager", "director", "analyst")
]
COMPANY_SUFFIX = re.compile(r'\b(Inc|LLC|Ltd|Corp|Company|Co|GmbH|SA|BV|PLC)\b', re.IGNORECASE)
CITY_STATE = re.compile(r',\s*[A-Z]{2}$')

# Confidence multipliers by title format
AT_SIGN_CONFIDENCE = 0.95
AT_WORD_CONFIDENCE = 0.90
SPLIT_POSITION_CONFIDENCE = 0.85
SPLIT_COMPANY_CONFIDENCE = 0.80
SPLIT_LOCATION_CONFIDENCE = 0.75
WHOLE_TITLE_CONFIDENCE = 0.60


@dataclass
class ParsedTitle:
    position: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    position_confidence: float = 1.0
    company_confidence: float = 1.0
    location_confidence: float = 1.0


def has_job_indicators(title: str) -> bool:
    return any(p.search(title) for p in JOB_TITLE_INDICATORS)


def score_as_position(text: str) -> float:
    if not text or len(text) < 3 or len(text) > 100:
        return 0.0
    score = 0.3
    score += 0.3 * sum(1 for kw in POSITION_KEYWORDS if kw.search(text))
    if re.search(r'\b(I{1,3}|[1-3])\b', text):
        score += 0.1
    if re.search(r'\b(sr|jr)\b', text, re.IGNORECASE):
        score += 0.1
    if re.search(r'\b(Inc|LLC|Ltd|Corp|Company|Co)\b', text, re.IGNORECASE):
        score -= 0.5
    if CITY_STATE.search(text):
        score -= 0.3
    return max(0.0, min(1.0, score))


def score_as_company(text: str) -> float:
    if not text or len(text) < 2 or len(text) > 100:
        return 0.0
    score = 0.3
    if COMPANY_SUFFIX.search(text):
        score += 0.4
    if re.match(r'^[A-Z]', text):
        score += 0.1
    if re.fullmatch(r'[A-Z][a-z]+', text):
        score += 0.2
    score -= 0.3 * sum(1 for kw in COMPANY_NEGATIVE_KEYWORDS if kw.search(text))
    return max(0.0, min(1.0, score))


def score_as_location(text: str) -> float:
    if not text or len(text) < 2 or len(text) > 100:
        return 0.0
    score = 0.2
    if CITY_STATE.search(text):
        score += 0.5
    if re.search(r'\b(USA|UK|Canada|Germany|France|India|Australia|Singapore|Remote)\b', text, re.IGNORECASE):
        score += 0.4
    if re.search(r'\b(New York|San Francisco|Los Angeles|London|Berlin|Paris|Tokyo|Sydney)\b', text, re.IGNORECASE):
        score += 0.3
    if re.search(r'\b(remote|hybrid|on-?site)\b', text, re.IGNORECASE):
        score += 0.4
    return max(0.0, min(1.0, score))


def looks_like_position(text: str) -> bool:
    return score_as_position(text) > 0.5


def clean_part(part: str) -> str:
    if not part:
        return ""
    part = re.sub(r'^\s*[-–—|:·•/]\s*', '', part)
    part = re.sub(r'\s*[-–—|:·•/]\s*$', '', part)
    return part.strip()


def identify_parts(parts: list[str]) -> ParsedTitle:
    """Decide which split title parts are position, company and location."""
    parsed = ParsedTitle()
    scored = [
        (index, part, score_as_position(part), score_as_company(part), score_as_location(part))
        for index, part in enumerate(parts)
    ]

    position = next((s for s in scored if s[2] > 0.5 and s[0] == 0), None) or next(
        (s for s in scored if s[2] > 0.7), None
    )
    position_index = position[0] if position else None
    if position:
        parsed.position = position[1]

    company = next(
        (s for s in scored if s[3] > 0.5 and s[0] != position_index and s[4] < 0.5), None
    )
    company_index = company[0] if company else None
    if company:
        parsed.company = company[1]

    location = next(
        (s for s in scored if s[4] > 0.5 and s[0] not in (position_index, company_index)), None
    )
    if location:
        parsed.location = location[1]

    return parsed


def parse_title(title: str) -> ParsedTitle:
    """
    Parse a document title into position, company and location.

    Examples:
        "Staff Engineer @ Acme" -> position "Staff Engineer", company "Acme"
        "Senior Developer at Globex" -> position "Senior Developer", company "Globex"
        "Data Analyst | Initech | Austin, TX" -> all three parts
    """
    clean_title = title
    for pattern in SUFFIX_PATTERNS:
        clean_title = pattern.sub("", clean_title)

    at_sign = re.match(r'^(.+?)\s+@\s+(.+)$', clean_title)
    if at_sign:
        return ParsedTitle(
            position=clean_part(at_sign.group(1)),
            company=clean_part(at_sign.group(2)),
            position_confidence=AT_SIGN_CONFIDENCE,
            company_confidence=AT_SIGN_CONFIDENCE,
        )

    at_word = re.match(r'^(.+?)\s+at\s+(.+)$', clean_title, re.IGNORECASE)
    if at_word:
        position = clean_part(at_word.group(1))
        company = clean_part(at_word.group(2))
        # "at" may belong to the title itself
        if looks_like_position(position) and not looks_like_position(company):
            return ParsedTitle(
                position=position,
                company=company,
                position_confidence=AT_WORD_CONFIDENCE,
                company_confidence=AT_WORD_CONFIDENCE,
            )

    for separator in TITLE_SEPARATORS:
        if separator not in clean_title:
            continue
        parts = [p for p in (clean_part(p) for p in clean_title.split(separator)) if p]
        if len(parts) < 2:
            continue
        identified = identify_parts(parts)
        if identified.position or identified.company:
            identified.position_confidence = SPLIT_POSITION_CONFIDENCE
            identified.company_confidence = SPLIT_COMPANY_CONFIDENCE
            identified.location_confidence = SPLIT_LOCATION_CONFIDENCE
            return identified

    if looks_like_position(clean_title) and len(clean_title) < 100:
        return ParsedTitle(position=clean_title, position_confidence=WHOLE_TITLE_CONFIDENCE)

    return ParsedTitle()


class TitleParseStrategy(BaseExtractionStrategy):
    """Extract fields from the document title."""

    name = ExtractionSource.TITLE_PARSE.value
    priority = 7
    base_confidence = 0.50

    def is_applicable(self, source: PageSource) -> bool:
        title = source.title
        return len(title) > 5 and has_job_indicators(title)

    def _collect(self, source: PageSource, result: StrategyResult) -> None:
        title = source.title
        result.extras["original_title"] = title
        if len(title) < 3 or not has_job_indicators(title):
            return

        parsed = parse_title(title)
        selector = "title"
        result.add(Field.POSITION, parsed.position, self.base_confidence * parsed.position_confidence, selector)
        result.add(Field.COMPANY, parsed.company, self.base_confidence * parsed.company_confidence, selector)
        result.add(Field.LOCATION, parsed.location, self.base_confidence * parsed.location_confidence, selector)
