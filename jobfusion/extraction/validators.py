"""Content validation: filters garbage values and cleans extracted text."""

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from jobfusion.models import Candidate, Field

logger = logging.getLogger(__name__)


class RejectionReason(str, Enum):
    """Why a candidate value was rejected."""
    EMPTY = "empty"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    GARBAGE_PATTERN = "garbage_pattern"
    HTML_CONTENT = "html_content"
    REPETITION = "repetition"
    NO_CURRENCY_OR_NUMBER = "no_currency_or_number"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a single value."""
    valid: bool
    reason: Optional[RejectionReason] = None
    cleaned: Optional[str] = None


# Things that are NOT job titles
GARBAGE_POSITION_PATTERNS = [
    # Action buttons/links
    re.compile(r'^(apply|submit|login|sign\s*(in|up)|register|continue|next|back|cancel|close|save|share)$', re.IGNORECASE),
    re.compile(r'^(view|see)\s+(all|more|details)', re.IGNORECASE),
    re.compile(r'^(learn|read)\s+more$', re.IGNORECASE),
    re.compile(r'^click\s+here$', re.IGNORECASE),
    # Navigation
    re.compile(r'^(home|about|contact|careers?|jobs?|search|menu|nav|header|footer)$', re.IGNORECASE),
    re.compile(r'^(skip|jump)\s+to', re.IGNORECASE),
    # Placeholders
    re.compile(r'^(loading|please\s+wait|error|untitled|n/a|none|tbd|tba)$', re.IGNORECASE),
    re.compile(r'^\[.*\]$'),
    re.compile(r'^(job|position|role|title)$', re.IGNORECASE),
    # Too short or symbols only
    re.compile(r'^.{1,2}$'),
    re.compile(r'^[\s\-–—_.,:;!?@#$%^&*()+=]+$'),
    re.compile(r'^\d+$'),
    # URLs and emails
    re.compile(r'^(https?://|www\.|mailto:)', re.IGNORECASE),
    re.compile(r'@.*\.(com|org|net|io)', re.IGNORECASE),
    # Cookie/privacy notices
    re.compile(r'cookie|privacy|gdpr|consent', re.IGNORECASE),
    # Website boilerplate
    re.compile(r'^(copyright|all\s+rights|terms|conditions)$', re.IGNORECASE),
    re.compile(r'\d{4}\s*[-–]\s*\d{4}'),  # "2020 - 2024"
]

GARBAGE_COMPANY_PATTERNS = [
    re.compile(r'^(company|employer|organization|business|firm|hiring|recruiter)$', re.IGNORECASE),
    re.compile(r'^(apply|submit|login|home|careers?|jobs?)$', re.IGNORECASE),
    re.compile(r'^(n/a|none|unknown|confidential|anonymous|stealth)$', re.IGNORECASE),
    re.compile(r'^(loading|error|untitled)$', re.IGNORECASE),
    re.compile(r'^.$'),
    re.compile(r'^[\s\-–—_.,:;!?@#$%^&*()+=\d]+$'),
    re.compile(r'^(https?://|www\.)', re.IGNORECASE),
    re.compile(r'^(copyright|all\s+rights)', re.IGNORECASE),
]

GARBAGE_LOCATION_PATTERNS = [
    re.compile(r'^(n/a|none|unknown|remote\s+only|anywhere)$', re.IGNORECASE),
    re.compile(r'^(loading|error)$', re.IGNORECASE),
    re.compile(r'^.$'),
    re.compile(r'^[\s\-–—_.,:;!?@#$%^&*()+=]+$'),
    re.compile(r'^(https?://|www\.)', re.IGNORECASE),
]

GARBAGE_PATTERNS = {
    Field.POSITION: GARBAGE_POSITION_PATTERNS,
    Field.COMPANY: GARBAGE_COMPANY_PATTERNS,
    Field.LOCATION: GARBAGE_LOCATION_PATTERNS,
}

# Leading lines commonly scraped into job descriptions
GARBAGE_DESCRIPTION_PREFIXES = [
    re.compile(r'^🍪?\s*(privacy\s+notice|cookie\s+(policy|notice|consent))[^\n]*\n?', re.IGNORECASE),
    re.compile(r'^(this\s+(website|site)\s+uses\s+cookies)[^\n]*\n?', re.IGNORECASE),
    re.compile(r'^(by\s+using\s+(this\s+)?(site|website),?\s+you\s+(agree|consent))[^\n]*\n?', re.IGNORECASE),
    re.compile(r'^(we\s+use\s+cookies)[^\n]*\n?', re.IGNORECASE),
    re.compile(r'^(accept\s+(all\s+)?cookies)[^\n]*\n?', re.IGNORECASE),
    re.compile(r'^(manage\s+cookie\s+preferences)[^\n]*\n?', re.IGNORECASE),
    re.compile(r'^(cookie\s+settings)[^\n]*\n?', re.IGNORECASE),
]
NAVIGATION_LINE_PATTERN = re.compile(r'^(home|menu|navigation|breadcrumb)[^\n]*\n', re.IGNORECASE)

# (min, max) length per field
LENGTH_CONSTRAINTS = {
    Field.POSITION: (3, 200),
    Field.COMPANY: (2, 150),
    Field.LOCATION: (2, 200),
    Field.SALARY: (3, 100),
    Field.JOB_DESCRIPTION: (50, 50_000),
}

# Fields checked for repeated characters/words and for markup
REPETITION_CHECKED = {Field.POSITION, Field.COMPANY}
HTML_CHECKED = {Field.POSITION, Field.COMPANY, Field.LOCATION}

HTML_PATTERN = re.compile(r'<[^>]+>|<script|<style|javascript:|onclick|onerror', re.IGNORECASE)
REPEATED_CHAR_PATTERN = re.compile(r'(.)\1{4,}')
SALARY_TOKEN_PATTERN = re.compile(r'[$£€¥₹\d]')

_WHITESPACE = re.compile(r'\s+')
_INLINE_WHITESPACE = re.compile(r'[^\S\n]+')
_ZERO_WIDTH = re.compile(r'[\u200B-\u200D\uFEFF]')
_CONTROL_CHARS = re.compile(r'[\x00-\x1F\x7F]')
_CONTROL_CHARS_KEEP_NEWLINE = re.compile(r'[\x00-\x09\x0B-\x1F\x7F]')
_BLANK_LINES = re.compile(r'\n{3,}')


def clean_text(value: Optional[str]) -> str:
    """Collapse whitespace, drop zero-width and control characters, trim."""
    if not value or not isinstance(value, str):
        return ""
    value = _WHITESPACE.sub(" ", value)
    value = _ZERO_WIDTH.sub("", value)
    value = _CONTROL_CHARS.sub("", value)
    return value.strip()


def sanitize_text(value: Optional[str]) -> str:
    """Neutralize markup and script vectors in a value leaving the engine."""
    if not value or not isinstance(value, str):
        return ""
    value = value.replace("<", "&lt;").replace(">", "&gt;")
    value = re.sub(r'javascript:', '', value, flags=re.IGNORECASE)
    value = re.sub(r'data:', '', value, flags=re.IGNORECASE)
    return re.sub(r'on\w+\s*=', '', value, flags=re.IGNORECASE)


def contains_html(value: str) -> bool:
    return bool(HTML_PATTERN.search(value))


def has_excessive_repetition(value: str) -> bool:
    """A character repeated 5+ times, or a word used more than 3 times."""
    if REPEATED_CHAR_PATTERN.search(value):
        return True

    words = value.lower().split()
    if len(words) > 3:
        counts: dict[str, int] = {}
        for word in words:
            counts[word] = counts.get(word, 0) + 1
            if counts[word] > 3:
                return True
    return False


def clean_job_description(value: Optional[str]) -> str:
    """Strip leading cookie notices and navigation lines until stable.

    Paragraphs survive: whitespace is collapsed within each line and runs
    of blank lines shrink to one.
    """
    if not value:
        return ""

    cleaned = _ZERO_WIDTH.sub("", value.replace("\r\n", "\n").replace("\r", "\n"))
    cleaned = _CONTROL_CHARS_KEEP_NEWLINE.sub("", cleaned)
    cleaned = "\n".join(_INLINE_WHITESPACE.sub(" ", line).strip() for line in cleaned.split("\n"))
    cleaned = cleaned.strip()

    while True:
        previous_length = len(cleaned)
        for pattern in GARBAGE_DESCRIPTION_PREFIXES:
            cleaned = pattern.sub("", cleaned, count=1)
        cleaned = NAVIGATION_LINE_PATTERN.sub("", cleaned, count=1).strip()
        if not (0 < len(cleaned) < previous_length):
            break

    return _BLANK_LINES.sub("\n\n", cleaned).strip()


class Validator:
    """Rejects implausible values per field and cleans the survivors."""

    def validate(self, field: Field | str, value: Optional[str]) -> ValidationResult:
        """
        Validate a raw value for a field.

        Args:
            field: Target field
            value: Raw candidate value

        Returns:
            ValidationResult with the cleaned value when valid, or a reason
        """
        field = Field.coerce(field)
        if not value or not isinstance(value, str) or not value.strip():
            return ValidationResult(False, RejectionReason.EMPTY)

        if field == Field.JOB_DESCRIPTION:
            cleaned = clean_job_description(value)
        else:
            cleaned = clean_text(value)

        min_length, max_length = LENGTH_CONSTRAINTS[field]
        if len(cleaned) < min_length:
            return ValidationResult(False, RejectionReason.TOO_SHORT)
        if len(cleaned) > max_length:
            return ValidationResult(False, RejectionReason.TOO_LONG)

        for pattern in GARBAGE_PATTERNS.get(field, ()):
            if pattern.search(cleaned):
                return ValidationResult(False, RejectionReason.GARBAGE_PATTERN)

        if field in REPETITION_CHECKED and has_excessive_repetition(cleaned):
            return ValidationResult(False, RejectionReason.REPETITION)

        if field in HTML_CHECKED and contains_html(cleaned):
            return ValidationResult(False, RejectionReason.HTML_CONTENT)

        if field == Field.SALARY and not SALARY_TOKEN_PATTERN.search(cleaned):
            return ValidationResult(False, RejectionReason.NO_CURRENCY_OR_NUMBER)

        return ValidationResult(True, cleaned=cleaned)

    def filter_valid_candidates(
        self, candidates: list[Candidate], field: Field | str
    ) -> list[Candidate]:
        """Keep valid candidates, replacing each value with its cleaned form."""
        field = Field.coerce(field)
        valid = []
        for candidate in candidates:
            result = self.validate(field, candidate.value)
            if not result.valid:
                logger.debug(
                    f"Rejected {field.value} candidate from {candidate.source}: "
                    f"{result.reason.value} ({str(candidate.value)[:60]!r})"
                )
                continue
            valid.append(replace(candidate, value=result.cleaned))
        return valid
