"""Extraction from accessibility attributes (aria-label, aria-labelledby, roles)."""

import logging
import re
from typing import Optional

from bs4 import Tag

from jobfusion.models import Field
from jobfusion.source import PageSource, visible_text
from ..sources import ExtractionSource
from .base import BaseExtractionStrategy, StrategyResult

logger = logging.getLogger(__name__)

ARIA_PATTERNS: dict[Field, list[re.Pattern]] = {
    Field.POSITION: [
        re.compile(p, re.IGNORECASE)
        for p in (r'job\s*title', r'position\s*title', r'role\s*title', r'job\s*name', r'posting\s*title', r'opening')
    ],
    Field.COMPANY: [
        re.compile(p, re.IGNORECASE)
        for p in (r'company\s*name', r'employer', r'organization', r'hiring\s*company', r'business\s*name')
    ],
    Field.LOCATION: [
        re.compile(p, re.IGNORECASE)
        for p in (r'job\s*location', r'work\s*location', r'office\s*location', r'city', r'location')
    ],
    Field.SALARY: [
        re.compile(p, re.IGNORECASE) for p in (r'salary', r'compensation', r'pay', r'wage')
    ],
}

JOB_TITLE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r'engineer', r'developer', r'designer', r'manager', r'director', r'analyst',
        r'specialist', r'coordinator', r'consultant', r'lead', r'senior', r'junior',
        r'associate', r'intern', r'head\s+of', r'vp\s+of',
    )
]
NOT_JOB_TITLE_PATTERNS = [
    re.compile(r'^(home|about|contact|login|sign\s+in|apply|search)$', re.IGNORECASE),
    re.compile(r'cookie|privacy|terms', re.IGNORECASE),
    re.compile(r'^(click|view|read)\s', re.IGNORECASE),
]
DESCRIPTION_HINT = re.compile(r'responsibilities|requirements|qualifications|about\s+the\s+role', re.IGNORECASE)
TITLE_LABEL_HINT = re.compile(r'job|position|role|title|opening', re.IGNORECASE)

# Confidence multipliers by signal
LABELLEDBY_FACTOR = 0.95
LABELLED_HEADING_FACTOR = 0.9
DESCRIBEDBY_FACTOR = 0.8
ROLE_HEADING_FACTOR = 0.75
MAIN_H1_FACTOR = 0.7
MAIN_COMPANY_FACTOR = 0.65
MAX_DESCRIPTION_LENGTH = 10_000


def looks_like_job_title(text: str) -> bool:
    if any(p.search(text) for p in NOT_JOB_TITLE_PATTERNS):
        return False
    return any(p.search(text) for p in JOB_TITLE_PATTERNS)


def element_value(element: Tag) -> Optional[str]:
    """Form control value if set, else the element's text."""
    if element.name in ("input", "textarea", "select") and element.get("value"):
        return element["value"].strip()
    return visible_text(element) or None


class AriaLabelsStrategy(BaseExtractionStrategy):
    """Extract fields from ARIA attributes and landmark roles."""

    name = ExtractionSource.ARIA_LABELS.value
    priority = 3
    base_confidence = 0.85

    def is_applicable(self, source: PageSource) -> bool:
        return bool(source.soup.select_one('[aria-label], [aria-labelledby], [role="main"]'))

    def _collect(self, source: PageSource, result: StrategyResult) -> None:
        soup = source.soup
        self._process_aria_labels(soup.select("[aria-label]"), result)
        self._process_labelledby(soup, result)
        self._process_describedby(soup, result)
        self._process_role_headings(soup.select('[role="heading"]'), result)

        main = soup.select_one('[role="main"]')
        if main is not None:
            self._process_main_content(main, result)

    def _process_aria_labels(self, elements: list[Tag], result: StrategyResult) -> None:
        for element in elements:
            label = element.get("aria-label") or ""
            if not label:
                continue
            selector = f'[aria-label="{label}"]'

            for field_name, patterns in ARIA_PATTERNS.items():
                if any(p.search(label) for p in patterns):
                    value = element_value(element)
                    if value and 1 < len(value) < 200:
                        result.add(field_name, value, self.base_confidence, selector)

            # A labelled h1/heading is often the job title itself
            if element.name == "h1" or element.get("role") == "heading":
                content = visible_text(element)
                if 3 < len(content) < 150 and TITLE_LABEL_HINT.search(label):
                    result.add(Field.POSITION, content, self.base_confidence * LABELLED_HEADING_FACTOR, selector)

    def _process_labelledby(self, soup, result: StrategyResult) -> None:
        for element in soup.select("[aria-labelledby]"):
            label_id = element.get("aria-labelledby")
            label_element = soup.find(id=label_id) if label_id else None
            if label_element is None:
                continue

            label = visible_text(label_element).lower()
            for field_name, patterns in ARIA_PATTERNS.items():
                if any(p.search(label) for p in patterns):
                    value = element_value(element)
                    if value and 1 < len(value) < 200:
                        result.add(
                            field_name,
                            value,
                            self.base_confidence * LABELLEDBY_FACTOR,
                            f'[aria-labelledby="{label_id}"]',
                        )

    def _process_describedby(self, soup, result: StrategyResult) -> None:
        for element in soup.select("[aria-describedby]"):
            desc_id = element.get("aria-describedby")
            desc_element = soup.find(id=desc_id) if desc_id else None
            if desc_element is None:
                continue

            content = visible_text(desc_element)
            if len(content) > 200 and DESCRIPTION_HINT.search(content):
                result.add(
                    Field.JOB_DESCRIPTION,
                    content[:MAX_DESCRIPTION_LENGTH],
                    self.base_confidence * DESCRIBEDBY_FACTOR,
                    f'[aria-describedby="{desc_id}"]',
                )

    def _process_role_headings(self, headings: list[Tag], result: StrategyResult) -> None:
        for heading in headings:
            level = heading.get("aria-level")
            content = visible_text(heading)
            if len(content) < 3 or len(content) > 200:
                continue
            if level in (None, "1") and looks_like_job_title(content):
                result.add(Field.POSITION, content, self.base_confidence * ROLE_HEADING_FACTOR, '[role="heading"]')

    def _process_main_content(self, main: Tag, result: StrategyResult) -> None:
        h1 = main.find("h1")
        if h1 is not None:
            content = visible_text(h1)
            if 3 < len(content) < 150 and looks_like_job_title(content):
                result.add(Field.POSITION, content, self.base_confidence * MAIN_H1_FACTOR, '[role="main"] h1')

        for link in main.select('a[href*="/company"], a[href*="/about"], .company-name, [class*="company"]'):
            content = visible_text(link)
            if 1 < len(content) < 100:
                result.add(
                    Field.COMPANY,
                    content,
                    self.base_confidence * MAIN_COMPANY_FACTOR,
                    '[role="main"] [class*="company"]',
                )
