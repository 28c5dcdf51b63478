"""Heuristic CSS selector extraction."""

import logging
import re
from typing import NamedTuple

from soupsieve import SelectorSyntaxError

from jobfusion.models import Field
from jobfusion.source import PageSource, visible_text
from ..sources import ExtractionSource
from .base import BaseExtractionStrategy, StrategyResult

logger = logging.getLogger(__name__)


class SelectorConfig(NamedTuple):
    selector: str
    confidence: float
    use_alt: bool = False


# Tiers per field: lower tiers are only tried when higher ones found nothing
SELECTOR_CONFIGS: dict[Field, dict[str, list[SelectorConfig]]] = {
    Field.POSITION: {
        "high": [
            SelectorConfig(".job-title", 0.95),
            SelectorConfig(".position-title", 0.95),
            SelectorConfig('[class*="jobTitle"]', 0.90),
            SelectorConfig('[class*="job-title"]', 0.90),
            SelectorConfig('[class*="positionTitle"]', 0.90),
            SelectorConfig('[class*="position-title"]', 0.90),
            SelectorConfig('[data-testid*="title"]', 0.85),
            SelectorConfig('[data-automation*="title"]', 0.85),
            SelectorConfig(".ashby-job-posting-heading", 0.95),
            SelectorConfig('[class*="posting-headline"] h2', 0.90),
            SelectorConfig('[class*="_title_"]', 0.85),
            SelectorConfig('[class*="JobTitle"]', 0.90),
            SelectorConfig('[class*="posting-title"]', 0.90),
        ],
        "medium": [
            SelectorConfig("h1", 0.65),
            SelectorConfig('[role="heading"][aria-level="1"]', 0.70),
            SelectorConfig("main h1", 0.70),
            SelectorConfig("article h1", 0.68),
        ],
        "low": [
            SelectorConfig("h2", 0.40),
            SelectorConfig(".title", 0.45),
        ],
    },
    Field.COMPANY: {
        "high": [
            SelectorConfig(".company-name", 0.95),
            SelectorConfig(".employer-name", 0.95),
            SelectorConfig('[class*="companyName"]', 0.90),
            SelectorConfig('[class*="company-name"]', 0.90),
            SelectorConfig('[class*="employer"]', 0.85),
            SelectorConfig('[class*="organization"]', 0.85),
            SelectorConfig('[data-testid*="company"]', 0.85),
            SelectorConfig('[data-automation*="company"]', 0.85),
            SelectorConfig('[class*="navLogo"] img[alt]', 0.80, use_alt=True),
            SelectorConfig('[class*="posting-categories"] .company', 0.85),
            SelectorConfig('[class*="CompanyName"]', 0.90),
            SelectorConfig('[class*="hiringOrganization"]', 0.90),
        ],
        "medium": [
            SelectorConfig('header a[href*="/company"]', 0.60),
            SelectorConfig('a[href*="about"]', 0.40),
        ],
        "low": [],
    },
    Field.LOCATION: {
        "high": [
            SelectorConfig(".job-location", 0.95),
            SelectorConfig(".location", 0.85),
            SelectorConfig('[class*="jobLocation"]', 0.90),
            SelectorConfig('[class*="job-location"]', 0.90),
            SelectorConfig('[class*="workLocation"]', 0.90),
            SelectorConfig('[data-testid*="location"]', 0.85),
            SelectorConfig('[data-automation*="location"]', 0.85),
            SelectorConfig('[class*="posting-categories"] .location', 0.90),
            SelectorConfig('[class*="_location_"]', 0.85),
            SelectorConfig('[class*="JobLocation"]', 0.90),
        ],
        "medium": [
            SelectorConfig("address", 0.50),
            SelectorConfig('[class*="address"]', 0.55),
        ],
        "low": [],
    },
    Field.SALARY: {
        "high": [
            SelectorConfig(".salary", 0.95),
            SelectorConfig(".compensation", 0.95),
            SelectorConfig('[class*="salary"]', 0.90),
            SelectorConfig('[class*="compensation"]', 0.90),
            SelectorConfig('[class*="pay-range"]', 0.90),
            SelectorConfig('[data-testid*="salary"]', 0.85),
            SelectorConfig('[data-testid*="compensation"]', 0.85),
        ],
        "medium": [],
        "low": [],
    },
    Field.JOB_DESCRIPTION: {
        "high": [
            SelectorConfig(".job-description", 0.95),
            SelectorConfig('[class*="jobDescription"]', 0.90),
            SelectorConfig('[class*="job-description"]', 0.90),
            SelectorConfig('[class*="descriptionBody"]', 0.90),
            SelectorConfig('[data-testid*="description"]', 0.85),
            SelectorConfig('[data-automation*="description"]', 0.85),
            SelectorConfig(".ashby-job-posting-description", 0.95),
            SelectorConfig('[class*="posting-description"]', 0.90),
            SelectorConfig('[class*="_content_"]', 0.75),
        ],
        "medium": [
            SelectorConfig("article", 0.55),
            SelectorConfig('[role="main"] section', 0.50),
            SelectorConfig(".content", 0.45),
            SelectorConfig("#job-description", 0.85),
        ],
        "low": [],
    },
}

# Known job boards with stable markup
PLATFORM_SELECTORS: dict[str, dict[Field, list[str]]] = {
    "linkedin": {
        Field.POSITION: [
            ".job-details-jobs-unified-top-card__job-title h1",
            ".job-details-jobs-unified-top-card__job-title a",
            ".jobs-unified-top-card__job-title h1",
        ],
        Field.COMPANY: [
            ".job-details-jobs-unified-top-card__company-name a",
            ".jobs-unified-top-card__company-name a",
        ],
        Field.LOCATION: [
            ".job-details-jobs-unified-top-card__bullet",
            ".jobs-unified-top-card__bullet",
        ],
    },
    "naukri": {
        Field.POSITION: ['h1[class*="jd-header-title"]', '[class*="jd-header-title"]'],
        Field.COMPANY: ['[class*="jd-header-comp-name"] > a'],
        Field.LOCATION: ['[class*="jhc__location"] a'],
    },
}
PLATFORM_CONFIDENCE_FACTOR = 0.9

LENGTH_LIMITS = {
    Field.POSITION: (3, 200),
    Field.COMPANY: (2, 150),
    Field.LOCATION: (2, 150),
    Field.SALARY: (3, 100),
    Field.JOB_DESCRIPTION: (100, 50_000),
}

NAVIGATION_PATTERNS = [
    re.compile(r'^(apply|submit|login|sign\s*(in|up)|search|home|menu)$', re.IGNORECASE),
    re.compile(r'^(view|see|read)\s+(all|more)$', re.IGNORECASE),
    re.compile(r'^(back|next|continue|cancel)$', re.IGNORECASE),
]


def is_valid_length(value: str, field: Field) -> bool:
    min_length, max_length = LENGTH_LIMITS.get(field, (1, 1000))
    return min_length <= len(value) <= max_length


def is_navigation_text(text: str, field: Field) -> bool:
    """Button/menu labels; only filtered for position and company."""
    if field not in (Field.POSITION, Field.COMPANY):
        return False
    return any(p.search(text) for p in NAVIGATION_PATTERNS)


class CssSelectorsStrategy(BaseExtractionStrategy):
    """Extract fields using tiered, priority-ordered CSS selectors."""

    name = ExtractionSource.CSS_SELECTORS.value
    priority = 5
    base_confidence = 0.70

    def _collect(self, source: PageSource, result: StrategyResult) -> None:
        for field_name, tiers in SELECTOR_CONFIGS.items():
            for tier in ("high", "medium", "low"):
                if result[field_name]:
                    break
                for config in tiers[tier]:
                    self._extract_with_selector(source, config, field_name, result)

        platform_selectors = PLATFORM_SELECTORS.get(source.platform)
        if platform_selectors:
            self._extract_platform_specific(source, platform_selectors, result)

    def _extract_with_selector(
        self, source: PageSource, config: SelectorConfig, field_name: Field, result: StrategyResult
    ) -> None:
        try:
            elements = source.soup.select(config.selector)
        except SelectorSyntaxError:
            logger.debug(f"Invalid selector skipped: {config.selector}")
            return

        for element in elements:
            if config.use_alt and element.name == "img":
                value = (element.get("alt") or "").strip()
            else:
                value = visible_text(element)

            if not value or not is_valid_length(value, field_name):
                continue
            if is_navigation_text(value, field_name):
                continue

            result.add(field_name, value, self.base_confidence * config.confidence, config.selector)
            # Only the first valid match per selector, except for locations
            if field_name != Field.LOCATION:
                break

    def _extract_platform_specific(
        self, source: PageSource, selectors: dict[Field, list[str]], result: StrategyResult
    ) -> None:
        for field_name, field_selectors in selectors.items():
            for selector in field_selectors:
                element = source.soup.select_one(selector)
                if element is None:
                    continue
                value = visible_text(element)
                if value and is_valid_length(value, field_name):
                    result.add(field_name, value, self.base_confidence * PLATFORM_CONFIDENCE_FACTOR, selector)
                    break
