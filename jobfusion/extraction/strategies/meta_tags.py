"""Open Graph and job meta tag extraction."""

import html
import logging
import re
from typing import Optional

from jobfusion.models import Field
from jobfusion.source import PageSource
from ..sources import ExtractionSource
from .base import BaseExtractionStrategy, StrategyResult

logger = logging.getLogger(__name__)

# (attribute, key, confidence) per field
META_MAPPINGS: dict[Field, list[tuple[str, str, float]]] = {
    Field.POSITION: [
        ("property", "og:title", 0.80),
        ("name", "twitter:title", 0.75),
        ("name", "title", 0.70),
        ("property", "job:title", 0.95),
        ("name", "job-title", 0.95),
        ("itemprop", "title", 0.85),
    ],
    Field.COMPANY: [
        ("property", "og:site_name", 0.85),
        ("property", "job:company", 0.95),
        ("name", "company", 0.90),
        ("name", "author", 0.60),
        ("property", "article:author", 0.55),
        ("itemprop", "hiringOrganization", 0.90),
    ],
    Field.LOCATION: [
        ("property", "job:location", 0.95),
        ("name", "geo.placename", 0.85),
        ("name", "geo.region", 0.80),
        ("itemprop", "jobLocation", 0.90),
    ],
    Field.SALARY: [
        ("property", "job:salary", 0.95),
        ("name", "salary", 0.90),
        ("itemprop", "baseSalary", 0.90),
    ],
    Field.JOB_DESCRIPTION: [
        ("property", "og:description", 0.70),
        ("name", "description", 0.65),
        ("name", "twitter:description", 0.65),
        ("itemprop", "description", 0.75),
    ],
}

# data-* attributes on <html>/<body>
DATA_ATTRIBUTES = {
    "data-job-title": Field.POSITION,
    "data-company": Field.COMPANY,
    "data-company-name": Field.COMPANY,
    "data-location": Field.LOCATION,
    "data-job-location": Field.LOCATION,
    "data-salary": Field.SALARY,
}
DATA_ATTRIBUTE_FACTOR = 0.9

MAX_LENGTHS = {
    Field.POSITION: 200,
    Field.COMPANY: 150,
    Field.LOCATION: 200,
    Field.SALARY: 100,
    Field.JOB_DESCRIPTION: 5000,
}
NON_VALUES = {"undefined", "null", "none", "n/a", "na", "loading..."}


def is_valid_value(value: Optional[str], field: Field) -> bool:
    if not value or not value.strip():
        return False
    trimmed = value.strip()
    if len(trimmed) > MAX_LENGTHS.get(field, 500):
        return False
    return trimmed.lower() not in NON_VALUES


def clean_meta_value(value: str, field: Field) -> str:
    """Drop "| Company" and "at Company" tails from titles, decode entities."""
    cleaned = value.strip()
    if field == Field.POSITION:
        cleaned = re.sub(r'\s*[|–—-]\s*[^|–—-]+$', '', cleaned).strip()
        cleaned = re.sub(r'^(job|position|role|opening):\s*', '', cleaned, flags=re.IGNORECASE).strip()
        cleaned = re.sub(r'\s+at\s+[A-Z][^,]+$', '', cleaned, flags=re.IGNORECASE).strip()
    return html.unescape(cleaned)


class MetaTagsStrategy(BaseExtractionStrategy):
    """Extract fields from meta tags and data attributes."""

    name = ExtractionSource.META_TAGS.value
    priority = 4
    base_confidence = 0.80

    def is_applicable(self, source: PageSource) -> bool:
        return bool(source.soup.select_one('meta[property^="og:"], meta[name="description"]'))

    def _collect(self, source: PageSource, result: StrategyResult) -> None:
        meta_map = self._build_meta_map(source)

        for field_name, mappings in META_MAPPINGS.items():
            for attr, key, confidence in mappings:
                value = meta_map[attr].get(key.lower())
                if value and is_valid_value(value, field_name):
                    result.add(field_name, clean_meta_value(value, field_name), confidence, f'meta[{attr}="{key}"]')

        for element in (source.soup.html, source.soup.body):
            if element is None:
                continue
            for attr, field_name in DATA_ATTRIBUTES.items():
                value = element.get(attr)
                if value and is_valid_value(value, field_name):
                    result.add(
                        field_name,
                        clean_meta_value(value, field_name),
                        self.base_confidence * DATA_ATTRIBUTE_FACTOR,
                        f"[{attr}]",
                    )

        canonical = source.soup.select_one('link[rel="canonical"]')
        if canonical is not None and canonical.get("href"):
            result.extras["canonical_url"] = canonical["href"]

    def _build_meta_map(self, source: PageSource) -> dict[str, dict[str, str]]:
        """Index meta contents by name, property and itemprop (lower-cased keys)."""
        meta_map: dict[str, dict[str, str]] = {"name": {}, "property": {}, "itemprop": {}}
        for meta in source.soup.find_all("meta"):
            content = meta.get("content")
            if not content:
                continue
            for attr in meta_map:
                key = meta.get(attr)
                if key:
                    meta_map[attr][key.lower()] = content
        return meta_map
