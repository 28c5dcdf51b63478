"""schema.org JobPosting extraction from JSON-LD and microdata."""

import json
import logging
import re
from typing import Any, Optional

from bs4 import BeautifulSoup, Tag

from jobfusion.models import Field
from jobfusion.source import PageSource, visible_text
from ..sources import ExtractionSource
from .base import BaseExtractionStrategy, StrategyResult

logger = logging.getLogger(__name__)

JSON_LD_SELECTOR = 'script[type="application/ld+json"]'
SALARY_CONFIDENCE_FACTOR = 0.95  # Salary formats vary
MICRODATA_CONFIDENCE_FACTOR = 0.9


def find_job_postings(data: Any) -> list[dict]:
    """Collect JobPosting objects from parsed JSON-LD (arrays and @graph included)."""
    if not data:
        return []
    if isinstance(data, list):
        postings = []
        for item in data:
            postings.extend(find_job_postings(item))
        return postings
    if not isinstance(data, dict):
        return []

    job_type = data.get("@type")
    if job_type == "JobPosting" or (isinstance(job_type, list) and "JobPosting" in job_type):
        return [data]

    postings = []
    graph = data.get("@graph")
    if isinstance(graph, list):
        for item in graph:
            postings.extend(find_job_postings(item))
    return postings


def extract_company_name(job: dict) -> Optional[str]:
    """hiringOrganization may be a plain string or an Organization object."""
    org = job.get("hiringOrganization")
    if isinstance(org, str):
        return org
    if isinstance(org, dict) and org.get("name"):
        return str(org["name"])
    return None


def _single_location(loc: Any) -> Optional[str]:
    if not loc:
        return None
    if isinstance(loc, str):
        return loc
    if not isinstance(loc, dict):
        return None

    addr = loc.get("address")
    if isinstance(addr, str):
        return addr
    if isinstance(addr, dict):
        country = addr.get("addressCountry")
        if isinstance(country, dict):
            country = country.get("name")
        parts = [
            addr.get("streetAddress"),
            addr.get("addressLocality"),
            addr.get("addressRegion"),
            addr.get("postalCode"),
            country,
        ]
        joined = ", ".join(str(p) for p in parts if p)
        return joined or None

    if loc.get("name"):
        return str(loc["name"])
    return None


def extract_location(job: dict) -> Optional[str]:
    """Location string from jobLocation (string, Place, or list of Places)."""
    loc = job.get("jobLocation")
    if isinstance(loc, list):
        locations = [l for l in (_single_location(item) for item in loc) if l]
        return ", ".join(locations) or None
    return _single_location(loc)


def format_number(value: Any) -> str:
    """Format with thousands separators; non-numeric input is returned as is."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.2f}".rstrip("0").rstrip(".")


def extract_salary(job: dict) -> Optional[str]:
    """Render baseSalary/estimatedSalary (MonetaryAmount or string) as text."""
    salary = job.get("baseSalary") or job.get("estimatedSalary")
    if not salary:
        return None
    if isinstance(salary, (str, int, float)):
        return str(salary)
    if not isinstance(salary, dict):
        return None

    currency = salary.get("currency") or "USD"
    value = salary.get("value")
    unit = salary.get("unitText") or (value.get("unitText") if isinstance(value, dict) else None)
    suffix = f" {unit}" if unit else ""

    if isinstance(value, dict):
        if value.get("minValue") is not None and value.get("maxValue") is not None:
            return f"{currency} {format_number(value['minValue'])} - {format_number(value['maxValue'])}{suffix}"
        if value.get("value") is not None:
            return f"{currency} {format_number(value['value'])}{suffix}"
    elif value is not None and value != "":
        return f"{currency} {format_number(value)}{suffix}"

    min_value = salary.get("minValue")
    max_value = salary.get("maxValue")
    if min_value is not None and max_value is not None:
        return f"{currency} {format_number(min_value)} - {format_number(max_value)}"
    if min_value is not None:
        return f"{currency} {format_number(min_value)}+"
    if max_value is not None:
        return f"Up to {currency} {format_number(max_value)}"
    return None


def strip_html(html: str) -> str:
    """Plain text of an HTML fragment (JSON-LD descriptions are often HTML)."""
    if not html:
        return ""
    if "<" not in html:
        return re.sub(r'\s+', ' ', html).strip()
    return visible_text(BeautifulSoup(html, "lxml"))


class JsonLdStrategy(BaseExtractionStrategy):
    """Extract fields from schema.org JobPosting structured data."""

    name = ExtractionSource.JSON_LD.value
    priority = 1
    base_confidence = 1.0

    def is_applicable(self, source: PageSource) -> bool:
        return bool(
            source.soup.select_one(JSON_LD_SELECTOR)
            or source.soup.select_one('[itemtype*="JobPosting"]')
        )

    def _collect(self, source: PageSource, result: StrategyResult) -> None:
        for script in source.soup.select(JSON_LD_SELECTOR):
            try:
                data = json.loads(script.string or script.get_text() or "")
            except (json.JSONDecodeError, TypeError) as e:
                logger.debug(f"Skipping unparseable JSON-LD block: {e}")
                continue

            for job in find_job_postings(data):
                self._add_posting(job, result)

        for item in source.soup.select('[itemtype*="JobPosting"]'):
            self._add_microdata(item, result)

        logger.debug(f"JsonLdStrategy found {result.total} candidates")

    def _add_posting(self, job: dict, result: StrategyResult) -> None:
        selector = JSON_LD_SELECTOR
        conf = self.base_confidence

        if isinstance(job.get("title"), str):
            result.add(Field.POSITION, job["title"], conf, selector)
        result.add(Field.COMPANY, extract_company_name(job), conf, selector)
        result.add(Field.LOCATION, extract_location(job), conf, selector)
        result.add(Field.SALARY, extract_salary(job), conf * SALARY_CONFIDENCE_FACTOR, selector)
        if isinstance(job.get("description"), str):
            result.add(Field.JOB_DESCRIPTION, strip_html(job["description"]), conf, selector)

    def _add_microdata(self, item: Tag, result: StrategyResult) -> None:
        """Microdata JobPosting (itemprop attributes inside an itemscope)."""
        conf = self.base_confidence * MICRODATA_CONFIDENCE_FACTOR
        props = {
            Field.POSITION: '[itemprop="title"]',
            Field.COMPANY: '[itemprop="hiringOrganization"] [itemprop="name"], [itemprop="hiringOrganization"]',
            Field.LOCATION: '[itemprop="jobLocation"] [itemprop="addressLocality"]',
            Field.SALARY: '[itemprop="baseSalary"]',
            Field.JOB_DESCRIPTION: '[itemprop="description"]',
        }
        for field_name, selector in props.items():
            elem = item.select_one(selector)
            if elem is None:
                continue
            value = elem.get("content") if elem.name == "meta" else visible_text(elem)
            result.add(field_name, value, conf, f"microdata {selector.split(',')[0]}")
