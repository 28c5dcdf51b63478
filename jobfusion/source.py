"""Page content accessor handed to strategies and the pipeline."""

import logging
import re
from functools import cached_property
from typing import Optional, Protocol, runtime_checkable

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

MAIN_CONTENT_SELECTOR = 'main, [role="main"], article'
NON_TEXT_TAGS = {"script", "style", "noscript", "template"}

# Job platforms recognized from the page URL, checked in order
PLATFORM_PATTERNS = [
    ("linkedin", re.compile(r'linkedin\.com', re.IGNORECASE)),
    ("indeed", re.compile(r'indeed\.com', re.IGNORECASE)),
    ("glassdoor", re.compile(r'glassdoor\.(com|co\.uk)', re.IGNORECASE)),
    ("greenhouse", re.compile(r'greenhouse\.io', re.IGNORECASE)),
    ("lever", re.compile(r'lever\.(co|com)', re.IGNORECASE)),
    ("workday", re.compile(r'(myworkdayjobs|workday)\.com', re.IGNORECASE)),
    ("icims", re.compile(r'icims\.com', re.IGNORECASE)),
    ("smartrecruiters", re.compile(r'smartrecruiters\.com', re.IGNORECASE)),
    ("naukri", re.compile(r'naukri\.com', re.IGNORECASE)),
    ("ashby", re.compile(r'ashby(hq|prd)\.com', re.IGNORECASE)),
]

_WHITESPACE = re.compile(r'\s+')


def detect_platform(url: Optional[str]) -> str:
    """Name of the job platform hosting ``url``, or "other"."""
    if not url:
        return "other"
    for name, pattern in PLATFORM_PATTERNS:
        if pattern.search(url):
            return name
    return "other"


def visible_text(node: Tag) -> str:
    """Text of a node without script/style contents, whitespace collapsed."""
    parts = []
    for string in node.find_all(string=True):
        if string.parent is not None and string.parent.name in NON_TEXT_TAGS:
            continue
        parts.append(str(string))
    return _WHITESPACE.sub(" ", " ".join(parts)).strip()


@runtime_checkable
class ContentSource(Protocol):
    """What the pipeline needs from a page: its URL and readable text."""

    url: str

    def page_text(self) -> str:
        ...


class PageSource:
    """HTML page with a lazily parsed BeautifulSoup tree."""

    def __init__(self, html: str, url: str = ""):
        self.html = html or ""
        self.url = url or ""

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "lxml")

    @property
    def title(self) -> str:
        if self.soup.title is None:
            return ""
        return self.soup.title.get_text(strip=True)

    @property
    def platform(self) -> str:
        return detect_platform(self.url)

    def page_text(self) -> str:
        """Readable text, preferring the main content region of the page."""
        main = self.soup.select_one(MAIN_CONTENT_SELECTOR)
        if main is not None:
            return visible_text(main)
        root = self.soup.body or self.soup
        return visible_text(root)

    def __repr__(self) -> str:
        return f"PageSource(url={self.url!r}, size={len(self.html)})"
