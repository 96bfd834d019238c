# src/stark_consolidator/extractors/report_meta.py
"""
Report-level metadata: headline totals and the scanned page URL.
"""

import re
from typing import Optional, Pattern

from bs4 import BeautifulSoup, Tag

from ..models import ReportTotals
from ..utils.text import element_text, parse_first_int

VIOLATIONS_LABEL_RE = re.compile(r"^violations$", re.IGNORECASE)
POTENTIAL_VIOLATIONS_LABEL_RE = re.compile(r"^potential\s+violations?$", re.IGNORECASE)

MAX_METRIC_CLIMB = 6
MAX_URL_LENGTH = 300

_URL_PARAGRAPH_RE = re.compile(r"^https?://", re.IGNORECASE)
_URL_IN_TEXT_RE = re.compile(r"https?://[^\s)\]\"']+", re.IGNORECASE)


def _closest_div(element: Tag) -> Tag:
    if element.name == "div":
        return element
    return element.find_parent("div") or element


def _find_metric(soup: BeautifulSoup, label: Pattern) -> Optional[int]:
    label_element = None
    for node in soup.find_all(["p", "span", "div"]):
        if label.match(element_text(node)):
            label_element = node
            break
    if label_element is None:
        return None

    # Climb a few containers and take the smallest number found inside;
    # larger numbers nearby are usually page or rule totals.
    current = label_element
    for _ in range(MAX_METRIC_CLIMB):
        if current is None or isinstance(current, BeautifulSoup):
            break
        container = _closest_div(current)
        numbers = [parse_first_int(element_text(inner)) for inner in container.find_all(["div", "span"])]
        numbers = [n for n in numbers if n is not None]
        if numbers:
            return min(numbers)
        current = container.parent
    return None


def extract_report_totals(soup: BeautifulSoup) -> ReportTotals:
    """Headline "Violations" / "Potential violations" counts, when present."""
    return ReportTotals(
        violations=_find_metric(soup, VIOLATIONS_LABEL_RE),
        potential_violations=_find_metric(soup, POTENTIAL_VIOLATIONS_LABEL_RE),
    )


def extract_primary_page_url(soup: BeautifulSoup) -> Optional[str]:
    """
    URL of the scanned page.

    Stark usually prints it as a standalone <p>; otherwise the first URL
    in the body text is used.
    """
    for paragraph in soup.find_all("p"):
        text = element_text(paragraph)
        if _URL_PARAGRAPH_RE.match(text) and len(text) < MAX_URL_LENGTH:
            return text

    body = soup.body or soup
    match = _URL_IN_TEXT_RE.search(element_text(body))
    return match.group(0) if match else None
