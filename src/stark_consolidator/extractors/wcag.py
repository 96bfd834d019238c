# src/stark_consolidator/extractors/wcag.py
"""
WCAG criterion labels and per-criterion breakdown counts.

Stark renders each criterion as a disclosure <li> whose <button> holds
"N.N.N Criterion Name" followed by counter badges. Counts survive in the
export even when the criterion's cards are collapsed, so they are read
independently of the cards.
"""

import logging
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from ..models import WcagCriterionTotals
from ..utils.text import element_text, normalize_text, parse_first_int

logger = logging.getLogger(__name__)

MAX_ANCESTOR_DEPTH = 15

WCAG_LABEL_RE = re.compile(r"^\d+(?:\.\d+)+\s+")
_TRAILING_COUNTERS_RE = re.compile(r"\s*\d*\s*(failures|potentials)\b.*$", re.IGNORECASE)
_TRAILING_DIGITS_RE = re.compile(r"\s*\d+\s*$")

FAILURES_LABEL = "Failures"
POTENTIALS_LABEL = "Potentials"


def sanitize_wcag_label(raw: Optional[str]) -> Optional[str]:
    """Strip trailing counters; return the label only if it looks like "N.N.N Name"."""
    text = normalize_text(raw)
    if not text:
        return None
    text = _TRAILING_COUNTERS_RE.sub("", text)
    text = _TRAILING_DIGITS_RE.sub("", text)
    text = normalize_text(text)
    return text if WCAG_LABEL_RE.match(text) else None


def _specificity(label: str) -> int:
    return label.count(".")


def extract_best_wcag_label(element: Tag) -> Optional[str]:
    """
    Resolve the WCAG criterion label for an element.

    Walks at most MAX_ANCESTOR_DEPTH elements up from element (itself
    included). Every <li> on the way contributes the WCAG-like texts of
    the <div>s inside its first <button>. Nested disclosures can offer
    several labels; the one with the most decimal segments wins, the
    nearest one on ties.

    Args:
        element: Card or badge element

    Returns:
        Label such as "1.1.1 Non-text Content", or None
    """
    candidates: List[str] = []
    current = element
    depth = 0
    while depth < MAX_ANCESTOR_DEPTH and current is not None:
        if current.name == "li":
            button = current.find("button")
            if button is not None:
                for div in button.find_all("div"):
                    cleaned = sanitize_wcag_label(element_text(div))
                    if cleaned:
                        candidates.append(cleaned)
        current = current.parent
        depth += 1

    if not candidates:
        return None
    # max() keeps the first of equal candidates, i.e. the nearest one
    return max(candidates, key=_specificity)


def _badge_number(badge: Tag) -> Optional[int]:
    wrapper = badge.find_parent("div")
    if wrapper is None:
        return None
    number_text = element_text(wrapper.find("div")) or element_text(wrapper)
    return parse_first_int(number_text)


def extract_wcag_breakdown_totals(soup: BeautifulSoup) -> List[WcagCriterionTotals]:
    """
    Read {criterion, failures, potentials} tuples from the breakdown badges.

    Badges are <svg aria-label="Failures|Potentials"> icons next to a
    numeric sibling inside the same <div>.

    Returns:
        One entry per criterion, in document order
    """
    by_wcag: Dict[str, WcagCriterionTotals] = {}

    badges = soup.find_all("svg", attrs={"aria-label": [FAILURES_LABEL, POTENTIALS_LABEL]})
    for badge in badges:
        label = normalize_text(badge.get("aria-label"))
        wcag = extract_best_wcag_label(badge)
        if not wcag or not WCAG_LABEL_RE.match(wcag):
            continue

        count = _badge_number(badge)
        if count is None:
            logger.debug(f"No count found next to '{label}' badge for {wcag}")
            continue

        totals = by_wcag.setdefault(wcag, WcagCriterionTotals(wcag=wcag))
        if label == FAILURES_LABEL:
            totals.failures = count
        elif label == POTENTIALS_LABEL:
            totals.potentials = count

    return list(by_wcag.values())
