# src/stark_consolidator/extractors/cards.py
"""
Fallback strategy for the "Categories" export layout.

Each finding is an element whose aria-label reads
"Violation. <message>. (N instances)" or "Potential Violation. ...".
Severity is not part of this layout: confirmed violations map to
Critical and potential ones to Moderate. That mapping is an
approximation; Serious and Minor never come out of this extractor.
"""

import logging
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from ..categorizer import is_alt_text_related
from ..models import ParsedIssue, WcagCriterionTotals
from ..severity import SeverityLabel
from ..utils.text import clamp_snippet, element_text, normalize_text, parse_occurrences, truncate_title
from .wcag import extract_best_wcag_label

logger = logging.getLogger(__name__)

CARD_LABEL_RE = re.compile(r"^(potential\s+)?violation\b", re.IGNORECASE)
POTENTIAL_LABEL_RE = re.compile(r"^potential\s+violation\b", re.IGNORECASE)
CARD_ARIA_RE = re.compile(
    r"^(Potential\s+)?Violation\.?\s*(.*?)(?:\s*\((\d+)\s+instances?\))?\s*$",
    re.IGNORECASE,
)
_INSTANCES_SUFFIX_RE = re.compile(r"\s*[–-]\s*\(\d+\s+instances?\)\s*$", re.IGNORECASE)

CARD_TITLE_CLASS = "col-[title]"
INSTANCE_SNIPPET_SELECTOR = 'ul[aria-label="Instances"] li code'

_IMAGE_MARKUP_RES = [
    re.compile(r"<\s*img\b"),
    re.compile(r"\balt\s*="),
    re.compile(r"<\s*picture\b"),
    re.compile(r"<\s*source\b"),
]

COLLAPSED_SECTION_DESCRIPTION = (
    "Count taken from the WCAG breakdown in the Stark report. Detailed issue cards "
    "were not present in the HTML export (often because the section was collapsed)."
)


def card_severity(is_potential: bool) -> SeverityLabel:
    return SeverityLabel.MODERATE if is_potential else SeverityLabel.CRITICAL


def is_useful_alt_example_snippet(snippet: str) -> bool:
    """Keep only snippets that look like image markup."""
    text = normalize_text(snippet).lower()
    return any(pattern.search(text) for pattern in _IMAGE_MARKUP_RES)


def _instance_snippets(card: Tag) -> List[str]:
    snippets = [clamp_snippet(code.get_text()) for code in card.select(INSTANCE_SNIPPET_SELECTOR)]
    return [s for s in snippets if s and is_useful_alt_example_snippet(s)]


def parse_category_card(card: Tag, source_file: str, page_url: Optional[str] = None) -> List[ParsedIssue]:
    """
    Turn one card element into ParsedIssues.

    Alt-text cards are split into one issue per concrete <img>-like
    instance snippet, plus a remainder issue when the card declares more
    instances than the export contains. Other cards yield one issue
    carrying the declared instance count.

    Args:
        card: Element carrying the "Violation..." aria-label
        source_file: Identifier of the export
        page_url: Primary page URL of the export, if detected

    Returns:
        ParsedIssues for the card (empty when it carries no message)
    """
    aria = normalize_text(card.get("aria-label"))
    if not aria or not CARD_LABEL_RE.match(aria):
        return []

    is_potential = bool(POTENTIAL_LABEL_RE.match(aria))
    match = CARD_ARIA_RE.match(aria)
    aria_message = normalize_text(match.group(2)) if match else ""
    declared = int(match.group(3)) if match and match.group(3) else None

    description = element_text(card.find(class_=CARD_TITLE_CLASS)) or aria_message
    description = _INSTANCES_SUFFIX_RE.sub("", description)
    if not description:
        return []

    occurrences = declared if declared and declared > 0 else parse_occurrences(description)
    title = truncate_title(description)
    wcag = extract_best_wcag_label(card)
    severity = card_severity(is_potential)

    if not is_alt_text_related(description):
        return [ParsedIssue(
            title=title,
            description=description,
            severity=severity,
            occurrences=occurrences,
            wcag=wcag,
            page=page_url,
            source_file=source_file,
        )]

    snippets = _instance_snippets(card)
    issues = [
        ParsedIssue(
            title=title,
            description=description,
            severity=severity,
            occurrences=1,
            wcag=wcag,
            page=page_url,
            example_snippet=snippet,
            source_file=source_file,
        )
        for snippet in snippets
    ]

    remainder = max(0, occurrences - len(snippets))
    if remainder > 0:
        issues.append(ParsedIssue(
            title=title,
            description=f"{description} (Additional {remainder} instance(s) not included in the HTML export)",
            severity=severity,
            occurrences=remainder,
            wcag=wcag,
            page=page_url,
            source_file=source_file,
        ))
    return issues


def extract_card_issues(
    soup: BeautifulSoup, source_file: str, page_url: Optional[str] = None
) -> List[ParsedIssue]:
    """
    Run the category-card strategy over the document.

    Findings are not de-duplicated here: identical cards on different
    criteria or pages are merged by consolidation, which also sums their
    counts.
    """
    issues: List[ParsedIssue] = []
    cards = soup.find_all(attrs={"aria-label": lambda value: bool(CARD_LABEL_RE.match(normalize_text(value)))})
    for card in cards:
        issues.extend(parse_category_card(card, source_file, page_url))
    return issues


def fill_wcag_gaps(
    card_issues: List[ParsedIssue],
    breakdown: List[WcagCriterionTotals],
    source_file: str,
    page_url: Optional[str] = None,
) -> List[ParsedIssue]:
    """
    Synthesize placeholder issues for breakdown counts no card accounts for.

    Card occurrences are summed per criterion (Critical as failures,
    Moderate as potentials) and compared with the breakdown badges.

    Returns:
        Only the synthetic issues; card_issues is left untouched
    """
    covered: Dict[str, WcagCriterionTotals] = {}
    for issue in card_issues:
        wcag = normalize_text(issue.wcag)
        if not wcag:
            continue
        totals = covered.setdefault(wcag, WcagCriterionTotals(wcag=wcag))
        if issue.severity == SeverityLabel.CRITICAL:
            totals.failures += issue.occurrences
        elif issue.severity == SeverityLabel.MODERATE:
            totals.potentials += issue.occurrences

    synthetic: List[ParsedIssue] = []
    for criterion in breakdown:
        seen = covered.get(criterion.wcag, WcagCriterionTotals(wcag=criterion.wcag))
        missing_failures = max(0, criterion.failures - seen.failures)
        missing_potentials = max(0, criterion.potentials - seen.potentials)

        if missing_failures > 0:
            synthetic.append(ParsedIssue(
                title=f"WCAG {criterion.wcag} — Violations (details not in export)",
                description=COLLAPSED_SECTION_DESCRIPTION,
                severity=SeverityLabel.CRITICAL,
                occurrences=missing_failures,
                wcag=criterion.wcag,
                page=page_url,
                source_file=source_file,
            ))
        if missing_potentials > 0:
            synthetic.append(ParsedIssue(
                title=f"WCAG {criterion.wcag} — Potential violations (details not in export)",
                description=COLLAPSED_SECTION_DESCRIPTION,
                severity=SeverityLabel.MODERATE,
                occurrences=missing_potentials,
                wcag=criterion.wcag,
                page=page_url,
                source_file=source_file,
            ))

    if synthetic:
        logger.debug(f"Synthesized {len(synthetic)} placeholder issue(s) from the WCAG breakdown")
    return synthetic
