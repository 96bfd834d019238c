# src/stark_consolidator/extractors/heuristic.py
"""
Last-resort strategy: generic containers mentioning a severity keyword.
"""

import logging
import re
from typing import List

from bs4 import BeautifulSoup

from ..models import ParsedIssue
from ..severity import normalize_severity
from ..utils.text import element_text

logger = logging.getLogger(__name__)

CONTAINER_TAGS = ["section", "article", "li", "div"]
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5"]
DESCRIPTION_MAX_LENGTH = 400

_KEYWORD_RE = re.compile(r"(severity|impact)", re.IGNORECASE)
_SEVERITY_VALUE_RE = re.compile(
    r"(?:severity|impact)\s*[:\-]?\s*(critical|serious|high|moderate|medium|minor|low)",
    re.IGNORECASE,
)


def extract_heuristic_issues(soup: BeautifulSoup, source_file: str) -> List[ParsedIssue]:
    """
    Scan containers for "Severity: <word>" text next to a heading.

    Nested containers repeat the same text, so results are de-duplicated
    on (severity, title, description) before returning.
    """
    issues: List[ParsedIssue] = []
    seen = set()

    for container in soup.find_all(CONTAINER_TAGS):
        text = element_text(container)
        if not text or not _KEYWORD_RE.search(text):
            continue

        match = _SEVERITY_VALUE_RE.search(text)
        if not match:
            continue

        severity_raw = match.group(1)
        title = element_text(container.find(HEADING_TAGS)) or "Issue"
        description = text[:DESCRIPTION_MAX_LENGTH]
        severity = normalize_severity(severity_raw)

        key = (severity, title, description)
        if key in seen:
            continue
        seen.add(key)

        issues.append(ParsedIssue(
            title=title,
            description=description,
            severity=severity,
            severity_original=severity_raw,
            occurrences=1,
            source_file=source_file,
        ))

    logger.debug(f"Heuristic scan produced {len(issues)} distinct issue(s)")
    return issues
