# src/stark_consolidator/consolidation.py
"""
Consolidation engine: merges raw findings from any number of exports
into unique issue groups.

Grouping uses only the normalized (rule id, WCAG, title, description)
tuple, so the same finding reported on different pages, in different
files or with different severities always lands in one group.
"""

import logging
from collections import OrderedDict
from typing import Any, Iterable, List, Mapping, Optional

from .models import ConsolidatedIssue, ParsedIssue
from .severity import pick_highest_severity
from .utils.text import clamp_snippet, normalize_text

logger = logging.getLogger(__name__)

MAX_EXAMPLE_SNIPPETS = 8
KEY_SEPARATOR = "|"


def _field(issue: Any, name: str) -> Optional[str]:
    if isinstance(issue, Mapping):
        return issue.get(name)
    return getattr(issue, name, None)


def compute_issue_key(issue: Any) -> str:
    """
    Consolidation key of an issue-like object or mapping.

    Missing rule id / WCAG reference count as empty strings, not as
    wildcards.
    """
    title = normalize_text(_field(issue, "title")) or "Issue"
    description = normalize_text(_field(issue, "description"))
    rule_id = normalize_text(_field(issue, "rule_id"))
    wcag = normalize_text(_field(issue, "wcag"))
    return KEY_SEPARATOR.join([rule_id, wcag, title, description]).lower()


def _unique(values: Iterable[str]) -> List[str]:
    # dict keeps first-seen order
    return list(dict.fromkeys(v for v in values if v))


def _merge_group(members: List[ParsedIssue]) -> ConsolidatedIssue:
    first = members[0]
    snippets = _unique(clamp_snippet(m.example_snippet) for m in members)[:MAX_EXAMPLE_SNIPPETS]

    return ConsolidatedIssue(
        title=normalize_text(first.title) or "Issue",
        description=normalize_text(first.description),
        severity=pick_highest_severity(m.severity for m in members),
        occurrences=sum(m.occurrences for m in members),
        pages=_unique(normalize_text(m.page) for m in members),
        source_files=_unique(m.source_file for m in members),
        example_snippets=snippets,
        wcag=normalize_text(first.wcag) or None,
        rule_id=normalize_text(first.rule_id) or None,
    )


def consolidate(raw_issues: Iterable[ParsedIssue]) -> List[ConsolidatedIssue]:
    """
    Merge raw issues into ordered consolidated groups.

    Args:
        raw_issues: Every ParsedIssue of the batch (not incremental)

    Returns:
        Groups sorted by severity (highest first), then by occurrences
        (highest first); ties keep first-encounter order.
    """
    groups: "OrderedDict[str, List[ParsedIssue]]" = OrderedDict()
    total = 0
    for issue in raw_issues:
        groups.setdefault(compute_issue_key(issue), []).append(issue)
        total += 1

    consolidated = [_merge_group(members) for members in groups.values()]
    consolidated.sort(key=lambda c: (-c.severity.rank, -c.occurrences))

    logger.info(f"Consolidated {total} raw issue(s) into {len(consolidated)} unique issue(s)")
    return consolidated
