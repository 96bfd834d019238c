# src/stark_consolidator/categorizer.py
"""
Keyword classifier mapping an issue's text onto a fixed set of
accessibility topic buckets.

CATEGORY_RULES is evaluated top to bottom and the first matching rule
wins, so the position of each rule is part of its behaviour: text that
mentions both "label" and "link" is a Form labels issue.
"""

import re
from enum import Enum
from typing import Any, List, Mapping, Optional, Pattern, Tuple

from .utils.text import normalize_text


class IssueCategory(str, Enum):
    ALT_TEXT = "Alt text"
    COLOR_CONTRAST = "Color contrast"
    FORM_LABELS = "Form labels"
    LINK_TEXT = "Link text"
    BUTTON_TEXT = "Button text"
    HEADINGS = "Headings"
    ARIA_LANDMARKS = "ARIA / landmarks"
    KEYBOARD_FOCUS = "Keyboard / focus"
    LANGUAGE = "Language"
    TABLES = "Tables"
    OTHER = "Other"

    def __str__(self) -> str:
        return self.value


ALT_TEXT_PATTERN = re.compile(
    r"(^|\b)(alt|alt text|alternate text)\b|missing\s+alt|image\s+.*\balt\b|non-text\s+content"
)

CATEGORY_RULES: List[Tuple[Pattern, IssueCategory]] = [
    (ALT_TEXT_PATTERN, IssueCategory.ALT_TEXT),
    (re.compile(r"contrast|4\.5|3:1|color\s+contrast|background\s+is\s+an\s+image"),
     IssueCategory.COLOR_CONTRAST),
    (re.compile(r"label\b|labels\b|form\s+field|input\b|textarea\b|select\b"
                r"|aria-label\b.*(input|textbox)|missing\s+label"),
     IssueCategory.FORM_LABELS),
    (re.compile(r"link\b|links?\s+must\s+have\s+discernible\s+text|empty\s+link|link\s+name|anchor\b"),
     IssueCategory.LINK_TEXT),
    (re.compile(r"button\b|buttons?\s+must\s+have\s+discernible\s+text|button\s+name"),
     IssueCategory.BUTTON_TEXT),
    (re.compile(r"heading\b|headings\b|h1\b|h2\b|h3\b|heading\s+level|outline"),
     IssueCategory.HEADINGS),
    (re.compile(r"aria-(label|labelledby|describedby|hidden)\b|role\b|landmark\b|region\b|navigation\b.*aria"),
     IssueCategory.ARIA_LANDMARKS),
    (re.compile(r"keyboard\b|focus\b|tab\s+order|visible\s+focus|operable"),
     IssueCategory.KEYBOARD_FOCUS),
    (re.compile(r"(\blang\b|language\s+of\s+page|language\s+of\s+parts)"),
     IssueCategory.LANGUAGE),
    (re.compile(r"table\b|th\b|scope\b|header\s+cell|data\s+table"),
     IssueCategory.TABLES),
]


def is_alt_text_related(text: Optional[str]) -> bool:
    """True when text matches the alt-text rule."""
    return bool(ALT_TEXT_PATTERN.search(normalize_text(text).lower()))


def categorize_issue(
    title: Optional[str],
    description: Optional[str],
    rule_id: Optional[str] = None,
    wcag: Optional[str] = None,
) -> IssueCategory:
    """
    Classify an issue by its text fields.

    Args:
        title: Issue title
        description: Issue description
        rule_id: Optional rule identifier
        wcag: Optional WCAG reference

    Returns:
        The category of the first matching rule, or Other
    """
    haystack = normalize_text(
        f"{rule_id or ''} {wcag or ''} {title or ''} {description or ''}"
    ).lower()

    for pattern, category in CATEGORY_RULES:
        if pattern.search(haystack):
            return category
    return IssueCategory.OTHER


def _field(issue: Any, name: str) -> Optional[str]:
    if isinstance(issue, Mapping):
        return issue.get(name)
    return getattr(issue, name, None)


def categorize(issue: Any) -> IssueCategory:
    """Categorize any issue-like object or mapping (title, description, rule_id, wcag)."""
    return categorize_issue(
        _field(issue, "title"),
        _field(issue, "description"),
        _field(issue, "rule_id"),
        _field(issue, "wcag"),
    )
