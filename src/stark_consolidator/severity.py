# src/stark_consolidator/severity.py
"""
Severity normalization and severity-scheme inference.

Stark exports label severities either with axe-style names
(Critical/Serious/Moderate/Minor) or with High/Medium/Low. Internally
everything is mapped to SeverityLabel; the scheme is only used to pick
display wording.
"""

import re
from enum import Enum
from typing import Iterable, List, Optional, Pattern, Tuple, Union

from .utils.text import normalize_text


class SeverityLabel(str, Enum):
    """Canonical severity scale, totally ordered by rank."""
    CRITICAL = "Critical"
    SERIOUS = "Serious"
    MODERATE = "Moderate"
    MINOR = "Minor"
    UNKNOWN = "Unknown"

    @property
    def rank(self) -> int:
        return SEVERITY_ORDER[self]

    def __str__(self) -> str:
        return self.value


class SeverityScheme(str, Enum):
    """Display vocabulary used by a source document."""
    AXE = "axe"
    HML = "hml"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


SEVERITY_ORDER = {
    SeverityLabel.CRITICAL: 4,
    SeverityLabel.SERIOUS: 3,
    SeverityLabel.MODERATE: 2,
    SeverityLabel.MINOR: 1,
    SeverityLabel.UNKNOWN: 0,
}

# Order matters: first match wins.
SEVERITY_RULES: List[Tuple[Pattern, SeverityLabel]] = [
    (re.compile(r"critical|blocker|severe"), SeverityLabel.CRITICAL),
    (re.compile(r"serious|high"), SeverityLabel.SERIOUS),
    (re.compile(r"moderate|medium"), SeverityLabel.MODERATE),
    (re.compile(r"minor|low"), SeverityLabel.MINOR),
]

HML_DISPLAY_LABELS = {
    SeverityLabel.CRITICAL: "Critical",
    SeverityLabel.SERIOUS: "High",
    SeverityLabel.MODERATE: "Medium",
    SeverityLabel.MINOR: "Low",
    SeverityLabel.UNKNOWN: "Unknown",
}

_HML_WORD_RE = re.compile(r"\b(high|medium|low)\b")
_AXE_WORD_RE = re.compile(r"\b(serious|moderate|minor)\b")
_CRITICAL_WORD_RE = re.compile(r"\bcritical\b")


def normalize_severity(value: Optional[str]) -> SeverityLabel:
    """
    Map an arbitrary severity string onto the canonical scale.

    Args:
        value: Raw severity text as found in the export

    Returns:
        The first SeverityLabel whose keywords occur in value, else Unknown
    """
    lowered = (value or "").lower()
    for pattern, label in SEVERITY_RULES:
        if pattern.search(lowered):
            return label
    return SeverityLabel.UNKNOWN


def coerce_severity(value: Union[SeverityLabel, str, None]) -> SeverityLabel:
    """Accept a SeverityLabel or any severity-ish string."""
    if isinstance(value, SeverityLabel):
        return value
    return normalize_severity(value)


def pick_highest_severity(values: Iterable[Union[SeverityLabel, str]]) -> SeverityLabel:
    """Maximum severity of values per the total order; Unknown when empty."""
    best = SeverityLabel.UNKNOWN
    for value in values:
        label = coerce_severity(value)
        if label.rank > best.rank:
            best = label
    return best


def infer_severity_scheme_from_raw_labels(labels: Iterable[str]) -> SeverityScheme:
    """
    Infer which vocabulary one document used from its raw severity labels.

    High/Medium/Low only -> hml. Any axe word wins over HML words when
    both appear; "critical" alone also counts as axe.
    """
    normalized = [normalize_text(label).lower() for label in labels]
    normalized = [label for label in normalized if label]

    has_hml = any(_HML_WORD_RE.search(label) for label in normalized)
    has_axe = any(_AXE_WORD_RE.search(label) for label in normalized)

    if has_hml and not has_axe:
        return SeverityScheme.HML
    if has_axe:
        return SeverityScheme.AXE
    if any(_CRITICAL_WORD_RE.search(label) for label in normalized):
        return SeverityScheme.AXE
    return SeverityScheme.UNKNOWN


def resolve_batch_scheme(schemes: Iterable[Optional[Union[SeverityScheme, str]]]) -> SeverityScheme:
    """Pick one display scheme for a batch: hml if any file used it, then axe."""
    seen = {SeverityScheme(s) for s in schemes if s}
    if SeverityScheme.HML in seen:
        return SeverityScheme.HML
    if SeverityScheme.AXE in seen:
        return SeverityScheme.AXE
    return SeverityScheme.UNKNOWN


def format_severity_label(
    severity: Union[SeverityLabel, str],
    scheme: Optional[Union[SeverityScheme, str]] = None,
) -> str:
    """Display wording for a severity under the given scheme."""
    label = coerce_severity(severity)
    if scheme is not None and SeverityScheme(scheme) == SeverityScheme.HML:
        return HML_DISPLAY_LABELS[label]
    return label.value
