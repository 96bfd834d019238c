# src/stark_consolidator/models.py
"""
Records produced by the parser and the consolidation engine.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .severity import SeverityLabel, SeverityScheme, coerce_severity


@dataclass(frozen=True)
class ParsedIssue:
    """One raw finding as extracted from a single export."""
    title: str
    description: str
    severity: SeverityLabel
    source_file: str
    occurrences: int = 1
    severity_original: Optional[str] = None
    wcag: Optional[str] = None
    rule_id: Optional[str] = None
    page: Optional[str] = None
    example_snippet: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "severity", coerce_severity(self.severity))
        try:
            occurrences = int(self.occurrences)
        except (TypeError, ValueError):
            occurrences = 1
        object.__setattr__(self, "occurrences", occurrences if occurrences >= 1 else 1)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass
class ConsolidatedIssue:
    """One merged issue group; built only by consolidation.consolidate()."""
    title: str
    description: str
    severity: SeverityLabel
    occurrences: int
    pages: List[str] = field(default_factory=list)
    source_files: List[str] = field(default_factory=list)
    example_snippets: List[str] = field(default_factory=list)
    wcag: Optional[str] = None
    rule_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass
class WcagCriterionTotals:
    """Aggregate per-criterion counts read from the WCAG breakdown badges."""
    wcag: str
    failures: int = 0
    potentials: int = 0


@dataclass
class ReportTotals:
    violations: Optional[int] = None
    potential_violations: Optional[int] = None

    def is_empty(self) -> bool:
        return self.violations is None and self.potential_violations is None


@dataclass
class WcagBreakdownSummary:
    criteria_with_counts: int
    failures: int
    potentials: int


@dataclass
class TableHeaderInfo:
    index: int
    headers: List[str]
    rows: int


@dataclass
class ParseDebugInfo:
    """Diagnostics collected while parsing one document."""
    tables_found: int = 0
    table_headers: List[TableHeaderInfo] = field(default_factory=list)
    matched_tables: int = 0
    issues_extracted: int = 0
    report_totals: Optional[ReportTotals] = None
    wcag_breakdown_totals: Optional[WcagBreakdownSummary] = None
    severity_scheme: Optional[SeverityScheme] = None
    severity_labels_found: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.severity_scheme is not None:
            data["severity_scheme"] = self.severity_scheme.value
        return data


@dataclass
class ParseResult:
    issues: List[ParsedIssue]
    debug: ParseDebugInfo

    def __iter__(self):
        # Allows `issues, debug = parse(...)`
        return iter((self.issues, self.debug))


@dataclass
class FileResult:
    """Outcome of one document in a batch; error is set when it could not be read."""
    source_file: str
    issues_found: int = 0
    debug: ParseDebugInfo = field(default_factory=ParseDebugInfo)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_file": self.source_file,
            "issues_found": self.issues_found,
            "error": self.error,
            "debug": self.debug.to_dict(),
        }


@dataclass
class BatchResult:
    files: List[FileResult]
    raw_issues: List[ParsedIssue]
    consolidated: List[ConsolidatedIssue]
    severity_scheme: SeverityScheme = SeverityScheme.UNKNOWN

    @property
    def failed_files(self) -> List[FileResult]:
        return [f for f in self.files if not f.ok]

    @property
    def total_occurrences(self) -> int:
        return sum(issue.occurrences for issue in self.consolidated)
