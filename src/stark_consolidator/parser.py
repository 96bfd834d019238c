# src/stark_consolidator/parser.py
"""
Stark HTML export parser.

parse() turns one export into raw ParsedIssues plus a ParseDebugInfo.
Report-level passes (totals, WCAG breakdown, page URL) run first and
independently; then the extraction strategies are tried in a fixed
order until one of them produces something usable:

    1. issue tables
    2. category cards (+ WCAG breakdown gap-filling)
    3. heuristic container scan

No strategy modifies the document, and parse() never raises: every
failure degrades to fewer issues plus an explanatory warning.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional

from bs4 import BeautifulSoup

from .extractors import (
    extract_card_issues,
    extract_heuristic_issues,
    extract_primary_page_url,
    extract_report_totals,
    extract_table_issues,
    extract_wcag_breakdown_totals,
    fill_wcag_gaps,
)
from .models import ParsedIssue, ParseDebugInfo, ParseResult, WcagBreakdownSummary, WcagCriterionTotals
from .severity import infer_severity_scheme_from_raw_labels
from .utils.decorators import log_method
from .utils.text import normalize_text

DEFAULT_HTML_FEATURES = "html.parser"


@dataclass
class ExtractionContext:
    """Read-only inputs shared by every strategy for one document."""
    soup: BeautifulSoup
    source_file: str
    debug: ParseDebugInfo
    page_url: Optional[str] = None
    wcag_breakdown: List[WcagCriterionTotals] = field(default_factory=list)


class StrategyOutcome(NamedTuple):
    issues: List[ParsedIssue]
    usable: bool


class ExtractionStrategy(NamedTuple):
    name: str
    run: Callable[[ExtractionContext], StrategyOutcome]


def run_table_strategy(ctx: ExtractionContext) -> StrategyOutcome:
    issues, headers, matched = extract_table_issues(ctx.soup, ctx.source_file)
    ctx.debug.tables_found = len(headers)
    ctx.debug.table_headers = headers
    ctx.debug.matched_tables = matched
    return StrategyOutcome(issues, usable=bool(issues))


def run_card_strategy(ctx: ExtractionContext) -> StrategyOutcome:
    card_issues = extract_card_issues(ctx.soup, ctx.source_file, ctx.page_url)
    if not card_issues and not ctx.wcag_breakdown:
        return StrategyOutcome([], usable=False)

    if card_issues:
        ctx.debug.warnings.append("No issue tables matched; parsed Categories-style issue cards.")
    issues = list(card_issues)

    if ctx.wcag_breakdown:
        ctx.debug.warnings.append(
            "WCAG breakdown counts detected; using them to ensure totals align even if sections are collapsed."
        )
        synthetic = fill_wcag_gaps(card_issues, ctx.wcag_breakdown, ctx.source_file, ctx.page_url)
        if synthetic:
            ctx.debug.warnings.append(
                f"Added {len(synthetic)} synthetic issue(s) to account for collapsed sections "
                f"so totals match the report."
            )
            issues.extend(synthetic)

    return StrategyOutcome(issues, usable=True)


def run_heuristic_strategy(ctx: ExtractionContext) -> StrategyOutcome:
    ctx.debug.warnings.append("No issue tables matched; using fallback heuristic.")
    issues = extract_heuristic_issues(ctx.soup, ctx.source_file)
    # Last in the chain: whatever it finds is the answer
    return StrategyOutcome(issues, usable=True)


DEFAULT_STRATEGIES: List[ExtractionStrategy] = [
    ExtractionStrategy("tables", run_table_strategy),
    ExtractionStrategy("category_cards", run_card_strategy),
    ExtractionStrategy("heuristic", run_heuristic_strategy),
]


class StarkReportParser:
    """
    Parses Stark accessibility-audit HTML exports.

    One instance can parse any number of documents; it keeps no state
    between calls, so documents may be parsed from several threads.
    """

    def __init__(self, strategies: Optional[List[ExtractionStrategy]] = None,
                 features: str = DEFAULT_HTML_FEATURES, logger: Optional[logging.Logger] = None):
        self.strategies = list(strategies or DEFAULT_STRATEGIES)
        self.features = features
        self.logger = logger or logging.getLogger(__name__)

    @log_method
    def parse(self, html: str, source_file: str) -> ParseResult:
        """
        Parse one export.

        Args:
            html: Document text
            source_file: Identifier attributed to every issue (usually the file name)

        Returns:
            ParseResult with the raw issues and the debug trace
        """
        debug = ParseDebugInfo()

        try:
            if not isinstance(html, (str, bytes)):
                raise TypeError(f"expected HTML text, got {type(html).__name__}")
            soup = BeautifulSoup(html, self.features)
        except Exception as e:
            self.logger.warning(f"Could not parse HTML from {source_file}: {e}")
            debug.warnings.append(f"HTML parser failed to parse the document: {e}")
            return ParseResult([], debug)

        ctx = ExtractionContext(soup=soup, source_file=source_file, debug=debug)
        self._collect_report_metadata(ctx)

        issues: List[ParsedIssue] = []
        for strategy in self.strategies:
            outcome = self._run_strategy(strategy, ctx)
            self.logger.debug(
                f"{source_file}: strategy '{strategy.name}' produced {len(outcome.issues)} issue(s)"
                f" (usable={outcome.usable})"
            )
            if outcome.usable:
                issues = outcome.issues
                break

        if not issues:
            debug.warnings.append("No recognizable issue layout found; no issues extracted.")

        debug.issues_extracted = len(issues)

        labels = []
        for issue in issues:
            label = normalize_text(issue.severity_original)
            if label and label not in labels:
                labels.append(label)
        if labels:
            debug.severity_labels_found = labels
            debug.severity_scheme = infer_severity_scheme_from_raw_labels(labels)

        self.logger.info(f"Parsed {source_file}: {len(issues)} issue(s), {len(debug.warnings)} warning(s)")
        for warning in debug.warnings:
            self.logger.debug(f"{source_file}: {warning}")

        return ParseResult(issues, debug)

    def _collect_report_metadata(self, ctx: ExtractionContext) -> None:
        try:
            totals = extract_report_totals(ctx.soup)
            if not totals.is_empty():
                ctx.debug.report_totals = totals
        except Exception as e:
            self.logger.error(f"Error reading report totals from {ctx.source_file}: {e}", exc_info=True)
            ctx.debug.warnings.append(f"Could not read report totals: {e}")

        try:
            ctx.wcag_breakdown = extract_wcag_breakdown_totals(ctx.soup)
        except Exception as e:
            self.logger.error(f"Error reading WCAG breakdown from {ctx.source_file}: {e}", exc_info=True)
            ctx.debug.warnings.append(f"Could not read WCAG breakdown: {e}")
            ctx.wcag_breakdown = []

        if ctx.wcag_breakdown:
            ctx.debug.wcag_breakdown_totals = WcagBreakdownSummary(
                criteria_with_counts=len(ctx.wcag_breakdown),
                failures=sum(c.failures for c in ctx.wcag_breakdown),
                potentials=sum(c.potentials for c in ctx.wcag_breakdown),
            )

        try:
            ctx.page_url = extract_primary_page_url(ctx.soup)
        except Exception as e:
            self.logger.error(f"Error detecting page URL in {ctx.source_file}: {e}", exc_info=True)
            ctx.page_url = None
        if ctx.page_url:
            ctx.debug.warnings.append(f"Detected page URL: {ctx.page_url}")

    def _run_strategy(self, strategy: ExtractionStrategy, ctx: ExtractionContext) -> StrategyOutcome:
        try:
            return strategy.run(ctx)
        except Exception as e:
            self.logger.error(f"Strategy '{strategy.name}' failed on {ctx.source_file}: {e}", exc_info=True)
            ctx.debug.warnings.append(f"Extraction strategy '{strategy.name}' failed: {e}")
            return StrategyOutcome([], usable=False)


_default_parser = StarkReportParser()


def parse(html: str, source_file: str) -> ParseResult:
    """Parse one Stark export with the default strategy chain."""
    return _default_parser.parse(html, source_file)
